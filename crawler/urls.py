"""
URL helpers: input validation, reference resolution and hostname extraction.
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

import tldextract

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_DOMAIN_RE = re.compile(r"^([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}$", re.IGNORECASE)
_IPV4_RE = re.compile(r"^(?:\d{1,3}\.){3}\d{1,3}$")
_IPV6_RE = re.compile(r"^[0-9a-fA-F:]+$")

WEB_SCHEMES = ("http", "https")

# Bundled public-suffix snapshot only; no download at analysis time.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def validate_url(raw: str) -> Optional[str]:
    """
    Normalize user input into an absolute http(s) URL, or None if invalid.
    A missing scheme defaults to https ("example.com" → "https://example.com/").
    """
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if not s:
        return None

    if not _SCHEME_RE.match(s):
        s = "https://" + s

    try:
        parsed = urlparse(s)
        hostname = parsed.hostname or ""
    except ValueError:
        return None

    if parsed.scheme.lower() not in WEB_SCHEMES:
        return None

    if hostname != "localhost" and not (
        _DOMAIN_RE.match(hostname) or _IPV4_RE.match(hostname) or _IPV6_RE.match(hostname)
    ):
        return None

    return _normalize(parsed)


def resolve_reference(value: str, base_url: str) -> Optional[str]:
    """
    Resolve `value` against `base_url`. Returns the absolute URL, or None when
    the reference cannot be parsed. Non-web schemes are resolved but not rejected here.
    """
    if not value:
        return None
    try:
        joined = urljoin(base_url, value.strip())
        parsed = urlparse(joined)
        if parsed.scheme.lower() in WEB_SCHEMES:
            if not parsed.hostname:
                return None
            parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    return _normalize(parsed)


def hostname_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_web_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        return parsed.scheme.lower() in WEB_SCHEMES and bool(parsed.hostname)
    except ValueError:
        return False


def is_ipv4_host(hostname: str) -> bool:
    return bool(_IPV4_RE.match(hostname or ""))


def _normalize(parsed) -> str:
    """Lowercase scheme and host, give an empty path its root slash."""
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc
    if netloc:
        userinfo, sep, hostport = netloc.rpartition("@")
        netloc = f"{userinfo}{sep}{hostport.lower()}"
    path = parsed.path
    if scheme in WEB_SCHEMES and not path:
        path = "/"
    return urlunparse((scheme, netloc, path, parsed.params, parsed.query, parsed.fragment))


def split_hostname(hostname: str):
    """tldextract parts (subdomain, domain, suffix) of a hostname."""
    return _extract(hostname)


def registered_domain(hostname: str) -> str:
    """'login.example.co.uk' -> 'example.co.uk'; IPs and bare labels come back unchanged."""
    return _extract(hostname).registered_domain or hostname

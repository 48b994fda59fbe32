"""
Domain-based threat classifier.

Runs over every referenced or redirect URL (not only the scored ones) and
reports binary pattern matches. Any match means "threat detected", which the
aggregator turns into a category and overall score of 0.

Pattern families, in evaluation order:
- base64-like payload segments in the path or query
- phishing / click-tracking query parameter names
- urgency and account-verification keywords
- IP-literal hosts
- typosquatted brand names (the brands' genuine registered domains are allow-listed)
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Iterable, Optional
from urllib.parse import parse_qsl, unquote, urlparse

from config import BRAND_DOMAINS, PHISHING_QUERY_PARAMS, SUSPICIOUS_TLDS, URGENCY_KEYWORDS
from crawler.urls import is_ipv4_host, registered_domain, split_hostname
from log import get_logger
from models import ThreatMatch

logger = get_logger(__name__)


_BASE64_SEGMENT = re.compile(r"^[A-Za-z0-9+/_-]{40,}={0,2}$")
_SEGMENT_SPLIT = re.compile(r"[/?&=;]")
_TOKEN_SPLIT = re.compile(r"[.\-_]")

_B64_ALPHABET = str.maketrans("+/", "-_")
_LEET = str.maketrans({"0": "o", "1": "l", "3": "e", "4": "a", "5": "s", "7": "t", "$": "s", "@": "a"})

_ALLOWED_DOMAINS = {domain for domains in BRAND_DOMAINS.values() for domain in domains}


def classify_url(url: str) -> list[ThreatMatch]:
    """All pattern matches for one URL; empty when it looks clean."""
    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        return []
    if not hostname:
        return []

    if _is_genuine(hostname):
        return []

    matches: list[ThreatMatch] = []
    for check in (_base64_payload, _phishing_params, _urgency_keywords, _ip_literal, _typosquat):
        found = check(url, parsed, hostname)
        if found:
            matches.append(found)
    return matches


def classify_urls(urls: Iterable[str]) -> list[ThreatMatch]:
    matches: list[ThreatMatch] = []
    seen: set[str] = set()
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        try:
            matches.extend(classify_url(url))
        except Exception as exc:
            logger.debug("Threat classification skipped %s: %s", url, exc)
    if matches:
        logger.warning("Threat patterns matched on %d URL(s)", len({m.url for m in matches}))
    return matches


# ── Genuine brand hosts ───────────────────────────────────────────────────────

def _is_genuine(hostname: str) -> bool:
    """
    Brand infrastructure is never flagged: the listed registered domains, plus
    the brand's own name under a country-code suffix (google.co.uk, amazon.co.jp).
    """
    if registered_domain(hostname) in _ALLOWED_DOMAINS:
        return True
    ext = split_hostname(hostname)
    if ext.domain not in BRAND_DOMAINS or not ext.suffix:
        return False
    if any(("." + ext.suffix).endswith(tld) for tld in SUSPICIOUS_TLDS):
        return False
    return len(ext.suffix.rsplit(".", 1)[-1]) == 2


def _decodes_to_text(segment: str) -> bool:
    padded = segment.rstrip("=").translate(_B64_ALPHABET)
    padded += "=" * (-len(padded) % 4)
    try:
        text = base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, ValueError):
        return False
    return bool(text) and text.isprintable()


# ── Pattern families ──────────────────────────────────────────────────────────

def _base64_payload(url: str, parsed, hostname: str) -> Optional[ThreatMatch]:
    # Random tokens (video ids, signatures, click ids) look like base64 but decode to binary
    for segment in _SEGMENT_SPLIT.split(unquote(parsed.path + "?" + parsed.query)):
        if not _BASE64_SEGMENT.match(segment):
            continue
        has_upper = any(c.isupper() for c in segment)
        has_lower = any(c.islower() for c in segment)
        has_digit = any(c.isdigit() for c in segment)
        if has_upper and has_lower and has_digit and _decodes_to_text(segment):
            return ThreatMatch(url, "Obfuscated Payload", f"base64-encoded text segment ({len(segment)} chars)")
    return None


def _phishing_params(url: str, parsed, hostname: str) -> Optional[ThreatMatch]:
    names = {name.lower() for name, _ in parse_qsl(parsed.query, keep_blank_values=True)}
    hits = sorted(names & PHISHING_QUERY_PARAMS)
    if hits:
        return ThreatMatch(url, "Phishing Query Parameter", ", ".join(hits))
    return None


def _urgency_keywords(url: str, parsed, hostname: str) -> Optional[ThreatMatch]:
    haystack = unquote(f"{hostname}{parsed.path}?{parsed.query}").lower()
    hits = [kw for kw in URGENCY_KEYWORDS if kw in haystack]
    if hits:
        return ThreatMatch(url, "Urgency Keyword", ", ".join(hits))
    return None


def _ip_literal(url: str, parsed, hostname: str) -> Optional[ThreatMatch]:
    if is_ipv4_host(hostname) or ":" in hostname:
        return ThreatMatch(url, "IP Literal Host", hostname)
    return None


def _typosquat(url: str, parsed, hostname: str) -> Optional[ThreatMatch]:
    """
    A hostname label that reads as a brand name once leetspeak is undone
    (paypa1, g00gle, rnicrosoft), or the exact brand name on someone else's domain.
    Brand names inside longer words (pineapple, googlesyndication) do not count.
    """
    ext = split_hostname(hostname)
    label_part = ".".join(p for p in (ext.subdomain, ext.domain) if p)
    owner = ext.registered_domain or hostname

    for raw in _TOKEN_SPLIT.split(label_part):
        if not raw:
            continue
        token = raw.translate(_LEET).replace("rn", "m")
        if token not in BRAND_DOMAINS:
            continue
        if raw == token:
            detail = f"'{token}' on unrelated domain {owner}"
        else:
            detail = f"'{raw}' imitates '{token}' on {owner}"
        return ThreatMatch(url, "Brand Typosquat", detail)
    return None

"""
Static link extraction: scans fetched markup and inline script text for every
outbound reference the page declares without running any JavaScript.

Each source is scanned on its own; a source that is missing or raises never
stops the others. Matches are resolved against the page's base URL on the
spot and unresolvable ones are dropped. Duplicates are kept; the normalizer
collapses them later.
"""
from __future__ import annotations

import re
from typing import Callable, Iterable

from bs4 import BeautifulSoup

from crawler.parser import meta_content, parse_markup, resolve_base_url
from crawler.urls import resolve_reference
from log import get_logger
from models import RawReference, SourceKind

logger = get_logger(__name__)


_Q = r"""['"]([^'"]+)['"]"""

# Navigation calls with a quoted argument: open / assign / replace / location set
NAVIGATION_CALL_PATTERNS = [
    re.compile(r"window\.open\s*\(\s*" + _Q, re.IGNORECASE),
    re.compile(r"location\.href\s*=\s*" + _Q, re.IGNORECASE),
    re.compile(r"location\.assign\s*\(\s*" + _Q, re.IGNORECASE),
    re.compile(r"location\.replace\s*\(\s*" + _Q, re.IGNORECASE),
    re.compile(r"location\s*=\s*" + _Q, re.IGNORECASE),
]

QUOTED_URL_LITERAL = re.compile(r"""['"](https?://[^'"\s]+)['"]""", re.IGNORECASE)

DATA_URL_ATTRIBUTES = ["data-url", "data-href", "data-link", "data-popup-url"]

_META_REFRESH_URL = re.compile(r"url\s*=\s*(.+?)(?:;|$)", re.IGNORECASE)

_EXCLUDED_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "#")
_EXCLUDED_ACTION_PREFIXES = ("javascript:", "#")
_EXCLUDED_SRC_PREFIXES = ("javascript:", "about:")


def extract_static_references(body: str, page_url: str) -> list[RawReference]:
    """Return every outbound reference found in `body`, resolved against `page_url`."""
    if not body:
        return []

    soup = parse_markup(body)
    base_url = resolve_base_url(soup, page_url)

    scanners: list[tuple[str, Callable[[BeautifulSoup, str], list[RawReference]]]] = [
        ("anchors", _scan_anchors),
        ("onclick", _scan_onclick_handlers),
        ("inline scripts", _scan_inline_scripts),
        ("data attributes", _scan_data_attributes),
        ("form actions", _scan_form_actions),
        ("iframes", _scan_iframes),
        ("meta refresh", _scan_meta_refresh),
    ]

    refs: list[RawReference] = []
    for name, scanner in scanners:
        try:
            refs.extend(scanner(soup, base_url))
        except Exception as exc:
            logger.debug("Static scan of %s failed on %s: %s", name, page_url, exc)
    return refs


def find_navigation_targets(script: str) -> list[str]:
    """Quoted arguments of navigation calls in a JavaScript snippet."""
    targets: list[str] = []
    for pattern in NAVIGATION_CALL_PATTERNS:
        targets.extend(m.group(1).strip() for m in pattern.finditer(script))
    return targets


# ── Sources ───────────────────────────────────────────────────────────────────

def _scan_anchors(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    values = []
    for a_tag in soup.find_all("a", href=True):
        href = (a_tag.get("href") or "").strip()
        if not href or href.lower().startswith(_EXCLUDED_HREF_PREFIXES):
            continue
        values.append(href)
    return _resolved(values, base_url, SourceKind.ANCHOR)


def _scan_onclick_handlers(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    values = []
    for el in soup.find_all(onclick=True):
        values.extend(find_navigation_targets(el.get("onclick") or ""))
    return _resolved(values, base_url, SourceKind.ONCLICK_HANDLER)


def _scan_inline_scripts(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    values = []
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        if not text.strip():
            continue
        values.extend(find_navigation_targets(text))
        values.extend(m.group(1) for m in QUOTED_URL_LITERAL.finditer(text))
    return _resolved(values, base_url, SourceKind.INLINE_SCRIPT)


def _scan_data_attributes(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    values = []
    for attr in DATA_URL_ATTRIBUTES:
        for el in soup.find_all(attrs={attr: True}):
            value = (el.get(attr) or "").strip()
            if value:
                values.append(value)
    return _resolved(values, base_url, SourceKind.DATA_ATTRIBUTE)


def _scan_form_actions(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    values = []
    for form in soup.find_all("form", action=True):
        action = (form.get("action") or "").strip()
        if action and not action.lower().startswith(_EXCLUDED_ACTION_PREFIXES):
            values.append(action)
    return _resolved(values, base_url, SourceKind.FORM_ACTION)


def _scan_iframes(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    values = []
    for frame in soup.find_all("iframe", src=True):
        src = (frame.get("src") or "").strip()
        if src and not src.lower().startswith(_EXCLUDED_SRC_PREFIXES):
            values.append(src)
    return _resolved(values, base_url, SourceKind.IFRAME_SRC)


def _scan_meta_refresh(soup: BeautifulSoup, base_url: str) -> list[RawReference]:
    content = meta_content(soup, http_equiv="refresh")
    if not content:
        return []
    match = _META_REFRESH_URL.search(content)
    if not match:
        return []
    target = match.group(1).replace("'", "").replace('"', "").strip()
    return _resolved([target], base_url, SourceKind.NAVIGATION_EVENT)


def _resolved(values: Iterable[str], base_url: str, kind: str) -> list[RawReference]:
    refs = []
    for value in values:
        absolute = resolve_reference(value, base_url)
        if absolute:
            refs.append(RawReference(absolute, kind))
    return refs

"""
Markup parsing helpers. Turns a fetched body into a queryable BeautifulSoup tree
and exposes the small lookups shared by the category checks.
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


def parse_markup(body: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(body or "", "lxml")
    except Exception:
        return BeautifulSoup(body or "", "html.parser")


def resolve_base_url(soup: BeautifulSoup, fallback: str) -> str:
    base_tag = soup.find("base", href=True)
    if base_tag:
        return urljoin(fallback, base_tag["href"])
    return fallback


def meta_content(soup: BeautifulSoup, name: str = "", prop: str = "", http_equiv: str = "") -> Optional[str]:
    """Return the `content` of the first matching <meta>, matched case-insensitively."""
    for meta in soup.find_all("meta"):
        if name and (meta.get("name") or "").lower().strip() == name:
            return meta.get("content")
        if prop and (meta.get("property") or "").lower().strip() == prop:
            return meta.get("content")
        if http_equiv and (meta.get("http-equiv") or "").lower().strip() == http_equiv:
            return meta.get("content")
    return None


def find_link_rel(soup: BeautifulSoup, *rels: str) -> Optional[Tag]:
    """First <link> whose rel contains any of `rels`."""
    wanted = {r.lower() for r in rels}
    for link in soup.find_all("link"):
        rel = link.get("rel") or []
        values = rel if isinstance(rel, list) else str(rel).split()
        if wanted & {v.lower() for v in values}:
            return link
    return None


def visible_text(soup: BeautifulSoup) -> str:
    """Body text with script/style removed and whitespace collapsed. Does not mutate `soup`."""
    clone = BeautifulSoup(str(soup), "html.parser")
    for tag in clone(["script", "style", "noscript"]):
        tag.decompose()
    body = clone.find("body") or clone
    text = body.get_text(separator=" ", strip=True)
    return re.sub(r"\s+", " ", text).strip()

"""
Merges the raw references of both extractors into the unique external link set.
"""
from __future__ import annotations

from typing import Iterable, Optional

from crawler.urls import WEB_SCHEMES, hostname_of, resolve_reference
from models import RawReference, ResolvedLink


def resolve(reference: RawReference, page_url: str) -> Optional[ResolvedLink]:
    """
    Resolve one reference against the page URL. Returns None when the target is
    malformed, not http(s), or has no hostname.
    """
    absolute = resolve_reference(reference.value, page_url)
    if not absolute or not absolute.startswith(tuple(f"{s}://" for s in WEB_SCHEMES)):
        return None
    hostname = hostname_of(absolute)
    if not hostname:
        return None
    return ResolvedLink(absolute_url=absolute, hostname=hostname)


def merge_references(
    reference_lists: Iterable[Iterable[RawReference]],
    page_url: str,
    own_hosts: Iterable[str] = (),
) -> list[ResolvedLink]:
    """
    Set-union of all external references, keyed by the exact absolute URL.
    First occurrence wins; order follows the input.

    `own_hosts` lists extra hostnames treated like the page's own, e.g. the
    host a seed URL redirected to.
    """
    local_hosts = {hostname_of(page_url)} | {h.lower() for h in own_hosts if h}
    seen: set[str] = set()
    merged: list[ResolvedLink] = []

    for references in reference_lists:
        for ref in references:
            link = resolve(ref, page_url)
            if link is None or link.hostname in local_hosts:
                continue
            if link.absolute_url in seen:
                continue
            seen.add(link.absolute_url)
            merged.append(link)

    return merged


def unique_external_links(
    reference_lists: Iterable[Iterable[RawReference]],
    page_url: str,
    own_hosts: Iterable[str] = (),
) -> list[str]:
    """Absolute URLs of `merge_references`, in first-seen order."""
    return [link.absolute_url for link in merge_references(reference_lists, page_url, own_hosts)]


def unique_domains(urls: Iterable[str]) -> list[str]:
    domains: list[str] = []
    for url in urls:
        host = hostname_of(url)
        if host and host not in domains:
            domains.append(host)
    return domains


def count_by_source(reference_lists: Iterable[Iterable[RawReference]]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for references in reference_lists:
        for ref in references:
            counts[ref.source_kind] = counts.get(ref.source_kind, 0) + 1
    return counts

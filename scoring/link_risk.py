"""
Per-link risk scoring.

Every external link starts at 100. A fixed, ordered list of URL heuristics
deducts points (and may raise the status floor to Warning), then an optional
reachability probe deducts more and may mark the link Broken or Unreachable.
The final status comes from the score thresholds, except that Broken and
Unreachable probe verdicts always stand.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from config import MAX_HOSTNAME_LABELS, SUSPICIOUS_TLDS, URL_SHORTENERS
from crawler.fetcher import FetchError, make_session, probe_status
from crawler.urls import hostname_of, is_ipv4_host
from log import get_logger
from models import AnalysisConfig, LinkAssessment, LinkStatus

logger = get_logger(__name__)


UNSAFE_BELOW = 40
WARNING_BELOW = 70


@dataclass(frozen=True)
class LinkHeuristic:
    name: str
    predicate: Callable[[str, str], bool]      # (lower-cased url, hostname) -> matched
    penalty: int
    min_status: Optional[str] = None           # LinkStatus floor when matched

    def applies(self, url: str, hostname: str) -> bool:
        return self.predicate(url, hostname)


def _has_suspicious_tld(url: str, hostname: str) -> bool:
    return any(tld in url for tld in SUSPICIOUS_TLDS)


def _is_shortener(url: str, hostname: str) -> bool:
    labels = hostname.split(".")
    for service in URL_SHORTENERS:
        if "." in service:
            if hostname == service or hostname.endswith("." + service):
                return True
        elif service in labels:
            return True
    return False


def _is_ip_host(url: str, hostname: str) -> bool:
    return is_ipv4_host(hostname)


def _has_deep_subdomains(url: str, hostname: str) -> bool:
    return len(hostname.split(".")) > MAX_HOSTNAME_LABELS


def _is_plain_http(url: str, hostname: str) -> bool:
    return not url.startswith("https://")


LINK_HEURISTICS: list[LinkHeuristic] = [
    LinkHeuristic("Suspicious TLD", _has_suspicious_tld, 30, LinkStatus.WARNING),
    LinkHeuristic("URL Shortener", _is_shortener, 20, LinkStatus.WARNING),
    LinkHeuristic("Direct IP Address", _is_ip_host, 25, LinkStatus.WARNING),
    LinkHeuristic("Multiple Subdomains", _has_deep_subdomains, 15),
]

# Applied after the probe
TRANSPORT_HEURISTICS: list[LinkHeuristic] = [
    LinkHeuristic("No HTTPS", _is_plain_http, 15, LinkStatus.WARNING),
]


class _Tally:
    """Running score, issues and status floor for one link."""

    def __init__(self) -> None:
        self.score = 100
        self.issues: list[str] = []
        self.status = LinkStatus.SAFE

    def deduct(self, penalty: int, issue: str, status: Optional[str] = None) -> None:
        self.score -= penalty
        self.issues.append(issue)
        if status:
            self.raise_floor(status)

    def raise_floor(self, status: str) -> None:
        if self.status in LinkStatus.STICKY:
            return
        if status in LinkStatus.STICKY or self.status == LinkStatus.SAFE:
            self.status = status

    def resolve(self) -> tuple[int, str]:
        score = max(0, min(100, self.score))
        if self.status in LinkStatus.STICKY:
            return score, self.status
        if score < UNSAFE_BELOW:
            return score, LinkStatus.UNSAFE
        if score < WARNING_BELOW or self.status == LinkStatus.WARNING:
            return score, LinkStatus.WARNING
        return score, LinkStatus.SAFE


def score_link(
    url: str,
    config: Optional[AnalysisConfig] = None,
    session: Optional[requests.Session] = None,
) -> LinkAssessment:
    """Score one external link. Never raises."""
    config = config or AnalysisConfig()
    try:
        lowered = url.lower()
        hostname = hostname_of(url)
        tally = _Tally()

        for heuristic in LINK_HEURISTICS:
            if heuristic.applies(lowered, hostname):
                tally.deduct(heuristic.penalty, heuristic.name, heuristic.min_status)

        if config.enable_link_probes:
            _apply_probe(url, tally, config, session or make_session(config.user_agent))

        for heuristic in TRANSPORT_HEURISTICS:
            if heuristic.applies(lowered, hostname):
                tally.deduct(heuristic.penalty, heuristic.name, heuristic.min_status)

        score, status = tally.resolve()
        return LinkAssessment(url=url, score=score, status=status, issues=tuple(tally.issues))
    except Exception as exc:
        logger.warning("Scoring failed for %s: %s", url, exc)
        return LinkAssessment(url=url, score=50, status=LinkStatus.UNKNOWN, issues=("Analysis Error",))


def _apply_probe(url: str, tally: _Tally, config: AnalysisConfig, session: requests.Session) -> None:
    try:
        status = probe_status(url, session, timeout=config.probe_timeout, user_agent=config.user_agent)
    except FetchError as exc:
        logger.debug("Probe failed for %s: %s", url, exc)
        tally.deduct(30, "Cannot Connect", LinkStatus.UNREACHABLE)
        return

    if status == 404:
        tally.deduct(40, "Link Not Found (404)", LinkStatus.BROKEN)
    elif status >= 500:
        tally.deduct(20, "Server Error", LinkStatus.WARNING)
    elif 300 <= status < 400:
        tally.deduct(10, "Redirects")


def score_links(
    urls: list[str],
    config: Optional[AnalysisConfig] = None,
    session: Optional[requests.Session] = None,
) -> list[LinkAssessment]:
    """
    Score the first `config.max_scored_links` URLs concurrently; the rest are
    returned as NotScored sentinels. Output order matches input order.
    """
    config = config or AnalysisConfig()
    head = urls[: config.max_scored_links]
    tail = urls[config.max_scored_links:]

    assessments: dict[str, LinkAssessment] = {}
    if head:
        session = session or make_session(config.user_agent)
        workers = max(1, min(config.max_probe_workers, len(head)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(score_link, url, config, session): url for url in head}
            for future in as_completed(futures):
                url = futures[future]
                try:
                    assessments[url] = future.result()
                except Exception as exc:
                    logger.warning("Scoring worker failed for %s: %s", url, exc)
                    assessments[url] = LinkAssessment(
                        url=url, score=50, status=LinkStatus.UNKNOWN, issues=("Analysis Error",)
                    )

    logger.info("Scored %d link(s); %d over the cap left unscored", len(head), len(tail))
    return [assessments[url] for url in head] + [LinkAssessment.not_scored(url) for url in tail]

"""
Link Analysis category: threat-classifier view over every discovered and
redirect URL, plus the page's own redirect behaviour.

Any threat-classifier match is a confirmed threat and zeroes the category
(and the overall score).
"""
from __future__ import annotations

from typing import Callable, Optional

from analyzers.base import BaseCheck
from analyzers.link_engine import LinkEngine
from crawler.parser import meta_content, parse_markup
from crawler.urls import hostname_of, resolve_reference
from log import get_logger
from models import AnalysisConfig, CategoryResult, CheckSeverity, LinkDiscoveryResult
from scoring.link_risk import LINK_HEURISTICS
from scoring.threats import classify_url

logger = get_logger(__name__)

Discovery = Callable[[str], LinkDiscoveryResult]

_REDIRECT_HEURISTICS = {"URL Shortener"}
_REDIRECT_MARKERS = ("/redirect", "/go?", "/out?", "redirect=", "/click?")

_DENSITY_LIMIT = 0.5


class LinkAnalysisCheck(BaseCheck):
    category = "Link Analysis"
    icon = "🔗"

    def __init__(self, discovery: Optional[Discovery] = None):
        self._discovery = discovery

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        discover = self._discovery or LinkEngine(config).discover_and_score_links
        found = discover(url)
        links = found.unique_external_links
        checks = []

        checks.append(
            self.noted("External Links Found", "No external links on page", CheckSeverity.LOW)
            if not links else
            self.passed("External Links Found", f"{len(links)} external links detected on page", CheckSeverity.LOW)
        )

        # ── Redirect-style links ──────────────────────────────────────────────
        redirecting = [u for u in links if _looks_like_redirect(u)]
        redirecting += [u for u in found.redirect_links if u not in redirecting]
        if len(redirecting) > 5:
            checks.append(self.warned("Redirect Links", f"{len(redirecting)} redirect/shortened links detected"))
        elif redirecting:
            checks.append(self.noted("Redirect Links", f"{len(redirecting)} redirect/shortened links detected"))
        else:
            checks.append(self.passed("Redirect Links", "No redirect or shortened links found"))

        # ── Threat classifier ─────────────────────────────────────────────────
        suspicious_urls = list(dict.fromkeys(m.url for m in found.threat_matches))
        if len(suspicious_urls) > 3:
            checks.append(self.failed(
                "Suspicious External Redirects",
                f"{len(suspicious_urls)} links match phishing or malware patterns",
                CheckSeverity.CRITICAL,
            ))
        elif suspicious_urls:
            checks.append(self.warned(
                "Suspicious External Redirects",
                f"{len(suspicious_urls)} link(s) match phishing or malware patterns: "
                + "; ".join(sorted({m.pattern for m in found.threat_matches})),
                CheckSeverity.CRITICAL,
            ))
        else:
            checks.append(self.passed("Suspicious External Redirects", "No malicious redirects detected", CheckSeverity.CRITICAL))

        # ── Page-level redirect and density ───────────────────────────────────
        threat = found.threat_detected
        try:
            page = self.fetch(url, config)
            soup = parse_markup(page.body)
        except Exception as exc:
            logger.warning("Link Analysis could not fetch %s: %s", url, exc)
            soup = None

        if soup is not None:
            refresh_check, refresh_threat = self._meta_refresh_check(soup, url)
            checks.append(refresh_check)
            threat = threat or refresh_threat

            blocks = len(soup.find_all("p")) + len(soup.find_all("div")) + 1
            ratio = len(links) / blocks
            checks.append(
                self.warned("External Link Density", f"High ratio of external links ({ratio * 100:.1f}%)")
                if ratio > _DENSITY_LIMIT else
                self.passed("External Link Density", "External link density is normal")
            )

        return self._result(
            checks,
            extra={
                "threat_matches": [
                    {"url": m.url, "pattern": m.pattern, "detail": m.detail} for m in found.threat_matches
                ],
                "redirect_links": redirecting,
            },
            threat_detected=threat,
        )

    def _meta_refresh_check(self, soup, url: str):
        content = meta_content(soup, http_equiv="refresh") or ""
        target = ""
        lowered = content.lower()
        if "url=" in lowered:
            raw = content[lowered.index("url=") + 4:].split(";")[0]
            target = resolve_reference(raw.replace("'", "").replace('"', "").strip(), url) or ""

        if not target:
            return self.passed("Meta Refresh Redirect", "No automatic meta-refresh redirect", CheckSeverity.HIGH), False
        if hostname_of(target) == hostname_of(url):
            return self.noted("Meta Refresh Redirect", f"Refreshes to same-site {target}", CheckSeverity.HIGH), False

        matches = classify_url(target)
        if matches:
            return self.failed(
                "Meta Refresh Redirect",
                f"Automatic redirect to suspicious destination {target}",
                CheckSeverity.HIGH,
            ), True
        return self.warned("Meta Refresh Redirect", f"Automatic redirect to external {target}", CheckSeverity.HIGH), False


def _looks_like_redirect(url: str) -> bool:
    lowered = url.lower()
    hostname = hostname_of(url)
    for heuristic in LINK_HEURISTICS:
        if heuristic.name in _REDIRECT_HEURISTICS and heuristic.applies(lowered, hostname):
            return True
    return any(marker in lowered for marker in _REDIRECT_MARKERS)

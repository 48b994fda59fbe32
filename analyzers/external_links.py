"""
External Links category: what the link engine discovered and how the links scored.
"""
from __future__ import annotations

from typing import Callable, Optional

from analyzers.base import BaseCheck
from analyzers.link_engine import LinkEngine
from config import UNSAFE_LINK_SCORE
from models import AnalysisConfig, CategoryResult, CheckSeverity, CheckStatus, LinkDiscoveryResult, SourceKind

Discovery = Callable[[str], LinkDiscoveryResult]

_DYNAMIC_KINDS = (SourceKind.NETWORK_REQUEST, SourceKind.NAVIGATION_EVENT, SourceKind.REDIRECT_HEADER)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


class ExternalLinksCheck(BaseCheck):
    category = "External Links"
    icon = "🌍"

    def __init__(self, discovery: Optional[Discovery] = None):
        self._discovery = discovery

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        discover = self._discovery or LinkEngine(config).discover_and_score_links
        found = discover(url)
        links = found.unique_external_links
        checks = []

        checks.append(
            self.noted("External Links Detected", "No external links found on this page", CheckSeverity.LOW)
            if not links else
            self.passed("External Links Detected", f"Found {_plural(len(links), 'unique external link')}", CheckSeverity.LOW)
        )

        if found.redirect_links:
            checks.append(self.warned(
                "Redirect Triggered External Destinations",
                f"Detected {_plural(len(found.redirect_links), 'external navigation')} initiated via "
                "scripted redirects or window.location changes",
            ))

        checks.append(self.noted(
            "External Domains",
            f"Links point to {_plural(len(found.unique_external_domains), 'unique external domain')}",
            CheckSeverity.LOW,
        ))

        low_score = [a for a in found.scored_links if a.score is not None and a.score < UNSAFE_LINK_SCORE]
        if low_score:
            checks.append(self.check(
                "Potentially Unsafe External Links",
                CheckStatus.FAIL if len(low_score) > 3 else CheckStatus.WARN,
                f"{len(low_score)} external link(s) with security concerns",
                CheckSeverity.HIGH,
            ))

        checks.append(self._coverage_check(found))

        if found.static_error:
            checks.append(self.warned(
                "Static Link Extraction",
                f"Page markup could not be scanned: {found.static_error}",
                CheckSeverity.LOW,
            ))

        return self._result(checks, extra={
            "external_links": list(links),
            "external_domains": list(found.unique_external_domains),
            "scored_links": list(found.scored_links),
            "redirect_links": list(found.redirect_links),
            "reference_counts": dict(found.reference_counts),
        })

    def _coverage_check(self, found: LinkDiscoveryResult):
        # Reduced coverage is never a security failure, so never critical
        if not found.dynamic_enabled:
            return self.noted(
                "Dynamic Link Discovery",
                "Headless-browser discovery disabled; only static markup was scanned",
                CheckSeverity.LOW,
            )
        if found.dynamic_error:
            return self.warned(
                "Dynamic Link Discovery",
                f"Script-triggered links may be missing: {found.dynamic_error}",
                CheckSeverity.MEDIUM,
            )
        dynamic_refs = sum(found.reference_counts.get(kind, 0) for kind in _DYNAMIC_KINDS)
        return self.passed(
            "Dynamic Link Discovery",
            f"Rendered page observed; {_plural(dynamic_refs, 'network or navigation reference')} captured",
            CheckSeverity.LOW,
        )

"""
Base class for all category checks.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from crawler.fetcher import fetch_page, make_session
from models import AnalysisConfig, CategoryResult, CheckResult, CheckSeverity, CheckStatus, FetchResult
from scoring.scorer import calculate_category_score


class BaseCheck(ABC):
    """
    One inspection category. `analyze` may raise; the orchestrator turns any
    exception into an error CategoryResult.
    """

    category: str = "Uncategorized"
    icon: str = "🔎"

    @abstractmethod
    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        ...

    # ── Page access ───────────────────────────────────────────────────────────

    def fetch(
        self,
        url: str,
        config: AnalysisConfig,
        session: Optional[requests.Session] = None,
    ) -> FetchResult:
        """Each category fetches its own copy of the page."""
        return fetch_page(url, session or make_session(config.user_agent), config)

    # ── Convenience factories ─────────────────────────────────────────────────

    def check(self, name: str, status: str, description: str, severity: str = CheckSeverity.MEDIUM) -> CheckResult:
        return CheckResult(name=name, status=status, description=description, severity=severity)

    def passed(self, name, description, severity=CheckSeverity.MEDIUM) -> CheckResult:
        return self.check(name, CheckStatus.PASS, description, severity)

    def warned(self, name, description, severity=CheckSeverity.MEDIUM) -> CheckResult:
        return self.check(name, CheckStatus.WARN, description, severity)

    def failed(self, name, description, severity=CheckSeverity.MEDIUM) -> CheckResult:
        return self.check(name, CheckStatus.FAIL, description, severity)

    def noted(self, name, description, severity=CheckSeverity.MEDIUM) -> CheckResult:
        return self.check(name, CheckStatus.INFO, description, severity)

    def _result(
        self,
        checks: list[CheckResult],
        extra: Optional[dict[str, Any]] = None,
        threat_detected: bool = False,
    ) -> CategoryResult:
        return CategoryResult(
            category=self.category,
            icon=self.icon,
            score=calculate_category_score(checks, threat_detected),
            checks=tuple(checks),
            extra=extra or {},
            threat_detected=threat_detected,
        )


def error_result(category: str, icon: str, message: str, severity: str = CheckSeverity.MEDIUM) -> CategoryResult:
    """Stand-in for a category whose check raised."""
    return CategoryResult(
        category=category,
        icon=icon,
        score=0,
        checks=(CheckResult(
            name=f"{category} Error",
            status=CheckStatus.ERROR,
            description=f"Unable to analyze: {message}",
            severity=severity,
        ),),
    )

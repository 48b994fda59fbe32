"""
Runs every category check against one URL and assembles the OverallResult.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from analyzers.accessibility import AccessibilityCheck
from analyzers.base import BaseCheck, error_result
from analyzers.dns_records import DnsCheck
from analyzers.external_links import ExternalLinksCheck
from analyzers.link_analysis import LinkAnalysisCheck
from analyzers.link_engine import DiscoveryCache, LinkEngine
from analyzers.performance import PerformanceCheck
from analyzers.safety import SafetyCheck
from analyzers.security import SecurityCheck
from analyzers.seo import SeoCheck
from crawler.urls import validate_url
from log import get_logger
from models import AnalysisConfig, CategoryResult, OverallResult
from scoring.scorer import calculate_overall_score, score_color, score_label

logger = get_logger(__name__)


def build_checks(config: AnalysisConfig, engine: Optional[LinkEngine] = None) -> list[BaseCheck]:
    """Category checks in report order. Both link categories share one discovery."""
    discovery = DiscoveryCache(engine or LinkEngine(config))
    return [
        SecurityCheck(),
        DnsCheck(),
        PerformanceCheck(),
        SeoCheck(),
        AccessibilityCheck(),
        SafetyCheck(),
        ExternalLinksCheck(discovery),
        LinkAnalysisCheck(discovery),
    ]


def run_analysis(
    url: str,
    config: Optional[AnalysisConfig] = None,
    checks: Optional[list[BaseCheck]] = None,
    progress_callback: Optional[Callable[[dict], None]] = None,
) -> OverallResult:
    """
    Analyze `url` across every category. Raises ValueError for input that is
    not an http(s) URL; category failures never escape.
    """
    validated = validate_url(url)
    if not validated:
        raise ValueError(f"Invalid URL: {url!r}. Please provide a valid HTTP or HTTPS URL.")

    config = config or AnalysisConfig()
    checks = checks if checks is not None else build_checks(config)
    logger.info("Analyzing %s across %d categories", validated, len(checks))
    _emit(progress_callback, f"Analysing {validated}…", 0)

    categories: list[Optional[CategoryResult]] = [None] * len(checks)
    with ThreadPoolExecutor(max_workers=max(1, len(checks))) as executor:
        futures = [executor.submit(check.analyze, validated, config) for check in checks]
        for idx, (check, future) in enumerate(zip(checks, futures)):
            try:
                categories[idx] = future.result()
            except Exception as exc:
                # One category never takes the others down
                logger.warning("%s check failed for %s: %s", check.category, validated, exc)
                categories[idx] = error_result(check.category, check.icon, str(exc))
            _emit(progress_callback, f"{check.category} done", int((idx + 1) / len(checks) * 100))

    results = [c for c in categories if c is not None]
    score = calculate_overall_score(results)
    overall = OverallResult(
        url=validated,
        score=score,
        label=score_label(score),
        color=score_color(score),
        categories=results,
    )
    if overall.threat_detected:
        logger.warning("Confirmed threat signal on %s; overall score forced to 0", validated)
    logger.info("Analysis completed for %s. Score: %d/100", validated, score)
    return overall


def _emit(callback, message: str, pct: int) -> None:
    if callback:
        try:
            callback({"message": message, "pct": pct})
        except Exception as exc:
            logger.debug("Progress callback failed: %s", exc)

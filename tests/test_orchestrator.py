"""
Unit tests for the analysis orchestrator
"""
import pytest

from analyzers.base import BaseCheck
from analyzers.orchestrator import build_checks, run_analysis
from models import AnalysisConfig, CheckSeverity, CheckStatus


class _StaticCheck(BaseCheck):
    def __init__(self, category, status=CheckStatus.PASS, threat=False):
        self.category = category
        self._status = status
        self._threat = threat

    def analyze(self, url, config):
        return self._result(
            [self.check("Probe", self._status, "fixed outcome", CheckSeverity.HIGH)],
            threat_detected=self._threat,
        )


class _ExplodingCheck(BaseCheck):
    category = "Exploding"
    icon = "💥"

    def analyze(self, url, config):
        raise RuntimeError("parser crashed")


@pytest.fixture
def config():
    return AnalysisConfig(enable_dynamic_extraction=False, enable_link_probes=False)


class TestRunAnalysis:

    def test_invalid_url_raises(self, config):
        with pytest.raises(ValueError):
            run_analysis("ftp://example.com", config, checks=[])

    def test_categories_keep_check_order(self, config):
        checks = [_StaticCheck("A"), _StaticCheck("B", CheckStatus.WARN), _StaticCheck("C")]
        result = run_analysis("example.com", config, checks=checks)

        assert result.url == "https://example.com/"
        assert [c.category for c in result.categories] == ["A", "B", "C"]
        # (100 + 60 + 100) / 3
        assert result.score == 87
        assert result.label == "Good"

    def test_failing_check_becomes_error_category(self, config):
        checks = [_StaticCheck("A"), _ExplodingCheck()]
        result = run_analysis("https://example.com", config, checks=checks)

        broken = result.categories[1]
        assert broken.category == "Exploding"
        assert broken.score == 0
        assert broken.checks[0].status == CheckStatus.ERROR
        assert "parser crashed" in broken.checks[0].description
        assert result.score == 50

    def test_any_threat_zeroes_overall(self, config):
        checks = [_StaticCheck("A"), _StaticCheck("B"), _StaticCheck("Threat", threat=True)]
        result = run_analysis("https://example.com", config, checks=checks)

        assert result.threat_detected
        assert result.score == 0
        assert result.label == "Critical"

    def test_progress_callback_reaches_100(self, config):
        updates = []
        run_analysis("https://example.com", config, checks=[_StaticCheck("A")], progress_callback=updates.append)

        assert updates[0]["pct"] == 0
        assert updates[-1]["pct"] == 100

    def test_broken_progress_callback_is_ignored(self, config):
        def callback(update):
            raise RuntimeError("ui gone")

        result = run_analysis("https://example.com", config, checks=[_StaticCheck("A")], progress_callback=callback)
        assert result.score == 100


def test_build_checks_shares_discovery(config):
    checks = build_checks(config)

    assert [c.category for c in checks] == [
        "Security & HTTPS", "DNS", "Performance", "SEO & Metadata",
        "Accessibility (WCAG 2.1)", "Safety & Threats", "External Links", "Link Analysis",
    ]
    assert checks[-1]._discovery is checks[-2]._discovery

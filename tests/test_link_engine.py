"""
Unit tests for the link discovery engine and the two link categories
"""
from unittest.mock import MagicMock, patch

import pytest

from analyzers.external_links import ExternalLinksCheck
from analyzers.link_analysis import LinkAnalysisCheck
from analyzers.link_engine import DiscoveryCache, LinkEngine
from conftest import empty_renderer, make_page
from crawler.fetcher import FetchConnectionError
from models import (
    AnalysisConfig,
    CheckStatus,
    LinkAssessment,
    LinkDiscoveryResult,
    LinkStatus,
    RawReference,
    RenderObservation,
    SourceKind,
    ThreatMatch,
)

SEED = "https://example.com/"

STATIC_HTML = """
<html><body>
  <a href="https://docs.partner.org/guide">Guide</a>
  <a href="/internal">Internal</a>
  <script>setTimeout(function () { location.href = "https://evil.click/x"; }, 5000);</script>
</body></html>
"""


@pytest.fixture
def config():
    return AnalysisConfig(enable_dynamic_extraction=True, enable_link_probes=False)


def _engine(config, renderer):
    return LinkEngine(config, session=MagicMock(), renderer=renderer)


class TestLinkEngine:

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_static_only_discovery(self, mock_fetch, mock_session, config):
        mock_fetch.return_value = make_page(STATIC_HTML, SEED)

        result = _engine(config, empty_renderer).discover_and_score_links(SEED)

        assert result.static_error is None
        assert result.dynamic_error is None
        assert "https://docs.partner.org/guide" in result.unique_external_links
        assert "https://evil.click/x" in result.unique_external_links
        assert "https://example.com/internal" not in result.unique_external_links
        assert len(result.scored_links) == len(result.unique_external_links)

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_renderer_failure_keeps_static_results(self, mock_fetch, mock_session, config):
        mock_fetch.return_value = make_page(STATIC_HTML, SEED)

        def broken_renderer(url, cfg):
            raise RuntimeError("chromium missing")

        result = _engine(config, broken_renderer).discover_and_score_links(SEED)

        assert "chromium missing" in result.dynamic_error
        assert "https://docs.partner.org/guide" in result.unique_external_links

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_fetch_failure_keeps_dynamic_results(self, mock_fetch, mock_session, config):
        mock_fetch.side_effect = FetchConnectionError("Connection Error: refused")

        def renderer(url, cfg):
            obs = RenderObservation(url=url)
            obs.dom_references.append(RawReference("https://live.partner.org/", SourceKind.ANCHOR))
            obs.api_navigation_log.append("https://popup.partner.net/offer")
            return obs

        result = _engine(config, renderer).discover_and_score_links(SEED)

        assert "refused" in result.static_error
        assert result.unique_external_links == ["https://live.partner.org/", "https://popup.partner.net/offer"]
        assert result.redirect_links == ["https://popup.partner.net/offer"]
        assert result.reference_counts[SourceKind.NAVIGATION_EVENT] == 1

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_threat_match_sets_flag(self, mock_fetch, mock_session, config):
        mock_fetch.return_value = make_page('<a href="https://paypa1-verify.com/login">Pay</a>', SEED)

        result = _engine(config, empty_renderer).discover_and_score_links(SEED)

        assert result.threat_detected
        assert {m.pattern for m in result.threat_matches} >= {"Brand Typosquat"}

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_dynamic_disabled_skips_renderer(self, mock_fetch, mock_session):
        mock_fetch.return_value = make_page(STATIC_HTML, SEED)
        renderer = MagicMock()
        config = AnalysisConfig(enable_dynamic_extraction=False, enable_link_probes=False)

        result = _engine(config, renderer).discover_and_score_links(SEED)

        renderer.assert_not_called()
        assert result.dynamic_enabled is False

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_ad_network_requests_are_not_threats(self, mock_fetch, mock_session, config):
        mock_fetch.return_value = make_page("<html><body><p>hi</p></body></html>", SEED)

        def renderer(url, cfg):
            obs = RenderObservation(url=url, final_url=url)
            obs.foreign_network_requests += [
                "https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js",
                "https://c.amazon-adsystem.com/aax2/apstag.js",
            ]
            return obs

        result = _engine(config, renderer).discover_and_score_links(SEED)

        assert len(result.unique_external_links) == 2
        assert result.threat_detected is False
        assert result.threat_matches == []

    @patch("analyzers.link_engine.make_session")
    @patch("analyzers.link_engine.fetch_page")
    def test_redirected_seed_keeps_internal_links_internal(self, mock_fetch, mock_session, config):
        html = '<a href="/about">About</a><a href="https://docs.partner.org/">Docs</a>'
        mock_fetch.return_value = make_page(html, SEED, final_url="https://www.example.com/")

        def renderer(url, cfg):
            obs = RenderObservation(url=url, final_url="https://www.example.com/")
            obs.redirect_locations.append("https://www.example.com/")
            return obs

        result = _engine(config, renderer).discover_and_score_links(SEED)

        assert result.unique_external_links == ["https://docs.partner.org/"]
        assert result.unique_external_domains == ["docs.partner.org"]
        assert result.redirect_links == []


def test_discovery_cache_runs_engine_once():
    engine = MagicMock()
    engine.discover_and_score_links.return_value = LinkDiscoveryResult(url=SEED)
    cache = DiscoveryCache(engine)

    assert cache(SEED) is cache(SEED)
    engine.discover_and_score_links.assert_called_once_with(SEED)


class TestExternalLinksCheck:

    def test_zero_links_is_informational(self, config):
        check = ExternalLinksCheck(lambda url: LinkDiscoveryResult(url=url))
        result = check.analyze(SEED, config)

        first = result.checks[0]
        assert first.name == "External Links Detected"
        assert first.status == CheckStatus.INFO

    def test_unsafe_links_fail_above_three(self, config):
        scored = [LinkAssessment(f"https://bad{i}.click/", 20, LinkStatus.UNSAFE) for i in range(4)]
        found = LinkDiscoveryResult(
            url=SEED,
            unique_external_links=[a.url for a in scored],
            unique_external_domains=[a.url[8:-1] for a in scored],
            scored_links=scored,
        )
        result = ExternalLinksCheck(lambda url: found).analyze(SEED, config)

        unsafe = next(c for c in result.checks if c.name == "Potentially Unsafe External Links")
        assert unsafe.status == CheckStatus.FAIL
        assert result.extra["scored_links"] == scored

    def test_dynamic_error_is_a_warning_not_a_failure(self, config):
        found = LinkDiscoveryResult(url=SEED, dynamic_error="Browser automation failed: no chromium")
        result = ExternalLinksCheck(lambda url: found).analyze(SEED, config)

        coverage = next(c for c in result.checks if c.name == "Dynamic Link Discovery")
        assert coverage.status == CheckStatus.WARN
        assert result.threat_detected is False


class TestLinkAnalysisCheck:

    @patch.object(LinkAnalysisCheck, "fetch")
    def test_threat_match_zeroes_category(self, mock_fetch, config):
        mock_fetch.return_value = make_page("<html><body><p>hi</p></body></html>", SEED)
        found = LinkDiscoveryResult(
            url=SEED,
            unique_external_links=["http://203.0.113.9/login"],
            threat_detected=True,
            threat_matches=[ThreatMatch("http://203.0.113.9/login", "IP Literal Host", "203.0.113.9")],
        )

        result = LinkAnalysisCheck(lambda url: found).analyze(SEED, config)

        assert result.threat_detected
        assert result.score == 0
        assert result.extra["threat_matches"][0]["pattern"] == "IP Literal Host"

    @patch.object(LinkAnalysisCheck, "fetch")
    def test_meta_refresh_to_suspicious_host(self, mock_fetch, config):
        html = '<html><head><meta http-equiv="refresh" content="0;url=https://g00gle-verify.net/"></head></html>'
        mock_fetch.return_value = make_page(html, SEED)

        result = LinkAnalysisCheck(lambda url: LinkDiscoveryResult(url=url)).analyze(SEED, config)

        refresh = next(c for c in result.checks if c.name == "Meta Refresh Redirect")
        assert refresh.status == CheckStatus.FAIL
        assert result.threat_detected

    @patch.object(LinkAnalysisCheck, "fetch", side_effect=FetchConnectionError("down"))
    def test_fetch_failure_skips_page_checks(self, mock_fetch, config):
        result = LinkAnalysisCheck(lambda url: LinkDiscoveryResult(url=url)).analyze(SEED, config)

        names = [c.name for c in result.checks]
        assert "Meta Refresh Redirect" not in names
        assert "Suspicious External Redirects" in names
        assert result.threat_detected is False

"""
Unit tests for safety checks and the Safe Browsing client
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from analyzers.safety import INDICATOR_CHECK, SafetyCheck, keyword_indicators, safe_browsing_lookup
from conftest import make_page
from models import AnalysisConfig, CheckStatus

URL = "https://example.com/"

CLEAN_PAGE = "<html><body><p>Welcome to our bakery.</p></body></html>"


def statuses(result):
    return {c.name: c.status for c in result.checks}


class TestKeywordIndicators:

    def test_whole_words_only(self):
        assert keyword_indicators("This file contains a virus.") == ["virus"]
        assert keyword_indicators("Our scampi is fresh") == []

    def test_case_insensitive(self):
        assert "ransomware" in keyword_indicators("RANSOMWARE attack")


class TestSafeBrowsingLookup:

    @patch("analyzers.safety.requests.post")
    def test_match(self, mock_post):
        mock_post.return_value.json.return_value = {"matches": [{"threatType": "SOCIAL_ENGINEERING"}]}

        matched, details = safe_browsing_lookup(URL, "key123")

        assert matched
        assert "SOCIAL_ENGINEERING" in details
        assert mock_post.call_args.kwargs["params"] == {"key": "key123"}
        entries = mock_post.call_args.kwargs["json"]["threatInfo"]["threatEntries"]
        assert entries == [{"url": URL}]

    @patch("analyzers.safety.requests.post")
    def test_no_match(self, mock_post):
        mock_post.return_value.json.return_value = {}
        assert safe_browsing_lookup(URL, "key123") == (False, None)

    @patch("analyzers.safety.requests.post")
    def test_http_error_propagates(self, mock_post):
        mock_post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("403")
        with pytest.raises(requests.exceptions.HTTPError):
            safe_browsing_lookup(URL, "bad-key")


class TestSafetyCheck:

    @patch.object(SafetyCheck, "fetch")
    def test_clean_page_without_api_key(self, mock_fetch):
        mock_fetch.return_value = make_page(CLEAN_PAGE, URL)
        config = AnalysisConfig(keyword_malware_heuristic=True)

        result = SafetyCheck().analyze(URL, config)

        assert statuses(result)[INDICATOR_CHECK] == CheckStatus.INFO
        assert result.threat_detected is False
        assert result.score > 0

    @patch.object(SafetyCheck, "fetch")
    def test_keyword_hit_is_a_threat(self, mock_fetch):
        mock_fetch.return_value = make_page(
            "<html><body><p>You have been infected! Click here to download the cleaner.</p></body></html>", URL
        )

        result = SafetyCheck().analyze(URL, AnalysisConfig(keyword_malware_heuristic=True))

        assert statuses(result)[INDICATOR_CHECK] == CheckStatus.FAIL
        assert result.threat_detected
        assert result.score == 0

    @patch.object(SafetyCheck, "fetch")
    def test_keywords_in_scripts_are_ignored(self, mock_fetch):
        mock_fetch.return_value = make_page(
            "<html><body><script>var malware = 'virus';</script><p>Hello</p></body></html>", URL
        )

        result = SafetyCheck().analyze(URL, AnalysisConfig(keyword_malware_heuristic=True))

        assert result.threat_detected is False

    @patch.object(SafetyCheck, "fetch")
    def test_heuristic_can_be_disabled(self, mock_fetch):
        mock_fetch.return_value = make_page("<html><body><p>malware removal guide</p></body></html>", URL)

        result = SafetyCheck().analyze(URL, AnalysisConfig(keyword_malware_heuristic=False))

        assert result.threat_detected is False

    @patch("analyzers.safety.safe_browsing_lookup", return_value=(True, "Google Safe Browsing match: MALWARE"))
    @patch.object(SafetyCheck, "fetch")
    def test_safe_browsing_match(self, mock_fetch, mock_lookup):
        mock_fetch.return_value = make_page(CLEAN_PAGE, URL)
        config = AnalysisConfig(safe_browsing_api_key="key123", keyword_malware_heuristic=False)

        result = SafetyCheck().analyze(URL, config)

        assert result.threat_detected
        mock_lookup.assert_called_once_with(URL, "key123", config.request_timeout)

    @patch("analyzers.safety.safe_browsing_lookup", side_effect=requests.exceptions.ConnectionError("offline"))
    @patch.object(SafetyCheck, "fetch")
    def test_safe_browsing_failure_is_not_a_threat(self, mock_fetch, mock_lookup):
        mock_fetch.return_value = make_page(CLEAN_PAGE, URL)
        config = AnalysisConfig(safe_browsing_api_key="key123", keyword_malware_heuristic=False)

        result = SafetyCheck().analyze(URL, config)

        indicator = next(c for c in result.checks if c.name == INDICATOR_CHECK)
        assert indicator.status == CheckStatus.INFO
        assert "offline" in indicator.description
        assert result.threat_detected is False

    @patch.object(SafetyCheck, "fetch")
    def test_insecure_forms_and_third_party_scripts(self, mock_fetch):
        body = '<html><body><form action="http://collect.example.net/post"></form>' \
               '<script src="https://cdn.thirdparty.io/x.js"></script><iframe src="/embed"></iframe></body></html>'
        mock_fetch.return_value = make_page(body, URL)

        found = statuses(SafetyCheck().analyze(URL, AnalysisConfig(keyword_malware_heuristic=False)))

        assert found["Form Security"] == CheckStatus.FAIL
        assert found["External Scripts"] == CheckStatus.WARN
        assert found["Iframe Usage"] == CheckStatus.WARN
        assert found["SSL Certificate Status"] == CheckStatus.PASS

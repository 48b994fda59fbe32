"""
Shared fixtures. Nothing here touches the network.
"""
from unittest.mock import MagicMock

import pytest

from models import AnalysisConfig, FetchResult, RenderObservation


@pytest.fixture
def offline_config():
    """No browser, no probes, no keyword heuristic."""
    return AnalysisConfig(
        enable_dynamic_extraction=False,
        enable_link_probes=False,
        keyword_malware_heuristic=False,
    )


def make_response(status=200, headers=None, text="", url=""):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.text = text
    resp.url = url
    return resp


def make_page(body="", url="https://example.com/", status=200, headers=None, final_url=None):
    return FetchResult(
        url=url,
        final_url=final_url or url,
        status=status,
        headers=headers or {},
        body=body,
    )


def empty_renderer(url, config):
    return RenderObservation(url=url)

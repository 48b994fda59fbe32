"""
Link discovery & risk scoring engine.

Static and dynamic extraction run concurrently on independent copies of the
seed page; their references are merged into the unique external link set,
which is then scored (capped, bounded concurrency) and run through the
threat classifier. Nothing raises out of `discover_and_score_links`: a
failed phase is recorded on the result and the other phase still counts.
"""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import requests

from crawler.dynamic_extractor import render_and_observe
from crawler.fetcher import FetchError, fetch_page, make_session
from crawler.normalizer import count_by_source, unique_domains, unique_external_links
from crawler.static_extractor import extract_static_references
from crawler.urls import hostname_of
from log import get_logger
from models import AnalysisConfig, LinkDiscoveryResult, RawReference, RenderObservation
from scoring.link_risk import score_links
from scoring.threats import classify_urls

logger = get_logger(__name__)

Renderer = Callable[[str, AnalysisConfig], RenderObservation]


class LinkEngine:
    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        session: Optional[requests.Session] = None,
        renderer: Renderer = render_and_observe,
    ):
        self.config = config or AnalysisConfig()
        self._session = session
        self._renderer = renderer

    def discover_and_score_links(self, url: str) -> LinkDiscoveryResult:
        result = LinkDiscoveryResult(url=url, dynamic_enabled=self.config.enable_dynamic_extraction)
        try:
            self._discover(url, result)
        except Exception as exc:
            logger.error("Link discovery aborted for %s: %s", url, exc)
            result.static_error = result.static_error or f"Link discovery failed: {exc}"
        return result

    # ── Phases ────────────────────────────────────────────────────────────────

    def _discover(self, url: str, result: LinkDiscoveryResult) -> None:
        static_refs: list[RawReference] = []
        static_final_url = ""
        observation = RenderObservation(url=url)

        with ThreadPoolExecutor(max_workers=2) as executor:
            static_future = executor.submit(self._static_pass, url)
            dynamic_future = (
                executor.submit(self._renderer, url, self.config)
                if self.config.enable_dynamic_extraction else None
            )

            try:
                static_refs, static_final_url = static_future.result()
            except FetchError as exc:
                result.static_error = str(exc)
                logger.warning("Static extraction failed for %s: %s", url, exc)
            except Exception as exc:
                result.static_error = f"Static extraction failed: {exc}"
                logger.warning("Static extraction failed for %s: %s", url, exc)

            if dynamic_future is not None:
                try:
                    observation = dynamic_future.result()
                    result.dynamic_error = observation.error
                except Exception as exc:
                    result.dynamic_error = f"Browser automation failed: {exc}"
                    logger.warning("Dynamic extraction failed for %s: %s", url, exc)

        # A seed that redirects (example.com -> www.example.com) keeps its links internal
        own_hosts = {hostname_of(u) for u in (url, static_final_url, observation.final_url) if u}
        reference_lists = [static_refs, observation.references()]

        result.unique_external_links = unique_external_links(reference_lists, url, own_hosts)
        result.unique_external_domains = unique_domains(result.unique_external_links)
        result.redirect_links = [u for u in observation.redirect_links if hostname_of(u) not in own_hosts]
        result.reference_counts = count_by_source(reference_lists)
        logger.info(
            "Discovered %d unique external link(s) on %d domain(s) for %s",
            len(result.unique_external_links), len(result.unique_external_domains), url,
        )

        result.scored_links = score_links(result.unique_external_links, self.config, self._probe_session())

        candidates = result.unique_external_links + [
            u for u in result.redirect_links if u not in result.unique_external_links
        ]
        result.threat_matches = classify_urls(candidates)
        result.threat_detected = bool(result.threat_matches)

    def _static_pass(self, url: str) -> tuple[list[RawReference], str]:
        session = make_session(self.config.user_agent)
        page = fetch_page(url, session, self.config)
        final_url = page.final_url or url
        return extract_static_references(page.body, final_url), final_url

    def _probe_session(self) -> requests.Session:
        return self._session or make_session(self.config.user_agent)


class DiscoveryCache:
    """
    Shares one discovery per URL between the link categories of a run.
    Concurrent callers for the same URL wait for the first one to finish.
    """

    def __init__(self, engine: LinkEngine):
        self._engine = engine
        self._lock = threading.Lock()
        self._results: dict[str, LinkDiscoveryResult] = {}

    def __call__(self, url: str) -> LinkDiscoveryResult:
        with self._lock:
            if url not in self._results:
                self._results[url] = self._engine.discover_and_score_links(url)
            return self._results[url]

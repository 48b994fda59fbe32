"""
Low-level HTTP fetcher. Handles single-URL retrieval with redirect chain tracking
and lightweight reachability probes for external links.
"""
from __future__ import annotations

import time
from typing import Optional
from urllib.parse import urljoin

import requests

from config import DEFAULT_USER_AGENT
from models import AnalysisConfig, FetchResult


_REDIRECT_CODES = (301, 302, 303, 307, 308)


class FetchError(Exception):
    """Transport-level failure: the server never produced a usable response."""


class FetchTimeout(FetchError):
    pass


class FetchConnectionError(FetchError):
    pass


def make_session(user_agent: str = DEFAULT_USER_AGENT, retries: int = 2) -> requests.Session:
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(
        max_retries=requests.adapters.Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    })
    return session


def fetch_page(
    url: str,
    session: requests.Session,
    config: Optional[AnalysisConfig] = None,
) -> FetchResult:
    """
    GET `url`, following at most `config.max_redirects` redirects by hand so
    the chain is recorded. Any HTTP status is returned as-is; transport
    failures raise FetchTimeout / FetchConnectionError.
    """
    config = config or AnalysisConfig()
    result = FetchResult(url=url, final_url=url)

    t0 = time.perf_counter()
    resp = _follow_redirects(url, session, config, result)
    result.elapsed_ms = (time.perf_counter() - t0) * 1000

    result.status = resp.status_code
    result.final_url = resp.url or result.final_url
    result.headers = {k.lower(): v for k, v in resp.headers.items()}
    result.body = resp.text or ""
    return result


def _follow_redirects(
    url: str,
    session: requests.Session,
    config: AnalysisConfig,
    result: FetchResult,
) -> requests.Response:
    """
    Follow redirects manually to capture the redirect chain.
    Returns the last response received; once the hop budget is spent the
    redirect response itself is returned.
    """
    headers = {"User-Agent": config.user_agent}
    current_url = url
    seen_urls: set[str] = set()
    resp: Optional[requests.Response] = None

    for _ in range(config.max_redirects + 1):
        resp = _get(session, current_url, headers, config.request_timeout)

        if resp.status_code not in _REDIRECT_CODES:
            return resp

        location = resp.headers.get("location", "")
        if not location:
            return resp

        next_url = urljoin(current_url, location)
        result.redirect_chain.append(current_url)

        # Redirect loop
        if next_url in seen_urls or next_url == current_url:
            return resp

        seen_urls.add(current_url)
        current_url = next_url

    return resp


def _get(session: requests.Session, url: str, headers: dict, timeout: int) -> requests.Response:
    try:
        return session.get(url, headers=headers, timeout=timeout, allow_redirects=False)
    except requests.exceptions.Timeout as exc:
        raise FetchTimeout(f"Request to {url} timed out after {timeout}s") from exc
    except requests.exceptions.SSLError as exc:
        raise FetchConnectionError(f"SSL Error: {exc}") from exc
    except requests.exceptions.ConnectionError as exc:
        raise FetchConnectionError(f"Connection Error: {exc}") from exc
    except requests.exceptions.RequestException as exc:
        raise FetchError(f"Request failed: {exc}") from exc


def probe_status(
    url: str,
    session: requests.Session,
    timeout: int = 5,
    user_agent: str = DEFAULT_USER_AGENT,
) -> int:
    """
    Lightweight HEAD check for an external link; redirects are NOT followed.
    Falls back to a streamed GET when HEAD is disallowed.
    Returns the status code; transport failures raise FetchError.
    """
    headers = {"User-Agent": user_agent}
    try:
        resp = session.head(url, headers=headers, timeout=timeout, allow_redirects=False)
        if resp.status_code == 405:
            # HEAD not allowed, retry with GET
            resp = session.get(
                url,
                headers=headers,
                timeout=timeout,
                allow_redirects=False,
                stream=True,
            )
            resp.close()
        return resp.status_code
    except requests.exceptions.Timeout as exc:
        raise FetchTimeout(f"Probe of {url} timed out") from exc
    except requests.exceptions.ConnectionError as exc:
        raise FetchConnectionError(f"Cannot connect to {url}: {exc}") from exc
    except requests.exceptions.RequestException as exc:
        raise FetchError(f"Probe of {url} failed: {exc}") from exc

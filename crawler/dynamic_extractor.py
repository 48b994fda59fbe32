"""
Dynamic link extraction with a headless Chromium (Playwright sync API).

Before any page script runs, the navigation-capable browser APIs are wrapped
so every URL they are asked to open lands in a side-channel log. The page is
then loaded, its live DOM read, its clickable elements clicked once, and the
DOM read again after a settle delay. Foreign network requests, frame
navigations and redirect `Location` headers are recorded throughout.

Coverage is a lower bound: the click pass is capped (per selector), only
one level deep, and stops when the pass runs out of its wall-clock budget
(navigation timeout plus settle delay). Every step is best-effort; whatever
was collected before a failure is returned, with `RenderObservation.error`
describing it. The browser is torn down on every exit path.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from config import CLICK_TIMEOUT_MS, CLICKABLE_SELECTORS
from crawler.static_extractor import QUOTED_URL_LITERAL, find_navigation_targets
from crawler.urls import hostname_of, is_web_url, resolve_reference
from log import get_logger
from models import AnalysisConfig, RawReference, RenderObservation, SourceKind

logger = get_logger(__name__)


_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]

# Installed with add_init_script, i.e. before any script of the target page.
INSTRUMENTATION_SCRIPT = """
(() => {
  window.__sentinelNavLog = [];
  const log = (u) => {
    try {
      const abs = new URL(String(u), document.baseURI).href;
      if (abs.startsWith('http://') || abs.startsWith('https://')) window.__sentinelNavLog.push(abs);
    } catch (e) {}
  };
  const origOpen = window.open;
  window.open = function (u) { if (u) log(u); return origOpen.apply(this, arguments); };
  ['assign', 'replace'].forEach((fn) => {
    try {
      const orig = window.location[fn].bind(window.location);
      window.location[fn] = function (u) { log(u); return orig(u); };
    } catch (e) {}
  });
  try {
    const hrefDesc = Object.getOwnPropertyDescriptor(Location.prototype, 'href');
    if (hrefDesc && hrefDesc.set) {
      Object.defineProperty(window.location, 'href', {
        set(u) { log(u); return hrefDesc.set.call(window.location, u); },
        get() { return hrefDesc.get.call(window.location); },
      });
    }
  } catch (e) {}
  const origPush = history.pushState;
  history.pushState = function (state, title, u) { if (u) log(u); return origPush.apply(history, arguments); };
  const origReplace = history.replaceState;
  history.replaceState = function (state, title, u) { if (u) log(u); return origReplace.apply(history, arguments); };
})();
"""

NAVIGATION_LOG_SCRIPT = "() => Array.isArray(window.__sentinelNavLog) ? window.__sentinelNavLog : []"

# Returns [kind, value] pairs; element properties (el.href, el.action, el.src)
# are already absolute in the live DOM.
DOM_REFERENCES_SCRIPT = """
() => {
  const out = [];
  document.querySelectorAll('a[href]').forEach(el => { if (el.href) out.push(['anchor', el.href]); });
  document.querySelectorAll('[onclick]').forEach(el => { out.push(['onclick', el.getAttribute('onclick') || '']); });
  document.querySelectorAll('form[action]').forEach(el => { if (el.action) out.push(['form', el.action]); });
  document.querySelectorAll('iframe[src]').forEach(el => { if (el.src) out.push(['iframe', el.src]); });
  ['data-url', 'data-href', 'data-link', 'data-popup-url'].forEach(attr => {
    document.querySelectorAll('[' + attr + ']').forEach(el => {
      const v = el.getAttribute(attr);
      if (v) out.push(['data', v]);
    });
  });
  return out;
}
"""

IS_VISIBLE_SCRIPT = """
el => {
  const s = window.getComputedStyle(el);
  return s.display !== 'none' && s.visibility !== 'hidden'
      && s.visibility !== 'collapse' && s.opacity !== '0';
}
"""

_DOM_KINDS = {
    "anchor": SourceKind.ANCHOR,
    "form":   SourceKind.FORM_ACTION,
    "iframe": SourceKind.IFRAME_SRC,
    "data":   SourceKind.DATA_ATTRIBUTE,
}


def render_and_observe(
    url: str,
    config: Optional[AnalysisConfig] = None,
    playwright_factory: Optional[Callable] = None,
) -> RenderObservation:
    """Load `url` in a fresh headless browser and report every navigation it attempts."""
    config = config or AnalysisConfig()
    factory = playwright_factory or sync_playwright
    obs = RenderObservation(url=url)

    try:
        with factory() as p:
            browser = None
            context = None
            try:
                browser = p.chromium.launch(headless=True, args=_LAUNCH_ARGS)
                context = browser.new_context(
                    ignore_https_errors=True,
                    user_agent=config.user_agent,
                    viewport={"width": 1366, "height": 900},
                )
                _observe(context, url, config, obs)
            finally:
                _close_quietly(context)
                _close_quietly(browser)
    except Exception as exc:
        obs.error = obs.error or f"Browser automation failed: {exc}"
        logger.warning("Dynamic extraction unavailable for %s: %s", url, exc)

    return obs


def _observe(context, url: str, config: AnalysisConfig, obs: RenderObservation) -> None:
    # One wall-clock budget for the whole pass: navigation time plus the settle delay.
    settle_s = config.settle_delay_ms / 1000
    deadline = time.monotonic() + config.navigation_timeout_ms / 1000 + settle_s
    own_hosts = {hostname_of(url)}

    # 1. Navigation API instrumentation
    context.add_init_script(script=INSTRUMENTATION_SCRIPT)

    # 2-4. Network, frame-navigation and redirect tracking
    def on_request(request):
        _record_foreign(obs.foreign_network_requests, request.url, own_hosts)

    def on_response(response):
        try:
            if 300 <= response.status < 400:
                location = response.headers.get("location")
                if location:
                    absolute = resolve_reference(location, response.url)
                    _record_foreign(obs.redirect_locations, absolute, own_hosts)
        except Exception as exc:
            logger.debug("Could not read redirect response: %s", exc)

    def on_frame_navigated(frame):
        _record_foreign(obs.foreign_frame_navigations, frame.url, own_hosts)

    def on_page(new_page):
        new_page.on("framenavigated", on_frame_navigated)

    context.on("request", on_request)
    context.on("response", on_response)
    context.on("page", on_page)

    page = context.new_page()
    page.set_default_timeout(config.navigation_timeout_ms)

    # 5. Navigate and wait for network quiescence
    try:
        page.goto(url, wait_until="domcontentloaded", timeout=config.navigation_timeout_ms)
    except Exception as exc:
        obs.error = f"Navigation failed: {exc}"
        logger.warning("Dynamic extraction could not load %s: %s", url, exc)
        _collect_navigation_log(page, obs)
        return

    # The host the seed redirected to counts as the page's own
    obs.final_url = page.url or url
    final_host = hostname_of(obs.final_url)
    if final_host not in own_hosts:
        own_hosts.add(final_host)
        for bucket in (obs.foreign_network_requests, obs.redirect_locations, obs.foreign_frame_navigations):
            bucket[:] = [u for u in bucket if hostname_of(u) not in own_hosts]

    # Playwright reads timeout=0 as "no timeout", so an exhausted budget skips the wait
    idle_ms = int((deadline - settle_s - time.monotonic()) * 1000)
    if idle_ms > 0:
        try:
            page.wait_for_load_state("networkidle", timeout=idle_ms)
        except PlaywrightTimeoutError:
            logger.info("Network never went idle on %s; continuing with partial load", url)

    # 6. Live DOM after script execution
    _collect_dom_references(page, obs)

    # Navigations triggered from here on are recorded and aborted so the
    # click pass keeps working on the seed page.
    try:
        context.route("**/*", lambda route, request: _hold_navigation(route, request, obs))
    except Exception as exc:
        logger.debug("Could not install navigation guard: %s", exc)

    # 7. Simulated interaction
    _click_pass(page, config, obs, deadline - settle_s)

    # 8. Settle, then re-read the DOM
    settle_ms = min(config.settle_delay_ms, int((deadline - time.monotonic()) * 1000))
    if settle_ms > 0:
        try:
            page.wait_for_timeout(settle_ms)
        except Exception as exc:
            logger.debug("Settle wait interrupted: %s", exc)
    _collect_dom_references(page, obs)

    # 9. Instrumented API log
    _collect_navigation_log(page, obs)


def _collect_dom_references(page, obs: RenderObservation) -> None:
    try:
        pairs = page.evaluate(DOM_REFERENCES_SCRIPT) or []
    except Exception as exc:
        logger.debug("DOM extraction failed: %s", exc)
        return

    base = page.url or obs.url
    for kind, value in pairs:
        if kind == "onclick":
            candidates = find_navigation_targets(value)
            candidates += [m.group(1) for m in QUOTED_URL_LITERAL.finditer(value)]
            source = SourceKind.ONCLICK_HANDLER
        else:
            candidates = [value]
            source = _DOM_KINDS.get(kind, SourceKind.ANCHOR)

        for candidate in candidates:
            absolute = resolve_reference(candidate, base)
            if absolute:
                obs.dom_references.append(RawReference(absolute, source))


def _collect_navigation_log(page, obs: RenderObservation) -> None:
    try:
        entries = page.evaluate(NAVIGATION_LOG_SCRIPT) or []
    except Exception as exc:
        logger.debug("Navigation log unavailable: %s", exc)
        return
    for entry in entries:
        if isinstance(entry, str) and is_web_url(entry) and entry not in obs.api_navigation_log:
            obs.api_navigation_log.append(entry)


def _click_pass(page, config: AnalysisConfig, obs: RenderObservation, deadline: float) -> None:
    """Click each visible element once, up to the per-selector cap, until `deadline` (monotonic seconds)."""
    for selector in CLICKABLE_SELECTORS:
        if time.monotonic() >= deadline:
            logger.info("Click pass stopped at the time budget after %d click(s)", obs.clicks_attempted)
            return
        try:
            handles = page.query_selector_all(selector)[: config.max_clicks_per_selector]
        except Exception as exc:
            logger.debug("Selector %s failed: %s", selector, exc)
            continue

        for handle in handles:
            if time.monotonic() >= deadline:
                logger.info("Click pass stopped at the time budget after %d click(s)", obs.clicks_attempted)
                return
            try:
                if not handle.evaluate(IS_VISIBLE_SCRIPT):
                    continue
                obs.clicks_attempted += 1
                handle.click(timeout=CLICK_TIMEOUT_MS, no_wait_after=True)
            except Exception:
                # detached, covered or otherwise unclickable
                continue


def _hold_navigation(route, request, obs: RenderObservation) -> None:
    try:
        if request.is_navigation_request() and request.frame.parent_frame is None:
            url = request.url
            if is_web_url(url) and url not in obs.api_navigation_log:
                obs.api_navigation_log.append(url)
            route.abort()
            return
    except Exception as exc:
        logger.debug("Navigation guard error: %s", exc)
    try:
        route.continue_()
    except Exception as exc:
        logger.debug("Could not continue request: %s", exc)


def _record_foreign(bucket: list[str], url: Optional[str], own_hosts: set[str]) -> None:
    if not url or not is_web_url(url):
        return
    if hostname_of(url) not in own_hosts and url not in bucket:
        bucket.append(url)


def _close_quietly(resource) -> None:
    if resource is None:
        return
    try:
        resource.close()
    except Exception as exc:
        logger.debug("Error while closing browser resource: %s", exc)

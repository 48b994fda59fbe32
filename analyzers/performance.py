"""
Performance checks: response time, page size, render-blocking scripts, compression, caching.
"""
from __future__ import annotations

from analyzers.base import BaseCheck
from config import LARGE_PAGE_SIZE_BYTES, SLOW_RESPONSE_TIME_MS, VERY_SLOW_RESPONSE_TIME_MS
from crawler.parser import parse_markup
from models import AnalysisConfig, CategoryResult, CheckSeverity


class PerformanceCheck(BaseCheck):
    category = "Performance"
    icon = "⚡"

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        page = self.fetch(url, config)
        headers = page.headers
        checks = []

        # ── Response time ─────────────────────────────────────────────────────
        rt = page.elapsed_ms
        if rt >= VERY_SLOW_RESPONSE_TIME_MS:
            checks.append(self.failed(
                "Server Response Time",
                f"{rt:.0f} ms, critically slow (>{VERY_SLOW_RESPONSE_TIME_MS} ms)",
                CheckSeverity.HIGH,
            ))
        elif rt >= SLOW_RESPONSE_TIME_MS:
            checks.append(self.warned(
                "Server Response Time",
                f"{rt:.0f} ms, above the {SLOW_RESPONSE_TIME_MS} ms threshold",
                CheckSeverity.HIGH,
            ))
        else:
            checks.append(self.passed("Server Response Time", f"{rt:.0f} ms", CheckSeverity.HIGH))

        if page.redirect_chain:
            checks.append(self.warned(
                "Redirect Hops",
                f"{len(page.redirect_chain)} redirect(s) before the page loads",
                CheckSeverity.LOW,
            ))

        # ── Page size ─────────────────────────────────────────────────────────
        size_kb = page.size_bytes // 1024
        if page.size_bytes > LARGE_PAGE_SIZE_BYTES:
            checks.append(self.warned(
                "Page Size",
                f"HTML is {size_kb} KB, above the recommended {LARGE_PAGE_SIZE_BYTES // 1024} KB",
            ))
        else:
            checks.append(self.passed("Page Size", f"HTML is {size_kb} KB"))

        # ── Render-blocking scripts ────────────────────────────────────────────
        soup = parse_markup(page.body)
        head = soup.find("head")
        blocking = [
            s for s in (head.find_all("script", src=True) if head else [])
            if not s.has_attr("async") and not s.has_attr("defer")
            and (s.get("type") or "").lower() != "module"
        ]
        if blocking:
            checks.append(self.warned(
                "Render-Blocking Scripts",
                f"{len(blocking)} <script> tag(s) in <head> without async/defer: "
                + "; ".join(s["src"].split("/")[-1] for s in blocking[:5]),
            ))
        else:
            checks.append(self.passed("Render-Blocking Scripts", "No render-blocking scripts in <head>"))

        # ── Transfer ──────────────────────────────────────────────────────────
        encoding = headers.get("content-encoding", "")
        checks.append(
            self.passed("Compression", f"Response compressed ({encoding})")
            if encoding else
            self.warned("Compression", "Response is not compressed (no Content-Encoding)")
        )

        cache_control = headers.get("cache-control")
        if cache_control or headers.get("etag") or headers.get("last-modified"):
            checks.append(self.passed(
                "Caching Headers",
                f"Cache-Control: {cache_control}" if cache_control else "Validator headers present (ETag / Last-Modified)",
                CheckSeverity.LOW,
            ))
        else:
            checks.append(self.noted("Caching Headers", "No caching headers set", CheckSeverity.LOW))

        return self._result(checks, extra={
            "response_time_ms": round(rt),
            "page_size_bytes": page.size_bytes,
            "status_code": page.status,
        })

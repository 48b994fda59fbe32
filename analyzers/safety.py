"""
Safety & threat checks.

Malware/phishing indicators come from Google Safe Browsing when an API key is
configured, otherwise (or when the lookup fails) from a keyword heuristic over
the page's visible text. A failing indicator is a confirmed threat: the category,
and with it the overall score, drops to 0.
"""
from __future__ import annotations

import re
from typing import Optional

import requests

from analyzers.base import BaseCheck
from config import MALWARE_KEYWORDS, SAFE_BROWSING_ENDPOINT
from crawler.parser import parse_markup, visible_text
from crawler.urls import hostname_of
from log import get_logger
from models import AnalysisConfig, CategoryResult, CheckSeverity, CheckStatus

logger = get_logger(__name__)

_THREAT_TYPES = ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE", "POTENTIALLY_HARMFUL_APPLICATION"]

INDICATOR_CHECK = "Malware/Phishing Indicators"


class SafetyCheck(BaseCheck):
    category = "Safety & Threats"
    icon = "⚠️"

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        page = self.fetch(url, config)
        body = page.body or ""
        soup = parse_markup(body)
        final = page.final_url or url
        checks = []

        # ── Malware / phishing ────────────────────────────────────────────────
        detected, details = False, None
        if config.safe_browsing_api_key:
            try:
                detected, details = safe_browsing_lookup(url, config.safe_browsing_api_key, config.request_timeout)
            except requests.exceptions.RequestException as exc:
                logger.warning("Safe Browsing lookup failed for %s: %s", url, exc)
                details = f"Safe Browsing check failed: {exc}"

        if not detected and config.keyword_malware_heuristic:
            hits = keyword_indicators(visible_text(soup))
            if hits:
                detected, details = True, f"Keyword indicators detected: {', '.join(hits)}"

        if detected:
            checks.append(self.failed(INDICATOR_CHECK, details, CheckSeverity.CRITICAL))
        else:
            checks.append(self.noted(
                INDICATOR_CHECK,
                details or ("No Safe Browsing matches" if config.safe_browsing_api_key
                            else "Reliable detection requires a Google Safe Browsing API key"),
                CheckSeverity.CRITICAL,
            ))

        # ── Transport ─────────────────────────────────────────────────────────
        is_https = final.startswith("https://")
        checks.append(
            self.passed("SSL Certificate Status", "HTTPS connection established", CheckSeverity.CRITICAL)
            if is_https else
            self.failed("SSL Certificate Status", "No HTTPS; connection is unencrypted", CheckSeverity.CRITICAL)
        )

        forms = soup.find_all("form")
        insecure_forms = forms if not is_https else [
            f for f in forms if (f.get("action") or "").lower().startswith("http://")
        ]
        checks.append(
            self.failed("Form Security", f"{len(insecure_forms)} form(s) submit over plain HTTP", CheckSeverity.CRITICAL)
            if insecure_forms else
            self.passed("Form Security", "Forms properly secured or no forms detected", CheckSeverity.CRITICAL)
        )

        # ── Embedded third-party content ──────────────────────────────────────
        iframes = soup.find_all("iframe")
        checks.append(
            self.warned("Iframe Usage", f"{len(iframes)} iframe(s); verify they come from trusted sources")
            if iframes else
            self.passed("Iframe Usage", "No iframes detected")
        )

        page_host = hostname_of(final)
        external_scripts = [
            s["src"] for s in soup.find_all("script", src=True)
            if hostname_of(s["src"]) not in ("", page_host)
        ]
        checks.append(
            self.warned(
                "External Scripts",
                f"{len(external_scripts)} third-party script(s); verify they come from trusted sources",
                CheckSeverity.HIGH,
            )
            if external_scripts else
            self.passed("External Scripts", "No third-party scripts", CheckSeverity.HIGH)
        )

        threat = any(c.name == INDICATOR_CHECK and c.status in (CheckStatus.FAIL, CheckStatus.ERROR) for c in checks)
        return self._result(checks, threat_detected=threat)


def keyword_indicators(text: str) -> list[str]:
    """Malware keywords present in `text` (case-insensitive, whole words)."""
    lowered = text.lower()
    return [kw for kw in MALWARE_KEYWORDS if re.search(r"\b" + re.escape(kw) + r"\b", lowered)]


def safe_browsing_lookup(url: str, api_key: str, timeout: int = 10) -> tuple[bool, Optional[str]]:
    """
    Query the Safe Browsing v4 Lookup API. Returns (matched, details).
    Raises requests exceptions on transport or HTTP errors.
    """
    payload = {
        "client": {"clientId": "sitesentinel", "clientVersion": "2.0.0"},
        "threatInfo": {
            "threatTypes": _THREAT_TYPES,
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }
    resp = requests.post(SAFE_BROWSING_ENDPOINT, params={"key": api_key}, json=payload, timeout=timeout)
    resp.raise_for_status()
    data = resp.json() or {}
    matches = data.get("matches") or []
    if matches:
        kinds = sorted({m.get("threatType", "UNKNOWN") for m in matches})
        return True, f"Google Safe Browsing match: {', '.join(kinds)}"
    return False, None

"""
Security checks: HTTPS, mixed content, security response headers, scam redirect markers.
"""
from __future__ import annotations

import re

from bs4 import BeautifulSoup

from analyzers.base import BaseCheck
from crawler.parser import parse_markup
from models import AnalysisConfig, CategoryResult, CheckSeverity

_VERIFICATION_SCAM = re.compile(
    r"click.*confirm.*not.*bot|click.*verify|confirm.*human|captcha", re.IGNORECASE
)
_SCAM_REDIRECT = re.compile(
    r"click\.php|redirect\.php|click_id|campaign_id|cost=|zoneid", re.IGNORECASE
)


class SecurityCheck(BaseCheck):
    category = "Security & HTTPS"
    icon = "🔒"

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        page = self.fetch(url, config)
        headers = page.headers
        final = page.final_url or url
        checks = []

        # ── HTTPS ──────────────────────────────────────────────────────────────
        is_https = final.startswith("https://")
        if is_https:
            checks.append(self.passed("HTTPS Encryption", "Site uses HTTPS encryption", CheckSeverity.CRITICAL))
        else:
            checks.append(self.failed(
                "HTTPS Encryption",
                "Page is served over HTTP, not HTTPS",
                CheckSeverity.CRITICAL,
            ))

        # ── Mixed content ──────────────────────────────────────────────────────
        if is_https:
            mixed = _find_mixed_content(parse_markup(page.body))
            if mixed:
                checks.append(self.failed(
                    "Mixed Content",
                    f"Page loads {len(mixed)} resource(s) over HTTP: {'; '.join(mixed[:3])}",
                    CheckSeverity.HIGH,
                ))
            else:
                checks.append(self.passed("Mixed Content", "All sub-resources use HTTPS", CheckSeverity.HIGH))

        # ── Security headers ───────────────────────────────────────────────────
        hsts = headers.get("strict-transport-security")
        checks.append(
            self.passed("HSTS Header", f"HSTS enabled: {hsts}")
            if hsts else
            self.warned("HSTS Header", "Strict-Transport-Security is not configured")
        )

        checks.append(
            self.passed("Content Security Policy (CSP)", "CSP configured to restrict script sources")
            if "content-security-policy" in headers else
            self.warned("Content Security Policy (CSP)", "CSP not configured; XSS mitigation relies on the app alone")
        )

        xfo = headers.get("x-frame-options")
        checks.append(
            self.passed("X-Frame-Options Header", f"Set to {xfo}")
            if xfo else
            self.warned("X-Frame-Options Header", "Not set; the page can be framed (clickjacking)")
        )

        checks.append(
            self.passed("X-Content-Type-Options", "MIME type sniffing disabled")
            if headers.get("x-content-type-options", "").lower() == "nosniff" else
            self.warned("X-Content-Type-Options", "MIME type sniffing mitigation not detected")
        )

        referrer = headers.get("referrer-policy")
        checks.append(
            self.passed("Referrer-Policy", f"Set to {referrer}", CheckSeverity.LOW)
            if referrer else
            self.noted("Referrer-Policy", "Not configured (browser default applies)", CheckSeverity.LOW)
        )

        checks.append(
            self.passed("Permissions-Policy", "Browser feature permissions restricted")
            if "permissions-policy" in headers else
            self.noted("Permissions-Policy", "Browser feature permissions not restricted")
        )

        if is_https:
            checks.append(self.passed(
                "TLS Connection",
                "TLS handshake completed with certificate verification",
                CheckSeverity.HIGH,
            ))

        # ── Scam markers in the body ───────────────────────────────────────────
        if _VERIFICATION_SCAM.search(page.body) or _SCAM_REDIRECT.search(page.body):
            checks.append(self.failed(
                "Redirect Scam Detection",
                "Fake verification prompt or click-tracking redirect markers found in page source",
                CheckSeverity.CRITICAL,
            ))
        else:
            checks.append(self.passed(
                "Redirect Scam Detection",
                "No phishing redirect patterns detected",
                CheckSeverity.CRITICAL,
            ))

        return self._result(checks, extra={"status_code": page.status, "final_url": final})


def _find_mixed_content(soup: BeautifulSoup) -> list[str]:
    """Return HTTP resource URLs referenced by an HTTPS page."""
    mixed: list[str] = []

    for tag, attr in (("img", "src"), ("script", "src"), ("iframe", "src")):
        for el in soup.find_all(tag, **{attr: True}):
            if el[attr].strip().lower().startswith("http://"):
                mixed.append(el[attr].strip())

    for link in soup.find_all("link", href=True):
        rel = [r.lower() for r in (link.get("rel") or [])]
        if "stylesheet" in rel and link["href"].strip().lower().startswith("http://"):
            mixed.append(link["href"].strip())

    return mixed

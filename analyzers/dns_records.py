"""
DNS checks: address records, mail exchangers, name servers, SPF and DMARC.
"""
from __future__ import annotations

from typing import Optional

import dns.exception
import dns.resolver

from analyzers.base import BaseCheck
from crawler.urls import hostname_of, is_ipv4_host, registered_domain
from log import get_logger
from models import AnalysisConfig, CategoryResult, CheckSeverity

logger = get_logger(__name__)


class DnsCheck(BaseCheck):
    category = "DNS"
    icon = "🌐"

    def __init__(self, resolver: Optional[dns.resolver.Resolver] = None):
        self._resolver = resolver

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        hostname = hostname_of(url)
        if is_ipv4_host(hostname) or ":" in hostname:
            return self._result([self.noted(
                "DNS Records", f"{hostname} is an IP address; no DNS records to inspect", CheckSeverity.LOW
            )])

        resolver = self._resolver or _make_resolver(config)
        domain = registered_domain(hostname)
        checks = []

        # ── Address records ───────────────────────────────────────────────────
        a_records = _lookup(resolver, hostname, "A")
        checks.append(
            self.passed("A Record", f"Resolves to {', '.join(a_records[:3])}", CheckSeverity.CRITICAL)
            if a_records else
            self.failed("A Record", f"No IPv4 address found for {hostname}", CheckSeverity.CRITICAL)
        )

        aaaa_records = _lookup(resolver, hostname, "AAAA")
        checks.append(
            self.passed("AAAA Record (IPv6)", f"IPv6 enabled: {aaaa_records[0]}", CheckSeverity.LOW)
            if aaaa_records else
            self.noted("AAAA Record (IPv6)", "No IPv6 address published", CheckSeverity.LOW)
        )

        # ── Zone records ──────────────────────────────────────────────────────
        ns_records = _lookup(resolver, domain, "NS")
        if len(ns_records) >= 2:
            checks.append(self.passed("Name Servers", f"{len(ns_records)} name servers: {', '.join(ns_records[:4])}"))
        elif ns_records:
            checks.append(self.warned("Name Servers", f"Single name server ({ns_records[0]}); no redundancy"))
        else:
            checks.append(self.warned("Name Servers", f"No NS records found for {domain}"))

        mx_records = _lookup(resolver, domain, "MX")
        checks.append(
            self.passed("MX Records", f"{len(mx_records)} mail exchanger(s) configured", CheckSeverity.LOW)
            if mx_records else
            self.noted("MX Records", "No mail exchangers (domain does not receive email)", CheckSeverity.LOW)
        )

        # ── Email authentication ──────────────────────────────────────────────
        spf = next((t for t in _lookup(resolver, domain, "TXT") if t.lower().startswith("v=spf1")), None)
        if spf is None:
            checks.append(self.warned("SPF Record", "No SPF record; the domain can be spoofed in email", CheckSeverity.HIGH))
        elif spf.rstrip().endswith("-all") or spf.rstrip().endswith("~all"):
            checks.append(self.passed("SPF Record", spf, CheckSeverity.HIGH))
        else:
            checks.append(self.warned("SPF Record", f"SPF present but not restrictive: {spf}", CheckSeverity.HIGH))

        dmarc = next(
            (t for t in _lookup(resolver, f"_dmarc.{domain}", "TXT") if t.lower().startswith("v=dmarc1")),
            None,
        )
        if dmarc is None:
            checks.append(self.warned("DMARC Policy", "No DMARC record published", CheckSeverity.HIGH))
        elif "p=none" in dmarc.replace(" ", "").lower():
            checks.append(self.warned("DMARC Policy", f"Monitoring only (p=none): {dmarc}", CheckSeverity.HIGH))
        else:
            checks.append(self.passed("DMARC Policy", dmarc, CheckSeverity.HIGH))

        return self._result(checks, extra={
            "a": a_records, "aaaa": aaaa_records, "ns": ns_records, "mx": mx_records,
        })


def _make_resolver(config: AnalysisConfig) -> dns.resolver.Resolver:
    resolver = dns.resolver.Resolver()
    resolver.timeout = 5
    resolver.lifetime = min(10, config.request_timeout)
    return resolver


def _lookup(resolver: dns.resolver.Resolver, name: str, rdtype: str) -> list[str]:
    """Answers as text; empty on NXDOMAIN, no answer or timeout."""
    try:
        answers = resolver.resolve(name, rdtype)
    except dns.exception.DNSException as exc:
        logger.debug("DNS %s lookup for %s failed: %s", rdtype, name, exc)
        return []

    records = []
    for rdata in answers:
        if rdtype == "MX":
            records.append(str(rdata.exchange).rstrip("."))
        elif rdtype == "TXT":
            records.append("".join(s.decode("utf-8", "ignore") for s in rdata.strings))
        else:
            records.append(str(rdata).rstrip("."))
    return records

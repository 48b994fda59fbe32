"""
Unit tests for DNS checks (resolver is mocked)
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import dns.resolver
import pytest

from analyzers.dns_records import DnsCheck, _lookup
from models import CheckStatus


def txt(value):
    return SimpleNamespace(strings=(value.encode(),))


def mx(host):
    return SimpleNamespace(exchange=host + ".")


def fake_resolver(records):
    """records: {(name, rdtype): [rdata, ...]}; anything missing is NXDOMAIN."""
    resolver = MagicMock()

    def resolve(name, rdtype):
        if (name, rdtype) not in records:
            raise dns.resolver.NXDOMAIN()
        return records[(name, rdtype)]

    resolver.resolve.side_effect = resolve
    return resolver


def statuses(result):
    return {c.name: c.status for c in result.checks}


class TestDnsCheck:

    def test_well_configured_domain(self, offline_config):
        resolver = fake_resolver({
            ("www.example.com", "A"): ["93.184.216.34"],
            ("www.example.com", "AAAA"): ["2606:2800:220:1::"],
            ("example.com", "NS"): ["a.iana-servers.net.", "b.iana-servers.net."],
            ("example.com", "MX"): [mx("mail.example.com")],
            ("example.com", "TXT"): [txt("google-site-verification=abc"), txt("v=spf1 include:_spf.example.com -all")],
            ("_dmarc.example.com", "TXT"): [txt("v=DMARC1; p=reject; rua=mailto:d@example.com")],
        })

        result = DnsCheck(resolver).analyze("https://www.example.com/", offline_config)

        assert all(s == CheckStatus.PASS for s in statuses(result).values())
        assert result.extra["ns"] == ["a.iana-servers.net", "b.iana-servers.net"]
        assert result.extra["mx"] == ["mail.example.com"]

    def test_missing_email_authentication(self, offline_config):
        resolver = fake_resolver({
            ("example.com", "A"): ["93.184.216.34"],
            ("example.com", "NS"): ["ns1.example.com."],
            ("example.com", "TXT"): [txt("v=spf1 a mx ?all")],
            ("_dmarc.example.com", "TXT"): [txt("v=DMARC1; p=none")],
        })

        found = statuses(DnsCheck(resolver).analyze("https://example.com/", offline_config))

        assert found["Name Servers"] == CheckStatus.WARN
        assert found["SPF Record"] == CheckStatus.WARN
        assert found["DMARC Policy"] == CheckStatus.WARN
        assert found["AAAA Record (IPv6)"] == CheckStatus.INFO
        assert found["MX Records"] == CheckStatus.INFO

    def test_unresolvable_host_fails_a_record(self, offline_config):
        found = statuses(DnsCheck(fake_resolver({})).analyze("https://nothing.example.com/", offline_config))

        assert found["A Record"] == CheckStatus.FAIL
        assert found["SPF Record"] == CheckStatus.WARN

    def test_ip_host_is_skipped(self, offline_config):
        resolver = MagicMock()
        result = DnsCheck(resolver).analyze("http://203.0.113.5/", offline_config)

        assert [c.status for c in result.checks] == [CheckStatus.INFO]
        resolver.resolve.assert_not_called()


def test_lookup_swallows_timeouts():
    resolver = MagicMock()
    resolver.resolve.side_effect = dns.resolver.LifetimeTimeout()
    assert _lookup(resolver, "example.com", "A") == []


@pytest.mark.parametrize("value", ["v=spf1 -all", "v=spf1 include:x ~all"])
def test_restrictive_spf_passes(value, offline_config):
    resolver = fake_resolver({
        ("example.com", "A"): ["1.2.3.4"],
        ("example.com", "TXT"): [txt(value)],
    })
    found = statuses(DnsCheck(resolver).analyze("https://example.com/", offline_config))
    assert found["SPF Record"] == CheckStatus.PASS

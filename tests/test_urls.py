"""
Unit tests for URL validation and resolution helpers
"""
import pytest

from crawler.urls import (
    hostname_of,
    is_ipv4_host,
    is_web_url,
    registered_domain,
    resolve_reference,
    validate_url,
)


class TestValidateUrl:

    def test_adds_https_scheme(self):
        assert validate_url("example.com") == "https://example.com/"

    def test_keeps_http_scheme(self):
        assert validate_url("http://example.com/page?q=1") == "http://example.com/page?q=1"

    def test_lowercases_host(self):
        assert validate_url("https://ExAmple.COM/Path") == "https://example.com/Path"

    @pytest.mark.parametrize("raw", ["", "   ", "ftp://example.com", "not a url", "https://", None])
    def test_rejects_invalid_input(self, raw):
        assert validate_url(raw) is None

    def test_accepts_ip_and_localhost(self):
        assert validate_url("http://192.168.0.1:8080/") == "http://192.168.0.1:8080/"
        assert validate_url("http://localhost/") == "http://localhost/"


class TestResolveReference:

    def test_relative_path(self):
        assert resolve_reference("/about", "https://example.com/a/b") == "https://example.com/about"

    def test_protocol_relative(self):
        assert resolve_reference("//cdn.other.org/x.js", "https://example.com/") == "https://cdn.other.org/x.js"

    def test_absolute_passthrough(self):
        assert resolve_reference("https://Other.org", "https://example.com/") == "https://other.org/"

    def test_malformed_port_is_dropped(self):
        assert resolve_reference("http://example.com:notaport/", "https://example.com/") is None

    def test_empty_value(self):
        assert resolve_reference("", "https://example.com/") is None


class TestHostHelpers:

    def test_hostname_of(self):
        assert hostname_of("https://Sub.Example.com:8443/x") == "sub.example.com"
        assert hostname_of("mailto:someone@example.com") == ""

    def test_is_web_url(self):
        assert is_web_url("https://example.com/")
        assert not is_web_url("javascript:void(0)")
        assert not is_web_url("https:///path-only")

    def test_is_ipv4_host(self):
        assert is_ipv4_host("10.0.0.1")
        assert not is_ipv4_host("example.com")

    def test_registered_domain(self):
        assert registered_domain("login.example.co.uk") == "example.co.uk"
        assert registered_domain("www.paypal.com") == "paypal.com"
        assert registered_domain("10.0.0.1") == "10.0.0.1"

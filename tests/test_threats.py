"""
Unit tests for the URL threat classifier
"""
import pytest

from scoring.threats import classify_url, classify_urls


def patterns(url):
    return {m.pattern for m in classify_url(url)}


class TestPatternFamilies:

    def test_base64_payload(self):
        url = "https://cdn.example.net/r/aHR0cHM6Ly9ldmlsLmV4YW1wbGUuY29tL3N0ZWFsP2lkPTEy"
        assert "Obfuscated Payload" in patterns(url)

    def test_long_lowercase_slug_is_not_a_payload(self):
        url = "https://blog.example.net/this-is-a-very-long-blog-post-slug-about-python-tips"
        assert "Obfuscated Payload" not in patterns(url)

    def test_phishing_query_parameters(self):
        matches = classify_url("https://track.example.net/c?click_id=1&zoneid=2")
        found = [m for m in matches if m.pattern == "Phishing Query Parameter"]
        assert found and "click_id" in found[0].detail and "zoneid" in found[0].detail

    def test_urgency_keyword(self):
        assert "Urgency Keyword" in patterns("https://example.net/verify-account/now")

    def test_ip_literal_host(self):
        assert "IP Literal Host" in patterns("http://203.0.113.9/login")

    @pytest.mark.parametrize("url", [
        "https://paypa1-secure.com/login",
        "https://g00gle-login.net/",
        "https://rnicrosoft-support.org/",
        "https://account.netflix-billing.info/",
        "https://amazon-login.example.net/",
        "https://paypal.top/signin",
    ])
    def test_brand_typosquat(self, url):
        assert "Brand Typosquat" in patterns(url)

    def test_typosquat_detail_names_the_lookalike(self):
        [match] = [m for m in classify_url("https://paypa1-secure.com/") if m.pattern == "Brand Typosquat"]
        assert "paypa1" in match.detail and "paypal" in match.detail


class TestFalsePositives:

    @pytest.mark.parametrize("url", [
        "https://www.paypal.com/signin?redirect_url=https://www.paypal.com/",
        "https://accounts.google.com/ServiceLogin",
        "https://login.microsoftonline.com/common/oauth2",
        "https://docs.python.org/3/library/re.html",
        "https://pineapple.example.org/",
    ])
    def test_clean_urls(self, url):
        assert classify_url(url) == []

    @pytest.mark.parametrize("url", [
        "https://www.google.co.uk/maps",
        "https://www.amazon.co.jp/dp/B000000000",
        "https://www.google.de/search?q=python",
        "https://pagead2.googlesyndication.com/pagead/js/adsbygoogle.js",
        "https://www.googleadservices.com/pagead/conversion.js",
        "https://c.amazon-adsystem.com/aax2/apstag.js",
        "https://m.media-amazon.com/images/I/81abc.jpg",
    ])
    def test_brand_infrastructure_is_genuine(self, url):
        assert classify_url(url) == []

    @pytest.mark.parametrize("url", [
        "https://github.com/login?return_to=%2Fsettings",
        "https://example.org/oauth/callback?redirect_url=https%3A%2F%2Fexample.org%2Fhome",
        "https://shop.example.org/?affid=123&subid=abc",
    ])
    def test_ordinary_redirect_and_affiliate_params(self, url):
        assert "Phishing Query Parameter" not in patterns(url)

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ&si=AbCdEfGh1234567890IjKlMnOpQrStUvWxYz1234",
        "https://example.org/article?fbclid=IwAR3kLmNoPqRsTuVwXyZ0123456789abcdefGHIJKL",
        "https://d111111abcdef8.cloudfront.net/video.mp4?Expires=1700000000"
        "&Signature=AbCdWxYz0123456789EfGhIjKlMnOpQrStUvAbCdEfGh&Key-Pair-Id=APKAEIBAERJR2EXAMPLE",
    ])
    def test_random_tokens_are_not_payloads(self, url):
        assert classify_url(url) == []

    def test_non_web_input(self):
        assert classify_url("not a url") == []


class TestClassifyUrls:

    def test_duplicates_are_classified_once(self):
        url = "http://203.0.113.9/login"
        matches = classify_urls([url, url])
        assert len([m for m in matches if m.pattern == "IP Literal Host"]) == 1

    def test_clean_batch(self):
        assert classify_urls(["https://example.org/", "https://wikipedia.org/wiki/Python"]) == []

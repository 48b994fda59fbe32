"""
Unit tests for static (markup-only) link extraction
"""
from collections import Counter

from crawler.static_extractor import extract_static_references, find_navigation_targets
from models import SourceKind

PAGE_URL = "https://example.com/landing"

SAMPLE_HTML = """
<html>
<head>
  <meta http-equiv="refresh" content="30; url=https://refresh.example.org/next">
  <script>
    function go() { window.location.href = "https://evil.click/x"; }
    var cdn = "https://cdn.partner.net/lib.js";
  </script>
</head>
<body>
  <a href="https://news.example.org/story">Story</a>
  <a href="/about">About</a>
  <a href="mailto:hi@example.com">Mail</a>
  <a href="javascript:void(0)">Nothing</a>
  <a href="#top">Top</a>
  <button onclick="window.open('https://popup.example.net/offer')">Offer</button>
  <div data-url="https://data.example.io/item"></div>
  <form action="https://forms.example.com/submit"></form>
  <form action="javascript:send()"></form>
  <iframe src="https://frame.example.tv/embed"></iframe>
  <iframe src="about:blank"></iframe>
</body>
</html>
"""


def _by_kind(refs):
    grouped = {}
    for ref in refs:
        grouped.setdefault(ref.source_kind, []).append(ref.value)
    return grouped


class TestExtractStaticReferences:

    def test_every_source_is_scanned(self):
        grouped = _by_kind(extract_static_references(SAMPLE_HTML, PAGE_URL))

        assert "https://news.example.org/story" in grouped[SourceKind.ANCHOR]
        assert "https://example.com/about" in grouped[SourceKind.ANCHOR]
        assert grouped[SourceKind.ONCLICK_HANDLER] == ["https://popup.example.net/offer"]
        assert "https://evil.click/x" in grouped[SourceKind.INLINE_SCRIPT]
        assert "https://cdn.partner.net/lib.js" in grouped[SourceKind.INLINE_SCRIPT]
        assert grouped[SourceKind.DATA_ATTRIBUTE] == ["https://data.example.io/item"]
        assert grouped[SourceKind.FORM_ACTION] == ["https://forms.example.com/submit"]
        assert grouped[SourceKind.IFRAME_SRC] == ["https://frame.example.tv/embed"]
        assert grouped[SourceKind.NAVIGATION_EVENT] == ["https://refresh.example.org/next"]

    def test_excluded_schemes_never_appear(self):
        values = [r.value for r in extract_static_references(SAMPLE_HTML, PAGE_URL)]

        assert not any(v.startswith(("mailto:", "javascript:", "about:")) for v in values)
        assert not any(v.endswith("#top") for v in values)

    def test_repeated_extraction_yields_same_multiset(self):
        first = Counter(extract_static_references(SAMPLE_HTML, PAGE_URL))
        second = Counter(extract_static_references(SAMPLE_HTML, PAGE_URL))
        assert first == second

    def test_base_tag_changes_resolution(self):
        html = '<html><head><base href="https://mirror.example.org/dir/"></head>' \
               '<body><a href="page">x</a></body></html>'
        refs = extract_static_references(html, PAGE_URL)
        assert [r.value for r in refs] == ["https://mirror.example.org/dir/page"]

    def test_empty_body(self):
        assert extract_static_references("", PAGE_URL) == []

    def test_script_only_redirect_is_found(self):
        html = "<html><body><script>location.replace('https://evil.click/landing');</script></body></html>"
        values = [r.value for r in extract_static_references(html, PAGE_URL)]
        assert "https://evil.click/landing" in values


class TestFindNavigationTargets:

    def test_all_navigation_forms(self):
        script = """
            window.open("https://a.example/1");
            location.href = 'https://b.example/2';
            location.assign("https://c.example/3");
            location.replace("https://d.example/4");
        """
        targets = find_navigation_targets(script)
        for expected in ("https://a.example/1", "https://b.example/2", "https://c.example/3", "https://d.example/4"):
            assert expected in targets

    def test_unquoted_argument_is_ignored(self):
        assert find_navigation_targets("window.open(someVariable)") == []

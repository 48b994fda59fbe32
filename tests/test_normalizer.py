"""
Unit tests for reference merging and external-link deduplication
"""
from crawler.normalizer import count_by_source, merge_references, resolve, unique_domains, unique_external_links
from models import RawReference, SourceKind

PAGE = "https://example.com/index.html"


def ref(value, kind=SourceKind.ANCHOR):
    return RawReference(value, kind)


class TestResolve:

    def test_relative_reference(self):
        link = resolve(ref("/contact"), PAGE)
        assert link.absolute_url == "https://example.com/contact"
        assert link.hostname == "example.com"

    def test_non_web_scheme_is_dropped(self):
        assert resolve(ref("ftp://files.example.org/x"), PAGE) is None
        assert resolve(ref("data:text/html,hi"), PAGE) is None


class TestMergeReferences:

    def test_union_is_deduplicated_by_exact_url(self):
        static = [ref("https://a.example.org/x"), ref("https://a.example.org/x")]
        dynamic = [
            ref("https://a.example.org/x", SourceKind.NAVIGATION_EVENT),
            ref("https://b.example.org/", SourceKind.NETWORK_REQUEST),
        ]

        merged = merge_references([static, dynamic], PAGE)

        assert [l.absolute_url for l in merged] == ["https://a.example.org/x", "https://b.example.org/"]

    def test_same_host_links_are_excluded(self):
        merged = merge_references([[ref("/about"), ref("https://example.com/blog"), ref("https://cdn.example.com/")]], PAGE)

        # Subdomains count as foreign
        assert [l.hostname for l in merged] == ["cdn.example.com"]

    def test_query_and_fragment_differences_are_kept(self):
        merged = merge_references([[ref("https://a.example.org/x?p=1"), ref("https://a.example.org/x?p=2")]], PAGE)
        assert len(merged) == 2

    def test_domains_are_subset_of_link_hosts(self):
        merged = merge_references([[
            ref("https://a.example.org/1"),
            ref("https://a.example.org/2"),
            ref("https://b.example.net/"),
        ]], PAGE)
        domains = unique_domains(l.absolute_url for l in merged)

        assert domains == ["a.example.org", "b.example.net"]
        assert set(domains) <= {l.hostname for l in merged}

    def test_redirect_target_host_counts_as_own(self):
        merged = merge_references(
            [[ref("https://www.example.com/about"), ref("https://partner.example.org/")]],
            PAGE,
            own_hosts=["www.example.com"],
        )
        assert [l.absolute_url for l in merged] == ["https://partner.example.org/"]

    def test_empty_input(self):
        assert merge_references([[], []], PAGE) == []


def test_count_by_source():
    counts = count_by_source([
        [ref("https://a.org/"), ref("https://b.org/")],
        [ref("https://c.org/", SourceKind.NETWORK_REQUEST)],
    ])
    assert counts == {SourceKind.ANCHOR: 2, SourceKind.NETWORK_REQUEST: 1}


def test_unique_external_links_returns_urls():
    urls = unique_external_links([
        [ref("https://a.example.org/x"), ref("/local")],
        [ref("https://a.example.org/x", SourceKind.NETWORK_REQUEST), ref("https://b.example.org/")],
    ], PAGE)
    assert urls == ["https://a.example.org/x", "https://b.example.org/"]


def test_unique_domains_skips_unparseable_urls():
    assert unique_domains(["https://a.example.org/1", "not a url", "https://A.example.org/2"]) == ["a.example.org"]

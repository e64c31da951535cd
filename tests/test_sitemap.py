"""Tests for sitemap discovery and parsing."""

import xml.etree.ElementTree as ET

import httpx
import pytest
from conftest import gzipped, sitemap_index, urlset

from urlscout.discovery.sitemap import SitemapResolver, parse_sitemap_document

ORIGIN = "https://example.com"


class TestParseSitemapDocument:
    """Tests for single-document parsing."""

    def test_urlset(self):
        kind, locs = parse_sitemap_document(urlset(f"{ORIGIN}/a", f"{ORIGIN}/b").encode())

        assert kind == "urlset"
        assert locs == [f"{ORIGIN}/a", f"{ORIGIN}/b"]

    def test_sitemap_index(self):
        kind, locs = parse_sitemap_document(sitemap_index(f"{ORIGIN}/s1.xml").encode())

        assert kind == "sitemapindex"
        assert locs == [f"{ORIGIN}/s1.xml"]

    def test_without_namespace(self):
        """Test that documents missing the sitemaps namespace still parse."""
        doc = b"<urlset><url><loc> https://example.com/a </loc></url><url><loc></loc></url></urlset>"
        assert parse_sitemap_document(doc) == ("urlset", [f"{ORIGIN}/a"])

    def test_gzip(self):
        assert parse_sitemap_document(gzipped(urlset(f"{ORIGIN}/a"))) == ("urlset", [f"{ORIGIN}/a"])

    def test_unknown_root(self):
        assert parse_sitemap_document(b"<rss><channel/></rss>") == ("unknown", [])

    def test_malformed(self):
        with pytest.raises(ET.ParseError):
            parse_sitemap_document(b"<urlset><url>")


class TestSitemapResolver:
    """Tests for resolving a site's sitemaps into page URLs."""

    def test_candidates_put_hints_first(self):
        resolver = SitemapResolver(client=None)
        candidates = resolver.candidates(
            ORIGIN,
            [f"{ORIGIN}/news.xml", "/sitemap.xml", f"{ORIGIN}/news.xml"],
        )

        assert candidates == [
            f"{ORIGIN}/news.xml",
            f"{ORIGIN}/sitemap.xml",
            f"{ORIGIN}/sitemap_index.xml",
            f"{ORIGIN}/sitemap-index.xml",
        ]

    @pytest.mark.asyncio
    async def test_plain_sitemap(self, site):
        site.add_sitemap(f"{ORIGIN}/sitemap.xml", urlset(f"{ORIGIN}/", f"{ORIGIN}/about"))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client).resolve(ORIGIN)

        assert urls == [f"{ORIGIN}/", f"{ORIGIN}/about"]

    @pytest.mark.asyncio
    async def test_index_is_flattened_in_order(self, site):
        """Test that an index of two 10-URL sitemaps yields all 20 URLs."""
        site.add_sitemap(
            f"{ORIGIN}/sitemap.xml",
            sitemap_index(f"{ORIGIN}/posts.xml", f"{ORIGIN}/pages.xml"),
        )
        site.add_sitemap(f"{ORIGIN}/posts.xml", urlset(*(f"{ORIGIN}/post-{i}" for i in range(10))))
        site.add_sitemap(f"{ORIGIN}/pages.xml", urlset(*(f"{ORIGIN}/page-{i}" for i in range(10))))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client).resolve(ORIGIN)

        assert len(urls) == 20
        assert urls[0] == f"{ORIGIN}/post-0"
        assert urls[10] == f"{ORIGIN}/page-0"

    @pytest.mark.asyncio
    async def test_self_referencing_index_terminates(self, site):
        site.add_sitemap(
            f"{ORIGIN}/sitemap.xml",
            sitemap_index(f"{ORIGIN}/sitemap.xml", f"{ORIGIN}/pages.xml"),
        )
        site.add_sitemap(f"{ORIGIN}/pages.xml", urlset(f"{ORIGIN}/a"))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client).resolve(ORIGIN)

        assert urls == [f"{ORIGIN}/a"]
        assert site.requests.count(f"{ORIGIN}/sitemap.xml") == 1

    @pytest.mark.asyncio
    async def test_nesting_depth_is_bounded(self, site):
        site.add_sitemap(f"{ORIGIN}/sitemap.xml", sitemap_index(f"{ORIGIN}/level-1.xml"))
        site.add_sitemap(f"{ORIGIN}/level-1.xml", sitemap_index(f"{ORIGIN}/level-2.xml"))
        site.add_sitemap(f"{ORIGIN}/level-2.xml", urlset(f"{ORIGIN}/deep"))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client, max_depth=1).resolve(ORIGIN)

        assert urls == []
        assert f"{ORIGIN}/level-2.xml" not in site.requests

    @pytest.mark.asyncio
    async def test_robots_hint_with_gzip(self, site):
        site.add(f"{ORIGIN}/sitemap.xml.gz", gzipped(urlset(f"{ORIGIN}/a")), content_type="application/gzip")

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client).resolve(ORIGIN, [f"{ORIGIN}/sitemap.xml.gz"])

        assert urls == [f"{ORIGIN}/a"]
        assert site.requests == [f"{ORIGIN}/sitemap.xml.gz"]

    @pytest.mark.asyncio
    async def test_falls_through_invalid_and_empty_candidates(self, site):
        """Test that broken, empty and unreachable sitemaps are skipped."""
        site.fail(f"{ORIGIN}/hinted.xml")
        site.add_sitemap(f"{ORIGIN}/sitemap.xml", "<urlset><url>")
        site.add_sitemap(f"{ORIGIN}/sitemap_index.xml", urlset())
        site.add_sitemap(f"{ORIGIN}/sitemap-index.xml", urlset(f"{ORIGIN}/found"))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client).resolve(ORIGIN, [f"{ORIGIN}/hinted.xml"])

        assert urls == [f"{ORIGIN}/found"]

    @pytest.mark.asyncio
    async def test_no_sitemap(self, site):
        async with httpx.AsyncClient() as client:
            assert await SitemapResolver(client).resolve(ORIGIN) == []

    @pytest.mark.asyncio
    async def test_truncates_to_max_urls(self, site):
        site.add_sitemap(
            f"{ORIGIN}/sitemap.xml",
            sitemap_index(f"{ORIGIN}/one.xml", f"{ORIGIN}/two.xml"),
        )
        site.add_sitemap(f"{ORIGIN}/one.xml", urlset(*(f"{ORIGIN}/a-{i}" for i in range(4))))
        site.add_sitemap(f"{ORIGIN}/two.xml", urlset(*(f"{ORIGIN}/b-{i}" for i in range(4))))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client, max_urls=3).resolve(ORIGIN)

        assert urls == [f"{ORIGIN}/a-0", f"{ORIGIN}/a-1", f"{ORIGIN}/a-2"]
        # Enough URLs were collected before the second child was needed
        assert f"{ORIGIN}/two.xml" not in site.requests

    def test_candidates_skip_malformed_hints(self):
        resolver = SitemapResolver(client=None)

        candidates = resolver.candidates(ORIGIN, ["http://[bad", f"{ORIGIN}/news.xml"])

        assert candidates[0] == f"{ORIGIN}/news.xml"
        assert len(candidates) == 4

    @pytest.mark.asyncio
    async def test_unrequestable_sub_sitemap_is_skipped(self, site):
        site.add_sitemap(
            f"{ORIGIN}/sitemap.xml",
            sitemap_index(f"{ORIGIN}/bad\x7fname.xml", f"{ORIGIN}/pages.xml"),
        )
        site.add_sitemap(f"{ORIGIN}/pages.xml", urlset(f"{ORIGIN}/a"))

        async with httpx.AsyncClient() as client:
            urls = await SitemapResolver(client).resolve(ORIGIN)

        assert urls == [f"{ORIGIN}/a"]

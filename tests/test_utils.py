import logging

import pytest

from config import SiteConfig, ContentType
from mediascrapers.utils import (
    AiohttpFetcher, CloudflareFetcher, absolute_url, clean_title, extract_year,
    find_media_urls, make_fetcher, never_raise, run_strategies, slugify, title_from_url,
)

BASE = "https://example.test"

class TestAbsoluteUrl:
    @pytest.mark.parametrize("url, expected", [
        ("//x.com/a", "https://x.com/a"),
        ("/a", "https://example.test/a"),
        ("a", "https://example.test/a"),
        ("http://x.com/a", "http://x.com/a"),
        ("https://x.com/a?b=1", "https://x.com/a?b=1"),
    ])
    def test_resolves_against_base(self, url, expected):
        assert absolute_url(url, BASE) == expected

    def test_trailing_slash_on_base(self):
        assert absolute_url("/a", BASE + "/") == "https://example.test/a"

    def test_empty_stays_empty(self):
        assert absolute_url("", BASE) == ""

class TestCleanTitle:
    def test_decodes_entities(self):
        assert clean_title("Tom &amp; Jerry &quot;Live&quot; &#39;99") == "Tom & Jerry \"Live\" '99"

    def test_replaces_misdecoded_dash(self):
        assert clean_title("Alien â€“ Romulus") == "Alien - Romulus"

    def test_collapses_whitespace(self):
        assert clean_title("  The\n  Matrix\t") == "The Matrix"

    def test_empty(self):
        assert clean_title(None) == ""

class TestExtractYear:
    def test_finds_year_in_text(self):
        assert extract_year("Released: March 2015") == "2015"

    def test_ignores_out_of_range(self):
        assert extract_year("Founded 1850, runtime 2150") == ""

    def test_ignores_embedded_digits(self):
        assert extract_year("id 120001") == ""

def test_slugify():
    assert slugify("Spider-Man: No Way Home") == "spider-man-no-way-home"
    assert slugify("  The   Office  ") == "the-office"

def test_title_from_url():
    assert title_from_url("/movies/12-the-dark-knight") == "the dark knight"
    assert title_from_url("https://example.test/series/lost_world/") == "lost world"

class TestFindMediaUrls:
    def test_quoted_m3u8_first(self):
        script = 'var a = "https://cdn.test/clip.mp4"; var b = "https://cdn.test/master.m3u8";'
        assert find_media_urls(script) == ["https://cdn.test/master.m3u8", "https://cdn.test/clip.mp4"]

    def test_keyed_assignment(self):
        assert find_media_urls("player.setup({file: '/media/movie.mp4'})") == ["/media/movie.mp4"]

    def test_ignores_other_urls(self):
        assert find_media_urls('var src = "/js/app.js";') == []

class TestRunStrategies:
    def test_first_non_empty_wins(self):
        calls = []

        def empty(value):
            calls.append("empty")
            return []

        def hit(value):
            calls.append("hit")
            return [value]

        def never(value):
            calls.append("never")
            return ["unused"]

        assert run_strategies([empty, hit, never], "x") == ["x"]
        assert calls == ["empty", "hit"]

    def test_failing_strategy_is_skipped(self):
        def broken(value):
            raise ValueError("bad selector")

        assert run_strategies([broken, lambda value: value * 2], 2) == 4

    def test_nothing_found(self):
        assert run_strategies([lambda: None, lambda: ""]) is None

class TestNeverRaise:
    class Dummy:
        site_name = "Dummy"
        logger = logging.getLogger("tests.dummy")

        @never_raise(list)
        async def explode(self):
            raise RuntimeError("boom")

        @never_raise(lambda: None)
        async def works(self):
            return "ok"

    async def test_exception_becomes_default(self, caplog):
        with caplog.at_level(logging.ERROR):
            assert await self.Dummy().explode() == []
        assert "boom" in caplog.text

    async def test_result_passes_through(self):
        assert await self.Dummy().works() == "ok"

class TestMakeFetcher:
    def test_plain_site_uses_aiohttp(self):
        site = SiteConfig(name="A", base_url="https://a.test", content_types=[ContentType.MOVIE])
        assert isinstance(make_fetcher(site), AiohttpFetcher)

    def test_protected_site_uses_cloudscraper(self):
        site = SiteConfig(name="B", base_url="https://b.test", content_types=[ContentType.MOVIE],
                          cloudflare_protected=True)
        assert isinstance(make_fetcher(site), CloudflareFetcher)

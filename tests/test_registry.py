import pytest

from mediascrapers.movie_scrapers import FlixerScraper, HtmlSiteScraper
from mediascrapers.registry import available_scrapers, build_scrapers, create_scraper

def test_configured_sites_are_available():
    assert {"flixer", "willow"} <= set(available_scrapers())

def test_flixer_has_dedicated_scraper():
    scraper = create_scraper("flixer")
    assert isinstance(scraper, FlixerScraper)
    assert scraper.site_name == "Flixer"

def test_other_sites_use_generic_html_scraper():
    scraper = create_scraper("willow")
    assert type(scraper) is HtmlSiteScraper
    assert scraper.base_url == "https://willow.arlen.icu"

def test_unknown_scraper_raises():
    with pytest.raises(ValueError):
        create_scraper("unknown")

def test_build_scrapers_shares_fetcher():
    fetcher = object()
    scrapers = build_scrapers(fetcher=fetcher)
    assert all(s.fetcher is fetcher for s in scrapers.values())

"""
Registre des scrapers: un site configuré dans SITES_CONFIG = un scraper
"""

from typing import Dict, List, Type

from config import SITES_CONFIG
from .base_scraper import BaseScraper
from .movie_scrapers import FlixerScraper, HtmlSiteScraper

# Sites ayant une implémentation dédiée, les autres sont des sites HTML génériques
SCRAPER_TYPES: Dict[str, Type[BaseScraper]] = {
    "flixer": FlixerScraper,
}

def available_scrapers() -> List[str]:
    return [name for name, site in SITES_CONFIG.items() if site.enabled]

def create_scraper(name: str, fetcher=None, logger=None) -> BaseScraper:
    site = SITES_CONFIG.get(name)
    if site is None or not site.enabled:
        raise ValueError(f"Unknown scraper: {name}")
    scraper_type = SCRAPER_TYPES.get(name, HtmlSiteScraper)
    return scraper_type(site, fetcher=fetcher, logger=logger)

def build_scrapers(fetcher=None) -> Dict[str, BaseScraper]:
    return {name: create_scraper(name, fetcher=fetcher) for name in available_scrapers()}

"""
Media Scraper Modules
Recherche, détails, épisodes et flux pour des sites de films et séries
"""

from .base_scraper import (
    BaseScraper, SearchHit, DetailRecord, EpisodeRef, StreamSource, MediaKind, SourceKind,
)
from .extractor import Extractor
from .movie_scrapers import FlixerScraper, HtmlSiteScraper
from .registry import available_scrapers, build_scrapers, create_scraper
from .tmdb_client import TmdbClient
from .utils import AiohttpFetcher, CloudflareFetcher, absolute_url, make_fetcher

__all__ = [
    'BaseScraper',
    'SearchHit',
    'DetailRecord',
    'EpisodeRef',
    'StreamSource',
    'MediaKind',
    'SourceKind',
    'Extractor',
    'FlixerScraper',
    'HtmlSiteScraper',
    'TmdbClient',
    'AiohttpFetcher',
    'CloudflareFetcher',
    'absolute_url',
    'make_fetcher',
    'available_scrapers',
    'build_scrapers',
    'create_scraper',
]

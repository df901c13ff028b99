"""
Base Scraper Class - Interface commune pour tous les modules de scraping
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from config import SiteConfig
from .utils import make_fetcher

NO_DESCRIPTION = "No description available"
NO_ALIAS = "N/A"
UNKNOWN_DATE = "Unknown"
DEFAULT_PLAYER = "Default Player"

class MediaKind(Enum):
    MOVIE = "movie"
    SERIES = "series"

class SourceKind(Enum):
    IFRAME = "iframe"
    DIRECT = "direct"
    EPISODE = "episode"

@dataclass
class SearchHit:
    """Un résultat de recherche (film ou série)"""
    title: str
    target_url: str
    image_url: str = ""
    year: str = ""
    media_kind: MediaKind = MediaKind.MOVIE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.target_url,
            "image": self.image_url,
            "year": self.year,
            "type": self.media_kind.value,
        }

@dataclass
class DetailRecord:
    """Détails d'un contenu, les champs absents prennent une valeur sentinelle"""
    synopsis: str = NO_DESCRIPTION
    alternate_title: str = NO_ALIAS
    release_info: str = UNKNOWN_DATE
    rating: str = ""
    genres: List[str] = field(default_factory=list)
    runtime: str = ""

    def __post_init__(self):
        self.synopsis = (self.synopsis or "").strip() or NO_DESCRIPTION
        self.alternate_title = (self.alternate_title or "").strip() or NO_ALIAS
        self.release_info = (self.release_info or "").strip() or UNKNOWN_DATE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.synopsis,
            "aliases": self.alternate_title,
            "airdate": self.release_info,
            "rating": self.rating,
            "genres": self.genres,
            "runtime": self.runtime,
        }

@dataclass
class EpisodeRef:
    """Lien vers un épisode"""
    target_url: str
    index: int
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.target_url,
            "number": self.index,
            "title": self.title,
        }

@dataclass
class StreamSource:
    """Lien lisible: fichier média direct ou lecteur embarqué"""
    target_url: str
    kind: SourceKind = SourceKind.DIRECT
    label: str = DEFAULT_PLAYER

    @property
    def is_m3u8(self) -> bool:
        return ".m3u8" in self.target_url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.target_url,
            "type": self.kind.value,
            "title": self.label,
            "is_m3u8": self.is_m3u8,
        }

def sort_episodes(episodes: List[EpisodeRef]) -> List[EpisodeRef]:
    """Trie par numéro croissant, un seul épisode par numéro (le premier vu)"""
    seen = set()
    unique = []
    for episode in episodes:
        if episode.index in seen:
            continue
        seen.add(episode.index)
        unique.append(episode)
    return sorted(unique, key=lambda e: e.index)

class BaseScraper(ABC):
    """Classe de base pour tous les scrapers

    Chaque opération publique est totale: une erreur réseau ou de parsing est
    journalisée puis convertie en résultat vide (liste vide, détails
    sentinelles, ou None pour un flux).
    """

    def __init__(self, site: SiteConfig, fetcher=None, logger: Optional[logging.Logger] = None):
        self.site = site
        self.base_url = site.base_url
        self.site_name = site.name
        self.headers = dict(site.headers)
        self.logger = logger or logging.getLogger(f"mediascrapers.{site.name.lower()}")
        self.fetcher = fetcher or make_fetcher(site, logger=self.logger)

    @abstractmethod
    async def search(self, query: str, kind: Optional[str] = None) -> List[SearchHit]:
        """
        Recherche du contenu

        Args:
            query: Terme de recherche
            kind: "movie", "tv"/"series" ou None pour tout

        Returns:
            Liste des résultats, vide en cas d'échec
        """
        pass

    @abstractmethod
    async def get_details(self, url: str) -> DetailRecord:
        """
        Récupère les détails d'un contenu

        Args:
            url: URL absolue de la page (ou URL synthétique /tmdb/...)

        Returns:
            DetailRecord, avec sentinelles si rien n'est trouvé
        """
        pass

    @abstractmethod
    async def get_episodes(self, url: str) -> List[EpisodeRef]:
        """Récupère la liste des épisodes, triée par numéro"""
        pass

    @abstractmethod
    async def get_stream(self, url: str) -> Optional[StreamSource]:
        """Récupère le lien lisible d'un film ou d'un épisode, None si absent"""
        pass

    async def get_sources(self, url: str) -> List[StreamSource]:
        """Toutes les sources lisibles d'une page"""
        stream = await self.get_stream(url)
        return [stream] if stream else []

    async def fetch_page(self, url: str) -> Optional[str]:
        return await self.fetcher.fetch_text(url, self.headers)

"""
Configuration des sites supportés par les modules de scraping
Les sélecteurs et regex propres à chaque site sont des données, pas du code.
"""

import os
from typing import Dict, List
from dataclasses import dataclass, field
from enum import Enum

class ContentType(Enum):
    MOVIE = "movie"
    SERIES = "series"

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
}

@dataclass
class SelectorSet:
    """Sélecteurs CSS et regex utilisés par l'extracteur, dans l'ordre d'essai"""
    # Recherche
    content_link: str = 'a[href*="/movies/"], a[href*="/series/"]'
    content_path: str = r"/(movies|series)/"
    slug_title: str = r"/(?:movies|series)/\d+-([^/?#]+)"
    heading: str = 'h1, h2, h3, h4, h5, h6, .title, [class*="title"]'
    lazy_image_attrs: List[str] = field(default_factory=lambda: ["data-src", "data-lazy-src", "src"])
    plausible_title: str = r"^[A-Za-z0-9\s\-:.'()]+$"
    max_text_candidates: int = 10

    # Détails
    description: List[str] = field(default_factory=lambda: [
        ".description", ".overview", ".synopsis", ".plot", ".summary",
        'meta[name="description"]', 'meta[property="og:description"]',
        'p:-soup-contains("plot")', ".content p",
    ])
    alias: List[str] = field(default_factory=lambda: [
        "h1", "h2", ".title", ".movie-title", ".series-title",
    ])
    year: List[str] = field(default_factory=lambda: [
        ".year", ".date", ".release-date", "time", ".aired",
    ])

    # Épisodes
    episode_links: List[str] = field(default_factory=lambda: [
        'a[href*="/series/"][href*="/1/"]',
        'a[href*="/episodes/"]',
        ".episode a",
        ".episode-item a",
        ".episode-list a",
    ])
    episode_url: str = r"/series/\d+-[^/]+/\d+/(\d+)"
    episode_text: str = r"(?:Episode|Ep\.?)\s*(\d+)|^(\d+)$"

    # Flux vidéo
    video: List[str] = field(default_factory=lambda: [
        "video source", "video[src]", "source[src]",
        '[data-src*=".mp4"]', '[data-src*=".m3u8"]',
    ])
    iframe: List[str] = field(default_factory=lambda: [
        'iframe[src*="embed"]', 'iframe[src*="player"]',
    ])
    meta_video: List[str] = field(default_factory=lambda: [
        "og:video", "og:video:url", "og:video:secure_url", "twitter:player:stream",
    ])

    # Regex sur le HTML brut (sites proxy), vides si le site n'en a pas
    result_link: str = ""
    embed_iframe: str = ""
    season_block: str = ""
    episode_block: str = ""

FLIXER_SELECTORS = SelectorSet(
    result_link=r'<a class="film-poster-ahref" href="([^"]+)">',
    embed_iframe=r'<iframe id="iframe-embed" src="([^"]+)"',
    season_block=r'<div class="ss-item" data-id="(\d+)">\s*Season (\d+)\s*</div>',
    # {season_id} est remplacé par l'identifiant échappé de la saison
    episode_block=r'<div class="eps-item[^"]*" data-s-id="{season_id}" data-number="(\d+)"',
)

@dataclass
class SiteConfig:
    name: str
    base_url: str
    content_types: List[ContentType]
    enabled: bool = True
    cloudflare_protected: bool = False
    api_based: bool = False
    search_endpoint: str = ""
    text_fallback: bool = False
    player_label: str = "Default Player"
    selectors: SelectorSet = field(default_factory=SelectorSet)
    headers: Dict[str, str] = None

    def __post_init__(self):
        self.base_url = self.base_url.rstrip('/')
        if self.headers is None:
            self.headers = dict(DEFAULT_HEADERS)

# ===== TMDB (métadonnées) =====
TMDB_API_KEY = os.getenv("TMDB_API_KEY", "")
TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p/w500"
TMDB_LANGUAGE = "en-US"

# Configuration des sites supportés
SITES_CONFIG: Dict[str, SiteConfig] = {
    # Proxy adossé à TMDB: recherche et détails via l'API, lecteurs via le site
    "flixer": SiteConfig(
        name="Flixer",
        base_url="https://flixer.su",
        content_types=[ContentType.MOVIE, ContentType.SERIES],
        api_based=True,
        search_endpoint="/search/{query}",
        player_label="VidSrc Player",
        selectors=FLIXER_SELECTORS,
    ),

    # Site HTML scrapé directement
    "willow": SiteConfig(
        name="Willow",
        base_url="https://willow.arlen.icu",
        content_types=[ContentType.MOVIE, ContentType.SERIES],
        search_endpoint="/search?q={query}",
        text_fallback=True,
    ),
}

# Sites par défaut pour chaque type de contenu
DEFAULT_SITES = {
    ContentType.MOVIE: ["flixer", "willow"],
    ContentType.SERIES: ["flixer", "willow"],
}

# Timeouts (secondes)
TIMEOUTS = {
    "connection": 10,
    "read": 30,
}

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

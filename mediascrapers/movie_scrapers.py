"""
Scrapers pour sites de films et séries
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import quote

from config import SiteConfig, SITES_CONFIG
from .base_scraper import (
    BaseScraper, DetailRecord, EpisodeRef, MediaKind, SearchHit, SourceKind,
    StreamSource, sort_episodes,
)
from .extractor import Extractor, tmdb_media_type
from .tmdb_client import TmdbClient
from .utils import clean_title, never_raise, slugify

# URL synthétique produite par la recherche TMDB: <base>/tmdb/<movie|tv>/<id>[/<saison>/<épisode>]
TMDB_URL_PATTERN = re.compile(r'/tmdb/(movie|tv)/(\d+)(?:/(\d+)/(\d+))?')

def parse_tmdb_url(url: str) -> Optional[Tuple[str, str, Optional[int], Optional[int]]]:
    """Retourne (type, id, saison, épisode) ou None si l'URL n'est pas synthétique"""
    match = TMDB_URL_PATTERN.search(url or "")
    if not match:
        return None
    season = int(match.group(3)) if match.group(3) else None
    episode = int(match.group(4)) if match.group(4) else None
    return match.group(1), match.group(2), season, episode

class FlixerScraper(BaseScraper):
    """Scraper pour Flixer (métadonnées TMDB, lecteurs VidSrc sur le site)"""

    def __init__(self, site: Optional[SiteConfig] = None, fetcher=None, logger=None, tmdb: Optional[TmdbClient] = None):
        super().__init__(site or SITES_CONFIG["flixer"], fetcher, logger)
        self.extractor = Extractor.for_site(self.site, logger=self.logger)
        self.tmdb = tmdb or TmdbClient(self.fetcher)

    def synthetic_url(self, media_type: str, tmdb_id: str, season: Optional[int] = None, episode: Optional[int] = None) -> str:
        url = f"{self.base_url}/tmdb/{media_type}/{tmdb_id}"
        if season is not None and episode is not None:
            url = f"{url}/{season}/{episode}"
        return url

    @never_raise(list)
    async def search(self, query: str, kind: Optional[str] = None) -> List[SearchHit]:
        """Recherche via TMDB search/multi"""
        data = await self.tmdb.search_multi(query)
        if not data:
            return []
        hits = self.extractor.dedupe(self.extractor.search_json(data, kind))
        self.logger.info("Flixer search %r: %d results", query, len(hits))
        return hits

    @never_raise(DetailRecord)
    async def get_details(self, url: str) -> DetailRecord:
        parsed = parse_tmdb_url(url)
        if not parsed:
            return DetailRecord()
        media_type, tmdb_id, _, _ = parsed

        data = await self.tmdb.details(media_type, tmdb_id)
        if not data:
            return DetailRecord()
        return self.extractor.details_from_tmdb(data, media_type)

    @never_raise(list)
    async def get_episodes(self, url: str) -> List[EpisodeRef]:
        """Films: un seul épisode "Full Movie". Séries: épisodes de la saison 1"""
        parsed = parse_tmdb_url(url)
        if not parsed:
            return []
        media_type, tmdb_id, _, _ = parsed

        if media_type == "movie":
            return [EpisodeRef(target_url=self.synthetic_url("movie", tmdb_id), index=1, title="Full Movie")]

        season = await self.tmdb.season(tmdb_id, 1)
        if not season:
            return []

        episodes = []
        for ep in season.get("episodes", []):
            number = ep.get("episode_number")
            if not isinstance(number, int) or number < 1:
                continue
            episodes.append(EpisodeRef(
                target_url=self.synthetic_url("tv", tmdb_id, 1, number),
                index=number,
                title=clean_title(ep.get("name") or f"Episode {number}"),
            ))
        return sort_episodes(episodes)

    async def _content_page(self, media_type: str, tmdb_id: str) -> Optional[str]:
        """Détails TMDB -> recherche par slug sur le site -> page du premier résultat"""
        details = await self.tmdb.details(media_type, tmdb_id)
        if not details:
            return None

        title = details.get("title") if media_type == "movie" else details.get("name")
        slug = slugify(title or "")
        if not slug:
            return None

        search_url = self.base_url + self.site.search_endpoint.format(query=slug)
        html = await self.fetch_page(search_url)
        if not html:
            return None

        content_url = self.extractor.first_result_link(html)
        if not content_url:
            self.logger.warning("No content link found on %s for %r", self.site_name, slug)
            return None
        return await self.fetch_page(content_url)

    @never_raise(list)
    async def get_sources(self, url: str) -> List[StreamSource]:
        """Film: l'iframe du lecteur. Série: une source par épisode de chaque saison"""
        parsed = parse_tmdb_url(url)
        if not parsed:
            return []
        media_type, tmdb_id, _, _ = parsed

        html = await self._content_page(media_type, tmdb_id)
        if not html:
            return []

        if media_type == "tv":
            return self.extractor.season_sources(html)
        embed = self.extractor.embed_source(html)
        return [embed] if embed else []

    @never_raise(lambda: None)
    async def get_stream(self, url: str) -> Optional[StreamSource]:
        if not url:
            return None

        parsed = parse_tmdb_url(url)
        if not parsed:
            # Déjà un lien de lecteur embarqué
            return StreamSource(target_url=self.extractor.absolute(url), kind=SourceKind.IFRAME, label=self.site.player_label)

        media_type, tmdb_id, season, episode = parsed
        sources = await self.get_sources(self.synthetic_url(media_type, tmdb_id))
        if not sources:
            return None
        if media_type == "tv" and season is not None and episode is not None:
            suffix = f"/{season}/{episode}"
            return next((s for s in sources if s.target_url.endswith(suffix)), None)
        return sources[0]

class HtmlSiteScraper(BaseScraper):
    """Scraper générique pour un site HTML, entièrement piloté par SiteConfig"""

    def __init__(self, site: SiteConfig, fetcher=None, logger=None):
        super().__init__(site, fetcher, logger)
        self.extractor = Extractor.for_site(site, logger=self.logger)

    @never_raise(list)
    async def search(self, query: str, kind: Optional[str] = None) -> List[SearchHit]:
        search_url = self.base_url + self.site.search_endpoint.format(query=quote(query))
        html = await self.fetch_page(search_url)
        if not html:
            return []

        hits = self.extractor.search(html)
        wanted = tmdb_media_type(kind)
        if wanted:
            media_kind = MediaKind.SERIES if wanted == "tv" else MediaKind.MOVIE
            hits = [hit for hit in hits if hit.media_kind == media_kind]
        self.logger.info("%s search %r: %d results", self.site_name, query, len(hits))
        return hits

    @never_raise(DetailRecord)
    async def get_details(self, url: str) -> DetailRecord:
        html = await self.fetch_page(url)
        if not html:
            return DetailRecord()
        return self.extractor.details(html)

    @never_raise(list)
    async def get_episodes(self, url: str) -> List[EpisodeRef]:
        html = await self.fetch_page(url)
        if not html:
            return []
        return self.extractor.episodes(html)

    @never_raise(lambda: None)
    async def get_stream(self, url: str) -> Optional[StreamSource]:
        html = await self.fetch_page(url)
        if not html:
            return None
        return self.extractor.stream_url(html)

"""
Client TMDB (lecture seule) au-dessus du fetcher du scraper
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

from config import TMDB_API_KEY, TMDB_BASE_URL, TMDB_LANGUAGE

class TmdbClient:

    def __init__(self, fetcher, api_key: Optional[str] = None, base_url: str = TMDB_BASE_URL):
        self.fetcher = fetcher
        self.api_key = api_key if api_key is not None else TMDB_API_KEY
        self.base_url = base_url.rstrip('/')

    def build_url(self, path: str, **params: Any) -> str:
        if not self.api_key:
            raise ValueError("TMDB_API_KEY is not configured")
        query = {"api_key": self.api_key, "language": TMDB_LANGUAGE}
        query.update(params)
        return f"{self.base_url}/{path.lstrip('/')}?{urlencode(query)}"

    async def search_multi(self, query: str, page: int = 1) -> Optional[Dict[str, Any]]:
        return await self.fetcher.fetch_json(self.build_url("search/multi", query=query, page=page))

    async def details(self, media_type: str, tmdb_id: str) -> Optional[Dict[str, Any]]:
        if media_type not in {"movie", "tv"}:
            raise ValueError(f"Unsupported TMDB media type: {media_type}")
        return await self.fetcher.fetch_json(self.build_url(f"{media_type}/{tmdb_id}"))

    async def season(self, tv_id: str, season_number: int = 1) -> Optional[Dict[str, Any]]:
        return await self.fetcher.fetch_json(self.build_url(f"tv/{tv_id}/season/{season_number}"))

from unittest.mock import AsyncMock

import pytest

from mediascrapers.tmdb_client import TmdbClient

def test_build_url():
    client = TmdbClient(AsyncMock(), api_key="abc", base_url="https://api.test/3/")

    url = client.build_url("search/multi", query="dark knight", page=2)

    assert url == "https://api.test/3/search/multi?api_key=abc&language=en-US&query=dark+knight&page=2"

def test_missing_key():
    with pytest.raises(ValueError):
        TmdbClient(AsyncMock(), api_key="").build_url("movie/1")

async def test_season_request():
    fetcher = AsyncMock()
    fetcher.fetch_json.return_value = {"episodes": []}

    data = await TmdbClient(fetcher, api_key="abc", base_url="https://api.test/3").season("70523")

    assert data == {"episodes": []}
    assert fetcher.fetch_json.call_args[0][0].startswith("https://api.test/3/tv/70523/season/1?")

async def test_details_rejects_unknown_type():
    with pytest.raises(ValueError):
        await TmdbClient(AsyncMock(), api_key="abc").details("person", "1")

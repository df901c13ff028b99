from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

import main
from config import ContentType
from mediascrapers.base_scraper import (
    DetailRecord, EpisodeRef, MediaKind, SearchHit, SourceKind, StreamSource,
)

@pytest.fixture
def fake_scrapers(monkeypatch):
    flixer = AsyncMock()
    flixer.search.return_value = [
        SearchHit("The Matrix", "https://flixer.su/tmdb/movie/603", year="1999"),
    ]
    flixer.get_details.return_value = DetailRecord(synopsis="Neo wakes up.", release_info="1999")
    flixer.get_episodes.return_value = [EpisodeRef("https://flixer.su/tmdb/movie/603", 1, "Full Movie")]
    flixer.get_stream.return_value = StreamSource(
        "https://vidsrc.test/embed/movie/603", SourceKind.IFRAME, "VidSrc Player",
    )
    flixer.get_sources.return_value = [flixer.get_stream.return_value]

    willow = AsyncMock()
    willow.search.return_value = [
        SearchHit("Matrix Show", "https://willow.arlen.icu/series/2-matrix-show", media_kind=MediaKind.SERIES),
    ]
    willow.get_stream.return_value = None

    scrapers = {"flixer": flixer, "willow": willow}
    monkeypatch.setattr(main, "scrapers", scrapers)
    return scrapers

@pytest.fixture
def client(fake_scrapers):
    return TestClient(main.app)

def test_health(client):
    assert client.get("/health").json()["scrapers"] == 2

def test_sites(client):
    sites = client.get("/api/sites").json()
    assert [s["id"] for s in sites] == ["flixer", "willow"]
    assert sites[0]["api_based"] is True

def test_search_all_sources(client, fake_scrapers):
    body = client.get("/api/search", params={"q": "matrix", "type": "movie"}).json()

    assert body["success"] is True
    assert body["sources_used"] == ["flixer", "willow"]
    assert [(hit["title"], hit["source"]) for hit in body["data"]] == [
        ("The Matrix", "flixer"),
        ("Matrix Show", "willow"),
    ]
    fake_scrapers["flixer"].search.assert_awaited_once_with("matrix", "movie")

def test_search_single_source(client, fake_scrapers):
    body = client.get("/api/search", params={"q": "matrix", "source": "willow"}).json()

    assert body["sources_used"] == ["willow"]
    fake_scrapers["flixer"].search.assert_not_called()

def test_unknown_source(client):
    response = client.get("/api/search", params={"q": "matrix", "source": "nowhere"})
    assert response.status_code == 400

def test_details(client):
    body = client.get("/api/details/flixer", params={"url": "https://flixer.su/tmdb/movie/603"}).json()

    assert body["data"]["description"] == "Neo wakes up."
    assert body["data"]["aliases"] == "N/A"
    assert body["data"]["airdate"] == "1999"

def test_episodes(client):
    body = client.get("/api/episodes/flixer", params={"url": "https://flixer.su/tmdb/movie/603"}).json()
    assert body["data"] == [{"url": "https://flixer.su/tmdb/movie/603", "number": 1, "title": "Full Movie"}]

def test_stream(client):
    body = client.get("/api/stream/flixer", params={"url": "https://flixer.su/tmdb/movie/603"}).json()

    assert body["success"] is True
    assert body["data"]["type"] == "iframe"
    assert body["data"]["is_m3u8"] is False

def test_stream_not_found(client):
    body = client.get("/api/stream/willow", params={"url": "https://willow.arlen.icu/movies/1-x"}).json()

    assert body["success"] is False
    assert body["data"] is None

def test_sources(client):
    body = client.get("/api/sources/flixer", params={"url": "https://flixer.su/tmdb/movie/603"}).json()
    assert [s["title"] for s in body["data"]] == ["VidSrc Player"]

def test_search_type_uses_default_sites(client, fake_scrapers, monkeypatch):
    monkeypatch.setattr(main, "DEFAULT_SITES", {ContentType.SERIES: ["willow"], ContentType.MOVIE: ["flixer"]})

    body = client.get("/api/search", params={"q": "matrix", "type": "tv"}).json()

    assert body["sources_used"] == ["willow"]
    fake_scrapers["flixer"].search.assert_not_called()

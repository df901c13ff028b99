"""
Media Scraper API
Expose les quatre opérations de chaque module de scraping (recherche, détails,
épisodes, flux) comme le ferait le framework hôte
"""

import os
import logging
from typing import List, Optional, Dict, Any
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import uvicorn

from config import SITES_CONFIG, DEFAULT_SITES, ContentType
from log_setup import setup_logging
from mediascrapers import BaseScraper, build_scrapers
from mediascrapers.extractor import tmdb_media_type

logger = logging.getLogger("mediascrapers.api")

# ==================== MODÈLES PYDANTIC ====================

class SearchHitResponse(BaseModel):
    title: str
    url: str
    image: str = ""
    year: str = ""
    type: str
    source: str = ""

class DetailsResponse(BaseModel):
    description: str
    aliases: str
    airdate: str
    rating: str = ""
    genres: List[str] = []
    runtime: str = ""

class EpisodeResponse(BaseModel):
    url: str
    number: int
    title: str = ""

class StreamResponse(BaseModel):
    url: str
    type: str
    title: str
    is_m3u8: bool = False

class ApiResponse(BaseModel):
    success: bool
    message: str = ""
    data: Any = None
    sources_used: List[str] = []

# ==================== INSTANCES DES SCRAPERS ====================

scrapers: Dict[str, BaseScraper] = build_scrapers()

def get_scraper_or_400(source: str) -> BaseScraper:
    if source not in scrapers:
        raise HTTPException(status_code=400, detail=f"Source '{source}' non supportée. Sources: {list(scrapers.keys())}")
    return scrapers[source]

def default_targets(kind: Optional[str]) -> List[tuple]:
    """Sites interrogés par défaut: ceux de DEFAULT_SITES pour un type donné, sinon tous"""
    media_type = tmdb_media_type(kind)
    if media_type is None:
        return list(scrapers.items())
    content_type = ContentType.SERIES if media_type == "tv" else ContentType.MOVIE
    return [(name, scrapers[name]) for name in DEFAULT_SITES.get(content_type, []) if name in scrapers]

# ==================== LIFESPAN ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestion du cycle de vie de l'application"""
    setup_logging()
    logger.info("Media Scraper API démarré, %d scrapers disponibles", len(scrapers))
    yield
    logger.info("Media Scraper API arrêté")

# ==================== APP FASTAPI ====================

app = FastAPI(
    title="Media Scraper API",
    description="""
    Modules de scraping pour films et séries.

    ## Sources supportées:
    - **Flixer** - métadonnées TMDB, lecteurs flixer.su
    - **Willow** - willow.arlen.icu (HTML)

    ## Opérations:
    - Recherche
    - Détails (description, titre alternatif, année)
    - Liste des épisodes
    - Lien de lecture (direct ou iframe)
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ENDPOINTS ====================

@app.get("/", tags=["Root"])
async def root():
    return {
        "name": "Media Scraper API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "search": "/api/search?q={query}&type={type}&source={source}",
            "details": "/api/details/{source}?url={url}",
            "episodes": "/api/episodes/{source}?url={url}",
            "stream": "/api/stream/{source}?url={url}",
            "sources": "/api/sources/{source}?url={url}",
            "sites": "/api/sites",
            "health": "/health"
        },
        "scrapers_available": list(scrapers.keys())
    }

@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "scrapers": len(scrapers),
        "version": "1.0.0"
    }

@app.get("/api/sites", tags=["Sites"], response_model=List[Dict[str, Any]])
async def list_sites():
    """Liste les sites configurés"""
    return [
        {
            "id": key,
            "name": SITES_CONFIG[key].name,
            "base_url": SITES_CONFIG[key].base_url,
            "types": [t.value for t in SITES_CONFIG[key].content_types],
            "api_based": SITES_CONFIG[key].api_based,
        }
        for key in scrapers
    ]

@app.get("/api/search", tags=["Search"], response_model=ApiResponse)
async def search_content(
    q: str = Query(..., min_length=1, description="Terme de recherche"),
    type: Optional[str] = Query(default=None, description="Type: movie, series/tv"),
    source: Optional[str] = Query(default=None, description="Source spécifique (flixer, willow)")
):
    """
    Recherche de contenu, sur une source ou toutes, l'une après l'autre

    - **q**: Terme de recherche
    - **type**: movie ou series (optionnel)
    - **source**: Source spécifique (optionnel)
    """
    if source:
        targets = [(source, get_scraper_or_400(source))]
    else:
        targets = default_targets(type)

    results = []
    sources_used = []
    for name, scraper in targets:
        hits = await scraper.search(q, type)
        for hit in hits:
            results.append(SearchHitResponse(source=name, **hit.to_dict()))
        if hits:
            sources_used.append(name)

    return ApiResponse(
        success=len(results) > 0,
        message=f"{len(results)} résultats trouvés" if results else "Aucun résultat",
        data=results,
        sources_used=sources_used
    )

@app.get("/api/details/{source}", tags=["Details"], response_model=ApiResponse)
async def get_details(source: str, url: str = Query(..., min_length=1)):
    scraper = get_scraper_or_400(source)
    details = await scraper.get_details(url)
    return ApiResponse(
        success=True,
        message="Détails récupérés",
        data=DetailsResponse(**details.to_dict()),
        sources_used=[source]
    )

@app.get("/api/episodes/{source}", tags=["Episodes"], response_model=ApiResponse)
async def get_episodes(source: str, url: str = Query(..., min_length=1)):
    scraper = get_scraper_or_400(source)
    episodes = await scraper.get_episodes(url)
    return ApiResponse(
        success=len(episodes) > 0,
        message=f"{len(episodes)} épisodes trouvés" if episodes else "Aucun épisode",
        data=[EpisodeResponse(**e.to_dict()) for e in episodes],
        sources_used=[source]
    )

@app.get("/api/stream/{source}", tags=["Streams"], response_model=ApiResponse)
async def get_stream(source: str, url: str = Query(..., min_length=1)):
    scraper = get_scraper_or_400(source)
    stream = await scraper.get_stream(url)
    return ApiResponse(
        success=stream is not None,
        message="Flux trouvé" if stream else "Aucun flux",
        data=StreamResponse(**stream.to_dict()) if stream else None,
        sources_used=[source]
    )

@app.get("/api/sources/{source}", tags=["Streams"], response_model=ApiResponse)
async def get_sources(source: str, url: str = Query(..., min_length=1)):
    scraper = get_scraper_or_400(source)
    sources = await scraper.get_sources(url)
    return ApiResponse(
        success=len(sources) > 0,
        message=f"{len(sources)} sources trouvées" if sources else "Aucune source",
        data=[StreamResponse(**s.to_dict()) for s in sources],
        sources_used=[source]
    )

# ==================== POINT D'ENTRÉE ====================

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=os.environ.get("DEBUG", "false").lower() == "true"
    )

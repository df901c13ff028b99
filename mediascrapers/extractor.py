"""
Extracteur commun: transforme un document (HTML ou JSON) en résultats normalisés

Chaque champ est obtenu par une cascade de stratégies essayées dans l'ordre,
la première qui produit un résultat non vide l'emporte. Les sélecteurs et
regex propres à un site viennent de config.SelectorSet.
"""

import json
import logging
import re
from typing import List, Dict, Optional, Any
from urllib.parse import quote, urlsplit

from bs4 import BeautifulSoup

from config import SelectorSet, SiteConfig, TMDB_IMAGE_BASE
from .base_scraper import (
    DetailRecord, EpisodeRef, MediaKind, SearchHit, SourceKind, StreamSource,
    DEFAULT_PLAYER, sort_episodes,
)
from .utils import (
    PAGE_MEDIA_PATTERN, absolute_url, clean_text, clean_title, extract_year,
    find_media_urls, parse_html, run_strategies, title_from_url,
)

log = logging.getLogger(__name__)

TMDB_MEDIA_TYPES = ("movie", "tv")

def tmdb_media_type(kind: Optional[str]) -> Optional[str]:
    """Convertit un type demandé ("movie", "series", "tv") en type TMDB"""
    if not kind:
        return None
    kind = kind.lower()
    if kind in ("tv", "series", "show"):
        return "tv"
    if kind == "movie":
        return "movie"
    return None

def media_kind_for(url: str) -> MediaKind:
    if '/series/' in url or '/tv/' in url:
        return MediaKind.SERIES
    return MediaKind.MOVIE

class Extractor:
    """Extraction sans réseau: toutes les méthodes prennent le texte d'un document"""

    def __init__(
        self,
        base_url: str,
        selectors: Optional[SelectorSet] = None,
        image_base: str = TMDB_IMAGE_BASE,
        text_fallback: bool = False,
        player_label: str = DEFAULT_PLAYER,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.selectors = selectors or SelectorSet()
        self.image_base = image_base
        self.text_fallback = text_fallback
        self.player_label = player_label
        self.logger = logger or log

    @classmethod
    def for_site(cls, site: SiteConfig, logger: Optional[logging.Logger] = None) -> "Extractor":
        return cls(
            site.base_url,
            selectors=site.selectors,
            text_fallback=site.text_fallback,
            player_label=site.player_label,
            logger=logger,
        )

    def absolute(self, url: str) -> str:
        return absolute_url(url, self.base_url)

    # ==================== RECHERCHE ====================

    def search(self, document: str, kind: Optional[str] = None) -> List[SearchHit]:
        """
        Extrait les résultats de recherche d'une réponse JSON (TMDB) ou d'une page HTML

        Args:
            document: Texte JSON ou HTML
            kind: Filtre optionnel sur le type (JSON uniquement)

        Returns:
            Résultats dédoublonnés, dans l'ordre d'apparition. Jamais d'exception.
        """
        if not document or not document.strip():
            return []

        try:
            payload = self._decode_json(document)
            if payload is not None:
                hits = self.search_json(payload, kind)
            else:
                hits = self.search_html(document)
            unique = self.dedupe(hits)
            self.logger.debug("search: %d hits (%d unique)", len(hits), len(unique))
            return unique
        except Exception as e:
            self.logger.error("Error in search extraction: %s", e)
            return []

    def search_json(self, payload: Any, kind: Optional[str] = None) -> List[SearchHit]:
        results = payload.get("results", []) if isinstance(payload, dict) else payload
        if not isinstance(results, list):
            return []

        wanted = tmdb_media_type(kind)
        accepted = (wanted,) if wanted else TMDB_MEDIA_TYPES

        hits = []
        for item in results:
            if not isinstance(item, dict):
                continue
            media_type = item.get("media_type")
            if media_type not in accepted:
                continue

            date = item.get("release_date") or item.get("first_air_date") or ""
            poster_path = item.get("poster_path")

            hits.append(SearchHit(
                title=clean_title(item.get("title") or item.get("name") or ""),
                target_url=f"{self.base_url}/tmdb/{media_type}/{item.get('id')}",
                image_url=f"{self.image_base}{poster_path}" if poster_path else "",
                year=date.split("-")[0][:4],
                media_kind=MediaKind.SERIES if media_type == "tv" else MediaKind.MOVIE,
            ))
        return hits

    def search_html(self, document: str) -> List[SearchHit]:
        soup = parse_html(document)
        strategies = [self._titled_content_links, self._any_content_links]
        if self.text_fallback:
            strategies.append(self._plausible_text_lines)
        return run_strategies(strategies, soup, logger=self.logger) or []

    def dedupe(self, hits: List[SearchHit]) -> List[SearchHit]:
        seen = set()
        unique = []
        for hit in hits:
            key = self.url_key(hit.target_url) if hit.target_url else hit.title.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(hit)
        return unique

    @staticmethod
    def url_key(url: str) -> str:
        """Clé de dédoublonnage: schéma et hôte en minuscules, chemin inchangé"""
        parts = urlsplit(url)
        return parts._replace(scheme=parts.scheme.lower(), netloc=parts.netloc.lower()).geturl()

    def _make_hit(self, title: str, href: str, image: str = "") -> Optional[SearchHit]:
        title = clean_title(title)
        if not title or not href:
            return None
        url = self.absolute(href)
        return SearchHit(
            title=title,
            target_url=url,
            image_url=self.absolute(image),
            media_kind=media_kind_for(url),
        )

    def _image_of(self, link) -> str:
        img = link.find('img')
        if img is None:
            return ""
        for attr in self.selectors.lazy_image_attrs:
            value = img.get(attr)
            if value:
                return value
        return ""

    def _titled_content_links(self, soup: BeautifulSoup) -> List[SearchHit]:
        """Liens vers /movies/ ou /series/, titre pris dans un titre voisin"""
        sel = self.selectors
        hits = []
        for link in soup.select(sel.content_link):
            href = link.get('href', '')
            if not href:
                continue

            title_elem = link.select_one(sel.heading)
            if title_elem is None and link.parent is not None:
                title_elem = link.parent.select_one(sel.heading)

            if title_elem is not None:
                title = title_elem.get_text(" ", strip=True)
            else:
                match = re.search(sel.slug_title, href)
                title = match.group(1).replace('-', ' ') if match else ""

            hit = self._make_hit(title, href, self._image_of(link))
            if hit:
                hits.append(hit)
        return hits

    def _any_content_links(self, soup: BeautifulSoup) -> List[SearchHit]:
        """Tous les liens dont le chemin ressemble à un contenu, titre = texte du lien"""
        pattern = re.compile(self.selectors.content_path)
        hits = []
        for link in soup.find_all('a', href=True):
            href = link['href']
            if not pattern.search(href):
                continue
            title = link.get_text(" ", strip=True) or title_from_url(href)
            hit = self._make_hit(title, href, self._image_of(link))
            if hit:
                hits.append(hit)
        return hits

    def _plausible_text_lines(self, soup: BeautifulSoup) -> List[SearchHit]:
        # Dernier recours, faible confiance: une ligne de texte = un titre possible
        sel = self.selectors
        pattern = re.compile(sel.plausible_title)
        for tag in soup(['script', 'style']):
            tag.decompose()

        hits = []
        for line in soup.get_text("\n").split("\n"):
            line = line.strip()
            if not (3 < len(line) < 100) or not pattern.match(line):
                continue
            hits.append(SearchHit(
                title=clean_title(line),
                target_url=f"{self.base_url}/search?q={quote(line)}",
            ))
            if len(hits) >= sel.max_text_candidates:
                break
        return hits

    @staticmethod
    def _decode_json(document: str) -> Optional[Any]:
        text = document.lstrip()
        if not text.startswith(('{', '[')):
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None

    # ==================== DÉTAILS ====================

    def details(self, document: str) -> DetailRecord:
        """Description, titre alternatif et année d'une page de contenu"""
        if not document:
            return DetailRecord()

        try:
            soup = parse_html(document)
        except Exception as e:
            self.logger.error("Error parsing details page: %s", e)
            return DetailRecord()

        sel = self.selectors
        description = self._first_text(soup, sel.description)
        alias = clean_title(self._first_text(soup, sel.alias))
        year = run_strategies(
            [self._year_from_selectors, self._year_from_title], soup, logger=self.logger
        )

        return DetailRecord(
            synopsis=clean_text(description),
            alternate_title=alias,
            release_info=year or "",
        )

    def details_from_tmdb(self, payload: Dict[str, Any], media_type: str = "movie") -> DetailRecord:
        """Détails depuis une réponse TMDB /movie/{id} ou /tv/{id}"""
        if not isinstance(payload, dict):
            return DetailRecord()

        if media_type == "tv":
            alias = payload.get("original_name") or payload.get("name") or ""
            date = payload.get("first_air_date") or ""
        else:
            alias = payload.get("original_title") or payload.get("title") or ""
            date = payload.get("release_date") or ""

        rating = payload.get("vote_average")
        runtime = payload.get("runtime") or next(iter(payload.get("episode_run_time") or []), None)

        return DetailRecord(
            synopsis=payload.get("overview") or "",
            alternate_title=clean_title(alias),
            release_info=date.split("-")[0],
            rating=f"{float(rating):.1f}" if rating else "",
            genres=[g["name"] for g in payload.get("genres") or [] if isinstance(g, dict) and g.get("name")],
            runtime=f"{runtime} min" if runtime else "",
        )

    def _select_first(self, soup: BeautifulSoup, selector: str):
        try:
            return soup.select_one(selector)
        except Exception as e:
            self.logger.debug("Selector %r failed: %s", selector, e)
            return None

    def _first_text(self, soup: BeautifulSoup, selectors: List[str]) -> str:
        for selector in selectors:
            element = self._select_first(soup, selector)
            if element is None:
                continue
            if element.name == 'meta':
                text = element.get('content', '')
            else:
                text = element.get_text(" ", strip=True)
            if text and text.strip():
                return text.strip()
        return ""

    def _year_from_selectors(self, soup: BeautifulSoup) -> str:
        for selector in self.selectors.year:
            element = self._select_first(soup, selector)
            if element is None:
                continue
            for text in (element.get_text(" "), element.get('datetime', '')):
                year = extract_year(text)
                if year:
                    return year
        return ""

    def _year_from_title(self, soup: BeautifulSoup) -> str:
        if soup.title is None:
            return ""
        return extract_year(soup.title.get_text())

    # ==================== ÉPISODES ====================

    def episodes(self, document: str) -> List[EpisodeRef]:
        """Liens d'épisodes triés par numéro croissant"""
        if not document:
            return []

        try:
            soup = parse_html(document)
            for selector in self.selectors.episode_links:
                try:
                    links = soup.select(selector)
                except Exception as e:
                    self.logger.debug("Selector %r failed: %s", selector, e)
                    continue

                candidates = []
                for position, link in enumerate(links, 1):
                    href = link.get('href')
                    if not href:
                        continue
                    text = link.get_text(" ", strip=True)
                    candidates.append((href, text, position, self.episode_index(href, text)))

                episodes = []
                taken = {index for _, _, _, index in candidates if index is not None}
                for href, text, position, index in candidates:
                    if index is None:
                        # Sans numéro: première place libre à partir de la position
                        index = position
                        while index in taken:
                            index += 1
                        taken.add(index)
                    episodes.append(EpisodeRef(
                        target_url=self.absolute(href),
                        index=index,
                        title=clean_title(text),
                    ))

                if episodes:
                    self.logger.debug("episodes: %d via %r", len(episodes), selector)
                    return sort_episodes(episodes)
            return []
        except Exception as e:
            self.logger.error("Error in episode extraction: %s", e)
            return []

    def episode_index(self, href: str, text: str) -> Optional[int]:
        """Numéro d'épisode explicite: depuis l'URL, sinon le texte, sinon None"""
        sel = self.selectors
        match = re.search(sel.episode_url, href)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))

        match = re.search(sel.episode_text, text.strip(), re.IGNORECASE)
        if match:
            number = int(match.group(1) or match.group(2))
            if number > 0:
                return number
        return None

    # ==================== FLUX ====================

    def stream_url(self, document: str) -> Optional[StreamSource]:
        """
        Premier lien lisible trouvé dans la page, ou None.

        Ordre: balise vidéo, iframe de lecteur, scripts inline, balises meta,
        puis une URL .m3u8/.mp4 n'importe où dans la page.
        """
        if not document:
            return None

        try:
            soup = parse_html(document)
        except Exception as e:
            self.logger.error("Error parsing stream page: %s", e)
            return None

        strategies = [
            self._media_element,
            self._player_iframe,
            self._script_media,
            self._meta_video,
            self._page_media,
        ]
        stream = run_strategies(strategies, soup, document, logger=self.logger)
        if stream is None:
            self.logger.info("No stream URL found")
        return stream

    def _stream(self, url: str, kind: SourceKind) -> StreamSource:
        return StreamSource(target_url=self.absolute(url), kind=kind, label=self.player_label)

    def _media_element(self, soup: BeautifulSoup, document: str) -> Optional[StreamSource]:
        for selector in self.selectors.video:
            for element in soup.select(selector):
                src = element.get('src') or element.get('data-src')
                if src:
                    return self._stream(src, SourceKind.DIRECT)
        return None

    def _player_iframe(self, soup: BeautifulSoup, document: str) -> Optional[StreamSource]:
        for selector in self.selectors.iframe:
            element = soup.select_one(selector)
            if element is not None and element.get('src'):
                return self._stream(element['src'], SourceKind.IFRAME)
        return None

    def _script_media(self, soup: BeautifulSoup, document: str) -> Optional[StreamSource]:
        for script in soup.find_all('script'):
            urls = find_media_urls(script.string or script.get_text())
            if urls:
                return self._stream(urls[0], SourceKind.DIRECT)
        return None

    def _meta_video(self, soup: BeautifulSoup, document: str) -> Optional[StreamSource]:
        for prop in self.selectors.meta_video:
            meta = soup.find('meta', attrs={'property': prop}) or soup.find('meta', attrs={'name': prop})
            if meta is not None and meta.get('content'):
                url = meta['content']
                is_media = '.m3u8' in url or '.mp4' in url
                return self._stream(url, SourceKind.DIRECT if is_media else SourceKind.IFRAME)
        return None

    def _page_media(self, soup: BeautifulSoup, document: str) -> Optional[StreamSource]:
        match = PAGE_MEDIA_PATTERN.search(document)
        if match:
            return self._stream(match.group(0), SourceKind.DIRECT)
        return None

    # ==================== SITES PROXY (regex) ====================

    def first_result_link(self, document: str) -> str:
        """Premier lien de résultat d'une page de recherche du site proxy"""
        pattern = self.selectors.result_link
        match = re.search(pattern, document or "") if pattern else None
        return self.absolute(match.group(1)) if match else ""

    def embed_source(self, document: str) -> Optional[StreamSource]:
        """Iframe du lecteur principal d'une page de contenu"""
        pattern = self.selectors.embed_iframe
        match = re.search(pattern, document or "") if pattern else None
        if not match:
            return None
        return self._stream(match.group(1), SourceKind.IFRAME)

    def season_sources(self, document: str) -> List[StreamSource]:
        """
        Une source par épisode de chaque saison listée dans la page.

        L'URL d'un épisode est celle de l'iframe principale suivie de
        /<saison>/<épisode>.
        """
        embed = self.embed_source(document)
        sel = self.selectors
        if embed is None or not sel.season_block or not sel.episode_block:
            return []

        sources = []
        for season_match in re.finditer(sel.season_block, document):
            season_id, season_number = season_match.group(1), season_match.group(2)
            episode_pattern = sel.episode_block.replace("{season_id}", re.escape(season_id))
            for episode_match in re.finditer(episode_pattern, document):
                episode_number = episode_match.group(1)
                sources.append(StreamSource(
                    target_url=f"{embed.target_url}/{season_number}/{episode_number}",
                    kind=SourceKind.EPISODE,
                    label=f"Season {season_number} Episode {episode_number}",
                ))
        return sources

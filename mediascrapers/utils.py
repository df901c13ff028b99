"""
Utilitaires pour le scraping
"""

import asyncio
import functools
import html
import logging
import re
from typing import Optional, Dict, Any, List, Callable, Sequence
from urllib.parse import urlparse

import aiohttp
import cloudscraper
from bs4 import BeautifulSoup
from fake_useragent import UserAgent

from config import SiteConfig, DEFAULT_HEADERS, TIMEOUTS

log = logging.getLogger(__name__)

try:
    ua = UserAgent()
    DEFAULT_USER_AGENT = ua.random
except Exception:
    DEFAULT_USER_AGENT = DEFAULT_HEADERS["User-Agent"]

# Séquences UTF-8 mal décodées (tiret demi-cadratin / cadratin)
MOJIBAKE_DASHES = ("â€“", "â€”")

YEAR_PATTERN = re.compile(r'\b(?:19|20)\d{2}\b')

SCRIPT_MEDIA_PATTERNS = [
    re.compile(r'["\']([^"\']*\.m3u8[^"\']*)["\']', re.IGNORECASE),
    re.compile(r'["\']([^"\']*\.mp4[^"\']*)["\']', re.IGNORECASE),
    re.compile(r'(?:src|url|file)["\']?\s*[:=]\s*["\']([^"\']+)["\']', re.IGNORECASE),
]

PAGE_MEDIA_PATTERN = re.compile(
    r'https?://[^\s"\'<>()]+\.(?:m3u8|mp4)(?:\?[^\s"\'<>()]*)?', re.IGNORECASE
)

def get_random_headers() -> Dict[str, str]:
    """Génère des headers aléatoires"""
    headers = dict(DEFAULT_HEADERS)
    headers["User-Agent"] = DEFAULT_USER_AGENT
    headers["Upgrade-Insecure-Requests"] = "1"
    return headers

class AiohttpFetcher:
    """Récupération HTTP asynchrone avec aiohttp

    Toute erreur (statut != 200, erreur réseau, JSON invalide) est journalisée
    et convertie en None.
    """

    def __init__(self, timeouts: Optional[Dict[str, int]] = None, logger: Optional[logging.Logger] = None):
        timeouts = timeouts or TIMEOUTS
        self.timeout = aiohttp.ClientTimeout(
            total=timeouts["connection"] + timeouts["read"],
            connect=timeouts["connection"],
        )
        self.logger = logger or log

    async def fetch_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> Optional[str]:
        """Récupère le contenu d'une page"""
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, headers=headers or get_random_headers()) as response:
                    if response.status == 200:
                        return await response.text()
                    self.logger.warning("GET %s -> HTTP %s", url, response.status)
                    return None
        except Exception as e:
            self.logger.error("Error fetching %s: %s", url, e)
            return None

    async def fetch_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Optional[Any]:
        """Récupère du JSON depuis une URL"""
        if headers is None:
            headers = get_random_headers()
        headers = dict(headers, Accept="application/json")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, headers=headers) as response:
                    if response.status == 200:
                        return await response.json(content_type=None)
                    self.logger.warning("GET %s -> HTTP %s", url, response.status)
                    return None
        except Exception as e:
            self.logger.error("Error fetching JSON %s: %s", url, e)
            return None

class CloudflareFetcher:
    """Récupération via cloudscraper pour les sites protégés par Cloudflare

    cloudscraper est synchrone: chaque requête tourne dans un thread.
    """

    def __init__(self, timeouts: Optional[Dict[str, int]] = None, logger: Optional[logging.Logger] = None):
        timeouts = timeouts or TIMEOUTS
        self.timeout = (timeouts["connection"], timeouts["read"])
        self.scraper = cloudscraper.create_scraper()
        self.logger = logger or log

    def _get(self, url: str, headers: Dict[str, str]):
        return self.scraper.get(url, headers=headers, timeout=self.timeout)

    async def fetch_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> Optional[str]:
        try:
            response = await asyncio.to_thread(self._get, url, headers or get_random_headers())
            if response.status_code == 200:
                return response.text
            self.logger.warning("GET %s -> HTTP %s (cloudscraper)", url, response.status_code)
            return None
        except Exception as e:
            self.logger.error("Cloudflare bypass error for %s: %s", url, e)
            return None

    async def fetch_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Optional[Any]:
        headers = dict(headers or get_random_headers(), Accept="application/json")
        try:
            response = await asyncio.to_thread(self._get, url, headers)
            if response.status_code == 200:
                return response.json()
            self.logger.warning("GET %s -> HTTP %s (cloudscraper)", url, response.status_code)
            return None
        except Exception as e:
            self.logger.error("Cloudflare bypass error for %s: %s", url, e)
            return None

def make_fetcher(site: SiteConfig, logger: Optional[logging.Logger] = None):
    """Choisit une fois pour toutes le mécanisme de récupération d'un site"""
    if site.cloudflare_protected:
        return CloudflareFetcher(logger=logger)
    return AiohttpFetcher(logger=logger)

def parse_html(document: str) -> BeautifulSoup:
    return BeautifulSoup(document, 'lxml')

def run_strategies(strategies: Sequence[Callable], *args, logger: Optional[logging.Logger] = None):
    """
    Essaie chaque stratégie dans l'ordre et retourne le premier résultat non vide.

    Une stratégie qui lève une exception est ignorée, les suivantes sont
    quand même essayées. Retourne None si aucune ne produit de résultat.
    """
    logger = logger or log
    for strategy in strategies:
        name = getattr(strategy, '__name__', repr(strategy))
        try:
            result = strategy(*args)
        except Exception as e:
            logger.debug("Strategy %s failed: %s", name, e)
            continue
        if result:
            logger.debug("Strategy %s matched", name)
            return result
    return None

def clean_text(text: str) -> str:
    """Nettoie le texte extrait"""
    if not text:
        return ""
    return ' '.join(text.split())

def clean_title(title: str) -> str:
    """Nettoie un titre: entités HTML, tirets mal décodés, espaces"""
    if not title:
        return ""
    for sequence in MOJIBAKE_DASHES:
        title = title.replace(sequence, "-")
    title = html.unescape(title)
    return clean_text(title)

def absolute_url(url: str, base_url: str) -> str:
    """
    Rend une URL absolue par rapport à la racine du site.

    >>> absolute_url("//x.com/a", "https://example.test")
    'https://x.com/a'
    >>> absolute_url("a", "https://example.test")
    'https://example.test/a'
    """
    if not url:
        return ""
    url = url.strip()
    base_url = base_url.rstrip('/')
    if url.startswith(('http://', 'https://')):
        return url
    if url.startswith('//'):
        return 'https:' + url
    if url.startswith('/'):
        return base_url + url
    return base_url + '/' + url

def extract_year(text: str) -> str:
    """Extrait une année 1900-2099 d'une chaîne"""
    if not text:
        return ""
    match = YEAR_PATTERN.search(text)
    return match.group(0) if match else ""

def slugify(title: str) -> str:
    """Slug façon URL: minuscules, alphanumériques, tirets simples"""
    slug = re.sub(r'[^a-z0-9\s-]', '', title.lower())
    return re.sub(r'[\s-]+', '-', slug).strip('-')

def title_from_url(url: str) -> str:
    """Déduit un titre lisible du dernier segment du chemin"""
    path = urlparse(url).path.rstrip('/')
    segment = path.rsplit('/', 1)[-1]
    segment = re.sub(r'^\d+-', '', segment)
    return clean_text(re.sub(r'[/_-]+', ' ', segment))

def find_media_urls(script: str) -> List[str]:
    """Extrait les URLs m3u8/mp4 d'un script, dans l'ordre des motifs"""
    urls = []
    for pattern in SCRIPT_MEDIA_PATTERNS:
        for match in pattern.findall(script):
            lowered = match.lower()
            if ('.m3u8' in lowered or '.mp4' in lowered) and match not in urls:
                urls.append(match)
    return urls

def never_raise(default: Callable[[], Any]):
    """
    Décorateur pour les opérations publiques d'un scraper: toute exception est
    journalisée avec le logger du scraper et remplacée par default().
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except Exception as e:
                self.logger.error("%s %s error: %s", self.site_name, func.__name__, e)
                return default()
        return wrapper
    return decorator

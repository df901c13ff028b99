from unittest.mock import AsyncMock

import pytest

from mediascrapers.extractor import Extractor

BASE_URL = "https://example.test"

@pytest.fixture
def extractor():
    return Extractor(BASE_URL)

@pytest.fixture
def routed_fetcher():
    """Fetcher factice: les réponses sont choisies selon un fragment d'URL"""

    def build(pages=None, payloads=None):
        pages = pages or {}
        payloads = payloads or {}

        def lookup(routes, url):
            for fragment, body in routes.items():
                if fragment in url:
                    return body
            return None

        fetcher = AsyncMock()
        fetcher.fetch_text.side_effect = lambda url, headers=None: lookup(pages, url)
        fetcher.fetch_json.side_effect = lambda url, headers=None: lookup(payloads, url)
        return fetcher

    return build

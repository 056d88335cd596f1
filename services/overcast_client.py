"""
Overcast HTTP access: podcast search and page fetches.

OvercastClient is both the search provider and the page fetcher the
resolver consumes:
  search(query) -> List[SearchResult]   (autocomplete endpoint)
  get(url)      -> FetchedPage          (show / episode pages)

HTTP 429 from search raises RateLimitedError. get() hands every status back
to the caller, which decides whether to skip or abort. No request is ever
retried here.
"""

import logging
from typing import Dict, List, Optional

import httpx

from config import settings
from models.internal import FetchedPage, SearchResult
from services.errors import RateLimitedError
from utils.text import truncate

logger = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def parse_search_results(data) -> List[SearchResult]:
    """Rows of an autocomplete payload; rows without id/hash are skipped."""
    rows = data.get("results") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return []

    results = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        podcast_id = row.get("id")
        podcast_hash = row.get("hash")
        if podcast_id in (None, "") or podcast_hash in (None, ""):
            continue
        results.append(SearchResult(
            id=str(podcast_id),
            hash=str(podcast_hash),
            title=str(row.get("title") or ""),
        ))
    return results


class OvercastClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session_cookie: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.overcast_base_url).rstrip("/")
        cookie = settings.overcast_session_cookie if session_cookie is None else session_cookie
        headers: Dict[str, str] = dict(_HEADERS)
        if cookie:
            headers["Cookie"] = cookie
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.http_timeout_sec,
            follow_redirects=True,
            headers=headers,
        )
        if http_client is not None and cookie:
            self._client.headers["Cookie"] = cookie

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def absolute(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def search(self, query: str) -> List[SearchResult]:
        url = self.absolute("/podcasts/search_autocomplete")
        resp = await self._client.get(url, params={"q": query})

        if resp.status_code == 429:
            raise RateLimitedError(str(resp.url))
        if resp.status_code != 200:
            logger.warning(f"Overcast search HTTP {resp.status_code} for '{truncate(query, 60)}'")
            return []

        try:
            data = resp.json()
        except ValueError:
            logger.warning(f"Overcast search returned non-JSON body for '{truncate(query, 60)}'")
            return []

        return parse_search_results(data)

    async def get(self, url: str) -> FetchedPage:
        resp = await self._client.get(self.absolute(url))
        return FetchedPage(status=resp.status_code, body=resp.text)

    async def post_form(self, url: str, data: Dict[str, str]) -> FetchedPage:
        resp = await self._client.post(self.absolute(url), data=data)
        return FetchedPage(status=resp.status_code, body=resp.text)

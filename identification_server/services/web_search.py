"""Google Custom Search client (web search provider)."""

import logging
from typing import List, Optional

import httpx

from identification.errors import MissingAPIKeyError, ProviderError
from identification.models import SearchResult

logger = logging.getLogger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"
RESULTS_PER_QUERY = 10


class GoogleSearchClient:
    """Ranked web results for a query via the Custom Search JSON API."""

    def __init__(
        self,
        api_key: str,
        cse_id: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise MissingAPIKeyError("google_search")
        if not cse_id:
            raise ProviderError("Google Search CSE ID not configured. Set the GOOGLE_CSE_ID environment variable.")
        self.api_key = api_key
        self.cse_id = cse_id
        self.timeout = httpx.Timeout(timeout)
        self._client = client

    async def search(self, query: str) -> List[SearchResult]:
        params = {"key": self.api_key, "cx": self.cse_id, "q": query, "num": RESULTS_PER_QUERY}
        try:
            if self._client is not None:
                response = await self._client.get(GOOGLE_CSE_URL, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(GOOGLE_CSE_URL, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(f"Search request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(f"Google Search API returned status {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError("Malformed Google Search response") from e
        if payload.get("error"):
            raise ProviderError(f"Google Search API error: {payload['error'].get('message', '')}")

        results = [
            SearchResult(
                title=item.get("title", ""),
                link=item.get("link", ""),
                snippet=item.get("snippet", ""),
            )
            for item in payload.get("items") or []
        ]
        logger.debug("[search] %d results for %r", len(results), query)
        return results

"""TMDb client (film detail provider)."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from identification.errors import MissingAPIKeyError, ProviderError
from identification.models import FilmDetails

logger = logging.getLogger(__name__)

TMDB_API_URL = "https://api.themoviedb.org/3"
TMDB_IMAGE_URL = "https://image.tmdb.org/t/p"


def image_url(path: Optional[str], size: str = "w500") -> str:
    """Full poster/backdrop URL for a TMDb image path; empty when there is no path."""
    if not path:
        return ""
    return f"{TMDB_IMAGE_URL}/{size}{path}"


class TMDbClient:
    """Film metadata and credits from The Movie Database."""

    def __init__(self, api_key: str, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        if not api_key:
            raise MissingAPIKeyError("tmdb")
        self.api_key = api_key
        self.timeout = httpx.Timeout(timeout)
        self._client = client

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{TMDB_API_URL}{path}"
        params = {"api_key": self.api_key, **params}
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(f"TMDb request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(f"TMDb API returned status {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError("Malformed TMDb response") from e

    async def get_film(self, catalog_id: str) -> FilmDetails:
        payload = await self._get_json(f"/movie/{catalog_id}", {"append_to_response": "credits"})
        try:
            details = FilmDetails.model_validate(payload)
        except ValueError as e:
            raise ProviderError(f"Unexpected TMDb film payload for {catalog_id}") from e
        logger.info("[tmdb] fetched details for %s: %s (%s)", catalog_id, details.title, details.year or "?")
        return details

    async def search_movies(self, query: str) -> List[Dict[str, Any]]:
        """First page of TMDb title search results (id, title, release_date, overview, poster_path, vote_average)."""
        payload = await self._get_json("/search/movie", {"query": query, "page": 1})
        return [
            {
                "id": m.get("id"),
                "title": m.get("title", ""),
                "release_date": m.get("release_date", ""),
                "overview": m.get("overview", ""),
                "poster_path": m.get("poster_path"),
                "vote_average": m.get("vote_average", 0.0),
            }
            for m in payload.get("results") or []
        ]

    def image_url(self, path: Optional[str], size: str = "w500") -> str:
        return image_url(path, size)

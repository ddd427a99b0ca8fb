import httpx
import logging
from typing import Any, Dict, List, Optional

from .models import SearchResult
from ..config.settings import GoogleCredentials, SearchConfig
from ..errors import FailureKind, SearchError

logger = logging.getLogger(__name__)

MAX_RESULTS = 10

# The Custom Search API only knows "active" and "off"
SAFE_SEARCH_LEVELS = {
    "off": "off",
    "medium": "active",
    "high": "active",
}


class GoogleSearchClient:
    """Client for the Google Custom Search JSON API"""

    def __init__(self, credentials: GoogleCredentials, config: Optional[SearchConfig] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.credentials = credentials
        self.config = config or SearchConfig()
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.config.timeout))
        return self._client

    def build_params(
        self,
        query: str,
        num_results: int = MAX_RESULTS,
        date_restrict: Optional[str] = None,
        language: Optional[str] = None,
        country: Optional[str] = None,
        safe_search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Translate tool arguments into API query parameters"""
        params = {
            "key": self.credentials.api_key,
            "cx": self.credentials.search_engine_id,
            "q": query,
            "num": max(1, min(int(num_results), MAX_RESULTS)),
        }

        if date_restrict:
            params["dateRestrict"] = date_restrict
        if language:
            params["lr"] = f"lang_{language}"
        if country:
            params["cr"] = f"country{country.upper()}"
        if safe_search:
            if safe_search not in SAFE_SEARCH_LEVELS:
                raise SearchError(FailureKind.INVALID_ARGUMENT, f"Invalid safe_search value: {safe_search}")
            params["safe"] = SAFE_SEARCH_LEVELS[safe_search]

        return params

    async def search(
        self,
        query: str,
        num_results: int = MAX_RESULTS,
        date_restrict: Optional[str] = None,
        language: Optional[str] = None,
        country: Optional[str] = None,
        safe_search: Optional[str] = None,
    ) -> List[SearchResult]:
        """
        Run one search request

        Results keep the API's relevance order. Nothing is cached or retried.
        """
        if not query or not query.strip():
            raise SearchError(FailureKind.INVALID_QUERY, "The search query is empty.")

        params = self.build_params(query, num_results, date_restrict, language, country, safe_search)
        logger.info(f"Google search: '{query}' (num={params['num']})")

        try:
            response = await self._get_client().get(self.config.endpoint, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Search request failed: {e}")
            raise SearchError(FailureKind.INTERNAL, f"Search request failed: {e}") from e

        self._check_status(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise SearchError(FailureKind.INTERNAL, f"Malformed search response: {e}") from e

        items = (payload.get("items") or []) if isinstance(payload, dict) else []
        results = [SearchResult.from_item(item) for item in items[:MAX_RESULTS] if isinstance(item, dict)]

        logger.info(f"{len(results)} results for '{query}'")
        return results

    def _check_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if response.is_success:
            return

        detail = self._error_detail(response)
        logger.warning(f"Search API returned {status}: {detail}")

        if status == 400:
            raise SearchError(FailureKind.INVALID_QUERY, f"The search query is invalid: {detail}")
        if status == 403:
            raise SearchError(FailureKind.INVALID_CREDENTIALS, f"The API key is invalid or the quota is exhausted: {detail}")
        if status == 429:
            raise SearchError(FailureKind.RATE_LIMITED, "The search API rate limit was reached. Try again later.")
        raise SearchError(FailureKind.INTERNAL, f"The search service failed with status {status}: {detail}")

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            return payload["error"].get("message", "")
        return str(payload)[:200]

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

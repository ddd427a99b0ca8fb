import asyncio
import httpx
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from fake_useragent import UserAgent

from .extractor import ContentExtractor
from .models import PageAnalysis
from ..config.settings import FetchConfig
from ..errors import FailureKind, FetchError, ToolError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

TEXTUAL_CONTENT_TYPES = ('application/xhtml+xml', 'application/xml')


class ContentFetcher:
    """Fetches pages over HTTP and hands them to the extractor"""

    def __init__(self, config: Optional[FetchConfig] = None, extractor: Optional[ContentExtractor] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.config = config or FetchConfig()
        self.extractor = extractor or ContentExtractor()
        self.ua = UserAgent(fallback=DEFAULT_USER_AGENT)

        # Default headers to avoid bot detection
        self.default_headers = {
            'User-Agent': self.ua.random,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
            'Accept-Encoding': 'gzip, deflate',
            'Upgrade-Insecure-Requests': '1',
        }
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                follow_redirects=True
            )
        return self._client

    def is_valid_url(self, url: str) -> bool:
        """Check that the URL is absolute http(s)"""
        try:
            parsed = urlparse(url)
            return parsed.scheme in ('http', 'https') and bool(parsed.netloc)
        except ValueError:
            return False

    async def fetch(self, url: str) -> str:
        """
        Fetch the raw HTML of a page

        Failures are classified here: connection failures and 404 are
        NOT_FOUND, 403 is ACCESS_DENIED, anything else is INTERNAL.
        """
        client = self._get_client()

        try:
            response = await client.get(url, headers=self.default_headers)
        except httpx.ConnectError as e:
            logger.warning(f"Cannot connect to {url}: {e}")
            raise FetchError(FailureKind.NOT_FOUND, f"The URL {url} could not be reached. Check that it is correct.") from e
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout while fetching {url}: {e}")
            raise FetchError(FailureKind.INTERNAL, f"The server at {url} did not respond in time.") from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise FetchError(FailureKind.INTERNAL, f"Failed to fetch {url}: {e}") from e

        self._check_status(url, response)
        return self._read_text(url, response)

    def _check_status(self, url: str, response: httpx.Response) -> None:
        status = response.status_code
        if status == 404:
            raise FetchError(FailureKind.NOT_FOUND, f"Page not found (404): {url}")
        if status == 403:
            raise FetchError(FailureKind.ACCESS_DENIED, f"Access denied (403): {url}")
        if not response.is_success:
            raise FetchError(FailureKind.INTERNAL, f"Unexpected HTTP status {status} for {url}")

    def _read_text(self, url: str, response: httpx.Response) -> str:
        content_type = response.headers.get('content-type', '').split(';')[0].strip().lower()
        if content_type and not (content_type.startswith('text/') or content_type in TEXTUAL_CONTENT_TYPES):
            raise FetchError(FailureKind.INTERNAL, f"Unsupported content type '{content_type}' for {url}")

        try:
            content = response.text
        except (UnicodeDecodeError, LookupError) as e:
            raise FetchError(FailureKind.INTERNAL, f"Could not decode response body from {url}: {e}") from e

        if len(content) > self.config.max_content_length:
            content = content[:self.config.max_content_length]
            logger.warning(f"Content truncated for {url}")

        return content

    async def analyze(self, url: str) -> PageAnalysis:
        """Fetch a page and extract its main content"""
        if not isinstance(url, str) or not self.is_valid_url(url):
            raise FetchError(FailureKind.INVALID_ARGUMENT, f"Invalid URL: {url!r}")

        logger.info(f"Analyzing {url}")
        html = await self.fetch(url)
        analysis = self.extractor.extract(html)
        logger.info(f"Analyzed {url}: {len(analysis.text)} characters of text")
        return analysis

    async def batch_analyze(self, urls: List[str]) -> List[Dict[str, Any]]:
        """Analyse plusieurs URLs en parallèle avec limite de concurrence"""
        semaphore = asyncio.Semaphore(self.config.max_concurrent_fetches)

        async def bounded_analyze(url: str) -> Dict[str, Any]:
            async with semaphore:
                try:
                    analysis = await self.analyze(url)
                    return {"url": url, "result": analysis.to_dict()}
                except ToolError as e:
                    logger.warning(f"Analysis failed for {url}: {e.message}")
                    return {"url": url, "error": e.to_dict()}

        return list(await asyncio.gather(*[bounded_analyze(url) for url in urls]))

    async def close(self):
        """Clean up resources"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

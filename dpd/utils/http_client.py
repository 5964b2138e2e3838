"""
HTTP Client for the Dark Pattern Detector
Wrapper around httpx with retries and timeouts for fetching pages to scan
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from ..core.errors import DocumentLoadError

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class FetchedPage:
    """A fetched document and where it ended up after redirects."""
    url: str
    final_url: str
    status_code: int
    text: str
    content_type: str
    elapsed: float
    redirect_history: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class HTTPClient:
    """Async HTTP client used to fetch pages before detection."""

    def __init__(self,
                 timeout: int = 30,
                 user_agent: str = "DarkPatternDetector/3.0",
                 verify_ssl: bool = True,
                 max_retries: int = 2,
                 retry_delay: float = 1.0,
                 max_redirects: int = 10,
                 transport: Optional[httpx.AsyncBaseTransport] = None):

        self.timeout = timeout
        self.user_agent = user_agent
        self.verify_ssl = verify_ssl
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_redirects = max_redirects
        self.transport = transport
        self.logger = logging.getLogger(__name__)

        self._session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self) -> httpx.AsyncClient:
        """Ensure HTTP session is initialized."""
        if self._session is None:
            headers = {
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
            }
            config = {
                "headers": headers,
                "timeout": httpx.Timeout(self.timeout),
                "follow_redirects": True,
                "max_redirects": self.max_redirects,
            }
            if self.transport is not None:
                config["transport"] = self.transport
            else:
                config["verify"] = self.verify_ssl

            self._session = httpx.AsyncClient(**config)

        return self._session

    async def close(self):
        if self._session:
            await self._session.aclose()
            self._session = None

    async def _get_with_retries(self, url: str) -> httpx.Response:
        session = await self._ensure_session()

        for attempt in range(self.max_retries + 1):
            try:
                return await session.get(url)
            except (httpx.TimeoutException, httpx.TransportError) as e:
                if attempt < self.max_retries:
                    self.logger.debug(f"Error for {url}: {e}, retrying in {self.retry_delay}s (attempt {attempt + 1})")
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise DocumentLoadError(f"Could not fetch {url}: {e}") from e
            except httpx.HTTPError as e:
                raise DocumentLoadError(f"Could not fetch {url}: {e}") from e

        raise DocumentLoadError(f"Could not fetch {url}")

    async def fetch_document(self, url: str) -> FetchedPage:
        """Fetch an HTML page; anything else is a load error."""
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"

        start_time = time.time()
        response = await self._get_with_retries(url)
        elapsed = time.time() - start_time

        if response.status_code >= 400:
            raise DocumentLoadError(f"Fetching {url} returned HTTP {response.status_code}")

        content_type = response.headers.get("content-type", "")
        media_type = content_type.split(";")[0].strip().lower()
        if media_type and media_type not in HTML_CONTENT_TYPES:
            raise DocumentLoadError(f"{url} is not an HTML page (content type {media_type})")

        page = FetchedPage(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            content_type=media_type,
            elapsed=elapsed,
            redirect_history=[str(r.url) for r in response.history],
        )
        self.logger.info(f"Fetched {page.final_url} ({len(page.text)} chars in {elapsed:.2f}s)")
        return page


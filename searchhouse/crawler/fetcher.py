"""
HTTP fetching for the spider.

One aiohttp session is shared by every worker and by the host eligibility
probe. Network failures come back inside the FetchResult; they never raise.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError

READ_CHUNK_SIZE = 8192


@dataclass
class FetchResult:
    """
    Outcome of one GET.

    status_code is 0 when no response arrived. content is only set for a
    200 response whose body was read completely.
    """
    url: str
    status_code: int
    status: str = ""
    content: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code == 200 and self.content is not None


class BodyReadError(Exception):
    """The response body was too large or the connection dropped mid-read."""
    pass


class WebFetcher:
    """Plain GET client without retries or robots.txt handling."""

    def __init__(self, user_agent: str, request_timeout: int = 30,
                 max_content_bytes: int = 10 * 1024 * 1024, max_connections: int = 100):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_content_bytes = max_content_bytes
        self.max_connections = max_connections
        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'requests': 0,
            'ok_responses': 0,
            'other_responses': 0,
            'network_errors': 0,
            'bytes_downloaded': 0
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Open the shared session; a no-op when already open."""
        if self.session is not None:
            return
        self.session = aiohttp.ClientSession(
            timeout=ClientTimeout(total=self.request_timeout),
            headers={'User-Agent': self.user_agent},
            connector=aiohttp.TCPConnector(limit=self.max_connections, ttl_dns_cache=300)
        )
        self.logger.info(f"HTTP session opened (timeout {self.request_timeout}s, "
                         f"body limit {self.max_content_bytes} bytes)")

    async def close(self):
        if self.session is not None:
            await self.session.close()
            self.session = None
            self.logger.info("HTTP session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        GET url and read the body of a 200 response.

        Args:
            url: Absolute URL to fetch

        Returns:
            FetchResult. For a non-200 response only the status is filled in.
            A timeout, connection failure or unreadable body sets error,
            keeping the status code if a response had already arrived.
        """
        if self.session is None:
            await self.start()

        started = time.monotonic()
        self.stats['requests'] += 1
        status_code = 0
        status = ""

        try:
            async with self.session.get(url) as response:
                status_code = response.status
                status = f"{response.status} {response.reason or ''}".strip()

                if status_code != 200:
                    self.stats['other_responses'] += 1
                    return FetchResult(url, status_code, status,
                                       fetch_time=time.monotonic() - started)

                content = await self._read_body(response)

        except asyncio.TimeoutError:
            error = "Request timeout"
        except BodyReadError as e:
            error = f"Body read error: {e}"
        except ClientError as e:
            error = f"Client error: {e}"
        else:
            self.stats['ok_responses'] += 1
            self.stats['bytes_downloaded'] += len(content)
            self.logger.debug(f"Fetched {url}: {status}, {len(content)} chars")
            return FetchResult(url, status_code, status, content=content,
                               fetch_time=time.monotonic() - started)

        self.stats['network_errors'] += 1
        self.logger.warning(f"Fetching {url} failed: {error}")
        return FetchResult(url, status_code, status, error=error,
                           fetch_time=time.monotonic() - started)

    async def _read_body(self, response: aiohttp.ClientResponse) -> str:
        """
        Read and decode the whole body, refusing anything over max_content_bytes.

        Raises:
            BodyReadError: if the body is too large or the connection drops
        """
        declared = response.content_length
        if declared is not None and declared > self.max_content_bytes:
            raise BodyReadError(f"content too large ({declared} bytes)")

        body = bytearray()
        try:
            async for chunk in response.content.iter_chunked(READ_CHUNK_SIZE):
                body.extend(chunk)
                if len(body) > self.max_content_bytes:
                    raise BodyReadError("content exceeded size limit during reading")
        except ClientError as e:
            raise BodyReadError(str(e)) from e

        try:
            return body.decode(response.charset or 'utf-8')
        except (UnicodeDecodeError, LookupError):
            return body.decode('utf-8', errors='replace')

    def get_stats(self) -> Dict[str, int]:
        return dict(self.stats)

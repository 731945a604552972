"""aiohttp-backed transport that delivers single requests."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Optional

import aiohttp

from .protocols import Body, HttpResponse, TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "ldpclient/1.0 (+aiohttp)"

BODYLESS_STATUS_CODES = frozenset({204, 304})


class AiohttpTransport:
    """
    HttpTransport implementation on top of an aiohttp ClientSession.

    Features:
    - Lazily created, pooled session
    - Content size limits to prevent memory exhaustion
    - Timeout and proxy controls
    - Network failures surfaced as TransportError

    Example:
        async with AiohttpTransport(timeout=10.0) as transport:
            response = await transport.send("GET", "https://example.com/r", {})
    """

    MAX_CONTENT_SIZE = 50 * 1024 * 1024  # 50 MB

    # Exceptions that mean no response was obtained
    TRANSPORT_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        ConnectionError,
    )

    def __init__(
        self,
        timeout: float = 30.0,
        max_content_size: int = MAX_CONTENT_SIZE,
        user_agent: Optional[str] = None,
        proxy: Optional[str] = None,
        connection_limit: int = 100,
        per_host_limit: int = 10,
    ) -> None:
        """
        Initialize the transport.

        Args:
            timeout: Total timeout per request in seconds
            max_content_size: Maximum response size in bytes
            user_agent: Custom User-Agent string
            proxy: Proxy URL (http:// or https://)
            connection_limit: Total connection pool size
            per_host_limit: Per-host connection limit
        """
        self._timeout = timeout
        self._max_content_size = max_content_size
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._proxy = proxy
        self._connection_limit = connection_limit
        self._per_host_limit = per_host_limit

        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def open(self) -> None:
        """Create the underlying session if it does not exist yet."""
        if self.is_open:
            return
        connector = aiohttp.TCPConnector(
            limit=self._connection_limit,
            limit_per_host=self._per_host_limit,
            ttl_dns_cache=300,  # DNS cache TTL
        )
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )
        logger.debug("Opened aiohttp session")

    async def close(self) -> None:
        """Close the session and release pooled connections."""
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Closed aiohttp session")

    async def __aenter__(self) -> AiohttpTransport:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[Body] = None,
    ) -> HttpResponse:
        """
        Perform one HTTP request.

        Args:
            method: HTTP method name
            url: The URL to request
            headers: Request headers, sent as given
            body: Optional request body

        Returns:
            HttpResponse with status, content, and headers

        Raises:
            TransportError: On network errors, timeouts, or oversized bodies
        """
        await self.open()
        assert self._session is not None

        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                data=body,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                proxy=self._proxy,
                allow_redirects=True,
            ) as response:
                content = await self._read_content(method, response)
                return HttpResponse(
                    status_code=response.status,
                    content=content,
                    content_type=response.headers.get("Content-Type", ""),
                    headers=dict(response.headers),
                    url=str(response.url),
                )
        except self.TRANSPORT_EXCEPTIONS as e:
            message = str(e) or type(e).__name__
            raise TransportError(f"{method} {url}: {message}") from e

    async def _read_content(self, method: str, response: aiohttp.ClientResponse) -> bytes:
        # No body follows HEAD, 204 or 304, whatever Content-Length says
        if method.upper() == "HEAD" or response.status in BODYLESS_STATUS_CODES:
            return b""

        # Check Content-Length if available
        content_length = response.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > self._max_content_size:
            raise TransportError(f"Content too large: {content_length} bytes")

        # Read content with size limit
        content = b""
        async for chunk in response.content.iter_chunked(8192):
            content += chunk
            if len(content) > self._max_content_size:
                raise TransportError(f"Content size limit exceeded: >{self._max_content_size} bytes")
        return content

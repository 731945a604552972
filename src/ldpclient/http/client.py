"""Rate-limited HTTP client facade."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Optional

from charset_normalizer import from_bytes as detect_encoding

from ..models.config import ClientConfig, HeaderDefaults
from ..models.stats import DispatchStats
from .protocols import Body, HttpTransport, RequestDescriptor, RequestResult
from .rate_limiter import TokenBucketLimiter
from .transport import AiohttpTransport

logger = logging.getLogger(__name__)


class RateLimitedClient:
    """
    HTTP client that gates every request through a token bucket.

    Every verb method builds a RequestDescriptor and hands it to
    dispatch(), which waits for a token, sends the request through the
    transport, and always returns a RequestResult. Failures never
    escape as exceptions:

    - transport errors (DNS, refused connection, timeout) give a result
      with ``is_transport_error`` set and no response
    - error statuses (4xx/5xx) are passed through whole, with
      ``is_http_error`` set and the response kept on the result

    Example:
        async with RateLimitedClient(burst_limit=5, refill_interval_ms=1000) as client:
            result = await client.get("https://pod.example/container/")
            if result.ok:
                print(client.decode_content(result))
            else:
                print(result.status_code, result.error)
    """

    def __init__(
        self,
        burst_limit: int,
        refill_interval_ms: int = 1000,
        *,
        transport: Optional[HttpTransport] = None,
        header_defaults: Optional[HeaderDefaults] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            burst_limit: Requests admitted per refill window
            refill_interval_ms: Minimum milliseconds between bucket refills
            transport: Transport used to send requests. When omitted, an
                AiohttpTransport is created and closed with the client.
            header_defaults: Per-verb Content-Type defaults

        Raises:
            ValueError: If burst_limit or refill_interval_ms is not positive
        """
        self._limiter = TokenBucketLimiter(burst_limit, refill_interval_ms)
        self._owns_transport = transport is None
        self._transport: HttpTransport = transport if transport is not None else AiohttpTransport()
        self._header_defaults = header_defaults or HeaderDefaults()
        self._stats = DispatchStats()

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[HttpTransport] = None,
    ) -> RateLimitedClient:
        """Build a client from a ClientConfig."""
        owned = transport is None
        if transport is None:
            transport = AiohttpTransport(
                timeout=config.network.timeout,
                max_content_size=config.network.max_content_size,
                user_agent=config.network.user_agent,
                proxy=config.network.proxy,
                connection_limit=config.network.connection_limit,
                per_host_limit=config.network.per_host_limit,
            )
        client = cls(
            config.rate_limit.burst_limit,
            config.rate_limit.refill_interval_ms,
            transport=transport,
            header_defaults=config.headers,
        )
        # A transport built from config belongs to the client
        client._owns_transport = owned
        return client

    @property
    def limiter(self) -> TokenBucketLimiter:
        return self._limiter

    @property
    def stats(self) -> DispatchStats:
        return self._stats

    async def __aenter__(self) -> RateLimitedClient:
        """Enter async context and open the transport if it supports it."""
        opener = getattr(self._transport, "open", None)
        if opener is not None:
            await opener()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if not self._owns_transport:
            return
        closer = getattr(self._transport, "close", None)
        if closer is not None:
            await closer()

    def _resolve_headers(self, method: str, headers: Optional[dict[str, str]]) -> dict[str, str]:
        # Caller headers replace the defaults entirely, even when empty
        if headers is not None:
            return dict(headers)
        return self._header_defaults.for_method(method) or {}

    def _build(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]],
        body: Optional[Body] = None,
    ) -> RequestDescriptor:
        return RequestDescriptor(
            method=method,
            url=url,
            headers=self._resolve_headers(method, headers),
            body=body,
        )

    async def dispatch(self, descriptor: RequestDescriptor) -> RequestResult:
        """
        Send one request once a rate-limit token is available.

        Args:
            descriptor: The request to send

        Returns:
            RequestResult describing success, error status, or transport failure.
            Only cancellation propagates out of this method.
        """
        await self._limiter.acquire()
        logger.debug(f"{descriptor.method} {descriptor.url}")

        try:
            response = await self._transport.send(
                descriptor.method,
                descriptor.url,
                descriptor.headers,
                descriptor.body,
            )
        except Exception as e:
            result = RequestResult.from_error(descriptor, e)
            logger.error(f"Request failed: {descriptor.method} {descriptor.url}: {result.error}")
        else:
            result = RequestResult.from_response(descriptor, response)
            if result.is_http_error:
                logger.warning(f"Request failed with status: {descriptor.method} {descriptor.url} -> {result.error}")

        self._stats.record(result)
        return result

    async def get(self, url: str, headers: Optional[dict[str, str]] = None) -> RequestResult:
        """Fetch a resource."""
        return await self.dispatch(self._build("GET", url, headers))

    async def head(self, url: str, headers: Optional[dict[str, str]] = None) -> RequestResult:
        """Fetch only the headers of a resource."""
        return await self.dispatch(self._build("HEAD", url, headers))

    async def post(
        self,
        url: str,
        body: Optional[Body] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> RequestResult:
        """Create a resource inside a container."""
        return await self.dispatch(self._build("POST", url, headers, body))

    async def put(
        self,
        url: str,
        body: Optional[Body] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> RequestResult:
        """Create or replace a resource."""
        return await self.dispatch(self._build("PUT", url, headers, body))

    async def patch(
        self,
        url: str,
        body: Optional[Body] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> RequestResult:
        """Apply a partial update to a resource."""
        return await self.dispatch(self._build("PATCH", url, headers, body))

    async def delete(self, url: str, headers: Optional[dict[str, str]] = None) -> RequestResult:
        """Remove a resource."""
        return await self.dispatch(self._build("DELETE", url, headers))

    def decode_content(self, result: RequestResult) -> str:
        """
        Decode a result's response body to a string.

        Fallback chain:
        1. Content-Type header charset
        2. charset-normalizer detection
        3. UTF-8 with replacement

        Args:
            result: RequestResult carrying a response

        Returns:
            Decoded string content, or "" when there is no response
        """
        if result.response is None:
            return ""
        content = result.response.content
        content_type = result.response.content_type

        encoding = None
        if content_type:
            for part in content_type.split(";"):
                part = part.strip()
                if part.lower().startswith("charset="):
                    encoding = part.split("=", 1)[1].strip().strip("\"'")
                    break

        if encoding:
            try:
                return content.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Failed to decode with declared encoding: {encoding}")

        best_match = detect_encoding(content).best()
        if best_match is not None:
            logger.debug(f"Detected encoding: {best_match.encoding}")
            return str(best_match)

        return content.decode("utf-8", errors="replace")

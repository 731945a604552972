"""Protocol definitions and result types for the rate-limited client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Optional, Protocol, Union

Body = Union[str, bytes]


class LdpClientError(Exception):
    """Base class for ldpclient errors."""


class TransportError(LdpClientError):
    """Network, DNS, or timeout failure before a response was received."""


class RequestFailedError(LdpClientError):
    """Raised by RequestResult.raise_for_failure() for unsuccessful results."""

    def __init__(self, result: RequestResult) -> None:
        super().__init__(f"{result.method} {result.url} failed: {result.error}")
        self.result = result


class FailureKind(str, Enum):
    """Why a request did not succeed."""

    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"


@dataclass(frozen=True)
class HttpResponse:
    """
    Immutable HTTP response returned by an HttpTransport.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        content: Raw response content as bytes
        content_type: Content-Type header value
        headers: All response headers
        url: Final URL after any redirects
    """

    status_code: int
    content: bytes
    content_type: str
    headers: dict[str, str]
    url: str

    @property
    def ok(self) -> bool:
        """True for 2xx and 3xx status codes."""
        return 200 <= self.status_code < 400


@dataclass(frozen=True)
class RequestDescriptor:
    """One outgoing request: method, target URL, headers, and optional body."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[Body] = None


@dataclass(frozen=True)
class RequestResult:
    """
    Outcome of a single dispatched request.

    Exactly one of three shapes:
        - success: ``response`` set, ``failure`` is None
        - remote error status: ``response`` set (status >= 400),
          ``failure`` is FailureKind.HTTP_STATUS
        - transport failure: ``response`` is None,
          ``failure`` is FailureKind.TRANSPORT

    Error responses are passed through whole so callers can still read
    the status, headers, and body the server sent.
    """

    method: str
    url: str
    response: Optional[HttpResponse] = None
    error: Optional[str] = None
    failure: Optional[FailureKind] = None

    @classmethod
    def from_response(cls, descriptor: RequestDescriptor, response: HttpResponse) -> RequestResult:
        if response.ok:
            return cls(method=descriptor.method, url=descriptor.url, response=response)
        try:
            reason = HTTPStatus(response.status_code).phrase
        except ValueError:
            reason = "Unknown Status"
        return cls(
            method=descriptor.method,
            url=descriptor.url,
            response=response,
            error=f"HTTP {response.status_code} {reason}",
            failure=FailureKind.HTTP_STATUS,
        )

    @classmethod
    def from_error(cls, descriptor: RequestDescriptor, error: BaseException) -> RequestResult:
        return cls(
            method=descriptor.method,
            url=descriptor.url,
            error=str(error) or type(error).__name__,
            failure=FailureKind.TRANSPORT,
        )

    @property
    def ok(self) -> bool:
        """True when a response arrived with a success status."""
        return self.failure is None

    @property
    def status_code(self) -> Optional[int]:
        """Response status, or None when no response was received."""
        return self.response.status_code if self.response is not None else None

    @property
    def is_transport_error(self) -> bool:
        return self.failure is FailureKind.TRANSPORT

    @property
    def is_http_error(self) -> bool:
        return self.failure is FailureKind.HTTP_STATUS

    def raise_for_failure(self) -> HttpResponse:
        """
        Return the response, or raise if the request did not succeed.

        Returns:
            The successful HttpResponse

        Raises:
            RequestFailedError: On a transport failure or error status
        """
        if self.failure is not None or self.response is None:
            raise RequestFailedError(self)
        return self.response


class HttpTransport(Protocol):
    """
    Protocol for the transport that actually delivers requests.

    This abstraction allows for:
    - Mock implementations in tests
    - Different backends (aiohttp, httpx, etc.)
    - Keeping rate limiting independent of connection handling
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[Body] = None,
    ) -> HttpResponse:
        """
        Deliver one request and return the response.

        Args:
            method: HTTP method name (GET, POST, ...)
            url: Target URL
            headers: Request headers, sent as given
            body: Optional request body

        Returns:
            HttpResponse with status, content, and headers

        Raises:
            TransportError: When no response could be obtained
        """
        ...

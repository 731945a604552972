"""HTTP client, transport, and rate limiting for ldpclient."""

from .protocols import (
    FailureKind,
    HttpResponse,
    HttpTransport,
    LdpClientError,
    RequestDescriptor,
    RequestFailedError,
    RequestResult,
    TransportError,
)
from .rate_limiter import TokenBucketLimiter
from .transport import AiohttpTransport
from .client import RateLimitedClient

__all__ = [
    "AiohttpTransport",
    "FailureKind",
    "HttpResponse",
    "HttpTransport",
    "LdpClientError",
    "RateLimitedClient",
    "RequestDescriptor",
    "RequestFailedError",
    "RequestResult",
    "TokenBucketLimiter",
    "TransportError",
]

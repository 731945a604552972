"""
ldpclient - Rate-limited HTTP client for Linked Data Platform servers.

Usage:
    from ldpclient import RateLimitedClient

    async with RateLimitedClient(burst_limit=5, refill_interval_ms=1000) as client:
        result = await client.get("https://pod.example/container/")
        if result.ok:
            print(client.decode_content(result))
"""

__version__ = "1.0.0"

from .http import (
    AiohttpTransport,
    FailureKind,
    HttpResponse,
    HttpTransport,
    LdpClientError,
    RateLimitedClient,
    RequestDescriptor,
    RequestFailedError,
    RequestResult,
    TokenBucketLimiter,
    TransportError,
)
from .logging_config import setup_logging
from .models import ClientConfig, DispatchStats, HeaderDefaults, NetworkConfig, RateLimitConfig

__all__ = [
    "__version__",
    # Core
    "RateLimitedClient",
    "TokenBucketLimiter",
    # Transport
    "AiohttpTransport",
    "HttpTransport",
    # Results
    "FailureKind",
    "HttpResponse",
    "RequestDescriptor",
    "RequestResult",
    # Errors
    "LdpClientError",
    "RequestFailedError",
    "TransportError",
    # Config
    "ClientConfig",
    "HeaderDefaults",
    "NetworkConfig",
    "RateLimitConfig",
    "DispatchStats",
    "setup_logging",
]

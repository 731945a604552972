"""ldpclient configuration and statistics models."""

from .config import ByteSize, ClientConfig, HeaderDefaults, NetworkConfig, RateLimitConfig
from .stats import DispatchStats

__all__ = [
    # Config
    "ByteSize",
    "ClientConfig",
    "HeaderDefaults",
    "NetworkConfig",
    "RateLimitConfig",
    # Stats
    "DispatchStats",
]

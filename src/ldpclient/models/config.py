"""Pydantic configuration models for ldpclient."""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ByteSize(int):
    """
    Custom type that parses human-readable byte sizes.

    Accepts:
        - Integers (bytes)
        - Strings like '200kb', '1mb', '5gb'

    Examples:
        >>> ByteSize._parse('200kb')
        204800
        >>> ByteSize._parse('1mb')
        1048576
        >>> ByteSize._parse(1024)
        1024
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        size = cls._parse_unchecked(v)
        if size < 0:
            raise ValueError(f"Byte size must not be negative: {v}")
        return size

    @classmethod
    def _parse_unchecked(cls, v: Any) -> int:
        if isinstance(v, int) and not isinstance(v, bool):
            return v
        if isinstance(v, str):
            v = v.lower().strip()
            # Order matters: check longer suffixes first
            units = [("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)]
            for unit, mult in units:
                if v.endswith(unit):
                    num_str = v[: -len(unit)].strip()
                    try:
                        return int(float(num_str) * mult)
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return int(v)
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '200kb', '1mb', or integer bytes.")


class RateLimitConfig(BaseModel):
    """Token bucket settings."""

    burst_limit: int = Field(10, ge=1, description="Requests admitted per refill window")
    refill_interval_ms: int = Field(
        1000,
        ge=1,
        description="Minimum milliseconds between full bucket refills",
    )

    model_config = {"extra": "forbid"}


class NetworkConfig(BaseModel):
    """Configuration for the HTTP transport."""

    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    timeout: float = Field(30.0, gt=0, description="Total request timeout in seconds")
    max_content_size: ByteSize = Field(
        ByteSize(50 * 1024 * 1024),
        description="Maximum response size (e.g., '200kb', '50mb')",
    )
    connection_limit: int = Field(100, ge=1, description="Total connection pool size")
    per_host_limit: int = Field(10, ge=1, description="Connections per host")

    model_config = {"extra": "forbid"}


class HeaderDefaults(BaseModel):
    """Content-Type applied per verb when the caller passes no headers."""

    read_content_type: str = Field("text/turtle", description="Default for GET")
    write_content_type: str = Field("text/turtle", description="Default for POST and PUT")
    patch_content_type: str = Field(
        "application/sparql-update",
        description="Default for PATCH",
    )

    model_config = {"extra": "forbid"}

    def for_method(self, method: str) -> Optional[dict[str, str]]:
        """Default headers for an HTTP method, or None if it has none."""
        content_type = {
            "GET": self.read_content_type,
            "POST": self.write_content_type,
            "PUT": self.write_content_type,
            "PATCH": self.patch_content_type,
        }.get(method.upper())
        if content_type is None:
            return None
        return {"Content-Type": content_type}


class ClientConfig(BaseModel):
    """
    Root configuration model for ldpclient.

    Example:
        config = ClientConfig(
            rate_limit=RateLimitConfig(burst_limit=5, refill_interval_ms=2000),
            network=NetworkConfig(timeout=10.0),
        )

    YAML format:
        rate_limit:
          burst_limit: 5
          refill_interval_ms: 2000
        network:
          timeout: 10
          max_content_size: 5mb
        headers:
          patch_content_type: text/n3
    """

    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    headers: HeaderDefaults = Field(default_factory=HeaderDefaults)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ClientConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "ClientConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())

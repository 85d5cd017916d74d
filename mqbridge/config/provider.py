"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Protocol


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    prefix: str
    log_level: str


@dataclass
class BrokerConfig:
    """Broker client configuration."""
    receive_timeout_ms: int
    default_queue: str
    heartbeat: int
    blocked_connection_timeout: int


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_broker_config(self) -> BrokerConfig:
        """Get broker client configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        prefix = os.getenv("API_PREFIX", "").strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix

        return APIConfig(
            port=_int_env("API_PORT", 8080),
            host=os.getenv("API_HOST", "0.0.0.0"),
            debug=os.getenv("API_DEBUG", "false").lower() == "true",
            prefix=prefix,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_broker_config(self) -> BrokerConfig:
        """Get broker client configuration from environment variables."""
        receive_timeout_ms = _int_env("BROKER_RECEIVE_TIMEOUT_MS", 1000)
        if receive_timeout_ms < 0:
            raise ValueError("BROKER_RECEIVE_TIMEOUT_MS must not be negative")

        return BrokerConfig(
            receive_timeout_ms=receive_timeout_ms,
            default_queue=os.getenv("BROKER_DEFAULT_QUEUE", "testQueue"),
            heartbeat=_int_env("BROKER_HEARTBEAT", 0),
            blocked_connection_timeout=_int_env("BROKER_BLOCKED_TIMEOUT", 300),
        )

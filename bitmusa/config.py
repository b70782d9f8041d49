"""
Bitmusa Client - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the client, immutable after construction.

CONSTRAINTS:
- API key and auth token are both required
- Base URL and stream URL are overridden together or not at all
- Testnet requires explicit URLs

============================================================
"""

from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


DEFAULT_BASE_URL = "https://openapi.bitmusa.com"
DEFAULT_STREAM_URL = "wss://openapi.bitmusa.com"

# Listen keys are renewed a minute before the server's one hour expiry
LISTEN_KEY_REFRESH_SECONDS = 59 * 60.0
LIVENESS_INTERVAL_SECONDS = 30.0


# ============================================================
# CLIENT CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class ClientConfig:
    """
    Client configuration.

    Raises:
        ConfigurationError: on missing credentials or inconsistent URLs
    """

    # Credentials
    api_key: Optional[str] = None
    """Value of the x-api-key header."""

    auth_token: Optional[str] = None
    """Bearer token for the Authorization header."""

    # Network
    timeout_seconds: float = 1.0
    """Total timeout for a single REST request."""

    base_url: Optional[str] = None
    """REST base URL (defaults to production)."""

    stream_url: Optional[str] = None
    """Websocket base URL (defaults to production)."""

    use_testnet: bool = False
    """Testnet mode; requires base_url and stream_url."""

    # Streaming
    reconnect: bool = True
    """Reopen channels on close, error or staleness."""

    keep_alive: bool = True
    """Renew listen keys while private channels are open."""

    liveness_interval_seconds: float = LIVENESS_INTERVAL_SECONDS
    """Period of the liveness sweep."""

    listen_key_refresh_seconds: float = LISTEN_KEY_REFRESH_SECONDS
    """Period of listen key renewal."""

    reconnect_backoff_initial_seconds: float = 1.0
    """Delay after the first failed connect attempt."""

    reconnect_backoff_max_seconds: float = 30.0
    """Upper bound for reconnect delay."""

    stream_connect_timeout_seconds: float = 10.0
    """Socket connect timeout for websocket handshakes."""

    def __post_init__(self):
        if not self.api_key or not self.auth_token:
            raise ConfigurationError(
                "api_key and auth_token must be specified upon creating the client"
            )

        has_base = self.base_url is not None
        has_stream = self.stream_url is not None

        if self.use_testnet and not (has_base and has_stream):
            raise ConfigurationError(
                "base_url and stream_url must be specified when use_testnet is set"
            )
        if has_base != has_stream:
            raise ConfigurationError(
                "base_url and stream_url must be overridden together"
            )

        for name in (
            "timeout_seconds",
            "liveness_interval_seconds",
            "listen_key_refresh_seconds",
            "stream_connect_timeout_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

        if self.reconnect_backoff_initial_seconds < 0:
            raise ConfigurationError("reconnect_backoff_initial_seconds must not be negative")
        if self.reconnect_backoff_max_seconds < self.reconnect_backoff_initial_seconds:
            raise ConfigurationError(
                "reconnect_backoff_max_seconds must be >= reconnect_backoff_initial_seconds"
            )

    @property
    def rest_url(self) -> str:
        """Effective REST base URL."""
        return (self.base_url or DEFAULT_BASE_URL).rstrip("/")

    @property
    def ws_url(self) -> str:
        """Effective websocket base URL."""
        return (self.stream_url or DEFAULT_STREAM_URL).rstrip("/")

    def reconnect_delay(self, failures: int) -> float:
        """
        Delay before reopening a channel.

        Args:
            failures: Consecutive attempts that never reached OPEN

        Returns:
            Seconds to wait (0 after a connection that had opened)
        """
        if failures <= 0:
            return 0.0
        return min(
            self.reconnect_backoff_initial_seconds * (2 ** (failures - 1)),
            self.reconnect_backoff_max_seconds,
        )

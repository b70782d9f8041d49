"""
Bitmusa Client - Errors.

============================================================
PURPOSE
============================================================
Exception hierarchy for the Bitmusa client.

============================================================
EXCEPTION HIERARCHY
============================================================
BitmusaError (base)
├── ConfigurationError    bad/missing client options (construction)
├── ValidationError       bad operation arguments (before any request)
├── NetworkError          no usable response from the server
├── ApplicationError      non-zero envelope code
├── SymbolNotFoundError   lookup over a successful response found nothing
└── ParseError            malformed streaming frame (contained)

REST operations surface every failure to the caller.
ParseError never leaves a channel connection.

============================================================
"""

from typing import Any, Dict, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class BitmusaError(Exception):
    """
    Base exception for all client errors.

    Carries a message and a context dict for debugging.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.cause = cause

        if cause is not None:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "context": self.context,
        }


# ============================================================
# CONSTRUCTION / ARGUMENTS
# ============================================================

class ConfigurationError(BitmusaError):
    """Invalid or missing client configuration."""
    pass


class ValidationError(BitmusaError, ValueError):
    """Invalid argument passed to a client operation."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            f"[{operation}] {message}",
            context={"operation": operation},
        )
        self.operation = operation


# ============================================================
# REQUEST FAILURES
# ============================================================

class NetworkError(BitmusaError):
    """Transport-level failure, no usable response."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, context={"path": path}, cause=cause)
        self.path = path


class ApplicationError(BitmusaError):
    """
    Server answered with a non-zero application code.

    The text always contains both code and message, e.g.
    ``[order] insufficient balance[code:1001]``.
    """

    def __init__(self, operation: str, code: Any, message: str):
        super().__init__(
            f"[{operation}] {message}[code:{code}]",
            context={"operation": operation, "code": code},
        )
        self.operation = operation
        self.code = code
        self.server_message = message


class SymbolNotFoundError(BitmusaError):
    """Requested symbol is absent from an otherwise valid response."""

    def __init__(self, operation: str, symbol: str, detail: str = "is not found"):
        super().__init__(
            f"[{operation}] {symbol} {detail}",
            context={"operation": operation, "symbol": symbol},
        )
        self.operation = operation
        self.symbol = symbol


# ============================================================
# STREAMING
# ============================================================

class ParseError(BitmusaError):
    """Inbound frame could not be decoded."""

    def __init__(self, channel_id: str, raw: Any, cause: Optional[BaseException] = None):
        preview = raw[:100] if isinstance(raw, (str, bytes)) else raw
        super().__init__(
            f"Error parsing message from channel {channel_id}",
            context={"channel_id": channel_id, "raw": preview},
            cause=cause,
        )
        self.channel_id = channel_id

"""
Bitmusa Client - Request Executor.

============================================================
PURPOSE
============================================================
Formats and issues a single authenticated HTTP request.

- Bearer token + x-api-key headers on every request
- GET parameters go to the query string, others to a JSON body
- Transport failures raise NetworkError
- Application failures come back as an Envelope (no raise)
- No retries

============================================================
"""

import asyncio
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp

from .config import ClientConfig
from .errors import NetworkError
from .logging_utils import mask_headers, mask_params
from .types import Envelope


logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _clean(parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop unset parameters."""
    if not parameters:
        return {}
    return {key: value for key, value in parameters.items() if value is not None}


def _query_value(value: Any) -> Any:
    # aiohttp only accepts str/int/float in query strings
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return value
    return str(value)


# ============================================================
# REQUEST EXECUTOR
# ============================================================

class RequestExecutor:
    """
    Issues REST requests against the configured base URL.

    Owns an aiohttp session created on first use.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize executor.

        Args:
            config: Client configuration
            session: Pre-built session (tests); owned by the caller
        """
        self._config = config
        self._session = session
        self._owns_session = session is None

    @property
    def headers(self) -> Dict[str, str]:
        """Authentication headers sent with every request."""
        return {
            "Authorization": f"Bearer {self._config.auth_token}",
            "x-api-key": self._config.api_key,
            "Content-Type": "application/json",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this executor created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def execute(
        self,
        path: str,
        method: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Envelope:
        """
        Execute a request.

        Args:
            path: Path appended to the base URL
            method: HTTP method (any case)
            parameters: Query parameters (GET) or JSON body (others)

        Returns:
            Envelope, possibly carrying a non-zero code

        Raises:
            NetworkError: If no usable response was received
        """
        method = method.upper()
        url = f"{self._config.rest_url}{path}"
        params = _clean(parameters)

        request_kwargs: Dict[str, Any] = {
            "headers": self.headers,
            "timeout": aiohttp.ClientTimeout(total=self._config.timeout_seconds),
        }
        if method == "GET":
            request_kwargs["params"] = {k: _query_value(v) for k, v in params.items()}
        elif params:
            request_kwargs["data"] = json.dumps(params, default=_json_default)

        logger.debug(
            f"{method} {path} headers={mask_headers(self.headers)} params={mask_params(params)}"
        )

        session = self._get_session()

        try:
            async with session.request(method, url, **request_kwargs) as response:
                status = response.status
                text = await response.text()

                if status >= 400:
                    return self._error_envelope(status, response.reason, text)

                return Envelope.from_body(self._decode(path, text), http_status=status)

        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to request {path}: {e}", path=path, cause=e)
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Failed to request {path}: timeout after {self._config.timeout_seconds}s",
                path=path,
                cause=e,
            )
        except UnicodeDecodeError as e:
            raise NetworkError(f"Failed to request {path}: undecodable response body", path=path, cause=e)

    # --------------------------------------------------------
    # INTERNAL
    # --------------------------------------------------------

    @staticmethod
    def _decode(path: str, text: str) -> Any:
        if not text:
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise NetworkError(f"Failed to request {path}: invalid JSON response", path=path, cause=e)

    @staticmethod
    def _error_envelope(status: int, reason: Optional[str], text: str) -> Envelope:
        """Map an HTTP error response to an envelope."""
        try:
            body = json.loads(text) if text else {}
        except json.JSONDecodeError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = body.get("code") or status
        message = body.get("message") or reason or text or f"HTTP {status}"

        logger.warning(f"HTTP {status} response: {message}[code:{code}]")

        return Envelope(
            code=code,
            message=message,
            data=body.get("data"),
            http_status=status,
            raw=body,
        )

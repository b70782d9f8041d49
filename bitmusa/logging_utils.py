"""
Bitmusa Client - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Keeps credentials out of log output:
- API key / bearer token in request headers
- Secrets in request parameters
- Listen keys embedded in private channel paths

============================================================
"""

import re
from typing import Any, Dict


# ============================================================
# SENSITIVE DATA PATTERNS
# ============================================================

# Header names that should be masked
SENSITIVE_HEADERS = {
    "authorization",
    "x-api-key",
}

# Parameter names that should be masked
SENSITIVE_PARAMS = {
    "apikey",
    "api_key",
    "authkey",
    "auth_token",
    "listenkey",
    "listen_key",
    "token",
}

# Private channel paths end with the listen key
_WALLET_PATH = re.compile(r"(/wallet/)([^/?#]+)")


# ============================================================
# MASKING FUNCTIONS
# ============================================================

def mask_value(value: str, show_chars: int = 4) -> str:
    """Keep a short prefix of a secret; values too short to shorten become ``***``."""
    text = str(value or "")
    prefix = text[:show_chars] if len(text) > show_chars else ""
    return f"{prefix}...***" if prefix else "***"


def _mask_credential(value: str) -> str:
    # "Bearer <token>" keeps its scheme so the header stays recognisable
    scheme, sep, token = str(value).partition(" ")
    if sep and scheme.lower() == "bearer":
        return f"{scheme} {mask_value(token)}"
    return mask_value(value)


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of the request headers with the api key and bearer token hidden."""
    return {
        key: _mask_credential(value) if key.lower() in SENSITIVE_HEADERS else value
        for key, value in (headers or {}).items()
    }


def mask_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of request parameters with secrets masked."""
    if not params:
        return {}

    masked = {}
    for key, value in params.items():
        if key.lower() in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        elif isinstance(value, dict):
            masked[key] = mask_params(value)
        else:
            masked[key] = value
    return masked


def mask_channel(channel_id: str) -> str:
    """
    Mask the listen key of a private channel path.

    Public channel identifiers are returned unchanged.
    """
    if not channel_id:
        return channel_id
    return _WALLET_PATH.sub(lambda m: f"{m.group(1)}{mask_value(m.group(2))}", channel_id)

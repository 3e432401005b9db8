"""Bearer authorization header helpers"""

import re
from typing import Optional

import httpx

BEARER_PATTERN = re.compile(r"^Bearer (.+)$", re.IGNORECASE)

# Values a careless client may serialize instead of an actual token
_EMPTY_TOKENS = {"undefined", "null", "none"}


def format_bearer(token: Optional[str]) -> Optional[str]:
    """Format an Authorization header value for the token

    Returns:
        "Bearer <token>", or None for an empty token
    """
    if not token:
        return None

    return f"Bearer {token}"


def parse_bearer(header_value: Optional[str]) -> Optional[str]:
    """Parse the token from an Authorization header value

    Args:
        header_value: Header value, e.g. "Bearer abc"

    Returns:
        The token, or None if the value is not a bearer authorization
    """
    if not header_value or not isinstance(header_value, str):
        return None

    match = BEARER_PATTERN.match(header_value)
    if not match:
        return None

    token = match.group(1).strip()
    if not token or token.lower() in _EMPTY_TOKENS:
        return None

    return token


def authorize_bearer(request: httpx.Request, token: str) -> httpx.Request:
    """Return a copy of the request carrying the token as bearer authorization

    The given request is left untouched, so it can be authorized again with
    a renewed token on retry.
    """
    headers = request.headers.copy()
    headers["Authorization"] = format_bearer(token)
    return httpx.Request(
        request.method,
        request.url,
        headers=headers,
        stream=request.stream,
        extensions=request.extensions,
    )

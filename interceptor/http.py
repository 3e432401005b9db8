"""Response status helpers"""

import logging
from typing import Any, Optional

import httpx

from .constants import STATUS_OK, STATUS_UNAUTHORIZED

logger = logging.getLogger(__name__)


def is_response_status(response: Optional[Any], status: int) -> bool:
    """Check if response status matches the provided status

    Args:
        response: Response object, may be None
        status: Query status

    Returns:
        True if the response exists and carries the given status
    """
    if response is None:
        return False

    return getattr(response, "status_code", None) == status


def is_response_ok(response: Optional[Any]) -> bool:
    return is_response_status(response, STATUS_OK)


def is_response_unauthorized(response: Optional[Any]) -> bool:
    """Default unauthorized check used when no policy override is configured"""
    return is_response_status(response, STATUS_UNAUTHORIZED)


async def close_response(response: Optional[Any]) -> None:
    """Release a response that will not be handed to the caller"""
    if isinstance(response, httpx.Response):
        try:
            await response.aclose()
        except httpx.HTTPError as e:
            logger.debug(f"Failed to close discarded response: {e}")

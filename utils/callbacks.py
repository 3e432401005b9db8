"""Helpers for calling user supplied policy callbacks"""

import inspect
from typing import Any


async def resolve(value: Any) -> Any:
    """Await value if it is awaitable, so sync and async callbacks look alike"""
    if inspect.isawaitable(value):
        return await value
    return value

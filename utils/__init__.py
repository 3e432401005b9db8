"""Shared utilities package for the token interceptor"""

from .bearer import authorize_bearer, format_bearer, parse_bearer
from .callbacks import resolve
from .logging_setup import setup_logging

__all__ = [
    "authorize_bearer",
    "format_bearer",
    "parse_bearer",
    "resolve",
    "setup_logging",
]

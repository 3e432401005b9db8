"""Token interceptor package

Intercepts outgoing HTTP requests, authorizes them with the current access
token and transparently renews the token, exactly once for all concurrent
requests, when a response reports it expired.
"""

from .constants import ERROR_INVALID_CONFIG, STATUS_OK, STATUS_UNAUTHORIZED
from .exceptions import (
    InterceptError,
    InvalidConfigError,
    RequestNotSentError,
    TokenStoreNotConfiguredError,
)
from .fetch_interceptor import FetchInterceptor
from .http import is_response_ok, is_response_status, is_response_unauthorized
from .models import TokenPair
from .pipeline import InterceptPipeline, create_request
from .policy import InterceptorConfig, default_config
from .token_store import TokenStore

__all__ = [
    "ERROR_INVALID_CONFIG",
    "STATUS_OK",
    "STATUS_UNAUTHORIZED",
    "InterceptError",
    "InvalidConfigError",
    "RequestNotSentError",
    "TokenStoreNotConfiguredError",
    "FetchInterceptor",
    "InterceptPipeline",
    "InterceptorConfig",
    "TokenPair",
    "TokenStore",
    "create_request",
    "default_config",
    "is_response_ok",
    "is_response_status",
    "is_response_unauthorized",
]

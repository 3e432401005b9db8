"""Interception policy: the callbacks which drive token renewal and retries.

Every callback may be a plain function or a coroutine function, results are
awaited when needed:

    create_access_token_request(refresh_token) -> httpx.Request
        Prepares the signed request used to renew the access token.
    parse_access_token(response) -> str
        Parses the access token from the token endpoint response. The
        response is handed over unread; call ``await response.aread()``
        before ``response.json()`` when reading the body.
    should_intercept(request) -> bool
        Whether the interceptor handles this request or lets it pass through.
    authorize_request(request, access_token) -> httpx.Request
        Returns the request with authorization applied.
    should_invalidate_access_token(response) -> bool
        Whether a response invalidates the current access token even though
        it is not unauthorized.
    is_response_unauthorized(response) -> bool
        Defaults to a 401 status check. Override to renew tokens for other
        responses.
    should_fetch(request) -> bool
        Last chance veto before the request is dispatched.
    on_access_token_change(access_token)
        Invoked when a renewed access token was stored.
    on_response(response)
        Invoked with every response handed to the caller.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

import settings
from .constants import REQUIRED_CALLBACKS
from .exceptions import InvalidConfigError
from .http import is_response_unauthorized


def _never(*args, **kwargs) -> bool:
    return False


class InterceptorConfig(BaseModel):
    """Validated interception policy"""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    create_access_token_request: Optional[Callable[..., Any]] = None
    parse_access_token: Optional[Callable[..., Any]] = None
    should_intercept: Optional[Callable[..., Any]] = _never
    authorize_request: Optional[Callable[..., Any]] = None
    should_invalidate_access_token: Optional[Callable[..., Any]] = _never
    is_response_unauthorized: Optional[Callable[..., Any]] = is_response_unauthorized
    should_fetch: Optional[Callable[..., Any]] = None
    on_access_token_change: Optional[Callable[..., Any]] = None
    on_response: Optional[Callable[..., Any]] = None
    fetch_retry_count: int = Field(default_factory=lambda: settings.FETCH_RETRY_COUNT, ge=0)
    should_wait_for_token_renewal: bool = Field(default_factory=lambda: settings.WAIT_FOR_TOKEN_RENEWAL)


def default_config() -> InterceptorConfig:
    """Config of an interceptor which has not been configured yet.

    It never intercepts, so every request passes straight through.
    """
    return InterceptorConfig()


def missing_callbacks(config: InterceptorConfig) -> List[str]:
    return [name for name in REQUIRED_CALLBACKS if getattr(config, name) is None]


def is_config_valid(config: InterceptorConfig) -> bool:
    return not missing_callbacks(config)


def merge_config(
    current: InterceptorConfig,
    overrides: Union[InterceptorConfig, Mapping[str, Any], None] = None,
    **kwargs: Any,
) -> InterceptorConfig:
    """Build a new config from the current one and the given overrides

    Args:
        current: Config the overrides are applied on
        overrides: Another config, or a mapping of field names to values
        **kwargs: Further field overrides

    Returns:
        The merged config

    Raises:
        InvalidConfigError: If a value fails validation or a required
            callback is missing after the merge
    """
    values: Dict[str, Any] = {name: getattr(current, name) for name in InterceptorConfig.model_fields}
    if isinstance(overrides, InterceptorConfig):
        values.update({name: getattr(overrides, name) for name in overrides.model_fields_set})
    elif overrides is not None:
        values.update(overrides)
    values.update(kwargs)

    try:
        merged = InterceptorConfig(**values)
    except ValidationError as e:
        fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise InvalidConfigError(fields, detail=f"{e.error_count()} validation error(s)") from e

    missing = missing_callbacks(merged)
    if missing:
        raise InvalidConfigError(missing, detail="required callback missing")

    return merged

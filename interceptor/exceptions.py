"""Errors raised by the token interceptor"""

from typing import Optional, Sequence

from .constants import ERROR_INVALID_CONFIG, ERROR_NOT_CONFIGURED, ERROR_REQUEST_NOT_SENT


class InterceptError(Exception):
    """Base class for token interceptor errors"""

    code: str = "intercept-error"


class InvalidConfigError(InterceptError):
    """Raised by configure() when the merged config is unusable.

    The previously configured state is left untouched.

    Attributes:
        fields: Names of the offending config fields, when known.
    """

    code = ERROR_INVALID_CONFIG

    def __init__(self, fields: Optional[Sequence[str]] = None, detail: Optional[str] = None) -> None:
        self.fields = list(fields or [])
        message = ERROR_INVALID_CONFIG
        if self.fields:
            message = f"{message}: {', '.join(self.fields)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class RequestNotSentError(InterceptError):
    """The pipeline finished without dispatching the request (vetoed by should_fetch)"""

    code = ERROR_REQUEST_NOT_SENT

    def __init__(self, request=None) -> None:
        self.request = request
        target = f" {request.method} {request.url}" if request is not None else ""
        super().__init__(f"Request{target} was not sent")


class TokenStoreNotConfiguredError(InterceptError):
    """Access token renewal was requested before configure() was called"""

    code = ERROR_NOT_CONFIGURED

    def __init__(self) -> None:
        super().__init__("Cannot renew access token: interceptor is not configured")

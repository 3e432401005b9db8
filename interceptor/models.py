"""Value types shared by the token store and the intercept pipeline"""

from dataclasses import dataclass
from typing import Optional, Union

import httpx


@dataclass(frozen=True)
class TokenPair:
    """Current credentials of a token store

    Attributes:
        refresh_token: Long-lived token used to obtain access tokens
        access_token: Short-lived token attached to intercepted requests,
            only meaningful while refresh_token is set
    """
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def is_authorized(self) -> bool:
        return self.refresh_token is not None


@dataclass(frozen=True)
class RequestUnit:
    """State of one logical request while it flows through the pipeline

    Stages never mutate a unit; they return a copy built with
    dataclasses.replace(). The unit survives retries so fetch_count and the
    last response carry over from one attempt to the next.

    Attributes:
        source: Request as built from the caller's arguments
        request: Request of the current attempt, possibly authorized
        response: Last response received, None until a fetch happened
        should_intercept: Result of the should_intercept policy
        should_invalidate_access_token: Result of the invalidation policy
        should_fetch: False when the should_fetch policy vetoed dispatch
        access_token: Token used to authorize the current attempt
        fetch_count: Number of dispatches performed so far
    """
    source: httpx.Request
    request: Optional[httpx.Request] = None
    response: Optional[httpx.Response] = None
    should_intercept: bool = False
    should_invalidate_access_token: bool = False
    should_fetch: bool = True
    access_token: Optional[str] = None
    fetch_count: int = 0


@dataclass(frozen=True)
class Completed:
    """The attempt produced a response which can be handed to the caller"""
    unit: RequestUnit


@dataclass(frozen=True)
class TokenExpired:
    """The intercepted response was unauthorized; renew and run again"""
    unit: RequestUnit


@dataclass(frozen=True)
class RetryExceeded:
    """The retry budget is spent; the caller gets the last response"""
    unit: RequestUnit


@dataclass(frozen=True)
class Failed:
    """The attempt failed with an error which goes to the caller"""
    error: Exception


Outcome = Union[Completed, TokenExpired, RetryExceeded, Failed]

"""Per-request interception pipeline.

Every intercepted request runs through an ordered sequence of stages. Each
stage receives a RequestUnit and returns a new one, or ends the attempt with
an outcome value:

    start_attempt -> should_intercept -> authorize_request -> should_fetch
    -> fetch_request -> should_invalidate_access_token
    -> invalidate_access_token -> handle_response

The retry driver matches the outcome of an attempt. TokenExpired renews the
access token and runs the stages again for the same unit; RetryExceeded
hands the last response to the caller; Failed raises the error.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Optional, Union

import httpx

from utils.callbacks import resolve
from .exceptions import RequestNotSentError
from .http import close_response
from .models import Completed, Failed, Outcome, RequestUnit, RetryExceeded, TokenExpired
from .policy import InterceptorConfig, default_config
from .token_store import Fetch, TokenStore

logger = logging.getLogger(__name__)

StageResult = Union[RequestUnit, Outcome]


def create_request(*args: Any, **kwargs: Any) -> httpx.Request:
    """Build the request descriptor from intercept() arguments

    Accepts either a ready httpx.Request as the only argument or the same
    arguments as httpx.Request(method, url, ...).
    """
    if len(args) == 1 and not kwargs and isinstance(args[0], httpx.Request):
        return args[0]
    return httpx.Request(*args, **kwargs)


def describe(request: Optional[httpx.Request]) -> str:
    if request is None:
        return "<no request>"
    # query strings are left out, they may carry credentials
    return f"{request.method} {request.url.host}{request.url.path}"


def _log_background_renewal(renewal: "asyncio.Future[Optional[str]]") -> None:
    if renewal.cancelled():
        return
    error = renewal.exception()
    if error is not None:
        logger.debug(f"Background access token renewal failed: {error!r}")


class InterceptPipeline:
    """Authorizes, dispatches and retries intercepted requests"""

    def __init__(self, fetch: Fetch, token_store: TokenStore, config: Optional[InterceptorConfig] = None):
        """Initialize pipeline

        Args:
            fetch: Transport function used to dispatch requests
            token_store: Store providing credentials and renewals
            config: Interception policy (defaults to the unconfigured policy)
        """
        self.fetch = fetch
        self.token_store = token_store
        self.config = config or default_config()
        self._stages = (
            self.start_attempt,
            self.should_intercept,
            self.authorize_request,
            self.should_fetch,
            self.fetch_request,
            self.should_invalidate_access_token,
            self.invalidate_access_token,
        )

    def configure(self, config: InterceptorConfig) -> None:
        self.config = config

    async def intercept(self, *args: Any, **kwargs: Any) -> httpx.Response:
        """Dispatch a request the way the transport would, renewing tokens as needed

        Args:
            *args, **kwargs: An httpx.Request, or arguments for httpx.Request

        Returns:
            The response. It may still be unauthorized when the retry budget
            ran out.

        Raises:
            Whatever the transport raised for this request, errors of the
            token renewal this request waited for, and RequestNotSentError
            when should_fetch vetoed the request.
        """
        unit = RequestUnit(source=create_request(*args, **kwargs))

        # the first request after authorize() with only a refresh token
        # waits for an access token instead of going out unauthorized
        if not self.token_store.get_authorization().access_token:
            await self.token_store.renew()

        return await self.fetch_with_retry(unit)

    async def fetch_with_retry(self, unit: RequestUnit) -> httpx.Response:
        while True:
            outcome = await self.run_stages(unit)

            if isinstance(outcome, TokenExpired):
                # a 401 always earns a renewal, another request may already have renewed
                logger.info(f"{describe(outcome.unit.request)} unauthorized, renewing access token and retrying")
                await self.token_store.renew()
                unit = outcome.unit
                continue

            if isinstance(outcome, RetryExceeded):
                logger.warning(
                    f"{describe(outcome.unit.request)} still unauthorized after "
                    f"{outcome.unit.fetch_count} attempt(s), returning last response"
                )
                return await self._deliver(outcome.unit.response)

            if isinstance(outcome, Failed):
                raise outcome.error

            return await self._deliver(outcome.unit.response)

    async def run_stages(self, unit: RequestUnit) -> Outcome:
        """Run one attempt for the unit and report how it ended"""
        try:
            for stage in self._stages:
                result = await stage(unit)
                if not isinstance(result, RequestUnit):
                    return result
                unit = result
            return await self.handle_response(unit)
        except Exception as e:
            return Failed(e)

    async def start_attempt(self, unit: RequestUnit) -> StageResult:
        return replace(
            unit,
            request=unit.source,
            access_token=None,
            should_intercept=False,
            should_invalidate_access_token=False,
            should_fetch=True,
        )

    async def should_intercept(self, unit: RequestUnit) -> StageResult:
        should_intercept = bool(await resolve(self.config.should_intercept(unit.request)))
        logger.debug(f"{describe(unit.request)} intercept={should_intercept}")
        return replace(unit, should_intercept=should_intercept)

    async def authorize_request(self, unit: RequestUnit) -> StageResult:
        if not unit.should_intercept:
            return unit

        access_token = self.token_store.get_authorization().access_token
        if unit.request is None or not access_token:
            return unit

        request = await resolve(self.config.authorize_request(unit.request, access_token))
        return replace(unit, request=request, access_token=access_token)

    async def should_fetch(self, unit: RequestUnit) -> StageResult:
        if self.config.should_fetch is None:
            return unit

        should_fetch = bool(await resolve(self.config.should_fetch(unit.request)))
        if not should_fetch:
            logger.debug(f"{describe(unit.request)} vetoed by should_fetch")
        return replace(unit, should_fetch=should_fetch)

    async def fetch_request(self, unit: RequestUnit) -> StageResult:
        if not unit.should_fetch:
            # a vetoed retry must not be judged by the previous attempt's response
            await close_response(unit.response)
            return replace(unit, response=None)

        if unit.fetch_count > self.config.fetch_retry_count:
            return RetryExceeded(unit)

        # superseded by the response of this attempt
        await close_response(unit.response)

        response = await self.fetch(unit.request)
        logger.debug(f"{describe(unit.request)} -> {response.status_code} (attempt {unit.fetch_count + 1})")
        return replace(unit, response=response, fetch_count=unit.fetch_count + 1)

    async def should_invalidate_access_token(self, unit: RequestUnit) -> StageResult:
        if not unit.should_intercept or unit.response is None:
            return unit
        if self.config.should_invalidate_access_token is None:
            return unit

        invalidate = bool(await resolve(self.config.should_invalidate_access_token(unit.response)))
        return replace(unit, should_invalidate_access_token=invalidate)

    async def invalidate_access_token(self, unit: RequestUnit) -> StageResult:
        if not unit.should_intercept or not unit.should_invalidate_access_token:
            return unit

        logger.info(f"{describe(unit.request)} invalidated the access token")
        renewal = self.token_store.renew()
        if self.config.should_wait_for_token_renewal:
            await renewal
        else:
            renewal.add_done_callback(_log_background_renewal)
        return unit

    async def handle_response(self, unit: RequestUnit) -> Outcome:
        if unit.response is None:
            return Failed(RequestNotSentError(unit.request))

        if unit.should_intercept and await resolve(self.config.is_response_unauthorized(unit.response)):
            return TokenExpired(unit)

        return Completed(unit)

    async def _deliver(self, response: httpx.Response) -> httpx.Response:
        if self.config.on_response:
            await resolve(self.config.on_response(response))
        return response

"""Credentials and single-flight access token renewal.

The token store keeps the current refresh/access token pair and makes sure
that only one renewal request is in flight at any time. Every caller asking
for a renewal while one is running gets the same pending result, so N
concurrently unauthorized requests cause exactly one call to the token
endpoint.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from utils.callbacks import resolve
from .exceptions import TokenStoreNotConfiguredError
from .http import close_response
from .models import TokenPair
from .policy import InterceptorConfig, default_config

logger = logging.getLogger(__name__)

Fetch = Callable[[httpx.Request], Awaitable[httpx.Response]]


class TokenStore:
    """Holds the token pair and the in-flight renewal, if any"""

    def __init__(self, fetch: Fetch, config: Optional[InterceptorConfig] = None):
        """Initialize token store

        Args:
            fetch: Transport function used to call the token endpoint
            config: Interception policy (defaults to the unconfigured policy)
        """
        self.fetch = fetch
        self.config = config or default_config()
        self._tokens = TokenPair()
        self._renewal: Optional[asyncio.Task] = None

    def configure(self, config: InterceptorConfig) -> None:
        self.config = config

    def authorize(self, refresh_token: Optional[str], access_token: Optional[str] = None) -> None:
        """Replace the stored credentials. Does not start a renewal."""
        self._tokens = TokenPair(refresh_token=refresh_token, access_token=access_token)

    def get_authorization(self) -> TokenPair:
        return self._tokens

    def clear(self) -> None:
        """Forget both tokens. Call this to log the user out."""
        self._tokens = TokenPair()

    def is_authorized(self) -> bool:
        return self._tokens.is_authorized

    @property
    def is_renewing(self) -> bool:
        return self._renewal is not None

    def renew(self) -> "asyncio.Future[Optional[str]]":
        """Renew the access token with the current refresh token

        Must be called from a running event loop. The renewal task is created
        and stored before this method returns, so a second caller arriving
        before the first one awaits sees the same task.

        Returns:
            Awaitable resolving to the new access token, or None when the
            store is not authorized, the refresh token was rejected, or the
            credentials were cleared or replaced while it ran. It
            raises when the token request itself failed.
        """
        if self._renewal is not None:
            return asyncio.shield(self._renewal)

        if not self.is_authorized():
            done = asyncio.get_running_loop().create_future()
            done.set_result(None)
            return done

        logger.info("Renewing access token...")
        task = asyncio.ensure_future(self._renew_access_token(self._tokens.refresh_token))
        task.add_done_callback(self._on_renewal_done)
        self._renewal = task
        return asyncio.shield(task)

    async def _renew_access_token(self, refresh_token: str) -> Optional[str]:
        config = self.config
        try:
            if config.create_access_token_request is None or config.parse_access_token is None:
                raise TokenStoreNotConfiguredError()

            token_request = await resolve(config.create_access_token_request(refresh_token))
            response = await self.fetch(token_request)
            # response received, later renew() calls must start fresh
            self._release_slot()

            try:
                if await resolve(config.is_response_unauthorized(response)):
                    logger.warning("Refresh token was rejected by the token endpoint, clearing credentials")
                    self._clear_if_current(refresh_token)
                    return None

                access_token = await resolve(config.parse_access_token(response))
            finally:
                await close_response(response)

            if not self._is_current(refresh_token):
                logger.info("Credentials changed during renewal, discarding renewed access token")
                return None

            self._tokens = TokenPair(refresh_token=refresh_token, access_token=access_token)
            if config.on_access_token_change:
                await resolve(config.on_access_token_change(access_token))
        except Exception as e:
            self._release_slot()
            self._clear_if_current(refresh_token)
            logger.error(f"Access token renewal failed: {e!r}")
            raise

        logger.info("Successfully renewed access token")
        return access_token

    def _is_current(self, refresh_token: str) -> bool:
        # clear() or authorize() may have run while the token request was pending
        return self._tokens.refresh_token == refresh_token

    def _clear_if_current(self, refresh_token: str) -> None:
        if self._is_current(refresh_token):
            self.clear()

    def _release_slot(self) -> None:
        # a newer renewal may already own the slot
        if self._renewal is asyncio.current_task():
            self._renewal = None

    def _on_renewal_done(self, task: asyncio.Task) -> None:
        if self._renewal is task:
            self._renewal = None
        # mark the failure as retrieved, waiting callers get it through their shield
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Renewal task finished with an error")

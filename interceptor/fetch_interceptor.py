"""Public entry point of the token interceptor"""

import logging
from typing import Any, Mapping, Optional, Union

import httpx

from .models import TokenPair
from .pipeline import InterceptPipeline
from .policy import InterceptorConfig, default_config, merge_config
from .token_store import Fetch, TokenStore

logger = logging.getLogger(__name__)


class FetchInterceptor:
    """Intercepts requests, authorizes them and renews the access token on 401

    This class wires the token store and the intercept pipeline together
    around one transport function:
    - configure() sets the interception policy
    - authorize() / get_authorization() / clear() manage credentials
    - intercept() dispatches a request through the pipeline
    - unload() stops interception altogether
    """

    def __init__(self, fetch: Fetch):
        """Initialize fetch interceptor

        Args:
            fetch: Transport function used for intercepted requests and
                token renewals alike
        """
        self.fetch = fetch
        self.config = default_config()
        self.token_store = TokenStore(fetch, self.config)
        self.pipeline = InterceptPipeline(fetch, self.token_store, self.config)

    def configure(
        self,
        config: Union[InterceptorConfig, Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> None:
        """Configure the interceptor

        Values are merged onto the current config. Nothing changes when the
        merged config is invalid.

        Args:
            config: InterceptorConfig or mapping of config fields
            **overrides: Individual config fields

        Raises:
            InvalidConfigError: If a required callback is missing or a value
                fails validation
        """
        merged = merge_config(self.config, config, **overrides)
        self._apply(merged)
        logger.debug("Fetch interceptor configured")

    def authorize(self, refresh_token: Optional[str], access_token: Optional[str] = None) -> None:
        """Authorize the interceptor with the given tokens

        Args:
            refresh_token: Refresh token
            access_token: Access token, renewed on first use when omitted
        """
        self.token_store.authorize(refresh_token, access_token)

    def get_authorization(self) -> TokenPair:
        return self.token_store.get_authorization()

    def clear(self) -> None:
        """Clear authorization tokens. Call this to log the user out."""
        self.token_store.clear()

    def unload(self) -> None:
        """Clear authorization and restore the default config

        The interceptor stops intercepting, requests pass straight through.
        """
        self.clear()
        self._apply(default_config())
        logger.debug("Fetch interceptor unloaded")

    async def intercept(self, *args: Any, **kwargs: Any) -> httpx.Response:
        """Dispatch a request through the interception pipeline

        Args:
            *args, **kwargs: An httpx.Request, or arguments for httpx.Request

        Returns:
            Response, resolved the same way the transport would resolve it
        """
        return await self.pipeline.intercept(*args, **kwargs)

    def _apply(self, config: InterceptorConfig) -> None:
        self.config = config
        self.token_store.configure(config)
        self.pipeline.configure(config)

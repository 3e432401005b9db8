"""httpx transport which routes every request through a FetchInterceptor"""

import logging
from typing import Any, Optional

import httpx

from interceptor import FetchInterceptor
from settings import CONNECT_TIMEOUT, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class InterceptTransport(httpx.AsyncBaseTransport):
    """Async transport wrapping an inner transport with token interception

    Token renewals and intercepted requests both go out through the inner
    transport, so renewal requests are never intercepted themselves.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        interceptor: Optional[FetchInterceptor] = None,
    ):
        """Initialize intercept transport

        Args:
            transport: Inner transport doing the network work
                (creates httpx.AsyncHTTPTransport if None)
            interceptor: Interceptor to route requests through
                (creates one bound to the inner transport if None)
        """
        self.transport = transport or httpx.AsyncHTTPTransport()
        self.interceptor = interceptor or FetchInterceptor(self.transport.handle_async_request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.interceptor.intercept(request)

    async def aclose(self) -> None:
        await self.transport.aclose()


class InterceptClient(httpx.AsyncClient):
    """AsyncClient sending every request through an InterceptTransport"""

    def __init__(self, transport: InterceptTransport, **client_kwargs: Any):
        super().__init__(transport=transport, **client_kwargs)
        self._intercept_transport = transport

    @property
    def interceptor(self) -> FetchInterceptor:
        return self._intercept_transport.interceptor


def create_client(
    transport: Optional[httpx.AsyncBaseTransport] = None,
    interceptor: Optional[FetchInterceptor] = None,
    **client_kwargs: Any,
) -> InterceptClient:
    """Create an AsyncClient whose requests go through token interception

    Args:
        transport: Inner transport (creates httpx.AsyncHTTPTransport if None)
        interceptor: Interceptor to use (creates one if None); reach it later
            through client.interceptor
        **client_kwargs: Passed on to httpx.AsyncClient

    Returns:
        Configured client. Call client.interceptor.configure() and
        client.interceptor.authorize() before sending intercepted requests.
    """
    intercept_transport = InterceptTransport(transport=transport, interceptor=interceptor)
    client_kwargs.setdefault("timeout", httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT))
    client = InterceptClient(intercept_transport, **client_kwargs)
    logger.debug("Created intercepting HTTP client")
    return client

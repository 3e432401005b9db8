"""httpx integration for the token interceptor"""

from .httpx_transport import InterceptClient, InterceptTransport, create_client

__all__ = [
    "InterceptClient",
    "InterceptTransport",
    "create_client",
]

"""Shared helpers for the token interceptor tests."""

from typing import Any, Dict, List, Optional

import httpx

from utils.bearer import authorize_bearer
from tests.server import BASE_URL


class RecordingFetch:
    """Transport function which records every dispatched request"""

    def __init__(self, transport: httpx.AsyncBaseTransport, fail_paths: Optional[List[str]] = None):
        self.transport = transport
        self.fail_paths = fail_paths or []
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path in self.fail_paths:
            raise httpx.ConnectError("Connection refused", request=request)
        return await self.transport.handle_async_request(request)

    def count(self, path: str) -> int:
        return sum(1 for request in self.requests if request.url.path == path)


def token_request(refresh_token: str, query: str = "") -> httpx.Request:
    url = f"{BASE_URL}/token{query}"
    return httpx.Request("GET", url, headers={"authorization": f"Bearer {refresh_token}"})


async def parse_access_token(response: httpx.Response) -> Optional[str]:
    await response.aread()
    data = response.json()
    return data.get("accessToken") if data else None


def make_config(**overrides: Any) -> Dict[str, Any]:
    """Build a complete interception policy for the test server.

    Module-level function (not a fixture) so tests can pass overrides.
    """
    config = {
        "fetch_retry_count": 1,
        "create_access_token_request": token_request,
        "should_intercept": lambda request: request.url.path != "/token",
        "parse_access_token": parse_access_token,
        "authorize_request": authorize_bearer,
        "on_access_token_change": None,
        "on_response": None,
        "is_response_unauthorized": lambda response: response.status_code == 401,
    }
    config.update(overrides)
    return config


async def read_json(response: httpx.Response) -> Any:
    await response.aread()
    return response.json()

"""Shared test fixtures for the token interceptor test suite."""

import httpx
import pytest
from fastapi import FastAPI

from interceptor import FetchInterceptor
from tests.helpers import RecordingFetch
from tests.server import create_app


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest.fixture
def asgi_transport(app: FastAPI) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=app)


@pytest.fixture
def fetch(asgi_transport: httpx.ASGITransport) -> RecordingFetch:
    """Transport function dispatching to the test server in-process."""
    return RecordingFetch(asgi_transport)


@pytest.fixture
def interceptor(fetch: RecordingFetch) -> FetchInterceptor:
    return FetchInterceptor(fetch)

"""Tests for TokenStore single-flight renewal."""

import asyncio
import dataclasses
from unittest.mock import MagicMock

import httpx
import pytest

from interceptor import TokenPair, TokenStore, TokenStoreNotConfiguredError
from interceptor.policy import default_config, merge_config
from tests.helpers import RecordingFetch, make_config, parse_access_token, token_request
from tests.server import INVALID_TOKEN, REFRESH_TOKEN, VALID_TOKEN


def make_store(fetch, **overrides) -> TokenStore:
    return TokenStore(fetch, merge_config(default_config(), make_config(**overrides)))


class TestTokenStoreCredentials:
    """Tests for authorize(), clear() and is_authorized()."""

    def test_starts_unauthorized(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)

        assert store.get_authorization() == TokenPair()
        assert store.is_authorized() is False

    def test_authorize_does_not_renew(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)
        store.authorize(REFRESH_TOKEN)

        assert store.is_authorized() is True
        assert store.is_renewing is False
        assert fetch.requests == []

    def test_clear_resets_both_tokens(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)
        store.authorize(REFRESH_TOKEN, VALID_TOKEN)
        store.clear()

        assert store.get_authorization() == TokenPair(None, None)
        assert store.is_authorized() is False

    def test_authorization_is_a_read_only_snapshot(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)
        store.authorize(REFRESH_TOKEN, VALID_TOKEN)
        snapshot = store.get_authorization()

        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.access_token = "other"

        store.clear()
        assert snapshot == TokenPair(REFRESH_TOKEN, VALID_TOKEN)


class TestTokenStoreRenew:
    """Tests for renew()."""

    @pytest.mark.asyncio
    async def test_noop_when_unauthorized(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)

        assert await store.renew() is None
        assert fetch.requests == []

    @pytest.mark.asyncio
    async def test_renews_access_token(self, fetch: RecordingFetch) -> None:
        on_access_token_change = MagicMock()
        store = make_store(fetch, on_access_token_change=on_access_token_change)
        store.authorize(REFRESH_TOKEN)

        token = await store.renew()

        assert token == VALID_TOKEN
        assert store.get_authorization() == TokenPair(REFRESH_TOKEN, VALID_TOKEN)
        on_access_token_change.assert_called_once_with(VALID_TOKEN)
        assert fetch.requests[0].headers["authorization"] == f"Bearer {REFRESH_TOKEN}"

    @pytest.mark.parametrize("callers", [1, 2, 5, 20])
    @pytest.mark.asyncio
    async def test_concurrent_renewals_share_one_request(self, fetch: RecordingFetch, callers: int) -> None:
        store = make_store(
            fetch, create_access_token_request=lambda refresh_token: token_request(refresh_token, "?duration=20")
        )
        store.authorize(REFRESH_TOKEN)

        tokens = await asyncio.gather(*(store.renew() for _ in range(callers)))

        assert tokens == [VALID_TOKEN] * callers
        assert fetch.count("/token") == 1

    @pytest.mark.asyncio
    async def test_in_flight_slot_is_set_synchronously(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)
        store.authorize(REFRESH_TOKEN)

        first = store.renew()
        assert store.is_renewing is True
        second = store.renew()

        assert await first == await second == VALID_TOKEN
        assert fetch.count("/token") == 1

    @pytest.mark.asyncio
    async def test_renewal_after_completion_starts_fresh(self, fetch: RecordingFetch) -> None:
        store = make_store(fetch)
        store.authorize(REFRESH_TOKEN)

        await store.renew()
        assert store.is_renewing is False
        await store.renew()

        assert fetch.count("/token") == 2

    @pytest.mark.asyncio
    async def test_rejected_refresh_token_clears_credentials(self, fetch: RecordingFetch) -> None:
        on_access_token_change = MagicMock()
        store = make_store(fetch, on_access_token_change=on_access_token_change)
        store.authorize("invalid_refresh_token", "stale")

        token = await store.renew()

        assert token is None
        assert store.get_authorization() == TokenPair()
        assert store.is_renewing is False
        on_access_token_change.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_failure_rejects_and_clears(self, asgi_transport: httpx.ASGITransport) -> None:
        fetch = RecordingFetch(asgi_transport, fail_paths=["/token"])
        store = make_store(fetch)
        store.authorize(REFRESH_TOKEN, "stale")

        results = await asyncio.gather(store.renew(), store.renew(), return_exceptions=True)

        assert all(isinstance(result, httpx.ConnectError) for result in results)
        assert fetch.count("/token") == 1
        assert store.get_authorization() == TokenPair()
        assert store.is_renewing is False

    @pytest.mark.asyncio
    async def test_parse_failure_rejects_and_clears(self, fetch: RecordingFetch) -> None:
        def parse_access_token(response: httpx.Response) -> str:
            raise ValueError("malformed token response")

        store = make_store(fetch, parse_access_token=parse_access_token)
        store.authorize(REFRESH_TOKEN)

        with pytest.raises(ValueError):
            await store.renew()

        assert store.get_authorization() == TokenPair()
        assert store.is_renewing is False

    @pytest.mark.asyncio
    async def test_sync_callbacks(self, fetch: RecordingFetch) -> None:
        store = make_store(
            fetch,
            create_access_token_request=lambda refresh_token: token_request(refresh_token, "?invalid=true"),
            parse_access_token=lambda response: "parsed",
        )
        store.authorize(REFRESH_TOKEN)

        assert await store.renew() == "parsed"
        assert store.get_authorization().access_token == "parsed"

    @pytest.mark.asyncio
    async def test_async_callbacks(self, fetch: RecordingFetch) -> None:
        async def create_access_token_request(refresh_token: str) -> httpx.Request:
            return token_request(refresh_token, "?invalid=true")

        store = make_store(fetch, create_access_token_request=create_access_token_request)
        store.authorize(REFRESH_TOKEN)

        assert await store.renew() == INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_not_configured(self, fetch: RecordingFetch) -> None:
        store = TokenStore(fetch)
        store.authorize(REFRESH_TOKEN)

        with pytest.raises(TokenStoreNotConfiguredError):
            await store.renew()

        assert store.get_authorization() == TokenPair()
        assert fetch.requests == []

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_renewal(self, fetch: RecordingFetch) -> None:
        store = make_store(
            fetch, create_access_token_request=lambda refresh_token: token_request(refresh_token, "?duration=50")
        )
        store.authorize(REFRESH_TOKEN)

        impatient = asyncio.ensure_future(store.renew())
        patient = store.renew()
        await asyncio.sleep(0.01)
        impatient.cancel()

        assert await patient == VALID_TOKEN
        assert impatient.cancelled()


class TestTokenStoreOverlappingChanges:
    """Renewals racing other renewals and credential changes."""

    @pytest.mark.asyncio
    async def test_failed_renewal_keeps_newer_renewal_in_flight(self, fetch: RecordingFetch) -> None:
        parsing = asyncio.Event()
        second_started = asyncio.Event()
        calls = 0

        async def parse_first_fails(response: httpx.Response) -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                parsing.set()
                await second_started.wait()
                raise ValueError("malformed token response")
            return await parse_access_token(response)

        store = make_store(
            fetch,
            create_access_token_request=lambda refresh_token: token_request(refresh_token, "?duration=50"),
            parse_access_token=parse_first_fails,
        )
        store.authorize(REFRESH_TOKEN)

        first = store.renew()
        await parsing.wait()
        assert store.is_renewing is False
        second = store.renew()
        assert store.is_renewing is True
        second_started.set()

        with pytest.raises(ValueError):
            await first

        assert store.is_renewing is True
        store.authorize(REFRESH_TOKEN)
        third = store.renew()

        assert await second == await third == VALID_TOKEN
        assert fetch.count("/token") == 2

    @pytest.mark.asyncio
    async def test_clear_during_renewal_keeps_store_logged_out(self, fetch: RecordingFetch) -> None:
        on_access_token_change = MagicMock()
        store = make_store(
            fetch,
            create_access_token_request=lambda refresh_token: token_request(refresh_token, "?duration=50"),
            on_access_token_change=on_access_token_change,
        )
        store.authorize(REFRESH_TOKEN, "stale")

        renewal = store.renew()
        await asyncio.sleep(0.01)
        store.clear()

        assert await renewal is None
        assert store.get_authorization() == TokenPair()
        on_access_token_change.assert_not_called()

    @pytest.mark.asyncio
    async def test_authorize_during_renewal_keeps_new_credentials(self, fetch: RecordingFetch) -> None:
        store = make_store(
            fetch, create_access_token_request=lambda refresh_token: token_request(refresh_token, "?duration=50")
        )
        store.authorize(REFRESH_TOKEN)

        renewal = store.renew()
        await asyncio.sleep(0.01)
        store.authorize("other_refresh_token", "other_access_token")

        assert await renewal is None
        assert store.get_authorization() == TokenPair("other_refresh_token", "other_access_token")

    @pytest.mark.asyncio
    async def test_failure_after_authorize_keeps_new_credentials(self, asgi_transport: httpx.ASGITransport) -> None:
        fetch = RecordingFetch(asgi_transport)

        def parse_access_token(response: httpx.Response) -> str:
            store.authorize("other_refresh_token")
            raise ValueError("malformed token response")

        store = make_store(fetch, parse_access_token=parse_access_token)
        store.authorize(REFRESH_TOKEN)

        with pytest.raises(ValueError):
            await store.renew()

        assert store.get_authorization() == TokenPair("other_refresh_token", None)

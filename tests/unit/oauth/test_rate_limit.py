"""Tests for revocation rate limiting."""

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import ValidationError

from revocation.core.app import create_app
from revocation.oauth.rate_limit import (
    MemoryRateLimitStore,
    RateLimitOptions,
    merge_rate_limit_options,
)

CLIENT_ID = "client-1"
CLIENT_SECRET = "secret-1"
PATH = "/oauth/revoke"
FORM = {"client_id": CLIENT_ID, "client_secret": CLIENT_SECRET, "token": "t"}


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMergeOptions:
    """Tests for merge_rate_limit_options."""

    def test_defaults(self) -> None:
        opts = merge_rate_limit_options(None)
        assert opts.window_seconds == 15 * 60
        assert opts.max_requests == 50
        assert opts.standard_headers is True
        assert opts.legacy_headers is False

    def test_overrides_keep_other_defaults(self) -> None:
        opts = merge_rate_limit_options({"max_requests": 5, "legacy_headers": True})
        assert opts.max_requests == 5
        assert opts.legacy_headers is True
        assert opts.window_seconds == 15 * 60

    def test_options_instance_passes_through(self) -> None:
        given = RateLimitOptions(max_requests=3)
        assert merge_rate_limit_options(given) is given

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            merge_rate_limit_options({"maximum": 3})


class TestMemoryStore:
    """Tests for the fixed-window memory store."""

    def test_counts_within_window(self) -> None:
        clock = _Clock()
        store = MemoryRateLimitStore(60, clock=clock)
        store.increment("a")
        hit = store.increment("a")
        assert hit.total_hits == 2
        assert hit.reset_in == 60

    def test_keys_are_independent(self) -> None:
        store = MemoryRateLimitStore(60, clock=_Clock())
        store.increment("a")
        assert store.increment("b").total_hits == 1

    def test_window_resets(self) -> None:
        clock = _Clock()
        store = MemoryRateLimitStore(60, clock=clock)
        store.increment("a")
        store.increment("a")
        clock.now += 60
        assert store.increment("a").total_hits == 1

    def test_cleanup_drops_expired(self) -> None:
        clock = _Clock()
        store = MemoryRateLimitStore(60, clock=clock)
        store.increment("a")
        clock.now += 30
        store.increment("b")
        clock.now += 31
        assert store.cleanup() == 1
        assert len(store) == 1

    def test_expired_windows_evicted_while_counting(self) -> None:
        clock = _Clock()
        store = MemoryRateLimitStore(60, clock=clock)
        for i in range(10_000):
            store.increment(f"caller-{i}")
            clock.now += 1
        assert len(store) <= 2 * 60 + 1


def _client_for(provider, rate_limit) -> AsyncClient:
    app = create_app(provider=provider, rate_limit=rate_limit)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestRateLimitStage:
    """Tests for the rate-limit stage in front of authentication."""

    async def test_standard_headers(self, provider) -> None:
        async with _client_for(provider, {"max_requests": 3}) as ac:
            resp = await ac.post(PATH, data=FORM)
        assert resp.status_code == 200
        assert resp.headers["ratelimit-limit"] == "3"
        assert resp.headers["ratelimit-remaining"] == "2"
        assert resp.headers["ratelimit-policy"] == "3;w=900"
        assert "x-ratelimit-limit" not in resp.headers

    async def test_legacy_headers(self, provider) -> None:
        rate_limit = {"standard_headers": False, "legacy_headers": True}
        async with _client_for(provider, rate_limit) as ac:
            resp = await ac.post(PATH, data=FORM)
        assert resp.headers["x-ratelimit-limit"] == "50"
        assert resp.headers["x-ratelimit-remaining"] == "49"
        assert "ratelimit-limit" not in resp.headers

    async def test_exceeding_limit_rejected(self, provider) -> None:
        async with _client_for(provider, {"max_requests": 2}) as ac:
            for _ in range(2):
                assert (await ac.post(PATH, data=FORM)).status_code == 200
            resp = await ac.post(PATH, data=FORM)
        assert resp.status_code == 429
        assert resp.json() == {
            "error": "too_many_requests",
            "error_description": (
                "You have exceeded the rate limit for token revocation requests"
            ),
        }
        assert resp.headers["ratelimit-remaining"] == "0"
        assert "retry-after" in resp.headers
        assert len(provider.calls) == 2

    async def test_rejection_skips_authentication(
        self, provider, clients_store
    ) -> None:
        lookups: list[str] = []
        original = clients_store.get_client

        async def _tracking(client_id: str):
            lookups.append(client_id)
            return await original(client_id)

        clients_store.get_client = _tracking
        async with _client_for(provider, {"max_requests": 1}) as ac:
            await ac.post(PATH, data=FORM)
            resp = await ac.post(PATH, data=FORM)
        assert resp.status_code == 429
        assert lookups == [CLIENT_ID]

    async def test_custom_message(self, provider) -> None:
        rate_limit = {"max_requests": 0, "message": "Slow down"}
        async with _client_for(provider, rate_limit) as ac:
            resp = await ac.post(PATH, data=FORM)
        assert resp.status_code == 429
        assert resp.json()["error_description"] == "Slow down"

    async def test_failed_auth_counts_toward_limit(self, provider) -> None:
        async with _client_for(provider, {"max_requests": 1}) as ac:
            bad = await ac.post(PATH, data={**FORM, "client_secret": "wrong"})
            resp = await ac.post(PATH, data=FORM)
        assert bad.status_code == 400
        assert resp.status_code == 429

    async def test_disabled_never_limits(self, provider) -> None:
        async with _client_for(provider, False) as ac:
            for _ in range(60):
                resp = await ac.post(PATH, data=FORM)
                assert resp.status_code == 200
        assert "ratelimit-limit" not in resp.headers
        assert len(provider.calls) == 60

    async def test_custom_key_func(self, provider) -> None:
        rate_limit = {
            "max_requests": 1,
            "key_func": lambda request: request.headers.get("x-api-key", ""),
        }
        async with _client_for(provider, rate_limit) as ac:
            first = await ac.post(PATH, data=FORM, headers={"x-api-key": "a"})
            second = await ac.post(PATH, data=FORM, headers={"x-api-key": "b"})
        assert first.status_code == 200
        assert second.status_code == 200

"""
Tests for workforce_sync/downstream/token_manager.py - access token lifecycle.
"""
import threading
import time
import uuid
from datetime import timedelta

import httpx
import pytest

from workforce_sync.core.exceptions import AuthError, TokenRefreshError
from workforce_sync.downstream.token_manager import TokenLifecycleManager, TokenState

from tests.utils.downstream_stub import (
    DOWNSTREAM_BASE_URL,
    FIXED_NOW,
    FakeClock,
    RecordingHandler,
    token_response,
)


def make_manager(handler, clock=None, **kwargs) -> TokenLifecycleManager:
    http = httpx.Client(base_url=DOWNSTREAM_BASE_URL, transport=httpx.MockTransport(handler))
    kwargs.setdefault("client_id", "client-id")
    kwargs.setdefault("client_secret", "client-secret")
    return TokenLifecycleManager(http, clock=clock or FakeClock(), **kwargs)


class TestTokenState:
    """Test TokenState usability rules."""

    def test_token_without_expiry_is_usable(self):
        """A token with unknown expiry is used optimistically."""
        assert TokenState(access_token="abc").is_usable(FIXED_NOW) is True

    def test_expired_token_is_not_usable(self):
        """A token whose expiry has passed is not usable."""
        state = TokenState(access_token="abc", expires_at=FIXED_NOW - timedelta(seconds=1))
        assert state.is_usable(FIXED_NOW) is False

    def test_missing_token_is_not_usable(self):
        """No access token means nothing to use."""
        assert TokenState(refresh_token="r").is_usable(FIXED_NOW) is False


class TestEnsureUsableToken:
    """Test token reuse and refresh decisions."""

    def test_initial_token_used_without_refresh(self):
        """A configured access token with no expiry is returned without a token call."""
        handler = RecordingHandler(lambda request: token_response())
        manager = make_manager(handler, access_token="initial", refresh_token="refresh-1")

        assert manager.ensure_usable_token() == "initial"
        assert handler.token_calls == []

    def test_no_credentials_raises_auth_error(self):
        """Neither access nor refresh token raises AuthError without any network call."""
        handler = RecordingHandler(lambda request: token_response())
        manager = make_manager(handler)

        with pytest.raises(AuthError) as exc_info:
            manager.ensure_usable_token()

        assert "no usable credential" in str(exc_info.value)
        assert handler.requests == []

    def test_refresh_when_no_access_token(self):
        """Only a refresh token available triggers the refresh grant."""
        handler = RecordingHandler(lambda request: token_response("new-token"))
        manager = make_manager(handler, refresh_token="refresh-1")

        assert manager.ensure_usable_token() == "new-token"
        assert len(handler.token_calls) == 1

    def test_expiry_subtracts_skew(self):
        """expires_in=3600 with the default skew expires 3540 seconds from now."""
        clock = FakeClock()
        handler = RecordingHandler(lambda request: token_response(expires_in=3600))
        manager = make_manager(handler, clock=clock, refresh_token="refresh-1")

        manager.ensure_usable_token()

        assert manager.state.expires_at == FIXED_NOW + timedelta(seconds=3540)

    def test_short_expiry_clamped_to_one_second(self):
        """expires_in smaller than the skew still leaves at least one second."""
        handler = RecordingHandler(lambda request: token_response(expires_in=30))
        manager = make_manager(handler, refresh_token="refresh-1")

        manager.ensure_usable_token()

        assert manager.state.expires_at == FIXED_NOW + timedelta(seconds=1)

    def test_missing_expires_in_leaves_expiry_unknown(self):
        """A token response without expires_in yields a token with no expiry."""
        handler = RecordingHandler(lambda request: token_response(expires_in=None))
        manager = make_manager(handler, refresh_token="refresh-1")

        manager.ensure_usable_token()

        assert manager.state.expires_at is None
        assert manager.is_token_valid() is True

    def test_expired_token_refreshed_again(self):
        """Once the clock passes the expiry, the next call refreshes."""
        clock = FakeClock()
        tokens = iter(["first", "second"])
        handler = RecordingHandler(lambda request: token_response(next(tokens), expires_in=120))
        manager = make_manager(handler, clock=clock, refresh_token="refresh-1")

        assert manager.ensure_usable_token() == "first"
        assert manager.ensure_usable_token() == "first"

        clock.now = FIXED_NOW + timedelta(seconds=61)

        assert manager.ensure_usable_token() == "second"
        assert len(handler.token_calls) == 2


class TestRefreshGrant:
    """Test the refresh_token grant request and its outcomes."""

    def test_refresh_request_shape(self):
        """The grant is a form POST carrying client credentials and an idempotency key."""
        handler = RecordingHandler(lambda request: token_response())
        manager = make_manager(handler, refresh_token="refresh-1")

        manager.refresh()

        request = handler.token_calls[0]
        form = dict(httpx.QueryParams(request.content.decode()))
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Accept"] == "application/json"
        assert form == {
            "grant_type": "refresh_token",
            "client_id": "client-id",
            "client_secret": "client-secret",
            "refresh_token": "refresh-1",
        }
        uuid.UUID(request.headers["Idempotency-Key"])

    def test_each_refresh_uses_new_idempotency_key(self):
        """Two refreshes never reuse the same idempotency key."""
        handler = RecordingHandler(lambda request: token_response())
        manager = make_manager(handler, refresh_token="refresh-1")

        manager.refresh()
        manager.refresh()

        keys = {r.headers["Idempotency-Key"] for r in handler.token_calls}
        assert len(keys) == 2

    def test_rotated_refresh_token_is_kept(self):
        """A refresh_token in the response replaces the current one."""
        handler = RecordingHandler(lambda request: token_response(refresh_token="refresh-2"))
        manager = make_manager(handler, refresh_token="refresh-1")

        manager.refresh()

        assert manager.state.refresh_token == "refresh-2"

    def test_refresh_token_kept_when_not_rotated(self):
        """Without a new refresh_token the existing one is retained."""
        handler = RecordingHandler(lambda request: token_response())
        manager = make_manager(handler, refresh_token="refresh-1")

        manager.refresh()

        assert manager.state.refresh_token == "refresh-1"

    def test_failed_refresh_leaves_state_unchanged(self):
        """A 4xx from the token endpoint raises and keeps the previous state."""
        handler = RecordingHandler(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))
        manager = make_manager(handler, access_token="old", refresh_token="refresh-1")
        before = manager.state

        with pytest.raises(TokenRefreshError) as exc_info:
            manager.refresh()

        assert "Failed to refresh access token" in str(exc_info.value)
        assert manager.state == before

    def test_response_without_access_token_fails(self):
        """A 200 without access_token is a refresh failure."""
        handler = RecordingHandler(lambda request: httpx.Response(200, json={"expires_in": 3600}))
        manager = make_manager(handler, refresh_token="refresh-1")

        with pytest.raises(TokenRefreshError):
            manager.refresh()

        assert manager.state.access_token is None

    def test_non_json_response_fails(self):
        """A non-JSON token response is a refresh failure."""
        handler = RecordingHandler(lambda request: httpx.Response(200, text="<html>"))
        manager = make_manager(handler, refresh_token="refresh-1")

        with pytest.raises(TokenRefreshError):
            manager.refresh()

    def test_transport_failure_becomes_refresh_error(self):
        """A network error during refresh surfaces as TokenRefreshError."""
        def respond(request):
            raise httpx.ConnectError("connection refused", request=request)

        manager = make_manager(RecordingHandler(respond), refresh_token="refresh-1")

        with pytest.raises(TokenRefreshError):
            manager.refresh()

    def test_refresh_without_refresh_token_raises_auth_error(self):
        """Forcing a refresh with no refresh token raises AuthError."""
        manager = make_manager(RecordingHandler(lambda request: token_response()), access_token="a")

        with pytest.raises(AuthError):
            manager.refresh()

    def test_refresh_skipped_when_stale_token_already_replaced(self):
        """A caller holding a stale token reuses a token another caller just obtained."""
        handler = RecordingHandler(lambda request: token_response("new-token"))
        manager = make_manager(handler, refresh_token="refresh-1")

        assert manager.refresh() == "new-token"
        assert manager.refresh(stale_token="old-token") == "new-token"
        assert len(handler.token_calls) == 1


class TestConcurrentRefresh:
    """Test single-flight refresh under concurrency."""

    def test_concurrent_callers_share_one_refresh(self):
        """Many threads needing a token trigger exactly one refresh call."""
        def respond(request):
            time.sleep(0.05)
            return token_response("shared-token")

        handler = RecordingHandler(respond)
        manager = make_manager(handler, refresh_token="refresh-1")
        results = []
        lock = threading.Lock()

        def worker():
            token = manager.ensure_usable_token()
            with lock:
                results.append(token)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == ["shared-token"] * 8
        assert len(handler.token_calls) == 1

"""
Downstream API token lifecycle.

Owns the OAuth2 credential state for the downstream HR API and decides when
the current access token can be reused and when it has to be refreshed with
the refresh_token grant.

State is held in an immutable TokenState that is swapped in with a single
assignment, so callers never observe a half-updated credential. Refreshes are
single-flight: concurrent callers that find the token expired wait on one lock
and reuse the result of whichever caller refreshed first.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import httpx

from workforce_sync.core.exceptions import AuthError, TokenRefreshError

logger = logging.getLogger("workforce_sync.downstream.tokens")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenState:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_usable(self, now: datetime) -> bool:
        """Usable if an access token exists and its expiry is unknown or in the future."""
        if not self.access_token:
            return False
        return self.expires_at is None or self.expires_at > now


class TokenLifecycleManager:
    def __init__(
        self,
        http: httpx.Client,
        *,
        client_id: Optional[str],
        client_secret: Optional[str],
        token_path: str = "/oauth2/access_token",
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        expiry_skew_seconds: int = 60,
        clock: Optional[Clock] = None,
    ) -> None:
        self._http = http
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_path = token_path
        self._expiry_skew_seconds = expiry_skew_seconds
        self._clock = clock or _utcnow
        self._state = TokenState(
            access_token=access_token or None,
            refresh_token=refresh_token or None,
        )
        self._refresh_lock = threading.Lock()

    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def has_refresh_token(self) -> bool:
        return bool(self._state.refresh_token)

    def is_token_valid(self) -> bool:
        return self._state.is_usable(self._clock())

    def ensure_usable_token(self) -> str:
        """
        Return an access token that can be used right now.

        Reuses the current token when it has no known expiry (optimistic use)
        or expires in the future; otherwise refreshes it.

        Raises:
            AuthError: no access token and no refresh token
            TokenRefreshError: the refresh grant failed
        """
        state = self._state
        if state.is_usable(self._clock()):
            return state.access_token  # type: ignore[return-value]

        with self._refresh_lock:
            # Another caller may have refreshed while we waited for the lock
            state = self._state
            if state.is_usable(self._clock()):
                return state.access_token  # type: ignore[return-value]
            if not state.refresh_token:
                raise AuthError("no usable credential")
            self._state = self._request_new_token(state)
            return self._state.access_token  # type: ignore[return-value]

    def refresh(self, stale_token: Optional[str] = None) -> str:
        """
        Force a refresh, typically after the API rejected ``stale_token``.

        If another caller already replaced ``stale_token`` with a usable token,
        that token is returned without a second refresh call.
        """
        with self._refresh_lock:
            state = self._state
            if (
                stale_token is not None
                and state.access_token != stale_token
                and state.is_usable(self._clock())
            ):
                return state.access_token  # type: ignore[return-value]
            if not state.refresh_token:
                raise AuthError("no usable credential")
            self._state = self._request_new_token(state)
            return self._state.access_token  # type: ignore[return-value]

    def _request_new_token(self, current: TokenState) -> TokenState:
        """
        Run the refresh_token grant and build the next state.

        Never mutates self._state; the caller swaps the returned state in.
        """
        form = {
            "grant_type": "refresh_token",
            "client_id": self._client_id or "",
            "client_secret": self._client_secret or "",
            "refresh_token": current.refresh_token or "",
        }
        try:
            response = self._http.post(
                self._token_path,
                data=form,
                headers={
                    "Accept": "application/json",
                    "Idempotency-Key": str(uuid.uuid4()),
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Token refresh request failed: {e}")
            raise TokenRefreshError(f"Failed to refresh token: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "Token endpoint error",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            raise TokenRefreshError("Failed to refresh access token")

        data = self._parse_body(response)
        access_token = data.get("access_token")
        if not access_token:
            raise TokenRefreshError("Token refresh returned no access_token")

        expires_at = self._compute_expiry(data.get("expires_in"))
        # Some tenants rotate refresh tokens
        refresh_token = data.get("refresh_token") or current.refresh_token

        logger.info(
            "Downstream access token refreshed",
            extra={
                "expires_at": expires_at.isoformat() if expires_at else None,
                "refresh_token_rotated": refresh_token != current.refresh_token,
            },
        )
        return TokenState(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    def _compute_expiry(self, expires_in: Any) -> Optional[datetime]:
        """now + max(1, expires_in - skew) seconds; None when expires_in is absent."""
        if not expires_in:
            return None
        try:
            seconds = int(expires_in)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric expires_in: {expires_in!r}")
            return None
        return self._clock() + timedelta(seconds=max(1, seconds - self._expiry_skew_seconds))

    @staticmethod
    def _parse_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise TokenRefreshError("Token endpoint returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise TokenRefreshError("Token endpoint returned an unexpected body")
        return data

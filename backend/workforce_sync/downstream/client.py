"""
Downstream HR API client.

Purpose
- Execute authenticated requests against the downstream employee API.
- Retry exactly once after a 401 by refreshing the access token.
- Expose typed wrappers for the employee endpoints.

No backoff or repeated retries; a caller that wants them wraps these methods.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from workforce_sync.core.config import settings
from workforce_sync.core.exceptions import (
    AuthError,
    DownstreamError,
    DownstreamRequestError,
    TransportError,
)
from workforce_sync.downstream.token_manager import TokenLifecycleManager

logger = logging.getLogger("workforce_sync.downstream")


class DownstreamClient:
    """
    Synchronous HTTP client for the downstream employee API.

    Uses a single httpx.Client (shared with the token manager) with:
    - An explicit per-request timeout
    - Bearer token authentication
    - One refresh-and-retry on 401
    """

    def __init__(
        self,
        tokens: TokenLifecycleManager,
        http: httpx.Client,
        *,
        employees_path: str = "/employees",
    ) -> None:
        self.tokens = tokens
        self._http = http
        self._employees_path = employees_path.rstrip("/")

    @classmethod
    def from_settings(cls, transport: Optional[httpx.BaseTransport] = None) -> "DownstreamClient":
        http = httpx.Client(
            base_url=settings.DOWNSTREAM_API_URL,
            timeout=httpx.Timeout(settings.DOWNSTREAM_HTTP_TIMEOUT_SECONDS),
            transport=transport,
        )
        tokens = TokenLifecycleManager(
            http,
            client_id=settings.DOWNSTREAM_CLIENT_ID,
            client_secret=settings.DOWNSTREAM_CLIENT_SECRET,
            token_path=settings.DOWNSTREAM_TOKEN_PATH,
            access_token=settings.DOWNSTREAM_ACCESS_TOKEN,
            refresh_token=settings.DOWNSTREAM_REFRESH_TOKEN,
            expiry_skew_seconds=settings.TOKEN_EXPIRY_SKEW_SECONDS,
        )
        return cls(tokens, http, employees_path=settings.DOWNSTREAM_EMPLOYEES_PATH)

    def close(self) -> None:
        """Close the HTTP client."""
        if not self._http.is_closed:
            self._http.close()

    def __enter__(self) -> "DownstreamClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        path: str,
        bearer_token: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            return self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers={
                    "Authorization": f"Bearer {bearer_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

    def execute_authenticated(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Issue a request with a bearer token.

        On a 401, when a refresh token is available, the token is refreshed and
        the same request is reissued once. The second response is returned as
        is, whatever its status.

        Raises:
            AuthError / TokenRefreshError: no token could be produced
            TransportError: network failure or timeout
        """
        token = self.tokens.ensure_usable_token()
        response = self._send(method, path, token, json=json, params=params)

        if response.status_code == 401 and self.tokens.has_refresh_token:
            logger.warning(f"401 received for {method} {path}, refreshing token and retrying")
            token = self.tokens.refresh(stale_token=token)
            response = self._send(method, path, token, json=json, params=params)

        return response

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        response = self.execute_authenticated(method, path, json=json, params=params)
        self._raise_for_status(method, path, response)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise DownstreamError(f"{method} {path} returned a non-JSON body") from e
        return data if isinstance(data, dict) else {"data": data}

    @staticmethod
    def _raise_for_status(method: str, path: str, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 401:
            raise AuthError(f"{method} {path} rejected the access token")
        if status >= 500:
            raise TransportError(f"{method} {path} failed with HTTP {status}", status_code=status)
        raise DownstreamRequestError(status, response.text)

    # ------------------------------------------------------------------
    # Employee endpoints
    # ------------------------------------------------------------------

    def create_employee(self, employee_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request_json("POST", self._employees_path, json=employee_data)

    def update_employee(self, downstream_id: str, employee_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request_json("PATCH", f"{self._employees_path}/{downstream_id}", json=employee_data)

    def get_employee(self, downstream_id: str) -> Dict[str, Any]:
        return self._request_json("GET", f"{self._employees_path}/{downstream_id}")

    def get_employee_schema(self) -> Dict[str, Any]:
        return self._request_json("GET", f"{self._employees_path}/schema")

    def delete_employee(self, downstream_id: str) -> bool:
        response = self.execute_authenticated("DELETE", f"{self._employees_path}/{downstream_id}")
        return 200 <= response.status_code < 300

    def search_employees(
        self,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": limit, "offset": offset}
        if filters:
            params.update(filters)
        return self._request_json("GET", self._employees_path, params=params)

    def test_connection(self) -> bool:
        """True if a usable access token can be obtained."""
        try:
            self.tokens.ensure_usable_token()
            return True
        except DownstreamError as e:
            logger.error(f"Downstream API connection test failed: {e}")
            return False

    def get_access_token(self) -> Optional[str]:
        return self.tokens.state.access_token

    def is_token_valid(self) -> bool:
        return self.tokens.is_token_valid()

"""
Error taxonomy for ingestion and downstream synchronization.

Client input errors abort an ingest before anything is persisted and are
reported to the caller as HTTP 400. Downstream errors are raised by the
downstream client and absorbed by the sync service.
"""

from typing import List, Optional


class WorkforceSyncError(Exception):
    """Base class for all application errors."""


# ---------------------------------------------------------------------------
# Client input
# ---------------------------------------------------------------------------


class ClientInputError(WorkforceSyncError):
    """The inbound payload cannot be processed as sent."""


class UnsupportedProviderError(ClientInputError):
    def __init__(self, provider: str):
        super().__init__(f"Unsupported provider: {provider}")
        self.provider = provider


class InvalidPayloadError(ClientInputError):
    def __init__(self, provider: str):
        super().__init__(f"Invalid employee data format for provider: {provider}")
        self.provider = provider


class FieldValidationError(ClientInputError):
    """Canonical record violates a field constraint (length, required, email)."""

    def __init__(self, errors: List[str]):
        super().__init__("Employee validation failed: " + ", ".join(errors))
        self.errors = errors


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class ConflictError(WorkforceSyncError):
    """A uniqueness constraint (email or provider/external id) was violated."""


# ---------------------------------------------------------------------------
# Downstream API
# ---------------------------------------------------------------------------


class DownstreamError(WorkforceSyncError):
    """Base class for failures talking to the downstream HR API."""


class AuthError(DownstreamError):
    """No usable downstream credential could be produced or it was rejected."""


class TokenRefreshError(AuthError):
    """The refresh grant failed or returned no access token."""


class TransportError(DownstreamError):
    """Network failure, timeout or 5xx response from the downstream API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DownstreamRequestError(DownstreamError):
    """The downstream API rejected the request (4xx other than 401)."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"HTTP {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body

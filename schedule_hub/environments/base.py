"""
Base classes and interfaces for calendar source integrations.

This module defines the contracts shared by every calendar backend
(Google Calendar, the Apple Calendar bridge, ...) and the exceptions
they raise.

Design Pattern: Strategy
========================
- CalendarSource: the capability set the aggregation engine relies on
  (is_available, get_events, get_calendars). The engine only ever holds
  sources through this interface, never by concrete type.
- OAuthCredential: provider-agnostic OAuth2 token record, also the shape
  that external stores persist.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent
from schedule_hub.utils.dates import ensure_utc


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------
# Specific exceptions for source operations.
# The aggregation engine isolates all of them per source; only the
# authorization flow lets them reach its caller.


class SourceError(Exception):
    """Base exception for all calendar-source errors."""
    pass


class SourceNotFoundError(SourceError):
    """Raised when an operation names a source that is not registered."""
    pass


class APIError(SourceError):
    """Raised when an API call to the provider fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class BridgeError(SourceError):
    """Raised when the local calendar helper fails or prints malformed output."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class AuthenticationError(SourceError):
    """Raised when authentication with a provider fails."""
    pass


class NoCredentialError(AuthenticationError):
    """Raised when an access token is requested before any credential was set."""
    pass


class RefreshError(AuthenticationError):
    """Raised when an expired access token could not be refreshed."""
    pass


class TokenExchangeError(AuthenticationError):
    """Raised when an authorization code could not be exchanged for tokens."""
    pass


class AuthorizationDeniedError(AuthenticationError):
    """Raised when the provider redirects back with an error (e.g. access_denied)."""

    def __init__(self, error: str):
        super().__init__(f"Authorization denied: {error}")
        self.error = error


class NoCodeError(AuthenticationError):
    """Raised when the redirect carries neither a code nor an error."""
    pass


class AuthorizationStateError(AuthenticationError):
    """Raised when the redirect's state parameter does not match the request."""
    pass


class AuthorizationTimeoutError(AuthenticationError, TimeoutError):
    """Raised when no redirect arrives before the authorization flow times out."""
    pass


# ---------------------------------------------------------------------------
# DATA STRUCTURES
# ---------------------------------------------------------------------------


class OAuthCredential(BaseModel):
    """
    OAuth2 credential held by a remote source.

    Frozen: a refresh produces a new instance that replaces the old one in a
    single assignment, so readers never observe a half-updated token pair.

    Persisted as JSON by external stores:
        record = credential.model_dump(mode="json")
        credential = OAuthCredential.model_validate(record)
    """
    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., description="Bearer token for API calls")
    refresh_token: Optional[str] = Field(None, description="Long-lived token for renewal")
    expires_at: datetime = Field(..., description="When access_token expires (UTC)")
    token_type: str = Field(default="Bearer")
    scope: str = Field(default="", description="Space-separated granted scopes")

    @field_validator("expires_at")
    @classmethod
    def _normalize_expiry(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def expires_within(self, buffer: timedelta, now: Optional[datetime] = None) -> bool:
        """
        Check if the access token is expired or will be within ``buffer``.

        Args:
            buffer: Safety margin before the real expiry
            now: Reference time (defaults to the current time)
        """
        reference = ensure_utc(now) if now else datetime.now(timezone.utc)
        return reference >= self.expires_at - buffer

    def get_scopes_list(self) -> List[str]:
        return self.scope.split()

    def __repr__(self) -> str:
        # Never print token values
        return f"<OAuthCredential(expires_at={self.expires_at.isoformat()}, scope='{self.scope}')>"

    __str__ = __repr__


# ---------------------------------------------------------------------------
# ABSTRACT BASE CLASSES
# ---------------------------------------------------------------------------


class CalendarSource(ABC):
    """
    Abstract base class for calendar backends.

    Each backend independently implements availability checking, event
    fetching and calendar enumeration, mapping its raw payloads into the
    normalized schemas.

    Example Implementation:
        class OutlookCalendarSource(CalendarSource):
            source_name = "outlook"

            async def get_events(self, start, end):
                ...
    """

    # Default registration name for this backend (e.g. "google", "apple")
    source_name: str = ""

    @abstractmethod
    async def is_available(self) -> bool:
        """
        Report whether the source can be queried right now.

        Must be free of side effects. An unavailable source is skipped by the
        aggregation engine without being treated as an error.
        """
        pass

    @abstractmethod
    async def get_events(self, start: datetime, end: datetime) -> List[NormalizedEvent]:
        """
        Fetch events overlapping the window [start, end).

        Raises:
            SourceError: If the backend cannot be queried
        """
        pass

    @abstractmethod
    async def get_calendars(self) -> List[NormalizedCalendar]:
        """
        List the calendars this source exposes.

        Raises:
            SourceError: If the backend cannot be queried
        """
        pass

"""
Google OAuth Schemas - Data structures for Google authentication.

Pydantic models for the token endpoint responses, plus the scope
constants requested by the authorization flow.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# OAUTH SCOPE CONSTANTS
# ---------------------------------------------------------------------------
# Reference: https://developers.google.com/identity/protocols/oauth2/scopes

# Calendar scopes - read-only access to calendars and events
CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",         # Read calendars
    "https://www.googleapis.com/auth/calendar.events.readonly",  # Read events
]


# ---------------------------------------------------------------------------
# TOKEN RESPONSES
# ---------------------------------------------------------------------------

class GoogleTokenResponse(BaseModel):
    """
    Response from Google's token endpoint.

    Returned both for the authorization-code exchange and for refreshes.
    Google only includes refresh_token on the code exchange (with
    prompt=consent), never on a refresh.

    Example response from Google:
    {
        "access_token": "ya29.a0AfB_byC...",
        "expires_in": 3599,
        "refresh_token": "1//0eXyz...",
        "scope": "https://www.googleapis.com/auth/calendar.readonly",
        "token_type": "Bearer"
    }
    """
    access_token: str = Field(..., description="OAuth access token")
    token_type: Optional[str] = Field(None, description="Token type (usually Bearer)")
    expires_in: int = Field(..., description="Seconds until expiration")
    refresh_token: Optional[str] = Field(None, description="Refresh token for renewal")
    scope: Optional[str] = Field(None, description="Space-separated scopes granted")

    def get_scopes_list(self) -> List[str]:
        """Convert space-separated scope string to list."""
        if self.scope:
            return self.scope.split()
        return []

    def get_expires_at(self, now: Optional[datetime] = None) -> datetime:
        """Calculate expiration datetime from expires_in seconds."""
        issued_at = now or datetime.now(timezone.utc)
        return issued_at + timedelta(seconds=self.expires_in)


class GoogleTokenError(BaseModel):
    """
    Error payload from Google's token endpoint.

    Example:
    {
        "error": "invalid_grant",
        "error_description": "Token has been expired or revoked."
    }
    """
    error: str = Field(..., description="OAuth error code")
    error_description: Optional[str] = Field(None)

    def get_message(self) -> str:
        if self.error_description:
            return f"{self.error}: {self.error_description}"
        return self.error

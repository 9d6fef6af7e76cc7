"""
Google Auth Module - OAuth 2.0 for the Google Calendar source.

OAuth 2.0 Flow Overview:
========================
1. GoogleAuthFlow binds a loopback listener and opens the consent URL
2. The user grants read-only calendar access
3. Google redirects to http://localhost:<port>/oauth/callback?code=...
4. GoogleAuthClient exchanges the code for the first OAuthCredential
5. GoogleCredentialManager keeps that credential fresh afterwards
"""

from schedule_hub.environments.google.auth.client import GoogleAuthClient
from schedule_hub.environments.google.auth.credentials import (
    GoogleCredentialManager,
    TokenRefreshCallback,
)
from schedule_hub.environments.google.auth.flow import GoogleAuthFlow
from schedule_hub.environments.google.auth.schemas import (
    CALENDAR_SCOPES,
    GoogleTokenError,
    GoogleTokenResponse,
)

__all__ = [
    "GoogleAuthClient",
    "GoogleCredentialManager",
    "TokenRefreshCallback",
    "GoogleAuthFlow",
    "GoogleTokenError",
    "GoogleTokenResponse",
    "CALENDAR_SCOPES",
]

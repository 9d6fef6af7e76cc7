"""
Google OAuth Client - Talks to Google's OAuth 2.0 endpoints.

Key Features:
=============
1. Authorization URL generation with read-only calendar scopes
2. Code-to-token exchange (grant_type=authorization_code)
3. Token refresh (grant_type=refresh_token)

This client is stateless: it never stores tokens. The loopback flow
(flow.py) uses it to obtain the first credential and the credential
manager (credentials.py) uses it to refresh.

References:
===========
- OAuth 2.0 for installed apps: https://developers.google.com/identity/protocols/oauth2/native-app
- Token endpoint: https://oauth2.googleapis.com/token
"""

import logging
import secrets
from typing import List, Optional, Type
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from schedule_hub.core.config import settings
from schedule_hub.environments.base import (
    AuthenticationError,
    OAuthCredential,
    RefreshError,
    TokenExchangeError,
)
from schedule_hub.environments.google.auth.schemas import (
    CALENDAR_SCOPES,
    GoogleTokenError,
    GoogleTokenResponse,
)


logger = logging.getLogger("schedule_hub.environments.google.auth")


class GoogleAuthClient:
    """
    Google OAuth 2.0 client.

    Example Usage:
        client = GoogleAuthClient()

        url = client.get_authorization_url(state=client.generate_state())
        # ... user grants access, loopback listener receives ?code=...

        credential = await client.exchange_code_for_tokens(code)
        renewed = await client.refresh_access_token(credential)
    """

    provider_name = "google"

    # Google OAuth endpoints
    AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Google OAuth client.

        Args:
            client_id: Google OAuth Client ID (defaults to settings)
            client_secret: Google OAuth Client Secret (defaults to settings)
            redirect_uri: Loopback callback URL (defaults to settings)
            timeout: HTTP timeout in seconds (defaults to settings)
            transport: Custom httpx transport (used by tests)
        """
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = redirect_uri or settings.oauth_redirect_uri
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

        if not self.client_id or not self.client_secret:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET in environment variables."
            )

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    # -------------------------------------------------------------------------
    # AUTHORIZATION URL
    # -------------------------------------------------------------------------

    def get_authorization_url(
        self,
        state: str,
        scopes: Optional[List[str]] = None,
        redirect_uri: Optional[str] = None,
    ) -> str:
        """
        Generate the Google OAuth authorization URL.

        access_type=offline and prompt=consent are always sent so that every
        run of the flow returns a refresh token.

        Args:
            state: CSRF protection token, echoed back on the redirect
            scopes: Scopes to request (defaults to CALENDAR_SCOPES)
            redirect_uri: Override the default callback URL

        Returns:
            Full authorization URL to open in the browser
        """
        requested = list(scopes or CALENDAR_SCOPES)

        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri or self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(requested),
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
        }

        logger.info(
            f"Generated Google auth URL with {len(requested)} scopes",
            extra={"scopes": requested},
        )

        return f"{self.AUTHORIZATION_URL}?{urlencode(params)}"

    # -------------------------------------------------------------------------
    # TOKEN ENDPOINT
    # -------------------------------------------------------------------------

    async def _request_token(
        self,
        data: dict,
        error_cls: Type[AuthenticationError],
        action: str,
    ) -> GoogleTokenResponse:
        """
        POST a grant to the token endpoint and parse the response.

        Non-200 statuses, error payloads, malformed bodies and network
        errors are all raised as ``error_cls``.
        """
        async with self._http_client() as client:
            try:
                response = await client.post(self.TOKEN_URL, data=data)
            except httpx.RequestError as e:
                logger.error(f"Network error during {action}: {e}")
                raise error_cls(f"Network error during {action}: {e}") from e

        try:
            payload = response.json() if response.content else {}
        except ValueError:
            payload = {}

        if not isinstance(payload, dict):
            payload = {}

        if response.status_code != 200 or "error" in payload:
            try:
                message = GoogleTokenError.model_validate(payload).get_message()
            except ValidationError:
                message = response.text or f"HTTP {response.status_code}"
            logger.error(
                f"{action.capitalize()} failed: {message}",
                extra={"status_code": response.status_code},
            )
            raise error_cls(f"{action.capitalize()} failed: {message}")

        try:
            return GoogleTokenResponse.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Malformed token response during {action}")
            raise error_cls(f"Malformed token response during {action}") from e

    async def exchange_code_for_tokens(
        self,
        code: str,
        redirect_uri: Optional[str] = None,
    ) -> OAuthCredential:
        """
        Exchange an authorization code for the initial credential.

        Args:
            code: Authorization code from the loopback redirect
            redirect_uri: Must match the redirect_uri used in authorization

        Returns:
            OAuthCredential with access token, refresh token and expiry

        Raises:
            TokenExchangeError: If the exchange fails
        """
        logger.info("Exchanging authorization code for tokens")

        token_response = await self._request_token(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri or self.redirect_uri,
            },
            error_cls=TokenExchangeError,
            action="token exchange",
        )

        logger.info(
            "Successfully obtained Google tokens",
            extra={
                "has_refresh_token": token_response.refresh_token is not None,
                "expires_in": token_response.expires_in,
                "scopes": token_response.get_scopes_list(),
            },
        )

        return OAuthCredential(
            access_token=token_response.access_token,
            refresh_token=token_response.refresh_token,
            expires_at=token_response.get_expires_at(),
            token_type=token_response.token_type or "Bearer",
            scope=token_response.scope or "",
        )

    async def refresh_access_token(self, credential: OAuthCredential) -> OAuthCredential:
        """
        Use the credential's refresh token to get a new access token.

        The returned credential keeps the refresh token, token type and
        scope of the old one unless Google sends replacements.

        Args:
            credential: Current credential (must carry a refresh token)

        Returns:
            A new OAuthCredential; the input is not modified

        Raises:
            RefreshError: If there is no refresh token or the refresh fails
        """
        if not credential.refresh_token:
            raise RefreshError("No refresh token available")

        logger.info("Refreshing access token")

        token_response = await self._request_token(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": credential.refresh_token,
                "grant_type": "refresh_token",
            },
            error_cls=RefreshError,
            action="token refresh",
        )

        logger.info(
            "Successfully refreshed access token",
            extra={"expires_in": token_response.expires_in},
        )

        return credential.model_copy(
            update={
                "access_token": token_response.access_token,
                "expires_at": token_response.get_expires_at(),
                "refresh_token": token_response.refresh_token or credential.refresh_token,
                "token_type": token_response.token_type or credential.token_type,
                "scope": token_response.scope or credential.scope,
            }
        )

    # -------------------------------------------------------------------------
    # UTILITY METHODS
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_state() -> str:
        """Generate a cryptographically secure state parameter."""
        return secrets.token_urlsafe(32)

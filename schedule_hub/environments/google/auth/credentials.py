"""
Google Credential Manager - keeps an OAuth2 access token valid.

Lifecycle:
==========
    NoCredential --set_credential()--> Valid --(expiry - buffer reached)--> refresh
        refresh ok     -> Valid (new access token, rotation callback fired)
        refresh failed -> RefreshError raised, stored credential unchanged

The manager is owned by exactly one remote source. The persisted copy of
the credential belongs to an external store: the manager never reads it,
it only reports rotations through ``on_token_refresh``.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Union

from schedule_hub.core.config import settings
from schedule_hub.environments.base import NoCredentialError, OAuthCredential
from schedule_hub.environments.google.auth.client import GoogleAuthClient


logger = logging.getLogger("schedule_hub.environments.google.credentials")


TokenRefreshCallback = Callable[[OAuthCredential], Union[None, Awaitable[None]]]


class GoogleCredentialManager:
    """
    Owns the credential of one Google source and refreshes it on demand.

    Example:
        manager = GoogleCredentialManager(
            auth_client,
            on_token_refresh=store.save,   # sync or async callable
        )
        manager.set_credential(OAuthCredential.model_validate(record))
        token = await manager.ensure_valid_access_token()
    """

    def __init__(
        self,
        auth_client: Optional[GoogleAuthClient] = None,
        credential: Optional[OAuthCredential] = None,
        on_token_refresh: Optional[TokenRefreshCallback] = None,
        refresh_buffer: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            auth_client: Client used for the refresh grant
            credential: Initial credential, if one was persisted
            on_token_refresh: Called with the new credential after each refresh
            refresh_buffer: Refresh this long before expiry (defaults to settings)
            clock: Returns the current time (defaults to datetime.now in UTC)
        """
        self.auth_client = auth_client or GoogleAuthClient()
        self.on_token_refresh = on_token_refresh
        self.refresh_buffer = refresh_buffer or timedelta(seconds=settings.TOKEN_REFRESH_BUFFER_SECONDS)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._credential = credential
        self._refresh_lock = asyncio.Lock()

    def set_credential(self, credential: Optional[OAuthCredential]) -> None:
        """Replace the held credential (None clears it)."""
        self._credential = credential

    def get_credential(self) -> Optional[OAuthCredential]:
        return self._credential

    def has_credential(self) -> bool:
        return self._credential is not None and bool(self._credential.access_token)

    def needs_refresh(self) -> bool:
        """True if the held credential is expired or inside the refresh buffer."""
        if self._credential is None:
            return False
        return self._credential.expires_within(self.refresh_buffer, now=self._clock())

    async def ensure_valid_access_token(self) -> str:
        """
        Return an access token that is valid for at least the refresh buffer.

        Overlapping callers share a single refresh: the lock serializes
        refreshes and each waiter re-checks expiry once it holds the lock.

        Raises:
            NoCredentialError: If no credential was ever set
            RefreshError: If the token needed a refresh and it failed
        """
        if self._credential is None:
            raise NoCredentialError("No Google credential available")

        if not self.needs_refresh():
            return self._credential.access_token

        async with self._refresh_lock:
            if self.needs_refresh():
                await self._refresh()

        return self._credential.access_token

    async def _refresh(self) -> None:
        current = self._credential
        logger.info(
            "Access token expires soon, refreshing",
            extra={"expires_at": current.expires_at.isoformat()},
        )

        # Raises RefreshError; self._credential is untouched in that case
        refreshed = await self.auth_client.refresh_access_token(current)

        self._credential = refreshed
        logger.info(
            "Stored refreshed Google credential",
            extra={"expires_at": refreshed.expires_at.isoformat()},
        )

        await self._notify_rotation(refreshed)

    async def _notify_rotation(self, credential: OAuthCredential) -> None:
        if self.on_token_refresh is None:
            return

        try:
            result = self.on_token_refresh(credential)
            if inspect.isawaitable(result):
                await result
        except Exception:
            # The refreshed token is already in use; persistence retries on the next rotation
            logger.exception("Token refresh callback failed")

"""
Google Calendar Source - remote calendar backend over the Calendar API.

Key Features:
=============
1. Lists the user's calendars (CalendarList API)
2. Lists events of every calendar in a window (Events API, single events)
3. Keeps its OAuth credential valid through GoogleCredentialManager
4. Maps API payloads into NormalizedEvent / NormalizedCalendar

A failure on one calendar is logged and skipped so the remaining calendars
still contribute; credential failures abort the whole call.

API Reference:
==============
- Events API: https://developers.google.com/calendar/api/v3/reference/events
- CalendarList API: https://developers.google.com/calendar/api/v3/reference/calendarList
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from schedule_hub.core.config import settings
from schedule_hub.environments.base import (
    APIError,
    CalendarSource,
    OAuthCredential,
)
from schedule_hub.environments.google.auth.client import GoogleAuthClient
from schedule_hub.environments.google.auth.credentials import (
    GoogleCredentialManager,
    TokenRefreshCallback,
)
from schedule_hub.environments.google.calendar.schemas import (
    CalendarEvent,
    CalendarEventsResponse,
    CalendarListResponse,
)
from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent, SourceTag
from schedule_hub.utils.dates import isoformat_utc


logger = logging.getLogger("schedule_hub.environments.google.calendar")


class GoogleCalendarSource(CalendarSource):
    """
    Google Calendar as a calendar source.

    Example:
        source = GoogleCalendarSource(on_token_refresh=store.save)
        source.set_credential(credential)
        events = await source.get_events(start, end)
    """

    source_name = "google"

    # Google Calendar API base URL
    BASE_URL = "https://www.googleapis.com/calendar/v3"

    # Page size for list calls (API maximum is 2500 for events, 250 for calendars)
    EVENTS_PAGE_SIZE = 250
    CALENDARS_PAGE_SIZE = 250

    def __init__(
        self,
        credential_manager: Optional[GoogleCredentialManager] = None,
        auth_client: Optional[GoogleAuthClient] = None,
        credential: Optional[OAuthCredential] = None,
        on_token_refresh: Optional[TokenRefreshCallback] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            credential_manager: Prebuilt manager (otherwise one is created)
            auth_client: Client for refreshes when creating the manager
            credential: Initial credential when creating the manager
            on_token_refresh: Rotation callback when creating the manager
            timeout: HTTP timeout in seconds (defaults to settings)
            transport: Custom httpx transport (used by tests)
        """
        self.credentials = credential_manager or GoogleCredentialManager(
            auth_client=auth_client,
            credential=credential,
            on_token_refresh=on_token_refresh,
        )
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    # -------------------------------------------------------------------------
    # CREDENTIALS
    # -------------------------------------------------------------------------

    def set_credential(self, credential: Optional[OAuthCredential]) -> None:
        self.credentials.set_credential(credential)

    def get_credential(self) -> Optional[OAuthCredential]:
        return self.credentials.get_credential()

    async def ensure_valid_access_token(self) -> str:
        return await self.credentials.ensure_valid_access_token()

    @property
    def on_token_refresh(self) -> Optional[TokenRefreshCallback]:
        return self.credentials.on_token_refresh

    @on_token_refresh.setter
    def on_token_refresh(self, callback: Optional[TokenRefreshCallback]) -> None:
        self.credentials.on_token_refresh = callback

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def _get(self, client: httpx.AsyncClient, endpoint: str, params: Dict[str, Any]) -> dict:
        """
        Make an authenticated GET request to the Calendar API.

        Raises:
            APIError: If the request fails
            NoCredentialError / RefreshError: If no valid token can be obtained
        """
        access_token = await self.ensure_valid_access_token()

        try:
            response = await client.get(
                f"{self.BASE_URL}{endpoint}",
                params=params,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.RequestError as e:
            logger.error(f"Network error in Calendar API: {e}")
            raise APIError(f"Network error: {e}") from e

        if response.status_code == 401:
            logger.error("Calendar API: Unauthorized (token may be expired)")
            raise APIError(
                "Unauthorized - access token may be expired",
                status_code=401,
                response=response.text,
            )

        if response.status_code == 403:
            logger.error("Calendar API: Forbidden (scope may be missing)")
            raise APIError(
                "Forbidden - calendar scope may not be granted",
                status_code=403,
                response=response.text,
            )

        if response.status_code != 200:
            logger.error(f"Calendar API error: {response.status_code} - {response.text}")
            raise APIError(
                f"API request failed: {response.text}",
                status_code=response.status_code,
                response=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise APIError("Calendar API returned invalid JSON", status_code=200) from e

    # -------------------------------------------------------------------------
    # CALENDARSOURCE INTERFACE
    # -------------------------------------------------------------------------

    async def is_available(self) -> bool:
        """Available once a credential with an access token has been set."""
        return self.credentials.has_credential()

    async def get_calendars(self) -> List[NormalizedCalendar]:
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            return await self._list_calendars(client)

    async def get_events(self, start: datetime, end: datetime) -> List[NormalizedEvent]:
        """
        Fetch events of every calendar in the user's list.

        Events come back grouped by calendar, each group ordered by start time;
        the aggregation engine does the global sort.
        """
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            calendars = await self._list_calendars(client)
            all_events: List[NormalizedEvent] = []

            for calendar in calendars:
                try:
                    raw_events = await self._list_events(client, calendar.id, start, end)
                except (APIError, ValidationError) as e:
                    logger.error(f"Error fetching events from calendar {calendar.name}: {e}")
                    continue

                for raw in raw_events:
                    event = self._normalize_event(raw, calendar)
                    if event is not None:
                        all_events.append(event)

        logger.info(
            f"Fetched {len(all_events)} Google events from {len(calendars)} calendars",
            extra={"time_min": start.isoformat(), "time_max": end.isoformat()},
        )
        return all_events

    # -------------------------------------------------------------------------
    # API CALLS
    # -------------------------------------------------------------------------

    async def _list_calendars(self, client: httpx.AsyncClient) -> List[NormalizedCalendar]:
        entries = []
        page_token: Optional[str] = None

        while True:
            params: Dict[str, Any] = {"maxResults": self.CALENDARS_PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token

            page = CalendarListResponse.model_validate(
                await self._get(client, "/users/me/calendarList", params)
            )
            entries.extend(page.items)

            page_token = page.next_page_token
            if not page_token:
                break

        # The primary calendar's id is the account's email address
        account = next((entry.id for entry in entries if entry.primary), None)

        logger.info(f"Found {len(entries)} Google calendars")

        return [
            NormalizedCalendar(
                id=entry.id,
                name=entry.summary,
                color=entry.background_color,
                source=SourceTag.REMOTE,
                account_label=account,
            )
            for entry in entries
        ]

    async def _list_events(
        self,
        client: httpx.AsyncClient,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> List[CalendarEvent]:
        events: List[CalendarEvent] = []
        page_token: Optional[str] = None

        while True:
            params: Dict[str, Any] = {
                "timeMin": isoformat_utc(start),
                "timeMax": isoformat_utc(end),
                "singleEvents": "true",
                "orderBy": "startTime",
                "maxResults": self.EVENTS_PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token

            page = CalendarEventsResponse.model_validate(
                await self._get(client, f"/calendars/{quote(calendar_id, safe='')}/events", params)
            )
            events.extend(page.items)

            page_token = page.next_page_token
            if not page_token:
                break

        return events

    @staticmethod
    def _normalize_event(raw: CalendarEvent, calendar: NormalizedCalendar) -> Optional[NormalizedEvent]:
        start = raw.start.get_instant() if raw.start else None
        end = raw.end.get_instant() if raw.end else None

        if start is None or end is None:
            logger.debug(f"Skipping event {raw.id} without start or end")
            return None

        try:
            return NormalizedEvent(
                id=raw.id,
                title=raw.get_display_title(),
                start=start,
                end=end,
                is_all_day=raw.is_all_day(),
                location=raw.location,
                notes=raw.description,
                calendar_name=calendar.name,
                calendar_color=calendar.color,
                source=SourceTag.REMOTE,
            )
        except ValueError as e:
            logger.warning(f"Skipping malformed event {raw.id}: {e}")
            return None

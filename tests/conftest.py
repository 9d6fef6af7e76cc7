"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Factories for normalized events, calendars and credentials
- FakeSource, an in-memory CalendarSource with call counters
- A scripted Google token endpoint built on httpx.MockTransport
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from schedule_hub.environments.base import CalendarSource, OAuthCredential
from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent, SourceTag


def utc(*args) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# MODEL FACTORIES
# ---------------------------------------------------------------------------

def make_event(
    event_id: str,
    start: datetime,
    end: Optional[datetime] = None,
    calendar_name: str = "Work",
    source: SourceTag = SourceTag.REMOTE,
    **kwargs,
) -> NormalizedEvent:
    return NormalizedEvent(
        id=event_id,
        title=kwargs.pop("title", f"Event {event_id}"),
        start=start,
        end=end or start + timedelta(hours=1),
        calendar_name=calendar_name,
        source=source,
        **kwargs,
    )


def make_calendar(calendar_id: str, name: str, source: SourceTag = SourceTag.REMOTE) -> NormalizedCalendar:
    return NormalizedCalendar(id=calendar_id, name=name, source=source)


def make_credential(
    expires_in: timedelta = timedelta(hours=1),
    access_token: str = "stale-access-token",
    refresh_token: Optional[str] = "refresh-token-1",
    now: Optional[datetime] = None,
) -> OAuthCredential:
    return OAuthCredential(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=(now or datetime.now(timezone.utc)) + expires_in,
        token_type="Bearer",
        scope="https://www.googleapis.com/auth/calendar.readonly",
    )


# ---------------------------------------------------------------------------
# FAKE SOURCE
# ---------------------------------------------------------------------------

class FakeSource(CalendarSource):
    """In-memory CalendarSource whose behaviour each test configures."""

    def __init__(
        self,
        events: Optional[List[NormalizedEvent]] = None,
        calendars: Optional[List[NormalizedCalendar]] = None,
        available: bool = True,
        events_error: Optional[Exception] = None,
        calendars_error: Optional[Exception] = None,
        availability_error: Optional[Exception] = None,
    ):
        self.events = events or []
        self.calendars = calendars or []
        self.available = available
        self.events_error = events_error
        self.calendars_error = calendars_error
        self.availability_error = availability_error
        self.get_events_calls = 0
        self.get_calendars_calls = 0

    async def is_available(self) -> bool:
        if self.availability_error:
            raise self.availability_error
        return self.available

    async def get_events(self, start: datetime, end: datetime) -> List[NormalizedEvent]:
        self.get_events_calls += 1
        if self.events_error:
            raise self.events_error
        return list(self.events)

    async def get_calendars(self) -> List[NormalizedCalendar]:
        self.get_calendars_calls += 1
        if self.calendars_error:
            raise self.calendars_error
        return list(self.calendars)


# ---------------------------------------------------------------------------
# TOKEN ENDPOINT
# ---------------------------------------------------------------------------

class TokenEndpoint:
    """
    Scripted stand-in for https://oauth2.googleapis.com/token.

    Each POST pops the next (status, payload) pair from ``responses`` and
    records the decoded form body in ``requests``.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: List[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append(form)
        status, payload = self.responses.pop(0)
        if isinstance(payload, (dict, list)):
            return httpx.Response(status, content=json.dumps(payload), headers={"content-type": "application/json"})
        return httpx.Response(status, text=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def token_endpoint_factory() -> Callable[..., TokenEndpoint]:
    return TokenEndpoint


@pytest.fixture
def fresh_token_payload() -> dict:
    return {
        "access_token": "fresh-access-token",
        "expires_in": 3599,
        "token_type": "Bearer",
        "scope": "https://www.googleapis.com/auth/calendar.readonly",
    }

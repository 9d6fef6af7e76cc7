"""
Google Environment Module - Google Calendar integration

Architecture:
=============
google/
├── __init__.py           # Module exports
├── auth/                 # OAuth authentication
│   ├── client.py         # Token endpoint client
│   ├── credentials.py    # Credential lifecycle (refresh + rotation)
│   ├── flow.py           # One-shot loopback authorization
│   └── schemas.py        # Token payloads and scopes
└── calendar/             # Google Calendar API
    ├── client.py         # GoogleCalendarSource
    └── schemas.py        # Raw API payloads

Usage:
======
    from schedule_hub.environments.google import GoogleAuthFlow, GoogleCalendarSource

    credential = await GoogleAuthFlow().run()

    source = GoogleCalendarSource(credential=credential, on_token_refresh=store.save)
    events = await source.get_events(start, end)
"""

from schedule_hub.environments.google.auth import (
    GoogleAuthClient,
    GoogleAuthFlow,
    GoogleCredentialManager,
    CALENDAR_SCOPES,
)
from schedule_hub.environments.google.calendar import GoogleCalendarSource

__all__ = [
    "GoogleAuthClient",
    "GoogleAuthFlow",
    "GoogleCredentialManager",
    "GoogleCalendarSource",
    "CALENDAR_SCOPES",
]

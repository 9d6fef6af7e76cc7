"""
Google Calendar Module - Calendar API as a calendar source.
"""

from schedule_hub.environments.google.calendar.client import GoogleCalendarSource
from schedule_hub.environments.google.calendar.schemas import (
    CalendarEvent,
    CalendarInfo,
    EventTime,
)

__all__ = [
    "GoogleCalendarSource",
    "CalendarEvent",
    "CalendarInfo",
    "EventTime",
]

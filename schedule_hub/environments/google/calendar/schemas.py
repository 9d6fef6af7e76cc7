"""
Google Calendar Schemas - raw Calendar API payloads.

These Pydantic models mirror the subset of the Calendar API v3 resources
the source reads. They are mapped into NormalizedEvent/NormalizedCalendar
by the source and never leave this package.

Reference: https://developers.google.com/calendar/api/v3/reference
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schedule_hub.utils.dates import ensure_utc, to_all_day_instant


class EventTime(BaseModel):
    """
    Event start or end time.

    Google Calendar API returns times in one of two formats:
    - dateTime: For timed events (e.g., "2024-01-15T10:00:00-05:00")
    - date: For all-day events (e.g., "2024-01-15")
    """
    model_config = ConfigDict(populate_by_name=True)

    date_time: Optional[datetime] = Field(None, alias="dateTime")
    date: Optional[str] = Field(None)  # YYYY-MM-DD format for all-day events

    def is_all_day(self) -> bool:
        """Check if this is an all-day event (date only, no time)."""
        return self.date is not None and self.date_time is None

    def get_instant(self) -> Optional[datetime]:
        """The UTC instant for this time; all-day dates map to midnight UTC."""
        if self.date_time:
            return ensure_utc(self.date_time)
        if self.date:
            return to_all_day_instant(self.date)
        return None


class CalendarEvent(BaseModel):
    """A Google Calendar event (fields the aggregation core reads)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique event identifier")
    summary: Optional[str] = Field(None, description="Event title")
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Event location")
    start: Optional[EventTime] = Field(None, description="Event start time")
    end: Optional[EventTime] = Field(None, description="Event end time")

    def is_all_day(self) -> bool:
        """An event is all-day iff its start has a date but no dateTime."""
        if self.start:
            return self.start.is_all_day()
        return False

    def get_display_title(self) -> str:
        return self.summary or "Untitled Event"


class CalendarInfo(BaseModel):
    """An entry of the user's calendar list."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Calendar identifier (usually email)")
    summary: str = Field(..., description="Calendar title")
    primary: Optional[bool] = Field(False, description="Is this the primary calendar?")
    background_color: Optional[str] = Field(None, alias="backgroundColor")


class CalendarEventsResponse(BaseModel):
    """One page of the Events list API."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[CalendarEvent] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")


class CalendarListResponse(BaseModel):
    """One page of the CalendarList API."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[CalendarInfo] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")

"""
Apple Calendar bridge schemas - JSON printed by the calendar-bridge helper.

    calendar-bridge events --start <ISO8601> --end <ISO8601>
        [{"id", "title", "startDate", "endDate", "isAllDay",
          "location"?, "notes"?, "calendarName", "calendarColor"?}]
    calendar-bridge calendars
        [{"id", "name", "color"?}]
    calendar-bridge check-auth
        {"status": "granted" | "denied" | "notDetermined" | "restricted" | "unknown"}
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent, SourceTag
from schedule_hub.utils.dates import ensure_utc, to_all_day_instant


class AuthorizationStatus(str, Enum):
    """Calendar privacy permission reported by macOS for the helper."""
    GRANTED = "granted"
    DENIED = "denied"
    NOT_DETERMINED = "notDetermined"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "AuthorizationStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class BridgeEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    is_all_day: bool = Field(False, alias="isAllDay")
    location: Optional[str] = None
    notes: Optional[str] = None
    calendar_name: str = Field(..., alias="calendarName")
    calendar_color: Optional[str] = Field(None, alias="calendarColor")

    def to_normalized(self) -> NormalizedEvent:
        if self.is_all_day:
            # EventKit reports all-day events at local midnight; keep the local date
            start = to_all_day_instant(self.start_date)
            end = to_all_day_instant(self.end_date)
        else:
            start = ensure_utc(self.start_date)
            end = ensure_utc(self.end_date)

        return NormalizedEvent(
            id=self.id,
            title=self.title,
            start=start,
            end=end,
            is_all_day=self.is_all_day,
            location=self.location,
            notes=self.notes,
            calendar_name=self.calendar_name,
            calendar_color=self.calendar_color,
            source=SourceTag.LOCAL,
        )


class BridgeCalendar(BaseModel):
    id: str
    name: str
    color: Optional[str] = None

    def to_normalized(self) -> NormalizedCalendar:
        return NormalizedCalendar(
            id=self.id,
            name=self.name,
            color=self.color,
            source=SourceTag.LOCAL,
        )

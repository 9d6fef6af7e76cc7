"""
Normalized calendar schemas - the backend-agnostic shape of events and calendars.

Every calendar source maps its raw payloads into these models before the
aggregation engine sees them. Instances are frozen: they are built fresh on
every fetch and never mutated afterwards.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schedule_hub.utils.dates import ensure_utc, is_midnight


class SourceTag(str, Enum):
    """Which kind of backend produced an event or calendar."""
    REMOTE = "remote"  # OAuth-protected web API (Google Calendar)
    LOCAL = "local"    # Local helper process (Apple Calendar bridge)


class NormalizedEvent(BaseModel):
    """
    A calendar event in the shared schema.

    Invariants:
    - start and end are aware UTC datetimes and start <= end
    - all-day events have no time-of-day component (midnight UTC)
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Event id, unique within its source")
    title: str = Field(..., description="Event title")
    start: datetime = Field(..., description="Start instant (UTC)")
    end: datetime = Field(..., description="End instant (UTC)")
    is_all_day: bool = Field(False, description="Date-only event")
    location: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    calendar_name: str = Field(..., description="Name of the calendar holding the event")
    calendar_color: Optional[str] = Field(None, description="Display color, e.g. #1a73e8")
    source: SourceTag = Field(..., description="Backend that produced the event")

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_invariants(self) -> "NormalizedEvent":
        if self.start > self.end:
            raise ValueError(
                f"event {self.id!r} ends before it starts "
                f"({self.end.isoformat()} < {self.start.isoformat()})"
            )
        if self.is_all_day and not (is_midnight(self.start) and is_midnight(self.end)):
            raise ValueError(f"all-day event {self.id!r} carries a time of day")
        return self


class NormalizedCalendar(BaseModel):
    """
    A calendar (sub-calendar of a source) in the shared schema.

    The id is what users select in calendar filters; events only carry the
    calendar name, so filters are resolved id -> name before matching.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Calendar identifier within its source")
    name: str = Field(..., description="Display name")
    color: Optional[str] = Field(None)
    source: SourceTag = Field(...)
    account_label: Optional[str] = Field(None, description="Owning account, if known")

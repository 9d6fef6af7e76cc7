from schedule_hub.services.calendar_manager import (
    AggregationResult,
    CalendarManager,
    SourceFailure,
    SourceRegistration,
)
from schedule_hub.services.factory import build_calendar_manager

__all__ = [
    "AggregationResult",
    "CalendarManager",
    "SourceFailure",
    "SourceRegistration",
    "build_calendar_manager",
]

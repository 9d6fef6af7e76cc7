from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent, SourceTag

__all__ = ["NormalizedCalendar", "NormalizedEvent", "SourceTag"]

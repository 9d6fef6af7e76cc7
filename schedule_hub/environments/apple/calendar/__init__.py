"""
Apple Calendar Module - local calendars via the calendar-bridge helper.
"""

from schedule_hub.environments.apple.calendar.client import AppleCalendarSource
from schedule_hub.environments.apple.calendar.discovery import bridge_candidates, find_bridge_binary
from schedule_hub.environments.apple.calendar.schemas import (
    AuthorizationStatus,
    BridgeCalendar,
    BridgeEvent,
)

__all__ = [
    "AppleCalendarSource",
    "AuthorizationStatus",
    "BridgeCalendar",
    "BridgeEvent",
    "bridge_candidates",
    "find_bridge_binary",
]

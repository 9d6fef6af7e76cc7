"""
Apple Environment Module - macOS Calendar integration

apple/
└── calendar/
    ├── client.py         # AppleCalendarSource (subprocess bridge)
    ├── discovery.py      # Helper binary lookup
    └── schemas.py        # Bridge JSON payloads
"""

from schedule_hub.environments.apple.calendar import AppleCalendarSource, AuthorizationStatus

__all__ = ["AppleCalendarSource", "AuthorizationStatus"]

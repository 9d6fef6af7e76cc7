"""
Schedule Hub - multi-source calendar aggregation.

Collects events from Google Calendar (OAuth2) and Apple Calendar (local
helper process) into one chronologically ordered list.
"""

__version__ = "0.1.0"

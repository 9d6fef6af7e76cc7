"""
Environments Module - Calendar source integrations

This module provides a modular architecture for the calendar backends that
feed the aggregation engine.

Architecture Overview:
======================
environments/
├── __init__.py           # Module exports
├── base.py               # CalendarSource interface, OAuthCredential, exceptions
├── google/               # Google Calendar (remote, OAuth2)
│   ├── auth/             # Token endpoint client, credential manager, loopback flow
│   └── calendar/         # Calendar API source
└── apple/                # Apple Calendar (local helper process)
    └── calendar/         # Bridge source and binary discovery

Design Principles:
==================
1. Single interface: the engine sees every backend as a CalendarSource
2. Provider isolation: Google and Apple are completely independent
3. Owned credentials: each remote source owns its token state exclusively
"""

from schedule_hub.environments.base import (
    CalendarSource,
    OAuthCredential,
    SourceError,
    SourceNotFoundError,
    APIError,
    BridgeError,
    AuthenticationError,
    NoCredentialError,
    RefreshError,
    TokenExchangeError,
    AuthorizationDeniedError,
    NoCodeError,
    AuthorizationStateError,
    AuthorizationTimeoutError,
)

__all__ = [
    "CalendarSource",
    "OAuthCredential",
    "SourceError",
    "SourceNotFoundError",
    "APIError",
    "BridgeError",
    "AuthenticationError",
    "NoCredentialError",
    "RefreshError",
    "TokenExchangeError",
    "AuthorizationDeniedError",
    "NoCodeError",
    "AuthorizationStateError",
    "AuthorizationTimeoutError",
]

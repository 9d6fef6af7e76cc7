"""
Wiring for a CalendarManager from application settings.

Registers the Google source when enabled (a persisted credential may be
supplied up front or set later) and the Apple source when enabled and the
host runs the helper's platform, each with its configured calendar filter.
"""

import logging
import sys
from typing import Optional

from schedule_hub.core.config import Settings, settings as default_settings
from schedule_hub.environments.apple.calendar import AppleCalendarSource
from schedule_hub.environments.base import OAuthCredential
from schedule_hub.environments.google.auth import GoogleAuthClient, TokenRefreshCallback
from schedule_hub.environments.google.calendar import GoogleCalendarSource
from schedule_hub.services.calendar_manager import CalendarManager


logger = logging.getLogger("schedule_hub.services.factory")


def build_calendar_manager(
    settings: Optional[Settings] = None,
    credential: Optional[OAuthCredential] = None,
    on_token_refresh: Optional[TokenRefreshCallback] = None,
) -> CalendarManager:
    """
    Create a CalendarManager with the sources enabled in ``settings``.

    Args:
        settings: Settings to read (defaults to the global settings)
        credential: Persisted Google credential, if any
        on_token_refresh: Receives each refreshed Google credential for persistence

    Returns:
        A manager with "google" and/or "apple" registered
    """
    config = settings or default_settings
    manager = CalendarManager()

    if config.GOOGLE_CALENDAR_ENABLED:
        google = GoogleCalendarSource(
            auth_client=GoogleAuthClient(
                client_id=config.GOOGLE_CLIENT_ID,
                client_secret=config.GOOGLE_CLIENT_SECRET,
                redirect_uri=config.oauth_redirect_uri,
                timeout=config.HTTP_TIMEOUT_SECONDS,
            ),
            credential=credential,
            on_token_refresh=on_token_refresh,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        )
        manager.register_source(GoogleCalendarSource.source_name, google)
        manager.set_calendar_filter(GoogleCalendarSource.source_name, config.SELECTED_GOOGLE_CALENDARS)

    if config.APPLE_CALENDAR_ENABLED and sys.platform == config.APPLE_REQUIRED_PLATFORM:
        apple = AppleCalendarSource(
            binary_path=config.APPLE_BRIDGE_PATH,
            plugin_dir=config.APPLE_PLUGIN_DIR,
            required_platform=config.APPLE_REQUIRED_PLATFORM,
            events_timeout=config.APPLE_EVENTS_TIMEOUT_SECONDS,
            calendars_timeout=config.APPLE_CALENDARS_TIMEOUT_SECONDS,
            auth_timeout=config.APPLE_AUTH_TIMEOUT_SECONDS,
        )
        manager.register_source(AppleCalendarSource.source_name, apple)
        manager.set_calendar_filter(AppleCalendarSource.source_name, config.SELECTED_APPLE_CALENDARS)
    elif config.APPLE_CALENDAR_ENABLED:
        logger.info(f"Apple Calendar needs {config.APPLE_REQUIRED_PLATFORM}, skipping on {sys.platform}")

    return manager

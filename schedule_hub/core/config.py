"""
Configuration module - centralized settings for the calendar aggregation core.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To override, set environment variables:
        export GOOGLE_CLIENT_ID=1234.apps.googleusercontent.com
        export APPLE_PLUGIN_DIR=/path/to/plugin

    List values (SELECTED_*_CALENDARS) are read as JSON arrays:
        export SELECTED_APPLE_CALENDARS='["cal-1", "cal-2"]'
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    APP_NAME: str = "Schedule Hub"

    # LOG_LEVEL: Level for the "schedule_hub" logger tree
    LOG_LEVEL: str = "INFO"

    # DAYS_TO_SHOW: Size of the default date window, starting today
    DAYS_TO_SHOW: int = 7

    # HTTP_TIMEOUT_SECONDS: Timeout for token endpoint and Calendar API calls
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # ---------------------------------------------------------------------------
    # GOOGLE OAUTH SETTINGS
    # ---------------------------------------------------------------------------
    # Google Cloud Console: https://console.cloud.google.com/apis/credentials
    #
    # Setup Instructions:
    # 1. Enable the Google Calendar API
    # 2. Create an OAuth 2.0 Client ID (Desktop app)
    # 3. Add http://localhost:42813/oauth/callback as a redirect URI
    # 4. Copy Client ID and Client Secret to the .env file
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_CALENDAR_ENABLED: bool = True

    # Loopback listener used once, at setup time, to receive the OAuth callback.
    # The port must match the redirect URI registered with Google.
    OAUTH_REDIRECT_HOST: str = "127.0.0.1"
    OAUTH_REDIRECT_PORT: int = 42813
    OAUTH_REDIRECT_PATH: str = "/oauth/callback"
    OAUTH_FLOW_TIMEOUT_SECONDS: float = 300.0

    # Access tokens are refreshed this long before they expire
    TOKEN_REFRESH_BUFFER_SECONDS: int = 300

    # Calendar ids whose events are shown (empty = all calendars)
    SELECTED_GOOGLE_CALENDARS: List[str] = []

    # ---------------------------------------------------------------------------
    # APPLE CALENDAR SETTINGS (macOS only)
    # ---------------------------------------------------------------------------
    # The calendar-bridge helper reads EventKit and prints JSON on stdout.
    APPLE_CALENDAR_ENABLED: bool = True

    # APPLE_BRIDGE_PATH: Explicit path to the helper binary (skips discovery)
    APPLE_BRIDGE_PATH: Optional[str] = None

    # APPLE_PLUGIN_DIR: Installation directory searched for the helper
    APPLE_PLUGIN_DIR: Optional[str] = None
    APPLE_BRIDGE_BINARY_NAME: str = "calendar-bridge"
    APPLE_REQUIRED_PLATFORM: str = "darwin"

    # Per-subcommand timeouts for the helper
    APPLE_EVENTS_TIMEOUT_SECONDS: float = 30.0
    APPLE_CALENDARS_TIMEOUT_SECONDS: float = 10.0
    APPLE_AUTH_TIMEOUT_SECONDS: float = 5.0

    SELECTED_APPLE_CALENDARS: List[str] = []

    @property
    def oauth_redirect_uri(self) -> str:
        """Redirect URI registered with Google for the loopback listener."""
        return f"http://localhost:{self.OAUTH_REDIRECT_PORT}{self.OAUTH_REDIRECT_PATH}"


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from schedule_hub.core.config import settings
settings = Settings()

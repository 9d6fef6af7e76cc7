"""
Apple Calendar Source - local calendars through the calendar-bridge helper.

The helper is a small macOS command-line program that reads EventKit and
prints JSON on stdout. Each call spawns it once with a subcommand:

    calendar-bridge events --start 2024-01-15T00:00:00Z --end 2024-01-22T00:00:00Z
    calendar-bridge calendars
    calendar-bridge check-auth

Every call is bounded by a per-subcommand timeout. Failures (spawn error,
non-zero exit, timeout, malformed JSON) are raised as BridgeError, except
for check_authorization_status() which is diagnostic and never raises.
"""

import asyncio
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from schedule_hub.core.config import settings
from schedule_hub.environments.apple.calendar.discovery import PathLike, find_bridge_binary
from schedule_hub.environments.apple.calendar.schemas import (
    AuthorizationStatus,
    BridgeCalendar,
    BridgeEvent,
)
from schedule_hub.environments.base import BridgeError, CalendarSource
from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent
from schedule_hub.utils.dates import isoformat_utc


logger = logging.getLogger("schedule_hub.environments.apple.calendar")

_EVENTS_ADAPTER = TypeAdapter(List[BridgeEvent])
_CALENDARS_ADAPTER = TypeAdapter(List[BridgeCalendar])


class AppleCalendarSource(CalendarSource):
    """
    Apple Calendar as a calendar source (macOS only).

    Example:
        source = AppleCalendarSource(plugin_dir="/path/to/plugin")
        if await source.is_available():
            events = await source.get_events(start, end)
    """

    source_name = "apple"

    def __init__(
        self,
        binary_path: Optional[PathLike] = None,
        plugin_dir: Optional[PathLike] = None,
        required_platform: Optional[str] = None,
        events_timeout: Optional[float] = None,
        calendars_timeout: Optional[float] = None,
        auth_timeout: Optional[float] = None,
    ):
        """
        Args:
            binary_path: Explicit helper path (defaults to settings / discovery)
            plugin_dir: Directory searched for the helper (defaults to settings)
            required_platform: sys.platform value the helper runs on (default "darwin")
            events_timeout: Seconds allowed for `events` (default 30)
            calendars_timeout: Seconds allowed for `calendars` (default 10)
            auth_timeout: Seconds allowed for `check-auth` (default 5)
        """
        explicit = binary_path or settings.APPLE_BRIDGE_PATH
        if explicit:
            self.binary_path = Path(explicit).expanduser()
        else:
            self.binary_path = find_bridge_binary(plugin_dir=plugin_dir or settings.APPLE_PLUGIN_DIR)

        self.required_platform = required_platform or settings.APPLE_REQUIRED_PLATFORM
        self.events_timeout = events_timeout or settings.APPLE_EVENTS_TIMEOUT_SECONDS
        self.calendars_timeout = calendars_timeout or settings.APPLE_CALENDARS_TIMEOUT_SECONDS
        self.auth_timeout = auth_timeout or settings.APPLE_AUTH_TIMEOUT_SECONDS

    # -------------------------------------------------------------------------
    # PROCESS
    # -------------------------------------------------------------------------

    async def _run(self, args: Sequence[str], timeout: float) -> Any:
        """
        Run the helper with ``args`` and return its decoded JSON output.

        Raises:
            BridgeError: On spawn failure, timeout, non-zero exit or bad JSON
        """
        command = " ".join(args)
        try:
            process = await asyncio.create_subprocess_exec(
                str(self.binary_path),
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BridgeError(f"Could not start calendar bridge: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            raise BridgeError(f"Calendar bridge `{command}` timed out after {timeout}s") from None
        finally:
            # Also reached when the caller is cancelled mid-call
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        error_output = stderr.decode(errors="replace").strip()
        if process.returncode != 0:
            raise BridgeError(
                f"Calendar bridge `{command}` exited with status {process.returncode}: {error_output}",
                returncode=process.returncode,
                stderr=error_output,
            )

        try:
            return json.loads(stdout)
        except ValueError as e:
            raise BridgeError(
                f"Calendar bridge `{command}` printed invalid JSON",
                returncode=process.returncode,
                stderr=error_output,
            ) from e

    # -------------------------------------------------------------------------
    # CALENDARSOURCE INTERFACE
    # -------------------------------------------------------------------------

    async def is_available(self) -> bool:
        """True on the required platform when the helper exists and is executable."""
        if sys.platform != self.required_platform:
            return False

        if not (self.binary_path.is_file() and os.access(self.binary_path, os.X_OK)):
            logger.warning(f"Apple Calendar bridge binary not found at: {self.binary_path}")
            return False

        return True

    async def get_events(self, start: datetime, end: datetime) -> List[NormalizedEvent]:
        try:
            payload = await self._run(
                ["events", "--start", isoformat_utc(start), "--end", isoformat_utc(end)],
                timeout=self.events_timeout,
            )
            events = [raw.to_normalized() for raw in _EVENTS_ADAPTER.validate_python(payload)]
        except (BridgeError, ValidationError) as e:
            logger.error(f"Error fetching Apple Calendar events: {e}")
            raise

        logger.info(f"Fetched {len(events)} Apple Calendar events")
        return events

    async def get_calendars(self) -> List[NormalizedCalendar]:
        try:
            payload = await self._run(["calendars"], timeout=self.calendars_timeout)
            calendars = [raw.to_normalized() for raw in _CALENDARS_ADAPTER.validate_python(payload)]
        except (BridgeError, ValidationError) as e:
            logger.error(f"Error fetching Apple Calendars: {e}")
            raise

        logger.info(f"Found {len(calendars)} Apple calendars")
        return calendars

    # -------------------------------------------------------------------------
    # DIAGNOSTICS
    # -------------------------------------------------------------------------

    async def check_authorization_status(self) -> AuthorizationStatus:
        """
        Ask the helper whether macOS granted calendar access.

        Never raises: any failure is reported as AuthorizationStatus.UNKNOWN.
        """
        try:
            payload = await self._run(["check-auth"], timeout=self.auth_timeout)
        except BridgeError as e:
            logger.error(f"Error checking authorization status: {e}")
            return AuthorizationStatus.UNKNOWN

        if not isinstance(payload, dict):
            return AuthorizationStatus.UNKNOWN
        return AuthorizationStatus.parse(payload.get("status"))

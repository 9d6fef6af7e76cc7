"""
Calendar Manager - aggregates events from every registered calendar source.

Architecture:
=============
1. Sources register under a unique name (e.g. "google", "apple")
2. fetch_events() queries every source concurrently:
   availability check -> get_events -> optional calendar filter
3. A source that is unavailable is skipped; a source that raises is
   recorded as a SourceFailure; neither affects the other sources
4. Results are concatenated in registration order and stably sorted
   by start time

Calendar filters hold calendar ids, but events only carry the calendar
name, so a filter is resolved through the source's get_calendars() into
a set of names before events are matched.

Usage:
======
    manager = CalendarManager()
    manager.register_source("google", google_source)
    manager.register_source("apple", apple_source)
    manager.set_calendar_filter("apple", ["cal-2"])

    events = await manager.fetch_events(start, end)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from schedule_hub.environments.base import CalendarSource, SourceNotFoundError
from schedule_hub.schemas.calendar import NormalizedCalendar, NormalizedEvent
from schedule_hub.utils.dates import ensure_utc


logger = logging.getLogger("schedule_hub.services.calendar_manager")


@dataclass
class SourceRegistration:
    """A registered source and its calendar selection (empty = all calendars)."""
    name: str
    source: CalendarSource
    selected_calendar_ids: Tuple[str, ...] = ()


@dataclass
class SourceFailure:
    """An exception raised by one source during an aggregation call."""
    source_name: str
    operation: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.source_name}.{self.operation}: {self.error}"


@dataclass
class AggregationResult:
    """Merged events plus the sources that failed while producing them."""
    events: List[NormalizedEvent] = field(default_factory=list)
    failures: List[SourceFailure] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)


class CalendarManager:
    """
    Registry of calendar sources and the aggregation engine over them.

    The registry is expected to be changed only between fetch calls;
    concurrent registration during a fetch is not supported.
    """

    def __init__(self):
        self._registrations: Dict[str, SourceRegistration] = {}

    # -------------------------------------------------------------------------
    # REGISTRY
    # -------------------------------------------------------------------------

    def register_source(self, name: str, source: CalendarSource) -> None:
        """Add a source, or replace the one registered under ``name``."""
        existing = self._registrations.get(name)
        selected = existing.selected_calendar_ids if existing else ()
        self._registrations[name] = SourceRegistration(name, source, selected)
        logger.info(f"Registered calendar source {name}")

    def unregister_source(self, name: str) -> None:
        """Remove a source and its calendar filter; unknown names are ignored."""
        if self._registrations.pop(name, None) is not None:
            logger.info(f"Unregistered calendar source {name}")

    def has_source(self, name: str) -> bool:
        return name in self._registrations

    def source_names(self) -> List[str]:
        return list(self._registrations)

    def get_source(self, name: str) -> Optional[CalendarSource]:
        registration = self._registrations.get(name)
        return registration.source if registration else None

    def set_calendar_filter(self, name: str, calendar_ids: Iterable[str]) -> None:
        """
        Restrict a source to the given calendar ids (empty = no filter).

        Duplicates are dropped, first occurrence wins.

        Raises:
            SourceNotFoundError: If no source is registered under ``name``
        """
        registration = self._registrations.get(name)
        if registration is None:
            raise SourceNotFoundError(f"No calendar source registered as {name!r}")

        registration.selected_calendar_ids = tuple(dict.fromkeys(calendar_ids))
        logger.info(
            f"Calendar filter for {name} set to {len(registration.selected_calendar_ids)} calendars"
        )

    def get_calendar_filter(self, name: str) -> Tuple[str, ...]:
        registration = self._registrations.get(name)
        return registration.selected_calendar_ids if registration else ()

    # -------------------------------------------------------------------------
    # EVENTS
    # -------------------------------------------------------------------------

    async def fetch_events(self, start: datetime, end: datetime) -> List[NormalizedEvent]:
        """
        Events of every available source in [start, end), sorted by start.

        Never raises for source failures; see fetch_events_report() to learn
        which sources were left out.
        """
        result = await self.fetch_events_report(start, end)
        return result.events

    async def fetch_events_report(self, start: datetime, end: datetime) -> AggregationResult:
        """Same aggregation as fetch_events(), also returning per-source failures."""
        start, end = ensure_utc(start), ensure_utc(end)
        registrations = list(self._registrations.values())
        failures: List[SourceFailure] = []

        per_source = await asyncio.gather(
            *(self._fetch_source_events(reg, start, end, failures) for reg in registrations)
        )

        events = [event for source_events in per_source for event in source_events]
        # list.sort is stable: equal starts keep source, then fetch order
        events.sort(key=lambda event: event.start)

        logger.info(
            f"Aggregated {len(events)} events from {len(registrations)} sources",
            extra={"failed_sources": [f.source_name for f in failures]},
        )
        return AggregationResult(events=events, failures=failures)

    async def _fetch_source_events(
        self,
        registration: SourceRegistration,
        start: datetime,
        end: datetime,
        failures: List[SourceFailure],
    ) -> List[NormalizedEvent]:
        name, source = registration.name, registration.source
        operation = "is_available"

        try:
            if not await source.is_available():
                logger.warning(f"Calendar source {name} is not available")
                return []

            operation = "get_events"
            events = await source.get_events(start, end)

            selected = registration.selected_calendar_ids
            if selected:
                operation = "get_calendars"
                calendars = await source.get_calendars()
                selected_names = {c.name for c in calendars if c.id in selected}
                events = [e for e in events if e.calendar_name in selected_names]

            return list(events)
        except Exception as e:
            logger.error(f"Error fetching events from {name} ({operation}): {e}")
            failures.append(SourceFailure(name, operation, e))
            return []

    # -------------------------------------------------------------------------
    # CALENDARS
    # -------------------------------------------------------------------------

    async def fetch_calendars(self, name: Optional[str] = None) -> List[NormalizedCalendar]:
        """
        Calendars of one source (``name``) or of every source, unsorted.

        An unregistered ``name`` yields an empty list.
        """
        if name is not None:
            registration = self._registrations.get(name)
            registrations = [registration] if registration else []
        else:
            registrations = list(self._registrations.values())

        per_source = await asyncio.gather(
            *(self._fetch_source_calendars(reg) for reg in registrations)
        )
        return [calendar for calendars in per_source for calendar in calendars]

    async def _fetch_source_calendars(self, registration: SourceRegistration) -> List[NormalizedCalendar]:
        try:
            if not await registration.source.is_available():
                return []
            return list(await registration.source.get_calendars())
        except Exception as e:
            logger.error(f"Error fetching calendars from {registration.name}: {e}")
            return []

"""
Tests for the CalendarManager aggregation engine.

Covers:
- Registry operations and calendar filters
- Merge order and stable sorting
- Availability gating
- Per-source error isolation and failure reporting
- Calendar-name based filtering
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from schedule_hub.environments.base import APIError, CalendarSource, RefreshError, SourceNotFoundError
from schedule_hub.schemas.calendar import SourceTag
from schedule_hub.services.calendar_manager import CalendarManager
from tests.conftest import FakeSource, make_calendar, make_event, utc


WINDOW = (utc(2024, 3, 1), utc(2024, 3, 8))


@pytest.fixture
def manager():
    return CalendarManager()


# ===========================================================================
# REGISTRY
# ===========================================================================

class TestRegistry:
    """Registering, replacing and removing sources."""

    def test_register_and_unregister(self, manager):
        manager.register_source("google", FakeSource())
        manager.register_source("apple", FakeSource())

        assert manager.source_names() == ["google", "apple"]
        assert manager.has_source("google")

        manager.unregister_source("google")
        assert not manager.has_source("google")
        assert manager.source_names() == ["apple"]

    def test_unregister_unknown_is_noop(self, manager):
        manager.unregister_source("missing")
        assert manager.source_names() == []

    def test_filter_requires_registered_source(self, manager):
        with pytest.raises(SourceNotFoundError):
            manager.set_calendar_filter("apple", ["cal-1"])

    def test_filter_is_ordered_and_deduplicated(self, manager):
        manager.register_source("apple", FakeSource())
        manager.set_calendar_filter("apple", ["b", "a", "b", "c"])

        assert manager.get_calendar_filter("apple") == ("b", "a", "c")

    def test_replacing_source_keeps_filter(self, manager):
        manager.register_source("apple", FakeSource())
        manager.set_calendar_filter("apple", ["cal-1"])

        replacement = FakeSource()
        manager.register_source("apple", replacement)

        assert manager.get_source("apple") is replacement
        assert manager.get_calendar_filter("apple") == ("cal-1",)

    def test_unregister_drops_filter(self, manager):
        manager.register_source("apple", FakeSource())
        manager.set_calendar_filter("apple", ["cal-1"])
        manager.unregister_source("apple")
        manager.register_source("apple", FakeSource())

        assert manager.get_calendar_filter("apple") == ()


# ===========================================================================
# EVENTS - MERGE AND SORT
# ===========================================================================

class TestFetchEvents:
    """Aggregated event fetching."""

    @pytest.mark.asyncio
    async def test_no_sources_returns_empty_list(self, manager):
        assert await manager.fetch_events(*WINDOW) == []

    @pytest.mark.asyncio
    async def test_two_sources_are_merged_in_start_order(self, manager):
        remote = make_event("r1", utc(2024, 3, 1, 10, 0), utc(2024, 3, 1, 11, 0))
        local = make_event(
            "l1", utc(2024, 3, 1, 9, 0), utc(2024, 3, 1, 9, 30), source=SourceTag.LOCAL
        )
        manager.register_source("remote", FakeSource(events=[remote]))
        manager.register_source("local", FakeSource(events=[local]))

        events = await manager.fetch_events(*WINDOW)

        assert [e.id for e in events] == ["l1", "r1"]
        assert [e.source for e in events] == [SourceTag.LOCAL, SourceTag.REMOTE]

    @pytest.mark.asyncio
    async def test_output_is_sorted_non_decreasing(self, manager):
        base = utc(2024, 3, 1, 8)
        manager.register_source("a", FakeSource(events=[
            make_event(f"a{i}", base + timedelta(minutes=37 * i)) for i in (5, 1, 3)
        ]))
        manager.register_source("b", FakeSource(events=[
            make_event(f"b{i}", base + timedelta(minutes=41 * i)) for i in (4, 0, 2)
        ]))

        events = await manager.fetch_events(*WINDOW)

        starts = [e.start for e in events]
        assert starts == sorted(starts)
        assert len(events) == 6

    @pytest.mark.asyncio
    async def test_ties_keep_source_then_fetch_order(self, manager):
        same = utc(2024, 3, 2, 12)
        manager.register_source("first", FakeSource(events=[
            make_event("f1", same), make_event("f2", same),
        ]))
        manager.register_source("second", FakeSource(events=[make_event("s1", same)]))

        events = await manager.fetch_events(*WINDOW)

        assert [e.id for e in events] == ["f1", "f2", "s1"]

    @pytest.mark.asyncio
    async def test_repeated_fetch_is_idempotent(self, manager):
        manager.register_source("a", FakeSource(events=[
            make_event("a1", utc(2024, 3, 3, 9)), make_event("a2", utc(2024, 3, 1, 9)),
        ]))

        first = await manager.fetch_events(*WINDOW)
        second = await manager.fetch_events(*WINDOW)

        assert first == second
        assert first is not second

    @pytest.mark.asyncio
    async def test_naive_window_is_treated_as_utc(self, manager):
        source = FakeSource(events=[make_event("a1", utc(2024, 3, 1, 9))])
        manager.register_source("a", source)

        events = await manager.fetch_events(WINDOW[0].replace(tzinfo=None), WINDOW[1].replace(tzinfo=None))

        assert [e.id for e in events] == ["a1"]


# ===========================================================================
# EVENTS - AVAILABILITY AND ISOLATION
# ===========================================================================

class TestIsolation:
    """Unavailable and failing sources never affect the others."""

    @pytest.mark.asyncio
    async def test_unavailable_source_is_skipped(self, manager):
        offline = FakeSource(events=[make_event("x", utc(2024, 3, 1, 9))], available=False)
        online = FakeSource(events=[make_event("y", utc(2024, 3, 1, 10))])
        manager.register_source("offline", offline)
        manager.register_source("online", online)

        result = await manager.fetch_events_report(*WINDOW)

        assert [e.id for e in result.events] == ["y"]
        assert offline.get_events_calls == 0
        assert result.failures == []

    @pytest.mark.asyncio
    async def test_failing_source_does_not_abort_others(self, manager):
        manager.register_source("broken", FakeSource(events_error=APIError("boom", status_code=500)))
        manager.register_source("healthy", FakeSource(events=[make_event("ok", utc(2024, 3, 1, 9))]))

        events = await manager.fetch_events(*WINDOW)

        assert [e.id for e in events] == ["ok"]

    @pytest.mark.asyncio
    async def test_availability_is_checked_before_fetching(self, manager):
        source = AsyncMock(spec=CalendarSource)
        source.is_available.return_value = False
        manager.register_source("mocked", source)

        assert await manager.fetch_events(*WINDOW) == []
        source.is_available.assert_awaited_once()
        source.get_events.assert_not_awaited()
        source.get_calendars.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failures_are_reported(self, manager):
        error = RefreshError("invalid_grant")
        manager.register_source("google", FakeSource(events_error=error))
        manager.register_source("apple", FakeSource(availability_error=OSError("disk")))
        manager.register_source("healthy", FakeSource(events=[make_event("ok", utc(2024, 3, 1, 9))]))

        result = await manager.fetch_events_report(*WINDOW)

        assert result.is_partial
        assert [e.id for e in result.events] == ["ok"]
        by_source = {f.source_name: f for f in result.failures}
        assert by_source["google"].operation == "get_events"
        assert by_source["google"].error is error
        assert by_source["apple"].operation == "is_available"

    @pytest.mark.asyncio
    async def test_sources_are_queried_concurrently(self, manager):
        released = asyncio.Event()

        class WaitingSource(FakeSource):
            async def get_events(self, start, end):
                await released.wait()
                return await super().get_events(start, end)

        class ReleasingSource(FakeSource):
            async def get_events(self, start, end):
                released.set()
                return await super().get_events(start, end)

        manager.register_source("a", WaitingSource(events=[make_event("a", utc(2024, 3, 1, 9))]))
        manager.register_source("b", ReleasingSource(events=[make_event("b", utc(2024, 3, 1, 8))]))

        events = await asyncio.wait_for(manager.fetch_events(*WINDOW), timeout=2)

        assert [e.id for e in events] == ["b", "a"]


# ===========================================================================
# EVENTS - CALENDAR FILTER
# ===========================================================================

class TestCalendarFilter:
    """Filters hold calendar ids and match events by calendar name."""

    @pytest.fixture
    def filtered_source(self):
        return FakeSource(
            events=[
                make_event("w1", utc(2024, 3, 1, 9), calendar_name="Work"),
                make_event("h1", utc(2024, 3, 1, 10), calendar_name="Home"),
                make_event("h2", utc(2024, 3, 1, 11), calendar_name="Home"),
            ],
            calendars=[make_calendar("cal-1", "Work"), make_calendar("cal-2", "Home")],
        )

    @pytest.mark.asyncio
    async def test_filter_keeps_selected_calendar_names(self, manager, filtered_source):
        manager.register_source("apple", filtered_source)
        manager.set_calendar_filter("apple", ["cal-2"])

        events = await manager.fetch_events(*WINDOW)

        assert [e.id for e in events] == ["h1", "h2"]
        assert all(e.calendar_name == "Home" for e in events)

    @pytest.mark.asyncio
    async def test_empty_filter_includes_everything(self, manager, filtered_source):
        manager.register_source("apple", filtered_source)
        manager.set_calendar_filter("apple", [])

        events = await manager.fetch_events(*WINDOW)

        assert len(events) == 3
        assert filtered_source.get_calendars_calls == 0

    @pytest.mark.asyncio
    async def test_unknown_filter_ids_drop_all_events(self, manager, filtered_source):
        manager.register_source("apple", filtered_source)
        manager.set_calendar_filter("apple", ["cal-9"])

        assert await manager.fetch_events(*WINDOW) == []

    @pytest.mark.asyncio
    async def test_filter_resolution_failure_excludes_source(self, manager, filtered_source):
        filtered_source.calendars_error = APIError("calendar list down")
        manager.register_source("apple", filtered_source)
        manager.set_calendar_filter("apple", ["cal-2"])
        manager.register_source("other", FakeSource(events=[make_event("o1", utc(2024, 3, 1, 12))]))

        result = await manager.fetch_events_report(*WINDOW)

        assert [e.id for e in result.events] == ["o1"]
        assert [(f.source_name, f.operation) for f in result.failures] == [("apple", "get_calendars")]

    @pytest.mark.asyncio
    async def test_filter_applies_per_source(self, manager, filtered_source):
        manager.register_source("apple", filtered_source)
        manager.set_calendar_filter("apple", ["cal-1"])
        manager.register_source("google", FakeSource(events=[
            make_event("g1", utc(2024, 3, 1, 8), calendar_name="Home"),
        ]))

        events = await manager.fetch_events(*WINDOW)

        assert [e.id for e in events] == ["g1", "w1"]


# ===========================================================================
# CALENDARS
# ===========================================================================

class TestFetchCalendars:
    """Calendar enumeration across sources."""

    @pytest.mark.asyncio
    async def test_all_sources_concatenated_in_registration_order(self, manager):
        manager.register_source("google", FakeSource(calendars=[make_calendar("g-2", "Zeta")]))
        manager.register_source("apple", FakeSource(calendars=[
            make_calendar("a-1", "Alpha", SourceTag.LOCAL),
        ]))

        calendars = await manager.fetch_calendars()

        assert [c.id for c in calendars] == ["g-2", "a-1"]

    @pytest.mark.asyncio
    async def test_named_source_only(self, manager):
        google = FakeSource(calendars=[make_calendar("g-1", "Work")])
        apple = FakeSource(calendars=[make_calendar("a-1", "Home", SourceTag.LOCAL)])
        manager.register_source("google", google)
        manager.register_source("apple", apple)

        calendars = await manager.fetch_calendars("apple")

        assert [c.id for c in calendars] == ["a-1"]
        assert google.get_calendars_calls == 0

    @pytest.mark.asyncio
    async def test_unregistered_name_returns_empty(self, manager):
        manager.register_source("google", FakeSource(calendars=[make_calendar("g-1", "Work")]))

        assert await manager.fetch_calendars("apple") == []

    @pytest.mark.asyncio
    async def test_unavailable_and_failing_sources_are_skipped(self, manager):
        manager.register_source("offline", FakeSource(calendars=[make_calendar("x", "X")], available=False))
        manager.register_source("broken", FakeSource(calendars_error=APIError("boom")))
        manager.register_source("healthy", FakeSource(calendars=[make_calendar("h", "H")]))

        calendars = await manager.fetch_calendars()

        assert [c.id for c in calendars] == ["h"]

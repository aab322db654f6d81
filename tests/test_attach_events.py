"""Tests for attaching events to month grid cells."""

from datetime import datetime, date

import pytz

from backend import timezone_utils
from backend.calendar_view import build_month_grid, attach_events_to_grid


TODAY = date(2024, 3, 15)


def test_events_land_in_their_start_date_cell(make_event):
    grid = build_month_grid(2024, 2, TODAY)
    events = [
        make_event("a", "Lodge meeting", datetime(2024, 3, 15, 9, 30, tzinfo=pytz.UTC)),
        make_event("b", "Holiday", date(2024, 3, 17)),
    ]

    result = attach_events_to_grid(events, grid)

    meeting_cell = result.cell_for_key("2024-03-15")
    assert [s.text for s in meeting_cell.events] == ["09:30 AM - Lodge meeting"]
    assert meeting_cell.events[0].event_id == "a"

    holiday_cell = result.cell_for_key("2024-03-17")
    assert [s.text for s in holiday_cell.events] == ["All Day - Holiday"]

    # The input grid is left untouched
    assert grid.cell_for_key("2024-03-15").events == ()


def test_attach_is_idempotent(make_event):
    grid = build_month_grid(2024, 2, TODAY)
    events = [
        make_event("a", "Breakfast", datetime(2024, 3, 2, 8, 0, tzinfo=pytz.UTC)),
        make_event("b", "Dinner", datetime(2024, 3, 2, 19, 0, tzinfo=pytz.UTC)),
    ]

    once = attach_events_to_grid(events, grid)
    twice = attach_events_to_grid(events, once)

    assert once == twice
    assert len(twice.cell_for_key("2024-03-02").events) == 2


def test_events_outside_the_month_are_dropped(make_event):
    grid = build_month_grid(2024, 2, TODAY)
    events = [
        make_event("feb", "Last of February", datetime(2024, 2, 29, 12, 0, tzinfo=pytz.UTC)),
        make_event("apr", "First of April", date(2024, 4, 1)),
    ]

    result = attach_events_to_grid(events, grid)

    assert result.event_ids == set()
    # Leading and trailing cells never hold events
    assert all(c.events == () for c in result.cells if not c.in_current_month)


def test_date_key_uses_configured_timezone(make_event):
    timezone_utils.set_timezone("America/New_York")
    grid = build_month_grid(2024, 2, TODAY)
    # 02:00 UTC on the 16th is 22:00 on the 15th in New York
    event = make_event("late", "Late session", datetime(2024, 3, 16, 2, 0, tzinfo=pytz.UTC))

    result = attach_events_to_grid([event], grid)

    assert [s.text for s in result.cell_for_key("2024-03-15").events] == ["10:00 PM - Late session"]
    assert result.cell_for_key("2024-03-16").events == ()


def test_multiple_events_keep_fetch_order_within_a_cell(make_event):
    grid = build_month_grid(2024, 2, TODAY)
    events = [
        make_event("1", "First", datetime(2024, 3, 5, 8, 0, tzinfo=pytz.UTC)),
        make_event("2", "Second", datetime(2024, 3, 5, 12, 0, tzinfo=pytz.UTC)),
    ]
    result = attach_events_to_grid(events, grid)
    assert [s.title for s in result.cell_for_key("2024-03-05").events] == ["First", "Second"]

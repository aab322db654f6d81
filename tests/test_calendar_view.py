"""Tests for CalendarView state transitions, request tokens and the detail overlay."""

from datetime import datetime, date

import pytest
import pytz

from backend.calendar_view import (
    CalendarContext, CalendarView, DisplayedMonth, SurfaceKind, ViewMode,
    build_event_detail, run_inline,
)
from backend.config import LocalizationConfig
from backend.event_source import AuthError, Credential


def utc(*args):
    return datetime(*args, tzinfo=pytz.UTC)


# ==================== Sign-in ====================

def test_initial_state_asks_for_sign_in(view):
    view.start()
    state = view.state

    assert state.mode == ViewMode.MONTH
    assert state.displayed_month == DisplayedMonth(2024, 2)
    assert state.title == "March 2024"
    assert state.surface.kind == SurfaceKind.SIGN_IN
    assert state.show_connect and not state.show_disconnect
    assert state.connect_enabled


def test_connect_is_disabled_until_identity_is_ready(fake_source):
    ctx = CalendarContext(source=fake_source, api_ready=True, identity_ready=False,
                          now=lambda: utc(2024, 3, 15, 10, 0))
    calendar_view = CalendarView(ctx)

    calendar_view.sign_in()

    assert not calendar_view.state.connect_enabled
    assert not calendar_view.signed_in


def test_start_restores_cached_session(view, fake_source, make_event):
    fake_source.cached_credential = Credential(token="cached")
    fake_source.events = [make_event("a", "Lodge dinner", utc(2024, 3, 9, 18, 0))]

    view.start()

    assert view.signed_in
    assert view.state.surface.kind == SurfaceKind.MONTH
    assert view.state.surface.grid.event_ids == {"a"}


def test_sign_in_loads_the_month(view, fake_source, make_event):
    fake_source.events = [make_event("a", "Officers meeting", utc(2024, 3, 5, 19, 0))]

    view.sign_in()

    state = view.state
    assert state.signed_in
    assert state.show_disconnect and not state.show_connect
    assert state.surface.kind == SurfaceKind.MONTH
    assert [s.text for s in state.surface.grid.cell_for_key("2024-03-05").events] == ["07:00 PM - Officers meeting"]


def test_failed_sign_in_keeps_connect_visible(view, fake_source):
    fake_source.auth_error = AuthError("consent denied")

    view.sign_in()

    state = view.state
    assert not state.signed_in
    assert state.show_connect
    assert state.status_message == "consent denied"
    assert state.surface.kind == SurfaceKind.SIGN_IN


def test_second_sign_in_waits_for_the_first(fake_source, deferred):
    ctx = CalendarContext(source=fake_source, dispatch=deferred, api_ready=True,
                          identity_ready=True, now=lambda: utc(2024, 3, 15, 10, 0))
    calendar_view = CalendarView(ctx)

    calendar_view.sign_in()
    assert not calendar_view.state.connect_enabled

    calendar_view.sign_in()
    assert deferred.operation_ids == ["auth-1"]

    deferred.complete()
    assert calendar_view.signed_in
    assert deferred.operation_ids == ["month-1"]


def test_sign_in_is_offered_again_after_a_failure(fake_source, deferred):
    ctx = CalendarContext(source=fake_source, dispatch=deferred, api_ready=True,
                          identity_ready=True, now=lambda: utc(2024, 3, 15, 10, 0))
    calendar_view = CalendarView(ctx)
    fake_source.auth_error = AuthError("Google sign-in timed out")

    calendar_view.sign_in()
    deferred.complete()

    state = calendar_view.state
    assert state.connect_enabled
    assert state.status_message == "Google sign-in timed out"

    fake_source.auth_error = None
    calendar_view.sign_in()
    assert deferred.operation_ids == ["auth-2"]


def test_session_restore_blocks_sign_in(fake_source, deferred):
    ctx = CalendarContext(source=fake_source, dispatch=deferred, api_ready=True,
                          identity_ready=True, now=lambda: utc(2024, 3, 15, 10, 0))
    calendar_view = CalendarView(ctx)

    calendar_view.start()
    calendar_view.sign_in()

    assert deferred.operation_ids == ["restore-1"]
    deferred.complete()  # no cached credential
    assert calendar_view.state.connect_enabled
    assert calendar_view.state.surface.kind == SurfaceKind.SIGN_IN


def test_sign_out_discards_a_pending_sign_in(fake_source, deferred):
    ctx = CalendarContext(source=fake_source, dispatch=deferred, api_ready=True,
                          identity_ready=True, now=lambda: utc(2024, 3, 15, 10, 0))
    calendar_view = CalendarView(ctx)

    calendar_view.sign_in()
    calendar_view.sign_out()
    deferred.complete()

    assert not calendar_view.signed_in
    assert calendar_view.state.connect_enabled
    assert deferred.pending == []


def test_feed_sources_hide_sign_in_controls(fake_source):
    fake_source.cached_credential = Credential(token=None)
    ctx = CalendarContext(source=fake_source, api_ready=True, identity_ready=True,
                          sign_in_required=False, now=lambda: utc(2024, 3, 15, 10, 0))
    calendar_view = CalendarView(ctx)

    calendar_view.start()

    state = calendar_view.state
    assert state.signed_in
    assert not state.show_connect
    assert not state.show_disconnect


def test_sign_out_hides_events_and_revokes(signed_in_view, fake_source, make_event):
    fake_source.events = [make_event("a", "Meeting", utc(2024, 3, 5, 19, 0))]
    signed_in_view.refresh()
    signed_in_view.show_event_detail_by_id("a")

    signed_in_view.sign_out()

    state = signed_in_view.state
    assert not state.signed_in
    assert state.surface.kind == SurfaceKind.SIGN_IN
    assert state.overlay is None
    assert signed_in_view.month_cache is None
    assert fake_source.revoked == [Credential(token="test-token")]


def test_sign_out_discards_in_flight_responses(deferred_view, deferred, fake_source, make_event):
    fake_source.events = [make_event("a", "Meeting", utc(2024, 3, 5, 19, 0))]
    assert len(deferred.pending) == 1  # month fetch

    deferred_view.sign_out()
    deferred.complete_all()

    assert deferred_view.state.surface.kind == SurfaceKind.SIGN_IN
    assert fake_source.revoked


# ==================== Navigation ====================

def test_navigate_month_fetches_the_whole_month(signed_in_view, fake_source):
    signed_in_view.navigate_month(1)

    assert signed_in_view.displayed_month == DisplayedMonth(2024, 3)
    call = fake_source.calls[-1]
    assert call["time_min"] == utc(2024, 4, 1)
    assert call["time_max"] == utc(2024, 5, 1)
    assert call["max_results"] == 250
    assert signed_in_view.state.surface.grid.title == "April 2024"


def test_navigate_month_across_year_boundary(signed_in_view):
    for _ in range(10):
        signed_in_view.navigate_month(1)
    assert signed_in_view.displayed_month == DisplayedMonth(2025, 0)

    signed_in_view.navigate_month(-1)
    assert signed_in_view.displayed_month == DisplayedMonth(2024, 11)


def test_navigate_forward_then_back_returns_to_start(signed_in_view):
    start = signed_in_view.displayed_month
    for _ in range(25):
        signed_in_view.navigate_month(1)
    for _ in range(25):
        signed_in_view.navigate_month(-1)
    assert signed_in_view.displayed_month == start


@pytest.mark.parametrize("delta", [0, 2, -3])
def test_navigate_month_rejects_other_deltas(signed_in_view, delta):
    with pytest.raises(ValueError):
        signed_in_view.navigate_month(delta)


def test_go_today_returns_to_current_month(signed_in_view):
    signed_in_view.navigate_month(-1)
    signed_in_view.navigate_month(-1)
    signed_in_view.go_today()
    assert signed_in_view.displayed_month == DisplayedMonth(2024, 2)


def test_stale_month_response_is_discarded(deferred_view, deferred, fake_source, make_event):
    fake_source.events = [
        make_event("apr", "April event", utc(2024, 4, 10, 12, 0)),
        make_event("may", "May event", utc(2024, 5, 10, 12, 0)),
    ]
    deferred.pending.clear()  # initial March fetch

    deferred_view.navigate_month(1)   # April
    deferred_view.navigate_month(1)   # May
    assert deferred.operation_ids == ["month-2", "month-3"]

    # The May response arrives first, then the older April one
    deferred.complete(1)
    deferred.complete(0)

    grid = deferred_view.state.surface.grid
    assert grid.title == "May 2024"
    assert grid.event_ids == {"may"}


def test_stale_error_is_discarded(deferred_view, deferred, fake_source, make_event):
    deferred.pending.clear()
    deferred_view.navigate_month(1)
    fake_source.error = RuntimeError("late failure")
    deferred_view.navigate_month(-1)

    # The superseded April request fails; the March grid must stay up
    deferred.complete(0)
    assert deferred_view.state.surface.kind == SurfaceKind.MONTH

    fake_source.error = None
    fake_source.events = [make_event("m", "March event", utc(2024, 3, 2, 9, 0))]
    deferred.complete(0)
    assert deferred_view.state.surface.grid.event_ids == {"m"}


# ==================== View switching ====================

def test_selected_view_is_always_exactly_one_mode(signed_in_view, states):
    signed_in_view.switch_view(ViewMode.LIST)
    signed_in_view.switch_view(ViewMode.MONTH)
    signed_in_view.switch_view(ViewMode.LIST)
    assert all(s.selected_view in (ViewMode.MONTH, ViewMode.LIST) for s in states)
    assert signed_in_view.state.selected_view == ViewMode.LIST


def test_switching_back_to_month_shows_cached_grid_then_refetches(deferred_view, deferred, fake_source, make_event):
    fake_source.events = [make_event("a", "Meeting", utc(2024, 3, 5, 19, 0))]
    deferred.complete()  # March fetch
    loaded_grid = deferred_view.state.surface.grid
    assert loaded_grid.event_ids == {"a"}

    deferred_view.switch_view(ViewMode.LIST)
    assert deferred_view.month_cache == loaded_grid
    deferred.complete()  # list fetch

    deferred_view.switch_view(ViewMode.MONTH)
    # Cached grid is shown while the new fetch is in flight
    assert deferred_view.state.surface.grid == loaded_grid
    assert len(deferred.pending) == 1

    fake_source.events.append(make_event("b", "Rehearsal", utc(2024, 3, 6, 19, 0)))
    deferred.complete()
    assert deferred_view.state.surface.grid.event_ids == {"a", "b"}


def test_switching_to_active_mode_only_refreshes(signed_in_view, fake_source):
    calls_before = len(fake_source.calls)
    signed_in_view.switch_view(ViewMode.MONTH)
    assert signed_in_view.mode == ViewMode.MONTH
    assert len(fake_source.calls) == calls_before + 1


def test_fetch_events_can_reverse_order(signed_in_view, fake_source, make_event):
    fake_source.events = [
        make_event("1", "One", utc(2024, 3, 1, 9, 0)),
        make_event("2", "Two", utc(2024, 3, 2, 9, 0)),
    ]
    events = signed_in_view.fetch_events(utc(2024, 3, 1), utc(2024, 4, 1), 10, sort_ascending=False)
    assert [e.id for e in events] == ["2", "1"]


# ==================== Event detail overlay ====================

def test_overlay_shows_event_details(signed_in_view, fake_source, make_event):
    fake_source.events = [make_event(
        "a", "Stated meeting", utc(2024, 3, 15, 9, 30), end=utc(2024, 3, 15, 11, 0),
        description="Bring your apron", location="Lodge hall",
        html_link="https://calendar.google.com/event?eid=abc",
    )]
    signed_in_view.refresh()

    assert signed_in_view.show_event_detail_by_id("a")

    overlay = signed_in_view.state.overlay
    assert overlay.title == "Stated meeting"
    assert overlay.start_text == "Friday, March 15, 2024 at 09:30 AM"
    assert overlay.end_text == "Friday, March 15, 2024 at 11:00 AM"
    assert overlay.location == "Lodge hall"
    assert overlay.description == "Bring your apron"
    assert overlay.link == "https://calendar.google.com/event?eid=abc"


def test_overlay_dismissal_rules(signed_in_view, fake_source, make_event):
    fake_source.events = [make_event("a", "Meeting", utc(2024, 3, 15, 9, 30))]
    signed_in_view.refresh()
    signed_in_view.show_event_detail_by_id("a")

    signed_in_view.overlay_content_clicked()
    assert signed_in_view.state.overlay is not None

    # Navigation is not a dismissal gesture
    signed_in_view.navigate_month(1)
    assert signed_in_view.state.overlay is not None

    signed_in_view.overlay_background_clicked()
    assert signed_in_view.state.overlay is None

    signed_in_view.show_event_detail(fake_source.events[0])
    signed_in_view.close_event_detail()
    assert signed_in_view.state.overlay is None


def test_unknown_event_id_opens_nothing(signed_in_view):
    assert not signed_in_view.show_event_detail_by_id("missing")
    assert signed_in_view.state.overlay is None


def test_all_day_detail_omits_times(make_event):
    single = build_event_detail(make_event("a", "Picnic", date(2024, 6, 1), end=date(2024, 6, 2)))
    assert single.start_text == "Saturday, June 1, 2024"
    assert single.end_text == ""

    spanning = build_event_detail(make_event("b", "Retreat", date(2024, 6, 1), end=date(2024, 6, 4)))
    assert spanning.end_text == "Monday, June 3, 2024"


def test_inline_dispatch_reports_errors():
    received = []
    run_inline("op", lambda: 1 / 0, received.append, received.append)
    assert isinstance(received[0], ZeroDivisionError)


def test_detail_dates_use_localized_day_and_month_names(make_event):
    german = LocalizationConfig(
        weekday_names=["Sonntag", "Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag"],
        month_names=["Januar", "Februar", "März", "April", "Mai", "Juni",
                     "Juli", "August", "September", "Oktober", "November", "Dezember"],
    )
    detail = build_event_detail(make_event("a", "Loge", utc(2024, 3, 15, 9, 30)), german)
    assert detail.start_text == "Freitag, März 15, 2024 at 09:30 AM"

"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import datetime, date
from pathlib import Path

import pytest
import pytz

# Add the repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend import timezone_utils
from backend.calendar_view import CalendarContext, CalendarView, run_inline
from backend.event_model import CalendarEvent, Timed, AllDay
from backend.event_source import EventSource, Credential


FIXED_NOW = datetime(2024, 3, 15, 10, 0, tzinfo=pytz.UTC)


class FakeEventSource(EventSource):
    """EventSource with scripted events and failures."""

    def __init__(self):
        self.events: list[CalendarEvent] = []
        self.error = None
        self.auth_error = None
        self.cached_credential = None
        self.identity_ready = True
        self.calls: list[dict] = []
        self.revoked: list[Credential] = []

    def authenticate(self):
        return self.cached_credential

    def request_access_token(self):
        if self.auth_error is not None:
            raise self.auth_error
        return Credential(token="test-token")

    def list_events(self, calendar_id, time_min, time_max, max_results,
                    single_events=True, order_by="startTime", show_deleted=False):
        self.calls.append({
            "calendar_id": calendar_id,
            "time_min": time_min,
            "time_max": time_max,
            "max_results": max_results,
            "single_events": single_events,
            "order_by": order_by,
            "show_deleted": show_deleted,
        })
        if self.error is not None:
            raise self.error
        selected = [
            event for event in self.events
            if (event.local_end > time_min or event.local_start >= time_min)
            and (time_max is None or event.local_start < time_max)
        ]
        selected.sort(key=lambda e: e.local_start)
        return selected[:max_results]

    def revoke(self, credential):
        self.revoked.append(credential)


class DeferredDispatcher:
    """Holds dispatched operations until the test completes them, in any order."""

    def __init__(self):
        self.pending: list[tuple] = []

    def __call__(self, operation_id, func, on_success, on_error):
        self.pending.append((operation_id, func, on_success, on_error))

    @property
    def operation_ids(self) -> list[str]:
        return [op[0] for op in self.pending]

    def complete(self, index: int = 0) -> None:
        operation_id, func, on_success, on_error = self.pending.pop(index)
        run_inline(operation_id, func, on_success, on_error)

    def complete_all(self) -> None:
        while self.pending:
            self.complete(0)


@pytest.fixture(autouse=True)
def utc_timezone():
    """Every test starts with the local zone set to UTC."""
    timezone_utils.set_timezone("UTC")
    yield
    timezone_utils.set_timezone("UTC")


@pytest.fixture
def make_event():
    """Factory for CalendarEvent; a date start makes an all-day event."""
    def _make(event_id, title, start, end=None, description="", location="", html_link=""):
        def _timing(value):
            if value is None:
                return None
            return Timed(value) if isinstance(value, datetime) else AllDay(value)
        return CalendarEvent(
            id=event_id,
            title=title,
            timing=_timing(start),
            end=_timing(end),
            description=description,
            location=location,
            html_link=html_link,
        )
    return _make


@pytest.fixture
def fake_source():
    return FakeEventSource()


@pytest.fixture
def deferred():
    return DeferredDispatcher()


@pytest.fixture
def context(fake_source):
    return CalendarContext(
        source=fake_source,
        dispatch=run_inline,
        api_ready=True,
        identity_ready=True,
        now=lambda: FIXED_NOW,
    )


@pytest.fixture
def states():
    """Render states received by the surface callback."""
    return []


@pytest.fixture
def view(context, states):
    calendar_view = CalendarView(context)
    calendar_view.set_on_change_callback(states.append)
    return calendar_view


@pytest.fixture
def signed_in_view(view):
    view.sign_in()
    assert view.signed_in
    return view


@pytest.fixture
def deferred_view(fake_source, deferred, states):
    """Signed-in view whose requests wait for the test to complete them."""
    ctx = CalendarContext(
        source=fake_source,
        dispatch=deferred,
        api_ready=True,
        identity_ready=True,
        now=lambda: FIXED_NOW,
    )
    calendar_view = CalendarView(ctx)
    calendar_view.set_on_change_callback(states.append)
    calendar_view.sign_in()
    deferred.complete()  # auth
    assert calendar_view.signed_in
    return calendar_view


@pytest.fixture
def today():
    return date(2024, 3, 15)

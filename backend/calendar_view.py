"""
CalendarView: month grid / event list state for one calendar panel.

The view owns every piece of calendar state (displayed month, view mode,
overlay, sign-in) and turns it into declarative render states. It does no
drawing itself; a rendering surface registers a callback and redraws its
whole region from each CalendarViewState it receives.

All EventSource calls go through CalendarContext.dispatch so they can run
off the UI thread. Every data request carries a token from a monotonic counter,
and a completion whose token has been superseded is dropped.
"""

import calendar
import sys
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from .config import LabelsConfig, LocalizationConfig, ViewConfig
from .event_model import CalendarEvent, AllDay
from .event_source import EventSource, Credential, FetchError, AuthError
from .timezone_utils import date_key, local_midnight, now_local


GRID_ROWS = 6
GRID_COLUMNS = 7
GRID_CELLS = GRID_ROWS * GRID_COLUMNS


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] VIEW: {msg}", file=sys.stderr)


# ==================== State types ====================

class ViewMode(Enum):
    MONTH = "month"
    LIST = "list"


@dataclass(frozen=True)
class DisplayedMonth:
    """A (year, zero-based month index) pair."""
    year: int
    month: int

    def __post_init__(self):
        if not 0 <= self.month <= 11:
            raise ValueError(f"month index must be 0..11, got {self.month}")

    @classmethod
    def containing(cls, d: date) -> 'DisplayedMonth':
        return cls(d.year, d.month - 1)

    def previous(self) -> 'DisplayedMonth':
        if self.month == 0:
            return DisplayedMonth(self.year - 1, 11)
        return DisplayedMonth(self.year, self.month - 1)

    def next(self) -> 'DisplayedMonth':
        if self.month == 11:
            return DisplayedMonth(self.year + 1, 0)
        return DisplayedMonth(self.year, self.month + 1)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month + 1, 1)

    def time_range(self) -> tuple[datetime, datetime]:
        """[first instant of this month, first instant of the next month)."""
        return local_midnight(self.first_day), local_midnight(self.next().first_day)


@dataclass(frozen=True)
class EventSummary:
    """Compact line attached to a month grid cell."""
    event_id: str
    time_text: str
    title: str

    @property
    def text(self) -> str:
        return f"{self.time_text} - {self.title}"


@dataclass(frozen=True)
class DayCell:
    """One of the 42 cells of a month grid."""
    day: int
    in_current_month: bool
    is_today: bool = False
    key: Optional[str] = None  # YYYY-MM-DD, current-month cells only
    events: tuple[EventSummary, ...] = ()


@dataclass(frozen=True)
class MonthGrid:
    """Renderable description of a 6 x 7 month grid."""
    year: int
    month: int
    title: str
    weekday_names: tuple[str, ...]
    cells: tuple[DayCell, ...]
    leading_count: int
    trailing_count: int

    @property
    def rows(self) -> list[tuple[DayCell, ...]]:
        return [self.cells[i:i + GRID_COLUMNS] for i in range(0, len(self.cells), GRID_COLUMNS)]

    @property
    def current_month_cells(self) -> list[DayCell]:
        return [cell for cell in self.cells if cell.in_current_month]

    def cell_for_key(self, key: str) -> Optional[DayCell]:
        for cell in self.cells:
            if cell.key == key:
                return cell
        return None

    @property
    def event_ids(self) -> set[str]:
        return {summary.event_id for cell in self.cells for summary in cell.events}


@dataclass(frozen=True)
class ListRow:
    """One row of the upcoming-events list."""
    event_id: str
    day: int
    month_abbr: str
    time_text: str
    title: str
    description: str = ""


@dataclass(frozen=True)
class EventDetail:
    """Contents of the event detail overlay."""
    event_id: str
    title: str
    start_text: str
    end_text: str = ""
    description: str = ""
    location: str = ""
    link: str = ""


class SurfaceKind(Enum):
    MONTH = "month"
    LIST = "list"
    NO_EVENTS = "no_events"
    ERROR = "error"
    SIGN_IN = "sign_in"
    LOADING = "loading"


@dataclass(frozen=True)
class Surface:
    """What currently fills the calendar body."""
    kind: SurfaceKind
    grid: Optional[MonthGrid] = None
    rows: tuple[ListRow, ...] = ()
    message: str = ""


@dataclass(frozen=True)
class CalendarViewState:
    """Complete snapshot handed to the rendering surface."""
    mode: ViewMode
    displayed_month: DisplayedMonth
    title: str
    surface: Surface
    overlay: Optional[EventDetail]
    signed_in: bool
    connect_enabled: bool
    status_message: str = ""
    sign_in_required: bool = True

    @property
    def selected_view(self) -> ViewMode:
        return self.mode

    @property
    def show_connect(self) -> bool:
        return self.sign_in_required and not self.signed_in

    @property
    def show_disconnect(self) -> bool:
        return self.sign_in_required and self.signed_in


# ==================== Context ====================

# dispatch(operation_id, func, on_success, on_error)
Dispatcher = Callable[[str, Callable[[], Any], Callable[[Any], None], Callable[[Exception], None]], None]


def run_inline(operation_id: str, func: Callable[[], Any],
               on_success: Callable[[Any], None],
               on_error: Callable[[Exception], None]) -> None:
    """Dispatcher that runs the operation synchronously on the caller's thread."""
    try:
        result = func()
    except Exception as e:
        on_error(e)
        return
    on_success(result)


@dataclass
class CalendarContext:
    """
    Everything CalendarView needs from its surroundings.

    api_ready and identity_ready gate the Connect control: sign-in is only
    offered once the calendar client and the identity configuration are
    both available. Sources with sign_in_required False (public feeds)
    never show Connect or Disconnect.
    """
    source: EventSource
    dispatch: Dispatcher = run_inline
    calendar_id: str = "primary"
    api_ready: bool = False
    identity_ready: bool = False
    sign_in_required: bool = True
    view: ViewConfig = field(default_factory=ViewConfig)
    labels: LabelsConfig = field(default_factory=LabelsConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)
    now: Callable[[], datetime] = now_local

    @property
    def ready(self) -> bool:
        return self.api_ready and self.identity_ready

    def today(self) -> date:
        return self.now().date()


# ==================== Pure rendering helpers ====================

def format_time(dt: datetime) -> str:
    """Two-digit 12-hour clock time, e.g. "09:30 AM"."""
    return dt.strftime("%I:%M %p")


def format_long_date(dt: datetime, localization: LocalizationConfig, with_time: bool = True) -> str:
    """e.g. "Friday, March 15, 2024 at 09:30 AM"."""
    # date.weekday() is Monday-based; the configured names start on Sunday
    weekday = localization.get_weekday_name((dt.weekday() + 1) % 7)
    text = f"{weekday}, {localization.get_month_name(dt.month - 1)} {dt.day}, {dt.year}"
    if with_time:
        text += f" at {format_time(dt)}"
    return text


def truncate_description(text: str, limit: int = 100) -> str:
    """Cut to limit characters and mark the cut with "..."."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def event_time_text(event: CalendarEvent, labels: LabelsConfig) -> str:
    if event.all_day:
        return labels.all_day
    return format_time(event.local_start)


def build_month_grid(year: int, month: int, today: date,
                     localization: Optional[LocalizationConfig] = None) -> MonthGrid:
    """
    Lay out the 42 cells for (year, zero-based month).

    Leading cells belong to the previous month and number backwards from its
    last day; trailing cells belong to the next month and number from 1.
    """
    localization = localization or LocalizationConfig()
    displayed = DisplayedMonth(year, month)
    first = displayed.first_day
    days_in_month = calendar.monthrange(year, month + 1)[1]

    # date.weekday() is Monday-based; the grid starts on Sunday
    leading = (first.weekday() + 1) % 7
    trailing = GRID_CELLS - (leading + days_in_month)
    prev_last_day = (first - timedelta(days=1)).day

    cells = []
    for i in range(leading):
        cells.append(DayCell(day=prev_last_day - leading + i + 1, in_current_month=False))

    is_current_month = today.year == year and today.month == month + 1
    for day in range(1, days_in_month + 1):
        cells.append(DayCell(
            day=day,
            in_current_month=True,
            is_today=is_current_month and today.day == day,
            key=date_key(date(year, month + 1, day)),
        ))

    for day in range(1, trailing + 1):
        cells.append(DayCell(day=day, in_current_month=False))

    return MonthGrid(
        year=year,
        month=month,
        title=f"{localization.get_month_name(month)} {year}",
        weekday_names=tuple(localization.get_day_name(i) for i in range(GRID_COLUMNS)),
        cells=tuple(cells),
        leading_count=leading,
        trailing_count=trailing,
    )


def attach_events_to_grid(events: Iterable[CalendarEvent], grid: MonthGrid,
                          labels: Optional[LabelsConfig] = None) -> MonthGrid:
    """
    Return a copy of grid with each event summarized in its start-date cell.

    Events whose date key has no cell are dropped. An event already present
    in a cell (same id) is not added twice.
    """
    labels = labels or LabelsConfig()
    index = {cell.key: i for i, cell in enumerate(grid.cells) if cell.key}
    buckets = [list(cell.events) for cell in grid.cells]

    for event in events:
        if event.timing is None:
            _debug_print(f"Event {event.id} has no start, not attached")
            continue
        i = index.get(event.date_key)
        if i is None:
            continue
        if any(summary.event_id == event.id for summary in buckets[i]):
            continue
        buckets[i].append(EventSummary(
            event_id=event.id,
            time_text=event_time_text(event, labels),
            title=event.title,
        ))

    cells = tuple(replace(cell, events=tuple(bucket)) for cell, bucket in zip(grid.cells, buckets))
    return replace(grid, cells=cells)


def build_list_rows(events: Iterable[CalendarEvent], labels: Optional[LabelsConfig] = None,
                    localization: Optional[LocalizationConfig] = None,
                    description_limit: int = 100) -> list[ListRow]:
    labels = labels or LabelsConfig()
    localization = localization or LocalizationConfig()
    rows = []
    for event in events:
        if event.timing is None:
            _debug_print(f"Event {event.id} has no start, omitted from list")
            continue
        local_date = event.local_date
        rows.append(ListRow(
            event_id=event.id,
            day=local_date.day,
            month_abbr=localization.get_month_abbreviation(local_date.month - 1),
            time_text=event_time_text(event, labels),
            title=event.title,
            description=truncate_description(event.description, description_limit),
        ))
    return rows


def build_event_detail(event: CalendarEvent, localization: Optional[LocalizationConfig] = None) -> EventDetail:
    localization = localization or LocalizationConfig()
    start_text = format_long_date(event.local_start, localization, with_time=not event.all_day)

    end_text = ""
    if event.end is not None:
        if isinstance(event.end, AllDay):
            # All-day ends are exclusive; show the last covered day
            last_day = event.end.day - timedelta(days=1)
            if last_day > event.local_date:
                end_text = format_long_date(local_midnight(last_day), localization, with_time=False)
        else:
            end_text = format_long_date(event.end.local_datetime(), localization)

    return EventDetail(
        event_id=event.id,
        title=event.title,
        start_text=start_text,
        end_text=end_text,
        description=event.description,
        location=event.location,
        link=event.html_link,
    )


# ==================== Controller ====================

class CalendarView:
    """
    Stateful calendar controller.

    State carried across renders is limited to the displayed month, the view
    mode, the sign-in credential, the detail overlay and the cached month
    grid kept while the list view is shown.
    """

    def __init__(self, context: CalendarContext,
                 displayed_month: Optional[DisplayedMonth] = None,
                 mode: ViewMode = ViewMode.MONTH):
        self._context = context
        self._displayed = displayed_month or DisplayedMonth.containing(context.today())
        self._mode = mode
        self._credential: Optional[Credential] = None
        self._surface = Surface(SurfaceKind.SIGN_IN, message=context.labels.sign_in_prompt)
        self._overlay: Optional[EventDetail] = None
        self._status_message = ""
        self._request_token = 0
        self._auth_pending = False
        self._auth_generation = 0
        self._month_cache: Optional[MonthGrid] = None
        self._visible_events: dict[str, CalendarEvent] = {}
        self._on_change_callback: Optional[Callable[[CalendarViewState], None]] = None

    # ==================== Accessors ====================

    def set_on_change_callback(self, callback: Callable[[CalendarViewState], None]) -> None:
        """Register the surface that redraws on every state change."""
        self._on_change_callback = callback

    @property
    def state(self) -> CalendarViewState:
        return CalendarViewState(
            mode=self._mode,
            displayed_month=self._displayed,
            title=f"{self._context.localization.get_month_name(self._displayed.month)} {self._displayed.year}",
            surface=self._surface,
            overlay=self._overlay,
            signed_in=self.signed_in,
            connect_enabled=self._context.ready and not self._auth_pending,
            status_message=self._status_message,
            sign_in_required=self._context.sign_in_required,
        )

    @property
    def signed_in(self) -> bool:
        return self._credential is not None

    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def displayed_month(self) -> DisplayedMonth:
        return self._displayed

    @property
    def month_cache(self) -> Optional[MonthGrid]:
        return self._month_cache

    def _emit(self) -> None:
        if self._on_change_callback is not None:
            self._on_change_callback(self.state)

    # ==================== Request tokens ====================

    def _issue(self, kind: str, func: Callable[[], Any],
               on_success: Callable[[Any], None],
               on_error: Optional[Callable[[Exception], None]] = None) -> int:
        """Dispatch func under a fresh token; superseded completions are dropped."""
        self._request_token += 1
        token = self._request_token
        on_error = on_error or self._show_fetch_error

        def _success(result):
            if token != self._request_token:
                _debug_print(f"Discarding stale {kind} response (token {token}, current {self._request_token})")
                return
            on_success(result)

        def _failure(error: Exception):
            if token != self._request_token:
                _debug_print(f"Discarding stale {kind} failure (token {token}): {error}")
                return
            on_error(error)

        self._context.dispatch(f"{kind}-{token}", func, _success, _failure)
        return token

    def _invalidate_requests(self) -> None:
        self._request_token += 1

    def _show_fetch_error(self, error: Exception) -> None:
        if isinstance(error, FetchError):
            message = error.message
        else:
            message = f"{type(error).__name__}: {error}"
        _debug_print(f"Fetch failed: {message}")
        self._surface = Surface(SurfaceKind.ERROR, message=f"{self._context.labels.error_prefix}{message}")
        self._emit()

    # ==================== Operations ====================

    def render_month_grid(self, year: int, month: int) -> MonthGrid:
        return build_month_grid(year, month, self._context.today(), self._context.localization)

    def fetch_events(self, time_min: datetime, time_max: Optional[datetime],
                     max_results: int, sort_ascending: bool = True) -> list[CalendarEvent]:
        """
        Ask the EventSource for expanded, non-deleted events by start time.

        Raises:
            FetchError: passed through from the EventSource.
        """
        events = list(self._context.source.list_events(
            calendar_id=self._context.calendar_id,
            time_min=time_min,
            time_max=time_max,
            max_results=max_results,
            single_events=True,
            order_by="startTime",
            show_deleted=False,
        ))
        if not sort_ascending:
            events.reverse()
        return events

    def attach_events_to_grid(self, events: Iterable[CalendarEvent], grid: MonthGrid) -> MonthGrid:
        return attach_events_to_grid(events, grid, self._context.labels)

    def render_list_view(self, max_results: Optional[int] = None) -> None:
        """Show upcoming events from now on, or the sign-in state."""
        if not self.signed_in:
            self._show_sign_in()
            return

        if max_results is None:
            max_results = self._context.view.list_max_results
        self._surface = Surface(SurfaceKind.LOADING, message=self._context.labels.loading)
        self._emit()

        now = self._context.now()
        self._issue(
            "list",
            lambda: self.fetch_events(now, None, max_results),
            self._apply_list,
        )

    def _apply_list(self, events: list[CalendarEvent]) -> None:
        rows = build_list_rows(
            events, self._context.labels, self._context.localization,
            self._context.view.description_limit,
        )
        self._visible_events = {event.id: event for event in events}
        if rows:
            self._surface = Surface(SurfaceKind.LIST, rows=tuple(rows))
        else:
            self._surface = Surface(SurfaceKind.NO_EVENTS, message=self._context.labels.no_events)
        self._emit()

    def _load_month(self, initial_grid: Optional[MonthGrid] = None) -> None:
        """Show the grid for the displayed month, then fill it from a fresh fetch."""
        if not self.signed_in:
            self._show_sign_in()
            return

        month = self._displayed
        grid = initial_grid or self.render_month_grid(month.year, month.month)
        self._surface = Surface(SurfaceKind.MONTH, grid=grid)
        self._emit()

        time_min, time_max = month.time_range()
        self._issue(
            "month",
            lambda: self.fetch_events(time_min, time_max, self._context.view.month_max_results),
            lambda events: self._apply_month(month, events),
        )

    def _apply_month(self, month: DisplayedMonth, events: list[CalendarEvent]) -> None:
        grid = self.attach_events_to_grid(events, self.render_month_grid(month.year, month.month))
        attached = grid.event_ids
        self._visible_events = {event.id: event for event in events if event.id in attached}
        self._surface = Surface(SurfaceKind.MONTH, grid=grid)
        self._emit()

    def _show_sign_in(self) -> None:
        self._surface = Surface(SurfaceKind.SIGN_IN, message=self._context.labels.sign_in_prompt)
        self._visible_events = {}
        self._emit()

    def _load_current_view(self) -> None:
        if self._mode == ViewMode.LIST:
            self.render_list_view()
        else:
            self._load_month()

    def navigate_month(self, delta: int) -> None:
        """Move the displayed month by -1 or +1 and reload it."""
        if delta not in (-1, 1):
            raise ValueError(f"delta must be -1 or +1, got {delta}")
        self._displayed = self._displayed.next() if delta > 0 else self._displayed.previous()
        _debug_print(f"Displayed month is now {self._displayed.year}-{self._displayed.month + 1:02d}")
        if self._mode == ViewMode.MONTH:
            self._load_month()
        else:
            self._emit()

    def go_today(self) -> None:
        """Jump back to the month containing today."""
        self._displayed = DisplayedMonth.containing(self._context.today())
        self._load_current_view()

    def switch_view(self, mode: ViewMode) -> None:
        if mode == self._mode:
            self.refresh()
            return

        if mode == ViewMode.LIST:
            if self._surface.kind == SurfaceKind.MONTH:
                self._month_cache = self._surface.grid
            self._mode = ViewMode.LIST
            self.render_list_view()
        else:
            self._mode = ViewMode.MONTH
            cached = self._month_cache
            if cached is not None and (cached.year, cached.month) != (self._displayed.year, self._displayed.month):
                cached = None
            self._load_month(initial_grid=cached)

    def refresh(self) -> None:
        """Re-fetch whatever the current view shows."""
        self._load_current_view()

    # ==================== Event detail overlay ====================

    def show_event_detail(self, event: CalendarEvent) -> None:
        self._overlay = build_event_detail(event, self._context.localization)
        self._emit()

    def show_event_detail_by_id(self, event_id: str) -> bool:
        """Open the overlay for an event on the current surface."""
        event = self._visible_events.get(event_id)
        if event is None:
            _debug_print(f"No visible event with id {event_id}")
            return False
        self.show_event_detail(event)
        return True

    def close_event_detail(self) -> None:
        if self._overlay is not None:
            self._overlay = None
            self._emit()

    def overlay_background_clicked(self) -> None:
        self.close_event_detail()

    def overlay_content_clicked(self) -> None:
        """Clicks inside the overlay content never dismiss it."""

    # ==================== Sign-in ====================

    def start(self) -> None:
        """Render the initial state and try to restore a previous session."""
        self._emit()
        if not self._context.ready:
            return
        self._authorize("restore", self._context.source.authenticate, self._on_session_restored)

    def _on_session_restored(self, credential: Optional[Credential]) -> None:
        if credential is None:
            self._show_sign_in()
            return
        self._on_signed_in(credential)

    def sign_in(self) -> None:
        if not self._context.ready:
            _debug_print("Sign-in requested before the calendar client is ready")
            return
        if self._auth_pending:
            _debug_print("Sign-in already in progress")
            return
        self._authorize("auth", self._context.source.request_access_token, self._on_signed_in)

    def _authorize(self, kind: str, func: Callable[[], Any],
                   on_success: Callable[[Any], None]) -> None:
        """
        Dispatch a sign-in step. At most one is in flight; Connect stays
        disabled until it completes. Data requests do not supersede it, only
        sign_out does.
        """
        self._auth_pending = True
        self._auth_generation += 1
        generation = self._auth_generation
        self._emit()

        def _success(result):
            self._auth_pending = False
            if generation != self._auth_generation:
                _debug_print(f"Discarding {kind} result after sign-out")
                self._emit()
                return
            on_success(result)

        def _failure(error: Exception):
            self._auth_pending = False
            if generation != self._auth_generation:
                _debug_print(f"Discarding {kind} failure after sign-out: {error}")
                self._emit()
                return
            self._on_auth_failed(error)

        self._context.dispatch(f"{kind}-{generation}", func, _success, _failure)

    def _on_signed_in(self, credential: Credential) -> None:
        self._credential = credential
        self._status_message = ""
        _debug_print("Signed in")
        self._load_current_view()

    def _on_auth_failed(self, error: Exception) -> None:
        message = error.message if isinstance(error, AuthError) else str(error)
        _debug_print(f"Sign-in failed: {message}")
        self._credential = None
        self._status_message = message
        self._show_sign_in()

    def sign_out(self) -> None:
        """Revoke the credential and hide all event data immediately."""
        credential = self._credential
        self._credential = None
        self._invalidate_requests()
        self._auth_generation += 1
        self._month_cache = None
        self._overlay = None
        self._status_message = ""
        self._show_sign_in()

        if credential is not None:
            self._context.dispatch(
                f"revoke-{self._request_token}",
                lambda: self._context.source.revoke(credential),
                lambda _result: _debug_print("Credential revoked"),
                lambda error: _debug_print(f"Revoke failed: {error}"),
            )

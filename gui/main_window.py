"""
Main application window for Lodge Calendar.
"""

import base64
import json
import sys
from typing import Optional

from PySide6.QtWidgets import QMainWindow, QStatusBar
from PySide6.QtCore import QTimer
from PySide6.QtGui import QCloseEvent, QKeySequence, QShortcut

from backend.config import Config
from backend.calendar_view import CalendarContext, CalendarView, CalendarViewState, DisplayedMonth, ViewMode, SurfaceKind
from backend.network_worker import shutdown_network_worker
from .widgets.calendar_panel import CalendarPanel


class MainWindow(QMainWindow):
    """
    Main application window.

    Contains:
    - The calendar panel (header controls, month grid or list, overlay)
    - A status bar mirroring sign-in and fetch status
    """

    def __init__(self, config: Config, context: CalendarContext, parent=None):
        super().__init__(parent)
        self.config = config
        self._context = context

        # State file for persistence (using JSON, not QSettings)
        self._state_file = config.state_file
        self._ui_state: dict = {}

        # Auto-refresh timer
        self._auto_refresh_timer = QTimer(self)
        self._auto_refresh_timer.timeout.connect(self._on_auto_refresh)

        self._setup_window()
        self._view = self._create_view()
        self._setup_ui()
        self._setup_shortcuts()
        self._setup_statusbar()

        self._view.set_on_change_callback(self._on_state_changed)
        self._view.start()

        # Start auto-refresh timer if interval > 0
        if config.refresh_interval > 0:
            self._auto_refresh_timer.start(config.refresh_interval * 1000)
            print(f"DEBUG: Auto-refresh enabled every {config.refresh_interval} seconds", file=sys.stderr)

    @property
    def view(self) -> CalendarView:
        return self._view

    def _setup_window(self):
        """Configure main window properties."""
        self.setWindowTitle(self.config.labels.window_title)
        self.setMinimumSize(640, 480)

        self._load_ui_state()

        geometry = self._ui_state.get("geometry")
        if geometry:
            self.restoreGeometry(base64.b64decode(geometry))
        else:
            self.resize(1000, 760)

    def _create_view(self) -> CalendarView:
        """Create the CalendarView with the persisted view mode and month."""
        mode = ViewMode.LIST if self._ui_state.get("view_type") == "list" else ViewMode.MONTH

        displayed: Optional[DisplayedMonth] = None
        month_state = self._ui_state.get("displayed_month")
        if isinstance(month_state, dict):
            try:
                displayed = DisplayedMonth(int(month_state["year"]), int(month_state["month"]))
            except (KeyError, TypeError, ValueError) as e:
                print(f"Ignoring saved month {month_state!r}: {e}", file=sys.stderr)

        print(f"DEBUG _create_view: view_type={mode.value}, displayed_month={displayed}", file=sys.stderr)
        return CalendarView(self._context, displayed_month=displayed, mode=mode)

    def _setup_ui(self):
        self._panel = CalendarPanel(self._view, self.config.labels, self.config.colors)
        self.setCentralWidget(self._panel)

    def _setup_shortcuts(self):
        """Set up keyboard shortcuts from config bindings."""
        prev_shortcut = QShortcut(QKeySequence(self.config.bindings.prev), self)
        prev_shortcut.activated.connect(lambda: self._navigate(-1))

        next_shortcut = QShortcut(QKeySequence(self.config.bindings.next), self)
        next_shortcut.activated.connect(lambda: self._navigate(1))

    def _setup_statusbar(self):
        """Set up the status bar."""
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)
        self._statusbar.showMessage("Ready")

    def _navigate(self, delta: int):
        # Month navigation has no meaning in the list view
        if self._view.mode == ViewMode.MONTH:
            self._view.navigate_month(delta)

    def _on_state_changed(self, state: CalendarViewState):
        self._panel.render(state)
        self._update_status(state)

    def _update_status(self, state: CalendarViewState):
        if state.status_message:
            self._statusbar.showMessage(state.status_message)
        elif not state.signed_in:
            self._statusbar.showMessage("Not connected")
        elif state.surface.kind == SurfaceKind.LOADING:
            self._statusbar.showMessage(self.config.labels.loading)
        elif state.surface.kind == SurfaceKind.ERROR:
            self._statusbar.showMessage(state.surface.message)
        else:
            self._statusbar.showMessage("Connected")

    def _on_auto_refresh(self):
        if self._view.signed_in:
            print("DEBUG: Auto-refresh triggered", file=sys.stderr)
            self._view.refresh()

    def _load_ui_state(self):
        """Load UI state from the JSON state file."""
        if self._state_file.exists():
            try:
                with open(self._state_file, 'r') as f:
                    state = json.load(f)
                    self._ui_state = state.get('ui', {})
            except (OSError, ValueError) as e:
                print(f"Error loading UI state: {e}", file=sys.stderr)
                self._ui_state = {}
        else:
            self._ui_state = {}

    def _save_ui_state(self):
        """Save UI state to the JSON state file."""
        try:
            existing_state = {}
            if self._state_file.exists():
                with open(self._state_file, 'r') as f:
                    existing_state = json.load(f)

            existing_state['ui'] = self._ui_state

            self._state_file.parent.mkdir(parents=True, exist_ok=True)

            with open(self._state_file, 'w') as f:
                json.dump(existing_state, f, indent=2)
        except (OSError, ValueError) as e:
            print(f"Error saving UI state: {e}", file=sys.stderr)

    def _save_state(self):
        """Save application state to JSON."""
        self._ui_state["geometry"] = base64.b64encode(self.saveGeometry().data()).decode('utf-8')
        self._ui_state["view_type"] = self._view.mode.value
        displayed = self._view.displayed_month
        self._ui_state["displayed_month"] = {"year": displayed.year, "month": displayed.month}
        self._save_ui_state()

    def closeEvent(self, event: QCloseEvent):
        """Handle window close."""
        self._auto_refresh_timer.stop()
        self._save_state()
        shutdown_network_worker()
        super().closeEvent(event)

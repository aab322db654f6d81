"""
Calendar panel: the rendering surface for a CalendarView.

Every CalendarViewState replaces the whole panel content (header, body and
overlay). Controls are recreated and reconnected on each render, so no
widget outlives the state it was built from.
"""

from typing import Optional

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QSizePolicy
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont, QResizeEvent

from backend.calendar_view import CalendarView, CalendarViewState, SurfaceKind, ViewMode
from backend.config import LabelsConfig, ColorsConfig
from .event_widget import set_event_colors_config
from .month_grid import MonthGridWidget
from .event_list import EventListWidget
from ..event_overlay import EventOverlay


class CalendarPanel(QWidget):
    """Draws CalendarViewState snapshots and forwards gestures to the view."""

    def __init__(self, view: CalendarView, labels: LabelsConfig, colors: ColorsConfig, parent=None):
        super().__init__(parent)
        self._view = view
        self._labels = labels
        self._colors = colors
        self._overlay: Optional[EventOverlay] = None
        self._state: Optional[CalendarViewState] = None

        set_event_colors_config(colors)

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(8, 8, 8, 8)
        self._layout.setSpacing(6)

    @property
    def state(self) -> Optional[CalendarViewState]:
        return self._state

    def render(self, state: CalendarViewState) -> None:
        """Replace all content with widgets built from state."""
        self._state = state
        self._clear()

        self._layout.addWidget(self._build_header(state))

        if state.status_message:
            status = QLabel(state.status_message)
            status.setTextFormat(Qt.PlainText)
            status.setWordWrap(True)
            status.setStyleSheet(f"color: {self._colors.error_text};")
            self._layout.addWidget(status)

        self._layout.addWidget(self._build_body(state), 1)

        if state.overlay is not None:
            self._overlay = EventOverlay(state.overlay, self._labels, self._colors, self)
            self._overlay.background_clicked.connect(self._view.overlay_background_clicked)
            self._overlay.content_clicked.connect(self._view.overlay_content_clicked)
            self._overlay.close_requested.connect(self._view.close_event_detail)
            self._overlay.setGeometry(self.rect())
            self._overlay.show()
            self._overlay.raise_()

    def _clear(self) -> None:
        while self._layout.count():
            item = self._layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        if self._overlay is not None:
            self._overlay.deleteLater()
            self._overlay = None

    def _build_header(self, state: CalendarViewState) -> QWidget:
        header = QWidget()
        layout = QHBoxLayout(header)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        # Month / List toggle; exactly one is checked
        for mode, text in ((ViewMode.MONTH, self._labels.view_month), (ViewMode.LIST, self._labels.view_list)):
            button = QPushButton(text)
            button.setCheckable(True)
            button.setChecked(state.mode == mode)
            button.clicked.connect(lambda _checked=False, m=mode: self._view.switch_view(m))
            layout.addWidget(button)

        if state.mode == ViewMode.MONTH:
            prev_btn = QPushButton(self._labels.button_prev)
            prev_btn.setToolTip("Previous month")
            prev_btn.clicked.connect(lambda: self._view.navigate_month(-1))
            layout.addWidget(prev_btn)

            today_btn = QPushButton(self._labels.button_today)
            today_btn.clicked.connect(self._view.go_today)
            layout.addWidget(today_btn)

            next_btn = QPushButton(self._labels.button_next)
            next_btn.setToolTip("Next month")
            next_btn.clicked.connect(lambda: self._view.navigate_month(1))
            layout.addWidget(next_btn)

            title = QLabel(state.title)
            title_font = QFont(self.font())
            title_font.setBold(True)
            title_font.setPointSize(title_font.pointSize() + 2)
            title.setFont(title_font)
            layout.addWidget(title)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        layout.addWidget(spacer)

        if state.signed_in:
            reload_btn = QPushButton(self._labels.button_reload)
            reload_btn.setToolTip("Reload events")
            reload_btn.clicked.connect(self._view.refresh)
            layout.addWidget(reload_btn)

        if state.show_connect:
            connect_btn = QPushButton(self._labels.button_connect)
            connect_btn.setEnabled(state.connect_enabled)
            connect_btn.clicked.connect(self._view.sign_in)
            layout.addWidget(connect_btn)

        if state.show_disconnect:
            disconnect_btn = QPushButton(self._labels.button_disconnect)
            disconnect_btn.clicked.connect(self._view.sign_out)
            layout.addWidget(disconnect_btn)

        return header

    def _build_body(self, state: CalendarViewState) -> QWidget:
        surface = state.surface

        if surface.kind == SurfaceKind.MONTH and surface.grid is not None:
            body = MonthGridWidget(surface.grid)
            body.event_clicked.connect(self._view.show_event_detail_by_id)
            return body

        if surface.kind == SurfaceKind.LIST:
            body = EventListWidget(surface.rows)
            body.event_clicked.connect(self._view.show_event_detail_by_id)
            return body

        message = QLabel(surface.message)
        message.setTextFormat(Qt.PlainText)
        message.setAlignment(Qt.AlignCenter)
        message.setWordWrap(True)
        if surface.kind == SurfaceKind.ERROR:
            message.setStyleSheet(f"color: {self._colors.error_text}; padding: 24px;")
        else:
            message.setStyleSheet(f"color: {self._colors.secondary_text}; padding: 24px;")
        return message

    def resizeEvent(self, event: QResizeEvent):
        super().resizeEvent(event)
        if self._overlay is not None:
            self._overlay.setGeometry(self.rect())

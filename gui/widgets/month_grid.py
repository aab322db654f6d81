"""
Month grid widget: weekday header plus 6 x 7 day cells.

Built from a MonthGrid render state; nothing here computes dates.
"""

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QFrame
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFontMetrics

from backend.calendar_view import DayCell, MonthGrid, GRID_COLUMNS
from .event_widget import EventWidget, get_colors_config


class MonthDayCell(QFrame):
    """Single day cell in the month grid."""

    event_clicked = Signal(str)

    def __init__(self, cell: DayCell, parent=None):
        super().__init__(parent)
        self.cell = cell
        self._event_widgets: list[EventWidget] = []
        self._setup_ui()

    def _setup_ui(self):
        self.setFrameStyle(QFrame.Box | QFrame.Plain)
        fm = QFontMetrics(self.font())
        # Day number + room for two event lines
        min_height = fm.height() * 3 + 16
        min_width = fm.horizontalAdvance("00") + 16
        self.setMinimumSize(max(min_width, 60), max(min_height, 60))

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        self._day_label = QLabel(str(self.cell.day))
        self._day_label.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        layout.addWidget(self._day_label, 0, Qt.AlignLeft)

        for summary in self.cell.events:
            widget = EventWidget(summary)
            widget.clicked.connect(self.event_clicked.emit)
            layout.addWidget(widget)
            self._event_widgets.append(widget)

        layout.addStretch()
        self._update_style()

    def _update_style(self):
        colors = get_colors_config()
        current = self.cell.in_current_month
        bg = colors.month_cell_current if current else colors.month_cell_other
        text = colors.month_text_current if current else colors.month_text_other

        if self.cell.is_today:
            self._day_label.setStyleSheet(f"color: {colors.today_highlight_text}; font-weight: bold; background: {colors.today_highlight_background}; border-radius: 10px; padding: 2px 6px;")
        else:
            self._day_label.setStyleSheet(f"color: {text}; border: none;")

        self.setStyleSheet(f"MonthDayCell {{ background-color: {bg}; border: 1px solid {colors.cell_border}; }}")


class MonthGridWidget(QWidget):
    """Month view showing a calendar grid."""

    event_clicked = Signal(str)

    def __init__(self, grid: MonthGrid, parent=None):
        super().__init__(parent)
        self.grid = grid
        self._cells: list[MonthDayCell] = []
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        colors = get_colors_config()

        # Day name headers
        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(0, 0, 0, 0)
        header_layout.setSpacing(1)
        for day_name in self.grid.weekday_names:
            label = QLabel(day_name)
            label.setAlignment(Qt.AlignCenter)
            label.setStyleSheet(f"font-weight: bold; padding: 8px; background: {colors.header_background};")
            header_layout.addWidget(label, 1)
        layout.addWidget(header)

        # Grid of day cells
        grid_widget = QWidget()
        grid_layout = QGridLayout(grid_widget)
        grid_layout.setContentsMargins(0, 0, 0, 0)
        grid_layout.setSpacing(1)
        for col in range(GRID_COLUMNS):
            grid_layout.setColumnStretch(col, 1)

        for row, week in enumerate(self.grid.rows):
            grid_layout.setRowStretch(row, 1)
            for col, cell in enumerate(week):
                cell_widget = MonthDayCell(cell)
                cell_widget.event_clicked.connect(self.event_clicked.emit)
                grid_layout.addWidget(cell_widget, row, col)
                self._cells.append(cell_widget)

        layout.addWidget(grid_widget, 1)

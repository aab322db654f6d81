"""
Upcoming-events list widget.
"""

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QScrollArea, QFrame, QSizePolicy
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont, QFontMetrics, QMouseEvent

from backend.calendar_view import ListRow
from .event_widget import get_colors_config, get_contrasting_text_color, lighten_color


class ListEventWidget(QFrame):
    """Full-width row: date badge on the left, time, title and description on the right."""

    clicked = Signal(str)

    def __init__(self, row: ListRow, parent=None):
        super().__init__(parent)
        self.row = row
        self._setup_ui()
        self._apply_style()

    def _setup_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(12)

        # Date badge: day number over month abbreviation
        badge = QWidget()
        badge.setObjectName("dateBadge")
        badge_layout = QVBoxLayout(badge)
        badge_layout.setContentsMargins(4, 2, 4, 2)
        badge_layout.setSpacing(0)

        day_font = QFont(self.font())
        day_font.setPointSize(day_font.pointSize() + 6)
        day_font.setBold(True)
        day_label = QLabel(str(self.row.day))
        day_label.setFont(day_font)
        day_label.setAlignment(Qt.AlignCenter)
        badge_layout.addWidget(day_label)

        month_label = QLabel(self.row.month_abbr)
        month_label.setAlignment(Qt.AlignCenter)
        badge_layout.addWidget(month_label)

        fm = QFontMetrics(day_font)
        badge.setFixedWidth(fm.horizontalAdvance("00") + 16)
        layout.addWidget(badge, 0, Qt.AlignTop)

        content_layout = QVBoxLayout()
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.setSpacing(2)

        colors = get_colors_config()
        time_label = QLabel(self.row.time_text)
        time_label.setStyleSheet(f"color: {colors.secondary_text};")
        content_layout.addWidget(time_label)

        title_font = QFont(self.font())
        title_font.setBold(True)
        title_label = QLabel(self.row.title)
        title_label.setTextFormat(Qt.PlainText)
        title_label.setFont(title_font)
        content_layout.addWidget(title_label)

        if self.row.description:
            desc_label = QLabel(self.row.description)
            desc_label.setTextFormat(Qt.PlainText)
            desc_label.setWordWrap(True)
            desc_label.setStyleSheet(f"color: {colors.secondary_text};")
            content_layout.addWidget(desc_label)

        layout.addLayout(content_layout, 1)

        self.setFrameStyle(QFrame.StyledPanel | QFrame.Plain)
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Minimum)

    def _apply_style(self):
        bg_color = get_colors_config().event_background
        badge_text = get_contrasting_text_color(bg_color)

        self.setStyleSheet(f"""
            ListEventWidget {{
                background-color: #ffffff;
                border: 1px solid {lighten_color(bg_color, 0.5)};
                border-left: 4px solid {bg_color};
                border-radius: 4px;
            }}
            ListEventWidget:hover {{
                background-color: {lighten_color(bg_color, 0.85)};
            }}
            #dateBadge {{
                background-color: {bg_color};
                border-radius: 4px;
            }}
            #dateBadge QLabel {{
                color: {badge_text};
            }}
            QLabel {{
                background: transparent;
                border: none;
            }}
        """)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.row.event_id)
        super().mousePressEvent(event)


class EventListWidget(QWidget):
    """Chronological list of upcoming events."""

    event_clicked = Signal(str)

    def __init__(self, rows: tuple[ListRow, ...], parent=None):
        super().__init__(parent)
        self._rows = rows
        self._event_widgets: list[ListEventWidget] = []
        self._setup_ui()

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        content = QWidget()
        content_layout = QVBoxLayout(content)
        content_layout.setContentsMargins(8, 8, 8, 8)
        content_layout.setSpacing(4)

        for row in self._rows:
            widget = ListEventWidget(row)
            widget.clicked.connect(self.event_clicked.emit)
            content_layout.addWidget(widget)
            self._event_widgets.append(widget)

        content_layout.addStretch()  # Keep events at top

        scroll.setWidget(content)
        main_layout.addWidget(scroll)

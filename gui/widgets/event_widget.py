"""
Event Widget for displaying one event summary inside a month cell.

Shows "<time> - <title>" on a single line with the event color and emits
the event id when clicked.
"""

from PySide6.QtWidgets import QWidget, QLabel, QHBoxLayout, QFrame, QSizePolicy
from PySide6.QtCore import Qt, Signal, QSize
from PySide6.QtGui import QMouseEvent, QFontMetrics

from backend.calendar_view import EventSummary
from backend.config import ColorsConfig

# Module-level colors (set by CalendarPanel at startup)
_colors_config: ColorsConfig = ColorsConfig()


def set_event_colors_config(config: ColorsConfig):
    """Set the colors configuration for event widgets."""
    global _colors_config
    _colors_config = config


def get_colors_config() -> ColorsConfig:
    """Get the current colors configuration."""
    return _colors_config


def get_contrasting_text_color(bg_color: str) -> str:
    """Calculate whether black or white text contrasts better with the background."""
    # Parse hex color
    color = bg_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return "#000000"

    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255

    return "#000000" if luminance > 0.5 else "#ffffff"


def lighten_color(hex_color: str, factor: float = 0.3) -> str:
    """Lighten a hex color by the given factor."""
    color = hex_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return hex_color

    r = int(min(255, r + (255 - r) * factor))
    g = int(min(255, g + (255 - g) * factor))
    b = int(min(255, b + (255 - b) * factor))

    return f"#{r:02x}{g:02x}{b:02x}"


class EventWidget(QFrame):
    """Single-line, clickable summary of an event in a month cell."""

    # Emits the event id
    clicked = Signal(str)

    def __init__(self, summary: EventSummary, parent: QWidget = None):
        super().__init__(parent)
        self.summary = summary
        self._setup_ui()
        self._apply_style()

    def _setup_ui(self) -> None:
        layout = QHBoxLayout(self)
        layout.setContentsMargins(4, 1, 4, 1)
        layout.setSpacing(0)

        # Line breaks in titles would break the single-line layout
        text = ' '.join(self.summary.text.split())
        self._label = QLabel(text)
        self._label.setTextFormat(Qt.PlainText)
        self._label.setWordWrap(False)
        layout.addWidget(self._label)

        self.setToolTip(text)
        self.setFrameStyle(QFrame.StyledPanel | QFrame.Plain)
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Ignored, QSizePolicy.Fixed)

    def _apply_style(self) -> None:
        bg_color = get_colors_config().event_background
        text_color = get_contrasting_text_color(bg_color)
        bg_lighter = lighten_color(bg_color, 0.4)

        self.setStyleSheet(f"""
            EventWidget {{
                background-color: {bg_lighter};
                border: 1px solid {bg_color};
                border-left: 3px solid {bg_color};
                border-radius: 3px;
            }}
            EventWidget:hover {{
                background-color: {lighten_color(bg_color, 0.2)};
            }}
            QLabel {{
                color: {text_color};
                background: transparent;
                border: none;
            }}
        """)

    def mousePressEvent(self, mouse_event: QMouseEvent) -> None:
        if mouse_event.button() == Qt.LeftButton:
            self.clicked.emit(self.summary.event_id)
            mouse_event.accept()
            return
        super().mousePressEvent(mouse_event)

    def sizeHint(self) -> QSize:
        fm = QFontMetrics(self.font())
        return QSize(fm.horizontalAdvance(self._label.text()) + 12, fm.height() + 4)

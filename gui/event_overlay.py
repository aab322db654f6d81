"""
Event detail overlay.

A translucent backdrop covering the calendar panel with a centered card
showing the event. Clicking the backdrop or the Close button dismisses it;
clicks on the card itself do not.
"""

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLabel, QPushButton, QFrame, QScrollArea, QSizePolicy
)
from PySide6.QtCore import Qt, Signal, QUrl
from PySide6.QtGui import QDesktopServices, QFont, QMouseEvent

from backend.calendar_view import EventDetail
from backend.config import LabelsConfig, ColorsConfig


class _OverlayCard(QFrame):
    """The overlay content; swallows clicks so they never reach the backdrop."""

    clicked = Signal()

    def mousePressEvent(self, event: QMouseEvent):
        self.clicked.emit()
        event.accept()


class EventOverlay(QWidget):
    """Backdrop plus event card, sized to cover its parent."""

    background_clicked = Signal()
    content_clicked = Signal()
    close_requested = Signal()

    def __init__(self, detail: EventDetail, labels: LabelsConfig, colors: ColorsConfig, parent=None):
        super().__init__(parent)
        self.detail = detail
        self._labels = labels
        self._colors = colors
        self._setup_ui()

    def _setup_ui(self):
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setStyleSheet(f"EventOverlay {{ background-color: {self._colors.overlay_backdrop}; }}")

        outer = QVBoxLayout(self)
        outer.setContentsMargins(40, 40, 40, 40)
        outer.addStretch()

        row = QHBoxLayout()
        row.addStretch()

        self._card = _OverlayCard()
        self._card.setObjectName("overlayCard")
        self._card.setStyleSheet("#overlayCard { background-color: #ffffff; border-radius: 8px; }")
        self._card.setMinimumWidth(360)
        self._card.setMaximumWidth(560)
        self._card.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Maximum)
        self._card.clicked.connect(self.content_clicked.emit)
        row.addWidget(self._card)

        row.addStretch()
        outer.addLayout(row)
        outer.addStretch()

        self._build_card()

    def _build_card(self):
        layout = QVBoxLayout(self._card)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(10)

        title_font = QFont(self.font())
        title_font.setPointSize(title_font.pointSize() + 4)
        title_font.setBold(True)
        title = QLabel(self.detail.title)
        title.setTextFormat(Qt.PlainText)
        title.setFont(title_font)
        title.setWordWrap(True)
        layout.addWidget(title)

        form = QFormLayout()
        form.setSpacing(6)
        form.addRow(self._labels.detail_start, self._value_label(self.detail.start_text))
        if self.detail.end_text:
            form.addRow(self._labels.detail_end, self._value_label(self.detail.end_text))
        if self.detail.location:
            form.addRow(self._labels.detail_location, self._value_label(self.detail.location))
        layout.addLayout(form)

        if self.detail.description:
            layout.addWidget(QLabel(self._labels.detail_description))
            scroll = QScrollArea()
            scroll.setWidgetResizable(True)
            scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
            scroll.setFrameStyle(QFrame.NoFrame)
            scroll.setMaximumHeight(240)
            scroll.setWidget(self._value_label(self.detail.description))
            layout.addWidget(scroll)

        buttons = QHBoxLayout()
        if self.detail.link:
            link_btn = QPushButton(self._labels.button_view_external)
            link_btn.clicked.connect(self._open_link)
            buttons.addWidget(link_btn)
        buttons.addStretch()

        close_btn = QPushButton(self._labels.button_close)
        close_btn.setDefault(True)
        close_btn.clicked.connect(self.close_requested.emit)
        buttons.addWidget(close_btn)
        layout.addLayout(buttons)

    @staticmethod
    def _value_label(text: str) -> QLabel:
        label = QLabel(text)
        label.setTextFormat(Qt.PlainText)
        label.setWordWrap(True)
        label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        return label

    def _open_link(self):
        QDesktopServices.openUrl(QUrl(self.detail.link))

    def mousePressEvent(self, event: QMouseEvent):
        # Clicks on the card are accepted there, so anything reaching us hit the backdrop
        if event.button() == Qt.LeftButton:
            self.background_clicked.emit()
        event.accept()

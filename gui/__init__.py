"""
Lodge Calendar GUI Module

PySide6-based rendering surface for the calendar panel.
"""

from .main_window import MainWindow
from .event_overlay import EventOverlay

__all__ = ['MainWindow', 'EventOverlay']

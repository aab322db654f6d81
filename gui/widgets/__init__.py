"""
Lodge Calendar GUI Widgets

Custom widgets for displaying calendar render states.
"""

from .event_widget import EventWidget
from .month_grid import MonthGridWidget, MonthDayCell
from .event_list import EventListWidget, ListEventWidget
from .calendar_panel import CalendarPanel

__all__ = [
    'EventWidget',
    'MonthGridWidget',
    'MonthDayCell',
    'EventListWidget',
    'ListEventWidget',
    'CalendarPanel',
]

"""
Lodge Calendar Backend Module

This module provides the Qt-free core of the calendar panel:
- Configuration parsing (config.py)
- Event model with tagged start timing (event_model.py)
- EventSource contract (event_source.py)
- Google Calendar source (google_calendar.py)
- ICS subscription source (ics_subscription.py)
- CalendarView controller and render states (calendar_view.py)

network_worker.py depends on PySide6 and is imported by the GUI only.
"""

from .config import Config
from .event_model import CalendarEvent, Timed, AllDay, EventTiming, MalformedEventError
from .event_source import EventSource, Credential, FetchError, AuthError
from .calendar_view import CalendarView, CalendarContext, CalendarViewState, DisplayedMonth, ViewMode

__all__ = [
    'Config',
    'CalendarEvent',
    'Timed',
    'AllDay',
    'EventTiming',
    'MalformedEventError',
    'EventSource',
    'Credential',
    'FetchError',
    'AuthError',
    'CalendarView',
    'CalendarContext',
    'CalendarViewState',
    'DisplayedMonth',
    'ViewMode',
]

"""
Immutable event records as received from an EventSource.

A raw record (a Google Calendar API resource or an icalendar VEVENT) is
resolved into a CalendarEvent exactly once. Its start is held as a tagged
EventTiming value: Timed for events with a time of day, AllDay for date-only
events.
"""

import sys
from dataclasses import dataclass
from datetime import datetime, date, timedelta
from typing import Optional, Union, Iterable

import pytz
from icalendar import Event as ICalEvent

from .timezone_utils import to_local_datetime, local_midnight, get_local_timezone, date_key


class MalformedEventError(ValueError):
    """A raw event record has no usable start."""


@dataclass(frozen=True)
class Timed:
    """Start or end at a specific instant (always timezone-aware)."""
    instant: datetime

    def local_datetime(self) -> datetime:
        return to_local_datetime(self.instant)

    def local_date(self) -> date:
        return self.local_datetime().date()


@dataclass(frozen=True)
class AllDay:
    """Date-only start or end."""
    day: date

    def local_datetime(self) -> datetime:
        return local_midnight(self.day)

    def local_date(self) -> date:
        return self.day


EventTiming = Union[Timed, AllDay]


@dataclass(frozen=True)
class CalendarEvent:
    """A single (already expanded) calendar event."""
    id: str
    title: str
    timing: EventTiming
    end: Optional[EventTiming] = None
    description: str = ""
    location: str = ""
    html_link: str = ""

    @property
    def all_day(self) -> bool:
        return isinstance(self.timing, AllDay)

    @property
    def local_start(self) -> datetime:
        return self.timing.local_datetime()

    @property
    def local_date(self) -> date:
        return self.timing.local_date()

    @property
    def local_end(self) -> datetime:
        """End in local time; a missing end means one day for all-day events, zero length otherwise."""
        if self.end is not None:
            return self.end.local_datetime()
        if self.all_day:
            return local_midnight(self.timing.day + timedelta(days=1))
        return self.local_start

    @property
    def date_key(self) -> str:
        return date_key(self.local_date)

    # ==================== Construction ====================

    @classmethod
    def from_google(cls, item: dict, untitled: str = "Untitled") -> 'CalendarEvent':
        """
        Build an event from a Google Calendar API event resource.

        Raises:
            MalformedEventError: if the resource has no id or no start.
        """
        event_id = item.get('id')
        if not event_id:
            raise MalformedEventError("event has no id")

        start = _parse_google_timing(item.get('start'))
        if start is None:
            raise MalformedEventError(f"event {event_id} has no start")

        try:
            end = _parse_google_timing(item.get('end'))
        except MalformedEventError:
            end = None

        return cls(
            id=event_id,
            title=item.get('summary') or untitled,
            timing=start,
            end=end,
            description=item.get('description') or "",
            location=item.get('location') or "",
            html_link=item.get('htmlLink') or "",
        )

    @classmethod
    def from_ical(cls, component: ICalEvent, untitled: str = "Untitled") -> 'CalendarEvent':
        """
        Build an event from an (expanded) icalendar VEVENT.

        Instances of a recurring series share a UID, so the instance start is
        appended to make the id unique within the feed.

        Raises:
            MalformedEventError: if the component has no DTSTART.
        """
        start = _parse_ical_timing(component.get('DTSTART'))
        if start is None:
            raise MalformedEventError(f"VEVENT {component.get('UID')} has no DTSTART")
        end = _parse_ical_timing(component.get('DTEND'))

        uid = str(component.get('UID') or '')
        if isinstance(start, Timed):
            stamp = start.instant.astimezone(pytz.UTC).strftime("%Y%m%dT%H%M%SZ")
        else:
            stamp = start.day.strftime("%Y%m%d")
        event_id = f"{uid}_{stamp}" if uid else stamp

        summary = component.get('SUMMARY')
        return cls(
            id=event_id,
            title=str(summary) if summary else untitled,
            timing=start,
            end=end,
            description=str(component.get('DESCRIPTION') or ''),
            location=str(component.get('LOCATION') or ''),
            html_link=str(component.get('URL') or ''),
        )


def _parse_google_timing(value: Optional[dict]) -> Optional[EventTiming]:
    """Resolve a Google {dateTime|date} object into an EventTiming."""
    if not value:
        return None
    try:
        if value.get('dateTime'):
            instant = datetime.fromisoformat(value['dateTime'].replace('Z', '+00:00'))
            if instant.tzinfo is None:
                tz_name = value.get('timeZone')
                tz = pytz.timezone(tz_name) if tz_name else get_local_timezone()
                instant = tz.localize(instant)
            return Timed(instant)
        if value.get('date'):
            return AllDay(date.fromisoformat(value['date']))
    except (ValueError, pytz.UnknownTimeZoneError) as e:
        raise MalformedEventError(f"unparseable time {value!r}: {e}")
    return None


def _parse_ical_timing(prop) -> Optional[EventTiming]:
    """Resolve an icalendar DTSTART/DTEND property into an EventTiming."""
    if prop is None:
        return None
    val = prop.dt
    if isinstance(val, datetime):
        if val.tzinfo is None:
            # Floating time: interpret in the local zone
            val = get_local_timezone().localize(val)
        return Timed(val)
    if isinstance(val, date):
        return AllDay(val)
    return None


def parse_google_events(items: Iterable[dict], untitled: str = "Untitled") -> list[CalendarEvent]:
    """
    Convert Google event resources, skipping malformed ones.

    Order is preserved.
    """
    events = []
    for item in items:
        try:
            events.append(CalendarEvent.from_google(item, untitled=untitled))
        except MalformedEventError as e:
            print(f"Skipping malformed event: {e}", file=sys.stderr)
    return events

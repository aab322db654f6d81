"""
ICS subscription event source for read-only calendar feeds.

Fetches the raw VCALENDAR text, expands recurring events into concrete
instances with recurring_ical_events and filters them to the requested range.
"""

import sys
from datetime import datetime, timedelta
from typing import Optional

import pytz
import requests
from icalendar import Calendar as ICalCalendar
from recurring_ical_events import of as recurring_events_of

from .config import ICSSubscription
from .event_model import CalendarEvent, MalformedEventError
from .event_source import EventSource, Credential, FetchError


# Horizon for open-ended requests when expanding recurrences
OPEN_END = timedelta(days=730)


class ICSSubscriptionSource(EventSource):
    """
    EventSource for a public ICS feed.

    Feeds need no sign-in; authenticate() hands out an anonymous credential
    so CalendarView can treat both sources alike.
    """

    requires_sign_in = False

    def __init__(self, subscription: ICSSubscription, untitled: str = "Untitled",
                 cache_seconds: int = 300):
        """
        Args:
            subscription: Name and URL of the feed
            untitled: Title used for events without a SUMMARY
            cache_seconds: How long fetched feed text is reused
        """
        self.name = subscription.name
        self.url = subscription.url
        self.untitled = untitled
        self.cache_seconds = cache_seconds

        self._raw_data: Optional[str] = None
        self._last_fetch: Optional[datetime] = None

    @property
    def identity_ready(self) -> bool:
        return True

    def authenticate(self) -> Optional[Credential]:
        return Credential(token=None)

    def request_access_token(self) -> Credential:
        return Credential(token=None)

    def revoke(self, credential: Credential) -> None:
        self._raw_data = None
        self._last_fetch = None

    def fetch(self, timeout: int = 30) -> str:
        """
        Fetch the ICS file from the URL.

        Raises:
            FetchError: on network errors or non-2xx responses.
        """
        try:
            response = requests.get(
                self.url,
                timeout=timeout,
                headers={
                    'User-Agent': 'Lodge-Calendar/1.0',
                    'Accept': 'text/calendar'
                }
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Network error: {e}") from e

        # Ensure proper UTF-8 decoding
        response.encoding = 'utf-8'
        self._raw_data = response.text
        self._last_fetch = datetime.now(pytz.UTC)
        return self._raw_data

    def get_ical_text(self) -> str:
        """Get the raw VCALENDAR text, fetching when the cache is stale."""
        should_fetch = (
            self._raw_data is None or
            self._last_fetch is None or
            (datetime.now(pytz.UTC) - self._last_fetch).total_seconds() > self.cache_seconds
        )
        if should_fetch:
            return self.fetch()
        return self._raw_data

    def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: Optional[datetime],
        max_results: int,
        single_events: bool = True,
        order_by: str = "startTime",
        show_deleted: bool = False,
    ) -> list[CalendarEvent]:
        # A feed is a single calendar and its instances are always expanded,
        # so calendar_id and single_events are ignored
        text = self.get_ical_text()
        try:
            calendar = ICalCalendar.from_ical(text)
        except ValueError as e:
            raise FetchError(f"Invalid calendar data from {self.url}: {e}") from e

        end = time_max
        if end is None:
            end = time_min + OPEN_END

        try:
            components = recurring_events_of(calendar).between(time_min, end)
        except Exception as e:
            raise FetchError(f"Could not expand recurring events: {e}") from e

        events = []
        for component in components:
            if str(component.get('STATUS', '')).upper() == 'CANCELLED' and not show_deleted:
                continue
            try:
                event = CalendarEvent.from_ical(component, untitled=self.untitled)
            except MalformedEventError as e:
                print(f"Skipping malformed event: {e}", file=sys.stderr)
                continue
            # Same window as the Calendar API: ends after time_min, starts before time_max
            if event.local_start >= end:
                continue
            if event.local_end <= time_min and event.local_start < time_min:
                continue
            events.append(event)

        events.sort(key=lambda e: e.local_start)
        return events[:max_results]

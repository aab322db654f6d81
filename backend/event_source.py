"""
EventSource contract.

An EventSource supplies calendar events for a time range. CalendarView is
its only consumer and never looks past this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from .event_model import CalendarEvent


class FetchError(Exception):
    """Listing events failed (network, expired auth, quota, timeout)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(Exception):
    """Sign-in or consent failed or was denied."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Credential:
    """Opaque bearer credential handed out by an EventSource."""
    token: Optional[str]
    # Provider-specific object (e.g. google.oauth2.credentials.Credentials)
    handle: Any = None


class EventSource(ABC):
    """Abstract supplier of calendar events."""

    # False for sources such as public feeds that hand out anonymous credentials
    requires_sign_in = True

    @abstractmethod
    def authenticate(self) -> Optional[Credential]:
        """
        Return a credential without user interaction, if one is available.

        Used at startup to restore a previous session. Returns None when the
        user has to go through request_access_token().
        """

    @abstractmethod
    def request_access_token(self) -> Credential:
        """
        Obtain a credential, prompting the user if needed.

        Raises:
            AuthError: if sign-in or consent fails.
        """

    @abstractmethod
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
        """
        List events overlapping [time_min, time_max), ordered by start.

        An event is included when it ends after time_min and starts before
        time_max, so events already in progress at time_min are returned.
        time_max of None means no upper bound.

        Raises:
            FetchError: on any network or API failure.
        """

    @abstractmethod
    def revoke(self, credential: Credential) -> None:
        """Invalidate the credential."""

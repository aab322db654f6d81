"""
Google Calendar event source.

Signs in through the OAuth installed-app flow, caches the token on disk and
lists events with the Calendar v3 API. Returns CalendarEvent objects.
"""

import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import requests
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from .config import GoogleAccount
from .event_model import CalendarEvent, parse_google_events
from .event_source import EventSource, Credential, FetchError, AuthError
from .timezone_utils import to_rfc3339


REVOKE_URL = "https://oauth2.googleapis.com/revoke"


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] GOOGLE: {msg}", file=sys.stderr)


class GoogleCalendarSource(EventSource):
    """EventSource backed by the Google Calendar API."""

    def __init__(self, account: GoogleAccount, untitled: str = "Untitled"):
        """
        Args:
            account: Client secrets, token location and calendar id
            untitled: Title used for events without a summary
        """
        self.account = account
        self.untitled = untitled
        self._credentials: Optional[Credentials] = None
        self._service = None
        # The discovery service sits on one httplib2.Http, which is not thread-safe
        self._api_lock = threading.Lock()

    @property
    def identity_ready(self) -> bool:
        """True when client secrets are available to start a sign-in."""
        return Path(self.account.client_secrets_file).exists()

    # ==================== Authentication ====================

    def _load_cached_credentials(self) -> Optional[Credentials]:
        """Load the cached token, refreshing it if it has expired."""
        token_file = Path(self.account.token_file)
        if not token_file.exists():
            return None

        try:
            creds = Credentials.from_authorized_user_file(str(token_file), self.account.scopes)
        except ValueError as e:
            _debug_print(f"Ignoring unreadable token file {token_file}: {e}")
            return None

        if creds.valid:
            return creds

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(GoogleRequest())
            except RefreshError as e:
                _debug_print(f"Token refresh failed, consent needed: {e}")
                return None
            self._save_credentials(creds)
            return creds

        return None

    def _save_credentials(self, creds: Credentials) -> None:
        token_file = Path(self.account.token_file)
        token_file.parent.mkdir(parents=True, exist_ok=True)
        token_file.write_text(creds.to_json(), encoding="utf-8")

    def _adopt(self, creds: Credentials) -> Credential:
        self._credentials = creds
        self._service = None  # rebuilt with the new credentials on next use
        return Credential(token=creds.token, handle=creds)

    def authenticate(self) -> Optional[Credential]:
        creds = self._load_cached_credentials()
        if creds is None:
            return None
        _debug_print("Restored cached Google session")
        return self._adopt(creds)

    def request_access_token(self) -> Credential:
        """
        Sign in, skipping the consent screen when a cached token still works.

        Raises:
            AuthError: if the secrets are missing or the user denies consent.
        """
        creds = self._load_cached_credentials()
        if creds is None:
            if not self.identity_ready:
                raise AuthError(f"Client secrets not found: {self.account.client_secrets_file}")
            try:
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(self.account.client_secrets_file), self.account.scopes
                )
                creds = flow.run_local_server(
                    port=0, prompt="consent", timeout_seconds=self.account.auth_timeout
                )
            # AttributeError: no redirect was received before the timeout
            except (OAuth2Error, GoogleAuthError, ValueError, OSError, AttributeError) as e:
                raise AuthError(f"Google sign-in failed: {e}") from e
            if creds is None:
                raise AuthError("Google sign-in timed out")
            self._save_credentials(creds)
            _debug_print("Signed in with consent")
        return self._adopt(creds)

    def revoke(self, credential: Credential) -> None:
        """Revoke the token with Google and forget the local copy."""
        try:
            if credential.token:
                response = requests.post(
                    REVOKE_URL,
                    params={"token": credential.token},
                    headers={"content-type": "application/x-www-form-urlencoded"},
                    timeout=30,
                )
                if response.status_code != 200:
                    _debug_print(f"Revoke returned HTTP {response.status_code}")
        except requests.RequestException as e:
            _debug_print(f"Revoke request failed: {e}")
        finally:
            self._credentials = None
            self._service = None
            token_file = Path(self.account.token_file)
            if token_file.exists():
                token_file.unlink()

    # ==================== Events ====================

    def _get_service(self):
        if self._credentials is None:
            raise FetchError("Not signed in")
        if self._service is None:
            self._service = build(
                "calendar", "v3", credentials=self._credentials, cache_discovery=False
            )
        return self._service

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
        service = self._get_service()

        params = {
            "calendarId": calendar_id,
            "timeMin": to_rfc3339(time_min),
            "showDeleted": show_deleted,
            "singleEvents": single_events,
            "maxResults": max_results,
            "orderBy": order_by,
        }
        if time_max is not None:
            params["timeMax"] = to_rfc3339(time_max)

        try:
            with self._api_lock:
                response = service.events().list(**params).execute()
        except HttpError as e:
            status = getattr(e.resp, "status", "?")
            raise FetchError(f"Calendar API returned {status}: {e.reason}") from e
        except Exception as e:
            raise FetchError(f"{type(e).__name__}: {e}") from e

        items = response.get("items", [])
        _debug_print(f"Listed {len(items)} events from {params['timeMin']}")
        return parse_google_events(items, untitled=self.untitled)

"""
Configuration parser for Lodge Calendar.

Handles TOML file parsing into typed configuration sections.
"""

import tomllib
import os
import sys
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class GoogleAccount:
    """Configuration for the Google Calendar connection."""
    client_secrets_file: Path
    token_file: Path
    calendar_id: str = "primary"
    auth_timeout: int = 120  # Seconds to wait for browser consent
    scopes: list[str] = field(
        default_factory=lambda: ["https://www.googleapis.com/auth/calendar.readonly"]
    )


@dataclass
class ICSSubscription:
    """Configuration for a read-only ICS subscription."""
    name: str
    url: str


@dataclass
class ViewConfig:
    """Limits applied when fetching and rendering events."""
    list_max_results: int = 30
    month_max_results: int = 250
    description_limit: int = 100


@dataclass
class BindingsConfig:
    """Configuration for keyboard bindings."""
    next: str = "Right"  # Key to go to next month
    prev: str = "Left"   # Key to go to previous month


@dataclass
class ColorsConfig:
    """Configuration for UI colors."""
    event_background: str = "#4285f4"
    cell_border: str = "#e0e0e0"
    header_background: str = "#f5f5f5"
    today_highlight_background: str = "#e3f2fd"
    today_highlight_text: str = "#1976d2"
    month_cell_current: str = "#ffffff"
    month_cell_other: str = "#f5f5f5"
    month_text_current: str = "#000000"
    month_text_other: str = "#999999"
    secondary_text: str = "rgba(0, 0, 0, 0.6)"
    error_text: str = "#d32f2f"
    overlay_backdrop: str = "rgba(0, 0, 0, 0.45)"


@dataclass
class LabelsConfig:
    """Configuration for UI labels."""
    window_title: str = "Lodge Calendar"
    view_month: str = "Month"
    view_list: str = "List"
    button_prev: str = "<"
    button_next: str = ">"
    button_today: str = "Today"
    button_reload: str = "Reload"
    button_connect: str = "Connect Google Calendar"
    button_disconnect: str = "Disconnect"
    button_close: str = "Close"
    button_view_external: str = "View in Google Calendar"
    all_day: str = "All Day"
    untitled: str = "Untitled"
    no_events: str = "No upcoming events found."
    sign_in_prompt: str = "Please sign in to view your calendar events."
    loading: str = "Loading events..."
    error_prefix: str = "Error: "
    detail_start: str = "Start:"
    detail_end: str = "End:"
    detail_description: str = "Description:"
    detail_location: str = "Location:"


@dataclass
class LocalizationConfig:
    """Configuration for localized day and month names."""
    # Sunday first, matching the month grid columns
    day_names: list[str] = None
    weekday_names: list[str] = None  # Full names for the detail view
    month_names: list[str] = None

    def __post_init__(self):
        if self.day_names is None:
            self.day_names = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
        if self.weekday_names is None:
            self.weekday_names = [
                "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"
            ]
        if self.month_names is None:
            self.month_names = [
                "January", "February", "March", "April", "May", "June",
                "July", "August", "September", "October", "November", "December"
            ]

    def get_day_name(self, weekday: int) -> str:
        """Get localized day name for weekday (0=Sunday, 6=Saturday)."""
        return self.day_names[weekday] if 0 <= weekday < len(self.day_names) else ""

    def get_weekday_name(self, weekday: int) -> str:
        """Full localized day name (0=Sunday, 6=Saturday)."""
        return self.weekday_names[weekday] if 0 <= weekday < len(self.weekday_names) else ""

    def get_month_name(self, month_index: int) -> str:
        """Get localized month name (0=January, 11=December)."""
        return self.month_names[month_index] if 0 <= month_index < len(self.month_names) else ""

    def get_month_abbreviation(self, month_index: int) -> str:
        """First three letters of the month name ("Mar")."""
        return self.get_month_name(month_index)[:3]


@dataclass
class Config:
    """Main configuration container for Lodge Calendar."""

    state_file: Path
    timezone: str = "UTC"
    source: str = "google"  # "google" or "ics"
    refresh_interval: int = 300  # Auto-refresh interval in seconds (0 to disable)
    google: Optional[GoogleAccount] = None
    subscription: Optional[ICSSubscription] = None
    view: ViewConfig = field(default_factory=ViewConfig)
    bindings: BindingsConfig = field(default_factory=BindingsConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)
    colors: ColorsConfig = field(default_factory=ColorsConfig)
    labels: LabelsConfig = field(default_factory=LabelsConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'lodge-calendar' / 'lodge-calendar.toml'

    @classmethod
    def get_default_state_path(cls) -> Path:
        """Get the default state file path."""
        xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
        return Path(xdg_state) / 'lodge-calendar' / 'state.json'

    @classmethod
    def get_default_token_path(cls) -> Path:
        """Get the default location of the cached Google token."""
        xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
        return Path(xdg_state) / 'lodge-calendar' / 'google-token.json'

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data, base_dir=config_path.parent)

    @classmethod
    def from_dict(cls, data: dict, base_dir: Optional[Path] = None) -> 'Config':
        """Build a Config from parsed TOML data.

        Relative file paths in the [Google] section are resolved against
        base_dir (the directory holding the config file).
        """
        base_dir = base_dir or Path.cwd()

        general = data.get('General', {})
        source = general.get('source', 'google')
        if source not in ('google', 'ics'):
            raise ValueError(f"Unknown event source '{source}' (expected 'google' or 'ics')")

        state_file_str = general.get('state_file', str(cls.get_default_state_path()))
        state_file = Path(os.path.expanduser(state_file_str))

        google = None
        google_data = data.get('Google')
        if isinstance(google_data, dict):
            secrets = Path(os.path.expanduser(google_data.get('client_secrets_file', 'client_secret.json')))
            if not secrets.is_absolute():
                secrets = base_dir / secrets
            token_str = google_data.get('token_file')
            token = Path(os.path.expanduser(token_str)) if token_str else cls.get_default_token_path()
            google = GoogleAccount(
                client_secrets_file=secrets,
                token_file=token,
                calendar_id=google_data.get('calendar_id', 'primary'),
                auth_timeout=google_data.get('auth_timeout', 120),
            )
            print(f"DEBUG: Google account configured (calendar={google.calendar_id})", file=sys.stderr)

        subscription = None
        sub_data = data.get('Subscription')
        if isinstance(sub_data, dict) and sub_data.get('url'):
            subscription = ICSSubscription(
                name=sub_data.get('name', 'Subscription'),
                url=sub_data['url'],
            )
            print(f"DEBUG: ICS subscription configured: {subscription.name}", file=sys.stderr)

        if source == 'google' and google is None:
            raise ValueError("Source 'google' requires a [Google] section")
        if source == 'ics' and subscription is None:
            raise ValueError("Source 'ics' requires a [Subscription] section with a url")

        view_data = data.get('View', {})
        view = ViewConfig(
            list_max_results=view_data.get('list_max_results', ViewConfig.list_max_results),
            month_max_results=view_data.get('month_max_results', ViewConfig.month_max_results),
            description_limit=view_data.get('description_limit', ViewConfig.description_limit),
        )

        bindings_data = data.get('Bindings', {})
        bindings = BindingsConfig(
            next=bindings_data.get('next', 'Right'),
            prev=bindings_data.get('prev', 'Left'),
        )

        # Space-separated name lists, as in "Sun Mon Tue ..."
        localization_data = data.get('Localization', {})
        day_names_str = localization_data.get('day_names', '')
        weekday_names_str = localization_data.get('weekday_names', '')
        month_names_str = localization_data.get('month_names', '')
        localization = LocalizationConfig(
            day_names=day_names_str.split() if day_names_str else None,
            weekday_names=weekday_names_str.split() if weekday_names_str else None,
            month_names=month_names_str.split() if month_names_str else None,
        )

        # Colors and labels: any field may be overridden by name
        colors_data = data.get('Colors', {})
        colors = ColorsConfig(**{
            name: colors_data[name]
            for name in ColorsConfig.__dataclass_fields__
            if name in colors_data
        })

        labels_data = data.get('Labels', {})
        labels = LabelsConfig(**{
            name: labels_data[name]
            for name in LabelsConfig.__dataclass_fields__
            if name in labels_data
        })

        return cls(
            state_file=state_file,
            timezone=general.get('timezone', 'UTC'),
            source=source,
            refresh_interval=general.get('refresh_interval', 300),
            google=google,
            subscription=subscription,
            view=view,
            bindings=bindings,
            localization=localization,
            colors=colors,
            labels=labels,
        )


EXAMPLE_CONFIG = """
[General]
timezone = "America/Chicago"
source = "google"

[Google]
client_secrets_file = "client_secret.json"
calendar_id = "primary"

[View]
list_max_results = 30
"""

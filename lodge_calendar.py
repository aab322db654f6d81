#!/usr/bin/env python3
"""
Lodge Calendar - A PySide6 calendar panel mirroring Google Calendar (or an ICS feed).

This is the main entry point for the application.
"""

import sys
import argparse
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from backend.config import Config, EXAMPLE_CONFIG
from backend.calendar_view import CalendarContext
from backend.event_source import EventSource
from backend.google_calendar import GoogleCalendarSource
from backend.ics_subscription import ICSSubscriptionSource
from backend.network_worker import get_network_worker
from backend.timezone_utils import set_timezone
from gui.main_window import MainWindow


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Lodge Calendar - A desktop calendar panel for Google Calendar and ICS feeds"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    return parser.parse_args()


def create_event_source(config: Config) -> EventSource:
    """Build the EventSource selected by [General] source."""
    if config.source == "ics":
        return ICSSubscriptionSource(
            config.subscription,
            untitled=config.labels.untitled,
            cache_seconds=max(config.refresh_interval, 60),
        )
    return GoogleCalendarSource(config.google, untitled=config.labels.untitled)


def create_context(config: Config, source: EventSource) -> CalendarContext:
    worker = get_network_worker()
    return CalendarContext(
        source=source,
        dispatch=worker.dispatch,
        calendar_id=config.google.calendar_id if config.google else "primary",
        # The calendar client library is imported above, so the API side is ready
        api_ready=True,
        identity_ready=source.identity_ready,
        sign_in_required=source.requires_sign_in,
        view=config.view,
        labels=config.labels,
        localization=config.localization,
    )


def main():
    """Main entry point."""
    args = parse_args()

    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Lodge Calendar")
    app.setApplicationVersion("0.1")
    app.setStyle("Fusion")

    # Load configuration
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  - {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print(EXAMPLE_CONFIG)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    set_timezone(config.timezone)

    if args.debug:
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  Source: {config.source}")
        print(f"  Timezone: {config.timezone}")
        print(f"  State file: {config.state_file}")

    source = create_event_source(config)
    if not source.identity_ready:
        print(f"Warning: client secrets not found at {config.google.client_secrets_file}; "
              "sign-in is disabled", file=sys.stderr)

    window = MainWindow(config, create_context(config, source))
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()

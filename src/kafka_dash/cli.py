"""CLI entry point.

Loads the connections file and user preferences, sends logging to a file
(the terminal belongs to the TUI) and launches the dashboard.
"""

import argparse
import logging
import sys
from pathlib import Path

from kafka_dash.config import (
    ConfigError,
    ConnectionsConfig,
    Preferences,
    load_connections,
    load_preferences,
)
from kafka_dash.themes import THEME_NAMES

DEFAULT_LOG_FILE = Path.home() / ".local" / "state" / "kafka-dash" / "kafka-dash.log"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(log_file: Path, level: str) -> None:
    """Send all log records to log_file.

    Unknown level names fall back to INFO.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # librdkafka chatter is only interesting when debugging
    if root.level > logging.DEBUG:
        logging.getLogger("confluent_kafka").setLevel(logging.WARNING)


def run_tui(connections: ConnectionsConfig, preferences: Preferences) -> None:
    """Launch the TUI dashboard.

    Args:
        connections: Clusters to offer in the connection pane.
        preferences: User preferences (theme).
    """
    from kafka_dash.app import DashboardApp

    app = DashboardApp(connections, preferences=preferences)
    app.run()


def main() -> int:
    """Main entry point for the kafka-dash CLI.

    Returns:
        Exit code (0 for success, 1 when the configuration cannot be loaded).
    """
    parser = argparse.ArgumentParser(
        prog="kafka-dash",
        description="TUI dashboard for Kafka clusters",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        metavar="FILE",
        help="Connections file (default: $KAFKA_DASH_CONFIG or ./config.json)",
    )
    parser.add_argument(
        "--theme",
        choices=THEME_NAMES,
        help="Colour theme; the choice is saved for the next run",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=DEFAULT_LOG_FILE,
        metavar="FILE",
        help=f"Write logs to FILE (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__import__('kafka_dash').__version__}"
    )

    args = parser.parse_args()

    preferences = load_preferences()
    if args.theme and args.theme != preferences.theme:
        try:
            preferences.update(theme=args.theme)
        except OSError as e:
            # The theme still applies to this run
            print(f"Warning: Could not save preferences: {e}", file=sys.stderr)

    try:
        configure_logging(args.log_file, "DEBUG" if args.debug else preferences.log_level)
    except OSError as e:
        print(f"Error: Cannot open log file {args.log_file}: {e}", file=sys.stderr)
        return 1

    try:
        connections = load_connections(args.config)
    except ConfigError as e:
        logging.getLogger(__name__).error("Failed to load connections: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    run_tui(connections, preferences)
    return 0


if __name__ == "__main__":
    sys.exit(main())

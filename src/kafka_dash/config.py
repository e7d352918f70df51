"""Configuration management.

Two files are involved:

- the connections file (JSON) listing the clusters the dashboard can talk to,
  read once at startup. A missing or malformed file is fatal.
- user preferences persisted to ~/.config/kafka-dash/config.toml
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# tomli-w for writing (tomllib is read-only)
import tomli_w

# tomllib is stdlib in 3.11+, use tomli as fallback for 3.10
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found,no-redef]

from kafka_dash.models import Connection

CONFIG_ENV_VAR = "KAFKA_DASH_CONFIG"
DEFAULT_CONNECTIONS_PATH = Path("config.json")

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "kafka-dash"
DEFAULT_PREFERENCES_PATH = DEFAULT_CONFIG_DIR / "config.toml"


class ConfigError(Exception):
    """Raised when the connections file cannot be used."""

    pass


@dataclass(frozen=True)
class ConnectionsConfig:
    """The clusters listed in the connections file, in file order."""

    connections: tuple[Connection, ...]

    @property
    def names(self) -> list[str]:
        return [conn.name for conn in self.connections]

    @property
    def default(self) -> Connection:
        """The first entry, selected when the dashboard starts."""
        return self.connections[0]

    def find_connection(self, name: str) -> Connection:
        """Look up a connection by name.

        Raises:
            ConfigError: If no connection has that name.
        """
        for conn in self.connections:
            if conn.name == name:
                return conn
        raise ConfigError(f"Failed to find connection for name '{name}'.")


def resolve_connections_path(path: Path | None = None) -> Path:
    """Pick the connections file: explicit path, then $KAFKA_DASH_CONFIG, then ./config.json."""
    if path is not None:
        return path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONNECTIONS_PATH


def load_connections(path: Path | None = None) -> ConnectionsConfig:
    """Load the connections file.

    Args:
        path: Optional explicit path. See resolve_connections_path for the fallbacks.

    Returns:
        ConnectionsConfig with at least one connection.

    Raises:
        ConfigError: If the file is missing, is not valid JSON, has the wrong
            shape, or lists no connections.
    """
    config_path = resolve_connections_path(path)

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Failed to read config file: {config_path} does not exist")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {config_path}: {e}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to decode config file {config_path}: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("connections"), list):
        raise ConfigError(f"Config file {config_path} must contain a 'connections' list")

    connections = []
    for entry in data["connections"]:
        if not isinstance(entry, dict):
            raise ConfigError(f"Config file {config_path}: connection entries must be objects")
        try:
            connection = Connection.from_dict(entry)
        except ValueError as e:
            raise ConfigError(f"Config file {config_path}: {e}")
        # Connections are identified by name
        if any(existing.name == connection.name for existing in connections):
            raise ConfigError(
                f"Config file {config_path}: duplicate connection name '{connection.name}'"
            )
        connections.append(connection)

    if not connections:
        raise ConfigError(f"Config file {config_path} lists no connections")

    return ConnectionsConfig(connections=tuple(connections))


@dataclass
class Preferences:
    """User preferences."""

    theme: str = "dark"
    log_level: str = "INFO"

    # File path for these preferences (not persisted)
    _path: Path = field(default=DEFAULT_PREFERENCES_PATH, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert preferences to dictionary for serialization."""
        return {
            "theme": self.theme,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> Preferences:
        """Create preferences from dictionary."""
        return cls(
            theme=data.get("theme", "dark"),
            log_level=data.get("log_level", "INFO"),
            _path=path or DEFAULT_PREFERENCES_PATH,
        )

    def save(self) -> None:
        """Save preferences to file."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "wb") as f:
            tomli_w.dump(self.to_dict(), f)

    def update(self, **kwargs: Any) -> None:
        """Update preference values and save."""
        for key, value in kwargs.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)
        self.save()


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from file.

    Args:
        path: Optional custom path. Defaults to ~/.config/kafka-dash/config.toml

    Returns:
        Preferences object with loaded or default settings.
    """
    prefs_path = path or DEFAULT_PREFERENCES_PATH

    if not prefs_path.exists():
        # Return defaults, don't create file until save()
        return Preferences(_path=prefs_path)

    try:
        with open(prefs_path, "rb") as f:
            data = tomllib.load(f)
        return Preferences.from_dict(data, path=prefs_path)
    except (tomllib.TOMLDecodeError, OSError) as e:
        # If preferences are corrupt, return defaults but preserve path
        import sys

        print(f"Warning: Could not load preferences from {prefs_path}: {e}", file=sys.stderr)
        return Preferences(_path=prefs_path)

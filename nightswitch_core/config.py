# nightswitch_core/config.py
"""
Configuration management for nightswitch.

This module holds the typed key/value settings store the daemon runs on,
its change notifications, and the file-backed variant that loads and
saves nightswitch's configuration file (`config.ini`).
"""

import configparser
import logging
import pathlib
from typing import Callable, Optional

from .exceptions import ConfigError, ValidationError

log = logging.getLogger(__name__)

# --- Constants ---
APP_NAME = "nightswitch"
CONFIG_DIR = pathlib.Path.home() / ".config" / APP_NAME
CONFIG_FILE = CONFIG_DIR / "config.ini"

# Default configuration values, grouped the way they are written to disk.
DEFAULT_CONFIG: dict[str, dict[str, str]] = {
    "Appearance": {
        "day-theme": "Adwaita",
        "night-theme": "Adwaita-dark",
    },
    "Shell": {
        "shell-enabled": "false",
        "day-shell": "",
        "night-shell": "",
    },
    "Commands": {
        "commands-enabled": "false",
        "day-command": "",
        "night-command": "",
    },
    "Nighttime": {
        "nighttime-from-night-light": "false",
        "nighttime-begin": "1200",
        "nighttime-end": "420",
    },
    "General": {
        "time-check-period": "1000",
        "first-time-user": "true",
    },
}

# GVariant-style type codes: s = string, u = unsigned int, b = boolean, d = double
KEY_TYPES: dict[str, str] = {
    "day-theme": "s",
    "night-theme": "s",
    "shell-enabled": "b",
    "day-shell": "s",
    "night-shell": "s",
    "commands-enabled": "b",
    "day-command": "s",
    "night-command": "s",
    "nighttime-from-night-light": "b",
    "nighttime-begin": "u",
    "nighttime-end": "u",
    "time-check-period": "u",
    "first-time-user": "b",
}

UINT_RANGES: dict[str, tuple[int, int]] = {
    "nighttime-begin": (0, 1439),
    "nighttime-end": (0, 1439),
    "time-check-period": (10, 1_800_000),
}

_BOOLEAN_STATES = configparser.ConfigParser.BOOLEAN_STATES


def flatten_defaults(
    defaults: dict[str, dict[str, str]] = DEFAULT_CONFIG,
) -> dict[str, str]:
    """Returns the key -> default text mapping of a sectioned defaults dict."""
    return {key: value for section in defaults.values() for key, value in section.items()}


def format_value(key: str, value) -> str:
    """
    Converts a Python value to its stored text form, checking it against
    the key's type and range.

    Raises:
        ValidationError: If the value doesn't fit the key.
    """
    kind = KEY_TYPES.get(key, "s")
    if kind == "b":
        if isinstance(value, str):
            text = value.strip().lower()
            if text not in _BOOLEAN_STATES:
                raise ValidationError(f"Invalid boolean for '{key}': '{value}'")
            value = _BOOLEAN_STATES[text]
        return "true" if value else "false"
    if kind == "u":
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid integer for '{key}': '{value}'") from e
        low, high = UINT_RANGES.get(key, (0, 2**32 - 1))
        if not low <= number <= high:
            raise ValidationError(
                f"Value for '{key}' out of range ({low} to {high}): {number}"
            )
        return str(number)
    if kind == "d":
        try:
            return repr(float(value))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid number for '{key}': '{value}'") from e
    return str(value)


class Subscription:
    """
    Handle for one change callback.

    `release()` disconnects the callback; calling it more than once is
    harmless. Usable as a context manager.
    """

    def __init__(self, release: Optional[Callable[[], None]] = None):
        self._release = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def release(self):
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.release()
        return False


class SubscriptionGroup:
    """Collects subscriptions so they can all be released together."""

    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        self._subscriptions.append(subscription)
        return subscription

    def release_all(self):
        """Releases every held subscription, newest first."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in reversed(subscriptions):
            subscription.release()

    def __len__(self):
        return len(self._subscriptions)


class SettingsStore:
    """
    In-memory typed key/value store with per-key change notifications.

    Values are held as text (the way `configparser` holds them) and parsed
    by the typed getters. Writing a value equal to the stored one notifies
    nobody. Change callbacks receive the changed key.
    """

    def __init__(self, defaults: Optional[dict[str, str]] = None):
        self._defaults: dict[str, str] = dict(
            flatten_defaults() if defaults is None else defaults
        )
        self._values: dict[str, str] = dict(self._defaults)
        self._handlers: dict[str, list[Callable[[str], None]]] = {}

    # --- Reading ---

    def keys(self) -> list[str]:
        return list(self._values)

    def _raw(self, key: str) -> str:
        try:
            return self._values[key]
        except KeyError:
            raise ConfigError(f"Unknown setting '{key}'") from None

    def get_default(self, key: str) -> Optional[str]:
        """Default text of a key, or None if the key has no default."""
        return self._defaults.get(key)

    def get_string(self, key: str) -> str:
        return self._raw(key)

    def get_boolean(self, key: str) -> bool:
        text = self._raw(key).strip().lower()
        if text in _BOOLEAN_STATES:
            return _BOOLEAN_STATES[text]
        fallback = self._defaults.get(key, "false").strip().lower()
        log.warning(f"Invalid boolean '{text}' for '{key}', using default '{fallback}'.")
        return _BOOLEAN_STATES.get(fallback, False)

    def get_uint(self, key: str) -> int:
        text = self._raw(key)
        try:
            number = int(text.strip())
        except ValueError:
            log.warning(f"Invalid integer '{text}' for '{key}', using default.")
            number = int(self._defaults.get(key, "0"))
        low, high = UINT_RANGES.get(key, (0, 2**32 - 1))
        if not low <= number <= high:
            clamped = min(max(number, low), high)
            log.warning(f"Value {number} for '{key}' out of range, clamped to {clamped}.")
            number = clamped
        return number

    def get_double(self, key: str) -> float:
        text = self._raw(key)
        try:
            return float(text.strip())
        except ValueError:
            log.warning(f"Invalid number '{text}' for '{key}', using default.")
            return float(self._defaults.get(key, "0"))

    # --- Writing ---

    def set_string(self, key: str, value: str) -> bool:
        return self._store(key, str(value))

    def set_boolean(self, key: str, value: bool) -> bool:
        return self._store(key, "true" if value else "false")

    def set_uint(self, key: str, value: int) -> bool:
        if int(value) < 0:
            raise ValidationError(f"Value for '{key}' must not be negative: {value}")
        return self._store(key, format_value(key, value) if key in UINT_RANGES else str(int(value)))

    def set_double(self, key: str, value: float) -> bool:
        return self._store(key, repr(float(value)))

    def _store(self, key: str, text: str) -> bool:
        old = self._values.get(key)
        if old == text:
            return True
        self._values[key] = text
        try:
            self._commit()
        except ConfigError:
            # Memory must keep matching what's persisted
            if old is None:
                del self._values[key]
            else:
                self._values[key] = old
            raise
        self._emit(key)
        return True

    def _commit(self):
        """Persists the current values; nothing to do for the in-memory store."""
        pass

    # --- Notifications ---

    def connect_changed(self, key: str, callback: Callable[[str], None]) -> Subscription:
        """Calls `callback(key)` whenever the value of `key` changes."""
        handlers = self._handlers.setdefault(key, [])
        handlers.append(callback)

        def _disconnect():
            if callback in handlers:
                handlers.remove(callback)

        return Subscription(_disconnect)

    def _emit(self, key: str):
        for callback in list(self._handlers.get(key, ())):
            callback(key)


class IniSettingsStore(SettingsStore):
    """
    SettingsStore persisted to nightswitch's `config.ini`.

    Missing keys get their defaults in memory. `watch()` reloads the file
    when another process (e.g. the CLI) rewrites it, notifying every key
    whose value changed.
    """

    def __init__(
        self,
        file_path: pathlib.Path = CONFIG_FILE,
        defaults: dict[str, dict[str, str]] = DEFAULT_CONFIG,
    ):
        super().__init__(flatten_defaults(defaults))
        self.file_path = pathlib.Path(file_path)
        self._sections = {
            key: section for section, values in defaults.items() for key in values
        }
        self._monitor = None
        self._monitor_id = None
        self._values.update(self._read_file())

    def _load_ini(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        if self.file_path.exists():
            try:
                if self.file_path.stat().st_size > 0:
                    parser.read(self.file_path, encoding="utf-8")
                else:
                    log.warning(f"Config file {self.file_path} is empty.")
            except configparser.Error as e:
                raise ConfigError(f"Could not parse config file {self.file_path}: {e}") from e
            except OSError as e:
                raise ConfigError(f"Could not read config file {self.file_path}: {e}") from e
        return parser

    def _read_file(self) -> dict[str, str]:
        parser = self._load_ini()
        values = {}
        for key, section in self._sections.items():
            if parser.has_option(section, key):
                values[key] = parser.get(section, key)
        return values

    def _commit(self):
        parser = configparser.ConfigParser(interpolation=None)
        for key, value in self._values.items():
            section = self._sections.get(key, "General")
            if not parser.has_section(section):
                parser.add_section(section)
            parser.set(section, key, value)
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.file_path.open("w", encoding="utf-8") as f:
                parser.write(f)
            log.debug(f"Saved configuration to {self.file_path}")
        except OSError as e:
            raise ConfigError(f"Failed to write configuration to {self.file_path}: {e}") from e

    def reload(self) -> list[str]:
        """
        Re-reads the file and notifies the keys whose value changed.

        Returns:
            The changed keys.
        """
        fresh = {**self._defaults, **self._read_file()}
        changed = [key for key, value in fresh.items() if self._values.get(key) != value]
        self._values.update(fresh)
        if changed:
            log.info(f"Configuration reloaded, changed: {', '.join(changed)}")
        for key in changed:
            self._emit(key)
        return changed

    def watch(self):
        """Starts reloading on external edits (needs a running GLib main loop)."""
        if self._monitor is not None:
            return
        from gi.repository import Gio

        gfile = Gio.File.new_for_path(str(self.file_path))
        self._monitor = gfile.monitor_file(Gio.FileMonitorFlags.NONE, None)
        self._monitor_id = self._monitor.connect("changed", self._on_file_changed)
        log.debug(f"Watching {self.file_path} for changes")

    def unwatch(self):
        if self._monitor is None:
            return
        self._monitor.disconnect(self._monitor_id)
        self._monitor.cancel()
        self._monitor = None
        self._monitor_id = None

    def _on_file_changed(self, _monitor, _file, _other_file, event_type):
        from gi.repository import Gio

        if event_type not in (
            Gio.FileMonitorEvent.CHANGES_DONE_HINT,
            Gio.FileMonitorEvent.CREATED,
        ):
            return
        try:
            self.reload()
        except ConfigError as e:
            log.warning(f"Ignoring unreadable configuration change: {e}")

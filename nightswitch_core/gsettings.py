# nightswitch_core/gsettings.py
"""
Gio.Settings access for the desktop-side settings nightswitch reads and
writes (GTK theme, Night Light schedule, User Themes).

`Gio.Settings` aborts the whole process when asked for a schema that is
not installed, so every schema is looked up first and a missing one is
reported as `SchemaError`.
"""

import logging
import pathlib
from typing import Callable, Optional, Union

from .config import Subscription
from .exceptions import DependencyError, SchemaError

log = logging.getLogger(__name__)


def _gio():
    try:
        import gi

        gi.require_version("Gio", "2.0")
        from gi.repository import Gio
    except (ImportError, ValueError) as e:
        raise DependencyError(
            "PyGObject (python3-gi) is required to access GSettings. "
            "On Debian/Ubuntu, try: sudo apt install python3-gi"
        ) from e
    return Gio


def lookup_schema(
    schema_id: str, directory: Optional[Union[str, pathlib.Path]] = None
):
    """
    Looks up a GSettings schema.

    Args:
        schema_id: The schema to find (e.g., 'org.gnome.desktop.interface').
        directory: Optional directory holding a compiled `gschemas.compiled`
                   to search before the system sources.

    Returns:
        The `Gio.SettingsSchema`, or None if it isn't installed.
    """
    Gio = _gio()
    default_source = Gio.SettingsSchemaSource.get_default()
    source = default_source
    if directory is not None:
        directory = pathlib.Path(directory)
        if directory.is_dir():
            try:
                source = Gio.SettingsSchemaSource.new_from_directory(
                    str(directory),
                    default_source,
                    False,  # non-trusted, "gschemas.compiled" might be corrupted
                )
            except Exception as e:  # GLib.Error
                log.warning(f"Could not load schemas from {directory}: {e}")
                source = default_source
    if source is None:
        log.debug("No GSettings schema source available.")
        return None
    return source.lookup(schema_id, True)  # recursive lookup


class GioSettingsStore:
    """
    Wraps a `Gio.Settings` object behind the SettingsStore interface
    (typed getters/setters plus `connect_changed` returning a Subscription).
    """

    def __init__(self, settings):
        self._settings = settings

    @classmethod
    def open(
        cls, schema_id: str, directory: Optional[Union[str, pathlib.Path]] = None
    ) -> "GioSettingsStore":
        """
        Raises:
            SchemaError: If the schema is not installed.
        """
        schema = lookup_schema(schema_id, directory)
        if schema is None:
            raise SchemaError(f"GSettings schema '{schema_id}' is not installed.")
        Gio = _gio()
        log.debug(f"Opened GSettings schema '{schema_id}'")
        return cls(Gio.Settings.new_full(schema, None, None))

    def get_string(self, key: str) -> str:
        return self._settings.get_string(key)

    def get_boolean(self, key: str) -> bool:
        return self._settings.get_boolean(key)

    def get_uint(self, key: str) -> int:
        return self._settings.get_uint(key)

    def get_double(self, key: str) -> float:
        return self._settings.get_double(key)

    def get_default(self, key: str) -> Optional[str]:
        value = self._settings.get_default_value(key)
        return None if value is None else str(value.unpack())

    def set_string(self, key: str, value: str) -> bool:
        return self._write(key, self._settings.set_string, value)

    def set_boolean(self, key: str, value: bool) -> bool:
        return self._write(key, self._settings.set_boolean, value)

    def set_uint(self, key: str, value: int) -> bool:
        return self._write(key, self._settings.set_uint, value)

    def set_double(self, key: str, value: float) -> bool:
        return self._write(key, self._settings.set_double, value)

    def _write(self, key, setter, value) -> bool:
        if not setter(key, value):
            log.warning(f"GSettings key '{key}' is not writable.")
            return False
        return True

    def connect_changed(self, key: str, callback: Callable[[str], None]) -> Subscription:
        handler_id = self._settings.connect(
            f"changed::{key}", lambda _settings, changed_key: callback(changed_key)
        )
        return Subscription(lambda: self._settings.disconnect(handler_id))

# nightswitch_core/desktop.py
"""
Access to the GNOME desktop settings nightswitch drives.

`GnomeDesktop` hands out settings stores for the GTK interface, the
Night Light schedule and the optional User Themes extension, and tracks
when GNOME Shell is up on the session bus so the companion extension's
settings can be used.
"""

import logging
import pathlib
from typing import Callable, Optional

from .config import Subscription
from .exceptions import SchemaError
from .gsettings import GioSettingsStore

log = logging.getLogger(__name__)

# --- gsettings Constants ---
SCHEMA_INTERFACE = "org.gnome.desktop.interface"
KEY_GTK_THEME = "gtk-theme"

SCHEMA_NIGHT_LIGHT = "org.gnome.settings-daemon.plugins.color"
KEY_SCHEDULE_FROM = "night-light-schedule-from"
KEY_SCHEDULE_TO = "night-light-schedule-to"

SCHEMA_USER_THEMES = "org.gnome.shell.extensions.user-theme"
KEY_SHELL_THEME = "name"
USER_THEMES_UUID = "user-theme@gnome-shell-extensions.gcampax.github.com"

SHELL_BUS_NAME = "org.gnome.Shell"

# Where an installed User Themes extension keeps its own compiled schemas
EXTENSION_DIRS = [
    pathlib.Path.home() / ".local" / "share" / "gnome-shell" / "extensions",
    pathlib.Path("/usr/local/share/gnome-shell/extensions"),
    pathlib.Path("/usr/share/gnome-shell/extensions"),
]


class Readiness:
    """
    One-shot readiness signal.

    Callbacks registered with `when_ready` run once `set_ready` is called,
    or immediately if it already was. `reset` makes later waiters wait for
    the next `set_ready`.
    """

    def __init__(self, ready: bool = False):
        self._ready = ready
        self._waiters: list[Callable[[], None]] = []

    @property
    def ready(self) -> bool:
        return self._ready

    def when_ready(self, callback: Callable[[], None]) -> Subscription:
        """
        Runs `callback` once ready. Releasing the returned subscription
        before then cancels the call.
        """
        if self._ready:
            callback()
            return Subscription()

        self._waiters.append(callback)

        def _cancel():
            if callback in self._waiters:
                self._waiters.remove(callback)

        return Subscription(_cancel)

    def set_ready(self):
        if self._ready:
            return
        self._ready = True
        waiters, self._waiters = self._waiters, []
        for callback in waiters:
            callback()

    def reset(self):
        self._ready = False


class GnomeDesktop:
    """Settings factory and shell readiness tracking for a GNOME session."""

    def __init__(self, extension_dirs: Optional[list[pathlib.Path]] = None):
        self.extension_dirs = EXTENSION_DIRS if extension_dirs is None else extension_dirs
        self.shell_ready = Readiness()
        self._watch_id = None

    def interface_settings(self) -> GioSettingsStore:
        """
        Raises:
            SchemaError: If the GNOME interface schema is missing.
        """
        return GioSettingsStore.open(SCHEMA_INTERFACE)

    def night_light_settings(self) -> GioSettingsStore:
        """
        Raises:
            SchemaError: If gnome-settings-daemon's color schema is missing.
        """
        return GioSettingsStore.open(SCHEMA_NIGHT_LIGHT)

    def user_themes_settings(self) -> Optional[GioSettingsStore]:
        """
        Returns the User Themes extension's settings, or None when the
        extension (or its schema) isn't installed.
        """
        for base in self.extension_dirs:
            schema_dir = base / USER_THEMES_UUID / "schemas"
            if schema_dir.is_dir():
                try:
                    return GioSettingsStore.open(SCHEMA_USER_THEMES, schema_dir)
                except SchemaError:
                    log.debug(f"No User Themes schema in {schema_dir}")
        # Distribution packages install the schema system-wide
        try:
            return GioSettingsStore.open(SCHEMA_USER_THEMES)
        except SchemaError:
            log.debug("User Themes schema not found.")
            return None

    # --- GNOME Shell presence ---

    def watch_shell(self):
        """Drives `shell_ready` from GNOME Shell owning its session bus name."""
        if self._watch_id is not None:
            return
        from gi.repository import Gio

        self._watch_id = Gio.bus_watch_name(
            Gio.BusType.SESSION,
            SHELL_BUS_NAME,
            Gio.BusNameWatcherFlags.NONE,
            self._on_shell_appeared,
            self._on_shell_vanished,
        )
        log.debug(f"Watching session bus for {SHELL_BUS_NAME}")

    def unwatch_shell(self):
        if self._watch_id is None:
            return
        from gi.repository import Gio

        Gio.bus_unwatch_name(self._watch_id)
        self._watch_id = None

    def _on_shell_appeared(self, _connection, name, owner):
        log.info(f"{name} appeared on the session bus ({owner})")
        self.shell_ready.set_ready()

    def _on_shell_vanished(self, _connection, name):
        if self.shell_ready.ready:
            log.info(f"{name} left the session bus")
        self.shell_ready.reset()

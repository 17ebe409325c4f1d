# nightswitch_core/reactors.py
"""
The reactors nightswitch drives: GTK theme, Shell theme and user commands.
"""

import logging
from typing import Callable, Optional

from . import helpers
from .desktop import KEY_GTK_THEME, KEY_SHELL_THEME
from .exceptions import ConfigError
from .reactor import Reactor, State

log = logging.getLogger(__name__)


def _reflect_external_theme(reactor, new_theme: str, day_key: str, night_key: str):
    """
    Saves a theme picked outside nightswitch into the slot of the reactor's
    current state, so the user's choice sticks for that time of day. The
    other slot is never touched; with no known state nothing is saved.

    A theme equal to the other slot's theme is a manual switch to the other
    mode (`nightswitch day`/`night`) and is not saved either; it lasts until
    the next transition.
    """
    if reactor.state is State.DAY:
        key, current, other = day_key, reactor.day, reactor.night
    elif reactor.state is State.NIGHT:
        key, current, other = night_key, reactor.night, reactor.day
    else:
        return
    # Equal values come from our own writes
    if new_theme == current:
        return
    if new_theme == other:
        log.info(f"Theme switched to the other mode's '{new_theme}', keeping '{key}'")
        return
    log.info(f"Theme changed externally to '{new_theme}', saving it as '{key}'")
    try:
        reactor.settings.set_string(key, new_theme)
    except ConfigError as e:
        log.warning(f"Could not save '{key}': {e}")


class GtkThemeReactor(Reactor):
    """
    Day/Night GTK themes.

    Editing a slot's theme while in that slot's state re-applies it on the
    next tick; changing the GTK theme from elsewhere updates the slot.
    """

    name = "gtk"

    def __init__(self, settings, desktop):
        super().__init__()
        self.settings = settings
        self.desktop = desktop
        self.day: Optional[str] = None
        self.night: Optional[str] = None
        self.interface = None

    def on_enabled(self):
        self.day = self.settings.get_string("day-theme")
        self.night = self.settings.get_string("night-theme")
        self.subscribe(self.settings, "day-theme", self._on_day_theme_changed)
        self.subscribe(self.settings, "night-theme", self._on_night_theme_changed)

        self.interface = self.desktop.interface_settings()
        self.subscribe(self.interface, KEY_GTK_THEME, self._on_system_theme_changed)

    def on_disabled(self):
        self.interface = None
        self.day = None
        self.night = None

    def on_day_state_set(self):
        self.set_theme(self.day)

    def on_night_state_set(self):
        self.set_theme(self.night)

    def set_theme(self, theme: Optional[str]):
        if not theme:
            log.warning(f"No GTK theme configured for {self.state.name.lower()}, skipping.")
            return
        if self.interface.get_string(KEY_GTK_THEME) == theme:
            log.debug(f"GTK theme already '{theme}'")
            return
        log.info(f"Setting GTK theme to: {theme}")
        if not self.interface.set_string(KEY_GTK_THEME, theme):
            # Try again on the next tick
            self.state = State.UNKNOWN

    def _on_day_theme_changed(self, key):
        self.day = self.settings.get_string(key)
        if self.state is State.DAY:
            self.state = State.UNKNOWN

    def _on_night_theme_changed(self, key):
        self.night = self.settings.get_string(key)
        if self.state is State.NIGHT:
            self.state = State.UNKNOWN

    def _on_system_theme_changed(self, _key):
        _reflect_external_theme(
            self, self.interface.get_string(KEY_GTK_THEME), "day-theme", "night-theme"
        )


class ShellThemeReactor(Reactor):
    """
    Day/Night GNOME Shell themes, set through the User Themes extension.

    Without User Themes this reactor does nothing. The lookup is retried
    every time a theme has to be set, so installing the extension later
    is picked up without restarting.
    """

    name = "shell"

    def __init__(self, settings, desktop):
        super().__init__()
        self.settings = settings
        self.desktop = desktop
        self.day: Optional[str] = None
        self.night: Optional[str] = None
        self.user_themes = None
        self._reported_missing = False

    @property
    def available(self) -> bool:
        return self.user_themes is not None

    def on_enabled(self):
        self.day = self.settings.get_string("day-shell")
        self.night = self.settings.get_string("night-shell")
        self.subscribe(self.settings, "day-shell", self._on_day_shell_changed)
        self.subscribe(self.settings, "night-shell", self._on_night_shell_changed)
        self._attach_user_themes()

    def on_disabled(self):
        self.user_themes = None
        self.day = None
        self.night = None

    def _attach_user_themes(self) -> bool:
        self.user_themes = self.desktop.user_themes_settings()
        if self.user_themes is None:
            # INFO on the first miss only, the lookup repeats every tick
            if self._reported_missing:
                log.debug("User Themes still unavailable.")
            else:
                log.info("User Themes extension not installed; shell theming unavailable.")
                self._reported_missing = True
            return False
        if self._reported_missing:
            log.info("User Themes extension found; shell theming available.")
            self._reported_missing = False
        self.subscribe(self.user_themes, KEY_SHELL_THEME, self._on_shell_theme_changed)
        return True

    def on_day_state_set(self):
        self.set_theme(self.day)

    def on_night_state_set(self):
        self.set_theme(self.night)

    def set_theme(self, name: str):
        # An empty name is GNOME Shell's default theme
        if self.user_themes is None and not self._attach_user_themes():
            self.state = State.UNKNOWN
            return
        if self.user_themes.get_string(KEY_SHELL_THEME) == name:
            log.debug(f"Shell theme already '{name}'")
            return
        log.info(f"Setting Shell theme to: {name or '(default)'}")
        if not self.user_themes.set_string(KEY_SHELL_THEME, name):
            self.state = State.UNKNOWN

    def first_time_setup(self):
        """
        Uses the current Shell theme for both slots, unless either slot has
        already been configured.
        """
        if self.user_themes is None:
            return
        if (
            self.day != self.settings.get_default("day-shell")
            or self.night != self.settings.get_default("night-shell")
        ):
            log.debug("Shell themes already configured, skipping first-time setup.")
            return
        current = self.user_themes.get_string(KEY_SHELL_THEME)
        log.info(f"First run: using current Shell theme '{current}' for day and night")
        self.day = self.night = current
        self.settings.set_string("day-shell", current)
        self.settings.set_string("night-shell", current)

    def _on_day_shell_changed(self, key):
        self.day = self.settings.get_string(key)
        if self.state is State.DAY:
            self.state = State.UNKNOWN

    def _on_night_shell_changed(self, key):
        self.night = self.settings.get_string(key)
        if self.state is State.NIGHT:
            self.state = State.UNKNOWN

    def _on_shell_theme_changed(self, _key):
        _reflect_external_theme(
            self, self.user_themes.get_string(KEY_SHELL_THEME), "day-shell", "night-shell"
        )


class CommandReactor(Reactor):
    """
    Runs the user's day/night command when the time of day switches.

    Editing a command only stores the new text: a half-typed command
    must not run.
    """

    name = "commands"

    def __init__(self, settings, runner: Optional[Callable[[str], bool]] = None):
        super().__init__()
        self.settings = settings
        self.runner = runner or helpers.run_in_background
        self.day: Optional[str] = None
        self.night: Optional[str] = None

    def on_enabled(self):
        self.day = self.settings.get_string("day-command")
        self.night = self.settings.get_string("night-command")
        self.subscribe(self.settings, "day-command", self._on_command_changed)
        self.subscribe(self.settings, "night-command", self._on_command_changed)

    def on_disabled(self):
        self.day = None
        self.night = None

    def on_day_state_set(self):
        self.run(self.day)

    def on_night_state_set(self):
        self.run(self.night)

    def run(self, command: Optional[str]) -> bool:
        if not self.settings.get_boolean("commands-enabled"):
            log.debug("Commands are disabled, not running.")
            return False
        command = (command or "").strip()
        if not command:
            return False
        if not self.runner(command):
            log.warning(f"Could not run {self.state.name.lower()} command: {command}")
            self.state = State.UNKNOWN
            return False
        return True

    def _on_command_changed(self, key):
        if key == "day-command":
            self.day = self.settings.get_string(key)
        else:
            self.night = self.settings.get_string(key)

# nightswitch_core/api.py
"""
Public entry points used by the command-line front end.
"""

import logging
import pathlib
import signal
from datetime import datetime, timedelta
from typing import Any, Literal, Optional

from . import config as cfg
from . import exceptions as exc
from . import helpers
from .assembly import NightSwitch
from .desktop import KEY_GTK_THEME, KEY_SHELL_THEME, GnomeDesktop
from .reactor import State
from .reactors import CommandReactor, GtkThemeReactor, ShellThemeReactor
from .window import create_provider

log = logging.getLogger(__name__)

Mode = Literal["day", "night"]

# Settings that can also be given as 'HH:MM'
TIME_OF_DAY_KEYS = ("nighttime-begin", "nighttime-end")


# --- Internal Helpers ---


def _state_for_mode(mode: str) -> State:
    if mode == "day":
        return State.DAY
    if mode == "night":
        return State.NIGHT
    raise exc.ValidationError(f"Invalid mode '{mode}'. Use 'day' or 'night'.")


def load_settings(file_path: Optional[pathlib.Path] = None) -> cfg.IniSettingsStore:
    """Loads the configuration file, applying defaults in memory."""
    try:
        return cfg.IniSettingsStore(cfg.CONFIG_FILE if file_path is None else file_path)
    except exc.ConfigError as e:
        log.error(f"API: Failed to load configuration: {e}")
        raise


# --- Configuration ---


def list_settings(settings=None) -> dict[str, str]:
    """Every known setting with its current text value."""
    if settings is None:
        settings = load_settings()
    return {key: settings.get_string(key) for key in cfg.KEY_TYPES}


def get_setting(key: str, settings=None) -> str:
    if key not in cfg.KEY_TYPES:
        raise exc.ValidationError(f"Unknown setting '{key}'.")
    if settings is None:
        settings = load_settings()
    return settings.get_string(key)


def set_setting(key: str, value: str, settings=None) -> str:
    """
    Validates and stores one setting given as text.

    Returns:
        The stored text value.

    Raises:
        ValidationError: For unknown keys or values that don't fit the key.
        ConfigError: If the configuration can't be written.
    """
    kind = cfg.KEY_TYPES.get(key)
    if kind is None:
        raise exc.ValidationError(f"Unknown setting '{key}'.")
    if key in TIME_OF_DAY_KEYS:
        value = str(helpers.clock_time_to_minutes(value))
    text = cfg.format_value(key, value)

    if settings is None:
        settings = load_settings()
    if kind == "b":
        settings.set_boolean(key, text == "true")
    elif kind == "u":
        settings.set_uint(key, int(text))
    elif kind == "d":
        settings.set_double(key, float(text))
    else:
        settings.set_string(key, text)
    log.info(f"API: Setting '{key}' set to '{text}'")
    return text


# --- One-shot actions ---


def apply_mode(mode: Mode, settings=None, desktop=None, runner=None) -> bool:
    """
    Applies the Day or Night look once, without the daemon: the GTK theme,
    plus the Shell theme and the user command when those are enabled.

    A running daemon keeps the applied look until the next transition and
    leaves its own day/night settings unchanged.
    """
    state = _state_for_mode(mode)
    if settings is None:
        settings = load_settings()
    if desktop is None:
        desktop = GnomeDesktop()

    reactors = [GtkThemeReactor(settings, desktop)]
    if settings.get_boolean("shell-enabled"):
        reactors.append(ShellThemeReactor(settings, desktop))
    if settings.get_boolean("commands-enabled"):
        reactors.append(CommandReactor(settings, runner))

    log.info(f"API: Applying {mode} mode...")
    ok = True
    for reactor in reactors:
        reactor.enable()
        try:
            reactor.state = state
            # Reactors fall back to UNKNOWN when their effect failed
            if reactor.state is not state:
                log.warning(f"API: '{reactor.name}' could not apply {mode} mode.")
                ok = False
        finally:
            reactor.disable()
    return ok


def set_default_from_current(mode: Mode, settings=None, desktop=None) -> dict[str, str]:
    """
    Saves the current GTK theme (and Shell theme, when User Themes is
    available) as the given mode's theme.

    Returns:
        The settings that were written.
    """
    _state_for_mode(mode)
    if settings is None:
        settings = load_settings()
    if desktop is None:
        desktop = GnomeDesktop()
    saved: dict[str, str] = {}

    current_theme = desktop.interface_settings().get_string(KEY_GTK_THEME)
    key = f"{mode}-theme"
    if settings.get_string(key) != current_theme:
        settings.set_string(key, current_theme)
        saved[key] = current_theme

    user_themes = desktop.user_themes_settings()
    if user_themes is not None:
        current_shell = user_themes.get_string(KEY_SHELL_THEME)
        key = f"{mode}-shell"
        if settings.get_string(key) != current_shell:
            settings.set_string(key, current_shell)
            saved[key] = current_shell

    if saved:
        log.info(f"API: {mode.capitalize()} defaults updated: {saved}")
    else:
        log.info("API: Configuration already matches the current desktop; nothing to save.")
    return saved


# --- Status ---


def get_status(now: Optional[datetime] = None, settings=None, desktop=None) -> dict[str, Any]:
    """
    Gathers configuration, the active nighttime window and the current
    period. Errors within a component are reported in the dict instead of
    raised.
    """
    if now is None:
        now = datetime.now()
    if settings is None:
        settings = load_settings()
    if desktop is None:
        desktop = GnomeDesktop()
    status: dict[str, Any] = {
        "config": list_settings(settings),
        "window": {"source": None, "begin": None, "end": None, "error": None},
        "current_period": "unknown",
        "next_transition": None,
        "next_transition_mode": None,
        "shell_available": None,
    }

    provider = None
    try:
        provider = create_provider(settings, desktop)
        provider.enable()
        window = provider.current_window()
        status["window"].update(
            source=provider.name,
            begin=helpers.minutes_to_clock_time(window.begin),
            end=helpers.minutes_to_clock_time(window.end),
        )
        minutes = helpers.minutes_since_midnight(now)
        is_night = window.contains(minutes)
        status["current_period"] = "night" if is_night else "day"
        until = window.minutes_until_change(minutes)
        if until is not None:
            status["next_transition"] = (now + timedelta(minutes=until)).replace(
                second=0, microsecond=0
            )
            status["next_transition_mode"] = "day" if is_night else "night"
    except exc.NightSwitchError as e:
        status["window"]["error"] = str(e)
    finally:
        if provider is not None:
            provider.disable()

    if settings.get_boolean("shell-enabled"):
        try:
            status["shell_available"] = desktop.user_themes_settings() is not None
        except exc.NightSwitchError as e:
            log.debug(f"API: Could not check for User Themes: {e}")
            status["shell_available"] = False
    return status


# --- Daemon ---


def run_daemon(settings=None, desktop=None) -> int:
    """
    Runs nightswitch until SIGINT/SIGTERM.

    Returns:
        The process exit code.
    """
    try:
        import gi

        gi.require_version("GLib", "2.0")
        from gi.repository import GLib
    except (ImportError, ValueError) as e:
        raise exc.DependencyError(f"PyGObject is required to run the daemon: {e}") from e

    if settings is None:
        settings = load_settings()
    if desktop is None:
        desktop = GnomeDesktop()
    loop = GLib.MainLoop()

    def _quit(signame):
        log.info(f"Received {signame}, shutting down.")
        loop.quit()
        return GLib.SOURCE_REMOVE

    for signum in (signal.SIGINT, signal.SIGTERM):
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signum, _quit, signal.Signals(signum).name)

    nightswitch = NightSwitch(settings, desktop)
    if isinstance(settings, cfg.IniSettingsStore):
        settings.watch()
    desktop.watch_shell()
    try:
        nightswitch.enable()
        log.info("Daemon running.")
        loop.run()
    finally:
        nightswitch.disable()
        desktop.unwatch_shell()
        if isinstance(settings, cfg.IniSettingsStore):
            settings.unwatch()
    return 0

import logging
from datetime import datetime

import pytest

from nightswitch_core.config import SettingsStore
from nightswitch_core.desktop import (
    KEY_GTK_THEME,
    KEY_SCHEDULE_FROM,
    KEY_SCHEDULE_TO,
    KEY_SHELL_THEME,
    Readiness,
)
from nightswitch_core.exceptions import SchemaError


class FakeMainLoop:
    """Stands in for GLib's timeout API; timers only fire through `fire()`."""

    SOURCE_CONTINUE = True

    def __init__(self):
        self.sources = {}
        self.next_id = 1
        self.removed = []

    def timeout_add(self, interval, callback):
        source_id = self.next_id
        self.next_id += 1
        self.sources[source_id] = (interval, callback)
        return source_id

    def source_remove(self, source_id):
        del self.sources[source_id]
        self.removed.append(source_id)

    def fire(self):
        for source_id, (_interval, callback) in list(self.sources.items()):
            if source_id in self.sources and not callback():
                del self.sources[source_id]

    @property
    def intervals(self):
        return [interval for interval, _callback in self.sources.values()]


class FakeDesktop:
    """In-memory desktop settings, with User Themes optionally missing."""

    def __init__(self, user_themes=True, night_light=True, shell_ready=True):
        self.interface = SettingsStore({KEY_GTK_THEME: "Adwaita"})
        self.night_light = SettingsStore(
            {KEY_SCHEDULE_FROM: "20.0", KEY_SCHEDULE_TO: "6.0"}
        ) if night_light else None
        self.user_themes = SettingsStore({KEY_SHELL_THEME: ""}) if user_themes else None
        self.shell_ready = Readiness(ready=shell_ready)
        self.user_themes_lookups = 0

    def interface_settings(self):
        return self.interface

    def night_light_settings(self):
        if self.night_light is None:
            raise SchemaError("night light schema missing")
        return self.night_light

    def user_themes_settings(self):
        self.user_themes_lookups += 1
        return self.user_themes


class FakeClock:
    """Callable returning a settable datetime."""

    def __init__(self, hour=12, minute=0):
        self.current = datetime(2024, 1, 1, hour, minute)

    def set(self, hour, minute=0):
        self.current = datetime(2024, 1, 1, hour, minute)

    def __call__(self):
        return self.current


class Runner:
    """Records commands instead of spawning them."""

    def __init__(self, result=True):
        self.commands = []
        self.result = result

    def __call__(self, command):
        self.commands.append(command)
        return self.result


@pytest.fixture
def settings():
    return SettingsStore()


@pytest.fixture
def desktop():
    return FakeDesktop()


@pytest.fixture
def main_loop():
    return FakeMainLoop()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runner():
    return Runner()


def at(hour, minute=0):
    return datetime(2024, 1, 1, hour, minute)


@pytest.fixture
def restore_logging():
    """Puts the nightswitch loggers back the way a test found them."""
    loggers = [logging.getLogger(name) for name in ("nightswitch_core", "nightswitch_cli")]
    saved = [(lg, list(lg.handlers), lg.level, lg.propagate) for lg in loggers]
    yield
    for lg, handlers, level, propagate in saved:
        lg.handlers[:] = handlers
        lg.setLevel(level)
        lg.propagate = propagate

# nightswitch_core/window.py
"""
Nighttime windows and the providers that supply them.

A window is a begin/end pair in minutes since midnight. It may wrap past
midnight: with begin >= end, night runs from begin to the end of the
day and from midnight to end. begin == end therefore covers the whole
day.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from . import helpers
from .config import SubscriptionGroup
from .desktop import KEY_SCHEDULE_FROM, KEY_SCHEDULE_TO
from .exceptions import NightSwitchError, SchemaError

log = logging.getLogger(__name__)

MINUTES_PER_DAY = helpers.MINUTES_PER_DAY


@dataclass(frozen=True)
class TimeWindow:
    """Nighttime from `begin` (inclusive) to `end` (exclusive), in minutes since midnight."""

    begin: int
    end: int

    @property
    def crosses_midnight(self) -> bool:
        return self.begin >= self.end

    def contains(self, minutes: int) -> bool:
        """Is `minutes` (since midnight) inside the night?"""
        if self.begin < self.end:
            #   day (end)    night    day (begin)
            # +++++++++++++---------+++++++++++++++
            return self.begin <= minutes < self.end
        #  night (end)   day   night (begin)
        # -------------+++++++---------------
        return minutes < self.end or self.begin <= minutes

    def minutes_until_change(self, minutes: int) -> Optional[int]:
        """
        Minutes from `minutes` until the next day/night switch, or None if
        the window never switches (begin == end).
        """
        if self.begin == self.end:
            return None
        boundary = self.end if self.contains(minutes) else self.begin
        return (boundary - minutes) % MINUTES_PER_DAY or MINUTES_PER_DAY


class TimeWindowProvider:
    """
    Source of the current nighttime window.

    Subclasses fill `self._window` in `on_enabled` and keep it current from
    change notifications registered through `self.subscriptions`, which
    are released when the provider is disabled.
    """

    name = "provider"

    def __init__(self):
        self._enabled = False
        self._window: Optional[TimeWindow] = None
        self.subscriptions = SubscriptionGroup()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self):
        if self._enabled:
            return
        try:
            self.on_enabled()
        except Exception:
            self.subscriptions.release_all()
            raise
        self._enabled = True
        log.info(f"Nighttime provider '{self.name}' enabled: {self._window}")

    def disable(self):
        if not self._enabled:
            return
        self._enabled = False
        self.subscriptions.release_all()
        self._window = None
        log.info(f"Nighttime provider '{self.name}' disabled")

    def on_enabled(self):
        raise NotImplementedError

    def current_window(self) -> TimeWindow:
        if self._window is None:
            raise NightSwitchError(f"Nighttime provider '{self.name}' is not enabled.")
        return self._window

    def is_nighttime(self, now: Optional[datetime] = None) -> bool:
        return self.current_window().contains(helpers.minutes_since_midnight(now))


class ManualWindowProvider(TimeWindowProvider):
    """Window read from the `nighttime-begin`/`nighttime-end` settings."""

    name = "manual"

    def __init__(self, settings):
        super().__init__()
        self.settings = settings

    def on_enabled(self):
        self._refresh()
        for key in ("nighttime-begin", "nighttime-end"):
            self.subscriptions.add(self.settings.connect_changed(key, self._refresh))

    def _refresh(self, _key=None):
        self._window = TimeWindow(
            self.settings.get_uint("nighttime-begin"),
            self.settings.get_uint("nighttime-end"),
        )
        log.debug(f"Manual nighttime window: {self._window}")


def hours_to_minutes(hours: float) -> int:
    """Night Light stores fractional hours; converts them to whole minutes since midnight."""
    return int(round(hours * 60)) % MINUTES_PER_DAY


class NightLightWindowProvider(TimeWindowProvider):
    """Window following the GNOME Night Light schedule."""

    name = "night-light"

    def __init__(self, night_light_settings):
        super().__init__()
        self.night_light = night_light_settings

    def on_enabled(self):
        self._refresh()
        for key in (KEY_SCHEDULE_FROM, KEY_SCHEDULE_TO):
            self.subscriptions.add(self.night_light.connect_changed(key, self._refresh))

    def _refresh(self, _key=None):
        self._window = TimeWindow(
            hours_to_minutes(self.night_light.get_double(KEY_SCHEDULE_FROM)),
            hours_to_minutes(self.night_light.get_double(KEY_SCHEDULE_TO)),
        )
        log.debug(f"Night Light nighttime window: {self._window}")


def create_provider(settings, desktop) -> TimeWindowProvider:
    """Builds the provider selected by the `nighttime-from-night-light` setting."""
    if settings.get_boolean("nighttime-from-night-light"):
        try:
            return NightLightWindowProvider(desktop.night_light_settings())
        except SchemaError as e:
            log.warning(f"Night Light unavailable ({e}), using the manual nighttime window.")
    return ManualWindowProvider(settings)

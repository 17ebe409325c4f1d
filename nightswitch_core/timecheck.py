# nightswitch_core/timecheck.py
"""
The coordinator that periodically sets the reactors' state according to
the time of day.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from .clock import Clock
from .config import SubscriptionGroup
from .reactor import Reactor, State
from .window import TimeWindowProvider

log = logging.getLogger(__name__)


class TimeCheck:
    """
    Every `time-check-period` milliseconds, asks the active nighttime
    provider whether it is night and hands the resulting state to each
    reactor. Disabled reactors ignore it; reactors already in that state
    do nothing.

    `provider` is swapped by the owner; the reactors are owned by the
    owner too.
    """

    def __init__(
        self,
        settings,
        reactors: Sequence[Reactor],
        provider: Optional[TimeWindowProvider] = None,
        main_loop=None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.reactors = reactors
        self.provider = provider
        self.period: Optional[int] = None
        self.clock = Clock(self.apply_current_state, main_loop)
        self._now = now
        self._enabled = False
        self._subscriptions = SubscriptionGroup()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self):
        if self._enabled:
            return
        self.period = self.settings.get_uint("time-check-period")
        self._enabled = True
        self.apply_current_state()
        self.clock.start(self.period)
        self._subscriptions.add(
            self.settings.connect_changed("time-check-period", self._on_period_changed)
        )
        log.info(f"Time check enabled, checking every {self.period} ms")

    def disable(self):
        if not self._enabled:
            return
        self._enabled = False
        self.clock.stop()
        self._subscriptions.release_all()
        self.period = None
        log.info("Time check disabled")

    def _on_period_changed(self, key):
        self.period = self.settings.get_uint(key)
        log.info(f"Time check period changed to {self.period} ms")
        self.clock.restart(self.period)

    def is_nighttime(self, now: Optional[datetime] = None) -> bool:
        return self.provider.is_nighttime(self._now() if now is None else now)

    def current_state(self, now: Optional[datetime] = None) -> State:
        return State.from_nighttime(self.is_nighttime(now))

    def apply_current_state(self, now: Optional[datetime] = None) -> State:
        """Computes the state for `now` and assigns it to every reactor."""
        state = self.current_state(now)
        log.debug(f"Current state: {state.name}")
        for reactor in self.reactors:
            try:
                reactor.state = state
            except Exception as e:
                # One failing side effect must not starve the others
                log.warning(f"Reactor '{reactor.name}' failed to apply {state.name}: {e}")
                reactor.state = State.UNKNOWN
        return state

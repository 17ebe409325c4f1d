# nightswitch_core/reactor.py
"""
Day/night state and the base class for everything that reacts to it.
"""

import enum
import logging

from .config import Subscription, SubscriptionGroup

log = logging.getLogger(__name__)


class State(enum.Enum):
    """Logical time of day as seen by a reactor."""

    UNKNOWN = 0
    DAY = 1
    NIGHT = 2

    @classmethod
    def from_nighttime(cls, is_night: bool) -> "State":
        return cls.NIGHT if is_night else cls.DAY


class Reactor:
    """
    Produces a side effect when the time of day switches.

    Subclasses override the hooks:

    - `on_enabled`: read configuration and subscribe to its changes
      (subscriptions go through `subscribe` so they are released on
      disable, including when `on_enabled` itself fails).
    - `on_disabled`: drop anything else acquired in `on_enabled`.
    - `on_day_state_set` / `on_night_state_set`: apply the effect.

    Assigning `state` only does something while enabled and when the new
    value differs from the stored one. The stored value is updated first,
    then the matching hook runs; nothing runs for `State.UNKNOWN`. A
    disabled reactor is always in `State.UNKNOWN`.
    """

    name = "reactor"

    def __init__(self):
        self._enabled = False
        self._state = State.UNKNOWN
        self._subscriptions = SubscriptionGroup()

    # --- Hooks ---

    def on_enabled(self):
        pass

    def on_disabled(self):
        pass

    def on_day_state_set(self):
        pass

    def on_night_state_set(self):
        pass

    # --- Lifecycle ---

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self):
        if self._enabled:
            return
        try:
            self.on_enabled()
        except Exception:
            self._subscriptions.release_all()
            raise
        self._enabled = True
        log.info(f"Reactor '{self.name}' enabled")

    def disable(self):
        if not self._enabled:
            return
        self._enabled = False
        try:
            self.on_disabled()
        finally:
            self._subscriptions.release_all()
            # The state can't be known once disabled
            self._state = State.UNKNOWN
        log.info(f"Reactor '{self.name}' disabled")

    def set_enabled(self, enabled: bool):
        if enabled:
            self.enable()
        else:
            self.disable()

    def subscribe(self, store, key: str, callback) -> Subscription:
        """Connects `callback` to changes of `key` in `store` until disabled."""
        return self._subscriptions.add(store.connect_changed(key, callback))

    # --- State ---

    @property
    def state(self) -> State:
        return self._state

    @state.setter
    def state(self, state: State):
        if not self._enabled or self._state == state:
            return
        self._state = state
        log.debug(f"Reactor '{self.name}' state set to {state.name}")
        if state is State.DAY:
            self.on_day_state_set()
        elif state is State.NIGHT:
            self.on_night_state_set()

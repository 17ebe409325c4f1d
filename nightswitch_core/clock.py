# nightswitch_core/clock.py
"""Periodic timer on the GLib main loop."""

import logging
from typing import Callable, Optional

log = logging.getLogger(__name__)


class Clock:
    """
    Calls `callback` every `period` milliseconds once started.

    At most one timeout source is ever registered: starting a running
    clock restarts it, counting the new period from now.

    Args:
        callback: Called on each tick, with no arguments.
        main_loop: Provides `timeout_add`, `source_remove` and
                   `SOURCE_CONTINUE`; defaults to `GLib`.
    """

    def __init__(self, callback: Callable[[], None], main_loop=None):
        if main_loop is None:
            from gi.repository import GLib

            main_loop = GLib
        self._callback = callback
        self._main_loop = main_loop
        self._source_id: Optional[int] = None
        self.period: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._source_id is not None

    def start(self, period: int):
        self.stop()
        self.period = int(period)
        self._source_id = self._main_loop.timeout_add(self.period, self._on_timeout)
        log.debug(f"Clock started with a period of {self.period} ms")

    def stop(self):
        if self._source_id is None:
            return
        self._main_loop.source_remove(self._source_id)
        self._source_id = None
        log.debug("Clock stopped")

    def restart(self, period: Optional[int] = None):
        self.start(self.period if period is None else period)

    def _on_timeout(self, *_args):
        try:
            self._callback()
        except Exception as e:
            # Returning anything falsy would remove the source; keep ticking
            log.exception(f"Clock tick failed: {e}")
        return self._main_loop.SOURCE_CONTINUE

# nightswitch_core/assembly.py
"""
The object that owns and wires together every part of the daemon.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from .config import Subscription, SubscriptionGroup
from .reactors import CommandReactor, GtkThemeReactor, ShellThemeReactor
from .timecheck import TimeCheck
from .window import TimeWindowProvider, create_provider

log = logging.getLogger(__name__)


class NightSwitch:
    """
    Creates the reactors and the time check, and manages their activation
    along with the nighttime provider.

    Build one per process and pass it around; `enable()` starts
    everything, `disable()` tears everything down again.

    Args:
        settings: The daemon's SettingsStore.
        desktop: A GnomeDesktop (or anything with the same factories and
                 a `shell_ready` Readiness).
        runner: Spawns user commands; defaults to `helpers.run_in_background`.
        main_loop: Timer source for the clock; defaults to `GLib`.
        now: Clock for the time check; defaults to `datetime.now`.
    """

    def __init__(
        self,
        settings,
        desktop,
        runner: Optional[Callable[[str], bool]] = None,
        main_loop=None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.desktop = desktop
        # Set for the duration of an enablement if it's the user's first run
        self.first_time: Optional[bool] = None

        self.gtk = GtkThemeReactor(settings, desktop)
        self.commands = CommandReactor(settings, runner)
        self.shell = ShellThemeReactor(settings, desktop)
        self.reactors = (self.commands, self.gtk, self.shell)

        self.provider: Optional[TimeWindowProvider] = None
        self.timecheck = TimeCheck(settings, self.reactors, main_loop=main_loop, now=now)

        self._enabled = False
        self._subscriptions = SubscriptionGroup()
        self._shell_wait: Optional[Subscription] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self):
        if self._enabled:
            return
        try:
            self._setup()
        except Exception:
            log.error("Enabling nightswitch failed, rolling back")
            self._enabled = True
            self.disable()
            raise
        log.info("nightswitch enabled")

    def _setup(self):
        settings = self.settings

        self.first_time = settings.get_boolean("first-time-user")

        self.provider = create_provider(settings, self.desktop)
        self.provider.enable()
        self.timecheck.provider = self.provider

        # The GTK reactor is always on while enabled
        self.gtk.enable()
        self.commands.set_enabled(settings.get_boolean("commands-enabled"))

        for key, callback in (
            ("commands-enabled", self._on_commands_enabled_changed),
            ("shell-enabled", self._on_shell_enabled_changed),
            ("nighttime-from-night-light", self._on_provider_setting_changed),
        ):
            self._subscriptions.add(settings.connect_changed(key, callback))

        self._enabled = True
        if settings.get_boolean("shell-enabled"):
            self._wait_for_shell()

        # Finally, check for nighttime
        self.timecheck.enable()

        # Only a complete first enable counts as the first run
        if self.first_time:
            settings.set_boolean("first-time-user", False)

    def disable(self):
        if not self._enabled:
            return
        self._enabled = False
        self._cancel_shell_wait()
        self._subscriptions.release_all()

        self.timecheck.disable()
        if self.provider is not None:
            self.provider.disable()
            self.provider = None
            self.timecheck.provider = None
        for reactor in self.reactors:
            reactor.disable()

        self.first_time = None
        log.info("nightswitch disabled")

    # --- Provider swap ---

    def swap_provider(self):
        """
        Replaces the nighttime provider with the one the settings select.
        The new provider is ready before the time check sees it.
        """
        new_provider = create_provider(self.settings, self.desktop)
        new_provider.enable()

        old_provider = self.provider
        self.provider = new_provider
        self.timecheck.provider = new_provider
        if old_provider is not None:
            old_provider.disable()
        log.info(f"Nighttime provider is now '{new_provider.name}'")

    def _on_provider_setting_changed(self, _key):
        self.swap_provider()

    # --- Optional reactors ---

    def _on_commands_enabled_changed(self, key):
        self.commands.set_enabled(self.settings.get_boolean(key))

    def _on_shell_enabled_changed(self, key):
        if self.settings.get_boolean(key):
            self._wait_for_shell()
        else:
            self._cancel_shell_wait()
            self.shell.disable()

    def _wait_for_shell(self):
        # User Themes is only usable once GNOME Shell is up
        self._cancel_shell_wait()
        if not self.desktop.shell_ready.ready:
            log.info("Waiting for GNOME Shell before enabling shell theming")
        self._shell_wait = self.desktop.shell_ready.when_ready(self._on_shell_ready)

    def _cancel_shell_wait(self):
        if self._shell_wait is not None:
            self._shell_wait.release()
            self._shell_wait = None

    def _on_shell_ready(self):
        self._shell_wait = None
        # Things may have changed while waiting
        if not self._enabled or not self.settings.get_boolean("shell-enabled"):
            return
        if self.shell.enabled:
            return
        self.shell.enable()
        if self.first_time:
            self.shell.first_time_setup()

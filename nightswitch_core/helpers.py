# nightswitch_core/helpers.py

import logging
import re
import subprocess
from datetime import datetime
from typing import Optional

# Import custom exceptions from within the same package
from .exceptions import ValidationError

# Setup a logger specific to this module for internal debugging
log = logging.getLogger(__name__)

SHELL = "/bin/sh"
MINUTES_PER_DAY = 24 * 60

# --- Command Execution ---


def run_in_background(command: Optional[str]) -> bool:
    """
    Runs a user command in the background through `/bin/sh -c`.

    The command is detached from the daemon (own session, no stdio) and
    never waited for. Leading and trailing whitespace is stripped first;
    an empty command is not run.

    Args:
        command: The shell command line to execute.

    Returns:
        True if the command was spawned, False if it was empty or spawning
        failed. This function never raises for spawn failures.
    """
    command = (command or "").strip()
    if not command:
        log.debug("Empty command, nothing to run.")
        return False

    cmd_list = [SHELL, "-c", command]
    log.debug(f"Spawning command: {cmd_list}")
    try:
        subprocess.Popen(
            cmd_list,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,  # Detach from the daemon
        )
    except OSError as e:
        log.warning(f"Failed to spawn command '{command}': {e}")
        return False
    log.info(f"Spawned command: {command}")
    return True


# --- Time of day ---


def minutes_since_midnight(now: Optional[datetime] = None) -> int:
    """Minutes elapsed since local midnight for `now` (defaults to the current time)."""
    if now is None:
        now = datetime.now()
    return now.hour * 60 + now.minute


def clock_time_to_minutes(value: str) -> int:
    """
    Converts a time of day to minutes since midnight.

    Accepts 'HH:MM' (e.g., '22:30') or a plain minute count (e.g., '1350').

    Raises:
        ValidationError: If the format is invalid or the value is out of range.
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"Invalid input type for time of day: expected string, got {type(value)}"
        )

    text = value.strip()
    if text.isdigit():
        minutes = int(text)
    else:
        match = re.match(r"^(\d{1,2}):(\d{2})$", text)
        if not match:
            raise ValidationError(
                f"Invalid time format: '{value}'. Use 'HH:MM' (e.g., '22:30') or minutes since midnight."
            )
        hours, mins = int(match.group(1)), int(match.group(2))
        if hours > 23 or mins > 59:
            raise ValidationError(f"Time out of range (00:00 to 23:59): '{value}'")
        minutes = hours * 60 + mins

    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValidationError(
            f"Minutes since midnight out of range (0 to {MINUTES_PER_DAY - 1}): {minutes}"
        )
    return minutes


def minutes_to_clock_time(minutes: int) -> str:
    """Formats minutes since midnight as 'HH:MM'."""
    hours, mins = divmod(int(minutes) % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{mins:02d}"


# --- Logging Setup ---

LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"
# The daemon runs for the whole session; its records need a time
DAEMON_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_NAME = "nightswitch"


def setup_library_logging(
    level=logging.WARNING, fmt: str = LOG_FORMAT, stream=None
) -> logging.Handler:
    """
    Sends the nightswitch_core records at `level` and above to `stream`
    (stderr by default), formatted with `fmt`.

    Calling it again replaces the handler from the previous call, so a
    front end can switch format or level without stacking handlers.

    Returns:
        The installed handler, for front ends that want their own logger
        to share it.
    """
    package_logger = logging.getLogger("nightswitch_core")
    for old_handler in list(package_logger.handlers):
        if old_handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(old_handler)

    handler = logging.StreamHandler(stream)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False
    log.debug(f"nightswitch_core logging at {logging.getLevelName(level)}")
    return handler

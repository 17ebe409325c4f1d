#!/usr/bin/env python3

"""
nightswitch (CLI) - Day/Night GNOME Theme Switcher

Command-line interface for running the nightswitch daemon and managing
its day/night themes, nighttime window and commands using the
nightswitch_core library.
"""

import argparse
import logging
import sys
from datetime import datetime

# Import the core library API and exceptions
try:
    import nightswitch_core
    from nightswitch_core import exceptions as core_exc
    from nightswitch_core import helpers as core_helpers
except ImportError as e:
    print(f"Error: Failed to import the nightswitch_core library: {e}", file=sys.stderr)
    print("Ensure nightswitch_core is installed or available in your Python path.", file=sys.stderr)
    sys.exit(1)

log = logging.getLogger("nightswitch_cli")


class AnsiColors:
    """Escape codes for status output, left out when stdout isn't a terminal."""

    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    RESET = "\033[0m"
    enabled = sys.stdout.isatty()

    @classmethod
    def paint(cls, text, color: str) -> str:
        return f"{color}{text}{cls.RESET}" if cls.enabled else str(text)


# --- CLI Logging Setup ---
def setup_cli_logging(verbose: bool, daemon: bool = False):
    """
    Configures the CLI and core loggers.

    One-shot commands print the CLI's INFO records as plain lines on stdout
    and everything else on stderr; the core library only reports warnings
    unless `verbose`. `run` logs both loggers to stderr with timestamps, at
    INFO (DEBUG when `verbose`).
    """
    log.handlers.clear()
    log.propagate = False
    log.setLevel(logging.DEBUG if verbose else logging.INFO)

    if daemon:
        shared = core_helpers.setup_library_logging(
            level=logging.DEBUG if verbose else logging.INFO,
            fmt=core_helpers.DAEMON_LOG_FORMAT,
        )
        log.addHandler(shared)
        return

    core_helpers.setup_library_logging(level=logging.DEBUG if verbose else logging.WARNING)

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.setFormatter(logging.Formatter("%(message)s"))
    out_handler.addFilter(lambda record: record.levelno == logging.INFO)
    log.addHandler(out_handler)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setFormatter(logging.Formatter(core_helpers.LOG_FORMAT))
    err_handler.addFilter(lambda record: record.levelno != logging.INFO)
    log.addHandler(err_handler)
    log.debug("Verbose logging enabled.")


# --- Output Formatting ---
def print_status(status_data: dict, verbose: bool = False):
    """Formats and prints the status dictionary with colors."""
    log.info("--- nightswitch Status ---")

    window = status_data.get("window", {})
    log.info("\n[Nighttime]")
    if window.get("error"):
        log.info(f"  {AnsiColors.paint('Error: ' + window['error'], AnsiColors.RED)}")
    else:
        source = "Night Light schedule" if window.get("source") == "night-light" else "manual"
        log.info(f"  Window:          {window.get('begin')} - {window.get('end')} ({source})")

    period = status_data.get("current_period", "unknown")
    color = AnsiColors.YELLOW if period == "unknown" else AnsiColors.GREEN
    log.info(f"  Current Period:  {AnsiColors.paint(period.capitalize(), color)}")

    next_time = status_data.get("next_transition")
    next_mode = status_data.get("next_transition_mode")
    if next_time and next_mode:
        delta = next_time - datetime.now()
        hours, rem = divmod(max(delta.total_seconds(), 0), 3600)
        minutes, _ = divmod(rem, 60)
        time_left_str = f"in approx. {int(hours)}h {int(minutes)}m" if hours >= 1 else "soon"
        log.info(f"  Next Transition: '{next_mode}' at {next_time.strftime('%H:%M')} ({time_left_str})")
    elif not window.get("error"):
        log.info("  Next Transition: never (nighttime begins and ends at the same time)")

    cfg = status_data.get("config", {})
    log.info("\n[Themes]")
    log.info(f"  Day Theme:       {cfg.get('day-theme', 'N/A')}")
    log.info(f"  Night Theme:     {cfg.get('night-theme', 'N/A')}")
    if cfg.get("shell-enabled") == "true":
        available = status_data.get("shell_available")
        note = "" if available else " " + AnsiColors.paint("(User Themes not available)", AnsiColors.YELLOW)
        log.info(f"  Day Shell:       {cfg.get('day-shell') or '(default)'}{note}")
        log.info(f"  Night Shell:     {cfg.get('night-shell') or '(default)'}{note}")
    else:
        log.info("  Shell Theming:   disabled")

    if verbose:
        log.info("\n--- Verbose Details ---")
        log.info("\n[Configuration]")
        for key, value in cfg.items():
            log.info(f"  {key + ':':<28}{value}")
    else:
        log.info("\n(Run with -v for the full configuration)")
    log.info("-" * 25)


# --- Main Execution Logic ---
def main():
    """Parses command-line arguments and dispatches to appropriate command handlers."""
    parser = argparse.ArgumentParser(
        description="nightswitch (CLI): Switch GNOME themes between day and night.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
Examples:
  nightswitch run                               # Run the daemon in this session
  nightswitch status -v                         # Show status and full configuration
  nightswitch night                             # Apply Night mode now
  nightswitch set-default --mode day            # Save the current themes as the Day themes
  nightswitch config set nighttime-begin 21:30  # Night starts at 21:30
  nightswitch config set commands-enabled true  # Run the day/night commands
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable detailed logging output.")
    subparsers = parser.add_subparsers(dest="command", title="Commands", required=True)

    subparsers.add_parser("run", help="Run the daemon until interrupted.")
    subparsers.add_parser("status", help="Show the nighttime window, current period and themes.")
    subparsers.add_parser("day", help="Apply Day mode settings now.")
    subparsers.add_parser("night", help="Apply Night mode settings now.")

    parser_set_default = subparsers.add_parser("set-default", help="Save the current themes as the default for Day or Night mode.")
    parser_set_default.add_argument("--mode", choices=["day", "night"], required=True, dest="default_mode")

    parser_config = subparsers.add_parser("config", help="Read or change settings.")
    config_sub = parser_config.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("list", help="Show every setting.")
    parser_get = config_sub.add_parser("get", help="Show one setting.")
    parser_get.add_argument("key", choices=sorted(nightswitch_core.KEY_TYPES))
    parser_set = config_sub.add_parser("set", help="Change one setting (times accept HH:MM).")
    parser_set.add_argument("key", choices=sorted(nightswitch_core.KEY_TYPES))
    parser_set.add_argument("value")

    args = parser.parse_args()
    setup_cli_logging(args.verbose, daemon=args.command == "run")
    exit_code = 0

    try:
        log.debug(f"Running command: {args.command}")

        if args.command == "run":
            exit_code = nightswitch_core.run_daemon()

        elif args.command == "status":
            status = nightswitch_core.get_status()
            print_status(status, verbose=args.verbose)

        elif args.command in ("day", "night"):
            log.info(f"Applying {args.command.capitalize()} mode...")
            if nightswitch_core.apply_mode(args.command):
                log.info(AnsiColors.paint(f"{args.command.capitalize()} mode applied.", AnsiColors.GREEN))
            else:
                log.warning(f"{args.command.capitalize()} mode was only partly applied.")
                exit_code = 1

        elif args.command == "set-default":
            mode = args.default_mode
            log.info(f"Saving the current themes as default for {mode.capitalize()} mode...")
            saved = nightswitch_core.set_default_from_current(mode)
            for key, value in saved.items():
                log.info(f"  {key} = {value}")
            if not saved:
                log.info("Nothing to change.")

        elif args.command == "config":
            if args.config_command == "list":
                for key, value in nightswitch_core.list_settings().items():
                    log.info(f"{key} = {value}")
            elif args.config_command == "get":
                value = nightswitch_core.get_setting(args.key)
                if args.key in ("nighttime-begin", "nighttime-end"):
                    value = f"{value} ({core_helpers.minutes_to_clock_time(int(value))})"
                log.info(value)
            elif args.config_command == "set":
                stored = nightswitch_core.set_setting(args.key, args.value)
                log.info(f"{args.key} = {stored}")

        else:
            log.error(f"Unknown command: {args.command}")
            parser.print_help(sys.stderr)
            exit_code = 1

    except core_exc.NightSwitchError as e:
        log.error(AnsiColors.paint(f"nightswitch Error: {e}", AnsiColors.RED), exc_info=args.verbose)
        exit_code = 1
    except Exception as e_main:
        log.error(AnsiColors.paint(f"An unexpected error occurred in CLI: {e_main}", AnsiColors.RED), exc_info=True)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

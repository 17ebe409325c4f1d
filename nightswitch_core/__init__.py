# nightswitch_core/__init__.py

# Make exceptions available directly
from .exceptions import (
    ConfigError,
    DependencyError,
    NightSwitchError,
    SchemaError,
    ValidationError,
)

# Make public API functions (via the api.py facade) available
from .api import (
    apply_mode,
    get_setting,
    get_status,
    list_settings,
    load_settings,
    run_daemon,
    set_default_from_current,
    set_setting,
)

# --- Make core types and constants accessible ---
from .assembly import NightSwitch
from .config import CONFIG_DIR, CONFIG_FILE, DEFAULT_CONFIG, KEY_TYPES
from .reactor import Reactor, State
from .window import TimeWindow

__all__ = [
    # Constants from config.py
    "CONFIG_DIR",
    "CONFIG_FILE",
    "DEFAULT_CONFIG",
    "KEY_TYPES",
    # Exceptions
    "ConfigError",
    "DependencyError",
    "NightSwitchError",
    "SchemaError",
    "ValidationError",
    # Core types
    "NightSwitch",
    "Reactor",
    "State",
    "TimeWindow",
    # API Functions (from api.py facade)
    "apply_mode",
    "get_setting",
    "get_status",
    "list_settings",
    "load_settings",
    "run_daemon",
    "set_default_from_current",
    "set_setting",
]

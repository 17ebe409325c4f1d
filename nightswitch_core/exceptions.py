# nightswitch_core/exceptions.py
"""
Custom exception classes for the nightswitch core library.

These exceptions let callers tell configuration problems apart from
missing desktop components or bad user input. All of them inherit from
the base `NightSwitchError`.
"""


class NightSwitchError(Exception):
    """Base exception for nightswitch core errors."""

    pass


class ConfigError(NightSwitchError):
    """Errors related to configuration loading, saving, or lookup."""

    pass


class SchemaError(ConfigError):
    """A GSettings schema (ours, the desktop's or a companion's) is not installed."""

    pass


class DependencyError(NightSwitchError):
    """PyGObject (or the GLib typelibs it needs) is not available."""

    pass


class ValidationError(NightSwitchError):
    """Errors for invalid user input or data formats."""

    pass

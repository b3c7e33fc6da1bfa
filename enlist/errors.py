"""Exception types raised by enlist."""


class EnlistError(Exception):
    """Base class for enlist errors."""


class PropertyError(EnlistError, ValueError):
    """A property id is malformed or not supported by the host."""


class ConfigError(EnlistError):
    """A view configuration file could not be read."""

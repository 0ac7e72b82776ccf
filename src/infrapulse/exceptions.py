"""Exception types for InfraPulse."""


class InfraPulseError(Exception):
    """Base class for InfraPulse errors."""


class ConfigError(InfraPulseError):
    """Configuration is missing, unreadable or invalid."""

"""Configuration errors."""

from reeltrack.errors import ReeltrackError


class ConfigError(ReeltrackError):
    """Raised when configuration data cannot be read or validated."""

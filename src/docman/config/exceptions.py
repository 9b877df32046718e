"""Configuration errors."""


class ConfigError(Exception):
    """Raised when configuration files, environment values or overrides are invalid."""

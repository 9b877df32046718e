"""Filter errors."""


class FilterError(ValueError):
    """Raised when a filter is built from malformed arguments."""

"""Store errors."""


class StoreError(Exception):
    """Base exception for store operations."""


class StoreLookupError(StoreError):
    """Raised when an existence check or query against the store fails."""


class StoreWriteError(StoreError):
    """Raised when a write transaction could not be committed."""

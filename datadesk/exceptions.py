"""Custom exception hierarchy for datadesk."""


class DataDeskError(Exception):
    """Base exception for datadesk."""
    pass


class ConfigurationError(DataDeskError):
    """Raised at startup when required connection parameters are missing or invalid."""
    pass


class ServiceUnavailableError(DataDeskError):
    """Raised when an external service (e.g. Anthropic) is down or keeps rejecting us."""
    pass


class StorageError(DataDeskError):
    """Raised when there's an issue with the relational store."""
    pass


class ConstraintViolation(StorageError):
    """Raised when a write breaks a storage invariant (unique email, dangling reference, bad status)."""
    pass


class QueryExecutionError(DataDeskError):
    """Raised when a warehouse query cannot be executed."""
    pass


class DestructiveQueryError(QueryExecutionError):
    """Raised when a warehouse query would drop, truncate or delete data."""
    pass

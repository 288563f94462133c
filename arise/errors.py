"""Domain exceptions for arise."""


class AriseError(Exception):
    """Base class for all arise domain errors."""


class ValidationError(AriseError, ValueError):
    """Raised when an input violates an engine or model contract."""


class NotFoundError(AriseError):
    """Raised when a task or profile does not exist."""


class PermissionDeniedError(AriseError):
    """Raised when a caller mutates a record owned by another user."""


class ConcurrentUpdateError(AriseError):
    """Raised when a compare-and-swap write loses to a concurrent writer."""

"""Domain exceptions for the digilib catalog."""


class DigilibError(Exception):
    """Base exception for all catalog errors."""
    pass


class ValidationError(DigilibError):
    """A field is missing, out of range or not in its enumeration."""
    pass


class NotFoundError(DigilibError):
    """The requested record does not exist."""
    pass


class BookNotFoundError(NotFoundError):
    """Book does not exist."""
    pass


class ReviewNotFoundError(NotFoundError):
    """Review does not exist."""
    pass


class ConstraintViolation(DigilibError):
    """A record store uniqueness constraint would be broken."""
    pass


class DuplicateReviewError(ConstraintViolation):
    """User already reviewed this book."""
    pass


class PermissionDeniedError(DigilibError):
    """Caller is neither the owner nor an admin."""
    pass


class StoreError(DigilibError):
    """Asset store upload or destroy failed (auth, network, timeout, bad response)."""
    pass


class AggregateWriteError(DigilibError):
    """Recomputed rating/count could not be persisted."""
    pass

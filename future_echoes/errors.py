class CapsuleError(Exception):
    """Base class for errors raised by the capsule engine."""


class ValidationError(CapsuleError):
    """Input rejected before anything was written."""


class CreationCancelled(CapsuleError):
    """The owner declined to save a capsule at the confirmation gate."""


class NotFound(CapsuleError):
    pass


class AlreadyAnswered(CapsuleError):
    """The user has already submitted a reflection today."""


class DuplicateResponse(CapsuleError):
    """A response for this capsule and question date already exists."""


class SentimentUnavailable(CapsuleError):
    """The sentiment classifier could not produce a result."""


class NotificationFailed(CapsuleError):
    pass


class PersistenceError(CapsuleError):
    """The record store could not be reached or rejected the operation."""

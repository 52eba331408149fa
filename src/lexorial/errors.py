"""Error taxonomy shared by the progression engine and the stores."""


class LexorialError(Exception):
    """Base class for all application errors."""


class Unauthorized(LexorialError):
    """No learner identity was supplied."""


class InvalidArgument(LexorialError):
    """A required input is missing or out of range."""


class NotFound(LexorialError):
    """A referenced module, lesson or question does not exist."""


class StorageFailure(LexorialError):
    """Reading from or writing to the database failed."""


class ProgressConflict(StorageFailure):
    """The stored progress changed between read and conditional write."""

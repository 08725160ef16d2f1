"""Exception hierarchy shared by the scanner and the layers built on it."""


class MboxError(Exception):
    """Base exception for mbox processing errors."""

    pass


class FormatValidationError(MboxError):
    """Raised in strict mode when a stream does not start with a From line."""

    pass


class UsageError(MboxError):
    """Raised when a caller breaks the lifecycle contract of a component."""

    pass

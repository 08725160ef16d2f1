"""Errors raised by the mailbox facade."""

from mboxindex.models.mbox_state import MboxState
from mboxindex.services.scanner.base import MboxError


class MboxNotReadyError(MboxError):
    """Raised when an operation needs a READY mailbox."""

    def __init__(self, state: MboxState):
        super().__init__(f"Mbox not ready for operations (current state: {state.value})")
        self.state = state


class MessageNotFoundError(MboxError):
    """Raised for an out-of-range or deleted message index."""

    def __init__(self, index: int, reason: str):
        if reason == "deleted":
            message = f"Message {index} has been deleted"
        else:
            message = f"Message index {index} is out of bounds"
        super().__init__(message)
        self.index = index
        self.reason = reason


class InvalidIndexError(MboxError):
    """Raised when a saved index does not match the mbox file."""

    def __init__(self, anomaly_type: str, details: str):
        super().__init__(details)
        self.anomaly_type = anomaly_type

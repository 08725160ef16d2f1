"""Lifecycle states of an opened mailbox."""

from enum import Enum


class MboxState(Enum):
    """State of an Mbox instance."""

    INIT = "INIT"
    INDEXING = "INDEXING"
    READY = "READY"
    ERROR = "ERROR"

"""Mbox message index entry model."""

from dataclasses import dataclass, replace


@dataclass
class MboxMessage:
    """
    Location of a single message within an mbox file.

    Attributes:
        index: Position of the message in the mailbox (0-based)
        offset: Byte offset of the "From " line
        size: Length of the message in bytes, envelope line included
        deleted: Marked for removal on the next write
    """

    index: int
    offset: int
    size: int
    deleted: bool = False

    def __post_init__(self):
        """Validate fields after initialization."""
        if self.index < 0:
            raise ValueError(f"Invalid message index: {self.index}")
        if self.offset < 0:
            raise ValueError(f"Invalid message offset: {self.offset}")
        if self.size < 0:
            raise ValueError(f"Invalid message size: {self.size}")

    @property
    def end(self) -> int:
        """Offset one past the last byte of the message."""
        return self.offset + self.size

    def mark_deleted(self) -> None:
        self.deleted = True

    def with_size(self, size: int) -> "MboxMessage":
        """Return a copy of this entry with a different size."""
        return replace(self, size=size)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "offset": self.offset,
            "size": self.size,
            "deleted": self.deleted,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MboxMessage":
        return cls(
            index=int(data["index"]),
            offset=int(data["offset"]),
            size=int(data["size"]),
            deleted=bool(data.get("deleted", False)),
        )

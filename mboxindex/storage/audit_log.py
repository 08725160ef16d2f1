"""Audit logging for mailbox operations."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional


class AuditLog:
    """JSON-lines log of index builds, validation failures and writes."""

    def __init__(self, log_path: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file (default: ~/.mboxindex/logs/audit.log)
        """
        if log_path is None:
            log_path = Path("~/.mboxindex/logs/audit.log").expanduser()

        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_index_built(self, mbox_path: Path, message_count: int, source: str) -> None:
        """
        Log a completed index.

        Args:
            mbox_path: Path to mbox file
            message_count: Number of messages indexed
            source: 'scan', 'saved_index' or 'cache'
        """
        self.log_event(
            "index_built",
            mbox_path,
            {"message_count": message_count, "source": source},
        )

    def log_validation_failure(
        self,
        mbox_path: Path,
        anomaly_type: Optional[str],
        error_details: str,
    ) -> None:
        """Log a rejected mbox file or saved index."""
        self.log_event(
            "index_validation_failed",
            mbox_path,
            {"anomaly_type": anomaly_type, "error_details": error_details},
        )

    def log_write(self, mbox_path: Path, destination: Path, written: int, removed: int) -> None:
        """Log a compaction of mbox_path into destination."""
        self.log_event(
            "mbox_written",
            mbox_path,
            {"destination": str(destination), "written": written, "removed": removed},
        )

    def log_event(self, event_type: str, mbox_path: Path, metadata: dict) -> None:
        """
        Log a generic event.

        Args:
            event_type: Type of event (e.g., "attachments_extracted")
            mbox_path: Path to mbox file
            metadata: Additional event metadata
        """
        event = {
            "timestamp": datetime.now().isoformat(),
            "event_type": event_type,
            "mbox_path": str(mbox_path),
            **metadata,
        }

        self._write_event(event)

    def read_events(self) -> list[dict]:
        """Return all events in the log, skipping unreadable lines."""
        events = []

        if self.log_path.exists():
            with open(self.log_path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        try:
                            events.append(json.loads(line))
                        except json.JSONDecodeError:
                            continue

        return events

    def export(self, output_path: Path) -> int:
        """
        Export all events to a JSON array file.

        Args:
            output_path: Path to output JSON file

        Returns:
            Number of events exported
        """
        events = self.read_events()

        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(events, f, indent=2, ensure_ascii=False)

        return len(events)

    def _write_event(self, event: dict) -> None:
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False) + "\n")

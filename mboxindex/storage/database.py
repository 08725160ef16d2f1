"""Database schema and repository implementations."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from ..models.index_anomaly import AnomalyType, IndexAnomaly
from ..models.mbox_message import MboxMessage


class DatabaseConnection:
    """Database connection and schema management."""

    def __init__(self, db_path: Path):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """
        Establish database connection.

        Returns:
            SQLite connection object
        """
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")

        return self._conn

    def execute_schema(self) -> None:
        """Create database tables if they don't exist."""
        conn = self.connect()

        # One row per indexed mbox file
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS mbox_indexes (
                file_path TEXT NOT NULL PRIMARY KEY,
                file_size INTEGER NOT NULL,
                mtime REAL NOT NULL,
                strict BOOLEAN NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS mbox_messages (
                file_path TEXT NOT NULL,
                msg_index INTEGER NOT NULL,
                byte_offset INTEGER NOT NULL,
                byte_size INTEGER NOT NULL,
                deleted BOOLEAN NOT NULL DEFAULT 0,
                PRIMARY KEY (file_path, msg_index),
                FOREIGN KEY (file_path)
                    REFERENCES mbox_indexes(file_path)
                    ON DELETE CASCADE
            )
        """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS index_anomalies (
                anomaly_id TEXT NOT NULL PRIMARY KEY,
                anomaly_type TEXT NOT NULL,
                mbox_path TEXT NOT NULL,
                message_index INTEGER,
                error_details TEXT NOT NULL,
                timestamp TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                resolved BOOLEAN NOT NULL DEFAULT 0
            )
        """
        )

        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_anomaly_path
            ON index_anomalies(mbox_path)
        """
        )

        conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class MessageIndexRepository:
    """Repository caching the message index of each mbox file."""

    def __init__(self, db: DatabaseConnection):
        """
        Initialize repository.

        Args:
            db: Database connection
        """
        self.db = db

    def save(
        self,
        mbox_path: Path,
        messages: list[MboxMessage],
        file_size: int,
        mtime: float,
        strict: bool = False,
    ) -> None:
        """
        Replace the cached index of an mbox file.

        Args:
            mbox_path: Path to mbox file
            messages: Index entries
            file_size: File size the index was built from
            mtime: File modification time the index was built from
            strict: Whether the index was built with strict start checking
        """
        conn = self.db.connect()
        key = str(mbox_path.resolve())

        with conn:
            conn.execute("DELETE FROM mbox_indexes WHERE file_path = ?", (key,))
            conn.execute(
                """
                INSERT INTO mbox_indexes (file_path, file_size, mtime, strict)
                VALUES (?, ?, ?, ?)
            """,
                (key, file_size, mtime, strict),
            )
            conn.executemany(
                """
                INSERT INTO mbox_messages (file_path, msg_index, byte_offset, byte_size, deleted)
                VALUES (?, ?, ?, ?, ?)
            """,
                [(key, m.index, m.offset, m.size, m.deleted) for m in messages],
            )

    def load(self, mbox_path: Path, strict: bool = False) -> Optional[list[MboxMessage]]:
        """
        Load the cached index of an mbox file.

        Args:
            mbox_path: Path to mbox file
            strict: Only accept an index that was built in strict mode

        Returns:
            Cached entries, or None if absent, stale, or not strict when required
        """
        conn = self.db.connect()
        key = str(mbox_path.resolve())

        row = conn.execute(
            "SELECT file_size, mtime, strict FROM mbox_indexes WHERE file_path = ?", (key,)
        ).fetchone()

        if row is None:
            return None

        if strict and not row["strict"]:
            return None

        stat = mbox_path.stat()
        if row["file_size"] != stat.st_size or row["mtime"] != stat.st_mtime:
            return None

        cursor = conn.execute(
            "SELECT * FROM mbox_messages WHERE file_path = ? ORDER BY msg_index", (key,)
        )
        return [self._row_to_message(r) for r in cursor.fetchall()]

    def delete(self, mbox_path: Path) -> None:
        """Remove the cached index of an mbox file."""
        conn = self.db.connect()

        with conn:
            conn.execute(
                "DELETE FROM mbox_indexes WHERE file_path = ?", (str(mbox_path.resolve()),)
            )

    def _row_to_message(self, row: sqlite3.Row) -> MboxMessage:
        """Convert database row to MboxMessage."""
        return MboxMessage(
            index=row["msg_index"],
            offset=row["byte_offset"],
            size=row["byte_size"],
            deleted=bool(row["deleted"]),
        )


class IndexAnomalyRepository:
    """Repository for IndexAnomaly entities."""

    def __init__(self, db: DatabaseConnection):
        """
        Initialize repository.

        Args:
            db: Database connection
        """
        self.db = db

    def save(self, anomaly: IndexAnomaly) -> None:
        """
        Save anomaly to database.

        Args:
            anomaly: IndexAnomaly instance
        """
        conn = self.db.connect()

        conn.execute(
            """
            INSERT OR REPLACE INTO index_anomalies
            (anomaly_id, anomaly_type, mbox_path, message_index,
             error_details, timestamp, resolved)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
            (
                anomaly.anomaly_id,
                anomaly.anomaly_type.value,
                str(anomaly.mbox_path),
                anomaly.message_index,
                anomaly.error_details,
                anomaly.timestamp.isoformat(),
                anomaly.resolved,
            ),
        )

        conn.commit()

    def find_by_mbox_path(self, mbox_path: Path) -> Iterator[IndexAnomaly]:
        """
        Find all anomalies for a specific mbox file.

        Args:
            mbox_path: Path to mbox file

        Yields:
            IndexAnomaly instances
        """
        conn = self.db.connect()

        cursor = conn.execute(
            "SELECT * FROM index_anomalies WHERE mbox_path = ?", (str(mbox_path),)
        )

        for row in cursor.fetchall():
            yield self._row_to_anomaly(row)

    def find_unresolved(self) -> Iterator[IndexAnomaly]:
        """
        Find all unresolved anomalies.

        Yields:
            IndexAnomaly instances
        """
        conn = self.db.connect()

        cursor = conn.execute("SELECT * FROM index_anomalies WHERE resolved = 0")

        for row in cursor.fetchall():
            yield self._row_to_anomaly(row)

    def _row_to_anomaly(self, row: sqlite3.Row) -> IndexAnomaly:
        """Convert database row to IndexAnomaly."""
        return IndexAnomaly(
            anomaly_id=row["anomaly_id"],
            anomaly_type=AnomalyType(row["anomaly_type"]),
            mbox_path=Path(row["mbox_path"]),
            message_index=row["message_index"],
            error_details=row["error_details"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            resolved=bool(row["resolved"]),
        )

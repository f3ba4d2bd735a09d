import logging
import sqlite3
import threading
from typing import List, Optional

from ..security import SecurityManager
from .models import Interaction

logger = logging.getLogger(__name__)


class InteractionLog:
    """
    In-memory SQLite history of voice interactions.

    Transcripts are stored encrypted. The database is never written to
    disk and disappears with the process.
    """

    def __init__(self, security_manager: Optional[SecurityManager] = None, max_entries: int = 200):
        self.security = security_manager or SecurityManager()
        if not self.security.validate_key_integrity():
            raise RuntimeError("Encryption key failed validation")
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self):
        """Create the 'interactions' table."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    transcript_encrypted TEXT NOT NULL,
                    command TEXT,
                    category TEXT,
                    recognized INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                );
            """)

    def record(self, transcript: str, command: Optional[str] = None,
               category: Optional[str] = None) -> bool:
        """Add an interaction; oldest entries are dropped past max_entries."""
        try:
            encrypted = self.security.encrypt_data(transcript or "")
            with self._lock, self._conn:
                self._conn.execute("""
                    INSERT INTO interactions (transcript_encrypted, command, category, recognized, created_at)
                    VALUES (?, ?, ?, ?, datetime('now'));
                """, (encrypted, command, category, int(command is not None)))
                self._conn.execute("""
                    DELETE FROM interactions WHERE id NOT IN (
                        SELECT id FROM interactions ORDER BY id DESC LIMIT ?
                    );
                """, (self.max_entries,))
            return True
        except sqlite3.Error as e:
            logger.error(f"Error recording interaction: {e}")
            return False

    def get_recent(self, limit: int = 20) -> List[Interaction]:
        """Most recent interactions first, transcripts decrypted."""
        try:
            with self._lock:
                rows = self._conn.execute("""
                    SELECT id, transcript_encrypted, command, category, recognized, created_at
                    FROM interactions
                    ORDER BY id DESC
                    LIMIT ?;
                """, (limit,)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error fetching interactions: {e}")
            return []

        return [
            Interaction(
                id=row["id"],
                transcript=self.security.decrypt_data(row["transcript_encrypted"]),
                command=row["command"],
                category=row["category"],
                recognized=bool(row["recognized"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM interactions;").fetchone()[0]

    def clear(self) -> bool:
        """Delete all interactions."""
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM interactions;")
            return True
        except sqlite3.Error as e:
            logger.error(f"Error clearing interactions: {e}")
            return False

    def close(self):
        self._conn.close()

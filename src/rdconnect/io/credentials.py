"""Durable credential storage using SQLite.

The credential pair is kept under two fixed keys, ``access`` and
``refresh``. Both halves are written and removed inside one transaction
so the store never holds a refresh secret without its access secret
after a login, nor one half after a logout.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..core.models import CredentialPair
from ..utils.logging import get_logger

logger = get_logger(__name__)


class CredentialStore:
    """SQLite key/value store for the access/refresh secrets."""

    ACCESS_KEY = "access"
    REFRESH_KEY = "refresh"

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(
            str(self.db_path), isolation_level="DEFERRED", check_same_thread=False
        )
        self.conn.execute("PRAGMA journal_mode = WAL")
        self.conn.execute("PRAGMA synchronous = NORMAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS credentials (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        self.conn.commit()

    def get(self, key: str) -> Optional[str]:
        cur = self.conn.execute("SELECT value FROM credentials WHERE key = ?", (key,))
        row = cur.fetchone()
        return row[0] if row else None

    @property
    def access(self) -> Optional[str]:
        return self.get(self.ACCESS_KEY)

    @property
    def refresh(self) -> Optional[str]:
        return self.get(self.REFRESH_KEY)

    def load(self) -> Optional[CredentialPair]:
        """Return the stored pair, or None unless both halves are present."""
        access, refresh = self.access, self.refresh
        if not access or not refresh:
            return None
        return CredentialPair(access=access, refresh=refresh)

    def save_pair(self, pair: CredentialPair) -> None:
        now = datetime.utcnow().isoformat()
        with self.conn:
            self.conn.executemany(
                "INSERT OR REPLACE INTO credentials (key, value, updated_at) VALUES (?, ?, ?)",
                [
                    (self.ACCESS_KEY, pair.access, now),
                    (self.REFRESH_KEY, pair.refresh, now),
                ],
            )
        logger.debug("Stored credential pair")

    def save_access(self, access: str) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO credentials (key, value, updated_at) VALUES (?, ?, ?)",
                (self.ACCESS_KEY, access, datetime.utcnow().isoformat()),
            )
        logger.debug("Replaced access secret")

    def clear(self) -> None:
        with self.conn:
            self.conn.execute(
                "DELETE FROM credentials WHERE key IN (?, ?)",
                (self.ACCESS_KEY, self.REFRESH_KEY),
            )
        logger.debug("Cleared stored credentials")

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

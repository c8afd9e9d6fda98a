import sqlite3
import threading
from pathlib import Path
from typing import List, Optional

from leanmerkle.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteStore:
    """
    SQLite backend for persistent storage.

    A single key-value table. Each tree occupies three keys (leaves, depth,
    root); buckets group keys so several trees can share a database.
    """

    def __init__(self, db_path: Path, bucket: str = "default"):
        self.db_path = Path(db_path)
        self.bucket = bucket
        self._conn_local = threading.local()

        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key BLOB NOT NULL,
                    value BLOB NOT NULL,
                    bucket TEXT NOT NULL DEFAULT 'default',
                    PRIMARY KEY (bucket, key)
                )
            """)

    # =========================================================================
    # Key-Value Operations
    # =========================================================================

    def set(self, key: bytes, value: bytes):
        """Save a key-value pair."""
        conn = self._get_conn()
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, bucket) VALUES (?, ?, ?)",
                (key, value, self.bucket)
            )

    def get(self, key: bytes) -> Optional[bytes]:
        """Get value by key."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT value FROM kv_store WHERE bucket = ? AND key = ?",
            (self.bucket, key)
        )
        row = cursor.fetchone()
        return bytes(row['value']) if row else None

    def keys(self) -> List[bytes]:
        """All keys in this bucket."""
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT key FROM kv_store WHERE bucket = ? ORDER BY key",
            (self.bucket,)
        )
        return [bytes(row['key']) for row in cursor]

    def close(self):
        """Close this thread's connection."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn

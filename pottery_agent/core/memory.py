"""
Agent conversation memory backed by SQLite.

Messages are keyed by thread_id (the A2A context/session id) and tagged with the
resource_id that owns the thread. Table: messages (id, thread_id, resource_id, role, content, created_at).
"""

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pottery_agent.core.config import MEMORY_DB_PATH

logger = logging.getLogger(__name__)

_TABLE = "messages"


class ThreadMemory:
    """Per-thread chat history. Safe to share across request threads."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._initialized = False

    def _get_conn(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.db_path))

    def init_db(self) -> None:
        """Create the messages table if it does not exist."""
        if self._initialized:
            return
        conn = self._get_conn()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    thread_id TEXT NOT NULL,
                    resource_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{_TABLE}_thread ON {_TABLE} (thread_id)")
            conn.commit()
        finally:
            conn.close()
        self._initialized = True

    def append_message(self, thread_id: str, resource_id: str, role: str, content: str) -> None:
        """Append one message to the thread's history."""
        if not thread_id:
            logger.info("[memory:append_message] skip empty thread_id")
            return
        with self._lock:
            self.init_db()
            conn = self._get_conn()
            try:
                conn.execute(
                    f"INSERT INTO {_TABLE} (thread_id, resource_id, role, content, created_at) VALUES (?, ?, ?, ?, ?)",
                    (thread_id, resource_id or "", role, content or "", datetime.now(timezone.utc).isoformat()),
                )
                conn.commit()
            finally:
                conn.close()
        logger.info("[memory:append_message] thread_id=%s role=%s content_len=%d", thread_id[:16], role, len(content or ""))

    def get_history(self, thread_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Return the last `limit` messages of the thread as {role, content}, oldest first."""
        if not thread_id:
            return []
        with self._lock:
            self.init_db()
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    f"SELECT role, content FROM {_TABLE} WHERE thread_id = ? ORDER BY id DESC LIMIT ?",
                    (thread_id, limit),
                )
                rows = cur.fetchall()
            finally:
                conn.close()
        history = [{"role": role, "content": content} for role, content in reversed(rows)]
        logger.info("[memory:get_history] thread_id=%s OUT messages=%d", thread_id[:16], len(history))
        return history

    def get_messages(self, thread_id: str) -> list[dict[str, Any]]:
        """Return every message of the thread with its timestamp, oldest first."""
        if not thread_id:
            return []
        with self._lock:
            self.init_db()
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    f"SELECT role, content, created_at FROM {_TABLE} WHERE thread_id = ? ORDER BY id ASC",
                    (thread_id,),
                )
                rows = cur.fetchall()
            finally:
                conn.close()
        return [{"role": r, "content": c, "createdAt": t} for r, c, t in rows]

    def list_threads(self, resource_id: str) -> list[dict[str, Any]]:
        """Threads owned by the resource, most recently active first."""
        with self._lock:
            self.init_db()
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    f"""
                    SELECT thread_id, COUNT(*), MIN(created_at), MAX(created_at), MAX(id) AS last_id
                    FROM {_TABLE} WHERE resource_id = ?
                    GROUP BY thread_id ORDER BY last_id DESC
                    """,
                    (resource_id,),
                )
                rows = cur.fetchall()
            finally:
                conn.close()
        return [
            {"threadId": tid, "resourceId": resource_id, "messageCount": n, "createdAt": first, "updatedAt": last}
            for tid, n, first, last, _ in rows
        ]

    def delete_thread(self, thread_id: str) -> int:
        """Delete all messages of the thread. Returns the number of rows removed."""
        if not thread_id:
            return 0
        with self._lock:
            self.init_db()
            conn = self._get_conn()
            try:
                cur = conn.execute(f"DELETE FROM {_TABLE} WHERE thread_id = ?", (thread_id,))
                conn.commit()
                removed = cur.rowcount
            finally:
                conn.close()
        logger.info("[memory:delete_thread] thread_id=%s removed=%d", thread_id[:16], removed)
        return removed


memory = ThreadMemory(MEMORY_DB_PATH)

"""Page view counters.

One non-negative counter per page id.  The first increment creates it at 1;
reads never create a record.  Each backend performs an increment as a single
store-level atomic operation so concurrent increments are never lost.

The store knows nothing about sessions: counting a page at most once per
visit is the caller's job (see :mod:`blogcore.services.views_client`).
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from blogcore.config import settings

logger = logging.getLogger(__name__)


class InvalidRequest(ValueError):
    """Raised when a page id is missing or not a usable string."""


class StoreUnavailable(RuntimeError):
    """Raised when the backing store cannot be reached or fails."""


def validate_page_id(page_id: object) -> str:
    """Return *page_id* unchanged, or raise :class:`InvalidRequest`."""
    if not isinstance(page_id, str) or not page_id.strip():
        raise InvalidRequest("pageId must be a string")
    return page_id


class ViewStore(ABC):
    """Abstract base class for view counter storage."""

    @abstractmethod
    def increment(self, page_id: str) -> int:
        """Add one view to *page_id* and return the new count."""
        ...

    @abstractmethod
    def read(self, page_id: str) -> int:
        """Return the view count of *page_id*, 0 when it was never counted."""
        ...


class MemoryViewStore(ViewStore):
    """Process-local store; for tests and single-worker development servers."""

    def __init__(self) -> None:
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, page_id: str) -> int:
        with self._lock:
            views = self._counts.get(page_id, 0) + 1
            self._counts[page_id] = views
            return views

    def read(self, page_id: str) -> int:
        with self._lock:
            return self._counts.get(page_id, 0)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS page_views (
    page_id TEXT PRIMARY KEY,
    views INTEGER NOT NULL CHECK (views >= 0)
)
"""

# Single statement: SQLite serialises writers, so no update can be lost.
_INCREMENT = """
INSERT INTO page_views (page_id, views) VALUES (?, 1)
ON CONFLICT (page_id) DO UPDATE SET views = views + 1
RETURNING views
"""

_READ = "SELECT views FROM page_views WHERE page_id = ?"


class SQLiteViewStore(ViewStore):
    """View counters in a SQLite database file.

    A connection is opened per operation, so one store instance can be
    shared by every request thread.  *timeout* bounds how long a writer
    waits for a concurrent writer to finish.
    """

    def __init__(self, db_path: str | Path, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Failed to open view store {self.db_path}: {exc}") from exc

        try:
            self._ensure_schema(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StoreUnavailable(f"Failed to prepare view store: {exc}") from exc
        return conn

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                with conn:
                    conn.execute(_SCHEMA)
                self._schema_ready = True

    def increment(self, page_id: str) -> int:
        conn = self._connect()
        try:
            with conn:
                rows = conn.execute(_INCREMENT, (page_id,)).fetchall()
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Failed to increment views: {exc}") from exc
        finally:
            conn.close()
        return int(rows[0][0])

    def read(self, page_id: str) -> int:
        conn = self._connect()
        try:
            row = conn.execute(_READ, (page_id,)).fetchone()
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Failed to read views: {exc}") from exc
        finally:
            conn.close()
        return int(row[0]) if row else 0


_store: Optional[ViewStore] = None
_store_lock = threading.Lock()


def get_view_store() -> ViewStore:
    """Return the process-wide store configured by settings (FastAPI dependency)."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                logger.info("Opening view store at %s", settings.views_db_path)
                _store = SQLiteViewStore(settings.views_db_path, timeout=settings.store_timeout)
    return _store

"""
Database connection management and schema for the SQLite store.

Connections come from a bounded pool and are handed out through the
``connection()`` context manager, which commits on success, rolls back on
error and always returns the connection to the pool.

OPT-DB-001: Connection pooling with configurable pool size.
OPT-DB-003: Store errors surface as StoreUnavailableError instead of raw sqlite3 errors.
"""

import logging
import queue
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from api.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# ── Schema ────────────────────────────────────────────────────────────────────

TABLES = ("category", "bucket", "bucketitem", "template", "templateitem")

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS category (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS bucket (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    categoryID  INTEGER NOT NULL REFERENCES category(id),
    name        TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    isLiquid    INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS bucketitem (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    bucketID      INTEGER NOT NULL REFERENCES bucket(id),
    "transaction" TEXT NOT NULL,
    name          TEXT NOT NULL,
    deposit       NUMERIC NOT NULL DEFAULT 0.00,
    withdraw      NUMERIC NOT NULL DEFAULT 0.00
);

CREATE INDEX IF NOT EXISTS idx_bucketitem_bucket ON bucketitem(bucketID);
CREATE INDEX IF NOT EXISTS idx_bucketitem_transaction ON bucketitem("transaction");

CREATE TABLE IF NOT EXISTS template (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS templateitem (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    templateID  INTEGER NOT NULL REFERENCES template(id),
    bucketID    INTEGER NOT NULL REFERENCES bucket(id),
    name        TEXT NOT NULL,
    deposit     NUMERIC NOT NULL DEFAULT 0.00,
    withdraw    NUMERIC NOT NULL DEFAULT 0.00
);
"""

# Children before parents so FK checks never block the drop.
DROP_DDL = "\n".join(
    f"DROP TABLE IF EXISTS {table};"
    for table in ("templateitem", "template", "bucketitem", "bucket", "category")
)


# ── Connections ───────────────────────────────────────────────────────────────

def _make_conn(db_path: Path) -> sqlite3.Connection:
    """Open a single read-write SQLite connection with standard pragmas."""
    conn = sqlite3.connect(str(db_path), check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


class ConnectionPool:
    """Simple SQLite connection pool using a queue for thread-safety.

    Connections are created lazily up to ``max_size``.  When a connection is
    released it is returned to the pool (not closed) so subsequent requests
    can reuse it without the open/pragma overhead.
    """

    def __init__(self, db_path: Path, max_size: int = 10, acquire_timeout: float = 30) -> None:
        self._db_path = db_path
        self._max_size = max_size
        self._acquire_timeout = acquire_timeout
        self._pool: queue.Queue[sqlite3.Connection] = queue.Queue(maxsize=max_size)
        self._active = 0
        self._lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def active(self) -> int:
        """Number of connections currently open (pooled or checked out)."""
        return self._active

    def acquire(self) -> sqlite3.Connection:
        """Acquire a connection from the pool (create if needed, block if full).

        Raises:
            StoreUnavailableError: The database cannot be opened, or no
                connection was released within the acquire timeout.
        """
        try:
            return self._pool.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            if self._active < self._max_size:
                try:
                    conn = _make_conn(self._db_path)
                except sqlite3.Error as exc:
                    raise StoreUnavailableError(f"Cannot open database: {exc}") from exc
                self._active += 1
                return conn
        # Pool is full; wait for one to be released
        try:
            return self._pool.get(timeout=self._acquire_timeout)
        except queue.Empty as exc:
            raise StoreUnavailableError("Timed out waiting for a database connection") from exc

    def release(self, conn: sqlite3.Connection) -> None:
        """Return a connection to the pool."""
        try:
            self._pool.put_nowait(conn)
        except queue.Full:
            self.discard(conn)

    def discard(self, conn: sqlite3.Connection) -> None:
        """Close a connection instead of returning it to the pool."""
        conn.close()
        with self._lock:
            self._active -= 1

    def close_all(self) -> None:
        """Close all pooled connections (call on shutdown)."""
        while True:
            try:
                conn = self._pool.get_nowait()
            except queue.Empty:
                break
            self.discard(conn)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Scoped acquisition: commit on success, roll back on error, always release.

        Usage::

            with pool.connection() as conn:
                conn.execute("INSERT INTO category (name) VALUES (?)", ("house",))
        """
        conn = self.acquire()
        try:
            yield conn
            conn.commit()
        except BaseException:
            try:
                conn.rollback()
            except sqlite3.Error:
                logger.warning("Rollback failed; discarding connection", exc_info=True)
                self.discard(conn)
                raise
            self.release(conn)
            raise
        else:
            self.release(conn)


# ── Schema operations ─────────────────────────────────────────────────────────

def create_tables(conn: sqlite3.Connection) -> None:
    """Create all five tables (and their indexes) if missing."""
    conn.executescript(SCHEMA_DDL)


def drop_tables(conn: sqlite3.Connection) -> None:
    """Drop all five tables."""
    conn.executescript(DROP_DDL)


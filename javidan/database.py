import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def unicode_lower(value):
    """Replacement for SQLite's ASCII-only LOWER()"""
    return value.lower() if isinstance(value, str) else value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way SQLite's CURRENT_TIMESTAMP does"""
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class Database:
    """
    SQLite database handle.

    Constructed once at application startup and handed to request handlers
    through the get_db dependency.
    """

    def __init__(self, path: str):
        self.path = path

    def connect(self) -> sqlite3.Connection:
        """Get a database connection in autocommit mode"""
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.create_function("LOWER", 1, unicode_lower, deterministic=True)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def session(self):
        """Context manager for database connections"""
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection):
    """
    Run a block of statements as one write transaction.

    BEGIN IMMEDIATE takes the write lock up front, so a read followed by a
    dependent write inside the block cannot interleave with another writer.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise

"""SQLite connection management.

One connection per thread, opened in autocommit mode so that callers own
transaction boundaries explicitly (BEGIN / COMMIT / ROLLBACK).
"""
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class Database:
    """Thin wrapper over sqlite3 with WAL journaling and foreign keys.

    Usage:
        db = Database(path)
        rows = db.all("SELECT * FROM simulations")
        with db.transaction() as conn:
            conn.execute("INSERT ...")
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._local = threading.local()
        directory = os.path.dirname(os.path.abspath(db_path))
        if not os.path.isdir(directory):
            os.makedirs(directory, exist_ok=True)
        logger.info(f"[DB] Using database file: {db_path}")

    def connection(self) -> sqlite3.Connection:
        """Return this thread's connection, creating it on first use."""
        conn = getattr(self._local, 'connection', None)
        if conn is None:
            conn = sqlite3.connect(self.db_path, timeout=5.0, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._local.connection = conn
        return conn

    @contextmanager
    def transaction(self):
        """Run the block inside BEGIN/COMMIT, rolling back on any exception."""
        conn = self.connection()
        conn.execute("BEGIN")
        try:
            yield conn
        except Exception:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")

    def run(self, sql, params=()):
        """Execute a statement; returns the cursor (lastrowid, rowcount)."""
        return self.connection().execute(sql, params)

    def get(self, sql, params=()):
        row = self.connection().execute(sql, params).fetchone()
        return dict(row) if row is not None else None

    def all(self, sql, params=()):
        return [dict(row) for row in self.connection().execute(sql, params).fetchall()]

    def table_names(self):
        rows = self.all("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        return [r['name'] for r in rows]

    def close(self):
        """Close this thread's connection if open."""
        conn = getattr(self._local, 'connection', None)
        if conn is not None:
            conn.close()
            self._local.connection = None

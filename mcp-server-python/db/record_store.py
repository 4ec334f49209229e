"""
SQLite-backed record store for AccessFlow.

Provides schema bootstrap, connection/transaction management and a small
document-style API (get, insert, update, delete, select, upsert) over the
``jobs``, ``deleted_jobs`` and ``user_prefs`` tables. Repositories map domain
models onto these rows; nothing above this layer writes SQL.
"""

import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from models.errors import create_backend_error, sanitize_path

# Default database path relative to repository root
DEFAULT_DB_PATH = "data/accessflow.db"

JOB_PAYLOAD_COLUMNS = [
    "clock_number_media_name",
    "order_number",
    "services_json",
    "client",
    "agency",
    "delivery_date",
    "po_reference",
    "destination",
    "production_notes",
    "creator",
    "checker",
    "commercial_description",
    "status",
    "priority",
    "on_hold",
    "in_sap",
    "stellar_task",
    "rate",
    "adjusted",
    "inputter",
    "verifier",
    "extcosts",
    "billingnotes",
]

TABLE_COLUMNS: Dict[str, List[str]] = {
    "jobs": ["id"] + JOB_PAYLOAD_COLUMNS + ["created_at", "updated_at"],
    "deleted_jobs": ["id", "original_job_id"]
    + JOB_PAYLOAD_COLUMNS
    + ["deleted_by", "deleted_at", "deletion_reason"],
    "user_prefs": ["user_id", "initials", "last_active", "job_form_service_height"],
}

TABLE_KEYS = {"jobs": "id", "deleted_jobs": "id", "user_prefs": "user_id"}

_JOB_PAYLOAD_DDL = """
    clock_number_media_name TEXT NOT NULL,
    order_number TEXT NOT NULL DEFAULT '',
    services_json TEXT NOT NULL DEFAULT '[]',
    client TEXT NOT NULL DEFAULT '',
    agency TEXT NOT NULL DEFAULT '',
    delivery_date TEXT NOT NULL DEFAULT '',
    po_reference TEXT NOT NULL DEFAULT '',
    destination TEXT NOT NULL DEFAULT '',
    production_notes TEXT NOT NULL DEFAULT '',
    creator TEXT NOT NULL DEFAULT '',
    checker TEXT NOT NULL DEFAULT '',
    commercial_description TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'Booked',
    priority INTEGER NOT NULL DEFAULT 0,
    on_hold INTEGER NOT NULL DEFAULT 0,
    in_sap INTEGER NOT NULL DEFAULT 0,
    stellar_task INTEGER NOT NULL DEFAULT 0,
    rate REAL,
    adjusted REAL,
    inputter TEXT,
    verifier TEXT,
    extcosts REAL,
    billingnotes TEXT
"""

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    {_JOB_PAYLOAD_DDL},
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_clock_number ON jobs(clock_number_media_name);

CREATE TABLE IF NOT EXISTS deleted_jobs (
    id TEXT PRIMARY KEY,
    original_job_id TEXT NOT NULL,
    {_JOB_PAYLOAD_DDL},
    deleted_by TEXT NOT NULL,
    deleted_at TEXT NOT NULL,
    deletion_reason TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS user_prefs (
    user_id TEXT PRIMARY KEY,
    initials TEXT,
    last_active TEXT,
    job_form_service_height INTEGER
);
"""


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """
    Resolve the database path with support for overrides and defaults.

    Resolution order:
    1. Provided db_path parameter
    2. ACCESSFLOW_DB environment variable
    3. ACCESSFLOW_ROOT/data/accessflow.db
    4. Default path: data/accessflow.db

    Args:
        db_path: Optional database path override

    Returns:
        Resolved absolute Path to the database
    """
    if db_path is not None:
        path_str = db_path
    else:
        db_env = os.getenv("ACCESSFLOW_DB")
        if db_env:
            path_str = db_env
        else:
            root_env = os.getenv("ACCESSFLOW_ROOT")
            if root_env:
                return Path(root_env) / "data" / "accessflow.db"
            path_str = DEFAULT_DB_PATH

    path = Path(path_str)

    # If relative, resolve from repository root
    if not path.is_absolute():
        current_file = Path(__file__).resolve()
        repo_root = current_file.parents[2]  # db/ -> mcp-server-python/ -> repo/
        path = repo_root / path

    return path


def _check_columns(table: str, columns: Iterable[str]) -> None:
    if table not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table: {table}")
    unknown = [c for c in columns if c not in TABLE_COLUMNS[table]]
    if unknown:
        raise ValueError(f"Unknown columns for {table}: {', '.join(unknown)}")


class RecordStore:
    """
    Context manager for reads and writes against the AccessFlow database.

    Opens a connection, bootstraps the schema, and begins a transaction.
    Every write is only durable after ``commit()``; an exception inside the
    ``with`` block rolls back whatever was not committed yet.

    Usage:
        with RecordStore(db_path) as store:
            store.insert("jobs", row)
            store.commit()
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self.resolved_path: Optional[Path] = None
        self.conn: Optional[sqlite3.Connection] = None
        self._in_transaction = False

    def __enter__(self):
        """
        Open connection, ensure schema and begin transaction.

        Raises:
            ToolError: BACKEND_UNAVAILABLE if the database cannot be opened
        """
        self.resolved_path = resolve_db_path(self.db_path)

        try:
            self.resolved_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise create_backend_error(
                f"Failed to create database directory "
                f"{sanitize_path(str(self.resolved_path.parent))}: {e.strerror}",
                retryable=False,
                original_error=e,
            ) from e

        if self.resolved_path.exists() and not self.resolved_path.is_file():
            raise create_backend_error(
                f"Database path is not a file: {sanitize_path(str(self.resolved_path))}",
                retryable=False,
            )

        try:
            self.conn = sqlite3.connect(str(self.resolved_path), isolation_level=None)
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(SCHEMA_SQL)
            self.conn.execute("BEGIN")
            self._in_transaction = True
            return self

        except sqlite3.OperationalError as e:
            self._close()
            raise create_backend_error(str(e), retryable=True, original_error=e) from e

        except sqlite3.Error as e:
            self._close()
            raise create_backend_error(str(e), retryable=False, original_error=e) from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Rollback on exception, close connection always."""
        try:
            if exc_type is not None and self._in_transaction:
                self.rollback()
        finally:
            self._close()

        return False

    def _close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
        self._in_transaction = False

    def _require_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise create_backend_error("Connection not established", retryable=False)
        return self.conn

    def _execute(self, query: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        conn = self._require_connection()
        try:
            return conn.execute(query, tuple(params))
        except sqlite3.OperationalError as e:
            raise create_backend_error(str(e), retryable=True, original_error=e) from e
        except sqlite3.Error as e:
            raise create_backend_error(str(e), retryable=False, original_error=e) from e

    def get(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a single row by key, or None."""
        key = TABLE_KEYS[table]
        row = self._execute(f"SELECT * FROM {table} WHERE {key} = ?", (record_id,)).fetchone()
        return dict(row) if row is not None else None

    def insert(self, table: str, record: Dict[str, Any]) -> None:
        """Insert a new row; the caller supplies the key."""
        _check_columns(table, record)
        columns = list(record)
        placeholders = ", ".join("?" for _ in columns)
        self._execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            [record[c] for c in columns],
        )

    def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> int:
        """Update columns of one row. Returns the number of rows changed (0 or 1)."""
        _check_columns(table, fields)
        if not fields:
            return 0
        key = TABLE_KEYS[table]
        assignments = ", ".join(f"{c} = ?" for c in fields)
        cursor = self._execute(
            f"UPDATE {table} SET {assignments} WHERE {key} = ?",
            [*fields.values(), record_id],
        )
        return cursor.rowcount

    def upsert(self, table: str, record: Dict[str, Any]) -> None:
        """Insert a row, or update the given columns if the key already exists."""
        _check_columns(table, record)
        key = TABLE_KEYS[table]
        columns = list(record)
        placeholders = ", ".join("?" for _ in columns)
        updates = [c for c in columns if c != key]
        if updates:
            conflict = "DO UPDATE SET " + ", ".join(f"{c} = excluded.{c}" for c in updates)
        else:
            conflict = "DO NOTHING"
        self._execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT({key}) {conflict}",
            [record[c] for c in columns],
        )

    def delete(self, table: str, record_id: str) -> int:
        """Delete one row by key. Returns the number of rows removed (0 or 1)."""
        key = TABLE_KEYS[table]
        cursor = self._execute(f"DELETE FROM {table} WHERE {key} = ?", (record_id,))
        return cursor.rowcount

    def select(
        self,
        table: str,
        where: str = "",
        params: Sequence[Any] = (),
        order_by: str = "",
    ) -> List[Dict[str, Any]]:
        """
        Select rows from a table.

        ``where`` and ``order_by`` are SQL fragments built by repositories from
        known column names; values always travel through ``params``.
        """
        if table not in TABLE_COLUMNS:
            raise ValueError(f"Unknown table: {table}")
        query = f"SELECT * FROM {table}"
        if where:
            query += f" WHERE {where}"
        if order_by:
            query += f" ORDER BY {order_by}"
        return [dict(row) for row in self._execute(query, params).fetchall()]

    def commit(self) -> None:
        """
        Commit the transaction and start the next one.

        Keeps the store usable for multi-step flows where each step is
        committed on its own.

        Raises:
            ToolError: If commit fails
        """
        conn = self._require_connection()

        if not self._in_transaction:
            return

        try:
            conn.commit()
            conn.execute("BEGIN")
            self._in_transaction = True
        except sqlite3.Error as e:
            raise create_backend_error(
                f"Failed to commit transaction: {str(e)}", retryable=True, original_error=e
            ) from e

    def rollback(self) -> None:
        """
        Rollback the transaction.

        Rollback runs during error handling, so its own failure is not raised
        over the error that triggered it.
        """
        if self.conn is None or not self._in_transaction:
            return

        try:
            self.conn.rollback()
        except sqlite3.Error:
            pass
        finally:
            self._in_transaction = False

"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Mapping

from ..dialects.mysql import MySQLDialect
from ..security.redaction import redact_bindings
from ..utils import PerformanceTracker, get_logger, resolve_slow_query_ms, time_call
from .base import AdapterConnectionError, ConnectionConfig, DatabaseAdapter, validate_bindings


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection


class SQLiteAdapter(DatabaseAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.

    SQLite accepts backtick-quoted identifiers and ``:name`` placeholders, so
    the statements ModalORM generates for MySQL run here unchanged (DDL
    aside).
    """

    def __init__(
        self,
        slow_query_ms: int | None = None,
        *,
        n_plus_one_threshold: int = 5,
    ) -> None:
        self.dialect = MySQLDialect()
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)
        self.tracker = PerformanceTracker(self.logger, n_plus_one_threshold=n_plus_one_threshold)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0

        connection = sqlite3.connect(
            path,
            isolation_level=None if config.autocommit else "",
            timeout=timeout,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")

        if config.isolation_level:
            connection.isolation_level = config.isolation_level

        self.logger.info("Connected to SQLite %s", config.descriptive_label())
        self._state = SQLiteConnectionState(connection)
        return connection

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    def _ensure_connection(self) -> sqlite3.Connection:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, bindings: Mapping[str, Any] | None = None) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        validate_bindings(self.dialect, sql, bindings)
        cursor = connection.cursor()
        with time_call(
            "sqlite.execute",
            self.logger,
            sql=sql,
            params=redact_bindings(bindings),
            threshold_ms=self.slow_query_ms,
        ) as timer:
            cursor.execute(sql, dict(bindings or {}))
        self.tracker.record(sql, bindings, timer.elapsed_ms)
        return cursor

    def query_stats(self) -> list[dict[str, object]]:
        return self.tracker.summary()

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        connection = self._ensure_connection()
        connection.execute("BEGIN")

    def commit(self) -> None:
        connection = self._ensure_connection()
        connection.commit()

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()

    # ------------------------------------------------------------------ #
    def last_insert_id(self, cursor: sqlite3.Cursor, table: str, pk_column: str | None) -> Any:
        return cursor.lastrowid

    @staticmethod
    def _normalize_path(url: str) -> str:
        if url in ("sqlite://", "sqlite:///:memory:", ":memory:"):
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :]
        return url

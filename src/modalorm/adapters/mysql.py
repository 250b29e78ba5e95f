"""
MySQL database adapter implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..dialects.mysql import MySQLDialect
from ..security.redaction import redact_bindings
from ..utils import PerformanceTracker, get_logger, resolve_slow_query_ms, time_call
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    ConnectionConfig,
    DatabaseAdapter,
    validate_bindings,
)


def _load_driver():
    try:
        import pymysql

        return pymysql
    except ImportError:
        return None


@dataclass
class MySQLConnectionState:
    connection: Any
    config: ConnectionConfig
    driver: Any


class MySQLAdapter(DatabaseAdapter):
    """
    Adapter wrapping the PyMySQL DB-API driver.

    Named ``:name`` placeholders are rewritten to PyMySQL's ``%(name)s``
    pyformat style right before execution.
    """

    def __init__(
        self,
        slow_query_ms: int | None = None,
        *,
        n_plus_one_threshold: int = 5,
    ) -> None:
        self.dialect = MySQLDialect()
        self._state: MySQLConnectionState | None = None
        self.logger = get_logger("adapters.mysql")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)
        self.tracker = PerformanceTracker(self.logger, n_plus_one_threshold=n_plus_one_threshold)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("PyMySQL is required to use MySQLAdapter.")
        if not config.dsn:
            raise AdapterConfigurationError(
                "ConnectionConfig must be built from a DSN for MySQL connections."
            )

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.mysql_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to MySQL %s (autocommit=%s)",
            config.descriptive_label(),
            config.autocommit,
        )

        connect_kwargs = {**config.dsn.connect_kwargs(), **options}

        try:
            connection = driver.connect(**connect_kwargs)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to MySQL.") from exc
        connection.autocommit(config.autocommit)
        if config.isolation_level:
            cursor = connection.cursor()
            cursor.execute(f"SET SESSION TRANSACTION ISOLATION LEVEL {config.isolation_level}")

        self._state = MySQLConnectionState(connection, config, driver)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    def _ensure_connection(self):
        if not self._state:
            raise AdapterConnectionError("MySQLAdapter is not connected.")
        conn = self._state.connection
        if getattr(conn, "open", True) is False:
            self.logger.warning("MySQL connection closed; reconnecting.")
            conn = self.connect(self._state.config)
        return conn

    def execute(self, sql: str, bindings: Mapping[str, Any] | None = None):
        connection = self._ensure_connection()
        validate_bindings(self.dialect, sql, bindings)
        cursor = connection.cursor()
        with time_call(
            "mysql.execute",
            self.logger,
            sql=sql,
            params=redact_bindings(bindings),
            threshold_ms=self.slow_query_ms,
        ) as timer:
            if bindings:
                cursor.execute(self.dialect.to_pyformat(sql), dict(bindings))
            else:
                cursor.execute(sql)
        self.tracker.record(sql, bindings, timer.elapsed_ms)
        return cursor

    def query_stats(self) -> list[dict[str, object]]:
        return self.tracker.summary()

    def begin(self) -> None:
        connection = self._ensure_connection()
        connection.begin()

    def commit(self) -> None:
        connection = self._ensure_connection()
        connection.commit()

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()

    def last_insert_id(self, cursor: Any, table: str, pk_column: str | None) -> Any:
        return cursor.lastrowid

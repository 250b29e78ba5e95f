"""
SQL compilation utilities translating builder state into SQL strings.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence, Tuple

from ..dialects.mysql import MySQLDialect
from ..utils import sanitize_identifier
from .conditions import ConditionSet, QueryUsageError

Compiled = Tuple[str, dict[str, Any]]

AGGREGATES = frozenset({"COUNT", "SUM", "AVG", "MIN", "MAX"})


class SQLCompiler:
    """
    Compile query builder state into SQL statements and named bindings.
    """

    def __init__(
        self,
        table: str,
        dialect: MySQLDialect,
        conditions: ConditionSet | None = None,
        *,
        columns: Sequence[str] = (),
        order_by: tuple[str, str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> None:
        self.table = table
        self.dialect = dialect
        self.conditions = conditions if conditions is not None else ConditionSet(dialect=dialect)
        self.columns = tuple(columns)
        self.order_by = order_by
        self.limit = limit
        self.offset = offset

    def compile_select(self) -> Compiled:
        bindings: dict[str, Any] = {}
        sql_parts = [f"SELECT {self._select_list()} FROM {self._table()}"]
        self._append_where(sql_parts, bindings)
        if self.order_by:
            column, direction = self.order_by
            sql_parts.append(f"ORDER BY {self.conditions.quote_column(column)} {direction}")
        limit_clause = self.dialect.limit_clause(self.limit, self.offset)
        if limit_clause:
            sql_parts.append(limit_clause)
        return " ".join(sql_parts), bindings

    def compile_insert(self, data: Mapping[str, Any]) -> Compiled:
        if not data:
            raise QueryUsageError("No data provided for insert.")
        bindings: dict[str, Any] = {}
        columns = []
        placeholders = []
        for index, (column, value) in enumerate(data.items()):
            key = f"v{index}_{sanitize_identifier(column)}"
            bindings[key] = value
            columns.append(self.dialect.quote_identifier(column))
            placeholders.append(self.dialect.parameter_placeholder(key))
        sql = (
            f"INSERT INTO {self._table()} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)})"
        )
        return sql, bindings

    def compile_update(self, data: Mapping[str, Any]) -> Compiled:
        if not data:
            raise QueryUsageError("No data provided for update.")
        bindings: dict[str, Any] = {}
        assignments = []
        for index, (column, value) in enumerate(data.items()):
            key = f"set{index}_{sanitize_identifier(column)}"
            bindings[key] = value
            assignments.append(
                f"{self.dialect.quote_identifier(column)} = {self.dialect.parameter_placeholder(key)}"
            )
        where_sql = self.conditions.render(bindings)
        if not where_sql:
            raise QueryUsageError("Update requires at least one WHERE condition.")
        return f"UPDATE {self._table()} SET {', '.join(assignments)} WHERE {where_sql}", bindings

    def compile_delete(self) -> Compiled:
        bindings: dict[str, Any] = {}
        where_sql = self.conditions.render(bindings)
        if not where_sql:
            raise QueryUsageError("Delete requires at least one WHERE condition.")
        return f"DELETE FROM {self._table()} WHERE {where_sql}", bindings

    def compile_aggregate(self, function: str, column: str | None = None) -> Compiled:
        function = function.upper()
        if function not in AGGREGATES:
            raise QueryUsageError(f"Unsupported aggregate '{function}'.")
        target = "*" if column is None else self.conditions.quote_column(column)
        bindings: dict[str, Any] = {}
        sql_parts = [f"SELECT {function}({target}) AS aggregate FROM {self._table()}"]
        self._append_where(sql_parts, bindings)
        return " ".join(sql_parts), bindings

    def compile_exists(self) -> Compiled:
        bindings: dict[str, Any] = {}
        sql_parts = [f"SELECT 1 AS present FROM {self._table()}"]
        self._append_where(sql_parts, bindings)
        sql_parts.append(self.dialect.limit_clause(1, None))
        return " ".join(sql_parts), bindings

    # Helpers -----------------------------------------------------------
    def _table(self) -> str:
        return self.dialect.format_table(self.table)

    def _select_list(self) -> str:
        if not self.columns:
            return "*"
        return ", ".join(self.conditions.quote_column(column) for column in self.columns)

    def _append_where(self, sql_parts: list[str], bindings: dict[str, Any]) -> None:
        where_sql = self.conditions.render(bindings)
        if where_sql:
            sql_parts.append(f"WHERE {where_sql}")

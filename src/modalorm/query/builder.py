"""
Chainable query builder bound to one table and one adapter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from ..adapters.base import AdapterConfigurationError
from ..dialects.mysql import MySQLDialect
from .compiler import SQLCompiler
from .conditions import ConditionSet, QueryUsageError
from .relations import RelationSet

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter
    from ..schema.descriptor import TableSchema

DIRECTIONS = ("ASC", "DESC")


@dataclass
class QueryState:
    conditions: ConditionSet = field(default_factory=ConditionSet)
    columns: list[str] = field(default_factory=list)
    order_by: Optional[tuple[str, str]] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    attributes: dict[str, Any] = field(default_factory=dict)
    relations: Optional[tuple[str, ...]] = None
    include_hidden: bool = False

    def copy(self) -> "QueryState":
        return QueryState(
            conditions=self.conditions.copy(),
            columns=list(self.columns),
            order_by=self.order_by,
            limit=self.limit,
            offset=self.offset,
            attributes=dict(self.attributes),
            relations=self.relations,
            include_hidden=self.include_hidden,
        )


@dataclass
class Page:
    data: list[dict[str, Any]]
    total: int
    per_page: int
    current_page: int
    last_page: int


class QueryBuilder:
    """
    Accumulates conditions and modifiers, then runs one statement per
    terminal call (``first``, ``get``, ``insert``, ``update``, ``delete``,
    ``count``, ``sum``, ``avg``, ``exists``).

    Every terminal call resets the builder, including when it raises, so a
    builder can be reused as if freshly constructed.
    """

    def __init__(self, source: Any, adapter: "DatabaseAdapter | None" = None) -> None:
        from ..schema.descriptor import SchemaConfigurationError, TableSchema

        schema = source if isinstance(source, TableSchema) else getattr(source, "schema", None)
        if not isinstance(schema, TableSchema):
            raise SchemaConfigurationError(
                f"QueryBuilder needs a table schema or definition, got {type(source).__name__}."
            )
        self.source = source
        self.schema: "TableSchema" = schema
        relations = getattr(source, "relations", None)
        self.relations: RelationSet = relations if relations is not None else RelationSet()
        self.adapter = adapter
        self.reset()

    def __repr__(self) -> str:
        return f"<QueryBuilder table={self.schema.table!r} conditions={len(self.state.conditions)}>"

    @property
    def table(self) -> str:
        return self.schema.table

    # Mutators ----------------------------------------------------------
    def select(self, columns: str | Iterable[str]) -> "QueryBuilder":
        self.state.columns = [columns] if isinstance(columns, str) else list(columns)
        return self

    def where(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self.state.conditions.add_simple(column, operator, value)
        return self

    def or_where(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self.state.conditions.add_simple(column, operator, value, use_or=True)
        return self

    def where_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        self.state.conditions.add_membership(column, values)
        return self

    def where_not_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        self.state.conditions.add_membership(column, values, negated=True)
        return self

    def or_where_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        self.state.conditions.add_membership(column, values, use_or=True)
        return self

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        self.state.conditions.add_membership(column, values, negated=True, use_or=True)
        return self

    def where_between(self, column: str, start: Any, end: Any) -> "QueryBuilder":
        self.state.conditions.add_between(column, start, end)
        return self

    def or_where_between(self, column: str, start: Any, end: Any) -> "QueryBuilder":
        self.state.conditions.add_between(column, start, end, use_or=True)
        return self

    def where_raw(self, sql: str, bindings: Iterable[Any] = ()) -> "QueryBuilder":
        """
        Add a raw fragment; each ``?`` is bound to the next value in ``bindings``.
        """
        self.state.conditions.add_raw(sql, tuple(bindings))
        return self

    def search(self, columns: str | Iterable[str], keyword: str) -> "QueryBuilder":
        self.state.conditions.add_search(columns, keyword)
        return self

    def order_by(self, column: str, direction: str = "ASC") -> "QueryBuilder":
        normalized = direction.upper()
        if normalized not in DIRECTIONS:
            raise QueryUsageError(f"Invalid order direction '{direction}'.")
        self.state.order_by = (column, normalized)
        return self

    def limit(self, value: int) -> "QueryBuilder":
        self.state.limit = self._non_negative(value, "limit")
        return self

    def offset(self, value: int) -> "QueryBuilder":
        self.state.offset = self._non_negative(value, "offset")
        return self

    def fill(self, data: Mapping[str, Any]) -> "QueryBuilder":
        """
        Stage attributes allowed by ``fillable`` (or not ``guarded``).
        """
        for column, value in data.items():
            if self.schema.is_mass_assignable(column):
                self.state.attributes[column] = value
        return self

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self.state.attributes)

    def with_relations(self, *names: str) -> "QueryBuilder":
        available = set(self.relations.names(self.schema))
        unknown = [name for name in names if name not in available]
        if unknown:
            raise QueryUsageError(
                f"Unknown relation(s) {', '.join(unknown)} on table '{self.table}'."
            )
        self.state.relations = tuple(names)
        return self

    def without_relations(self) -> "QueryBuilder":
        self.state.relations = ()
        return self

    def with_hidden(self) -> "QueryBuilder":
        """
        Keep the columns listed in ``hidden`` in fetched rows.
        """
        self.state.include_hidden = True
        return self

    # Terminal operations -----------------------------------------------
    def first(self) -> Optional[dict[str, Any]]:
        try:
            sql, bindings = self._compiler(limit=1).compile_select()
            cursor = self._execute(sql, bindings)
            row = cursor.fetchone()
            if row is None:
                return None
            return self._finalize(cursor, [row])[0]
        finally:
            self.reset()

    def get(self) -> list[dict[str, Any]]:
        try:
            sql, bindings = self._compiler().compile_select()
            cursor = self._execute(sql, bindings)
            return self._finalize(cursor, cursor.fetchall())
        finally:
            self.reset()

    def insert(self, data: Mapping[str, Any] | None = None) -> Any:
        """
        Insert ``data`` (or the staged attributes) and return the new key.
        """
        try:
            payload = dict(data) if data else dict(self.state.attributes)
            sql, bindings = self._compiler().compile_insert(payload)
            cursor = self._execute(sql, bindings)
            return self._require_adapter().last_insert_id(cursor, self.table, self.schema.primary_key)
        finally:
            self.reset()

    def update(self, data: Mapping[str, Any] | None = None) -> int:
        try:
            payload = dict(data) if data else dict(self.state.attributes)
            sql, bindings = self._compiler().compile_update(payload)
            return self._execute(sql, bindings).rowcount
        finally:
            self.reset()

    def delete(self) -> int:
        try:
            sql, bindings = self._compiler().compile_delete()
            return self._execute(sql, bindings).rowcount
        finally:
            self.reset()

    def count(self) -> int:
        value = self._aggregate("COUNT")
        return int(value or 0)

    def sum(self, column: str) -> float:
        value = self._aggregate("SUM", column)
        return float(value) if value is not None else 0.0

    def avg(self, column: str) -> float:
        value = self._aggregate("AVG", column)
        return float(value) if value is not None else 0.0

    def exists(self) -> bool:
        try:
            sql, bindings = self._compiler().compile_exists()
            return self._execute(sql, bindings).fetchone() is not None
        finally:
            self.reset()

    def paginate(self, per_page: int = 10, page: int = 1) -> Page:
        """
        Fetch one page and the total matching rows.

        The conditions configured before the call apply to both the page
        query and the count.
        """
        try:
            if per_page < 1:
                raise QueryUsageError("per_page must be at least 1.")
            if page < 1:
                raise QueryUsageError("page must be at least 1.")
            counter = self._count_clone()
            data = self.limit(per_page).offset((page - 1) * per_page).get()
            total = counter.count()
        finally:
            self.reset()
        return Page(
            data=data,
            total=total,
            per_page=per_page,
            current_page=page,
            last_page=math.ceil(total / per_page),
        )

    def find(self, id: Any, key: str | None = None) -> Optional[dict[str, Any]]:
        return self.where(key or self.schema.primary_key or "id", "=", id).first()

    # Introspection -----------------------------------------------------
    def clone(self) -> "QueryBuilder":
        """
        Copy this builder, pending state included, without executing it.
        """
        other = QueryBuilder(self.source, self.adapter)
        other.state = self.state.copy()
        return other

    def to_sql(self) -> tuple[str, dict[str, Any]]:
        return self._compiler().compile_select()

    def reset(self) -> None:
        self.state = QueryState(conditions=ConditionSet(dialect=self._dialect()))

    # Internal helpers --------------------------------------------------
    def _dialect(self) -> MySQLDialect:
        if self.adapter is not None:
            return self.adapter.dialect
        return MySQLDialect()

    def _compiler(self, *, limit: int | None = None) -> SQLCompiler:
        state = self.state
        return SQLCompiler(
            self.table,
            self._dialect(),
            state.conditions,
            columns=state.columns,
            order_by=state.order_by,
            limit=limit if limit is not None else state.limit,
            offset=state.offset,
        )

    def _require_adapter(self) -> "DatabaseAdapter":
        if self.adapter is None:
            raise AdapterConfigurationError("Database connection not set.")
        return self.adapter

    def _execute(self, sql: str, bindings: dict[str, Any]):
        return self._require_adapter().execute(sql, bindings)

    def _aggregate(self, function: str, column: str | None = None) -> Any:
        try:
            sql, bindings = self._compiler().compile_aggregate(function, column)
            cursor = self._execute(sql, bindings)
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_dict(cursor, row)["aggregate"]
        finally:
            self.reset()

    def _count_clone(self) -> "QueryBuilder":
        counter = QueryBuilder(self.source, self.adapter)
        counter.state.conditions = self.state.conditions.copy()
        return counter

    def _finalize(self, cursor, rows) -> list[dict[str, Any]]:
        records = [self._row_to_dict(cursor, row) for row in rows]
        if self.state.relations != ():
            self.relations.hydrate(
                self._require_adapter(), records, self.schema, only=self.state.relations
            )
        if self.state.include_hidden:
            return records
        hidden = [column for column in self.schema.hidden if column not in self.state.columns]
        for record in records:
            for column in hidden:
                record.pop(column, None)
        return records

    @staticmethod
    def _row_to_dict(cursor, row) -> dict[str, Any]:
        if hasattr(row, "keys"):
            return dict(row)
        if getattr(cursor, "description", None):
            columns = [col[0] for col in cursor.description]
            return {col: row[idx] for idx, col in enumerate(columns)}
        raise ValueError("Unable to map database row to dictionary.")

    @staticmethod
    def _non_negative(value: int, label: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise QueryUsageError(f"{label} must be a non-negative integer, got {value!r}.")
        return value

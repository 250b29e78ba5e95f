"""
Table definitions: a schema, its optional update target and its relations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..query.builder import QueryBuilder
from ..query.relations import RelationSet
from ..schema.descriptor import TableSchema

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter
    from ..schema.migration import Migration


class TableDefinition:
    """
    Composes a :class:`TableSchema` with the relations declared on it.

    ``update`` is a second schema describing the table's target shape; it is
    only used to diff ``alter_sql()`` statements.
    """

    def __init__(self, schema: TableSchema, *, update: Optional[TableSchema] = None) -> None:
        self.schema = schema
        self.update = update
        self.relations = RelationSet()

    def __repr__(self) -> str:
        return f"<TableDefinition {self.table}>"

    @property
    def table(self) -> str:
        return self.schema.table

    def query(self, adapter: "DatabaseAdapter | None" = None) -> QueryBuilder:
        return QueryBuilder(self, adapter)

    def create_sql(self) -> str:
        return self.schema.create_sql()

    def alter_sql(self) -> list[str]:
        if self.update is None:
            return []
        return self.schema.alter_sql(self.update)

    def drop_sql(self) -> str:
        return self.schema.drop_sql()

    def migration(self) -> "Migration":
        from ..schema.migration import Migration

        return Migration.from_definition(self)

"""
Schema builder converting table metadata into DDL statements.
"""

from __future__ import annotations

import re
from typing import Any, List

from ..dialects.mysql import MySQLDialect
from ..utils import get_logger
from .descriptor import ColumnSpec, ForeignKeySpec, IndexSpec, TableSchema

_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")
_RAW_DEFAULTS = {"CURRENT_TIMESTAMP", "NULL"}


class SchemaBuilder:
    """
    Produces MySQL-flavoured DDL for schema manipulation.
    """

    def __init__(self, dialect: MySQLDialect | None = None) -> None:
        self.dialect = dialect or MySQLDialect()
        self.logger = get_logger("schema.builder")

    def create_table_sql(self, schema: TableSchema) -> str:
        quote = self.dialect.quote_identifier
        pieces: List[str] = [
            self.column_definition(name, column) for name, column in schema.all_columns().items()
        ]
        if schema.primary_key:
            pieces.append(f"PRIMARY KEY ({quote(schema.primary_key)})")
        for index in schema.indexes:
            pieces.append(self._index_definition(index))
        for fk in schema.foreign_keys:
            pieces.append(self._constraint_definition(schema, fk))

        table_name = self.dialect.format_table(schema.table)
        sql = f"CREATE TABLE IF NOT EXISTS {table_name} ({', '.join(pieces)})"
        if schema.comment:
            sql += f" COMMENT={self.dialect.quote_string(schema.comment)}"
        sql += f" AUTO_INCREMENT={int(schema.auto_increment_start)}"
        return sql

    def alter_table_sql(self, old: TableSchema, new: TableSchema) -> list[str]:
        """
        Diff ``old`` against ``new`` and return ALTER statements in order:
        columns, primary key, indexes, foreign keys. Columns missing from
        ``new`` are left in place.
        """
        prefix = f"ALTER TABLE {self.dialect.format_table(old.table)}"
        statements: list[str] = []

        old_columns = old.all_columns()
        for name, column in new.all_columns().items():
            definition = self.column_definition(name, column)
            if name not in old_columns:
                statements.append(f"{prefix} ADD COLUMN {definition}")
            elif old_columns[name] != column:
                statements.append(f"{prefix} MODIFY COLUMN {definition}")

        if new.primary_key and new.primary_key != old.primary_key:
            if old.primary_key:
                statements.append(f"{prefix} DROP PRIMARY KEY")
            statements.append(
                f"{prefix} ADD PRIMARY KEY ({self.dialect.quote_identifier(new.primary_key)})"
            )

        for index in old.indexes:
            if index not in new.indexes:
                statements.append(f"{prefix} DROP INDEX {self.dialect.quote_identifier(index.name)}")
        for index in new.indexes:
            if index not in old.indexes:
                statements.append(f"{prefix} ADD {self._index_definition(index)}")

        for fk in old.foreign_keys:
            if fk not in new.foreign_keys:
                name = self.dialect.quote_identifier(self.foreign_key_name(old, fk))
                statements.append(f"{prefix} DROP FOREIGN KEY {name}")
        for fk in new.foreign_keys:
            if fk not in old.foreign_keys:
                statements.append(f"{prefix} ADD {self._constraint_definition(old, fk)}")

        return statements

    def drop_table_sql(self, schema: TableSchema) -> str:
        table_name = self.dialect.format_table(schema.table)
        self.logger.warning(
            "DROP TABLE generated for %s; confirm destructive migration before applying.",
            table_name,
        )
        return f"DROP TABLE IF EXISTS {table_name}"

    # Fragments ---------------------------------------------------------
    def column_definition(self, name: str, column: ColumnSpec) -> str:
        parts = [self.dialect.quote_identifier(name), column.type]
        if not column.nullable:
            parts.append("NOT NULL")
        if column.auto_increment:
            parts.append("AUTO_INCREMENT")
        if column.default is not None:
            parts.append(f"DEFAULT {self.default_literal(column.default)}")
        if column.unique:
            parts.append("UNIQUE")
        return " ".join(parts)

    def default_literal(self, value: Any) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        text = str(value)
        if text.upper() in _RAW_DEFAULTS or _NUMERIC.match(text):
            return text
        return self.dialect.quote_string(text)

    @staticmethod
    def foreign_key_name(schema: TableSchema, fk: ForeignKeySpec) -> str:
        return f"fk_{schema.table}_{fk.column}"

    def _index_definition(self, index: IndexSpec) -> str:
        quote = self.dialect.quote_identifier
        columns = ", ".join(quote(column) for column in index.columns)
        return f"{index.type} {quote(index.name)} ({columns})"

    def _constraint_definition(self, schema: TableSchema, fk: ForeignKeySpec) -> str:
        quote = self.dialect.quote_identifier
        return (
            f"CONSTRAINT {quote(self.foreign_key_name(schema, fk))} "
            f"FOREIGN KEY ({quote(fk.column)}) "
            f"REFERENCES {self.dialect.format_table(fk.ref_table)} ({quote(fk.ref_column)}) "
            f"ON DELETE {fk.on_delete} ON UPDATE {fk.on_update}"
        )

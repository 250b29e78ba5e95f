"""
Table metadata: columns, keys, indexes and foreign keys for one table.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


class SchemaConfigurationError(Exception):
    """Raised when table metadata is misconfigured."""


REFERENTIAL_ACTIONS = frozenset({"CASCADE", "RESTRICT", "SET NULL", "NO ACTION", "SET DEFAULT"})
INDEX_TYPES = frozenset({"INDEX", "UNIQUE", "FULLTEXT", "SPATIAL"})


@dataclass(frozen=True)
class ColumnSpec:
    type: str
    nullable: bool = False
    default: Any = None
    auto_increment: bool = False
    unique: bool = False


@dataclass(frozen=True)
class IndexSpec:
    """
    Index metadata. Two indexes are the same when type and columns match;
    the name only labels the index in DDL.
    """

    type: str
    columns: tuple[str, ...]
    name: str = field(default="", compare=False)


@dataclass(frozen=True)
class ForeignKeySpec:
    column: str
    ref_table: str
    ref_column: str
    on_delete: str = "CASCADE"
    on_update: str = "CASCADE"
    references: Optional["TableSchema"] = field(default=None, compare=False, repr=False)
    relation_name: str = field(default="", compare=False)


TIMESTAMP_COLUMNS = ("created_at", "updated_at")
SOFT_DELETE_COLUMN = "deleted_at"


def _timestamp_column() -> ColumnSpec:
    return ColumnSpec(type="DATETIME", nullable=False, default="CURRENT_TIMESTAMP")


class TableSchema:
    """
    Column, key, index and foreign-key metadata for a single table.

    The table name is ``prefix + name + suffix``. Setting the primary key also
    guards it from mass assignment.
    """

    def __init__(
        self,
        name: str,
        *,
        prefix: str = "",
        suffix: str = "",
        comment: str = "",
        auto_increment_start: int = 1,
        timestamps: bool = False,
        soft_deletes: bool = False,
        fillable: Iterable[str] = (),
        guarded: Iterable[str] = (),
        hidden: Iterable[str] = (),
    ) -> None:
        if not name:
            raise SchemaConfigurationError("Table name must not be empty.")
        self.name = name
        self.prefix = prefix
        self.suffix = suffix
        self.comment = comment
        self.auto_increment_start = auto_increment_start
        self.timestamps = timestamps
        self.soft_deletes = soft_deletes
        self.fillable: list[str] = list(fillable)
        self.guarded: list[str] = list(guarded)
        self.hidden: list[str] = list(hidden)
        self.columns: "OrderedDict[str, ColumnSpec]" = OrderedDict()
        self.primary_key: Optional[str] = None
        self.indexes: list[IndexSpec] = []
        self.foreign_keys: list[ForeignKeySpec] = []

    def __repr__(self) -> str:
        return f"<TableSchema {self.table} columns={list(self.columns)}>"

    @property
    def table(self) -> str:
        return f"{self.prefix}{self.name}{self.suffix}"

    # Configuration -----------------------------------------------------
    def add_column(
        self,
        name: str,
        type: str,
        *,
        nullable: bool = False,
        default: Any = None,
        auto_increment: bool = False,
        unique: bool = False,
    ) -> "TableSchema":
        if not name:
            raise SchemaConfigurationError(f"Column name on '{self.table}' must not be empty.")
        if name in self.columns:
            raise SchemaConfigurationError(f"Duplicate column '{name}' on table '{self.table}'.")
        self.columns[name] = self._column_spec(name, type, nullable, default, auto_increment, unique)
        return self

    def modify_column(
        self,
        name: str,
        type: str,
        *,
        nullable: bool = False,
        default: Any = None,
        auto_increment: bool = False,
        unique: bool = False,
    ) -> "TableSchema":
        """
        Replace an existing column's attributes, keeping its position.
        """
        self._require_column(name, "modified column")
        self.columns[name] = self._column_spec(name, type, nullable, default, auto_increment, unique)
        return self

    def _column_spec(
        self, name: str, type: str, nullable: bool, default: Any, auto_increment: bool, unique: bool
    ) -> ColumnSpec:
        if not type:
            raise SchemaConfigurationError(f"Column '{name}' on '{self.table}' needs a SQL type.")
        return ColumnSpec(
            type=type.strip(),
            nullable=nullable,
            default=default,
            auto_increment=auto_increment,
            unique=unique,
        )

    def set_primary_key(self, column: str) -> "TableSchema":
        self._require_column(column, "primary key")
        self.primary_key = column
        if column not in self.guarded:
            self.guarded.append(column)
        return self

    def add_index(
        self, columns: str | Iterable[str], *, type: str = "INDEX", name: str | None = None
    ) -> "TableSchema":
        cols = (columns,) if isinstance(columns, str) else tuple(columns)
        if not cols:
            raise SchemaConfigurationError(f"Index on '{self.table}' needs at least one column.")
        for column in cols:
            self._require_column(column, "index")
        index_type = type.upper()
        if index_type not in INDEX_TYPES:
            raise SchemaConfigurationError(f"Unsupported index type '{type}'.")
        index_name = name or f"idx_{self.table}_{'_'.join(cols)}"
        self.indexes.append(IndexSpec(type=index_type, columns=cols, name=index_name))
        return self

    def add_foreign_key(
        self,
        column: str,
        references: Any,
        ref_column: str = "id",
        *,
        on_delete: str = "CASCADE",
        on_update: str = "CASCADE",
        relation_name: str | None = None,
    ) -> "TableSchema":
        """
        Reference another table. ``references`` must be a :class:`TableSchema`
        or an object exposing one as ``.schema`` (a table definition).
        """
        target = references if isinstance(references, TableSchema) else getattr(references, "schema", None)
        if not isinstance(target, TableSchema):
            raise SchemaConfigurationError(
                f"Foreign key '{self.table}.{column}' must reference a table schema or "
                f"definition, got {type(references).__name__}."
            )
        self._require_column(column, "foreign key")
        actions = {"on_delete": on_delete.upper(), "on_update": on_update.upper()}
        for label, action in actions.items():
            if action not in REFERENTIAL_ACTIONS:
                raise SchemaConfigurationError(f"Invalid {label} action '{action}'.")
        self.foreign_keys.append(
            ForeignKeySpec(
                column=column,
                ref_table=target.table,
                ref_column=ref_column,
                on_delete=actions["on_delete"],
                on_update=actions["on_update"],
                references=target,
                relation_name=relation_name or target.name,
            )
        )
        return self

    def _require_column(self, column: str, usage: str) -> None:
        if column not in self.columns:
            raise SchemaConfigurationError(
                f"Unknown column '{column}' used as {usage} on table '{self.table}'."
            )

    # Introspection -----------------------------------------------------
    def extra_columns(self) -> "OrderedDict[str, ColumnSpec]":
        extras: "OrderedDict[str, ColumnSpec]" = OrderedDict()
        if self.timestamps:
            for name in TIMESTAMP_COLUMNS:
                extras[name] = _timestamp_column()
        if self.soft_deletes:
            extras[SOFT_DELETE_COLUMN] = ColumnSpec(type="DATETIME", nullable=True)
        return extras

    def all_columns(self) -> "OrderedDict[str, ColumnSpec]":
        merged = OrderedDict(self.columns)
        merged.update(self.extra_columns())
        return merged

    def is_mass_assignable(self, column: str) -> bool:
        if self.fillable:
            return column in self.fillable
        return column not in self.guarded

    def clone(self, **overrides: Any) -> "TableSchema":
        """
        Copy this schema, typically to describe the target of a migration.
        """
        settings = {
            "prefix": self.prefix,
            "suffix": self.suffix,
            "comment": self.comment,
            "auto_increment_start": self.auto_increment_start,
            "timestamps": self.timestamps,
            "soft_deletes": self.soft_deletes,
            "fillable": self.fillable,
            "guarded": self.guarded,
            "hidden": self.hidden,
        }
        settings.update(overrides)
        copy = TableSchema(overrides.get("name", self.name), **{k: v for k, v in settings.items() if k != "name"})
        copy.columns = OrderedDict(self.columns)
        copy.primary_key = self.primary_key
        copy.indexes = list(self.indexes)
        copy.foreign_keys = list(self.foreign_keys)
        return copy

    # DDL ---------------------------------------------------------------
    def create_sql(self) -> str:
        from .builder import SchemaBuilder

        return SchemaBuilder().create_table_sql(self)

    def alter_sql(self, other: "TableSchema") -> list[str]:
        from .builder import SchemaBuilder

        return SchemaBuilder().alter_table_sql(self, other)

    def drop_sql(self) -> str:
        from .builder import SchemaBuilder

        return SchemaBuilder().drop_table_sql(self)

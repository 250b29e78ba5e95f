"""
Schema metadata, DDL generation and migrations.
"""

from .builder import SchemaBuilder
from .descriptor import (
    ColumnSpec,
    ForeignKeySpec,
    IndexSpec,
    SchemaConfigurationError,
    TableSchema,
)
from .migration import NO_MIGRATIONS, Migration, MigrationRunner, load_migrations
from .writer import MigrationWriter

__all__ = [
    "ColumnSpec",
    "ForeignKeySpec",
    "IndexSpec",
    "Migration",
    "MigrationRunner",
    "MigrationWriter",
    "NO_MIGRATIONS",
    "SchemaBuilder",
    "SchemaConfigurationError",
    "TableSchema",
    "load_migrations",
]

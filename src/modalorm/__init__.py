"""
ModalORM public package initialization.

Exposes table definitions, the query builder, adapters and migration
tooling.
"""

from .adapters import (  # noqa: F401
    AdapterConfigurationError,
    ConnectionConfig,
    MySQLAdapter,
    SQLiteAdapter,
    connect_adapter,
)
from .core import DefinitionRegistry, TableDefinition  # noqa: F401
from .query import Page, QueryBuilder, QueryUsageError  # noqa: F401
from .schema import (  # noqa: F401
    Migration,
    MigrationRunner,
    MigrationWriter,
    SchemaBuilder,
    SchemaConfigurationError,
    TableSchema,
)

__all__ = [
    "AdapterConfigurationError",
    "ConnectionConfig",
    "DefinitionRegistry",
    "Migration",
    "MigrationRunner",
    "MigrationWriter",
    "MySQLAdapter",
    "Page",
    "QueryBuilder",
    "QueryUsageError",
    "SQLiteAdapter",
    "SchemaBuilder",
    "SchemaConfigurationError",
    "TableDefinition",
    "TableSchema",
    "connect_adapter",
]

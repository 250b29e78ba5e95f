"""
Database adapter interfaces and implementations.
"""

from __future__ import annotations

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    ConnectionConfig,
    DatabaseAdapter,
    SSLConfig,
)
from .mysql import MySQLAdapter
from .sqlite import SQLiteAdapter

_ADAPTERS = {
    "sqlite": SQLiteAdapter,
    "mysql": MySQLAdapter,
    "mysql+pymysql": MySQLAdapter,
}


def connect_adapter(config: ConnectionConfig | str) -> DatabaseAdapter:
    """
    Instantiate and connect the adapter matching the DSN scheme.
    """
    if isinstance(config, str):
        config = ConnectionConfig.from_dsn(config)
    adapter_cls = _ADAPTERS.get(config.scheme)
    if adapter_cls is None:
        raise AdapterConfigurationError(
            f"Unsupported database scheme '{config.scheme}' in {config.redacted_dsn()}"
        )
    adapter = adapter_cls()
    adapter.connect(config)
    return adapter


__all__ = [
    "ConnectionConfig",
    "DatabaseAdapter",
    "SSLConfig",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "SQLiteAdapter",
    "MySQLAdapter",
    "connect_adapter",
]

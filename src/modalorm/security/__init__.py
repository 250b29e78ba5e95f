"""Security helpers for ModalORM."""

from .dsns import DATABASE_URL_ENV, DSNConfig, parse_dsn, resolve_database_url
from .migrations import DestructiveOperationError, confirm_destructive_operation, is_destructive
from .redaction import redact_bindings

__all__ = [
    "DATABASE_URL_ENV",
    "DSNConfig",
    "DestructiveOperationError",
    "confirm_destructive_operation",
    "is_destructive",
    "parse_dsn",
    "redact_bindings",
    "resolve_database_url",
]

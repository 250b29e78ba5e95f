"""Confirmation guard for schema statements that destroy data."""

from __future__ import annotations

import re

from ..utils import get_logger

_DESTRUCTIVE = re.compile(r"^\s*(DROP\s+TABLE|TRUNCATE)\b", re.IGNORECASE)

logger = get_logger("security.migrations")


class DestructiveOperationError(RuntimeError):
    """A table-destroying statement was about to run without ``force``."""

    def __init__(self, table: str, sql: str) -> None:
        self.table = table
        self.sql = sql
        super().__init__(
            f"Dropping table '{table}' requires explicit confirmation (force=True, or --force)."
        )


def is_destructive(sql: str) -> bool:
    return bool(_DESTRUCTIVE.match(sql))


def confirm_destructive_operation(table: str, sql: str, *, force: bool = False) -> None:
    """
    Let ``sql`` through unless it drops or truncates ``table`` and ``force``
    is not set. Forced statements are logged at WARNING.
    """
    if not is_destructive(sql):
        return
    if not force:
        raise DestructiveOperationError(table, sql)
    logger.warning("Forced destructive statement on %s: %s", table, sql)

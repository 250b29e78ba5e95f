"""
Migration units and the runner executing them statement by statement.
"""

from __future__ import annotations

import importlib
from typing import Any, Iterable, List, Sequence

from ..adapters.base import DatabaseAdapter
from ..security.migrations import confirm_destructive_operation
from ..utils import get_logger

NO_MIGRATIONS = "No migrations found. Generate migration files first."


class Migration:
    """
    One table's DDL: ``up()`` creates, ``modify()`` alters, ``down()`` drops.

    Generated migration modules subclass this and set the class attributes;
    :meth:`from_definition` builds an instance straight from a table
    definition.
    """

    table: str = ""
    create_sql: str = ""
    alter_sql: Sequence[str] = ()
    drop_sql: str = ""

    def __init__(
        self,
        table: str | None = None,
        *,
        create_sql: str | None = None,
        alter_sql: Sequence[str] | None = None,
        drop_sql: str | None = None,
    ) -> None:
        if table is not None:
            self.table = table
        if create_sql is not None:
            self.create_sql = create_sql
        if alter_sql is not None:
            self.alter_sql = list(alter_sql)
        if drop_sql is not None:
            self.drop_sql = drop_sql

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.table!r}>"

    @classmethod
    def from_definition(cls, definition: Any) -> "Migration":
        return cls(
            definition.table,
            create_sql=definition.create_sql(),
            alter_sql=definition.alter_sql(),
            drop_sql=definition.drop_sql(),
        )

    def up(self) -> str:
        return self.create_sql

    def modify(self) -> list[str]:
        return list(self.alter_sql)

    def down(self) -> str:
        return self.drop_sql

    def get_table(self) -> str:
        return self.table


def load_migrations(package: str) -> list[Migration]:
    """
    Import ``package`` and instantiate the classes in its ``MIGRATIONS`` list.
    """
    module = importlib.import_module(package)
    classes = getattr(module, "MIGRATIONS", None)
    if classes is None:
        raise LookupError(f"Package '{package}' does not define a MIGRATIONS list.")
    return [migration_cls() for migration_cls in classes]


class MigrationRunner:
    """
    Executes migration units against an adapter.

    Every statement runs on its own: a failure is logged and recorded as a
    status line, then processing moves on to the next statement.
    """

    def __init__(self, adapter: DatabaseAdapter) -> None:
        self.adapter = adapter
        self.logger = get_logger("schema.migration")

    def up(self, migrations: Iterable[Migration]) -> List[str]:
        units = list(migrations)
        if not units:
            return [NO_MIGRATIONS]
        statuses: List[str] = []
        for migration in units:
            table = migration.get_table()
            statuses.append(
                self._run(
                    migration.up(),
                    success=f"Migration for table {table} was successful.",
                    failure=f"Migration for table {table} failed",
                )
            )
        return statuses

    def modify(self, migrations: Iterable[Migration]) -> List[str]:
        units = list(migrations)
        if not units:
            return [NO_MIGRATIONS]
        statuses: List[str] = []
        for migration in units:
            table = migration.get_table()
            statements = migration.modify()
            if not statements:
                statuses.append(f"No modifications for table {table}.")
                continue
            for sql in statements:
                statuses.append(
                    self._run(
                        sql,
                        success=f"Migration modification for table {table} was successful.",
                        failure=f"Migration modification for table {table} failed",
                    )
                )
        return statuses

    def down(self, migrations: Iterable[Migration], *, force: bool = False) -> List[str]:
        units = list(migrations)
        if not units:
            return [NO_MIGRATIONS]
        for migration in units:
            confirm_destructive_operation(migration.get_table(), migration.down(), force=force)
        statuses: List[str] = []
        for migration in units:
            table = migration.get_table()
            statuses.append(
                self._run(
                    migration.down(),
                    success=f"Table {table} dropped successfully.",
                    failure=f"Dropping table {table} failed",
                )
            )
        return statuses

    def _run(self, sql: str, *, success: str, failure: str) -> str:
        try:
            self.adapter.execute(sql)
        except Exception as exc:
            self.logger.error("%s: %s", failure, exc, extra={"sql": sql})
            return f"{failure}: {exc}"
        self.logger.info(success)
        return success

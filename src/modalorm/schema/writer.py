"""
Code generation for migration modules.

Each table definition becomes ``create_migration_for_<table>_<NNNN>.py``
holding a :class:`~modalorm.schema.migration.Migration` subclass. The
package ``__init__.py`` is rewritten with an ordered ``MIGRATIONS`` list, the
registry the runner loads.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, List

from ..utils import get_logger, sanitize_identifier, snake_to_camel

MANIFEST = "__init__.py"
_IMPORT_LINE = re.compile(r"^from \.(\w+) import (\w+)$")

_MODULE_TEMPLATE = '''"""Generated migration for table `{table}`."""

from modalorm.schema.migration import Migration


class {class_name}(Migration):
    table = {table!r}
    create_sql = {create_sql!r}
    alter_sql = [{alter_sql}]
    drop_sql = {drop_sql!r}
'''


class MigrationWriter:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.logger = get_logger("schema.writer")

    def write(self, definitions: Iterable[Any]) -> List[str]:
        """
        Generate one migration module per definition and refresh the manifest.
        Returns one status line per definition.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        entries = self.manifest_entries()
        statuses: List[str] = []
        for definition in definitions:
            table = definition.table
            module_name, class_name = self._next_names(table)
            source = self.render(definition, class_name)
            path = self.directory / f"{module_name}.py"
            try:
                path.write_text(source, encoding="utf-8")
            except OSError as exc:
                self.logger.error("Failed to write migration %s: %s", path, exc)
                statuses.append(f"Failed to create migration for table {table}: {exc}")
                continue
            entries.append((module_name, class_name))
            self.logger.info("Wrote migration %s", path)
            statuses.append(f"Migration for table {table} created successfully ({path.name}).")
        self._write_manifest(entries)
        return statuses

    def render(self, definition: Any, class_name: str) -> str:
        alter = definition.alter_sql()
        alter_sql = "".join(f"\n        {sql!r}," for sql in alter)
        if alter:
            alter_sql += "\n    "
        return _MODULE_TEMPLATE.format(
            table=definition.table,
            class_name=class_name,
            create_sql=definition.create_sql(),
            alter_sql=alter_sql,
            drop_sql=definition.drop_sql(),
        )

    def manifest_entries(self) -> list[tuple[str, str]]:
        manifest = self.directory / MANIFEST
        if not manifest.exists():
            return []
        entries = []
        for line in manifest.read_text(encoding="utf-8").splitlines():
            match = _IMPORT_LINE.match(line.strip())
            if match:
                entries.append((match.group(1), match.group(2)))
        return entries

    def _next_names(self, table: str) -> tuple[str, str]:
        index = 1
        while (self.directory / f"{self._module_name(table, index)}.py").exists():
            index += 1
        return self._module_name(table, index), f"CreateMigrationFor{snake_to_camel(table)}{index:03d}"

    @staticmethod
    def _module_name(table: str, index: int) -> str:
        return f"create_migration_for_{sanitize_identifier(table)}_{index:04d}"

    def _write_manifest(self, entries: list[tuple[str, str]]) -> None:
        lines = ['"""Generated migration registry, in execution order."""', ""]
        lines.extend(f"from .{module} import {cls}" for module, cls in entries)
        lines.append("")
        lines.append("MIGRATIONS = [")
        lines.extend(f"    {cls}," for _, cls in entries)
        lines.append("]")
        (self.directory / MANIFEST).write_text("\n".join(lines) + "\n", encoding="utf-8")

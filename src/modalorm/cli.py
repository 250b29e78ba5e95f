"""
Command line entry point: ``modalorm generate|up|modify|down``.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import Any, Iterable, Sequence

from .adapters import AdapterError, ConnectionConfig, connect_adapter
from .core import DefinitionRegistry, TableDefinition
from .schema.migration import Migration, MigrationRunner, load_migrations
from .schema.writer import MigrationWriter
from .security.dsns import DATABASE_URL_ENV, resolve_database_url
from .security.migrations import DestructiveOperationError
from .utils import configure_logging


class CLIError(Exception):
    """Raised for invalid command line input."""


def load_object(path: str) -> Any:
    """
    Resolve ``package.module:attribute``.
    """
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise CLIError(f"Expected 'module:attribute', got '{path}'.")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        raise CLIError(f"Module '{module_name}' has no attribute '{attribute}'.") from exc


def load_definitions(path: str) -> list[TableDefinition]:
    target = load_object(path)
    if callable(target) and not isinstance(target, DefinitionRegistry):
        target = target()
    if isinstance(target, DefinitionRegistry):
        return target.definitions()
    definitions = list(target)
    for definition in definitions:
        if not isinstance(definition, TableDefinition):
            raise CLIError(f"'{path}' yielded {type(definition).__name__}, expected TableDefinition.")
    return definitions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modalorm", description="ModalORM migration tool")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Write migration modules from definitions")
    generate.add_argument("--registry", required=True, help="Definitions as module:attribute")
    generate.add_argument("--migrations-dir", required=True, help="Output migrations package directory")

    for name, help_text in (
        ("up", "Create tables"),
        ("modify", "Apply ALTER statements"),
        ("down", "Drop tables"),
    ):
        sub = commands.add_parser(name, help=help_text)
        source = sub.add_mutually_exclusive_group(required=True)
        source.add_argument("--migrations", help="Importable migrations package")
        source.add_argument("--registry", help="Definitions as module:attribute")
        sub.add_argument("--dsn", help=f"Database URL (default: ${DATABASE_URL_ENV})")
        if name == "down":
            sub.add_argument("--force", action="store_true", help="Confirm dropping tables")
    return parser


def _migrations(args: argparse.Namespace) -> list[Migration]:
    if args.migrations:
        return load_migrations(args.migrations)
    return [definition.migration() for definition in load_definitions(args.registry)]


def _run(args: argparse.Namespace) -> list[str]:
    if args.command == "generate":
        writer = MigrationWriter(args.migrations_dir)
        return writer.write(load_definitions(args.registry))

    dsn = resolve_database_url(args.dsn)
    if not dsn:
        raise CLIError(f"No database URL given; pass --dsn or set {DATABASE_URL_ENV}.")
    migrations = _migrations(args)
    adapter = connect_adapter(ConnectionConfig.from_dsn(dsn, autocommit=True))
    try:
        runner = MigrationRunner(adapter)
        if args.command == "up":
            return runner.up(migrations)
        if args.command == "modify":
            return runner.modify(migrations)
        return runner.down(migrations, force=args.force)
    finally:
        adapter.close()


def _print(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    if args.verbose:
        logging.getLogger("modalorm").setLevel(logging.DEBUG)
    try:
        _print(_run(args))
    except (CLIError, AdapterError, DestructiveOperationError, ImportError, LookupError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Utility helpers for running the users/roles example end-to-end on SQLite.
"""

from __future__ import annotations

from typing import Any, Dict

from modalorm.adapters import ConnectionConfig, SQLiteAdapter
from modalorm.utils import get_logger

from .definitions import build_definitions

logger = get_logger("examples.user_roles")

# The generated DDL targets MySQL; SQLite gets an equivalent hand-written schema.
SQLITE_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS users ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name VARCHAR(100) NOT NULL, "
    "email VARCHAR(150) NOT NULL UNIQUE, "
    "password VARCHAR(255) NOT NULL, "
    "created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP, "
    "updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP, "
    "deleted_at DATETIME)",
    "CREATE TABLE IF NOT EXISTS roles ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "role_name VARCHAR(100) NOT NULL UNIQUE, "
    "uid INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE, "
    "description TEXT, "
    "created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP, "
    "updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP, "
    "deleted_at DATETIME)",
)


def bootstrap_adapter(dsn: str = "sqlite:///:memory:") -> SQLiteAdapter:
    """
    Connect a SQLite adapter and ensure the users/roles tables exist.
    """
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=dsn))
    for statement in SQLITE_SCHEMA:
        adapter.execute(statement)
    return adapter


def seed_sample_data(adapter: SQLiteAdapter) -> Dict[str, Any]:
    definitions = build_definitions()
    users = definitions["users"].query(adapter)
    roles = definitions["roles"].query(adapter)

    alice = users.fill({"name": "Alice", "email": "alice@example.com", "password": "secret"}).insert()
    bob = users.fill({"name": "Bob", "email": "bob@example.com", "password": "pass"}).insert()
    charlie = users.fill({"name": "Charlie", "email": "charlie@example.com", "password": "1234"}).insert()

    roles.fill({"role_name": "Admin", "uid": alice}).insert()
    roles.fill({"role_name": "Editor", "uid": bob}).insert()
    roles.fill({"role_name": "Subscriber", "uid": bob}).insert()
    roles.fill({"role_name": "Viewer", "uid": charlie}).insert()
    return {"alice": alice, "bob": bob, "charlie": charlie}


def run_demo(dsn: str = "sqlite:///:memory:") -> Dict[str, Any]:
    """
    Seed the sample data and run the showcase queries, returning their results.
    """
    adapter = bootstrap_adapter(dsn)
    try:
        ids = seed_sample_data(adapter)
        definitions = build_definitions()
        users = definitions["users"].query(adapter)
        roles = definitions["roles"].query(adapter)

        results: Dict[str, Any] = {}
        results["selected"] = (
            users.select(["id", "name"]).without_relations().order_by("id").limit(3).get()
        )
        results["bob"] = users.find(ids["bob"])
        results["editor"] = roles.where("role_name", "=", "Editor").first()
        results["complex"] = (
            users.where_in("id", [ids["alice"], ids["bob"]])
            .or_where("name", "=", "Charlie")
            .order_by("id", "DESC")
            .get()
        )
        results["updated"] = users.where("id", "=", ids["alice"]).fill({"name": "Alice Updated"}).update()
        results["deleted"] = roles.where("role_name", "=", "Viewer").delete()
        results["remaining_roles"] = roles.count()
        results["page"] = users.order_by("id").paginate(per_page=2, page=2)
        logger.info("Demo finished with %s queries", adapter.tracker.total_queries)
        return results
    finally:
        adapter.close()

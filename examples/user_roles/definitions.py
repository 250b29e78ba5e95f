"""
Table definitions for the users/roles sample application.
"""

from __future__ import annotations

from functools import lru_cache

from modalorm import DefinitionRegistry, TableDefinition, TableSchema


def _users_schema() -> TableSchema:
    schema = TableSchema("users", timestamps=True, soft_deletes=True, hidden=["password"])
    schema.add_column("id", "INT", auto_increment=True)
    schema.add_column("name", "VARCHAR(100)")
    schema.add_column("email", "VARCHAR(150)", unique=True)
    schema.add_column("password", "VARCHAR(255)")
    schema.set_primary_key("id")
    return schema


def _roles_schema() -> TableSchema:
    schema = TableSchema("roles", timestamps=True, soft_deletes=True)
    schema.add_column("id", "INT", auto_increment=True)
    schema.add_column("role_name", "VARCHAR(100)", unique=True)
    schema.add_column("uid", "INT")
    schema.add_column("description", "TEXT", nullable=True)
    schema.set_primary_key("id")
    return schema


@lru_cache(maxsize=None)
def build_definitions() -> dict[str, TableDefinition]:
    """
    Build both definitions together so each can reference the other.
    """
    users_schema = _users_schema()
    users_update = users_schema.clone()
    users_update.modify_column("name", "VARCHAR(200)")
    users_update.add_column("status", "ENUM('active', 'inactive')", default="active")
    users = TableDefinition(users_schema, update=users_update)

    roles = TableDefinition(_roles_schema())
    roles.schema.add_foreign_key("uid", users, "id", relation_name="owner")

    users.relations.has_many("roles", roles, foreign_key="uid")
    roles.relations.belongs_to("user", users, foreign_key="uid")
    return {"users": users, "roles": roles}


registry = DefinitionRegistry()
registry.register("users", lambda: build_definitions()["users"])
registry.register("roles", lambda: build_definitions()["roles"])

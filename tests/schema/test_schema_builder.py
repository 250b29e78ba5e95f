import logging

import pytest

from modalorm.core import TableDefinition
from modalorm.schema import SchemaBuilder, SchemaConfigurationError, TableSchema


def make_users() -> TableSchema:
    schema = TableSchema("users", comment="Registered accounts")
    schema.add_column("id", "INT", auto_increment=True)
    schema.add_column("name", "VARCHAR(100)")
    schema.add_column("email", "VARCHAR(150)", unique=True)
    schema.add_column("active", "TINYINT(1)", default=True)
    schema.add_column("score", "INT", nullable=True, default=0)
    schema.add_column("motto", "VARCHAR(50)", nullable=True, default="it's fine")
    schema.set_primary_key("id")
    return schema


def test_create_table_sql_orders_clauses():
    sql = make_users().create_sql()
    assert sql == (
        "CREATE TABLE IF NOT EXISTS `users` ("
        "`id` INT NOT NULL AUTO_INCREMENT, "
        "`name` VARCHAR(100) NOT NULL, "
        "`email` VARCHAR(150) NOT NULL UNIQUE, "
        "`active` TINYINT(1) NOT NULL DEFAULT 1, "
        "`score` INT DEFAULT 0, "
        "`motto` VARCHAR(50) DEFAULT 'it''s fine', "
        "PRIMARY KEY (`id`)"
        ") COMMENT='Registered accounts' AUTO_INCREMENT=1"
    )


def test_create_table_sql_appends_timestamps_indexes_and_foreign_keys():
    users = make_users()
    roles = TableSchema("roles", prefix="app_", timestamps=True, soft_deletes=True, auto_increment_start=100)
    roles.add_column("id", "INT", auto_increment=True)
    roles.add_column("uid", "INT")
    roles.set_primary_key("id")
    roles.add_index("uid")
    roles.add_foreign_key("uid", users, "id", on_delete="set null")

    sql = roles.create_sql()
    assert sql == (
        "CREATE TABLE IF NOT EXISTS `app_roles` ("
        "`id` INT NOT NULL AUTO_INCREMENT, "
        "`uid` INT NOT NULL, "
        "`created_at` DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP, "
        "`updated_at` DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP, "
        "`deleted_at` DATETIME, "
        "PRIMARY KEY (`id`), "
        "INDEX `idx_app_roles_uid` (`uid`), "
        "CONSTRAINT `fk_app_roles_uid` FOREIGN KEY (`uid`) REFERENCES `users` (`id`) "
        "ON DELETE SET NULL ON UPDATE CASCADE"
        ") AUTO_INCREMENT=100"
    )


def test_drop_table_sql_logs_warning(caplog):
    caplog.set_level(logging.WARNING, logger="modalorm.schema.builder")
    sql = SchemaBuilder().drop_table_sql(make_users())
    assert sql == "DROP TABLE IF EXISTS `users`"
    assert any("DROP TABLE generated" in record.message for record in caplog.records)


def test_primary_key_is_guarded():
    schema = make_users()
    assert "id" in schema.guarded
    assert not schema.is_mass_assignable("id")
    assert schema.is_mass_assignable("name")


def test_fillable_takes_precedence_over_guarded():
    schema = TableSchema("posts", fillable=["title"])
    schema.add_column("id", "INT")
    schema.add_column("title", "VARCHAR(10)")
    schema.add_column("body", "TEXT")
    assert schema.is_mass_assignable("title")
    assert not schema.is_mass_assignable("body")


def test_foreign_key_accepts_definitions():
    users = TableDefinition(make_users())
    roles = TableSchema("roles")
    roles.add_column("uid", "INT")
    roles.add_foreign_key("uid", users)
    fk = roles.foreign_keys[0]
    assert fk.ref_table == "users"
    assert fk.references is users.schema
    assert fk.relation_name == "users"


def test_foreign_key_to_non_table_fails_fast():
    roles = TableSchema("roles")
    roles.add_column("uid", "INT")
    with pytest.raises(SchemaConfigurationError):
        roles.add_foreign_key("uid", "users")
    assert roles.foreign_keys == []


@pytest.mark.parametrize(
    "configure",
    [
        lambda schema: schema.set_primary_key("missing"),
        lambda schema: schema.add_index(["missing"]),
        lambda schema: schema.add_foreign_key("missing", make_users()),
        lambda schema: schema.add_column("uid", "INT"),
        lambda schema: schema.add_foreign_key("uid", make_users(), on_delete="EXPLODE"),
    ],
)
def test_invalid_configuration_is_rejected(configure):
    schema = TableSchema("roles")
    schema.add_column("uid", "INT")
    with pytest.raises(SchemaConfigurationError):
        configure(schema)


def test_clone_is_independent():
    original = make_users()
    copy = original.clone()
    copy.add_column("status", "VARCHAR(10)")
    copy.modify_column("name", "VARCHAR(200)")
    assert "status" not in original.columns
    assert original.columns["name"].type == "VARCHAR(100)"
    assert copy.table == "users"

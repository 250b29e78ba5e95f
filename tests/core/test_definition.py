import pytest

from modalorm.core import TableDefinition
from modalorm.query import QueryBuilder
from modalorm.schema import Migration, SchemaConfigurationError, TableSchema


def make_schema(name="notes", **options):
    schema = TableSchema(name, **options)
    schema.add_column("id", "INT", auto_increment=True)
    schema.add_column("body", "TEXT")
    schema.set_primary_key("id")
    return schema


def test_definition_exposes_table_and_ddl():
    schema = make_schema(prefix="app_")
    definition = TableDefinition(schema)
    assert definition.table == "app_notes"
    assert definition.create_sql() == schema.create_sql()
    assert definition.drop_sql() == "DROP TABLE IF EXISTS `app_notes`"
    assert definition.alter_sql() == []


def test_update_target_drives_alter_sql():
    schema = make_schema()
    update = schema.clone()
    update.add_column("title", "VARCHAR(50)", default="untitled")
    definition = TableDefinition(schema, update=update)
    assert definition.alter_sql() == [
        "ALTER TABLE `notes` ADD COLUMN `title` VARCHAR(50) NOT NULL DEFAULT 'untitled'"
    ]
    assert "title" not in schema.columns


def test_query_binds_definition_and_adapter():
    definition = TableDefinition(make_schema())
    adapter = object()
    query = definition.query(adapter)
    assert isinstance(query, QueryBuilder)
    assert query.adapter is adapter
    assert query.relations is definition.relations


def test_migration_snapshot():
    definition = TableDefinition(make_schema())
    migration = definition.migration()
    assert isinstance(migration, Migration)
    assert (migration.get_table(), migration.up(), migration.down()) == (
        "notes",
        definition.create_sql(),
        definition.drop_sql(),
    )


def test_schema_guards_primary_key_and_reports_bad_columns():
    schema = make_schema(guarded=["body"])
    assert schema.guarded == ["body", "id"]
    assert not schema.is_mass_assignable("id")
    with pytest.raises(SchemaConfigurationError):
        schema.add_column("body", "TEXT")
    with pytest.raises(SchemaConfigurationError):
        schema.set_primary_key("missing")
    with pytest.raises(SchemaConfigurationError):
        schema.add_foreign_key("body", "users")


def test_timestamps_and_soft_deletes_append_columns():
    schema = make_schema(timestamps=True, soft_deletes=True)
    assert list(schema.all_columns()) == ["id", "body", "created_at", "updated_at", "deleted_at"]
    assert list(schema.columns) == ["id", "body"]

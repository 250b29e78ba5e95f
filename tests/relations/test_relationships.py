import pytest

from examples.user_roles import bootstrap_adapter, build_definitions, seed_sample_data
from modalorm.core import TableDefinition
from modalorm.query import QueryUsageError, RelationSet
from modalorm.schema import TableSchema


@pytest.fixture
def adapter(tmp_path):
    adapter = bootstrap_adapter(f"sqlite:///{tmp_path / 'relations.db'}")
    yield adapter
    adapter.close()


@pytest.fixture
def seeded(adapter):
    return seed_sample_data(adapter)


def test_has_many_groups_related_rows(adapter, seeded):
    users = build_definitions()["users"]
    rows = users.query(adapter).order_by("id").get()
    assert [[role["role_name"] for role in row["roles"]] for row in rows] == [
        ["Admin"],
        ["Editor", "Subscriber"],
        ["Viewer"],
    ]
    assert all("user" not in role for row in rows for role in row["roles"])


def test_belongs_to_attaches_owner_without_hidden_columns(adapter, seeded):
    roles = build_definitions()["roles"]
    editor = roles.query(adapter).where("role_name", "=", "Editor").first()
    assert editor["user"]["name"] == "Bob"
    assert "password" not in editor["user"]
    assert "roles" not in editor["user"]


def test_explicit_relation_covers_foreign_key(adapter, seeded):
    roles = build_definitions()["roles"]
    assert roles.relations.names(roles.schema) == ["user"]
    row = roles.query(adapter).first()
    assert "owner" not in row


def test_one_query_per_relation(adapter, seeded):
    users = build_definitions()["users"]
    before = adapter.tracker.total_queries
    users.query(adapter).get()
    assert adapter.tracker.total_queries - before == 2

    before = adapter.tracker.total_queries
    users.query(adapter).without_relations().get()
    assert adapter.tracker.total_queries - before == 1


def test_with_relations_validates_names(adapter):
    users = build_definitions()["users"]
    with pytest.raises(QueryUsageError, match="Unknown relation"):
        users.query(adapter).with_relations("posts")


def test_foreign_key_yields_implicit_relation(adapter, seeded):
    users = build_definitions()["users"]
    adapter.execute("CREATE TABLE posts (id INTEGER PRIMARY KEY, author_id INTEGER, title TEXT)")
    adapter.execute("INSERT INTO posts (author_id, title) VALUES (:a, :t)", {"a": seeded["bob"], "t": "Hi"})
    adapter.execute("INSERT INTO posts (author_id, title) VALUES (NULL, 'Orphan')")

    schema = TableSchema("posts")
    schema.add_column("id", "INT", auto_increment=True)
    schema.add_column("author_id", "INT", nullable=True)
    schema.add_column("title", "VARCHAR(100)")
    schema.set_primary_key("id")
    schema.add_foreign_key("author_id", users, on_delete="SET NULL")
    posts = TableDefinition(schema)

    rows = posts.query(adapter).order_by("id").get()
    assert rows[0]["users"]["email"] == "bob@example.com"
    assert rows[1]["users"] is None


def test_custom_loader_receives_distinct_keys():
    calls = []

    def loader(adapter, keys):
        calls.append(keys)
        return {key: key * 10 for key in keys}

    schema = TableSchema("items")
    schema.add_column("group_id", "INT")
    relations = RelationSet()
    relations.define_relation("score", loader, local_key="group_id")

    rows = [{"group_id": 1}, {"group_id": 2}, {"group_id": 1}, {"group_id": None}]
    relations.hydrate(object(), rows, schema)

    assert calls == [[1, 2]]
    assert [row["score"] for row in rows] == [10, 20, 10, None]


def test_rows_without_keys_skip_the_loader():
    def loader(adapter, keys):
        raise AssertionError("loader should not run")

    schema = TableSchema("items")
    schema.add_column("id", "INT")
    relations = RelationSet()
    relations.define_relation("children", loader, many=True)

    rows = relations.hydrate(object(), [{"id": None}], schema)
    assert rows == [{"id": None, "children": []}]


def _hidden_key_definitions():
    users_schema = TableSchema("users", hidden=["id", "password"])
    for name in ("id", "name", "email", "password"):
        users_schema.add_column(name, "VARCHAR(100)")
    users_schema.set_primary_key("id")
    roles_schema = TableSchema("roles", hidden=["uid"])
    for name in ("id", "role_name", "uid"):
        roles_schema.add_column(name, "VARCHAR(100)")
    roles_schema.set_primary_key("id")

    users, roles = TableDefinition(users_schema), TableDefinition(roles_schema)
    users.relations.has_many("roles", roles, foreign_key="uid")
    roles.relations.belongs_to("user", users, foreign_key="uid")
    return users, roles


def test_hidden_join_columns_still_merge(adapter, seeded):
    users, roles = _hidden_key_definitions()

    bob = users.query(adapter).select(["id", "name"]).find(seeded["bob"])
    assert [role["role_name"] for role in bob["roles"]] == ["Editor", "Subscriber"]
    assert all("uid" not in role for role in bob["roles"])

    editor = roles.query(adapter).where("role_name", "=", "Editor").first()
    assert editor["user"]["name"] == "Bob"
    assert "id" not in editor["user"]
    assert "uid" not in editor


def test_relations_need_their_local_key_in_the_select(adapter, seeded):
    users = build_definitions()["users"]
    before = adapter.tracker.total_queries
    rows = users.query(adapter).select(["name"]).get()
    assert rows and all(set(row) == {"name"} for row in rows)
    assert adapter.tracker.total_queries - before == 1

    rows = users.query(adapter).select(["id", "name"]).order_by("id").get()
    assert [len(row["roles"]) for row in rows] == [1, 2, 1]

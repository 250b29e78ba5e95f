"""
Batch relation loading.

A relation reads one local key from every fetched row, hands the distinct
values to its loader in a single call and merges the result back under the
relation name. Loading K rows with R relations issues R queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping, Optional

from ..utils import get_logger
from .conditions import QueryUsageError

if TYPE_CHECKING:
    from ..adapters.base import DatabaseAdapter
    from ..schema.descriptor import ForeignKeySpec, TableSchema

Loader = Callable[["DatabaseAdapter", list[Any]], Mapping[Any, Any]]

logger = get_logger("query.relations")


@dataclass(frozen=True)
class Relation:
    name: str
    loader: Loader
    local_key: str
    many: bool = False
    related_table: Optional[str] = None

    def empty(self) -> Any:
        return [] if self.many else None


def _schema_of(related: Any) -> "TableSchema":
    from ..schema.descriptor import SchemaConfigurationError, TableSchema

    schema = related if isinstance(related, TableSchema) else getattr(related, "schema", None)
    if not isinstance(schema, TableSchema):
        raise SchemaConfigurationError(
            f"Relation target must be a table schema or definition, got {type(related).__name__}."
        )
    return schema


def _fetch(
    related: Any, adapter: "DatabaseAdapter", column: str, keys: list[Any]
) -> Iterator[tuple[Any, dict]]:
    """
    Yield ``(key, record)`` pairs. The key is read before hidden columns are
    removed, so hiding the join column does not break the merge.
    """
    from .builder import QueryBuilder

    hidden = _schema_of(related).hidden
    query = QueryBuilder(related, adapter).without_relations().with_hidden()
    for record in query.where_in(column, keys).get():
        key = record.get(column)
        for name in hidden:
            record.pop(name, None)
        yield key, record


def _grouped_loader(related: Any, column: str) -> Loader:
    def load(adapter: "DatabaseAdapter", keys: list[Any]) -> dict[Any, list[dict]]:
        grouped: dict[Any, list[dict]] = {}
        for key, record in _fetch(related, adapter, column, keys):
            grouped.setdefault(key, []).append(record)
        return grouped

    return load


def _keyed_loader(related: Any, column: str) -> Loader:
    def load(adapter: "DatabaseAdapter", keys: list[Any]) -> dict[Any, dict]:
        mapping: dict[Any, dict] = {}
        for key, record in _fetch(related, adapter, column, keys):
            mapping.setdefault(key, record)
        return mapping

    return load


class RelationSet:
    """
    Relations registered on one table definition.
    """

    def __init__(self) -> None:
        self._relations: dict[str, Relation] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._relations

    def __iter__(self):
        return iter(self._relations.values())

    def __len__(self) -> int:
        return len(self._relations)

    def define_relation(
        self,
        name: str,
        loader: Loader,
        *,
        local_key: str = "id",
        many: bool = False,
        related_table: str | None = None,
    ) -> Relation:
        if not name:
            raise QueryUsageError("Relation name must not be empty.")
        relation = Relation(name, loader, local_key, many, related_table)
        self._relations[name] = relation
        return relation

    def has_many(self, name: str, related: Any, foreign_key: str, local_key: str = "id") -> Relation:
        """
        Rows in ``related`` whose ``foreign_key`` equals this row's ``local_key``.
        """
        schema = _schema_of(related)
        return self.define_relation(
            name,
            _grouped_loader(related, foreign_key),
            local_key=local_key,
            many=True,
            related_table=schema.table,
        )

    def has_one(self, name: str, related: Any, foreign_key: str, local_key: str = "id") -> Relation:
        schema = _schema_of(related)
        return self.define_relation(
            name,
            _keyed_loader(related, foreign_key),
            local_key=local_key,
            related_table=schema.table,
        )

    def belongs_to(self, name: str, related: Any, foreign_key: str, owner_key: str = "id") -> Relation:
        """
        The ``related`` row whose ``owner_key`` equals this row's ``foreign_key``.
        """
        schema = _schema_of(related)
        return self.define_relation(
            name,
            _keyed_loader(related, owner_key),
            local_key=foreign_key,
            related_table=schema.table,
        )

    # Resolution --------------------------------------------------------
    def resolve(self, schema: "TableSchema") -> list[Relation]:
        """
        Explicit relations followed by one belongs-to per foreign key on
        ``schema`` that no explicit relation already covers.
        """
        relations = list(self._relations.values())
        covered = {(relation.local_key, relation.related_table) for relation in relations}
        names = set(self._relations)
        for fk in schema.foreign_keys:
            if (fk.column, fk.ref_table) in covered or fk.relation_name in names:
                continue
            relations.append(self._foreign_key_relation(fk))
            names.add(fk.relation_name)
        return relations

    def names(self, schema: "TableSchema") -> list[str]:
        return [relation.name for relation in self.resolve(schema)]

    @staticmethod
    def _foreign_key_relation(fk: "ForeignKeySpec") -> Relation:
        return Relation(
            name=fk.relation_name,
            loader=_keyed_loader(fk.references, fk.ref_column),
            local_key=fk.column,
            related_table=fk.ref_table,
        )

    def hydrate(
        self,
        adapter: "DatabaseAdapter",
        rows: list[dict[str, Any]],
        schema: "TableSchema",
        only: Iterable[str] | None = None,
    ) -> list[dict[str, Any]]:
        if not rows:
            return rows
        relations = self.resolve(schema)
        if only is not None:
            wanted = set(only)
            relations = [relation for relation in relations if relation.name in wanted]
        for relation in relations:
            if relation.local_key not in rows[0]:
                # local key not selected; nothing to join on
                logger.debug(
                    "Skipping relation %s.%s: column %s not fetched",
                    schema.table,
                    relation.name,
                    relation.local_key,
                )
                continue
            keys = list(
                dict.fromkeys(
                    row[relation.local_key] for row in rows if row.get(relation.local_key) is not None
                )
            )
            if not keys:
                for row in rows:
                    row[relation.name] = relation.empty()
                continue
            logger.debug(
                "Loading relation %s.%s for %s key(s)", schema.table, relation.name, len(keys)
            )
            related = relation.loader(adapter, keys)
            for row in rows:
                value = related.get(row.get(relation.local_key))
                if value is None:
                    value = relation.empty()
                elif relation.many:
                    value = list(value)
                row[relation.name] = value
        return rows

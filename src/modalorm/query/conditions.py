"""
Typed WHERE-clause entries and the accumulator rendering them.

Each entry is one frozen dataclass; :class:`ConditionSet` keeps them in
insertion order and renders a parameterized clause plus a bindings dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Sequence, Union

from ..dialects.mysql import MySQLDialect
from ..utils import sanitize_identifier


class QueryUsageError(ValueError):
    """Raised when the query builder is used incorrectly."""


OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE"})


@dataclass(frozen=True)
class SimpleCondition:
    column: str
    operator: str
    value: Any
    use_or: bool = False


@dataclass(frozen=True)
class MembershipCondition:
    column: str
    values: tuple[Any, ...]
    negated: bool = False
    use_or: bool = False


@dataclass(frozen=True)
class BetweenCondition:
    column: str
    start: Any
    end: Any
    use_or: bool = False


@dataclass(frozen=True)
class RawCondition:
    sql: str
    bindings: tuple[Any, ...] = ()
    use_or: bool = False


@dataclass(frozen=True)
class SearchCondition:
    columns: tuple[str, ...]
    keyword: str
    use_or: bool = False


Condition = Union[
    SimpleCondition, MembershipCondition, BetweenCondition, RawCondition, SearchCondition
]


def normalize_operator(operator: str) -> str:
    normalized = " ".join(operator.upper().split())
    if normalized not in OPERATORS:
        raise QueryUsageError(f"Unsupported operator '{operator}'.")
    return normalized


class ConditionSet:
    """
    Ordered WHERE-clause entries.

    Every placeholder starts with ``w<entry index>_``, followed by the value
    position and the sanitized column name, so no two entries share a name.
    """

    def __init__(
        self, entries: Iterable[Condition] = (), *, dialect: MySQLDialect | None = None
    ) -> None:
        self.entries: list[Condition] = list(entries)
        self.dialect = dialect or MySQLDialect()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Condition]:
        return iter(self.entries)

    def __repr__(self) -> str:
        return f"<ConditionSet entries={self.entries!r}>"

    def is_empty(self) -> bool:
        return not self.entries

    def copy(self) -> "ConditionSet":
        return ConditionSet(self.entries, dialect=self.dialect)

    def clear(self) -> None:
        self.entries.clear()

    # Accumulation ------------------------------------------------------
    def add_simple(self, column: str, operator: str, value: Any, *, use_or: bool = False) -> None:
        self.entries.append(SimpleCondition(column, normalize_operator(operator), value, use_or))

    def add_membership(
        self, column: str, values: Iterable[Any], *, negated: bool = False, use_or: bool = False
    ) -> None:
        if isinstance(values, (str, bytes)):
            raise QueryUsageError(f"Membership values for '{column}' must be a collection.")
        self.entries.append(MembershipCondition(column, tuple(values), negated, use_or))

    def add_between(self, column: str, start: Any, end: Any, *, use_or: bool = False) -> None:
        self.entries.append(BetweenCondition(column, start, end, use_or))

    def add_raw(self, sql: str, bindings: Sequence[Any] = (), *, use_or: bool = False) -> None:
        bindings = tuple(bindings)
        expected = len(self.dialect.positional_markers(sql))
        if expected != len(bindings):
            raise QueryUsageError(
                f"Raw condition has {expected} '?' placeholders but {len(bindings)} bindings."
            )
        self.entries.append(RawCondition(sql, bindings, use_or))

    def add_search(
        self, columns: str | Iterable[str], keyword: str, *, use_or: bool = False
    ) -> None:
        cols = (columns,) if isinstance(columns, str) else tuple(columns)
        if not cols:
            raise QueryUsageError("search() requires at least one column.")
        self.entries.append(SearchCondition(cols, keyword, use_or))

    # Rendering ---------------------------------------------------------
    def render(self, bindings: dict[str, Any]) -> str:
        """
        Render the clause body (without ``WHERE``), adding values to ``bindings``.
        Returns an empty string when no entry produces SQL.
        """
        parts: list[str] = []
        for index, entry in enumerate(self.entries):
            fragment = self._render_entry(index, entry, bindings)
            if fragment is None:
                continue
            prefix = "OR" if entry.use_or else "AND"
            parts.append(f"{prefix} {fragment}")
        if not parts:
            return ""
        clause = " ".join(parts)
        return clause.split(" ", 1)[1]

    def _render_entry(self, index: int, entry: Condition, bindings: dict[str, Any]) -> str | None:
        if isinstance(entry, SimpleCondition):
            return self._render_simple(index, entry, bindings)
        if isinstance(entry, MembershipCondition):
            return self._render_membership(index, entry, bindings)
        if isinstance(entry, BetweenCondition):
            return self._render_between(index, entry, bindings)
        if isinstance(entry, RawCondition):
            return self._render_raw(index, entry, bindings)
        if isinstance(entry, SearchCondition):
            return self._render_search(index, entry, bindings)
        raise TypeError(f"Unknown condition entry {entry!r}")

    def _render_simple(self, index: int, entry: SimpleCondition, bindings: dict[str, Any]) -> str:
        column = self.quote_column(entry.column)
        if entry.value is None and entry.operator in ("=", "!=", "<>"):
            return f"{column} IS NULL" if entry.operator == "=" else f"{column} IS NOT NULL"
        key = f"w{index}_{sanitize_identifier(entry.column)}"
        bindings[key] = entry.value
        return f"{column} {entry.operator} {self._placeholder(key)}"

    def _render_membership(
        self, index: int, entry: MembershipCondition, bindings: dict[str, Any]
    ) -> str | None:
        if not entry.values:
            return None
        names = []
        for position, value in enumerate(entry.values):
            key = f"w{index}_{position}_{sanitize_identifier(entry.column)}"
            bindings[key] = value
            names.append(self._placeholder(key))
        operator = "NOT IN" if entry.negated else "IN"
        return f"{self.quote_column(entry.column)} {operator} ({', '.join(names)})"

    def _render_between(self, index: int, entry: BetweenCondition, bindings: dict[str, Any]) -> str:
        column = sanitize_identifier(entry.column)
        start, end = f"w{index}_start_{column}", f"w{index}_end_{column}"
        bindings[start] = entry.start
        bindings[end] = entry.end
        return (
            f"{self.quote_column(entry.column)} BETWEEN "
            f"{self._placeholder(start)} AND {self._placeholder(end)}"
        )

    def _render_raw(self, index: int, entry: RawCondition, bindings: dict[str, Any]) -> str:
        pieces: list[str] = []
        cursor = 0
        markers = self.dialect.positional_markers(entry.sql)
        for position, (marker, value) in enumerate(zip(markers, entry.bindings)):
            key = f"w{index}_raw_{position}"
            bindings[key] = value
            pieces.append(entry.sql[cursor:marker])
            pieces.append(self._placeholder(key))
            cursor = marker + 1
        pieces.append(entry.sql[cursor:])
        return f"({''.join(pieces)})"

    def _render_search(self, index: int, entry: SearchCondition, bindings: dict[str, Any]) -> str:
        likes = []
        for position, column in enumerate(entry.columns):
            key = f"w{index}_{position}_{sanitize_identifier(column)}"
            bindings[key] = f"%{entry.keyword}%"
            likes.append(f"{self.quote_column(column)} LIKE {self._placeholder(key)}")
        return f"({' OR '.join(likes)})"

    def quote_column(self, column: str) -> str:
        return self.dialect.format_table(column)

    def _placeholder(self, name: str) -> str:
        return self.dialect.parameter_placeholder(name)

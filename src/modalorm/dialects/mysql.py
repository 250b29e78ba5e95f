"""
MySQL dialect: backtick identifiers and ``:name`` placeholders.
"""

from __future__ import annotations

from typing import Final, Iterator, NamedTuple

_QUOTES: Final[frozenset[str]] = frozenset({"'", '"', "`"})


class PlaceholderSpan(NamedTuple):
    start: int
    end: int
    name: str


class MySQLDialect:
    """
    The single SQL convention ModalORM targets.

    Statements use named ``:name`` placeholders, which SQLite accepts natively
    and which :meth:`to_pyformat` rewrites for PyMySQL.
    """

    name: Final[str] = "mysql"
    param_style: Final[str] = "named"
    # MySQL has no "OFFSET without LIMIT"; this is the documented max row count.
    max_limit: Final[int] = 18446744073709551615

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace("`", "``")
        return f"`{escaped}`"

    def format_table(self, table_name: str) -> str:
        if "." in table_name:
            schema, table = table_name.split(".", 1)
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table_name)

    def quote_string(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {int(limit)}")
        if offset is not None:
            if limit is None:
                parts.append(f"LIMIT {self.max_limit}")
            parts.append(f"OFFSET {int(offset)}")
        return " ".join(parts)

    def parameter_placeholder(self, name: str) -> str:
        return f":{name}"

    # Placeholder scanning ----------------------------------------------
    @staticmethod
    def _unquoted_positions(sql: str) -> Iterator[int]:
        """
        Yield the index of every character outside quoted literals and identifiers.
        """
        quote: str | None = None
        idx = 0
        length = len(sql)
        while idx < length:
            char = sql[idx]
            if quote:
                if char == quote:
                    # doubled quote is an escaped quote inside the literal
                    if idx + 1 < length and sql[idx + 1] == quote:
                        idx += 2
                        continue
                    quote = None
                elif char == "\\" and quote != "`":
                    idx += 2
                    continue
                idx += 1
                continue
            if char in _QUOTES:
                quote = char
            else:
                yield idx
            idx += 1

    def iter_placeholders(self, sql: str) -> Iterator[PlaceholderSpan]:
        """
        Yield ``:name`` placeholders outside quoted literals and identifiers.
        """
        length = len(sql)
        resume = 0
        for idx in self._unquoted_positions(sql):
            if idx < resume:
                continue
            if (
                sql[idx] == ":"
                and idx + 1 < length
                and (sql[idx + 1].isalpha() or sql[idx + 1] == "_")
                and (idx == 0 or not (sql[idx - 1].isalnum() or sql[idx - 1] in ":_"))
            ):
                end = idx + 1
                while end < length and (sql[end].isalnum() or sql[end] == "_"):
                    end += 1
                yield PlaceholderSpan(idx, end, sql[idx + 1 : end])
                resume = end

    def positional_markers(self, sql: str) -> list[int]:
        """
        Offsets of ``?`` markers outside quoted literals and identifiers.
        """
        return [idx for idx in self._unquoted_positions(sql) if sql[idx] == "?"]

    def placeholder_names(self, sql: str) -> list[str]:
        return [span.name for span in self.iter_placeholders(sql)]

    def to_pyformat(self, sql: str) -> str:
        """
        Rewrite ``:name`` placeholders to ``%(name)s`` and escape literal ``%``.
        """
        pieces: list[str] = []
        cursor = 0
        for span in self.iter_placeholders(sql):
            pieces.append(sql[cursor : span.start].replace("%", "%%"))
            pieces.append(f"%({span.name})s")
            cursor = span.end
        pieces.append(sql[cursor:].replace("%", "%%"))
        return "".join(pieces)


def get_mysql_dialect() -> MySQLDialect:
    return MySQLDialect()

"""
SQL dialect conventions.
"""

from .mysql import MySQLDialect, PlaceholderSpan, get_mysql_dialect

__all__ = ["MySQLDialect", "PlaceholderSpan", "get_mysql_dialect"]

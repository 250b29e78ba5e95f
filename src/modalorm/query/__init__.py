"""
Query building: conditions, SQL compilation and relation loading.
"""

from .builder import Page, QueryBuilder, QueryState
from .compiler import SQLCompiler
from .conditions import (
    BetweenCondition,
    Condition,
    ConditionSet,
    MembershipCondition,
    QueryUsageError,
    RawCondition,
    SearchCondition,
    SimpleCondition,
)
from .relations import Relation, RelationSet

__all__ = [
    "BetweenCondition",
    "Condition",
    "ConditionSet",
    "MembershipCondition",
    "Page",
    "QueryBuilder",
    "QueryState",
    "QueryUsageError",
    "RawCondition",
    "Relation",
    "RelationSet",
    "SQLCompiler",
    "SearchCondition",
    "SimpleCondition",
]

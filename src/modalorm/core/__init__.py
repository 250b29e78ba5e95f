"""
Table definitions and the registry supplying them.
"""

from .definition import TableDefinition
from .registry import DefinitionRegistry

__all__ = ["DefinitionRegistry", "TableDefinition"]

"""
Explicit registry of table-definition factories.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Iterator

from ..utils import get_logger
from .definition import TableDefinition

DefinitionFactory = Callable[[], TableDefinition]


class DefinitionRegistry:
    """
    Ordered mapping of identifiers to factories building table definitions.

    Factories run once, on first access; registration order is the order
    migrations are generated and executed in.
    """

    def __init__(self) -> None:
        self._factories: "OrderedDict[str, DefinitionFactory]" = OrderedDict()
        self._instances: dict[str, TableDefinition] = {}
        self.logger = get_logger("core.registry")

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def __iter__(self) -> Iterator[TableDefinition]:
        return iter(self.definitions())

    def register(self, identifier: str, factory: DefinitionFactory) -> DefinitionFactory:
        if identifier in self._factories:
            raise KeyError(f"Definition '{identifier}' is already registered.")
        self._factories[identifier] = factory
        self.logger.debug("Registered definition %s", identifier)
        return factory

    def definition(self, identifier: str):
        """
        Decorator form of :meth:`register`.
        """

        def decorator(factory: DefinitionFactory) -> DefinitionFactory:
            return self.register(identifier, factory)

        return decorator

    def get(self, identifier: str) -> TableDefinition:
        if identifier not in self._factories:
            raise KeyError(f"No definition registered as '{identifier}'.")
        if identifier not in self._instances:
            instance = self._factories[identifier]()
            if not isinstance(instance, TableDefinition):
                raise TypeError(
                    f"Factory for '{identifier}' returned {type(instance).__name__}, "
                    "expected TableDefinition."
                )
            self._instances[identifier] = instance
        return self._instances[identifier]

    def identifiers(self) -> list[str]:
        return list(self._factories)

    def definitions(self) -> list[TableDefinition]:
        return [self.get(identifier) for identifier in self._factories]

"""
Table processing order.

Writes must reach parent tables before the children that reference them,
and deletes must run the other way round. The resolver works out the
write order; callers reverse it for deletes.
"""

from typing import Callable, Dict, Hashable, List, Optional, Sequence, Set, TypeVar

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from fixtureforge.constants import TableOrderingStrategy
from fixtureforge.exceptions import DatabaseTesterError
from fixtureforge.identifiers import TableName
from fixtureforge.introspector import DBIntrospector
from fixtureforge.logging_config import get_logger
from fixtureforge.outcome import Outcome

T = TypeVar("T", bound=Hashable)

DependencyExtractor = Callable[[Sequence[TableName], Connection, Optional[str]], Dict[TableName, Set[TableName]]]

logger = get_logger("ordering")


def topological_sort(elements: Sequence[T], dependencies: Dict[T, Set[T]]) -> List[T]:
    """
    Order elements so that every element follows all of its dependencies.

    Elements that become ready in the same round keep their original
    relative order. When a cycle blocks progress the remaining elements are
    appended in original order.
    """
    if len(elements) <= 1:
        return list(elements)

    result: List[T] = []
    visited: Set[T] = set()
    remaining = list(elements)

    while remaining:
        ready = [e for e in remaining if dependencies.get(e, set()) <= visited]
        if not ready:
            logger.warning(f"Circular dependency detected among {remaining}, using original order for them")
            result.extend(remaining)
            break
        for element in ready:
            result.append(element)
            visited.add(element)
        remaining = [e for e in remaining if e not in visited]

    return result


def extract_foreign_key_dependencies(table_names: Sequence[TableName], connection: Connection,
                                     schema: Optional[str] = None) -> Dict[TableName, Set[TableName]]:
    return DBIntrospector(connection, schema).foreign_key_dependencies(table_names)


class TableOrderResolver:
    """Computes a safe write order for a list of tables."""

    def __init__(self, dependency_extractor: Optional[DependencyExtractor] = None):
        self.dependency_extractor = dependency_extractor or extract_foreign_key_dependencies

    def resolve(self, table_names: Sequence[TableName], connection: Optional[Connection] = None,
                schema: Optional[str] = None,
                strategy: TableOrderingStrategy = TableOrderingStrategy.AUTO) -> Outcome[List[TableName]]:
        names = list(table_names)
        if len(names) <= 1:
            return Outcome.success(names)

        strategy = TableOrderingStrategy(strategy)
        if strategy == TableOrderingStrategy.LOAD_ORDER_FILE:
            return Outcome.success(names)
        if strategy == TableOrderingStrategy.ALPHABETICAL:
            return Outcome.success(sorted(names, key=lambda t: t.value))

        return self._resolve_by_foreign_keys(names, connection, schema)

    def resolve_order(self, table_names: Sequence[TableName], connection: Optional[Connection] = None,
                      schema: Optional[str] = None,
                      strategy: TableOrderingStrategy = TableOrderingStrategy.AUTO) -> List[TableName]:
        return self.resolve(table_names, connection, schema, strategy).value

    def _resolve_by_foreign_keys(self, names: List[TableName], connection: Optional[Connection],
                                 schema: Optional[str]) -> Outcome[List[TableName]]:
        if connection is None:
            return Outcome.degraded(names, "no connection available for foreign key lookup")

        try:
            dependencies = self.dependency_extractor(names, connection, schema)
        except (SQLAlchemyError, DatabaseTesterError) as e:
            logger.warning(f"Failed to retrieve foreign key metadata, using original order: {e}")
            return Outcome.degraded(names, str(e))

        if not dependencies:
            logger.debug("No foreign key dependencies found, using original order")
            return Outcome.success(names)

        for table_name, referenced in dependencies.items():
            logger.debug(
                f"Depends on {sorted(t.value for t in referenced)}",
                extra={"table_name": table_name.value},
            )

        ordered = topological_sort(names, dependencies)
        logger.debug(f"Resolved table order based on foreign keys: {[t.value for t in ordered]}")
        return Outcome.success(ordered)

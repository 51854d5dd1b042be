"""Query execution interfaces.

The compilers only need something that can run a query; this module defines
that seam so the builder does not depend on the concrete Graph.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Protocol

from neo4j import Record

from graph_ogm.schema.model_map import ModelMap

BatchQuery = str | tuple[str, Mapping[str, Any] | None]


class QueryMode(str, Enum):
    """Access mode a query is dispatched with."""

    READ = "READ"
    WRITE = "WRITE"


class QueryRunner(Protocol):
    """Protocol for the session collaborator that executes compiled queries."""

    models: ModelMap

    async def cypher(
        self,
        query: str,
        params: Mapping[str, Any] | None = None,
        mode: QueryMode = QueryMode.WRITE,
    ) -> list[Record]:
        """Run a query in a managed transaction of the given mode.

        Args:
            query: Cypher text
            params: Parameter table
            mode: READ or WRITE

        Returns:
            Every record the query produced
        """
        ...

    async def read_cypher(self, query: str, params: Mapping[str, Any] | None = None) -> list[Record]:
        """Run a query in a read transaction."""
        ...

    async def write_cypher(self, query: str, params: Mapping[str, Any] | None = None) -> list[Record]:
        """Run a query in a write transaction."""
        ...

    async def batch(self, queries: Sequence[BatchQuery]) -> list[list[Record]]:
        """Run several queries in one transaction, all or nothing."""
        ...

"""Graph facade.

Owns the driver and the model registry, runs compiled queries in managed
transactions and exposes the node operations.
"""

from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any, LiteralString, cast

from neo4j import (
    READ_ACCESS,
    WRITE_ACCESS,
    AsyncDriver,
    AsyncGraphDatabase,
    AsyncManagedTransaction,
    AsyncSession,
    AsyncTransaction,
    Record,
)
from neo4j.exceptions import DriverError, Neo4jError

from graph_ogm import services
from graph_ogm.core.base import ErrorLevel
from graph_ogm.core.config import Settings, get_settings
from graph_ogm.core.decorators import with_error_handling
from graph_ogm.core.errors import NotFoundError, QueryError, TransactionError
from graph_ogm.core.logging import bound_log_context, get_logger, setup_logging
from graph_ogm.entities.collection import NodeCollection
from graph_ogm.entities.factory import Factory
from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship
from graph_ogm.query.builder import Builder
from graph_ogm.query.cascade import MAX_CASCADE_DEPTH
from graph_ogm.query.interfaces import BatchQuery, QueryMode
from graph_ogm.schema.install import drop_schema, install_schema
from graph_ogm.schema.model import Model, SchemaDeclaration
from graph_ogm.schema.model_map import ModelMap
from graph_ogm.schema.relationship_type import RelationshipType
from graph_ogm.services.find import OrderSpec

logger = get_logger(__name__)


def _normalize_batch(queries: Sequence[BatchQuery]) -> list[tuple[str, dict[str, Any]]]:
    normalized: list[tuple[str, dict[str, Any]]] = []
    for query in queries:
        if isinstance(query, str):
            normalized.append((query, {}))
        else:
            text, params = query
            normalized.append((text, dict(params or {})))
    return normalized


class Graph:
    """Entry point for declaring models and reading and writing nodes.

    Example:
        ```python
        async with Graph("bolt://localhost:7687", "neo4j", "secret") as graph:
            graph.model("Person", {
                "person_id": {"type": "uuid", "primary": True},
                "name": {"type": "string", "required": True},
                "knows": {"type": "relationships", "relationship": "KNOWS",
                          "direction": "out", "target": "Person", "eager": True},
            })
            adam = await graph.create("Person", {"name": "Adam"})
        ```

    Args:
        uri: Bolt or neo4j:// URI
        username: Database user
        password: Database password
        database: Database to run queries against, the server default when omitted
        enterprise: Whether the server supports enterprise-only constraints
        driver: Existing driver to use instead of creating one
        **driver_config: Extra keyword arguments for the driver
    """

    def __init__(
        self,
        uri: str,
        username: str,
        password: str,
        *,
        database: str | None = None,
        enterprise: bool = False,
        driver: AsyncDriver | None = None,
        **driver_config: Any,
    ):
        self._driver: AsyncDriver = driver or AsyncGraphDatabase.driver(
            uri, auth=(username, password), **driver_config
        )
        self.database = database
        self.enterprise = enterprise
        self.models = ModelMap()
        self.factory = Factory(self)

        logger.info("Graph created", extra={"uri": uri, "database": database, "enterprise": enterprise})

    @classmethod
    def from_env(cls, settings: Settings | None = None, configure_logging: bool = False) -> "Graph":
        """Build a graph from ``NEO4J_*`` environment variables or a ``.env`` file.

        Args:
            settings: Settings to use instead of reading the environment
            configure_logging: Also set up structlog (and logfire when enabled)

        Returns:
            A new graph
        """
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings.log_level, use_logfire=settings.logfire_enabled)

        return cls(
            settings.uri,
            settings.username,
            settings.password.get_secret_value(),
            database=settings.database,
            enterprise=settings.enterprise,
            max_connection_pool_size=settings.max_connection_pool_size,
            max_connection_lifetime=settings.max_connection_lifetime,
            connection_acquisition_timeout=settings.connection_acquisition_timeout,
        )

    @property
    def driver(self) -> AsyncDriver:
        return self._driver

    async def close(self) -> None:
        await self._driver.close()
        logger.info("Graph driver closed")

    async def __aenter__(self) -> "Graph":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def model(self, name: str, schema: SchemaDeclaration | None = None) -> Model:
        """Register a model when a schema is given, otherwise look it up.

        Raises:
            ModelNotFoundError: If no schema is given and the name is unknown
        """
        if schema is not None:
            return self.models.define(name, schema)
        return self.models.get(name)

    def with_models(self, models: Mapping[str, SchemaDeclaration]) -> "Graph":
        """Register several models at once."""
        for name, schema in models.items():
            self.models.define(name, schema)
        return self

    def extend(self, name: str, as_name: str, using: SchemaDeclaration) -> Model:
        """Derive a model with an extra label and additional declarations."""
        return self.models.extend(name, as_name, using)

    async def install_schema(self) -> list[Any]:
        return await install_schema(self)

    async def drop_schema(self) -> list[Any]:
        return await drop_schema(self)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def session(self, mode: QueryMode | str = QueryMode.WRITE, database: str | None = None) -> AsyncSession:
        """Open a session with the given default access mode."""
        access = READ_ACCESS if QueryMode(mode) is QueryMode.READ else WRITE_ACCESS
        return self._driver.session(database=database or self.database, default_access_mode=access)

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def cypher(
        self,
        query: str,
        params: Mapping[str, Any] | None = None,
        mode: QueryMode | str = QueryMode.WRITE,
    ) -> list[Record]:
        """Run a query in a managed transaction.

        Managed transactions are retried by the driver on transient failures.

        Args:
            query: Cypher text
            params: Parameter table
            mode: READ or WRITE

        Returns:
            Every record the query produced

        Raises:
            QueryError: If the driver rejects the query, carrying the query and parameters
        """
        mode = QueryMode(mode)
        parameters = dict(params or {})
        logger.debug("Running query", extra={"query": query, "parameters": sorted(parameters), "mode": mode.value})

        async def work(tx: AsyncManagedTransaction) -> list[Record]:
            result = await tx.run(cast(LiteralString, query), parameters)
            return [record async for record in result]

        try:
            with bound_log_context(database=self.database, mode=mode.value):
                async with self.session(mode) as session:
                    if mode is QueryMode.READ:
                        return await session.execute_read(work)
                    return await session.execute_write(work)
        except (Neo4jError, DriverError) as e:
            raise QueryError(query, parameters, e, self.database) from e

    async def read_cypher(self, query: str, params: Mapping[str, Any] | None = None) -> list[Record]:
        return await self.cypher(query, params, QueryMode.READ)

    async def write_cypher(self, query: str, params: Mapping[str, Any] | None = None) -> list[Record]:
        return await self.cypher(query, params, QueryMode.WRITE)

    @asynccontextmanager
    async def transaction(
        self,
        mode: QueryMode | str = QueryMode.WRITE,
        database: str | None = None,
    ) -> AsyncIterator[AsyncTransaction]:
        """Open an explicit transaction, committed on exit and rolled back on error.

        Example:
            ```python
            async with graph.transaction() as tx:
                await tx.run("CREATE (:Person {name: $name})", {"name": "Adam"})
            ```
        """
        async with self.session(mode, database) as session:
            tx = await session.begin_transaction()
            try:
                yield tx
            except Exception:
                await tx.rollback()
                logger.debug("Transaction rolled back")
                raise
            await tx.commit()

    async def batch(self, queries: Sequence[BatchQuery]) -> list[list[Record]]:
        """Run several queries in one transaction, all or nothing.

        Queries run one after another in the open transaction, since a driver
        transaction accepts one statement at a time. A failing query does not
        stop the rest, so every failure is reported. If any query fails the
        transaction is rolled back.

        Args:
            queries: Query strings or ``(query, params)`` pairs

        Returns:
            The records of each query, in order

        Raises:
            TransactionError: Carrying every failure, not just the first
        """
        normalized = _normalize_batch(queries)
        logger.debug("Running batch", extra={"queries": len(normalized)})

        outcomes: list[list[Record]] = []
        errors: list[Exception] = []

        with bound_log_context(database=self.database, batch_size=len(normalized)):
            async with self.transaction(QueryMode.WRITE) as tx:
                for query, params in normalized:
                    try:
                        result = await tx.run(cast(LiteralString, query), params)
                        outcomes.append([record async for record in result])
                    except Exception as e:
                        logger.warning("Batch query failed", extra={"query": query, "error": str(e)})
                        errors.append(e)

                if errors:
                    logger.error("Batch failed", extra={"queries": len(normalized), "errors": len(errors)})
                    raise TransactionError(errors)

        return outcomes

    def query(self) -> Builder:
        """Start a query bound to this graph."""
        return Builder(self)

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def hydrate(self, records: Iterable[Any], alias: str, definition: Model | str | None = None) -> NodeCollection:
        return self.factory.hydrate(records, alias, definition)

    def hydrate_first(self, records: Iterable[Any], alias: str, definition: Model | str | None = None) -> Node | None:
        return self.factory.hydrate_first(records, alias, definition)

    def to_collection(self, nodes: Iterable[Node]) -> NodeCollection:
        return NodeCollection(nodes)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def create(self, model: Model | str, properties: Mapping[str, Any]) -> Node:
        return await services.create(self, model, properties)

    async def merge(self, model: Model | str, properties: Mapping[str, Any]) -> Node:
        return await services.merge(self, model, properties)

    async def merge_on(self, model: Model | str, merge_on: Sequence[str], properties: Mapping[str, Any]) -> Node:
        return await services.merge_on(self, model, merge_on, properties)

    async def delete(self, node: Node, to_depth: int | None = None) -> Node:
        """Delete a node and cascade through its delete-cascading relationships."""
        return await services.delete_node(self, node, MAX_CASCADE_DEPTH if to_depth is None else to_depth)

    async def delete_all(self, model: Model | str) -> None:
        await services.delete_all(self, model)

    async def update_node(self, node: Node, properties: Mapping[str, Any]) -> dict[str, Any]:
        return await services.update_node(self, node, properties)

    async def all(
        self,
        model: Model | str,
        properties: Mapping[str, Any] | None = None,
        order: OrderSpec | None = None,
        limit: int | None = None,
        skip: int | None = None,
    ) -> NodeCollection:
        return await services.find_all(self, model, properties, order, limit, skip)

    async def find(self, model: Model | str, value: Any) -> Node | None:
        """Find a node by the value of its model's primary key."""
        resolved = self.models.resolve(model)
        return await services.first(self, resolved, resolved.primary_key, value)

    async def find_by_id(self, model: Model | str, identity: str) -> Node | None:
        return await services.find_by_id(self, model, identity)

    async def first(self, model: Model | str, key: str | Mapping[str, Any], value: Any = None) -> Node | None:
        return await services.first(self, model, key, value)

    async def find_or_fail(self, model: Model | str, value: Any) -> Node:
        """Find a node by primary key.

        Raises:
            NotFoundError: If no node has the value
        """
        node = await self.find(model, value)
        if node is None:
            resolved = self.models.resolve(model)
            raise NotFoundError(resolved.name, key=resolved.primary_key, value=value)
        return node

    async def within_distance(
        self,
        model: Model | str,
        location_property: str,
        point: Mapping[str, float],
        distance: float,
        properties: Mapping[str, Any] | None = None,
        order: OrderSpec | None = None,
        limit: int | None = None,
        skip: int | None = None,
    ) -> NodeCollection:
        return await services.find_within_distance(
            self, model, location_property, point, distance, properties, order, limit, skip
        )

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    async def relate(
        self,
        from_node: Node,
        to_node: Node,
        relationship: RelationshipType | str,
        properties: Mapping[str, Any] | None = None,
        force_create: bool = False,
    ) -> Relationship:
        return await services.relate_to(self, from_node, to_node, relationship, properties, force_create)

    async def detach(self, from_node: Node, to_node: Node) -> tuple[Node, Node]:
        return await services.detach_from(self, from_node, to_node)

    async def update_relationship(self, relationship: Relationship, properties: Mapping[str, Any]) -> dict[str, Any]:
        return await services.update_relationship(self, relationship, properties)

    async def delete_relationship(self, relationship: Relationship) -> Relationship:
        return await services.delete_relationship(self, relationship)

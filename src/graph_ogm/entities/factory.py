"""Result hydration.

Turns rows produced by the eager projection (or plain driver nodes) into
Node and Relationship objects. The walk mirrors the projection compiler:
eager fields are expected on a node only while its depth is within
MAX_EAGER_DEPTH and its model was known when the projection was compiled.
"""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, assert_never

from neo4j.graph import Node as DriverNode

from graph_ogm.core.base import SchemaErrorDetails
from graph_ogm.core.errors import HydrationError, ModelNotFoundError
from graph_ogm.core.logging import get_logger
from graph_ogm.entities.collection import NodeCollection, RelationshipCollection
from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship
from graph_ogm.query.eager import EAGER_ID, EAGER_LABELS, EAGER_TYPE, MAX_EAGER_DEPTH
from graph_ogm.schema.model import Model
from graph_ogm.schema.relationship_type import Direction, RelationshipShape, RelationshipType

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

logger = get_logger(__name__)


def normalize(value: Any) -> tuple[Any, bool]:
    """Convert a driver node into the projection shape.

    Returns:
        The record, and whether it came from a plain driver node and so
        carries no eager fields
    """
    if isinstance(value, DriverNode):
        record = dict(value.items())
        record[EAGER_ID] = value.element_id
        record[EAGER_LABELS] = sorted(value.labels)
        return record, True
    return value, False


def pluck(row: Any, alias: str) -> Any:
    """Read a column from a result row."""
    try:
        return row[alias]
    except (KeyError, IndexError):
        raise HydrationError(f"Result row has no column {alias!r}", field=alias) from None


class Factory:
    """Hydrates result rows into entities bound to a graph."""

    def __init__(self, graph: "Graph"):
        self._graph = graph

    def hydrate(self, rows: Iterable[Any], alias: str, definition: Model | str | None = None) -> NodeCollection:
        """Hydrate one column of every row into nodes.

        Args:
            rows: Result rows
            alias: Column holding the node projection
            definition: Model to hydrate with, resolved from labels when omitted

        Returns:
            Nodes in row order
        """
        return NodeCollection(self.hydrate_node(pluck(row, alias), definition) for row in rows)

    def hydrate_first(self, rows: Iterable[Any], alias: str, definition: Model | str | None = None) -> Node | None:
        """Hydrate the column of the first row, or None when there are no rows."""
        for row in rows:
            return self.hydrate_node(pluck(row, alias), definition)
        return None

    def hydrate_node(self, record: Any, definition: Model | str | None = None) -> Node:
        """Hydrate a single node projection or driver node."""
        record, plain = normalize(record)
        return self._hydrate_node(record, definition, depth=1, with_eager=not plain)

    def get_definition(self, labels: Iterable[str]) -> Model | None:
        return self._graph.models.get_by_labels(labels)

    def _resolve(self, definition: Model | str | None, labels: list[str]) -> Model:
        if isinstance(definition, Model):
            return definition
        if isinstance(definition, str):
            return self._graph.models.get(definition)

        model = self.get_definition(labels)
        if model is None:
            raise ModelNotFoundError(
                f"No model definition found for labels [{', '.join(labels)}]",
                SchemaErrorDetails(
                    source="entities.factory",
                    operation="hydrate",
                    target=":".join(labels),
                    defined=self._graph.models.keys(),
                ),
            )
        return model

    def _hydrate_node(self, record: Any, definition: Model | str | None, depth: int, with_eager: bool) -> Node:
        if not isinstance(record, Mapping):
            raise HydrationError(f"Expected a node projection, got {type(record).__name__}")

        labels = list(record.get(EAGER_LABELS) or [])
        identity = record.get(EAGER_ID)
        if identity is None:
            raise HydrationError("Node projection has no identity", labels=labels, field=EAGER_ID)

        model = self._resolve(definition, labels)
        properties = {key: record[key] for key in model.properties if key in record}
        node = Node(self._graph, model, identity, labels, properties)

        if with_eager and depth <= MAX_EAGER_DEPTH:
            for relationship in model.eager:
                if relationship.name not in record:
                    raise HydrationError(
                        f"Node projection for {model.name} is missing eager field {relationship.name!r}",
                        labels=labels,
                        field=relationship.name,
                    )
                node.set_eager(
                    relationship.name,
                    self._hydrate_eager(model, relationship, record[relationship.name], node, depth),
                )

        return node

    def _hydrate_eager(
        self,
        model: Model,
        relationship: RelationshipType,
        value: Any,
        node: Node,
        depth: int,
    ) -> Node | NodeCollection | Relationship | RelationshipCollection | None:
        target = self._graph.models.target_of(relationship, model)
        # Unknown targets were projected without eager fields
        nested_eager = target is not None

        match relationship.shape:
            case RelationshipShape.NODE:
                if value is None:
                    return None
                return self._hydrate_node(value, target, depth + 1, nested_eager)
            case RelationshipShape.NODES:
                return NodeCollection(self._hydrate_node(item, target, depth + 1, nested_eager) for item in value or [])
            case RelationshipShape.RELATIONSHIP:
                if value is None:
                    return None
                return self._hydrate_relationship(relationship, value, node, target, depth + 1)
            case RelationshipShape.RELATIONSHIPS:
                return RelationshipCollection(
                    self._hydrate_relationship(relationship, item, node, target, depth + 1) for item in value or []
                )
            case _:
                assert_never(relationship.shape)

    def hydrate_relationship(
        self,
        definition: RelationshipType,
        record: Mapping[str, Any],
        this_node: Node,
    ) -> Relationship:
        """Hydrate a relationship projection seen from ``this_node``.

        The node at the other end is read from the ``node_alias`` field. For
        inbound relationships it becomes the start node.
        """
        target = self._graph.models.target_of(definition, this_node.model)
        return self._hydrate_relationship(definition, record, this_node, target, depth=1)

    def _hydrate_relationship(
        self,
        definition: RelationshipType,
        record: Any,
        this_node: Node,
        target: Model | None,
        depth: int,
    ) -> Relationship:
        if not isinstance(record, Mapping):
            raise HydrationError(f"Expected a relationship projection, got {type(record).__name__}")

        identity = record.get(EAGER_ID)
        if identity is None:
            raise HydrationError("Relationship projection has no identity", field=EAGER_ID)
        if definition.node_alias not in record:
            raise HydrationError(
                f"Relationship projection is missing node field {definition.node_alias!r}",
                field=definition.node_alias,
            )

        other, plain = normalize(record[definition.node_alias])
        other_node = self._hydrate_node(other, target, depth + 1, target is not None and not plain)
        properties = {key: record[key] for key in definition.properties if key in record}

        if definition.direction is Direction.IN:
            start, end = other_node, this_node
        else:
            start, end = this_node, other_node

        return Relationship(
            self._graph,
            definition,
            identity,
            record.get(EAGER_TYPE, definition.relationship),
            properties,
            start,
            end,
        )

"""Hydrated node."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from graph_ogm.entities.entity import Entity
from graph_ogm.schema.model import Model
from graph_ogm.schema.property import Property

if TYPE_CHECKING:
    from graph_ogm.entities.collection import NodeCollection, RelationshipCollection
    from graph_ogm.entities.relationship import Relationship
    from graph_ogm.graph import Graph

    EagerValue = Node | NodeCollection | Relationship | RelationshipCollection | None


class Node(Entity):
    """A node read from the graph, with its eagerly loaded relationships.

    Nodes are created by the hydrator. Writes go back through the Graph the
    node was read from.

    Args:
        graph: Graph the node was read from
        model: Model of the node
        identity: Element id of the node
        labels: Labels on the node
        properties: Declared properties read from the row
        eager: Eagerly loaded relationships keyed by relationship name
    """

    def __init__(
        self,
        graph: "Graph",
        model: Model,
        identity: str,
        labels: Iterable[str],
        properties: Mapping[str, Any] | None = None,
        eager: Mapping[str, "EagerValue"] | None = None,
    ):
        super().__init__(graph, identity, properties)
        self._model = model
        self._labels = tuple(labels)
        self._eager: dict[str, EagerValue] = dict(eager or {})

    def __repr__(self) -> str:
        return f"Node(model={self._model.name!r}, identity={self._identity!r})"

    @property
    def model(self) -> Model:
        return self._model

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    @property
    def declared_properties(self) -> Mapping[str, Property]:
        return self._model.properties

    @property
    def eager(self) -> Mapping[str, "EagerValue"]:
        return MappingProxyType(self._eager)

    def set_eager(self, key: str, value: "EagerValue") -> "Node":
        self._eager[key] = value
        return self

    def _eager_value(self, key: str) -> Any:
        return self._eager[key]

    def to_json(self) -> dict[str, Any]:
        output: dict[str, Any] = {"_id": self._identity, "_labels": list(self._labels)}
        output.update(self.properties())

        for relationship in self._model.eager:
            if relationship.name in self._eager:
                value = self._eager[relationship.name]
                output[relationship.name] = value.to_json() if value is not None else None

        return output

    async def update(self, properties: Mapping[str, Any]) -> "Node":
        """Update properties on the node and refresh the local copy.

        Required properties that are not part of the update are sent with
        their current value so that validation passes.
        """
        payload = dict(properties)
        for key, prop in self._model.properties.items():
            if prop.required and key not in payload and key in self._properties:
                payload[key] = self._properties[key]

        updated = await self._graph.update_node(self, payload)
        self._properties.update(updated)
        return self

    async def delete(self, to_depth: int | None = None) -> "Node":
        """Delete the node and cascade to dependent nodes.

        Args:
            to_depth: Maximum cascade depth, the graph default when omitted
        """
        await self._graph.delete(self, to_depth=to_depth)
        self._deleted = True
        return self

    async def relate_to(
        self,
        other: "Node",
        relationship: str,
        properties: Mapping[str, Any] | None = None,
        force_create: bool = False,
    ) -> "Relationship":
        """Relate this node to another through a declared relationship.

        Args:
            other: Node at the other end
            relationship: Key of the relationship on this node's model
            properties: Properties of the relationship
            force_create: CREATE instead of MERGE the relationship

        Returns:
            The hydrated relationship

        Raises:
            RelationshipNotFoundError: If the model does not declare the relationship
        """
        result = await self._graph.relate(self, other, relationship, properties, force_create)
        # The cached eager value is stale now
        self._eager.pop(relationship, None)
        return result

    async def detach_from(self, other: "Node") -> tuple["Node", "Node"]:
        """Delete every relationship between this node and another."""
        await self._graph.detach(self, other)
        return self, other

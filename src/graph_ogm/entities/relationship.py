"""Hydrated relationship."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from graph_ogm.entities.entity import Entity
from graph_ogm.schema.property import Property
from graph_ogm.schema.relationship_type import Direction, RelationshipType

if TYPE_CHECKING:
    from graph_ogm.entities.node import Node
    from graph_ogm.graph import Graph


class Relationship(Entity):
    """A relationship read from the graph.

    Args:
        graph: Graph the relationship was read from
        definition: Declared relationship type
        identity: Element id of the relationship
        type: Relationship type in the database
        properties: Declared properties read from the row
        start: Start node
        end: End node
    """

    def __init__(
        self,
        graph: "Graph",
        definition: RelationshipType,
        identity: str,
        type: str,
        properties: Mapping[str, Any] | None,
        start: "Node",
        end: "Node",
    ):
        super().__init__(graph, identity, properties)
        self._definition = definition
        self._type = type
        self._start = start
        self._end = end

    def __repr__(self) -> str:
        return f"Relationship(type={self._type!r}, identity={self._identity!r})"

    @property
    def definition(self) -> RelationshipType:
        return self._definition

    @property
    def type(self) -> str:
        return self._type

    @property
    def declared_properties(self) -> Mapping[str, Property]:
        return self._definition.properties

    @property
    def start_node(self) -> "Node":
        return self._start

    @property
    def end_node(self) -> "Node":
        return self._end

    @property
    def other_node(self) -> "Node":
        """The node at the far end, as seen from the model declaring the relationship."""
        return self._start if self._definition.direction is Direction.IN else self._end

    def to_json(self) -> dict[str, Any]:
        output: dict[str, Any] = {"_id": self._identity, "_type": self._type}
        output.update(self.properties())
        output[self._definition.node_alias] = self.other_node.to_json()
        return output

    async def update(self, properties: Mapping[str, Any]) -> "Relationship":
        """Update properties on the relationship and refresh the local copy."""
        payload = dict(properties)
        for key, prop in self._definition.properties.items():
            if prop.required and key not in payload and key in self._properties:
                payload[key] = self._properties[key]

        updated = await self._graph.update_relationship(self, payload)
        self._properties.update(updated)
        return self

    async def delete(self) -> "Relationship":
        await self._graph.delete_relationship(self)
        self._deleted = True
        return self

"""Ordered collections of hydrated entities."""

from typing import Any, Generic, TypeVar

from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship

T = TypeVar("T", Node, Relationship)


class Collection(list[T], Generic[T]):
    """A list of entities in the order the database returned them."""

    def get(self, index: int) -> T | None:
        """Entity at ``index``, or None when out of range."""
        try:
            return self[index]
        except IndexError:
            return None

    def first(self) -> T | None:
        return self.get(0)

    def to_json(self) -> list[dict[str, Any]]:
        return [item.to_json() for item in self]


class NodeCollection(Collection[Node]):
    pass


class RelationshipCollection(Collection[Relationship]):
    pass

"""Shared behaviour of hydrated nodes and relationships."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from graph_ogm.schema.property import Property
from graph_ogm.schema.values import value_to_json

if TYPE_CHECKING:
    from graph_ogm.graph import Graph


class Entity(ABC):
    """A hydrated graph entity.

    Holds every declared property read from the database, hidden ones
    included, so that ``get`` can still reach them. ``properties()`` and
    ``to_json()`` leave hidden properties out.
    """

    def __init__(self, graph: "Graph", identity: str, properties: Mapping[str, Any] | None = None):
        self._graph = graph
        self._identity = identity
        self._properties: dict[str, Any] = dict(properties or {})
        self._deleted = False

    @property
    def identity(self) -> str:
        """Element id assigned by the database."""
        return self._identity

    @property
    def id(self) -> str:
        return self._identity

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    @abstractmethod
    def declared_properties(self) -> Mapping[str, Property]:
        """Property declarations of the model or relationship type."""

    def _eager_value(self, key: str) -> Any:
        raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a property, falling back to an eagerly loaded relationship."""
        if key in self._properties:
            return self._properties[key]
        try:
            return self._eager_value(key)
        except KeyError:
            return default

    def properties(self) -> dict[str, Any]:
        """Declared, non-hidden properties as JSON friendly values."""
        return {
            key: value_to_json(prop, self._properties[key])
            for key, prop in self.declared_properties.items()
            if not prop.hidden and key in self._properties
        }

    @abstractmethod
    def to_json(self) -> dict[str, Any]:
        """Serialize the entity, including loaded relationships."""

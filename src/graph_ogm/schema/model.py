"""Model declarations.

A Model is the declared shape of a node type: its labels, properties and
relationships. Models are immutable once built; extending one produces a new
Model through the registry.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from graph_ogm.core.base import SchemaErrorDetails
from graph_ogm.core.errors import SchemaError
from graph_ogm.schema.property import Property, PropertyType
from graph_ogm.schema.relationship_type import SHAPES, RelationshipType

SchemaDeclaration = Mapping[str, Any]


def _is_relationship_declaration(value: Any) -> bool:
    if isinstance(value, RelationshipType):
        return True
    return isinstance(value, Mapping) and str(value.get("type", "")).lower() in SHAPES


class Model:
    """The declared node type.

    Args:
        name: Model name, also the default label
        schema: Mapping of key to declaration. A string or property mapping
            declares a property, a mapping whose ``type`` is one of node,
            nodes, relationship or relationships declares a relationship.
            The reserved ``labels`` key overrides the label set.
        labels: Explicit label set, used when extending a model
    """

    def __init__(self, name: str, schema: SchemaDeclaration, labels: Iterable[str] | None = None):
        self._name = name
        self._schema: Mapping[str, Any] = MappingProxyType(dict(schema))

        declared_labels = labels if labels is not None else schema.get("labels") or [name]
        self._labels: tuple[str, ...] = tuple(sorted(declared_labels))

        properties: dict[str, Property] = {}
        relationships: dict[str, RelationshipType] = {}

        for key, value in schema.items():
            if key == "labels":
                continue

            if _is_relationship_declaration(value):
                relationships[key] = (
                    value if isinstance(value, RelationshipType) else RelationshipType.from_schema(key, value)
                )
            elif isinstance(value, str | PropertyType | Mapping | Property):
                properties[key] = Property.from_schema(key, value)
            else:
                raise SchemaError(
                    f"Invalid declaration for {key} on model {name}",
                    SchemaErrorDetails(source="schema.model", operation="declare", model=name, relationship=key),
                )

        self._properties: Mapping[str, Property] = MappingProxyType(properties)
        self._relationships: Mapping[str, RelationshipType] = MappingProxyType(relationships)

        primary = [key for key, prop in properties.items() if prop.primary]
        self._primary_key = primary[-1] if primary else f"{name.lower()}_id"
        self._unique = tuple(key for key, prop in properties.items() if prop.unique or prop.primary)
        self._indexed = tuple(key for key, prop in properties.items() if prop.indexed)
        self._hidden = tuple(key for key, prop in properties.items() if prop.hidden)
        self._readonly = tuple(key for key, prop in properties.items() if prop.readonly)

    def __repr__(self) -> str:
        return f"Model(name={self._name!r}, labels={list(self._labels)!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def schema(self) -> Mapping[str, Any]:
        """The raw declaration this model was built from."""
        return self._schema

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    @property
    def properties(self) -> Mapping[str, Property]:
        return self._properties

    @property
    def relationships(self) -> Mapping[str, RelationshipType]:
        return self._relationships

    def relationship(self, name: str) -> RelationshipType | None:
        return self._relationships.get(name)

    @property
    def eager(self) -> tuple[RelationshipType, ...]:
        """Relationships flagged to be fetched with the node."""
        return tuple(rel for rel in self._relationships.values() if rel.eager)

    @property
    def primary_key(self) -> str:
        return self._primary_key

    @property
    def unique(self) -> tuple[str, ...]:
        return self._unique

    @property
    def indexed(self) -> tuple[str, ...]:
        return self._indexed

    @property
    def hidden(self) -> tuple[str, ...]:
        return self._hidden

    @property
    def readonly(self) -> tuple[str, ...]:
        return self._readonly

    @property
    def merge_fields(self) -> tuple[str, ...]:
        """Properties a MERGE matches on: unique keys followed by indexed keys."""
        return self._unique + self._indexed

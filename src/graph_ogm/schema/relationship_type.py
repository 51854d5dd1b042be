"""Relationship declarations.

A relationship declaration describes one named relationship from a model to a
target model: its shape, the underlying relationship type, direction, eager
and cascade policy, and the properties the relationship itself carries.
"""

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from graph_ogm.schema.property import Property

if TYPE_CHECKING:
    from graph_ogm.schema.model import Model

DEFAULT_NODE_ALIAS = "node"


class RelationshipShape(str, Enum):
    """How a relationship is exposed on the owning node."""

    NODE = "node"
    NODES = "nodes"
    RELATIONSHIP = "relationship"
    RELATIONSHIPS = "relationships"

    @classmethod
    def _missing_(cls, value: object) -> "RelationshipShape | None":
        if isinstance(value, str):
            normalized = value.lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def is_collection(self) -> bool:
        return self in (RelationshipShape.NODES, RelationshipShape.RELATIONSHIPS)

    @property
    def is_relationship(self) -> bool:
        return self in (RelationshipShape.RELATIONSHIP, RelationshipShape.RELATIONSHIPS)


class Direction(str, Enum):
    """Direction of a relationship, seen from the owning node."""

    IN = "in"
    OUT = "out"
    BOTH = "both"

    @classmethod
    def _missing_(cls, value: object) -> "Direction | None":
        # Accept "IN", "direction_in", "DIRECTION_IN"
        if isinstance(value, str):
            normalized = value.lower().removeprefix("direction_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def arrow_in(self) -> str:
        return "<" if self is Direction.IN else ""

    @property
    def arrow_out(self) -> str:
        return ">" if self is Direction.OUT else ""


class CascadePolicy(str, Enum):
    """What happens to the target when the owning node is deleted."""

    NONE = "none"
    DETACH = "detach"
    DELETE = "delete"

    @classmethod
    def _missing_(cls, value: object) -> "CascadePolicy | None":
        if value is None or value is False:
            return cls.NONE
        if isinstance(value, str):
            normalized = value.lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


SHAPES = frozenset(shape.value for shape in RelationshipShape)


class RelationshipType(BaseModel):
    """A declared relationship on a model.

    The target is kept as declared. A model name is resolved lazily through
    the model registry so that a model can point at itself.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Schema-facing key on the owning model")
    shape: RelationshipShape
    relationship: str = Field(..., description="Relationship type in the graph, e.g. KNOWS")
    direction: Direction = Direction.BOTH
    target: Any = Field(None, description="Target model name, Model instance, or None for any node")
    eager: bool = False
    cascade: CascadePolicy = CascadePolicy.NONE
    node_alias: str = DEFAULT_NODE_ALIAS
    properties: dict[str, Property] = Field(default_factory=dict)

    @field_validator("cascade", mode="before")
    @classmethod
    def _coerce_cascade(cls, value: Any) -> Any:
        return CascadePolicy.NONE if value is None else value

    @property
    def target_name(self) -> str | None:
        """Name of the target model, whether declared by name or by instance."""
        if self.target is None:
            return None
        if isinstance(self.target, str):
            return self.target
        return self.target.name

    @classmethod
    def from_schema(cls, name: str, declaration: Mapping[str, Any]) -> "RelationshipType":
        """Build a relationship from a schema entry.

        Args:
            name: Key of the relationship on the owning model
            declaration: Mapping with ``type`` (node, nodes, relationship,
                relationships), ``relationship``, and optionally ``direction``,
                ``target``, ``eager``, ``cascade``, ``alias`` and ``properties``

        Returns:
            The frozen relationship declaration
        """
        target: "str | Model | None" = declaration.get("target")
        properties = {
            key: Property.from_schema(key, value) for key, value in (declaration.get("properties") or {}).items()
        }

        return cls(
            name=name,
            shape=RelationshipShape(declaration["type"]),
            relationship=declaration["relationship"],
            direction=Direction(declaration.get("direction") or Direction.BOTH),
            target=target,
            eager=bool(declaration.get("eager", False)),
            cascade=CascadePolicy(declaration.get("cascade")),
            node_alias=declaration.get("alias") or DEFAULT_NODE_ALIAS,
            properties=properties,
        )

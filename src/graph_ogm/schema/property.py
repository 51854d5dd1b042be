"""Property declarations for models and relationships."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PropertyType(str, Enum):
    """Scalar, temporal and spatial types a property can declare."""

    STRING = "string"
    UUID = "uuid"
    NUMBER = "number"
    INT = "int"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"

    # Temporal
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    LOCALDATETIME = "localdatetime"
    LOCALTIME = "localtime"
    DURATION = "duration"

    # Spatial
    POINT = "point"

    @property
    def is_integer(self) -> bool:
        return self in (PropertyType.INT, PropertyType.INTEGER)

    @property
    def is_temporal(self) -> bool:
        return self in (
            PropertyType.DATETIME,
            PropertyType.DATE,
            PropertyType.TIME,
            PropertyType.LOCALDATETIME,
            PropertyType.LOCALTIME,
        )


class Property(BaseModel):
    """A single declared property.

    Primary properties are always unique and protected, so they can only be
    written when a node is first created.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., description="Property key on the node or relationship")
    type: PropertyType = Field(PropertyType.STRING, description="Declared value type")
    primary: bool = False
    required: bool = False
    unique: bool = False
    indexed: bool = False
    hidden: bool = Field(False, description="Excluded from properties() and to_json()")
    readonly: bool = Field(False, description="Never written after the node exists")
    protected: bool = Field(False, description="Only written on creation")
    default: Any = Field(None, description="Literal default or zero-argument callable")

    @model_validator(mode="before")
    @classmethod
    def _normalize_flags(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            # "exists" is accepted as an alias of "required"
            if data.pop("exists", False):
                data["required"] = True
            if data.get("primary"):
                data["unique"] = True
                data["protected"] = True
        return data

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    def default_value(self) -> Any:
        """Resolve the declared default, calling it when it is a generator."""
        return self.default() if callable(self.default) else self.default

    @classmethod
    def from_schema(cls, name: str, declaration: "str | PropertyType | Mapping[str, Any] | Property") -> "Property":
        """Build a property from a schema entry.

        Args:
            name: Property key
            declaration: A type name (``"string"``), a mapping of options
                (``{"type": "int", "required": True}``) or a Property

        Returns:
            The frozen property declaration
        """
        if isinstance(declaration, Property):
            return declaration if declaration.name == name else declaration.model_copy(update={"name": name})

        if isinstance(declaration, str | PropertyType):
            return cls(name=name, type=PropertyType(declaration))

        return cls.model_validate({**declaration, "name": name})

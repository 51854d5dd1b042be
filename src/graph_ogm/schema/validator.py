"""Property validation against a model or relationship declaration.

Each call builds a pydantic model from the declared scalar properties, so a
declaration never needs a hand-written schema class.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ConfigDict, create_model
from pydantic import ValidationError as PydanticValidationError

from graph_ogm.core.base import FieldFailure
from graph_ogm.core.errors import ValidationError
from graph_ogm.core.logging import get_logger
from graph_ogm.schema.property import Property, PropertyType

if TYPE_CHECKING:
    from graph_ogm.schema.model import Model
    from graph_ogm.schema.relationship_type import RelationshipType

logger = get_logger(__name__)

FIELD_TYPES: dict[PropertyType, Any] = {
    PropertyType.STRING: str,
    PropertyType.UUID: str,
    PropertyType.NUMBER: float | int,
    PropertyType.INT: int,
    PropertyType.INTEGER: int,
    PropertyType.FLOAT: float,
    PropertyType.BOOLEAN: bool,
}


def _field_definition(prop: Property) -> tuple[Any, Any]:
    # Temporal and spatial values are already driver types once cleaned
    annotation = FIELD_TYPES.get(prop.type, Any)
    if prop.required:
        return (annotation, ...)
    return (annotation | None if annotation is not Any else Any, None)


def validate(definition: "Model | RelationshipType", properties: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a property bag.

    Declared properties are checked for presence and type. Keys of declared
    relationships are passed through for the write compiler; undeclared keys
    are dropped.

    Args:
        definition: Model or relationship declaration
        properties: Property bag, usually the output of generate_default_values

    Returns:
        The validated property bag

    Raises:
        ValidationError: With one failure per offending field
    """
    fields = {key: _field_definition(prop) for key, prop in definition.properties.items()}
    schema = create_model(
        f"{definition.name}Properties",
        __config__=ConfigDict(extra="ignore", arbitrary_types_allowed=True),
        **fields,
    )

    try:
        validated = schema.model_validate(dict(properties)).model_dump(exclude_unset=True)
    except PydanticValidationError as e:
        failures = [
            FieldFailure(path=".".join(str(part) for part in error["loc"]), message=error["msg"])
            for error in e.errors()
        ]
        logger.debug(
            "Validation failed",
            extra={"definition": definition.name, "fields": [failure.path for failure in failures]},
        )
        raise ValidationError(
            f"Validation failed for {definition.name}",
            model=definition.name,
            failures=failures,
        ) from e

    for key in getattr(definition, "relationships", {}):
        if key in properties:
            validated[key] = properties[key]

    return validated

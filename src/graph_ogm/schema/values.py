"""Value conversion between Python, the neo4j driver and JSON.

- ``clean_value`` coerces caller input to the declared property type
- ``value_to_cypher`` prepares a cleaned value for a query parameter
- ``value_to_json`` turns driver values into JSON friendly values
- ``generate_default_values`` fills declared defaults into a property bag
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from neo4j.spatial import CartesianPoint, Point, WGS84Point
from neo4j.time import Date, DateTime, Duration, Time

from graph_ogm.core.base import FieldFailure
from graph_ogm.core.errors import ValidationError
from graph_ogm.schema.property import Property, PropertyType

if TYPE_CHECKING:
    from graph_ogm.schema.model import Model
    from graph_ogm.schema.relationship_type import RelationshipType


NEO4J_TEMPORAL = (Date, DateTime, Time, Duration)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and value == value


def _invalid(prop: Property, value: Any, reason: str) -> ValidationError:
    return ValidationError(
        f"Invalid value for {prop.name}: {reason}",
        failures=[FieldFailure(path=prop.name, message=f"{reason} (got {value!r})")],
    )


def parse_point(prop: Property, value: Any) -> Point:
    """Build a driver point from a mapping of coordinates.

    ``{latitude, longitude[, height]}`` gives a WGS-84 point and
    ``{x, y[, z]}`` gives a cartesian point.

    Raises:
        ValidationError: If the mapping holds neither coordinate form
    """
    if isinstance(value, Point):
        return value

    if not isinstance(value, Mapping):
        raise _invalid(prop, value, "point must be a mapping of coordinates")

    if not _is_number(value.get("x")) and _is_number(value.get("latitude")) and _is_number(value.get("longitude")):
        if _is_number(value.get("height")):
            return WGS84Point((value["longitude"], value["latitude"], value["height"]))
        return WGS84Point((value["longitude"], value["latitude"]))

    if _is_number(value.get("x")) and _is_number(value.get("y")):
        if _is_number(value.get("z")):
            return CartesianPoint((value["x"], value["y"], value["z"]))
        return CartesianPoint((value["x"], value["y"]))

    raise _invalid(prop, value, "invalid point value")


def _to_datetime(prop: Property, value: Any) -> datetime | None:
    """Interpret numbers as epoch milliseconds and strings as ISO 8601."""
    if _is_number(value):
        return datetime.fromtimestamp(value / 1000, tz=UTC)

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            if prop.type not in (PropertyType.TIME, PropertyType.LOCALTIME):
                raise _invalid(prop, value, "not an ISO 8601 date") from None
            try:
                parsed_time = time.fromisoformat(value)
            except ValueError:
                raise _invalid(prop, value, "not an ISO 8601 time") from None
            parsed = datetime.combine(date(1970, 1, 1), parsed_time)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    if isinstance(value, datetime):
        return value

    return None


def _clean_temporal(prop: Property, value: Any) -> Any:
    if isinstance(value, NEO4J_TEMPORAL):
        return value

    if isinstance(value, date) and not isinstance(value, datetime):
        return Date.from_native(value) if prop.type is PropertyType.DATE else value

    native = _to_datetime(prop, value)
    if native is None:
        return value

    match prop.type:
        case PropertyType.DATE:
            return Date.from_native(native.date())
        case PropertyType.DATETIME:
            return DateTime.from_native(native)
        case PropertyType.LOCALDATETIME:
            return DateTime.from_native(native.replace(tzinfo=None))
        case PropertyType.TIME:
            return Time.from_native(native.timetz())
        case PropertyType.LOCALTIME:
            return Time.from_native(native.time())
        case _:
            return value


def clean_value(prop: Property, value: Any) -> Any:
    """Coerce a value to the declared property type.

    Args:
        prop: Property declaration
        value: Caller supplied value

    Returns:
        The coerced value

    Raises:
        ValidationError: If the value cannot be coerced
    """
    if value is None:
        return None

    if prop.type.is_temporal:
        return _clean_temporal(prop, value)

    try:
        match prop.type:
            case PropertyType.FLOAT:
                return float(value)
            case PropertyType.INT | PropertyType.INTEGER:
                return int(value)
            case PropertyType.BOOLEAN:
                return bool(value)
            case PropertyType.POINT:
                return parse_point(prop, value)
            case _:
                return value
    except (TypeError, ValueError) as e:
        raise _invalid(prop, value, str(e)) from e


def value_to_cypher(prop: Property, value: Any) -> Any:
    """Prepare a cleaned value for use as a query parameter."""
    if prop.type.is_integer and isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def value_to_json(prop: Property | None, value: Any) -> Any:
    """Convert a driver value into a JSON friendly value.

    Temporal values become ISO 8601 strings and points become coordinate
    mappings keyed by their coordinate system.
    """
    if isinstance(value, NEO4J_TEMPORAL):
        return value.iso_format()

    if isinstance(value, datetime | date | time):
        return value.isoformat()

    if isinstance(value, Point):
        # SRIDs: 4326/4979 WGS-84 2D/3D, 7203/9157 cartesian 2D/3D
        match value.srid:
            case 4326:
                return {"longitude": value[0], "latitude": value[1]}
            case 4979:
                return {"longitude": value[0], "latitude": value[1], "height": value[2]}
            case 7203:
                return {"x": value[0], "y": value[1]}
            case 9157:
                return {"x": value[0], "y": value[1], "z": value[2]}

    return value


def generate_default_values(
    definition: "Model | RelationshipType",
    properties: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Fill declared defaults into a property bag.

    Every declared property is taken from ``properties`` when present, or from
    its declared default otherwise. ``uuid`` properties without a default get
    a random UUID4. Present values are cleaned to their declared type. Keys of
    declared relationships pass through untouched; anything else is dropped.

    Args:
        definition: Model or relationship declaration
        properties: Caller supplied property bag

    Returns:
        A new property bag

    Raises:
        ValidationError: If ``properties`` is not a mapping
    """
    if properties is None or not isinstance(properties, Mapping):
        raise ValidationError(
            "`properties` must be a mapping.",
            failures=[FieldFailure(path="properties", message=f"expected a mapping, got {type(properties).__name__}")],
        )

    output: dict[str, Any] = {}

    for key, prop in definition.properties.items():
        if key in properties:
            output[key] = properties[key]
        elif prop.has_default:
            output[key] = prop.default_value()
        elif prop.type is PropertyType.UUID:
            output[key] = str(uuid4())

        if output.get(key) is not None:
            output[key] = clean_value(prop, output[key])

    for key in getattr(definition, "relationships", {}):
        if key in properties:
            output[key] = properties[key]

    return output

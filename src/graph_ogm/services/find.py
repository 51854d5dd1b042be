"""Read nodes by properties, id or distance."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from graph_ogm.entities.collection import NodeCollection
from graph_ogm.entities.node import Node
from graph_ogm.query.builder import Builder
from graph_ogm.query.eager import eager_node
from graph_ogm.query.interfaces import QueryMode
from graph_ogm.schema.model import Model

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

ALIAS = "this"

# A property name, {property: direction}, or [property, (property, direction)]
OrderSpec = str | Mapping[str, str] | list[Any]


def _qualify(order: OrderSpec) -> Any:
    match order:
        case str():
            return f"{ALIAS}.{order}"
        case Mapping():
            return {f"{ALIAS}.{key}": direction for key, direction in order.items()}
        case list():
            return [
                (f"{ALIAS}.{item[0]}", *item[1:]) if isinstance(item, tuple) else f"{ALIAS}.{item}" for item in order
            ]
        case _:
            raise TypeError(f"Unsupported order: {order!r}")


def _finish(
    graph: "Graph",
    builder: Builder,
    model: Model,
    order: OrderSpec | None,
    limit: int | None,
    skip: int | None,
) -> Builder:
    builder.return_clause(f"{eager_node(graph.models, 1, ALIAS, model)} AS {ALIAS}")
    if order:
        builder.order_by(_qualify(order))
    if skip:
        builder.skip(skip)
    if limit:
        builder.limit(limit)
    return builder


async def find_all(
    graph: "Graph",
    model: Model | str,
    properties: Mapping[str, Any] | None = None,
    order: OrderSpec | None = None,
    limit: int | None = None,
    skip: int | None = None,
) -> NodeCollection:
    """Find every node of a model matching property equalities.

    Example:
        ```python
        people = await find_all(graph, "Person", {"active": True}, order={"name": "ASC"}, limit=10)
        ```

    Args:
        graph: Graph to read from
        model: Model or model name
        properties: Property equalities, all of which must hold
        order: Ordering on properties of the node
        limit: Maximum number of nodes
        skip: Number of nodes to skip

    Returns:
        The matching nodes with their eager relationships loaded
    """
    model = graph.models.resolve(model)
    builder = Builder(graph).match(ALIAS, model)
    for key, value in (properties or {}).items():
        builder.where(f"{ALIAS}.{key}", value)

    records = await _finish(graph, builder, model, order, limit, skip).execute(QueryMode.READ)
    return graph.hydrate(records, ALIAS, model)


async def find_by_id(graph: "Graph", model: Model | str, identity: str) -> Node | None:
    """Find a node by its element id."""
    model = graph.models.resolve(model)
    builder = Builder(graph).match(ALIAS, model).where_id(ALIAS, identity)

    records = await _finish(graph, builder, model, None, 1, None).execute(QueryMode.READ)
    return graph.hydrate_first(records, ALIAS, model)


async def first(
    graph: "Graph",
    model: Model | str,
    key: str | Mapping[str, Any],
    value: Any = None,
) -> Node | None:
    """Find the first node matching a property, or a mapping of properties.

    Example:
        ```python
        adam = await first(graph, "Person", "name", "Adam")
        adam = await first(graph, "Person", {"name": "Adam", "age": 29})
        ```
    """
    model = graph.models.resolve(model)
    builder = Builder(graph).match(ALIAS, model)

    conditions = key if isinstance(key, Mapping) else {key: value}
    for name, expected in conditions.items():
        builder.where(f"{ALIAS}.{name}", expected)

    records = await _finish(graph, builder, model, None, 1, None).execute(QueryMode.READ)
    return graph.hydrate_first(records, ALIAS, model)


async def find_within_distance(
    graph: "Graph",
    model: Model | str,
    location_property: str,
    point: Mapping[str, float],
    distance: float,
    properties: Mapping[str, Any] | None = None,
    order: OrderSpec | None = None,
    limit: int | None = None,
    skip: int | None = None,
) -> NodeCollection:
    """Find nodes whose point property lies within a distance of a point.

    Args:
        graph: Graph to read from
        model: Model or model name
        location_property: Point property on the model
        point: Point as a map, e.g. ``{"latitude": 51.5, "longitude": -0.1}``
            or ``{"x": 1, "y": 2}``
        distance: Maximum distance, in metres for geographic points
        properties: Additional property equalities
        order: Ordering on properties of the node
        limit: Maximum number of nodes
        skip: Number of nodes to skip

    Returns:
        The matching nodes
    """
    model = graph.models.resolve(model)
    builder = Builder(graph).match(ALIAS, model)

    point_param = builder.add_parameter("where_point", dict(point))
    distance_param = builder.add_parameter("where_distance", distance)
    builder.where_raw(f"point.distance({ALIAS}.{location_property}, point(${point_param})) <= ${distance_param}")

    for key, value in (properties or {}).items():
        builder.where(f"{ALIAS}.{key}", value)

    records = await _finish(graph, builder, model, order, limit, skip).execute(QueryMode.READ)
    return graph.hydrate(records, ALIAS, model)

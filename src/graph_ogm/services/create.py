"""Create and merge nodes, including nested payloads."""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from graph_ogm.core.errors import NotFoundError
from graph_ogm.core.logging import get_logger
from graph_ogm.entities.node import Node
from graph_ogm.query.builder import Builder
from graph_ogm.query.eager import eager_node
from graph_ogm.query.interfaces import QueryMode
from graph_ogm.query.write import ORIGINAL_ALIAS, WriteMode, add_node_to_statement
from graph_ogm.schema.model import Model
from graph_ogm.schema.validator import validate
from graph_ogm.schema.values import generate_default_values

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

logger = get_logger(__name__)


async def _write(
    graph: "Graph",
    model: Model | str,
    properties: Mapping[str, Any],
    mode: WriteMode,
    merge_on: Sequence[str] = (),
) -> Node:
    model = graph.models.resolve(model)
    validated = validate(model, generate_default_values(model, properties))

    builder = Builder(graph)
    add_node_to_statement(
        graph.models,
        builder,
        ORIGINAL_ALIAS,
        model,
        validated,
        aliases=[ORIGINAL_ALIAS],
        mode=mode,
        merge_on=merge_on,
    )
    builder.return_clause(f"{eager_node(graph.models, 1, ORIGINAL_ALIAS, model)} AS {ORIGINAL_ALIAS}")

    records = await builder.execute(QueryMode.WRITE)
    node = graph.hydrate_first(records, ORIGINAL_ALIAS, model)
    if node is None:
        raise NotFoundError(model.name, alias=ORIGINAL_ALIAS)

    logger.debug("Wrote node", extra={"model": model.name, "mode": mode.value, "identity": node.identity})
    return node


async def create(graph: "Graph", model: Model | str, properties: Mapping[str, Any]) -> Node:
    """Create a node and everything nested in its property bag.

    Args:
        graph: Graph to write to
        model: Model or model name
        properties: Property bag; relationship keys may hold nodes, primary
            key values or nested property bags

    Returns:
        The created node with its eager relationships loaded

    Raises:
        ValidationError: If the bag does not satisfy the model
        SchemaError: If a nested payload targets an unregistered model
    """
    return await _write(graph, model, properties, WriteMode.CREATE)


async def merge_on(
    graph: "Graph",
    model: Model | str,
    merge_on: Sequence[str],
    properties: Mapping[str, Any],
) -> Node:
    """Merge a node on the given keys.

    The ``merge_on`` keys identify the node. Primary and protected
    properties are only written when the node is created; everything else
    is written on both create and match.
    """
    return await _write(graph, model, properties, WriteMode.MERGE, merge_on)


async def merge(graph: "Graph", model: Model | str, properties: Mapping[str, Any]) -> Node:
    """Merge a node on its primary and unique properties."""
    resolved = graph.models.resolve(model)
    return await _write(graph, resolved, properties, WriteMode.MERGE, resolved.merge_fields)

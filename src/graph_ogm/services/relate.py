"""Relate two nodes through a declared relationship."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from neo4j.graph import Relationship as DriverRelationship

from graph_ogm.core.errors import HydrationError, RelationshipNotFoundError
from graph_ogm.core.logging import get_logger
from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship
from graph_ogm.query.builder import Builder
from graph_ogm.query.interfaces import QueryMode
from graph_ogm.schema.relationship_type import Direction, RelationshipType
from graph_ogm.schema.validator import validate
from graph_ogm.schema.values import generate_default_values, value_to_cypher

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

logger = get_logger(__name__)

FROM_ALIAS = "from"
TO_ALIAS = "to"
REL_ALIAS = "rel"


def resolve_relationship(node: Node, relationship: RelationshipType | str) -> RelationshipType:
    """Find a relationship declared on the node's model.

    Raises:
        RelationshipNotFoundError: If the model does not declare it
    """
    if isinstance(relationship, RelationshipType):
        return relationship

    definition = node.model.relationship(relationship)
    if definition is None:
        raise RelationshipNotFoundError(node.model.name, relationship)
    return definition


async def relate_to(
    graph: "Graph",
    from_node: Node,
    to_node: Node,
    relationship: RelationshipType | str,
    properties: Mapping[str, Any] | None = None,
    force_create: bool = False,
) -> Relationship:
    """Create or merge a relationship between two nodes.

    The relationship is merged unless ``force_create`` is set, so relating
    the same pair twice leaves a single relationship.

    Args:
        graph: Graph to write to
        from_node: Node whose model declares the relationship
        to_node: Node at the other end
        relationship: Declared relationship or its key on the model
        properties: Relationship properties, defaulted and validated
        force_create: CREATE instead of MERGE

    Returns:
        The hydrated relationship

    Raises:
        RelationshipNotFoundError: If the model does not declare the relationship
        ValidationError: If the properties do not satisfy the declaration
    """
    definition = resolve_relationship(from_node, relationship)
    validated = validate(definition, generate_default_values(definition, properties or {}))

    builder = (
        Builder(graph)
        .match(FROM_ALIAS)
        .where_id(FROM_ALIAS, from_node.identity)
        .match(TO_ALIAS)
        .where_id(TO_ALIAS, to_node.identity)
    )

    if force_create:
        builder.create(FROM_ALIAS)
    else:
        builder.merge(FROM_ALIAS)
    builder.relationship(definition, alias=REL_ALIAS).to(TO_ALIAS)

    for key, prop in definition.properties.items():
        if key in validated:
            builder.set(f"{REL_ALIAS}.{key}", value_to_cypher(prop, validated[key]))

    records = await builder.return_clause(REL_ALIAS).execute(QueryMode.WRITE)
    if not records:
        raise HydrationError(f"Relating with {definition.relationship} returned no rows", field=REL_ALIAS)

    rel = records[0][REL_ALIAS]
    if not isinstance(rel, DriverRelationship):
        raise HydrationError(f"Expected a relationship, got {type(rel).__name__}", field=REL_ALIAS)

    if definition.direction is Direction.IN:
        start, end = to_node, from_node
    else:
        start, end = from_node, to_node

    logger.debug(
        "Related nodes",
        extra={"relationship": definition.name, "type": rel.type, "force_create": force_create},
    )
    return Relationship(
        graph,
        definition,
        rel.element_id,
        rel.type,
        {key: rel[key] for key in definition.properties if key in rel},
        start,
        end,
    )

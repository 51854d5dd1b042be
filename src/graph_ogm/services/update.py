"""Update node and relationship properties in place."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from graph_ogm.core.logging import get_logger
from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship
from graph_ogm.schema.model import Model
from graph_ogm.schema.relationship_type import RelationshipType
from graph_ogm.schema.validator import validate
from graph_ogm.schema.values import clean_value, value_to_cypher

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

logger = get_logger(__name__)

UPDATE_NODE = """MATCH (node)
WHERE elementId(node) = $identity
SET node += $properties
WITH node
UNWIND keys($properties) AS key
RETURN key, node[key] AS value"""

UPDATE_RELATIONSHIP = """MATCH ()-[rel]->()
WHERE elementId(rel) = $identity
SET rel += $properties
RETURN properties(rel) AS properties"""


def prepare_update(definition: Model | RelationshipType, properties: Mapping[str, Any]) -> dict[str, Any]:
    """Clean, validate and convert the declared properties of an update.

    Defaults are not applied, so properties left out of the update keep
    their stored value.

    Raises:
        ValidationError: If the update does not satisfy the declaration
    """
    cleaned = {
        key: clean_value(prop, properties[key]) if properties[key] is not None else None
        for key, prop in definition.properties.items()
        if key in properties
    }
    validated = validate(definition, cleaned)
    return {
        key: value_to_cypher(prop, validated[key]) for key, prop in definition.properties.items() if key in validated
    }


async def update_node(graph: "Graph", node: Node, properties: Mapping[str, Any]) -> dict[str, Any]:
    """Write properties to a node.

    Returns:
        The stored value of every updated key
    """
    payload = prepare_update(node.model, properties)
    records = await graph.write_cypher(UPDATE_NODE, {"identity": node.identity, "properties": payload})

    logger.debug("Updated node", extra={"identity": node.identity, "keys": sorted(payload)})
    return {record["key"]: record["value"] for record in records}


async def update_relationship(
    graph: "Graph",
    relationship: Relationship,
    properties: Mapping[str, Any],
) -> dict[str, Any]:
    """Write properties to a relationship.

    Returns:
        Every property stored on the relationship after the update
    """
    payload = prepare_update(relationship.definition, properties)
    records = await graph.write_cypher(
        UPDATE_RELATIONSHIP,
        {"identity": relationship.identity, "properties": payload},
    )

    logger.debug("Updated relationship", extra={"identity": relationship.identity, "keys": sorted(payload)})
    return dict(records[0]["properties"]) if records else {}

"""Delete nodes and relationships."""

from typing import TYPE_CHECKING

from graph_ogm.core.logging import get_logger
from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship
from graph_ogm.query.builder import Builder
from graph_ogm.query.cascade import MAX_CASCADE_DEPTH, delete_node_query
from graph_ogm.query.interfaces import QueryMode
from graph_ogm.schema.model import Model

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

logger = get_logger(__name__)

DELETE_RELATIONSHIP = "MATCH ()-[rel]->() WHERE elementId(rel) = $identity DELETE rel"

DETACH_NODES = (
    "MATCH (from)-[rel]-(to) WHERE elementId(from) = $from_id AND elementId(to) = $to_id DELETE rel"
)


async def delete_node(graph: "Graph", node: Node, to_depth: int = MAX_CASCADE_DEPTH) -> Node:
    """Delete a node and every node its delete-cascading relationships reach.

    Args:
        graph: Graph to write to
        node: Node to delete
        to_depth: Maximum cascade depth

    Returns:
        The deleted node
    """
    builder = delete_node_query(graph.models, Builder(graph), node.identity, node.model, to_depth)
    await builder.execute(QueryMode.WRITE)

    logger.debug("Deleted node", extra={"model": node.model.name, "identity": node.identity, "to_depth": to_depth})
    return node


async def delete_all(graph: "Graph", model: Model | str) -> None:
    """Delete every node carrying the labels of a model."""
    model = graph.models.resolve(model)
    await Builder(graph).match("node", model).detach_delete("node").execute(QueryMode.WRITE)
    logger.info("Deleted all nodes", extra={"model": model.name})


async def delete_relationship(graph: "Graph", relationship: Relationship) -> Relationship:
    await graph.write_cypher(DELETE_RELATIONSHIP, {"identity": relationship.identity})
    return relationship


async def detach_from(graph: "Graph", from_node: Node, to_node: Node) -> tuple[Node, Node]:
    """Delete every relationship between two nodes, in either direction."""
    await graph.write_cypher(DETACH_NODES, {"from_id": from_node.identity, "to_id": to_node.identity})
    return from_node, to_node

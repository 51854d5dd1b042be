"""Schema-driven object graph mapper for Neo4j."""

from graph_ogm.core import (
    ApplicationError,
    HydrationError,
    ModelNotFoundError,
    NotFoundError,
    QueryError,
    QueryStateError,
    RelationshipNotFoundError,
    SchemaError,
    TransactionError,
    ValidationError,
)
from graph_ogm.core.config import Settings, get_settings
from graph_ogm.core.logging import setup_logging
from graph_ogm.entities import Node, NodeCollection, Relationship, RelationshipCollection
from graph_ogm.graph import Graph
from graph_ogm.query import Builder, QueryMode
from graph_ogm.schema import Model, ModelMap

__version__ = "0.1.0"

__all__ = [
    "ApplicationError",
    "Builder",
    "Graph",
    "HydrationError",
    "Model",
    "ModelMap",
    "ModelNotFoundError",
    "Node",
    "NodeCollection",
    "NotFoundError",
    "QueryError",
    "QueryMode",
    "QueryStateError",
    "Relationship",
    "RelationshipCollection",
    "RelationshipNotFoundError",
    "SchemaError",
    "Settings",
    "TransactionError",
    "ValidationError",
    "get_settings",
    "setup_logging",
]

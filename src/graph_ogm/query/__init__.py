"""Cypher query building and compilation."""

from .builder import UNSET, Builder
from .cascade import MAX_CASCADE_DEPTH, delete_node_query
from .clauses import Connector, OrderDirection
from .eager import EAGER_ID, EAGER_LABELS, EAGER_TYPE, MAX_EAGER_DEPTH, eager_node, eager_relationship
from .interfaces import BatchQuery, QueryMode, QueryRunner
from .state import ClauseType, CypherQueryState
from .write import MAX_CREATE_DEPTH, WriteMode, add_node_to_statement

__all__ = [
    "EAGER_ID",
    "EAGER_LABELS",
    "EAGER_TYPE",
    "MAX_CASCADE_DEPTH",
    "MAX_CREATE_DEPTH",
    "MAX_EAGER_DEPTH",
    "UNSET",
    "BatchQuery",
    "Builder",
    "ClauseType",
    "Connector",
    "CypherQueryState",
    "OrderDirection",
    "QueryMode",
    "QueryRunner",
    "WriteMode",
    "add_node_to_statement",
    "delete_node_query",
    "eager_node",
    "eager_relationship",
]

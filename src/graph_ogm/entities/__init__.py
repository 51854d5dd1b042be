"""Hydrated graph entities."""

from graph_ogm.entities.collection import Collection, NodeCollection, RelationshipCollection
from graph_ogm.entities.entity import Entity
from graph_ogm.entities.node import Node
from graph_ogm.entities.relationship import Relationship

__all__ = [
    "Collection",
    "Entity",
    "Node",
    "NodeCollection",
    "Relationship",
    "RelationshipCollection",
]

"""Model, property and relationship declarations."""

from .model import Model
from .model_map import ModelMap
from .property import Property, PropertyType
from .relationship_type import CascadePolicy, Direction, RelationshipShape, RelationshipType

__all__ = [
    "CascadePolicy",
    "Direction",
    "Model",
    "ModelMap",
    "Property",
    "PropertyType",
    "RelationshipShape",
    "RelationshipType",
]

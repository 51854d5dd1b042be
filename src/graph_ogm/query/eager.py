"""Eager-fetch projection compiler.

Builds the projection that returns a node together with every relationship
flagged ``eager`` on its model, recursively, in a single round trip:

    this { .*, __EAGER_ID__: elementId(this), __EAGER_LABELS__: labels(this),
      friends: [ (this)-[this_friends_rel:`KNOWS`]-(this_friends_node:Person)
                 | this_friends_node { ... } ] }

The projection is first built as a tree of frozen dataclasses, then rendered
by one recursive function. The depth is passed explicitly; once it exceeds
MAX_EAGER_DEPTH no more patterns are added, which bounds the size of the
projection for models that eagerly load themselves.
"""

from dataclasses import dataclass
from typing import assert_never

from graph_ogm.query.builder import Builder
from graph_ogm.schema.model import Model
from graph_ogm.schema.model_map import ModelMap
from graph_ogm.schema.relationship_type import RelationshipShape, RelationshipType

EAGER_ID = "__EAGER_ID__"
EAGER_LABELS = "__EAGER_LABELS__"
EAGER_TYPE = "__EAGER_TYPE__"
MAX_EAGER_DEPTH = 3


@dataclass(frozen=True)
class NodeProjection:
    """A node map projection with its nested eager patterns."""

    alias: str
    patterns: tuple["EagerPattern", ...] = ()


@dataclass(frozen=True)
class RelationshipProjection:
    """A relationship map projection holding the node at the other end."""

    alias: str
    node_alias: str
    node: NodeProjection


@dataclass(frozen=True)
class EagerPattern:
    """A pattern comprehension named after the relationship it loads."""

    name: str
    pattern: str
    fields: NodeProjection | RelationshipProjection
    single: bool


Projection = NodeProjection | RelationshipProjection | EagerPattern


def node_projection(models: ModelMap, depth: int, alias: str, model: Model | None) -> NodeProjection:
    """Build the projection tree for a node.

    Args:
        models: Registry used to resolve relationship targets
        depth: Current depth, 1 for the root node
        alias: Alias of the node in the query
        model: Model of the node, or None for a node of unknown type

    Returns:
        The projection tree
    """
    if model is None or depth > MAX_EAGER_DEPTH:
        return NodeProjection(alias)

    return NodeProjection(
        alias,
        tuple(eager_pattern(models, depth, alias, relationship, model) for relationship in model.eager),
    )


def relationship_projection(
    models: ModelMap,
    depth: int,
    alias: str,
    node_alias: str,
    node_variable: str,
    node_model: Model | None,
) -> RelationshipProjection:
    """Build the projection tree for a relationship and its other node."""
    return RelationshipProjection(
        alias=alias,
        node_alias=node_alias,
        node=node_projection(models, depth + 1, node_variable, node_model),
    )


def eager_pattern(
    models: ModelMap,
    depth: int,
    alias: str,
    relationship: RelationshipType,
    owner: Model | None = None,
) -> EagerPattern:
    """Build the pattern comprehension for one eager relationship.

    Raises:
        SchemaError: If the relationship names a target that is not registered
    """
    rel_variable = f"{alias}_{relationship.name}_rel"
    node_variable = f"{alias}_{relationship.name}_node"
    target = models.target_of(relationship, owner)

    pattern = Builder().match(alias).relationship(relationship, alias=rel_variable).to(node_variable, target).pattern()

    fields: NodeProjection | RelationshipProjection
    match relationship.shape:
        case RelationshipShape.NODE | RelationshipShape.NODES:
            fields = node_projection(models, depth + 1, node_variable, target)
        case RelationshipShape.RELATIONSHIP | RelationshipShape.RELATIONSHIPS:
            fields = relationship_projection(
                models, depth + 1, rel_variable, relationship.node_alias, node_variable, target
            )
        case _:
            assert_never(relationship.shape)

    return EagerPattern(
        name=relationship.name,
        pattern=pattern.strip(),
        fields=fields,
        single=not relationship.shape.is_collection,
    )


def render(projection: Projection) -> str:
    """Render a projection tree to Cypher."""
    match projection:
        case NodeProjection(alias=alias, patterns=patterns):
            fields = [
                ".*",
                f"{EAGER_ID}: elementId({alias})",
                f"{EAGER_LABELS}: labels({alias})",
                *(render(pattern) for pattern in patterns),
            ]
            return f"{alias} {{ {', '.join(fields)} }}"

        case RelationshipProjection(alias=alias, node_alias=node_alias, node=node):
            fields = [
                ".*",
                f"{EAGER_ID}: elementId({alias})",
                f"{EAGER_TYPE}: type({alias})",
                f"{node_alias}: {render(node)}",
            ]
            return f"{alias} {{ {', '.join(fields)} }}"

        case EagerPattern(name=name, pattern=pattern, fields=fields, single=single):
            comprehension = f"{name}: [ {pattern} | {render(fields)} ]"
            # Single shapes only keep the first match
            return f"{comprehension}[0]" if single else comprehension

        case _:
            assert_never(projection)


def eager_node(models: ModelMap, depth: int, alias: str, model: Model | None) -> str:
    """Render the eager projection of a node.

    Example:
        ```python
        builder.return_clause(eager_node(graph.models, 1, "this", person))
        ```
    """
    return render(node_projection(models, depth, alias, model))


def eager_relationship(
    models: ModelMap,
    depth: int,
    alias: str,
    node_alias: str,
    node_variable: str,
    node_model: Model | None,
) -> str:
    """Render the eager projection of a relationship and its other node."""
    return render(relationship_projection(models, depth, alias, node_alias, node_variable, node_model))

"""Cascade-delete compiler.

Deleting a node also deletes every node reachable through relationships
declared with ``cascade="delete"``, recursively. Each step is an OPTIONAL
MATCH so that missing branches do not stop the delete, and everything found
is removed by a single DETACH DELETE at the end:

    MATCH (this:Person)
    WHERE (elementId(this) = $where_this_id)
    OPTIONAL MATCH (this)-[this_posts_rel:`POSTED`]->(this_posts_node:Post)
    DETACH DELETE this_posts_node, this

The walk is built as a tree of CascadeStep values first and then emitted.
"""

from dataclasses import dataclass

from graph_ogm.query.builder import Builder
from graph_ogm.schema.model import Model
from graph_ogm.schema.model_map import ModelMap
from graph_ogm.schema.relationship_type import CascadePolicy, RelationshipType

MAX_CASCADE_DEPTH = 10
ORIGINAL_ALIAS = "this"


@dataclass(frozen=True)
class CascadeStep:
    """One OPTIONAL MATCH hop and the hops reachable from its target."""

    from_alias: str
    rel_alias: str
    node_alias: str
    relationship: RelationshipType
    target: Model | None
    children: tuple["CascadeStep", ...] = ()


def plan_cascade(
    models: ModelMap,
    from_alias: str,
    owner: Model,
    aliases: list[str],
    to_depth: int = MAX_CASCADE_DEPTH,
) -> tuple[CascadeStep, ...]:
    """Plan the cascade from a node through its delete-cascading relationships.

    Args:
        models: Registry used to resolve relationship targets
        from_alias: Alias of the node the walk starts from
        owner: Model of that node
        aliases: Aliases on the path from the root to ``from_alias``
        to_depth: Maximum path length

    Returns:
        One step per cascading relationship
    """
    if len(aliases) > to_depth:
        return ()

    steps: list[CascadeStep] = []
    for relationship in owner.relationships.values():
        match relationship.cascade:
            case CascadePolicy.DELETE:
                rel_alias = f"{from_alias}_{relationship.name}_rel"
                node_alias = f"{from_alias}_{relationship.name}_node"
                target = models.target_of(relationship, owner)
                children = (
                    plan_cascade(models, node_alias, target, [*aliases, node_alias], to_depth)
                    if target is not None
                    else ()
                )
                steps.append(CascadeStep(from_alias, rel_alias, node_alias, relationship, target, children))
            case CascadePolicy.DETACH | CascadePolicy.NONE:
                # DETACH DELETE on the owner already removes these relationships
                continue

    return tuple(steps)


def emit_cascade(builder: Builder, steps: tuple[CascadeStep, ...]) -> list[str]:
    """Append an OPTIONAL MATCH per step and return every node alias visited."""
    aliases: list[str] = []
    for step in steps:
        builder.optional_match(step.from_alias).relationship(step.relationship, alias=step.rel_alias).to(
            step.node_alias, step.target
        )
        aliases.append(step.node_alias)
        aliases.extend(emit_cascade(builder, step.children))
    return aliases


def delete_node_query(
    models: ModelMap,
    builder: Builder,
    identity: str,
    model: Model,
    to_depth: int = MAX_CASCADE_DEPTH,
) -> Builder:
    """Compile the cascading delete of a node.

    Args:
        models: Registry used to resolve relationship targets
        builder: Builder to append to
        identity: Element id of the node to delete
        model: Model of the node
        to_depth: Maximum cascade depth

    Returns:
        The builder, ready to execute
    """
    builder.match(ORIGINAL_ALIAS, model).where_id(ORIGINAL_ALIAS, identity)

    steps = plan_cascade(models, ORIGINAL_ALIAS, model, [ORIGINAL_ALIAS], to_depth)
    to_delete = emit_cascade(builder, steps)

    return builder.detach_delete(*to_delete, ORIGINAL_ALIAS)

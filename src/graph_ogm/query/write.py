"""Nested-write compiler.

Compiles a property bag, which may embed related nodes under relationship
keys, into CREATE or MERGE statements for the root node and every nested
node. Compilation happens in two passes: ``plan_node`` turns the payload into
a tree of frozen write plans, then ``emit_node`` walks the tree and appends
the statements to a Builder.

A related node can be given three ways:

- a hydrated ``Node``, matched by its element id
- a scalar, merged on the target model's primary key
- a mapping, compiled recursively as a new node merged on its merge fields

The alias list shared across the whole expansion doubles as the depth
counter: once it holds more than MAX_CREATE_DEPTH aliases, further
relationships are dropped with a warning.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, assert_never

from graph_ogm.core.base import FieldFailure, SchemaErrorDetails
from graph_ogm.core.errors import SchemaError, ValidationError
from graph_ogm.core.logging import get_logger
from graph_ogm.entities.node import Node
from graph_ogm.query.builder import Builder
from graph_ogm.schema.model import Model
from graph_ogm.schema.model_map import ModelMap
from graph_ogm.schema.relationship_type import RelationshipShape, RelationshipType
from graph_ogm.schema.values import clean_value, generate_default_values, value_to_cypher

logger = get_logger(__name__)

MAX_CREATE_DEPTH = 99
ORIGINAL_ALIAS = "this"


class WriteMode(str, Enum):
    CREATE = "create"
    MERGE = "merge"


@dataclass(frozen=True)
class SplitProperties:
    """Scalar properties grouped by where they are written.

    ``inline`` goes into the pattern head, ``on_create`` into ON CREATE SET
    and ``set`` into SET after the pattern.
    """

    inline: dict[str, Any] = field(default_factory=dict)
    on_create: dict[str, Any] = field(default_factory=dict)
    set: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchById:
    alias: str
    identity: str


@dataclass(frozen=True)
class MergeByKey:
    alias: str
    model: Model
    key: str
    value: Any


@dataclass(frozen=True)
class NestedNode:
    node: "NodeWrite"

    @property
    def alias(self) -> str:
        return self.node.alias


WriteTarget = MatchById | MergeByKey | NestedNode


@dataclass(frozen=True)
class RelationWrite:
    """A relationship from ``from_alias`` to a target, plus its own properties."""

    from_alias: str
    rel_alias: str
    relationship: RelationshipType
    target: WriteTarget
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NodeWrite:
    alias: str
    model: Model
    mode: WriteMode
    properties: SplitProperties
    relations: tuple[RelationWrite, ...] = ()


def split_properties(
    mode: WriteMode,
    model: Model,
    properties: Mapping[str, Any],
    merge_on: Sequence[str] = (),
) -> SplitProperties:
    """Group the declared properties present in a bag.

    In create mode every property is inline. In merge mode the ``merge_on``
    keys are inline, primary and protected properties are only written on
    creation, and everything else except readonly properties is set on both
    create and match.

    Args:
        mode: Create or merge
        model: Model the bag belongs to
        properties: Property bag
        merge_on: Keys the MERGE matches on

    Returns:
        The grouped properties, values prepared for use as parameters
    """
    split = SplitProperties()

    for name, prop in model.properties.items():
        if name not in properties:
            continue

        value = value_to_cypher(prop, properties[name])

        if mode is WriteMode.CREATE or name in merge_on:
            split.inline[name] = value
        elif prop.protected or prop.primary:
            split.on_create[name] = value
        elif not prop.readonly:
            split.set[name] = value

    return split


def _require_target(models: ModelMap, relationship: RelationshipType, model: Model) -> Model:
    target = models.target_of(relationship, model)
    if target is None:
        raise SchemaError(
            f"A target definition must be defined for {relationship.name} on model {model.name}",
            SchemaErrorDetails(
                source="query.write",
                operation="plan",
                model=model.name,
                relationship=relationship.name,
                defined=models.keys(),
            ),
        )
    return target


def _plan_target(
    models: ModelMap,
    model: Model,
    relationship: RelationshipType,
    target_alias: str,
    value: Any,
    aliases: list[str],
    mode: WriteMode,
) -> WriteTarget:
    if isinstance(value, Node):
        return MatchById(target_alias, value.identity)

    if isinstance(value, str | int | float) and not isinstance(value, bool):
        target_model = _require_target(models, relationship, model)
        return MergeByKey(target_alias, target_model, target_model.primary_key, value)

    if isinstance(value, Mapping):
        target_model = _require_target(models, relationship, model)
        node = plan_node(
            models,
            target_alias,
            target_model,
            generate_default_values(target_model, value),
            aliases,
            mode,
            target_model.merge_fields,
        )
        return NestedNode(node)

    raise ValidationError(
        f"Cannot relate {model.name}.{relationship.name} to a {type(value).__name__}",
        model=model.name,
        failures=[
            FieldFailure(path=relationship.name, message="expected a Node, a primary key value or a mapping"),
        ],
    )


def _plan_relation(
    models: ModelMap,
    model: Model,
    alias: str,
    relationship: RelationshipType,
    rel_alias: str,
    target_alias: str,
    value: Any,
    aliases: list[str],
    mode: WriteMode,
) -> RelationWrite | None:
    if len(aliases) > MAX_CREATE_DEPTH:
        logger.warning(
            "Nested write truncated",
            extra={"alias": alias, "relationship": relationship.name, "max_depth": MAX_CREATE_DEPTH},
        )
        return None

    rel_properties: dict[str, Any] = {}
    if relationship.shape.is_relationship:
        if not isinstance(value, Mapping):
            raise ValidationError(
                f"{model.name}.{relationship.name} expects a mapping holding {relationship.node_alias!r}",
                model=model.name,
                failures=[FieldFailure(path=relationship.name, message="expected a mapping")],
            )
        node_value = value.get(relationship.node_alias)
        for key, prop in relationship.properties.items():
            if key in value:
                rel_properties[key] = value_to_cypher(prop, clean_value(prop, value[key]))
    else:
        node_value = value

    if node_value is None:
        logger.debug("Skipping relationship without a target", extra={"relationship": relationship.name})
        return None

    target = _plan_target(models, model, relationship, target_alias, node_value, aliases, mode)
    return RelationWrite(alias, rel_alias, relationship, target, rel_properties)


def plan_node(
    models: ModelMap,
    alias: str,
    model: Model,
    properties: Mapping[str, Any],
    aliases: list[str],
    mode: WriteMode = WriteMode.CREATE,
    merge_on: Sequence[str] = (),
) -> NodeWrite:
    """Plan the writes for a node and everything nested in its bag.

    Args:
        models: Registry used to resolve relationship targets
        alias: Alias of the node
        model: Model of the node
        properties: Property bag, possibly holding nested payloads under
            relationship keys
        aliases: Aliases planned so far, shared across the whole expansion
        mode: Create or merge
        merge_on: Keys the MERGE matches on

    Returns:
        The write plan

    Raises:
        SchemaError: If a nested payload targets an unregistered model
    """
    if alias not in aliases:
        aliases.append(alias)

    relations: list[RelationWrite | None] = []

    for key, relationship in model.relationships.items():
        if key not in properties:
            continue

        value = properties[key]
        rel_alias = f"{alias}_{key}_rel"
        target_alias = f"{alias}_{key}_node"

        match relationship.shape:
            case RelationshipShape.NODE | RelationshipShape.RELATIONSHIP:
                relations.append(
                    _plan_relation(
                        models, model, alias, relationship, rel_alias, target_alias, value, aliases, mode
                    )
                )
            case RelationshipShape.NODES | RelationshipShape.RELATIONSHIPS:
                values = value if isinstance(value, list | tuple) else [value]
                for idx, item in enumerate(values):
                    relations.append(
                        _plan_relation(
                            models,
                            model,
                            alias,
                            relationship,
                            f"{rel_alias}{idx}",
                            f"{target_alias}{idx}",
                            item,
                            aliases,
                            mode,
                        )
                    )
            case _:
                assert_never(relationship.shape)

    return NodeWrite(
        alias=alias,
        model=model,
        mode=mode,
        properties=split_properties(mode, model, properties, merge_on),
        relations=tuple(relation for relation in relations if relation is not None),
    )


def _open(builder: Builder, mode: WriteMode, alias: str, model: Model | None = None, properties: Any = None) -> Builder:
    match mode:
        case WriteMode.CREATE:
            return builder.create(alias, model, properties)
        case WriteMode.MERGE:
            return builder.merge(alias, model, properties)
        case _:
            assert_never(mode)


def emit_node(builder: Builder, write: NodeWrite, carried: list[str]) -> Builder:
    """Append the statements for a planned node to a builder.

    Args:
        builder: Builder to append to
        write: The node's write plan
        carried: Aliases carried through each WITH, grows as nodes are emitted

    Returns:
        The builder
    """
    if write.alias not in carried:
        carried.append(write.alias)

    _open(builder, write.mode, write.alias, write.model, write.properties.inline)

    for key, value in write.properties.on_create.items():
        builder.on_create_set(f"{write.alias}.{key}", value)

    for key, value in write.properties.set.items():
        builder.set(f"{write.alias}.{key}", value)

    for relation in write.relations:
        builder.with_clause(*carried)

        match relation.target:
            case MatchById(alias=target_alias, identity=identity):
                builder.match(target_alias).where_id(target_alias, identity)
            case MergeByKey(alias=target_alias, model=target_model, key=key, value=value):
                builder.merge(target_alias, target_model, {key: value})
            case NestedNode(node=node):
                emit_node(builder, node, carried)
            case _:
                assert_never(relation.target)

        _open(builder, write.mode, relation.from_alias).relationship(
            relation.relationship, alias=relation.rel_alias
        ).to(relation.target.alias)

        for key, value in relation.properties.items():
            builder.set(f"{relation.rel_alias}.{key}", value)

    return builder


def add_node_to_statement(
    models: ModelMap,
    builder: Builder,
    alias: str,
    model: Model,
    properties: Mapping[str, Any],
    aliases: list[str] | None = None,
    mode: WriteMode | str = WriteMode.CREATE,
    merge_on: Sequence[str] = (),
) -> Builder:
    """Compile a node and its nested payloads into a builder.

    Example:
        ```python
        builder = Builder(graph)
        add_node_to_statement(graph.models, builder, "this", person, {
            "name": "Adam",
            "knows": [{"name": "Alex"}, existing_node],
        })
        builder.return_clause(eager_node(graph.models, 1, "this", person))
        ```

    Args:
        models: Registry used to resolve relationship targets
        builder: Builder to append to
        alias: Alias of the root node
        model: Model of the root node
        properties: Defaulted and validated property bag
        aliases: Aliases already in scope; extended with every planned node
        mode: Create or merge
        merge_on: Keys the root MERGE matches on

    Returns:
        The builder
    """
    aliases = aliases if aliases is not None else []
    carried = list(aliases)

    write = plan_node(models, alias, model, properties, aliases, WriteMode(mode), merge_on)
    return emit_node(builder, write, carried)

"""Fluent query builder.

The Builder owns a sequence of statements, one parameter table and the
counters used to name parameters. It is single-use: once built, the query
cannot be extended.

Example:
    ```python
    query, params = (
        Builder(graph)
        .match("this", person)
        .where("this.name", "Adam")
        .or_where("this.age", ">", 30)
        .return_clause("this")
        .limit(10)
        .build()
    )
    ```
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any, cast

from neo4j import Record

from graph_ogm.core.errors import QueryStateError
from graph_ogm.query.clauses import (
    Connector,
    NodePattern,
    Order,
    OrderDirection,
    PropertyAssignment,
    RelationshipPattern,
    Where,
    WhereBetween,
    WhereGroup,
    WhereId,
    WhereRaw,
    WithStatement,
)
from graph_ogm.query.interfaces import QueryMode, QueryRunner
from graph_ogm.query.state import ClauseType, CypherQueryState
from graph_ogm.query.statement import Statement
from graph_ogm.schema.model import Model
from graph_ogm.schema.relationship_type import Direction, RelationshipType

__all__ = ["UNSET", "Builder", "QueryMode"]

OPERATOR_EQUALS = "="

# Marks a set() call without a value, which appends the property text verbatim
UNSET: Any = object()

_PARAMETER_UNSAFE = re.compile(r"[^a-zA-Z0-9]+")


def parameter_base(key: str) -> str:
    """Turn an alias or property path into a parameter name, e.g. ``this.name`` to ``this_name``."""
    return _PARAMETER_UNSAFE.sub("_", key)


class Builder:
    """Fluent, stateful query assembler.

    Args:
        graph: Query runner used by ``execute``. Builders that only compile
            text, such as the eager pattern compiler, can leave it out.
    """

    def __init__(self, graph: QueryRunner | None = None) -> None:
        self._graph = graph
        self._parameters: dict[str, Any] = {}
        self._statements: list[Statement | WithStatement] = []
        self._current: Statement | None = None
        self._where: WhereGroup | None = None
        self._set_count: int = 0
        self._state_machine = CypherQueryState()

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    def add_parameter(self, base: str, value: Any) -> str:
        """Register a value under a name derived from ``base``.

        The first use of a base gets the bare name; later uses get ``base_2``,
        ``base_3`` and so on.

        Args:
            base: Human readable base name
            value: Parameter value

        Returns:
            Parameter name to reference as ``$name``
        """
        name = base
        attempt = 1
        while name in self._parameters:
            attempt += 1
            name = f"{base}_{attempt}"

        self._parameters[name] = value
        return name

    def _add_where_parameter(self, key: str, value: Any) -> str:
        return self.add_parameter(f"where_{parameter_base(key)}", value)

    def _add_set_parameter(self, value: Any) -> str:
        name = self.add_parameter(f"set_{self._set_count}", value)
        self._set_count += 1
        return name

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _close_statement(self) -> None:
        if self._current is not None:
            self._statements.append(self._current)
            self._current = None
            self._where = None

    def _open_statement(self, head: ClauseType) -> Statement:
        self._state_machine.open_statement(head)
        self._close_statement()
        self._current = Statement(head)
        self._open_where_group(Connector.AND, Connector.AND)
        return self._current

    def _statement(self, clause_type: ClauseType) -> Statement:
        self._state_machine.add_clause(clause_type)
        return cast("Statement", self._current)

    def _open_where_group(self, joiner: Connector, connector: Connector) -> WhereGroup:
        group = WhereGroup(joiner=joiner, connector=connector)
        cast("Statement", self._current).where.append(group)
        self._where = group
        return group

    def _node_pattern(
        self,
        alias: str | None,
        model: Model | str | None,
        properties: Mapping[str, Any] | None,
    ) -> NodePattern:
        if isinstance(model, Model):
            labels = model.labels
        elif model:
            labels = (model,)
        else:
            labels = ()

        assignments = tuple(
            PropertyAssignment(key, self.add_parameter(parameter_base(f"{alias}_{key}"), value))
            for key, value in (properties or {}).items()
        )
        return NodePattern(alias=alias, labels=labels, properties=assignments)

    def match(
        self,
        alias: str,
        model: Model | str | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "Builder":
        """Open a MATCH statement.

        Args:
            alias: Alias of the node in the query
            model: Model whose labels to match, or a single label
            properties: Inline properties, each bound to a parameter

        Returns:
            Self for method chaining
        """
        statement = self._open_statement(ClauseType.MATCH)
        statement.pattern.append(self._node_pattern(alias, model, properties))
        return self

    def optional_match(
        self,
        alias: str,
        model: Model | str | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "Builder":
        """Open an OPTIONAL MATCH statement."""
        statement = self._open_statement(ClauseType.OPTIONAL_MATCH)
        statement.pattern.append(self._node_pattern(alias, model, properties))
        return self

    def create(
        self,
        alias: str,
        model: Model | str | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "Builder":
        """Open a CREATE statement."""
        statement = self._open_statement(ClauseType.CREATE)
        statement.pattern.append(self._node_pattern(alias, model, properties))
        return self

    def merge(
        self,
        alias: str,
        model: Model | str | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "Builder":
        """Open a MERGE statement."""
        statement = self._open_statement(ClauseType.MERGE)
        statement.pattern.append(self._node_pattern(alias, model, properties))
        return self

    def _with(self, items: tuple[str, ...], distinct: bool) -> "Builder":
        self._state_machine.open_statement(ClauseType.WITH_DISTINCT if distinct else ClauseType.WITH)
        self._close_statement()
        self._statements.append(WithStatement(items, distinct=distinct))

        # WHERE, RETURN and friends can follow a WITH directly
        self._current = Statement(head=None)
        self._open_where_group(Connector.AND, Connector.AND)
        return self

    def with_clause(self, *items: str) -> "Builder":
        """Carry aliases through to the next part of the query.

        Example:
            ```python
            builder.with_clause("this", "count(friend) AS friends")
            ```
        """
        return self._with(items, distinct=False)

    def with_distinct(self, *items: str) -> "Builder":
        """Carry distinct aliases through to the next part of the query."""
        return self._with(items, distinct=True)

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def relationship(
        self,
        relationship: RelationshipType | str | Iterable[str] | None = None,
        direction: Direction | str | None = None,
        alias: str | None = None,
        degrees: int | str | None = None,
    ) -> "Builder":
        """Extend the current pattern with a relationship arrow.

        Args:
            relationship: A declared relationship, whose type and direction are
                used, or one or more relationship types
            direction: Direction of the arrow, ignored for declared relationships
            alias: Alias of the relationship in the query
            degrees: Traversal range such as ``2`` or ``"1..3"``

        Returns:
            Self for method chaining
        """
        self._state_machine.validate_pattern()

        if isinstance(relationship, RelationshipType):
            types: tuple[str, ...] = (relationship.relationship,)
            direction = relationship.direction
        elif isinstance(relationship, str):
            types = (relationship,)
        else:
            types = tuple(relationship or ())

        arrow = RelationshipPattern(
            types=types,
            direction=Direction(direction) if direction else Direction.BOTH,
            alias=alias,
            degrees=degrees,
        )
        cast("Statement", self._current).pattern.append(arrow)
        return self

    def to(
        self,
        alias: str | None = None,
        model: Model | str | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "Builder":
        """Complete a relationship arrow with a node."""
        self._state_machine.validate_pattern()
        cast("Statement", self._current).pattern.append(self._node_pattern(alias, model, properties))
        return self

    def to_anything(self) -> "Builder":
        """Complete a relationship arrow with an anonymous node."""
        self._state_machine.validate_pattern()
        cast("Statement", self._current).pattern.append(NodePattern())
        return self

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def _where_group(self) -> WhereGroup:
        self._state_machine.validate_can_add(ClauseType.WHERE)
        return cast("WhereGroup", self._where)

    def where_group(self, connector: Connector = Connector.AND, joiner: Connector = Connector.AND) -> "Builder":
        """Open a new where group.

        Args:
            connector: Operator joining the conditions inside the group
            joiner: Operator joining this group to the previous one

        Returns:
            Self for method chaining
        """
        self._state_machine.validate_can_add(ClauseType.WHERE)
        self._open_where_group(Connector(joiner), Connector(connector))
        return self

    def where(self, *args: Any) -> "Builder":
        """Add conditions to the open where group.

        Accepted forms:

        - ``where("this.name", "Adam")`` compares with ``=``
        - ``where("this.age", ">", 30)`` uses the given operator
        - ``where({"this.name": "Adam", "this.age": 30})`` adds one equality per key
        - ``where([("this.age", ">", 30), ("this.name", "Adam")])`` adds each tuple
        - ``where("this.age > 30")`` adds the text verbatim

        Every value is bound to a ``where_*`` parameter.

        Returns:
            Self for method chaining

        Raises:
            QueryStateError: If no statement is open or the arguments are malformed
        """
        group = self._where_group()

        if not args or args[0] is None:
            return self

        match args:
            case (Mapping() as conditions,):
                for key, value in conditions.items():
                    self.where(key, value)
            case (str() as clause,):
                group.append(WhereRaw(clause))
            case (list() | tuple() as conditions,):
                for condition in conditions:
                    self.where(*condition)
            case (str() as left, value):
                self.where(left, OPERATOR_EQUALS, value)
            case (str() as left, str() as operator, value):
                param = self._add_where_parameter(left, value)
                group.append(Where(left, operator, f"${param}"))
            case _:
                raise QueryStateError(f"Unsupported where() arguments: {args!r}")

        return self

    def or_where(self, *args: Any) -> "Builder":
        """Open a new group joined with OR, then add conditions to it."""
        self.where_group(joiner=Connector.OR)
        return self.where(*args)

    def where_not(self, *args: Any) -> "Builder":
        """Add a condition and negate it."""
        self.where(*args)
        self._where_group().negate_last()
        return self

    def where_id(self, alias: str, identity: str) -> "Builder":
        """Match an entity by its element id."""
        group = self._where_group()
        param = self._add_where_parameter(f"{alias}_id", identity)
        group.append(WhereId(alias, param))
        return self

    def where_raw(self, clause: str) -> "Builder":
        """Add a condition verbatim."""
        self._where_group().append(WhereRaw(clause))
        return self

    def where_between(self, alias: str, floor: Any, ceiling: Any) -> "Builder":
        """Add an inclusive range check, ``$floor <= alias <= $ceiling``."""
        group = self._where_group()
        floor_param = self._add_where_parameter(f"{alias}_floor", floor)
        ceiling_param = self._add_where_parameter(f"{alias}_ceiling", ceiling)
        group.append(WhereBetween(alias, floor_param, ceiling_param))
        return self

    def where_not_between(self, alias: str, floor: Any, ceiling: Any) -> "Builder":
        """Add a negated range check."""
        self.where_between(alias, floor, ceiling)
        self._where_group().negate_last()
        return self

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _assign(self, clause_type: ClauseType, property: str | Mapping[str, Any], value: Any, operator: str) -> None:
        if value is UNSET and isinstance(property, Mapping):
            for key, item_value in property.items():
                self._assign(clause_type, key, item_value, operator)
            return

        statement = self._statement(clause_type)
        items = {
            ClauseType.SET: statement.set,
            ClauseType.ON_CREATE_SET: statement.on_create_set,
            ClauseType.ON_MATCH_SET: statement.on_match_set,
        }[clause_type]

        if value is UNSET:
            items.append(cast("str", property))
        else:
            items.append(PropertyAssignment(cast("str", property), self._add_set_parameter(value), operator))

    def set(self, property: str | Mapping[str, Any], value: Any = UNSET, operator: str = "=") -> "Builder":
        """Add a SET item.

        Args:
            property: ``alias.key`` to assign, a mapping of them, or raw SET
                text such as ``this += $props`` when no value is given
            value: Value bound to a ``set_N`` parameter
            operator: Assignment operator, ``=`` or ``+=``

        Returns:
            Self for method chaining
        """
        self._assign(ClauseType.SET, property, value, operator)
        return self

    def on_create_set(self, property: str | Mapping[str, Any], value: Any = UNSET, operator: str = "=") -> "Builder":
        """Add an ON CREATE SET item to the open MERGE."""
        self._assign(ClauseType.ON_CREATE_SET, property, value, operator)
        return self

    def on_match_set(self, property: str | Mapping[str, Any], value: Any = UNSET, operator: str = "=") -> "Builder":
        """Add an ON MATCH SET item to the open MERGE."""
        self._assign(ClauseType.ON_MATCH_SET, property, value, operator)
        return self

    def remove(self, *items: str) -> "Builder":
        """Remove properties (``alias.key``) or labels (``alias:Label``)."""
        self._statement(ClauseType.REMOVE).remove.extend(items)
        return self

    def delete(self, *aliases: str) -> "Builder":
        self._statement(ClauseType.DELETE).delete.extend(aliases)
        return self

    def detach_delete(self, *aliases: str) -> "Builder":
        self._statement(ClauseType.DETACH_DELETE).detach_delete.extend(aliases)
        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def return_clause(self, *items: str) -> "Builder":
        """Add RETURN items.

        Example:
            ```python
            builder.return_clause("this", "count(friend) AS friends")
            ```
        """
        self._statement(ClauseType.RETURN).return_items.extend(items)
        return self

    def order_by(self, *args: Any) -> "Builder":
        """Add ordering terms.

        Accepted forms:

        - ``order_by("this.name")`` or ``order_by("this.name", "DESC")``
        - ``order_by({"this.name": "ASC", "this.age": "DESC"})``
        - ``order_by({"field": "this.name", "order": "DESC"})``
        - ``order_by(["this.name", ("this.age", "DESC")])``

        Returns:
            Self for method chaining
        """
        statement = self._statement(ClauseType.ORDER_BY)

        match args:
            case (str() as what, direction):
                statement.order.append(Order(what, OrderDirection(direction) if direction else None))
            case (Mapping() as orders,) if "field" in orders:
                self.order_by(orders["field"], orders.get("order"))
            case (Mapping() as orders,):
                for what, direction in orders.items():
                    self.order_by(what, direction)
            case (list() | tuple() as orders,):
                for order in orders:
                    if isinstance(order, tuple):
                        self.order_by(*order)
                    else:
                        self.order_by(order)
            case (str() as what,):
                statement.order.append(Order(what))
            case _:
                raise QueryStateError(f"Unsupported order_by() arguments: {args!r}")

        return self

    def skip(self, count: int) -> "Builder":
        """Skip a number of records, bound to a parameter."""
        statement = self._statement(ClauseType.SKIP)
        statement.skip = self.add_parameter("skip", count)
        return self

    def limit(self, count: int) -> "Builder":
        """Limit the number of records, bound to a parameter."""
        statement = self._statement(ClauseType.LIMIT)
        statement.limit = self.add_parameter("limit", count)
        return self

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def _finalize(self) -> list[Statement | WithStatement]:
        if not self._state_machine.is_complete:
            self._close_statement()
            self._state_machine.complete()

        if not self._statements:
            raise QueryStateError("Cannot build an empty query")
        return self._statements

    def pattern(self) -> str:
        """Render the accumulated patterns without keywords.

        Used to embed a pattern, e.g. inside a list comprehension.
        """
        rendered = (
            statement.build(include_head=False) if isinstance(statement, Statement) else statement.build()
            for statement in self._finalize()
        )
        return "\n".join(text for text in rendered if text)

    def build(self) -> tuple[str, dict[str, Any]]:
        """Build the final query and parameters.

        Returns:
            Tuple of (query, params)

        Raises:
            QueryStateError: If nothing was added to the query
        """
        rendered = (statement.build() for statement in self._finalize())
        query = "\n".join(text for text in rendered if text)
        return query, self._parameters

    async def execute(self, mode: QueryMode = QueryMode.WRITE) -> list[Record]:
        """Build the query and run it through the graph.

        Args:
            mode: READ or WRITE session

        Returns:
            Every record the query produced

        Raises:
            QueryStateError: If the builder has no graph to run against
            QueryError: If the database rejects the query
        """
        if self._graph is None:
            raise QueryStateError("This builder is not bound to a graph")

        query, params = self.build()
        return await self._graph.cypher(query, params, QueryMode(mode))

"""Tests for clause rendering, statements and the query state machine."""

import pytest

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
from graph_ogm.query.state import ClauseType, CypherQueryState
from graph_ogm.query.statement import Statement
from graph_ogm.schema.relationship_type import Direction

# =============================================================================
# Patterns
# =============================================================================


class TestNodePattern:
    def test_anonymous(self):
        assert NodePattern().build() == "()"

    def test_alias_only(self):
        assert NodePattern("this").build() == "(this)"

    def test_labels_and_properties(self):
        pattern = NodePattern(
            "this",
            ("Person", "Admin"),
            (PropertyAssignment("name", "this_name"), PropertyAssignment("age", "this_age")),
        )

        assert pattern.build() == "(this:Person:Admin { name: $this_name, age: $this_age })"


class TestRelationshipPattern:
    def test_anonymous_undirected(self):
        assert RelationshipPattern().build() == "--"

    @pytest.mark.parametrize(
        ("direction", "expected"),
        [
            (Direction.OUT, "-[rel:`KNOWS`]->"),
            (Direction.IN, "<-[rel:`KNOWS`]-"),
            (Direction.BOTH, "-[rel:`KNOWS`]-"),
        ],
    )
    def test_directions(self, direction, expected):
        assert RelationshipPattern(("KNOWS",), direction, "rel").build() == expected

    def test_several_types_and_degrees(self):
        pattern = RelationshipPattern(("KNOWS", "LIKES"), Direction.OUT, degrees="1..3")

        assert pattern.build() == "-[:`KNOWS`|`LIKES`*1..3]->"


class TestPropertyAssignment:
    def test_build(self):
        assert PropertyAssignment("this.name", "set_0").build() == "this.name = $set_0"

    def test_increment_operator(self):
        assert PropertyAssignment("this", "set_0", "+=").build() == "this += $set_0"

    def test_missing_parameter_renders_null(self):
        assert PropertyAssignment("this.name").build() == "this.name = null"


# =============================================================================
# Where
# =============================================================================


class TestWhere:
    def test_leaves(self):
        assert Where("this.age", ">", "$where_this_age").build() == "this.age > $where_this_age"
        assert WhereId("this", "where_this_id").build() == "elementId(this) = $where_this_id"
        assert WhereRaw("this.age IS NULL").build() == "this.age IS NULL"
        assert WhereBetween("this.age", "lo", "hi").build() == "$lo <= this.age <= $hi"

    def test_negation_returns_a_copy(self):
        leaf = WhereRaw("this.active")
        negated = leaf.negate()

        assert negated.build() == "NOT this.active"
        assert leaf.build() == "this.active"

    def test_group_joins_with_its_connector(self):
        group = WhereGroup(connector=Connector.OR)
        group.append(WhereRaw("a")).append(WhereRaw("b"))

        assert group.build() == "WHERE (a OR b)"

    def test_later_groups_use_the_joiner(self):
        group = WhereGroup(joiner=Connector.XOR).append(WhereRaw("a"))

        assert group.build(first=False) == "XOR (a)"

    def test_empty_group(self):
        group = WhereGroup()

        assert not group
        assert group.build() == ""

    def test_negate_last(self):
        group = WhereGroup().append(WhereRaw("a")).append(WhereRaw("b"))
        group.negate_last()

        assert group.build() == "WHERE (a AND NOT b)"

    def test_negate_last_on_empty_group(self):
        with pytest.raises(QueryStateError):
            WhereGroup().negate_last()


# =============================================================================
# Ordering and projections
# =============================================================================


class TestOrderAndWith:
    def test_order(self):
        assert Order("this.name").build() == "this.name"
        assert Order("this.name", OrderDirection.DESC).build() == "this.name DESC"

    def test_order_direction_is_case_insensitive(self):
        assert OrderDirection("desc") is OrderDirection.DESC

    def test_with(self):
        assert WithStatement(("this", "other")).build() == "WITH this, other"
        assert WithStatement(("this",), distinct=True).build() == "WITH DISTINCT this"


# =============================================================================
# Statement
# =============================================================================


class TestStatement:
    def test_sections_follow_a_fixed_order(self):
        statement = Statement(ClauseType.MATCH)
        statement.pattern.append(NodePattern("this"))
        statement.return_items.append("this")
        statement.set.append(PropertyAssignment("this.name", "set_0"))
        statement.where.append(WhereGroup().append(WhereRaw("this.age > 18")))
        statement.limit = "limit"

        assert statement.build() == (
            "MATCH (this)\nWHERE (this.age > 18)\nSET this.name = $set_0\nRETURN this\nLIMIT $limit"
        )

    def test_empty_where_groups_are_skipped(self):
        statement = Statement(ClauseType.MATCH)
        statement.pattern.append(NodePattern("this"))
        statement.where.extend([WhereGroup(), WhereGroup(joiner=Connector.OR).append(WhereRaw("a"))])

        assert statement.build() == "MATCH (this)\nWHERE (a)"

    def test_pattern_without_head(self):
        statement = Statement(ClauseType.MATCH)
        statement.pattern.extend([NodePattern("a"), RelationshipPattern(("R",), Direction.OUT), NodePattern("b")])

        assert statement.build(include_head=False) == "(a)-[:`R`]->(b)"

    def test_raw_set_items(self):
        statement = Statement(ClauseType.MATCH)
        statement.pattern.append(NodePattern("this"))
        statement.set.append("this += $props")

        assert statement.build() == "MATCH (this)\nSET this += $props"

    def test_continuation_has_no_head(self):
        statement = Statement(head=None)
        statement.return_items.append("count(this) AS total")

        assert statement.build() == "RETURN count(this) AS total"


# =============================================================================
# State machine
# =============================================================================


class TestCypherQueryState:
    def test_clause_before_statement(self):
        with pytest.raises(QueryStateError, match="before a MATCH"):
            CypherQueryState().add_clause(ClauseType.WHERE)

    def test_records_clauses(self):
        state = CypherQueryState()
        state.open_statement(ClauseType.MATCH)
        state.add_clause(ClauseType.WHERE)
        state.add_clause(ClauseType.RETURN)

        assert state.clauses == (ClauseType.MATCH, ClauseType.WHERE, ClauseType.RETURN)
        assert state.current_statement is ClauseType.MATCH

    def test_only_heads_open_statements(self):
        with pytest.raises(QueryStateError):
            CypherQueryState().open_statement(ClauseType.RETURN)

    def test_on_create_set_requires_merge(self):
        state = CypherQueryState()
        state.open_statement(ClauseType.CREATE)

        with pytest.raises(QueryStateError, match="MERGE"):
            state.add_clause(ClauseType.ON_CREATE_SET)

        state.open_statement(ClauseType.MERGE)
        state.add_clause(ClauseType.ON_CREATE_SET)
        state.add_clause(ClauseType.ON_MATCH_SET)

    def test_patterns_cannot_follow_with(self):
        state = CypherQueryState()
        state.open_statement(ClauseType.MATCH)
        state.validate_pattern()
        state.open_statement(ClauseType.WITH)

        with pytest.raises(QueryStateError):
            state.validate_pattern()

    def test_complete_blocks_everything(self):
        state = CypherQueryState()
        state.open_statement(ClauseType.MATCH)
        state.complete()

        assert state.is_complete
        with pytest.raises(QueryStateError, match="already been built"):
            state.add_clause(ClauseType.RETURN)
        with pytest.raises(QueryStateError):
            state.open_statement(ClauseType.MATCH)
        with pytest.raises(QueryStateError):
            state.validate_pattern()

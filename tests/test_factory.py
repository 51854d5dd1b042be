"""Tests for hydrating result rows into entities."""

from unittest.mock import MagicMock

import pytest
from conftest import node_row, relationship_row
from neo4j.graph import Node as DriverNode

from graph_ogm.core.errors import HydrationError, ModelNotFoundError
from graph_ogm.entities import Node, NodeCollection, Relationship, RelationshipCollection
from graph_ogm.entities.factory import normalize
from graph_ogm.query.eager import EAGER_ID, EAGER_LABELS


def adam_row(**extra):
    fields = {"person_id": "p-1", "name": "Adam", "password": "secret", "knows": [], **extra}
    return node_row("4:db:1", ["Person"], **fields)


def driver_node(identity: str, labels: set[str], **properties) -> MagicMock:
    node = MagicMock(spec=DriverNode)
    node.element_id = identity
    node.labels = frozenset(labels)
    node.items.return_value = list(properties.items())
    return node


# =============================================================================
# Nodes
# =============================================================================


class TestHydrateNode:
    def test_hydrate_collection(self, graph):
        rows = [{"this": adam_row()}, {"this": node_row("4:db:2", ["Person"], name="Alex", knows=[])}]

        nodes = graph.factory.hydrate(rows, "this")

        assert isinstance(nodes, NodeCollection)
        assert [node.identity for node in nodes] == ["4:db:1", "4:db:2"]
        assert nodes.first().model is graph.models.get("Person")
        assert nodes.get(5) is None

    def test_hydrate_first(self, graph):
        node = graph.factory.hydrate_first([{"this": adam_row()}], "this")

        assert isinstance(node, Node)
        assert node.get("name") == "Adam"
        assert node.labels == ("Person",)

    def test_hydrate_first_without_rows(self, graph):
        assert graph.factory.hydrate_first([], "this") is None

    def test_missing_column(self, graph):
        with pytest.raises(HydrationError):
            graph.factory.hydrate([{"other": adam_row()}], "this")

    def test_explicit_definition_by_name(self, graph):
        row = node_row("4:db:3", ["Legacy"], post_id="post-1", title="Hello")

        node = graph.factory.hydrate_node(row, "Post")

        assert node.model.name == "Post"

    def test_unknown_labels(self, graph):
        with pytest.raises(ModelNotFoundError):
            graph.factory.hydrate_node(node_row("4:db:3", ["Unknown"]))

    def test_missing_identity(self, graph):
        with pytest.raises(HydrationError) as exc_info:
            graph.factory.hydrate_node({EAGER_LABELS: ["Person"], "name": "Adam"})

        assert exc_info.value.details.field == EAGER_ID

    def test_missing_eager_field(self, graph):
        row = node_row("4:db:1", ["Person"], name="Adam")

        with pytest.raises(HydrationError) as exc_info:
            graph.factory.hydrate_node(row)

        assert exc_info.value.details.field == "knows"

    def test_undeclared_properties_are_dropped(self, graph):
        node = graph.factory.hydrate_node(adam_row(nickname="Ads"))

        assert node.get("nickname") is None


class TestDriverNodes:
    def test_normalize(self):
        record, plain = normalize(driver_node("4:db:9", {"Person", "Admin"}, name="Adam"))

        assert plain is True
        assert record == {"name": "Adam", EAGER_ID: "4:db:9", EAGER_LABELS: ["Admin", "Person"]}

    def test_projection_rows_pass_through(self):
        row = adam_row()

        assert normalize(row) == (row, False)

    def test_driver_nodes_do_not_need_eager_fields(self, graph):
        node = graph.factory.hydrate_node(driver_node("4:db:9", {"Person"}, name="Adam"))

        assert node.identity == "4:db:9"
        assert node.eager == {}


# =============================================================================
# Eager relationships
# =============================================================================


class TestEagerHydration:
    def test_relationships(self, graph):
        friend = node_row("4:db:2", ["Person"], name="Alex", knows=[])
        row = adam_row(knows=[relationship_row("5:db:1", "KNOWS", "friend", friend, since=2020)])

        node = graph.factory.hydrate_node(row)
        knows = node.get("knows")

        assert isinstance(knows, RelationshipCollection)
        (relationship,) = knows
        assert isinstance(relationship, Relationship)
        assert relationship.type == "KNOWS"
        assert relationship.get("since") == 2020
        assert relationship.start_node is node
        assert relationship.end_node.get("name") == "Alex"
        assert relationship.other_node is relationship.end_node

    def test_inbound_relationship_starts_at_the_other_node(self, graph, models):
        models.define(
            "Review",
            {
                "reviewer": {
                    "type": "relationship",
                    "relationship": "WROTE",
                    "direction": "in",
                    "target": "Comment",
                    "alias": "writer",
                    "eager": True,
                }
            },
        )
        writer = node_row("4:db:8", ["Comment"], body="Nice")
        row = node_row("4:db:7", ["Review"], reviewer=relationship_row("5:db:2", "WROTE", "writer", writer))

        review = graph.factory.hydrate_node(row)
        relationship = review.get("reviewer")

        assert relationship.start_node.get("body") == "Nice"
        assert relationship.end_node is review
        assert relationship.other_node is relationship.start_node

    def test_missing_single_node_is_none(self, graph):
        row = node_row("4:db:5", ["Employee"], name="Boss", manager=None)

        assert graph.factory.hydrate_node(row).get("manager") is None

    def test_depth_bound_matches_the_projection(self, graph):
        # Nodes past the projection depth carry no eager fields
        deepest = node_row("4:db:4", ["Employee"], name="CEO")
        row = deepest
        for index in range(3, 0, -1):
            row = node_row(f"4:db:{index}", ["Employee"], name=f"E{index}", manager=row)

        node = graph.factory.hydrate_node(row)

        assert node.get("manager").get("manager").get("manager").get("name") == "CEO"

    def test_relationship_missing_node_alias(self, graph):
        row = adam_row(knows=[{EAGER_ID: "5:db:1", "since": 2020}])

        with pytest.raises(HydrationError) as exc_info:
            graph.factory.hydrate_node(row)

        assert exc_info.value.details.field == "friend"


# =============================================================================
# Serialization
# =============================================================================


class TestSerialization:
    def test_hidden_properties(self, graph):
        node = graph.factory.hydrate_node(adam_row())

        assert node.get("password") == "secret"
        assert "password" not in node.properties()
        assert "password" not in node.to_json()

    def test_to_json(self, graph):
        friend = node_row("4:db:2", ["Person"], name="Alex", knows=[])
        row = adam_row(knows=[relationship_row("5:db:1", "KNOWS", "friend", friend, since=2020)])

        output = graph.factory.hydrate_node(row).to_json()

        assert output == {
            "_id": "4:db:1",
            "_labels": ["Person"],
            "person_id": "p-1",
            "name": "Adam",
            "knows": [
                {
                    "_id": "5:db:1",
                    "_type": "KNOWS",
                    "since": 2020,
                    "friend": {"_id": "4:db:2", "_labels": ["Person"], "name": "Alex", "knows": []},
                }
            ],
        }

    def test_collection_to_json(self, graph):
        nodes = graph.factory.hydrate([{"this": adam_row()}], "this")

        assert nodes.to_json()[0]["_id"] == "4:db:1"

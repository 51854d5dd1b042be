"""Tests for the Graph facade: execution, transactions and the model registry."""

import asyncio
from unittest.mock import patch

import pytest
from conftest import FakeResult, node_row
from neo4j import READ_ACCESS, WRITE_ACCESS
from neo4j.exceptions import ServiceUnavailable

from graph_ogm.core.config import Settings
from graph_ogm.core.errors import ModelNotFoundError, QueryError, TransactionError
from graph_ogm.core.logging import get_log_context
from graph_ogm.entities import NodeCollection
from graph_ogm.graph import Graph, _normalize_batch
from graph_ogm.query.builder import Builder
from graph_ogm.query.interfaces import QueryMode

# =============================================================================
# Construction and lifecycle
# =============================================================================


class TestLifecycle:
    def test_from_env(self):
        settings = Settings(_env_file=None, uri="neo4j://db:7687", password="secret", enterprise=True)

        with patch("graph_ogm.graph.AsyncGraphDatabase.driver") as driver_factory:
            graph = Graph.from_env(settings)

        driver_factory.assert_called_once_with(
            "neo4j://db:7687",
            auth=("neo4j", "secret"),
            max_connection_pool_size=50,
            max_connection_lifetime=3600,
            connection_acquisition_timeout=60.0,
        )
        assert graph.driver is driver_factory.return_value
        assert graph.database == "neo4j"
        assert graph.enterprise is True

    @pytest.mark.asyncio
    async def test_close(self, graph, mock_driver):
        await graph.close()

        mock_driver.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, graph, mock_driver):
        async with graph as opened:
            assert opened is graph

        mock_driver.close.assert_awaited_once()

    def test_query_returns_a_bound_builder(self, graph):
        assert isinstance(graph.query(), Builder)

    def test_hydration_helpers(self, graph):
        rows = [{"this": node_row("4:db:1", ["Comment"], body="Nice")}]

        nodes = graph.hydrate(rows, "this")

        assert graph.hydrate_first(rows, "this").get("body") == "Nice"
        assert isinstance(graph.to_collection(list(nodes)), NodeCollection)


# =============================================================================
# Model registry
# =============================================================================


class TestModels:
    def test_define_and_look_up(self, graph):
        tag = graph.model("Tag", {"name": {"type": "string", "unique": True}})

        assert graph.model("Tag") is tag

    def test_unknown_model(self, graph):
        with pytest.raises(ModelNotFoundError):
            graph.model("Nope")

    def test_with_models(self, graph):
        assert graph.with_models({"Tag": {"name": "string"}, "Topic": {"title": "string"}}) is graph
        assert "Tag" in graph.models
        assert "Topic" in graph.models

    def test_extend(self, graph):
        admin = graph.extend("Person", "Admin", {"level": "int"})

        assert admin.name == "Admin"
        assert "level" in admin.properties
        assert "name" in admin.properties
        assert "level" not in graph.model("Person").properties


# =============================================================================
# Execution
# =============================================================================


class TestCypher:
    @pytest.mark.asyncio
    async def test_write(self, graph, mock_driver, mock_session, mock_tx):
        mock_tx.run.return_value = FakeResult([{"n": 1}, {"n": 2}])

        records = await graph.cypher("MATCH (n) RETURN n", {"a": 1})

        assert records == [{"n": 1}, {"n": 2}]
        mock_tx.run.assert_awaited_once_with("MATCH (n) RETURN n", {"a": 1})
        mock_session.execute_write.assert_awaited_once()
        mock_driver.session.assert_called_once_with(database=None, default_access_mode=WRITE_ACCESS)

    @pytest.mark.asyncio
    async def test_read(self, graph, mock_driver, mock_session):
        records = await graph.read_cypher("MATCH (n) RETURN n")

        assert records == []
        mock_session.execute_read.assert_awaited_once()
        mock_session.execute_write.assert_not_called()
        mock_driver.session.assert_called_once_with(database=None, default_access_mode=READ_ACCESS)

    @pytest.mark.asyncio
    async def test_write_cypher(self, graph, mock_session):
        await graph.write_cypher("CREATE (n)")

        mock_session.execute_write.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mode_accepts_strings(self, graph, mock_session):
        await graph.cypher("MATCH (n) RETURN n", mode="READ")

        mock_session.execute_read.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_driver_errors_become_query_errors(self, graph, mock_tx):
        cause = ServiceUnavailable("database is down")
        mock_tx.run.side_effect = cause

        with pytest.raises(QueryError) as exc_info:
            await graph.cypher("MATCH (n) RETURN n", {"name": "Adam"})

        assert exc_info.value.query == "MATCH (n) RETURN n"
        assert exc_info.value.params == {"name": "Adam"}
        assert exc_info.value.cause is cause

    @pytest.mark.asyncio
    async def test_binds_log_context_while_running(self, graph, mock_tx):
        seen = []

        def run(query, params):
            seen.append(get_log_context())
            return FakeResult([])

        mock_tx.run.side_effect = run

        await graph.read_cypher("MATCH (n) RETURN n")

        assert seen == [{"database": None, "mode": "READ"}]
        assert get_log_context() == {}

    @pytest.mark.asyncio
    async def test_builder_execute_runs_through_the_graph(self, graph, mock_tx):
        await graph.query().match("this", "Person").return_clause("this").execute(QueryMode.READ)

        mock_tx.run.assert_awaited_once_with("MATCH (this:Person)\nRETURN this", {})


class TestTransaction:
    @pytest.mark.asyncio
    async def test_commit(self, graph, mock_tx):
        async with graph.transaction() as tx:
            await tx.run("CREATE (n)")

        mock_tx.commit.assert_awaited_once()
        mock_tx.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, graph, mock_tx):
        with pytest.raises(RuntimeError, match="boom"):
            async with graph.transaction():
                raise RuntimeError("boom")

        mock_tx.rollback.assert_awaited_once()
        mock_tx.commit.assert_not_called()


class TestBatch:
    def test_normalize(self):
        assert _normalize_batch(["RETURN 1", ("RETURN $x", {"x": 2}), ("RETURN 3", None)]) == [
            ("RETURN 1", {}),
            ("RETURN $x", {"x": 2}),
            ("RETURN 3", {}),
        ]

    @pytest.mark.asyncio
    async def test_success(self, graph, mock_tx):
        mock_tx.run.side_effect = [FakeResult([{"x": 1}]), FakeResult([{"x": 2}])]

        results = await graph.batch(["RETURN 1 AS x", ("RETURN $x AS x", {"x": 2})])

        assert results == [[{"x": 1}], [{"x": 2}]]
        assert mock_tx.run.await_count == 2
        mock_tx.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_reports_every_error(self, graph, mock_tx):
        first = RuntimeError("first")
        second = RuntimeError("second")
        mock_tx.run.side_effect = [first, FakeResult([]), second]

        with pytest.raises(TransactionError) as exc_info:
            await graph.batch(["RETURN 1", "RETURN 2", "RETURN 3"])

        assert exc_info.value.errors == [first, second]
        mock_tx.rollback.assert_awaited_once()
        mock_tx.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_queries_run_one_at_a_time(self, graph, mock_tx):
        running = 0
        peak = 0

        async def run(query, params):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0)
            running -= 1
            return FakeResult([{"query": query}])

        mock_tx.run.side_effect = run

        results = await graph.batch(["RETURN 1", "RETURN 2", "RETURN 3"])

        assert peak == 1
        assert results == [[{"query": "RETURN 1"}], [{"query": "RETURN 2"}], [{"query": "RETURN 3"}]]
        mock_tx.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_binds_log_context_while_running(self, graph, mock_tx):
        seen = []

        def run(query, params):
            seen.append(get_log_context())
            return FakeResult([])

        mock_tx.run.side_effect = run

        await graph.batch(["RETURN 1", "RETURN 2"])

        assert seen == [{"database": None, "batch_size": 2}] * 2
        assert get_log_context() == {}

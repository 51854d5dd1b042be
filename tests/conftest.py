"""Pytest configuration and shared fixtures.

Models used across the suite, a Graph wired to a mocked neo4j driver, and
helpers that build rows in the shape the eager projection returns.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from graph_ogm.graph import Graph
from graph_ogm.query.eager import EAGER_ID, EAGER_LABELS, EAGER_TYPE
from graph_ogm.schema.model_map import ModelMap

# ---------------------------------------------------------------------------
# Model declarations
# ---------------------------------------------------------------------------

PERSON_SCHEMA: dict[str, Any] = {
    "person_id": {"type": "uuid", "primary": True},
    "name": {"type": "string", "required": True, "indexed": True},
    "age": "int",
    "password": {"type": "string", "hidden": True},
    "knows": {
        "type": "relationships",
        "relationship": "KNOWS",
        "direction": "out",
        "target": "Person",
        "alias": "friend",
        "eager": True,
        "properties": {"since": "int"},
    },
    "posts": {
        "type": "nodes",
        "relationship": "POSTED",
        "direction": "out",
        "target": "Post",
        "cascade": "delete",
    },
    "employer": {
        "type": "node",
        "relationship": "WORKS_AT",
        "direction": "out",
        "target": "Company",
    },
}

POST_SCHEMA: dict[str, Any] = {
    "post_id": {"type": "uuid", "primary": True},
    "title": {"type": "string", "required": True},
    "comments": {
        "type": "nodes",
        "relationship": "HAS_COMMENT",
        "direction": "out",
        "target": "Comment",
        "cascade": "delete",
    },
    "author": {
        "type": "node",
        "relationship": "POSTED",
        "direction": "in",
        "target": "Person",
        "cascade": "detach",
    },
}

COMMENT_SCHEMA: dict[str, Any] = {
    "comment_id": {"type": "uuid", "primary": True},
    "body": "string",
}

COMPANY_SCHEMA: dict[str, Any] = {
    "company_id": {"type": "uuid", "primary": True},
    "name": {"type": "string", "unique": True},
}

# Eagerly loads its own manager, for the projection depth bound
EMPLOYEE_SCHEMA: dict[str, Any] = {
    "employee_id": {"type": "uuid", "primary": True},
    "name": "string",
    "manager": {
        "type": "node",
        "relationship": "REPORTS_TO",
        "direction": "out",
        "target": "Employee",
        "eager": True,
    },
}


# ---------------------------------------------------------------------------
# Registry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def models() -> ModelMap:
    """Registry holding every model used in the tests."""
    registry = ModelMap()
    registry.define("Person", PERSON_SCHEMA)
    registry.define("Post", POST_SCHEMA)
    registry.define("Comment", COMMENT_SCHEMA)
    registry.define("Company", COMPANY_SCHEMA)
    registry.define("Employee", EMPLOYEE_SCHEMA)
    return registry


@pytest.fixture
def person(models: ModelMap):
    return models.get("Person")


@pytest.fixture
def post(models: ModelMap):
    return models.get("Post")


# ---------------------------------------------------------------------------
# Driver fakes
# ---------------------------------------------------------------------------


class FakeResult:
    """Async iterable standing in for neo4j.AsyncResult."""

    def __init__(self, records: list[Any]):
        self._records = records

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for record in self._records:
            yield record


@pytest.fixture
def mock_tx() -> MagicMock:
    """Transaction whose run() returns no records."""
    tx = MagicMock()
    tx.run = AsyncMock(return_value=FakeResult([]))
    tx.commit = AsyncMock()
    tx.rollback = AsyncMock()
    return tx


@pytest.fixture
def mock_session(mock_tx: MagicMock) -> MagicMock:
    """Session that runs managed work functions against ``mock_tx``."""
    session = MagicMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = None

    async def run_work(work: Callable[..., Any]) -> Any:
        return await work(mock_tx)

    session.execute_read = AsyncMock(side_effect=run_work)
    session.execute_write = AsyncMock(side_effect=run_work)
    session.begin_transaction = AsyncMock(return_value=mock_tx)
    return session


@pytest.fixture
def mock_driver(mock_session: MagicMock) -> MagicMock:
    driver = MagicMock()
    driver.session = MagicMock(return_value=mock_session)
    driver.close = AsyncMock()
    return driver


@pytest.fixture
def graph(mock_driver: MagicMock, models: ModelMap) -> Graph:
    """Graph over the mocked driver, sharing the ``models`` registry."""
    instance = Graph("bolt://localhost:7687", "neo4j", "password", driver=mock_driver)
    instance.models = models
    return instance


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def node_row(identity: str, labels: list[str], **properties: Any) -> dict[str, Any]:
    """A node projection as returned by the eager compiler."""
    return {EAGER_ID: identity, EAGER_LABELS: labels, **properties}


def relationship_row(identity: str, type: str, node_alias: str, node: dict[str, Any], **properties: Any):
    """A relationship projection holding the node at the other end."""
    return {EAGER_ID: identity, EAGER_TYPE: type, node_alias: node, **properties}

"""Install and drop the constraints and indexes declared on models."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from graph_ogm.core.logging import get_logger
from graph_ogm.schema.model import Model

if TYPE_CHECKING:
    from graph_ogm.graph import Graph

logger = get_logger(__name__)


def unique_constraint(label: str, prop: str) -> str:
    return (
        f"CREATE CONSTRAINT {label}_{prop}_unique IF NOT EXISTS "
        f"FOR (model:{label}) REQUIRE model.{prop} IS UNIQUE"
    )


def drop_unique_constraint(label: str, prop: str) -> str:
    return f"DROP CONSTRAINT {label}_{prop}_unique IF EXISTS"


def exists_constraint(label: str, prop: str) -> str:
    return (
        f"CREATE CONSTRAINT {label}_{prop}_exists IF NOT EXISTS "
        f"FOR (model:{label}) REQUIRE model.{prop} IS NOT NULL"
    )


def drop_exists_constraint(label: str, prop: str) -> str:
    return f"DROP CONSTRAINT {label}_{prop}_exists IF EXISTS"


def create_index(label: str, prop: str) -> str:
    return f"CREATE INDEX {label}_{prop}_index IF NOT EXISTS FOR (model:{label}) ON (model.{prop})"


def drop_index(label: str, prop: str) -> str:
    return f"DROP INDEX {label}_{prop}_index IF EXISTS"


def install_queries(models: Iterable[Model], enterprise: bool = False) -> list[str]:
    """Collect the schema statements for a set of models.

    Unique and primary properties get a uniqueness constraint, indexed
    properties a range index. Existence constraints for required properties
    are only available on Neo4j Enterprise.

    Args:
        models: Models to install
        enterprise: Whether the server supports existence constraints

    Returns:
        One statement per constraint or index
    """
    queries: list[str] = []
    for model in models:
        queries.extend(unique_constraint(model.name, key) for key in model.unique)
        if enterprise:
            queries.extend(
                exists_constraint(model.name, key) for key, prop in model.properties.items() if prop.required
            )
        queries.extend(create_index(model.name, key) for key in model.indexed)
    return queries


def drop_queries(models: Iterable[Model], enterprise: bool = False) -> list[str]:
    """Collect the statements that remove what install_queries creates."""
    queries: list[str] = []
    for model in models:
        queries.extend(drop_unique_constraint(model.name, key) for key in model.unique)
        if enterprise:
            queries.extend(
                drop_exists_constraint(model.name, key) for key, prop in model.properties.items() if prop.required
            )
        queries.extend(drop_index(model.name, key) for key in model.indexed)
    return queries


async def install_schema(graph: "Graph") -> list[Any]:
    """Create every declared constraint and index in one transaction."""
    queries = install_queries(graph.models.values(), enterprise=graph.enterprise)
    logger.info("Installing schema", extra={"statements": len(queries)})
    return await graph.batch(queries)


async def drop_schema(graph: "Graph") -> list[Any]:
    """Drop every declared constraint and index in one transaction."""
    queries = drop_queries(graph.models.values(), enterprise=graph.enterprise)
    logger.info("Dropping schema", extra={"statements": len(queries)})
    return await graph.batch(queries)

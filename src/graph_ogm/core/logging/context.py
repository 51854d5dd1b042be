"""Logging context utilities for structured logging.

Context set here is request-scoped (a ContextVar) and is bound onto every
structlog event through ``structlog.contextvars``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

# Use None as default to avoid mutable default value issues
_log_context: ContextVar[dict[str, Any] | None] = ContextVar("graph_ogm_log_context", default=None)


def get_log_context() -> dict[str, Any]:
    """Get the current logging context.

    Returns:
        Dict containing the current logging context
    """
    context: dict[str, Any] | None = _log_context.get()
    if context is None:
        context = {}
        _log_context.set(context)
    return context.copy()


def set_log_context(context: dict[str, Any]) -> None:
    """Replace the logging context.

    Args:
        context: Dictionary with logging context data
    """
    _log_context.set(dict(context))
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)


def update_log_context(key: str, value: Any) -> None:
    """Update a single key in the logging context.

    Args:
        key: Context key to update
        value: Value to set
    """
    context = get_log_context()
    context[key] = value
    _log_context.set(context)
    structlog.contextvars.bind_contextvars(**{key: value})


def clear_log_context() -> None:
    """Clear the current logging context."""
    _log_context.set({})
    structlog.contextvars.clear_contextvars()


@contextmanager
def bound_log_context(**values: Any) -> Iterator[dict[str, Any]]:
    """Add keys to the logging context for the duration of a block.

    The previous context is restored on exit, including keys the block
    overwrote.

    Args:
        **values: Context keys to bind

    Yields:
        The context in effect inside the block
    """
    context = {**get_log_context(), **values}
    token = _log_context.set(context)
    try:
        with structlog.contextvars.bound_contextvars(**values):
            yield context.copy()
    finally:
        _log_context.reset(token)

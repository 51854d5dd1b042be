"""Structured logging for graph_ogm.

Every module logs through ``get_logger(__name__)``. The library never
configures logging on import; applications call ``setup_logging`` (or
``Graph.from_env(configure_logging=True)``) once at startup.
"""

from .context import bound_log_context, clear_log_context, get_log_context, set_log_context, update_log_context
from .setup import get_logger, setup_logging

__all__ = [
    "bound_log_context",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
    "setup_logging",
    "update_log_context",
]

"""Centralized logging setup with optional Logfire integration.

Logfire itself is configured via environment variables (LOGFIRE_TOKEN,
LOGFIRE_SERVICE_NAME, LOGFIRE_ENVIRONMENT); this module only wires structlog
so that library events can be forwarded to it.
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger
from structlog.typing import FilteringBoundLogger


def add_error_type(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Attach the class name of a logged error.

    Args:
        _logger: The wrapped logger instance
        _method_name: The name of the logging method
        event_dict: The event dictionary

    Returns:
        The event dictionary with added context
    """
    if "error" in event_dict:
        event_dict["error_type"] = type(event_dict["error"]).__name__

    return event_dict


def setup_logging(level: str = "INFO", use_logfire: bool = False) -> None:
    """Set up structlog for applications embedding graph_ogm.

    Args:
        level: Root log level name
        use_logfire: Forward structured events to Logfire
    """
    processors: list[Processor] = [
        # Merge context from contextvars
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        add_error_type,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    # Logfire processor MUST come before the final renderer
    if use_logfire:
        processors.append(logfire.StructlogProcessor())

    processors.append(structlog.dev.ConsoleRenderer(colors=True))

    log_level = logging.getLevelName(level.upper())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        # Use PrintLogger to avoid double logging with standard library
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Standard library records (e.g. from the neo4j driver) go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=True),
        foreign_pre_chain=processors[:-1],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger instance.

    Args:
        name: The name of the logger (usually __name__)

    Returns:
        A configured structlog logger instance
    """
    return structlog.get_logger(name)

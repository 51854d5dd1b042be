"""Base error classes and enums"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from logfire.integrations.pydantic import PluginSettings
from pydantic import BaseModel, Field, field_serializer


class ErrorLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        """Convert ErrorLevel to logging level"""
        return {
            ErrorLevel.DEBUG: logging.DEBUG,
            ErrorLevel.INFO: logging.INFO,
            ErrorLevel.WARNING: logging.WARNING,
            ErrorLevel.ERROR: logging.ERROR,
            ErrorLevel.CRITICAL: logging.CRITICAL,
        }[self]


class ErrorCode(str, Enum):
    """Error codes for the library."""

    # General Errors (1xxx)
    UNKNOWN = "1000"
    INVALID_REQUEST = "1001"
    INVALID_INPUT = "1002"

    # Schema Errors (2xxx)
    SCHEMA_INVALID = "2001"
    MODEL_NOT_FOUND = "2002"
    RELATIONSHIP_NOT_FOUND = "2003"

    # Database Errors (3xxx)
    DB_QUERY = "3002"
    DB_RECORD_NOT_FOUND = "3004"
    DB_TRANSACTION = "3005"

    # Hydration Errors (4xxx)
    HYDRATION_FAILED = "4001"


class ErrorDetails(BaseModel, plugin_settings=PluginSettings(logfire={"record": "all"})):
    """Base model for structured error details"""

    source: str = Field(description="Component or module where the error occurred")
    operation: str = Field(description="Operation being performed when the error occurred")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(), description="When the error occurred")

    # Ensure timestamp is serialized consistently
    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.isoformat()


class FieldFailure(BaseModel):
    """A single failed field in a validated property bag"""

    path: str = Field(description="Dotted path of the failing field")
    message: str = Field(description="Human readable failure reason")


class ValidationErrorDetails(ErrorDetails):
    """Details for validation-related errors"""

    model: str | None = Field(None, description="Model or relationship that was validated")
    failures: list[FieldFailure] = Field(default_factory=list, description="Per-field failures")


class SchemaErrorDetails(ErrorDetails):
    """Details for schema definition errors"""

    model: str | None = Field(None, description="Model the definition belongs to")
    relationship: str | None = Field(None, description="Relationship key being resolved")
    target: str | None = Field(None, description="Target model name that was looked up")
    defined: list[str] = Field(default_factory=list, description="Model names currently registered")


class DatabaseErrorDetails(ErrorDetails):
    """Details for database-related errors"""

    query: str | None = Field(None, description="Cypher text that was sent")
    parameter_names: list[str] = Field(default_factory=list, description="Names of the bound parameters")
    database: str | None = Field(None, description="Target database name")


class HydrationErrorDetails(ErrorDetails):
    """Details for hydration failures"""

    labels: list[str] = Field(default_factory=list, description="Label set found on the row")
    field: str | None = Field(None, description="Row field that was missing or malformed")


class ApplicationError(Exception):
    """Base class for all library errors"""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        level: ErrorLevel = ErrorLevel.ERROR,
        details: ErrorDetails | dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.level = level

        # Convert dict to ErrorDetails if needed
        if details is None:
            self.details = ErrorDetails(source="unknown", operation="unknown")
        elif isinstance(details, dict):
            details = dict(details)
            source = details.pop("source", "unknown")
            operation = details.pop("operation", "unknown")
            self.details = ErrorDetails(source=source, operation=operation, **details)
        else:
            self.details = details

        super().__init__(message)

"""Specific error types raised by graph_ogm."""

from typing import Any

from .base import (
    ApplicationError,
    DatabaseErrorDetails,
    ErrorCode,
    ErrorLevel,
    FieldFailure,
    HydrationErrorDetails,
    SchemaErrorDetails,
    ValidationErrorDetails,
)


class SchemaError(ApplicationError):
    """A model or relationship definition cannot be used as declared."""

    def __init__(self, message: str, details: SchemaErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.SCHEMA_INVALID,
            level=ErrorLevel.ERROR,
            details=details or SchemaErrorDetails(source="schema", operation="resolve"),
        )


class ModelNotFoundError(ApplicationError):
    """No model is registered under a name or label set."""

    def __init__(self, message: str, details: SchemaErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.MODEL_NOT_FOUND,
            level=ErrorLevel.ERROR,
            details=details or SchemaErrorDetails(source="schema", operation="lookup"),
        )


class RelationshipNotFoundError(ApplicationError):
    """A relationship key is not declared on a model."""

    def __init__(self, model: str, relationship: str):
        super().__init__(
            message=f"Cannot find relationship with type {relationship} on model {model}",
            code=ErrorCode.RELATIONSHIP_NOT_FOUND,
            level=ErrorLevel.ERROR,
            details=SchemaErrorDetails(
                source="services.relate",
                operation="relate_to",
                model=model,
                relationship=relationship,
            ),
        )
        self.model = model
        self.relationship = relationship


class QueryError(ApplicationError):
    """A compiled query was rejected by the database.

    Keeps the exact query text and parameter table that produced the failure.
    """

    def __init__(
        self,
        query: str,
        params: dict[str, Any] | None,
        cause: BaseException,
        database: str | None = None,
    ):
        super().__init__(
            message=f"Query failed: {cause}",
            code=ErrorCode.DB_QUERY,
            level=ErrorLevel.ERROR,
            details=DatabaseErrorDetails(
                source="graph",
                operation="cypher",
                query=query,
                parameter_names=sorted((params or {}).keys()),
                database=database,
            ),
        )
        self.query = query
        self.params = params or {}
        self.cause = cause


class TransactionError(ApplicationError):
    """One or more queries in a batch failed; the transaction was rolled back."""

    def __init__(self, errors: list[Exception]):
        reasons = "; ".join(str(error) for error in errors)
        super().__init__(
            message=f"Transaction failed with {len(errors)} error(s): {reasons}",
            code=ErrorCode.DB_TRANSACTION,
            level=ErrorLevel.ERROR,
            details=DatabaseErrorDetails(source="graph", operation="batch"),
        )
        self.errors = errors


class HydrationError(ApplicationError):
    """A result row does not match the projection the hydrator expects."""

    def __init__(self, message: str, labels: list[str] | None = None, field: str | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.HYDRATION_FAILED,
            level=ErrorLevel.ERROR,
            details=HydrationErrorDetails(
                source="entities.factory",
                operation="hydrate",
                labels=labels or [],
                field=field,
            ),
        )


class ValidationError(ApplicationError):
    """A property bag failed schema validation."""

    def __init__(self, message: str, model: str | None = None, failures: list[FieldFailure] | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.WARNING,
            details=ValidationErrorDetails(
                source="schema.validator",
                operation="validate",
                model=model,
                failures=failures or [],
            ),
        )

    @property
    def failures(self) -> list[FieldFailure]:
        return self.details.failures  # type: ignore[attr-defined]


class NotFoundError(ApplicationError):
    """A lookup that requires a result returned nothing.

    Args:
        model: Name of the model that was looked up
        key: Property the lookup matched on
        value: Value the lookup matched against
        alias: Result column that came back empty, for writes that return nothing
    """

    def __init__(
        self,
        model: str | None = None,
        *,
        key: str | None = None,
        value: Any = None,
        alias: str | None = None,
    ):
        if key is not None:
            message = f"No {model or 'node'} found with {key} = {value!r}"
        else:
            message = f"No {model or 'node'} returned for alias {alias}"
        super().__init__(
            message=message,
            code=ErrorCode.DB_RECORD_NOT_FOUND,
            level=ErrorLevel.WARNING,
            details={"source": "graph", "operation": "find"},
        )
        self.model = model
        self.key = key
        self.value = value
        self.alias = alias


class QueryStateError(ApplicationError, ValueError):
    """A builder method was called while the query was in the wrong state.

    This signals a caller bug, e.g. adding a WHERE before any MATCH, CREATE
    or MERGE was opened.
    """

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_REQUEST,
            level=ErrorLevel.ERROR,
            details={"source": "query.builder", "operation": "build"},
        )

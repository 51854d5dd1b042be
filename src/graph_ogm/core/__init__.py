from .base import ApplicationError, ErrorCode, ErrorLevel
from .errors import (
    HydrationError,
    ModelNotFoundError,
    NotFoundError,
    QueryError,
    QueryStateError,
    RelationshipNotFoundError,
    SchemaError,
    TransactionError,
    ValidationError,
)

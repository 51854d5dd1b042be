"""State management for the query builder.

Tracks which statement is open so that clauses are never appended to a query
that has no pattern yet, and so that a built query cannot be extended.
"""

from enum import Enum
from typing import ClassVar

from graph_ogm.core.errors import QueryStateError


class ClauseType(str, Enum):
    """Cypher clause keywords."""

    # Statement heads
    MATCH = "MATCH"
    OPTIONAL_MATCH = "OPTIONAL MATCH"
    CREATE = "CREATE"
    MERGE = "MERGE"
    WITH = "WITH"
    WITH_DISTINCT = "WITH DISTINCT"

    # Filtering
    WHERE = "WHERE"

    # Data manipulation
    REMOVE = "REMOVE"
    ON_CREATE_SET = "ON CREATE SET"
    ON_MATCH_SET = "ON MATCH SET"
    SET = "SET"
    DELETE = "DELETE"
    DETACH_DELETE = "DETACH DELETE"

    # Output
    RETURN = "RETURN"
    ORDER_BY = "ORDER BY"
    SKIP = "SKIP"
    LIMIT = "LIMIT"


# Order in which a statement emits its sections
SECTION_ORDER: tuple[ClauseType, ...] = (
    ClauseType.WHERE,
    ClauseType.REMOVE,
    ClauseType.ON_CREATE_SET,
    ClauseType.ON_MATCH_SET,
    ClauseType.SET,
    ClauseType.DELETE,
    ClauseType.DETACH_DELETE,
    ClauseType.RETURN,
    ClauseType.ORDER_BY,
    ClauseType.SKIP,
    ClauseType.LIMIT,
)


class CypherQueryState:
    """State machine for a query made of consecutive statements.

    A statement is opened by MATCH, OPTIONAL MATCH, CREATE or MERGE. A WITH
    closes the open statement and leaves an unnamed continuation open, so
    WHERE, RETURN and friends can follow it.
    """

    _STATEMENT_HEADS: ClassVar[frozenset[ClauseType]] = frozenset(
        {
            ClauseType.MATCH,
            ClauseType.OPTIONAL_MATCH,
            ClauseType.CREATE,
            ClauseType.MERGE,
            ClauseType.WITH,
            ClauseType.WITH_DISTINCT,
        }
    )

    # Only meaningful directly after a MERGE pattern
    _MERGE_ONLY: ClassVar[frozenset[ClauseType]] = frozenset({ClauseType.ON_CREATE_SET, ClauseType.ON_MATCH_SET})

    def __init__(self) -> None:
        self._clauses: list[ClauseType] = []
        self._current_statement: ClauseType | None = None
        self._is_complete = False

    @property
    def is_complete(self) -> bool:
        """Whether the query has been built."""
        return self._is_complete

    @property
    def current_statement(self) -> ClauseType | None:
        """Head of the open statement, or None if nothing has been opened."""
        return self._current_statement

    @property
    def clauses(self) -> tuple[ClauseType, ...]:
        return tuple(self._clauses)

    def open_statement(self, head: ClauseType) -> None:
        """Open a new statement.

        Args:
            head: MATCH, OPTIONAL MATCH, CREATE, MERGE or a WITH variant

        Raises:
            QueryStateError: If the query was built or ``head`` cannot start a statement
        """
        self._validate_not_complete(head)
        if head not in self._STATEMENT_HEADS:
            raise QueryStateError(f"{head.value} cannot start a statement")

        self._current_statement = head
        self._clauses.append(head)

    def add_clause(self, clause_type: ClauseType) -> None:
        """Record a clause appended to the open statement.

        Raises:
            QueryStateError: If the clause cannot be added
        """
        self.validate_can_add(clause_type)
        self._clauses.append(clause_type)

    def validate_can_add(self, clause_type: ClauseType) -> None:
        """Check that a clause can be appended to the open statement.

        Raises:
            QueryStateError: If no statement is open, the query was built, or
                an ON CREATE/ON MATCH SET does not follow a MERGE
        """
        self._validate_not_complete(clause_type)

        if self._current_statement is None:
            raise QueryStateError(
                f"Cannot add {clause_type.value} before a MATCH, OPTIONAL MATCH, CREATE or MERGE"
            )

        if clause_type in self._MERGE_ONLY and self._current_statement is not ClauseType.MERGE:
            raise QueryStateError(f"{clause_type.value} can only follow a MERGE, got {self._current_statement.value}")

    def validate_pattern(self) -> None:
        """Check that the open statement has a pattern that can be extended.

        Raises:
            QueryStateError: If no MATCH, OPTIONAL MATCH, CREATE or MERGE is open
        """
        if self._is_complete:
            raise QueryStateError("Cannot extend the pattern, the query has already been built")

        if self._current_statement is None or self._current_statement in (ClauseType.WITH, ClauseType.WITH_DISTINCT):
            raise QueryStateError("A relationship must follow a MATCH, OPTIONAL MATCH, CREATE or MERGE")

    def complete(self) -> None:
        """Mark the query as built. Nothing can be added afterwards."""
        self._is_complete = True

    def _validate_not_complete(self, clause_type: ClauseType) -> None:
        if self._is_complete:
            raise QueryStateError(f"Cannot add {clause_type.value}, the query has already been built")

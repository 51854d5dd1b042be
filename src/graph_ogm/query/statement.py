"""A single query stanza.

A Statement accumulates pattern fragments, where groups, mutations and
output clauses, and always emits them in SECTION_ORDER. Reordering the
sections would change what the query means, so callers can append in any
order they like.
"""

from graph_ogm.query.clauses import (
    NodePattern,
    Order,
    PropertyAssignment,
    RelationshipPattern,
    WhereGroup,
)
from graph_ogm.query.state import SECTION_ORDER, ClauseType

SetItem = PropertyAssignment | str


class Statement:
    """One MATCH/OPTIONAL MATCH/CREATE/MERGE stanza, or a continuation after WITH."""

    def __init__(self, head: ClauseType | None = ClauseType.MATCH) -> None:
        self.head = head
        self.pattern: list[NodePattern | RelationshipPattern] = []
        self.where: list[WhereGroup] = []
        self.remove: list[str] = []
        self.on_create_set: list[SetItem] = []
        self.on_match_set: list[SetItem] = []
        self.set: list[SetItem] = []
        self.delete: list[str] = []
        self.detach_delete: list[str] = []
        self.return_items: list[str] = []
        self.order: list[Order] = []
        self.skip: str | None = None
        self.limit: str | None = None

    def _where_text(self) -> str:
        groups = [group for group in self.where if group]
        return " ".join(group.build(first=index == 0) for index, group in enumerate(groups))

    def _sections(self) -> dict[ClauseType, str]:
        def join(items: list[SetItem] | list[str]) -> str:
            return ", ".join(item if isinstance(item, str) else item.build() for item in items)

        return {
            ClauseType.WHERE: self._where_text(),
            ClauseType.REMOVE: join(self.remove),
            ClauseType.ON_CREATE_SET: join(self.on_create_set),
            ClauseType.ON_MATCH_SET: join(self.on_match_set),
            ClauseType.SET: join(self.set),
            ClauseType.DELETE: join(self.delete),
            ClauseType.DETACH_DELETE: join(self.detach_delete),
            ClauseType.RETURN: join(self.return_items),
            ClauseType.ORDER_BY: ", ".join(order.build() for order in self.order),
            ClauseType.SKIP: f"${self.skip}" if self.skip else "",
            ClauseType.LIMIT: f"${self.limit}" if self.limit else "",
        }

    def build(self, include_head: bool = True) -> str:
        """Render the statement.

        Args:
            include_head: Prefix the pattern with its keyword. Pattern-only
                rendering is used to embed a pattern inside another query.

        Returns:
            The statement text, one section per line
        """
        output: list[str] = []

        if self.pattern:
            pattern = "".join(fragment.build() for fragment in self.pattern)
            head = self.head.value if include_head and self.head else ""
            output.append(f"{head} {pattern}".strip())

        sections = self._sections()
        for clause_type in SECTION_ORDER:
            text = sections[clause_type]
            if not text:
                continue
            # The where group renders its own keyword
            output.append(text if clause_type is ClauseType.WHERE else f"{clause_type.value} {text}")

        return "\n".join(output)

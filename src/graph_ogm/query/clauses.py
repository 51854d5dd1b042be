"""Clause model for compiled queries.

Every clause renders to an exact text fragment. Values never appear in the
text: clauses only hold ``$param`` references into the builder's parameter
table.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from graph_ogm.core.errors import QueryStateError
from graph_ogm.schema.relationship_type import Direction


@dataclass(frozen=True)
class PropertyAssignment:
    """A property bound to a parameter, e.g. ``this.name = $set_0``."""

    key: str
    param: str | None = None
    operator: str = "="

    @property
    def value(self) -> str:
        return f"${self.param}" if self.param else "null"

    def build(self) -> str:
        return f"{self.key} {self.operator} {self.value}"

    def build_inline(self) -> str:
        """Render for a pattern's property map, e.g. ``name: $this_name``."""
        return f"{self.key}: {self.value}"


@dataclass(frozen=True)
class NodePattern:
    """A node pattern like ``(this:Person { name: $this_name })``.

    Every part is optional; ``()`` matches any node.
    """

    alias: str | None = None
    labels: tuple[str, ...] = ()
    properties: tuple[PropertyAssignment, ...] = ()

    def build(self) -> str:
        pattern_parts: list[str] = ["("]

        if self.alias:
            pattern_parts.append(self.alias)

        if self.labels:
            pattern_parts.append(":" + ":".join(self.labels))

        if self.properties:
            prop_str = ", ".join(prop.build_inline() for prop in self.properties)
            pattern_parts.append(f" {{ {prop_str} }}")

        pattern_parts.append(")")
        return "".join(pattern_parts)


@dataclass(frozen=True)
class RelationshipPattern:
    """A relationship arrow like ``-[rel:`KNOWS`*1..3]->``.

    The brackets are only emitted when a type, alias or traversal range is
    present, so an anonymous undirected relationship renders as ``--``.
    """

    types: tuple[str, ...] = ()
    direction: Direction = Direction.BOTH
    alias: str | None = None
    degrees: int | str | None = None

    def build(self) -> str:
        rel = ""
        if self.types or self.alias or self.degrees:
            type_str = ":`" + "`|`".join(self.types) + "`" if self.types else ""
            degrees = f"*{self.degrees}" if self.degrees else ""
            rel = f"[{self.alias or ''}{type_str}{degrees}]"

        return f"{self.direction.arrow_in}-{rel}-{self.direction.arrow_out}"


@dataclass(frozen=True)
class Where:
    """A comparison ``left operator right``, where right is a parameter reference."""

    left: str
    operator: str
    right: str
    negated: bool = False

    def negate(self) -> "Where":
        return replace(self, negated=True)

    def build(self) -> str:
        negative = "NOT " if self.negated else ""
        return f"{negative}{self.left} {self.operator} {self.right}"


@dataclass(frozen=True)
class WhereBetween:
    """A range check ``$floor <= alias <= $ceiling``."""

    alias: str
    floor: str
    ceiling: str
    negated: bool = False

    def negate(self) -> "WhereBetween":
        return replace(self, negated=True)

    def build(self) -> str:
        negative = "NOT " if self.negated else ""
        return f"{negative}${self.floor} <= {self.alias} <= ${self.ceiling}"


@dataclass(frozen=True)
class WhereId:
    """Match an entity by its element id."""

    alias: str
    param: str
    negated: bool = False

    def negate(self) -> "WhereId":
        return replace(self, negated=True)

    def build(self) -> str:
        negative = "NOT " if self.negated else ""
        return f"{negative}elementId({self.alias}) = ${self.param}"


@dataclass(frozen=True)
class WhereRaw:
    """A caller supplied condition, used verbatim."""

    clause: str
    negated: bool = False

    def negate(self) -> "WhereRaw":
        return replace(self, negated=True)

    def build(self) -> str:
        negative = "NOT " if self.negated else ""
        return f"{negative}{self.clause}"


WhereLeaf = Where | WhereBetween | WhereId | WhereRaw


class Connector(str, Enum):
    """Boolean operator joining conditions."""

    AND = "AND"
    OR = "OR"
    XOR = "XOR"


@dataclass
class WhereGroup:
    """A parenthesized group of conditions.

    Leaves inside the group are joined by ``connector``. When the group is not
    the first one in its statement it is prefixed by ``joiner`` instead of
    ``WHERE``, e.g. ``WHERE (a AND b) OR (c)``.
    """

    joiner: Connector = Connector.AND
    connector: Connector = Connector.AND
    leaves: list[WhereLeaf] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.leaves)

    def append(self, leaf: WhereLeaf) -> "WhereGroup":
        self.leaves.append(leaf)
        return self

    def negate_last(self) -> None:
        """Replace the most recent condition with its negation.

        Raises:
            QueryStateError: If the group has no conditions yet
        """
        if not self.leaves:
            raise QueryStateError("There is no condition to negate")
        self.leaves[-1] = self.leaves[-1].negate()

    def build(self, first: bool = True) -> str:
        if not self.leaves:
            return ""

        conditions = f" {self.connector.value} ".join(leaf.build() for leaf in self.leaves)
        prefix = "WHERE" if first else self.joiner.value
        return f"{prefix} ({conditions})"


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def _missing_(cls, value: object) -> "OrderDirection | None":
        if isinstance(value, str):
            normalized = value.upper()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


@dataclass(frozen=True)
class Order:
    """An ordering term, e.g. ``this.name DESC``."""

    what: str
    direction: OrderDirection | None = None

    def build(self) -> str:
        return f"{self.what} {self.direction.value if self.direction else ''}".strip()


@dataclass(frozen=True)
class WithStatement:
    """A WITH (or WITH DISTINCT) projection carrying aliases into the next part."""

    items: tuple[str, ...]
    distinct: bool = False

    def build(self) -> str:
        keyword = "WITH DISTINCT" if self.distinct else "WITH"
        return f"{keyword} {', '.join(self.items)}"

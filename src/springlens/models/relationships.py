"""Typed, directed edges between classes."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class RelationshipType(Enum):
    """Kind of class-to-class relationship."""

    EXTENDS = "EXTENDS"
    IMPLEMENTS = "IMPLEMENTS"
    INJECTS = "INJECTS"
    USES = "USES"
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_ONE = "MANY_TO_ONE"
    MANY_TO_MANY = "MANY_TO_MANY"

    @property
    def is_persistence(self) -> bool:
        return self in _PERSISTENCE_TYPES


_PERSISTENCE_TYPES = frozenset(
    {
        RelationshipType.ONE_TO_ONE,
        RelationshipType.ONE_TO_MANY,
        RelationshipType.MANY_TO_ONE,
        RelationshipType.MANY_TO_MANY,
    }
)


@dataclass(frozen=True)
class RelationshipEdge:
    """Directed edge between two known classes.

    Both ends are simple names that resolve in the run's NameIndex.

    Attributes:
        source: Owning class
        target: Referenced class
        type: Relationship kind
        field_name: Field carrying the relationship, when there is one
    """

    source: str
    target: str
    type: RelationshipType
    field_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "field_name": self.field_name,
        }

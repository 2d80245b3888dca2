"""Ordered first-match classification tables.

Stereotype, module role and data-flow bucket decisions are all "first rule
whose predicate holds wins". Keeping the rules as data makes the precedence
visible and testable.
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

S = TypeVar("S")
O = TypeVar("O")


@dataclass(frozen=True)
class Rule(Generic[S, O]):
    """One (predicate, outcome) entry.

    Attributes:
        name: Rule identifier for logging and tests
        predicate: Test applied to the subject
        outcome: Result when the predicate holds
    """

    name: str
    predicate: Callable[[S], bool]
    outcome: O


class RuleTable(Generic[S, O]):
    """Sequence of rules evaluated in order; the first match decides."""

    def __init__(self, rules: Sequence[Rule[S, O]], default: O) -> None:
        """Initialize the table.

        Args:
            rules: Rules in precedence order
            default: Outcome when no rule matches
        """
        self._rules = tuple(rules)
        self.default = default

    def match(self, subject: S) -> Rule[S, O] | None:
        """Return the first rule whose predicate holds for the subject."""
        for rule in self._rules:
            if rule.predicate(subject):
                return rule
        return None

    def classify(self, subject: S) -> O:
        """Outcome of the first matching rule, or the default."""
        rule = self.match(subject)
        return rule.outcome if rule is not None else self.default

    def __iter__(self) -> Iterator[Rule[S, O]]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

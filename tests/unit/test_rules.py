"""Unit tests for first-match rule tables."""

from springlens.analyzers.rules import Rule, RuleTable


class TestRuleTable:
    """Tests for RuleTable."""

    def test_first_matching_rule_wins(self) -> None:
        """Test that rule order decides between overlapping predicates."""
        table = RuleTable(
            [
                Rule("big", lambda n: n > 100, "big"),
                Rule("positive", lambda n: n > 0, "positive"),
            ],
            default="other",
        )

        assert table.classify(500) == "big"
        assert table.classify(5) == "positive"

    def test_default_when_nothing_matches(self) -> None:
        """Test the default outcome."""
        table = RuleTable([Rule("positive", lambda n: n > 0, "positive")], default="other")

        assert table.classify(-1) == "other"
        assert table.match(-1) is None

    def test_match_returns_rule(self) -> None:
        """Test that match exposes the deciding rule."""
        rule = Rule("even", lambda n: n % 2 == 0, True)
        table = RuleTable([rule], default=False)

        assert table.match(4) is rule

    def test_iteration_keeps_order(self) -> None:
        """Test iterating rules in precedence order."""
        table = RuleTable(
            [Rule("a", lambda _: True, 1), Rule("b", lambda _: True, 2)],
            default=0,
        )

        assert [r.name for r in table] == ["a", "b"]
        assert len(table) == 2

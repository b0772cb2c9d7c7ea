"""Tests for interactive expense entry."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

from prompt_toolkit.document import Document

from split_ledger.models import Category, SplitType
from split_ledger.ui import (
    FuzzyCompleter,
    fuzzy_match,
    parse_amount,
    parse_split_type,
    prompt_expense_interactive,
)


class TestFuzzyMatching:
    """Tests for completion matching."""

    def test_in_order_characters_match(self):
        assert fuzzy_match("snk", "sanket")
        assert fuzzy_match("gro", "groceries")

    def test_out_of_order_characters_do_not_match(self):
        assert not fuzzy_match("kns", "sanket")

    def test_completer_filters_choices(self):
        """Only matching names are offered."""
        completer = FuzzyCompleter(["Shantanu", "Sanket", "Om"])

        completions = list(completer.get_completions(Document("sk"), None))

        assert [c.text for c in completions] == ["Sanket"]

    def test_completer_offers_everything_for_empty_query(self):
        completer = FuzzyCompleter(["Shantanu", "Om"])

        completions = list(completer.get_completions(Document(""), None))

        assert [c.text for c in completions] == ["Shantanu", "Om"]


class TestParsers:
    """Tests for input parsing."""

    def test_amount_must_be_positive(self):
        assert parse_amount("12.50") == Decimal("12.50")
        assert parse_amount("0") is None
        assert parse_amount("-3") is None
        assert parse_amount("abc") is None
        assert parse_amount("NaN") is None

    def test_split_type_defaults_to_equal(self):
        assert parse_split_type("") == SplitType.EQUAL
        assert parse_split_type("exact") == SplitType.EXACT
        assert parse_split_type("shares") is None


class TestPromptExpenseInteractive:
    """Tests for the interactive expense prompt."""

    @patch("split_ledger.ui.PromptSession")
    def test_collects_expense(self, mock_session_class):
        """Answers are collected into a validated expense."""
        mock_session = MagicMock()
        mock_session.prompt.side_effect = [
            "A",  # paid by
            "300",  # amount
            "Dinner",  # description
            "Food",  # category
            "A",  # split with
            "",  # type (equal)
            "B",
            "exact",
            "150",
            "",  # done
        ]
        mock_session_class.return_value = mock_session

        expense = prompt_expense_interactive(["A", "B"])

        assert expense is not None
        assert expense.amount == Decimal("300")
        assert expense.category == Category.FOOD
        assert [(s.name, s.split_type, s.value) for s in expense.split] == [
            ("A", SplitType.EQUAL, Decimal("0")),
            ("B", SplitType.EXACT, Decimal("150")),
        ]

    @patch("split_ledger.ui.PromptSession")
    def test_retries_invalid_answers(self, mock_session_class):
        """Invalid amounts and categories are asked again."""
        mock_session = MagicMock()
        mock_session.prompt.side_effect = [
            "A",
            "free",  # invalid amount
            "20",
            "Tea",
            "Snacks",  # invalid category
            "Food",
            "",  # no splits yet: asked again
            "A",
            "",
            "",
        ]
        mock_session_class.return_value = mock_session

        expense = prompt_expense_interactive([])

        assert expense.amount == Decimal("20")
        assert [s.name for s in expense.split] == ["A"]

    @patch("split_ledger.ui.PromptSession")
    def test_ctrl_c_cancels(self, mock_session_class):
        """Ctrl+C returns None."""
        mock_session = MagicMock()
        mock_session.prompt.side_effect = KeyboardInterrupt
        mock_session_class.return_value = mock_session

        assert prompt_expense_interactive(["A"]) is None

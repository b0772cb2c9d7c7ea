"""Interactive prompts for entering expenses."""

import logging
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document
from pydantic import ValidationError

from .models import Category, ExpenseInput, SplitInput, SplitType

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FuzzyCompleter(Completer):
    """Fuzzy search completer over a fixed list of choices."""

    def __init__(self, choices: list[str]):
        """Initialize the completer with available choices."""
        self.choices = choices

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for choice in self.choices:
            if not query or fuzzy_match(query, choice.lower()):
                yield Completion(
                    text=choice,
                    start_position=-len(document.text),
                    display=choice,
                )


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="gro" matches "groceries"
        query="snk" matches "sanket"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


def parse_decimal(text: str) -> Decimal | None:
    """Parse user input as a finite Decimal, or None if it isn't one."""
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_amount(text: str) -> Decimal | None:
    """Accept a positive amount."""
    value = parse_decimal(text)
    return value if value is not None and value > 0 else None


def parse_split_value(text: str) -> Decimal | None:
    """Accept a split value of zero or more."""
    value = parse_decimal(text)
    return value if value is not None and value >= 0 else None


def parse_category(text: str) -> Category | None:
    """Match one of the category names exactly."""
    try:
        return Category(text)
    except ValueError:
        return None


def parse_split_type(text: str) -> SplitType | None:
    """Match a split type; empty input means an equal split."""
    try:
        return SplitType(text or SplitType.EQUAL.value)
    except ValueError:
        return None


def parse_name(text: str) -> str | None:
    """Accept any non-empty name."""
    return text or None


def _prompt_until_valid(
    session: PromptSession, message: str, parse: Callable[[str], T | None], **kwargs
) -> T:
    while True:
        result = parse(session.prompt(message, **kwargs).strip())
        if result is not None:
            return result
        print("❌ Invalid value, try again.")


def prompt_expense_interactive(known_people: list[str]) -> ExpenseInput | None:
    """
    Walk the user through entering an expense and its splits.

    Args:
        known_people: Names offered for completion

    Returns:
        The validated expense, or None if the user cancelled
    """
    people_completer = FuzzyCompleter(known_people)
    session: PromptSession[str] = PromptSession()

    print("\n🧾 New expense (Ctrl+C to cancel)\n")

    try:
        paid_by = _prompt_until_valid(
            session,
            "Paid by: ",
            parse_name,
            completer=people_completer,
            complete_while_typing=True,
        )
        amount = _prompt_until_valid(session, "Amount: ", parse_amount)
        description = _prompt_until_valid(session, "Description: ", parse_name)
        category = _prompt_until_valid(
            session,
            "Category: ",
            parse_category,
            completer=FuzzyCompleter([c.value for c in Category]),
            complete_while_typing=True,
        )

        print("\n   Enter splits, leave the name empty to finish\n")
        splits: list[SplitInput] = []
        while True:
            name = session.prompt(
                "Split with: ",
                completer=people_completer,
                complete_while_typing=True,
            ).strip()
            if not name:
                if splits:
                    break
                print("❌ At least one split is required.")
                continue

            split_type = _prompt_until_valid(
                session,
                "  Type [equal]: ",
                parse_split_type,
                completer=FuzzyCompleter([t.value for t in SplitType]),
            )
            value = Decimal("0")
            if split_type != SplitType.EQUAL:
                value = _prompt_until_valid(session, "  Value: ", parse_split_value)
            splits.append(SplitInput(name=name, split_type=split_type, value=value))

    except (KeyboardInterrupt, EOFError):
        print("\n⏭️  Cancelled")
        return None

    try:
        return ExpenseInput(
            amount=amount,
            description=description,
            paid_by=paid_by,
            category=category,
            split=splits,
        )
    except ValidationError as e:
        logger.warning(f"Interactive expense rejected: {e}")
        print(f"❌ {e}")
        return None

"""Custom exceptions for split-ledger."""

from decimal import Decimal


class SplitLedgerError(Exception):
    """Base exception for all split-ledger errors."""

    pass


class ConfigurationError(SplitLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidInputError(SplitLedgerError):
    """Base class for errors caused by bad client input, not by the system."""

    pass


class SplitConsistencyError(InvalidInputError):
    """Raised when an expense's exact or percentage splits exceed their bound."""

    def __init__(
        self,
        expense_id: int,
        split_type: str,
        total: Decimal,
        bound: Decimal,
        message: str | None = None,
    ):
        self.expense_id = expense_id
        self.split_type = split_type
        self.total = total
        self.bound = bound
        super().__init__(
            message
            or f"Invalid '{split_type}' splits for expense ID {expense_id}: "
            f"sum ({total}) exceeds {bound}"
        )


class DegenerateExpenseError(InvalidInputError):
    """Raised when an expense has no splits to carry its cost."""

    def __init__(self, expense_id: int):
        self.expense_id = expense_id
        super().__init__(f"Expense ID {expense_id} has no splits")


class ExpenseNotFoundError(SplitLedgerError):
    """Raised when updating or deleting an expense that does not exist."""

    def __init__(self, expense_id: int):
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id} does not exist")

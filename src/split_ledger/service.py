"""Service layer that composes persistence and the settlement engine.

Each report reads a fresh snapshot from the database and runs the pure
settlement functions over it.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from .config import Settings
from .db import Database
from .models import (
    CategoryBreakdown,
    CategoryTotal,
    Expense,
    ExpenseInput,
    MonthlySpending,
    Person,
    PersonBalance,
    SettlementReport,
)
from .settlement import compute_balances, plan_settlements, round2

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording expenses and reporting who owes whom."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Write path
    # ========================================================================

    def add_expense(self, data: ExpenseInput) -> Expense:
        """Record a new expense and its splits."""
        expense = self.db.create_expense(data)
        logger.info(
            f"Added expense {expense.id}: {expense.description} "
            f"({expense.amount} paid by {expense.paid_by}, "
            f"{len(expense.splits)} splits)"
        )
        return expense

    def add_expense_once(
        self, data: ExpenseInput, key: str, value: str
    ) -> Expense | None:
        """Record an expense unless config ``key`` already holds ``value``."""
        expense = self.db.create_expense_once(data, key, value)
        if expense is not None:
            logger.info(
                f"Added expense {expense.id}: {expense.description} "
                f"({key} = {value})"
            )
        return expense

    def update_expense(self, expense_id: int, data: ExpenseInput) -> Expense:
        """Replace an expense and its whole split set."""
        expense = self.db.update_expense(expense_id, data)
        logger.info(f"Updated expense {expense_id} ({len(expense.splits)} splits)")
        return expense

    def delete_expense(self, expense_id: int):
        """Delete an expense and its splits."""
        self.db.delete_expense(expense_id)
        logger.info(f"Deleted expense {expense_id}")

    # ========================================================================
    # Reads
    # ========================================================================

    def list_expenses(self) -> list[Expense]:
        """All expenses, oldest first."""
        return self.db.list_expenses()

    def list_people(self) -> list[Person]:
        """Everyone who has paid or been split on, in creation order."""
        return self.db.list_people()

    def get_balances(self) -> list[PersonBalance]:
        """
        Compute each person's paid/owes/balance figures.

        Raises:
            SplitConsistencyError: If any stored expense has inconsistent splits
            DegenerateExpenseError: If any stored expense has no splits
        """
        people = self.db.list_people()
        expenses = self.db.list_expenses()
        balances = compute_balances(people, expenses)
        logger.info(
            f"Computed balances for {len(people)} people "
            f"over {len(expenses)} expenses"
        )
        return balances

    def get_settlement_report(self) -> SettlementReport:
        """Compute balances and the transfers that settle them."""
        balances = self.get_balances()
        return SettlementReport(
            summary=balances, settlements=plan_settlements(balances)
        )

    def get_category_breakdown(self) -> CategoryBreakdown:
        """Total spending per category with each category's share of the total."""
        totals = self.db.category_totals()
        overall = sum(totals.values(), Decimal("0"))

        breakdown = [
            CategoryTotal(
                category=category,
                total=round2(total),
                percentage=round2(total / overall * 100),
            )
            for category, total in totals.items()
        ]

        return CategoryBreakdown(total=round2(overall), breakdown=breakdown)

    def get_monthly_spending(self, now: datetime | None = None) -> MonthlySpending:
        """
        Expenses and per-category totals over the trailing spending window.

        Args:
            now: End of the window (defaults to the current time)

        Returns:
            The window's expenses and category totals
        """
        end = now or datetime.now()
        start = end - timedelta(days=self.settings.spending_window_days)

        expenses = self.db.list_expenses_between(start, end)
        by_category = self.db.category_totals(start, end)

        logger.info(
            f"Found {len(expenses)} expenses between {start.date()} and {end.date()}"
        )

        return MonthlySpending(
            start=start, end=end, expenses=expenses, by_category=by_category
        )

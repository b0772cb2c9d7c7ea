"""Tests for LedgerService layer."""

from datetime import datetime
from decimal import Decimal

import pytest

from split_ledger.config import Settings
from split_ledger.db import Database
from split_ledger.exceptions import SplitConsistencyError
from split_ledger.models import Category, ExpenseInput, SplitInput, SplitType
from split_ledger.service import LedgerService


@pytest.fixture
def mock_settings(tmp_path):
    """Create settings pointing at a temporary database."""
    return Settings(database_path=tmp_path / "test.db", spending_window_days=30)


@pytest.fixture
def mock_db(mock_settings):
    """Create a temporary database."""
    db = Database(mock_settings.database_path)
    yield db
    db.close()


@pytest.fixture
def service(mock_settings, mock_db):
    """Create a LedgerService instance."""
    return LedgerService(mock_settings, mock_db)


def equal_expense(
    amount: str, paid_by: str, names: list[str], **kwargs
) -> ExpenseInput:
    return ExpenseInput(
        amount=Decimal(amount),
        description=kwargs.get("description", "Shared"),
        paid_by=paid_by,
        category=kwargs.get("category", Category.FOOD),
        split=[SplitInput(name=name) for name in names],
    )


class TestGetBalances:
    """Tests for get_balances method."""

    def test_three_way_split(self, service):
        """A pays 300 for A, B, C: A is owed 200, B and C owe 100 each."""
        service.add_expense(equal_expense("300", "A", ["A", "B", "C"]))

        balances = {b.name: b for b in service.get_balances()}

        assert balances["A"].balance == Decimal("200")
        assert balances["B"].balance == Decimal("-100")
        assert balances["C"].balance == Decimal("-100")

    def test_mixed_split_types(self, service):
        """Balances combine equal, percentage and exact splits."""
        service.add_expense(equal_expense("90", "A", ["A", "B", "C"]))
        service.add_expense(
            ExpenseInput(
                amount=Decimal("200"),
                description="Hotel",
                paid_by="B",
                category=Category.TRAVEL,
                split=[
                    SplitInput(
                        name="A", split_type=SplitType.PERCENTAGE, value=Decimal("50")
                    ),
                    SplitInput(
                        name="B", split_type=SplitType.PERCENTAGE, value=Decimal("50")
                    ),
                ],
            )
        )
        service.add_expense(
            ExpenseInput(
                amount=Decimal("40"),
                description="Taxi",
                paid_by="C",
                category=Category.TRAVEL,
                split=[
                    SplitInput(
                        name="A", split_type=SplitType.EXACT, value=Decimal("15")
                    ),
                    SplitInput(
                        name="C", split_type=SplitType.EXACT, value=Decimal("25")
                    ),
                ],
            )
        )

        balances = {b.name: b for b in service.get_balances()}

        # A: paid 90, owes 30 + 100 + 15
        assert balances["A"].paid == Decimal("90")
        assert balances["A"].owes == Decimal("145")
        assert balances["A"].balance == Decimal("-55")
        # B: paid 200, owes 30 + 100
        assert balances["B"].balance == Decimal("70")
        # C: paid 40, owes 30 + 25
        assert balances["C"].balance == Decimal("-15")
        assert sum(b.balance for b in balances.values()) == 0

    def test_inconsistent_expense_rejects_whole_report(self, service):
        """A stored expense with over-allocated exact splits fails the report."""
        service.add_expense(equal_expense("300", "A", ["A", "B", "C"]))
        bad = service.add_expense(
            ExpenseInput(
                amount=Decimal("100"),
                description="Bad",
                paid_by="A",
                category=Category.OTHER,
                split=[
                    SplitInput(
                        name="A", split_type=SplitType.EXACT, value=Decimal("40")
                    ),
                    SplitInput(
                        name="B", split_type=SplitType.EXACT, value=Decimal("70")
                    ),
                ],
            )
        )

        with pytest.raises(SplitConsistencyError) as exc_info:
            service.get_balances()

        assert exc_info.value.expense_id == bad.id

    def test_empty_ledger(self, service):
        """No people means no balances."""
        assert service.get_balances() == []


class TestGetSettlementReport:
    """Tests for get_settlement_report method."""

    def test_report_scenario(self, service):
        """B and C each pay A 100."""
        service.add_expense(equal_expense("300", "A", ["A", "B", "C"]))

        report = service.get_settlement_report()

        assert [b.name for b in report.summary] == ["A", "B", "C"]
        assert {(s.from_, s.to, s.amount) for s in report.settlements} == {
            ("B", "A", Decimal("100")),
            ("C", "A", Decimal("100")),
        }

    def test_update_changes_report(self, service):
        """Replacing an expense's splits is reflected in the report."""
        expense = service.add_expense(equal_expense("300", "A", ["A", "B", "C"]))

        service.update_expense(expense.id, equal_expense("300", "A", ["A", "B"]))
        report = service.get_settlement_report()

        assert [(s.from_, s.to, s.amount) for s in report.settlements] == [
            ("B", "A", Decimal("150")),
        ]
        balances = {b.name: b.balance for b in report.summary}
        assert balances["C"] == Decimal("0")

    def test_delete_settles_everyone(self, service):
        """With the only expense deleted, no transfers remain."""
        expense = service.add_expense(equal_expense("300", "A", ["A", "B", "C"]))

        service.delete_expense(expense.id)

        assert service.get_settlement_report().settlements == []

    def test_json_shape(self, service):
        """The report serializes with summary and from/to settlements."""
        service.add_expense(equal_expense("50", "A", ["A", "B"]))

        data = service.get_settlement_report().model_dump(by_alias=True)

        assert set(data) == {"summary", "settlements"}
        assert set(data["summary"][0]) == {"name", "paid", "owes", "balance"}
        assert data["settlements"] == [
            {"from": "B", "to": "A", "amount": Decimal("25.00")}
        ]


class TestCategoryBreakdown:
    """Tests for get_category_breakdown method."""

    def test_percentages(self, service):
        """Each category's share of total spending is reported."""
        service.add_expense(equal_expense("75", "A", ["A"], category=Category.FOOD))
        service.add_expense(equal_expense("25", "A", ["A"], category=Category.RENT))

        report = service.get_category_breakdown()

        assert report.total == Decimal("100.00")
        assert [(c.category, c.total, c.percentage) for c in report.breakdown] == [
            (Category.FOOD, Decimal("75.00"), Decimal("75.00")),
            (Category.RENT, Decimal("25.00"), Decimal("25.00")),
        ]

    def test_empty(self, service):
        """No expenses gives a zero total and no categories."""
        report = service.get_category_breakdown()

        assert report.total == Decimal("0")
        assert report.breakdown == []


class TestMonthlySpending:
    """Tests for get_monthly_spending method."""

    def test_only_recent_expenses(self, service, mock_db):
        """Expenses older than the window are excluded."""
        now = datetime(2026, 10, 17, 12, 0)
        mock_db.create_expense(
            equal_expense("10", "A", ["A"]), created_at=datetime(2026, 8, 1)
        )
        recent = mock_db.create_expense(
            equal_expense("20", "A", ["A"], category=Category.UTILITIES),
            created_at=datetime(2026, 10, 1),
        )

        report = service.get_monthly_spending(now=now)

        assert report.start == datetime(2026, 9, 17, 12, 0)
        assert [e.id for e in report.expenses] == [recent.id]
        assert report.by_category == {Category.UTILITIES: Decimal("20")}

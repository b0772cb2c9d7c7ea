"""Pydantic domain models for split-ledger."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Enumerations
# ============================================================================


class Category(str, Enum):
    """Fixed set of expense categories."""

    FOOD = "Food"
    TRAVEL = "Travel"
    RENT = "Rent"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    GROCERIES = "Groceries"
    OTHER = "Other"


class SplitType(str, Enum):
    """How an expense's cost is divided among its participants."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    EXACT = "exact"


# ============================================================================
# Stored Models
# ============================================================================


class Person(BaseModel):
    """A participant, identified by a unique name."""

    id: int
    name: str


class ExpenseSplit(BaseModel):
    """One person's obligation on an expense."""

    id: int | None = None
    expense_id: int
    person_id: int
    person_name: str
    split_type: SplitType
    value: Decimal = Decimal("0")  # ignored for equal splits


class Expense(BaseModel):
    """An expense paid by one person and split among several."""

    id: int
    amount: Decimal
    description: str
    category: Category
    created_at: datetime = Field(default_factory=datetime.now)
    paid_by_id: int
    paid_by: str
    splits: list[ExpenseSplit] = Field(default_factory=list)


# ============================================================================
# Write Requests
# ============================================================================


class SplitInput(BaseModel):
    """A split declaration as entered by a user."""

    name: str = Field(min_length=1)
    split_type: SplitType = SplitType.EQUAL
    value: Decimal = Field(default=Decimal("0"), ge=0)


class ExpenseInput(BaseModel):
    """A validated request to create or replace an expense."""

    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)
    paid_by: str = Field(min_length=1)
    category: Category
    split: list[SplitInput] = Field(min_length=1)


# ============================================================================
# Reports
# ============================================================================


class PersonBalance(BaseModel):
    """A person's paid/owed summary. Positive balance = is owed money."""

    name: str
    paid: Decimal
    owes: Decimal
    balance: Decimal


class Settlement(BaseModel):
    """A transfer from a debtor to a creditor.

    Serializes with ``from``/``to`` keys (use ``model_dump(by_alias=True)``).
    """

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    amount: Decimal


class SettlementReport(BaseModel):
    """Balances together with the transfers that settle them."""

    summary: list[PersonBalance]
    settlements: list[Settlement]


class CategoryTotal(BaseModel):
    """Spending in one category."""

    category: Category
    total: Decimal
    percentage: Decimal


class CategoryBreakdown(BaseModel):
    """Spending across all categories."""

    total: Decimal
    breakdown: list[CategoryTotal]


class MonthlySpending(BaseModel):
    """Expenses inside a trailing window and their per-category totals."""

    start: datetime
    end: datetime
    expenses: list[Expense]
    by_category: dict[Category, Decimal]

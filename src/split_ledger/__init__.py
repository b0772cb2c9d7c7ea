"""split-ledger - Shared expense tracking with minimal settle-up plans."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .models import (
    Expense,
    ExpenseInput,
    ExpenseSplit,
    Person,
    PersonBalance,
    Settlement,
    SettlementReport,
    SplitInput,
)
from .service import LedgerService
from .settlement import (
    check_expense_splits,
    compute_balances,
    plan_settlements,
    share_of,
)

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Expense",
    "ExpenseInput",
    "ExpenseSplit",
    "Person",
    "PersonBalance",
    "Settlement",
    "SettlementReport",
    "SplitInput",
    "LedgerService",
    "check_expense_splits",
    "compute_balances",
    "plan_settlements",
    "share_of",
]

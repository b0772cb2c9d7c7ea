"""Recurring monthly rent expense.

A scheduler runs ``add_monthly_rent`` daily; it only inserts on the 1st of
the month (in the configured timezone) and at most once per month.
"""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from .config import Settings
from .models import Category, Expense, ExpenseInput, SplitInput, SplitType
from .service import LedgerService

logger = logging.getLogger(__name__)

LAST_RENT_MONTH_KEY = "last_recurring_rent"


def to_local_time(now: datetime, settings: Settings) -> datetime:
    """Convert to the configured timezone; naive values are taken as UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(ZoneInfo(settings.recurring_timezone))


def build_monthly_rent(now: datetime, settings: Settings) -> ExpenseInput | None:
    """
    Build the rent expense for the month, if today is the 1st.

    Args:
        now: Current time
        settings: Rent amount, payer, participants and timezone

    Returns:
        The expense to insert, or None when it is not the 1st of the month
    """
    local_now = to_local_time(now, settings)
    if local_now.day != 1:
        return None

    return ExpenseInput(
        amount=settings.recurring_rent_amount,
        description=f"Room Rent - {local_now:%B %Y}",
        paid_by=settings.recurring_rent_payer,
        category=Category.RENT,
        split=[
            SplitInput(name=name, split_type=SplitType.EQUAL)
            for name in settings.recurring_rent_participants
        ],
    )


def add_monthly_rent(
    service: LedgerService, settings: Settings, now: datetime | None = None
) -> Expense | None:
    """Insert this month's rent expense if due and not already inserted."""
    now = now or datetime.now(ZoneInfo("UTC"))
    rent = build_monthly_rent(now, settings)
    if rent is None:
        logger.debug("Not the 1st of the month, skipping rent")
        return None

    month_key = f"{to_local_time(now, settings):%Y-%m}"
    expense = service.add_expense_once(rent, LAST_RENT_MONTH_KEY, month_key)
    if expense is None:
        logger.info(f"Rent for {month_key} already added")
        return None

    logger.info(f"Room rent split added for {month_key}")
    return expense

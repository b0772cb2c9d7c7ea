"""Core settlement logic: split shares, split validation, balances, transfers."""

import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from .exceptions import DegenerateExpenseError, SplitConsistencyError
from .models import (
    Expense,
    ExpenseSplit,
    Person,
    PersonBalance,
    Settlement,
    SplitType,
)

logger = logging.getLogger(__name__)

# Residues at or below one cent are rounding noise
TOLERANCE = Decimal("0.01")
PERCENT_TOTAL = Decimal("100")
CENTS = Decimal("0.01")


def round2(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def share_of(
    split: ExpenseSplit, expense_amount: Decimal, participant_count: int
) -> Decimal:
    """
    Compute the amount one split obliges its person to pay.

    Args:
        split: The split row
        expense_amount: Total amount of the owning expense
        participant_count: Number of split rows on the owning expense

    Returns:
        The unrounded share
    """
    if split.split_type == SplitType.EQUAL:
        return expense_amount / (participant_count or 1)
    if split.split_type == SplitType.PERCENTAGE:
        return split.value / PERCENT_TOTAL * expense_amount
    if split.split_type == SplitType.EXACT:
        return split.value
    raise ValueError(f"Unknown split type: {split.split_type}")


def check_expense_splits(expense: Expense) -> None:
    """
    Reject an expense whose split set is internally inconsistent.

    Exact splits may not sum above the expense amount and percentage splits
    may not sum above 100, each with a one-cent tolerance. Equal splits carry
    no aggregate constraint.

    Raises:
        DegenerateExpenseError: If the expense has no splits
        SplitConsistencyError: If a bound is exceeded
    """
    if not expense.splits:
        raise DegenerateExpenseError(expense.id)

    split_types = {split.split_type for split in expense.splits}
    total = sum((split.value for split in expense.splits), Decimal("0"))

    if SplitType.EXACT in split_types and total > expense.amount + TOLERANCE:
        raise SplitConsistencyError(
            expense_id=expense.id,
            split_type=SplitType.EXACT.value,
            total=total,
            bound=expense.amount,
            message=(
                f"Invalid 'exact' splits for expense ID {expense.id}: "
                f"sum ({total}) exceeds total amount ({expense.amount})"
            ),
        )

    if SplitType.PERCENTAGE in split_types and total > PERCENT_TOTAL + TOLERANCE:
        raise SplitConsistencyError(
            expense_id=expense.id,
            split_type=SplitType.PERCENTAGE.value,
            total=total,
            bound=PERCENT_TOTAL,
            message=(
                f"Invalid 'percentage' splits for expense ID {expense.id}: "
                f"total percentage ({total}%) exceeds 100%"
            ),
        )


def validate_expenses(expenses: Iterable[Expense]) -> None:
    """Check every distinct expense, stopping at the first violation."""
    seen: set[int] = set()
    for expense in expenses:
        if expense.id in seen:
            continue
        seen.add(expense.id)
        check_expense_splits(expense)


def compute_balances(
    people: list[Person], expenses: list[Expense]
) -> list[PersonBalance]:
    """
    Compute paid, owed and net balance for every person.

    All expenses are validated first; a single inconsistent expense aborts
    the whole computation.

    Args:
        people: Everyone in the ledger, in report order
        expenses: All expenses with their full split sets

    Returns:
        One balance per person, in the order of ``people``

    Raises:
        SplitConsistencyError: If any expense fails validation
        DegenerateExpenseError: If any expense has no splits
    """
    validate_expenses(expenses)

    paid: dict[int, Decimal] = defaultdict(Decimal)
    owes: dict[int, Decimal] = defaultdict(Decimal)

    for expense in expenses:
        paid[expense.paid_by_id] += expense.amount
        participant_count = len(expense.splits)
        for split in expense.splits:
            owes[split.person_id] += share_of(
                split, expense.amount, participant_count
            )

    balances = []
    for person in people:
        person_paid = round2(paid[person.id])
        person_owes = round2(owes[person.id])
        balances.append(
            PersonBalance(
                name=person.name,
                paid=person_paid,
                owes=person_owes,
                balance=person_paid - person_owes,
            )
        )

    return balances


def plan_settlements(balances: list[PersonBalance]) -> list[Settlement]:
    """
    Produce transfers that bring every balance to (approximately) zero.

    Greedy sweep: debtors from most negative, creditors from most positive,
    each step moving min(|debtor|, creditor). Sorts are stable, so equal
    balances keep their input order. Produces at most
    creditors + debtors - 1 transfers; not necessarily the global minimum.

    Args:
        balances: Per-person balances (not mutated)

    Returns:
        Transfers with amounts rounded to cents
    """
    # Working copies: [name, remaining balance]
    creditors = sorted(
        ([b.name, b.balance] for b in balances if b.balance > 0),
        key=lambda entry: entry[1],
        reverse=True,
    )
    debtors = sorted(
        ([b.name, b.balance] for b in balances if b.balance < 0),
        key=lambda entry: entry[1],
    )

    settlements: list[Settlement] = []
    i, j = 0, 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(-debtor[1], creditor[1])

        if amount > TOLERANCE:
            settlements.append(
                Settlement(from_=debtor[0], to=creditor[0], amount=round2(amount))
            )
            # Move the raw amount so rounding does not compound
            debtor[1] += amount
            creditor[1] -= amount

        advanced = False
        if abs(debtor[1]) < TOLERANCE:
            i += 1
            advanced = True
        if abs(creditor[1]) < TOLERANCE:
            j += 1
            advanced = True

        if not advanced:
            # Exactly one cent left on the smaller side: drop it as noise
            if -debtor[1] <= creditor[1]:
                i += 1
            else:
                j += 1

    leftover = [entry for entry in debtors[i:] + creditors[j:] if entry[1] != 0]
    if leftover:
        logger.debug(f"Dropped unmatched residue: {leftover}")

    logger.info(
        f"Planned {len(settlements)} settlements for "
        f"{len(debtors)} debtors and {len(creditors)} creditors"
    )

    return settlements

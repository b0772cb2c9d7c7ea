"""CLI for split-ledger using Typer."""

import logging
import sys
from datetime import datetime
from decimal import Decimal

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import ExpenseNotFoundError, InvalidInputError
from .models import Expense, ExpenseInput, PersonBalance, SplitInput, SplitType
from .recurring import add_monthly_rent
from .service import LedgerService
from .ui import prompt_expense_interactive

app = typer.Typer(
    name="split-ledger",
    help="Track shared expenses and settle up with the fewest transfers",
)
expenses_app = typer.Typer(name="expenses", help="Add, update and remove expenses")
app.add_typer(expenses_app, name="expenses")

console = Console()

# Exit status for rejected input (as opposed to a failure of the tool itself)
EXIT_INVALID_INPUT = 2


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def open_service() -> LedgerService:
    """Load settings and open the database behind a service."""
    settings = load_settings()
    return LedgerService(settings, Database(settings.database_path))


def handle_error(e: Exception, verbose: bool):
    """Print an error and exit with the matching status."""
    if isinstance(e, (InvalidInputError, ValidationError)):
        console.print(f"\n[bold yellow]⚠️  Invalid input:[/bold yellow] {e}\n")
        sys.exit(EXIT_INVALID_INPUT)
    if isinstance(e, ExpenseNotFoundError):
        console.print(f"\n[yellow]⚠️  {e}[/yellow]\n")
        sys.exit(1)

    console.print(f"\n[bold red]Error:[/bold red] {e}")
    if verbose:
        raise e
    sys.exit(1)


def parse_split(text: str) -> SplitInput:
    """
    Parse a split option of the form NAME[:TYPE[:VALUE]].

    Examples:
        "Om" -> equal split for Om
        "Om:exact:120.50" -> Om owes exactly 120.50
        "Om:percentage:40" -> Om owes 40% of the amount
    """
    name, _, rest = text.partition(":")
    split_type, _, value = rest.partition(":")
    return SplitInput(
        name=name.strip(),
        split_type=SplitType(split_type.strip() or SplitType.EQUAL.value),
        value=Decimal(value.strip() or "0"),
    )


def build_expense_input(
    paid_by: str | None,
    amount: str | None,
    description: str | None,
    category: str,
    splits: list[str] | None,
) -> ExpenseInput:
    """Build a validated expense request from command-line options."""
    try:
        parsed_splits = [parse_split(item) for item in splits or []]
    except (ValueError, ArithmeticError) as e:
        raise InvalidInputError(f"Invalid --split value: {e}") from e

    return ExpenseInput(
        amount=amount,
        description=description,
        paid_by=paid_by,
        category=category,
        split=parsed_splits,
    )


def format_money(amount: Decimal, use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (85.02)
    Positive amounts have spaces:      85.02
    The spaces ensure decimal points align in tables.
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            formatted = f"([red]{abs_amount:,.2f}[/red])"
        else:
            formatted = f"({abs_amount:,.2f})"
    else:
        if use_color:
            formatted = f" [green]{abs_amount:,.2f}[/green] "
        else:
            formatted = f" {abs_amount:,.2f} "
    return formatted


def display_expense(expense: Expense):
    """Display one expense and its splits."""
    console.print(
        f"\n[bold]Expense {expense.id}:[/bold] {expense.description} "
        f"[dim]({expense.category.value})[/dim]"
    )
    console.print(f"  Paid by: {expense.paid_by}")
    console.print(f"  Amount: {format_money(expense.amount)}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Person", style="cyan")
    table.add_column("Type")
    table.add_column("Value", justify="right")
    for split in expense.splits:
        value = "—" if split.split_type == SplitType.EQUAL else f"{split.value}"
        table.add_row(split.person_name, split.split_type.value, value)
    console.print(table)


def display_balances(balances: list[PersonBalance]):
    """Display balances in a table."""
    table = Table(title="Balances", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Paid", justify="right", width=14)
    table.add_column("Owes", justify="right", width=14)
    table.add_column("Balance", justify="right", width=14)

    for balance in balances:
        table.add_row(
            balance.name,
            format_money(balance.paid, use_color=False),
            format_money(balance.owes, use_color=False),
            format_money(balance.balance),
        )

    console.print(table)


# ============================================================================
# Expense commands
# ============================================================================


@expenses_app.command("add")
def add_expense(
    paid_by: str = typer.Option(None, "--paid-by", "-p", help="Who paid"),
    amount: str = typer.Option(None, "--amount", "-a", help="Total amount"),
    description: str = typer.Option(None, "--description", "-d", help="What for"),
    category: str = typer.Option("Other", "--category", "-c", help="Category"),
    split: list[str] = typer.Option(
        None, "--split", "-s", help="NAME[:TYPE[:VALUE]], repeat per person"
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i", help="Enter the expense interactively"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record a new expense.

    People are created automatically the first time their name is used.
    """
    setup_logging(verbose)

    try:
        service = open_service()

        if interactive:
            known = [person.name for person in service.list_people()]
            data = prompt_expense_interactive(known)
            if data is None:
                console.print("[yellow]No expense added.[/yellow]")
                return
        else:
            data = build_expense_input(paid_by, amount, description, category, split)

        expense = service.add_expense(data)
        display_expense(expense)
        console.print("\n[bold green]✓ Expense added successfully![/bold green]\n")

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@expenses_app.command("update")
def update_expense(
    expense_id: int = typer.Argument(..., help="Expense ID"),
    paid_by: str = typer.Option(..., "--paid-by", "-p", help="Who paid"),
    amount: str = typer.Option(..., "--amount", "-a", help="Total amount"),
    description: str = typer.Option(..., "--description", "-d", help="What for"),
    category: str = typer.Option("Other", "--category", "-c", help="Category"),
    split: list[str] = typer.Option(
        ..., "--split", "-s", help="NAME[:TYPE[:VALUE]], repeat per person"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Replace an expense, including its whole split set."""
    setup_logging(verbose)

    try:
        service = open_service()
        data = build_expense_input(paid_by, amount, description, category, split)
        expense = service.update_expense(expense_id, data)
        display_expense(expense)
        console.print("\n[bold green]✓ Expense updated successfully![/bold green]\n")

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@expenses_app.command("delete")
def delete_expense(
    expense_id: int = typer.Argument(..., help="Expense ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense and its splits."""
    setup_logging(verbose)

    try:
        service = open_service()

        if not yes:
            confirm = input(f"Delete expense {expense_id}? [y/N] ").strip().lower()
            if confirm not in ("y", "yes"):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        service.delete_expense(expense_id)
        console.print(f"[bold green]✓ Expense {expense_id} deleted.[/bold green]")

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@expenses_app.command("list")
def list_expenses(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List all expenses."""
    setup_logging(verbose)

    try:
        service = open_service()
        expenses = service.list_expenses()

        if not expenses:
            console.print("[yellow]No expenses found.[/yellow]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", width=6)
        table.add_column("Date", width=10)
        table.add_column("Description", style="cyan", width=32)
        table.add_column("Category", style="yellow")
        table.add_column("Paid by")
        table.add_column("Amount", justify="right", width=14)
        table.add_column("Splits", justify="right")

        for expense in expenses:
            desc = expense.description
            table.add_row(
                str(expense.id),
                expense.created_at.strftime("%Y-%m-%d"),
                desc[:32] + "..." if len(desc) > 32 else desc,
                expense.category.value,
                expense.paid_by,
                format_money(expense.amount, use_color=False),
                str(len(expense.splits)),
            )

        console.print(table)

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


# ============================================================================
# Report commands
# ============================================================================


@app.command()
def people(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List everyone who has paid or been split on."""
    setup_logging(verbose)

    try:
        service = open_service()
        everyone = service.list_people()

        if not everyone:
            console.print("[yellow]No people found.[/yellow]")
            return

        for person in everyone:
            console.print(f"  [dim]{person.id:>4}[/dim]  {person.name}")

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@app.command()
def balances(
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show what each person paid, owes, and their net balance."""
    setup_logging(verbose)

    try:
        service = open_service()
        result = service.get_balances()

        if as_json:
            console.print_json(
                data=[balance.model_dump() for balance in result], default=float
            )
            return

        display_balances(result)

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@app.command()
def settle(
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show who should pay whom to settle all balances."""
    setup_logging(verbose)

    try:
        service = open_service()
        report = service.get_settlement_report()

        if as_json:
            console.print_json(data=report.model_dump(by_alias=True), default=float)
            return

        display_balances(report.summary)

        if not report.settlements:
            console.print("\n[bold green]✓ Everyone is settled up.[/bold green]\n")
            return

        table = Table(
            title="Settlements", show_header=True, header_style="bold magenta"
        )
        table.add_column("From", style="red")
        table.add_column("To", style="green")
        table.add_column("Amount", justify="right", width=14)
        for settlement in report.settlements:
            table.add_row(
                settlement.from_,
                settlement.to,
                format_money(settlement.amount, use_color=False),
            )
        console.print(table)

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@app.command()
def categories(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show total spending per category."""
    setup_logging(verbose)

    try:
        service = open_service()
        report = service.get_category_breakdown()

        if not report.breakdown:
            console.print("[yellow]No expenses found.[/yellow]")
            return

        table = Table(
            title="Spending by Category", show_header=True, header_style="bold magenta"
        )
        table.add_column("Category", style="yellow")
        table.add_column("Total", justify="right", width=14)
        table.add_column("Share", justify="right")
        for item in report.breakdown:
            table.add_row(
                item.category.value,
                format_money(item.total, use_color=False),
                f"{item.percentage}%",
            )
        console.print(table)
        console.print(f"  Total: {format_money(report.total, use_color=False)}")

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


@app.command()
def monthly(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show spending over the last month."""
    setup_logging(verbose)

    try:
        service = open_service()
        report = service.get_monthly_spending()

        console.print(
            f"\n[bold]Spending {report.start.date()} → {report.end.date()}[/bold]"
        )
        console.print(f"  Expenses: {len(report.expenses)}")
        for category, total in report.by_category.items():
            console.print(
                f"  {category.value:<14}{format_money(total, use_color=False)}"
            )

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


def parse_run_date(text: str) -> datetime:
    """Parse the --date option of the rent command."""
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidInputError(f"Invalid --date value: {text!r}") from e


@app.command()
def rent(
    date: str = typer.Option(
        None, "--date", help="Run as of this ISO date/time instead of now"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Add the monthly rent expense if it is due.

    Meant to be run daily by a scheduler; only the 1st of the month (in the
    configured timezone) inserts anything, and only once per month.
    """
    setup_logging(verbose)

    try:
        now = parse_run_date(date) if date else None
        service = open_service()

        expense = add_monthly_rent(service, service.settings, now)
        if expense is None:
            console.print("[dim]No rent due.[/dim]")
            return

        display_expense(expense)
        console.print("\n[bold green]✓ Monthly rent added.[/bold green]\n")

    except Exception as e:
        handle_error(e, verbose)
    finally:
        if "service" in locals():
            service.db.close()


if __name__ == "__main__":
    app()

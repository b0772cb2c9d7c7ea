"""SQLite database operations for split-ledger."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .exceptions import ExpenseNotFoundError
from .models import (
    Category,
    Expense,
    ExpenseInput,
    ExpenseSplit,
    Person,
    SplitType,
)


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS people (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE
            )
        """
        )

        # Amounts are stored as TEXT to keep exact decimal values
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                amount TEXT NOT NULL,
                description TEXT NOT NULL,
                category TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                paid_by_id INTEGER NOT NULL REFERENCES people(id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_splits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                expense_id INTEGER NOT NULL
                    REFERENCES expenses(id) ON DELETE CASCADE,
                person_id INTEGER NOT NULL REFERENCES people(id),
                split_type TEXT NOT NULL,
                value TEXT NOT NULL
            )
        """
        )

        # Config table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Config operations
    # ========================================================================

    def get_config(self, key: str) -> str | None:
        """Get a config value by key."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return str(row["value"]) if row else None

    def set_config(self, key: str, value: str):
        """Set a config value."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO config (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now().isoformat()),
        )
        self.conn.commit()

    # ========================================================================
    # People operations
    # ========================================================================

    def _upsert_person(self, cursor: sqlite3.Cursor, name: str) -> Person:
        cursor.execute(
            "INSERT INTO people (name) VALUES (?) ON CONFLICT(name) DO NOTHING",
            (name,),
        )
        cursor.execute("SELECT id, name FROM people WHERE name = ?", (name,))
        row = cursor.fetchone()
        return Person(id=row["id"], name=row["name"])

    def upsert_person(self, name: str) -> Person:
        """Find a person by name, creating them if they don't exist yet."""
        with self.conn:
            return self._upsert_person(self.conn.cursor(), name)

    def list_people(self) -> list[Person]:
        """Get all people, in creation order."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, name FROM people ORDER BY id")
        return [Person(id=row["id"], name=row["name"]) for row in cursor.fetchall()]

    # ========================================================================
    # Expense operations
    # ========================================================================

    def _insert_splits(
        self, cursor: sqlite3.Cursor, expense_id: int, data: ExpenseInput
    ):
        for item in data.split:
            person = self._upsert_person(cursor, item.name)
            cursor.execute(
                """
                INSERT INTO expense_splits (
                    expense_id, person_id, split_type, value
                ) VALUES (?, ?, ?, ?)
                """,
                (expense_id, person.id, item.split_type.value, str(item.value)),
            )

    def create_expense(
        self, data: ExpenseInput, created_at: datetime | None = None
    ) -> Expense:
        """
        Create an expense together with its splits in one transaction.

        The payer and every splitter are created on first reference.
        """
        with self.conn:
            expense_id = self._insert_expense(self.conn.cursor(), data, created_at)

        return self._require_expense(expense_id)

    def create_expense_once(
        self,
        data: ExpenseInput,
        key: str,
        value: str,
        created_at: datetime | None = None,
    ) -> Expense | None:
        """
        Create an expense unless config ``key`` already holds ``value``.

        Recording the key and inserting the expense share one transaction, so
        either both land or neither does.

        Returns:
            The new expense, or None if ``key`` was already set to ``value``
        """
        with self.conn:
            cursor = self.conn.cursor()
            # Takes the write lock before the check; concurrent runs serialize
            cursor.execute(
                """
                INSERT INTO config (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                WHERE config.value != excluded.value
                """,
                (key, value, datetime.now().isoformat()),
            )
            if cursor.rowcount == 0:
                return None
            expense_id = self._insert_expense(cursor, data, created_at)

        return self._require_expense(expense_id)

    def _insert_expense(
        self,
        cursor: sqlite3.Cursor,
        data: ExpenseInput,
        created_at: datetime | None,
    ) -> int:
        payer = self._upsert_person(cursor, data.paid_by)
        cursor.execute(
            """
            INSERT INTO expenses (
                amount, description, category, created_at, paid_by_id
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (
                str(data.amount),
                data.description,
                data.category.value,
                (created_at or datetime.now()).isoformat(),
                payer.id,
            ),
        )
        expense_id = cursor.lastrowid
        if expense_id is None:
            raise RuntimeError("Failed to insert expense record")
        self._insert_splits(cursor, expense_id, data)
        return expense_id

    def update_expense(self, expense_id: int, data: ExpenseInput) -> Expense:
        """
        Replace an expense's fields and its whole split set atomically.

        Raises:
            ExpenseNotFoundError: If the expense does not exist
        """
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute("SELECT id FROM expenses WHERE id = ?", (expense_id,))
            if cursor.fetchone() is None:
                raise ExpenseNotFoundError(expense_id)

            payer = self._upsert_person(cursor, data.paid_by)
            cursor.execute(
                """
                UPDATE expenses
                SET amount = ?, description = ?, category = ?, paid_by_id = ?
                WHERE id = ?
                """,
                (
                    str(data.amount),
                    data.description,
                    data.category.value,
                    payer.id,
                    expense_id,
                ),
            )
            cursor.execute(
                "DELETE FROM expense_splits WHERE expense_id = ?", (expense_id,)
            )
            self._insert_splits(cursor, expense_id, data)

        return self._require_expense(expense_id)

    def delete_expense(self, expense_id: int):
        """
        Delete an expense; its splits go with it.

        Raises:
            ExpenseNotFoundError: If the expense does not exist
        """
        with self.conn:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            if cursor.rowcount == 0:
                raise ExpenseNotFoundError(expense_id)

    def get_expense(self, expense_id: int) -> Expense | None:
        """Get an expense with its splits, or None."""
        expenses = self._load_expenses("WHERE e.id = ?", (expense_id,))
        return expenses[0] if expenses else None

    def _require_expense(self, expense_id: int) -> Expense:
        expense = self.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    def list_expenses(self) -> list[Expense]:
        """Get all expenses with their splits, oldest first."""
        return self._load_expenses()

    def list_expenses_between(self, start: datetime, end: datetime) -> list[Expense]:
        """Get expenses created within [start, end]."""
        return self._load_expenses(
            "WHERE e.created_at >= ? AND e.created_at <= ?",
            (start.isoformat(), end.isoformat()),
        )

    def category_totals(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> dict[Category, Decimal]:
        """Sum expense amounts per category, optionally within a time window."""
        query = "SELECT category, amount FROM expenses"
        params: tuple = ()
        if start is not None and end is not None:
            query += " WHERE created_at >= ? AND created_at <= ?"
            params = (start.isoformat(), end.isoformat())

        cursor = self.conn.cursor()
        cursor.execute(query, params)

        totals: dict[Category, Decimal] = {}
        for row in cursor.fetchall():
            category = Category(row["category"])
            totals[category] = totals.get(category, Decimal("0")) + Decimal(
                row["amount"]
            )

        # Enum-defined order
        return {
            category: totals[category] for category in Category if category in totals
        }

    def _load_expenses(self, where: str = "", params: tuple = ()) -> list[Expense]:
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            SELECT e.id, e.amount, e.description, e.category, e.created_at,
                   e.paid_by_id, p.name AS paid_by
            FROM expenses e
            JOIN people p ON p.id = e.paid_by_id
            {where}
            ORDER BY e.id
            """,
            params,
        )
        expenses = [
            Expense(
                id=row["id"],
                amount=Decimal(row["amount"]),
                description=row["description"],
                category=Category(row["category"]),
                created_at=datetime.fromisoformat(row["created_at"]),
                paid_by_id=row["paid_by_id"],
                paid_by=row["paid_by"],
            )
            for row in cursor.fetchall()
        ]
        if not expenses:
            return expenses

        by_id = {expense.id: expense for expense in expenses}
        cursor.execute(
            f"""
            SELECT s.id, s.expense_id, s.person_id, p.name AS person_name,
                   s.split_type, s.value
            FROM expense_splits s
            JOIN people p ON p.id = s.person_id
            WHERE s.expense_id IN (SELECT e.id FROM expenses e {where})
            ORDER BY s.id
            """,
            params,
        )
        for row in cursor.fetchall():
            by_id[row["expense_id"]].splits.append(
                ExpenseSplit(
                    id=row["id"],
                    expense_id=row["expense_id"],
                    person_id=row["person_id"],
                    person_name=row["person_name"],
                    split_type=SplitType(row["split_type"]),
                    value=Decimal(row["value"]),
                )
            )

        return expenses

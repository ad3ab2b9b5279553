"""SQLite database operations for ledger-split."""

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from .models import Ledger, Member, Transaction, TransactionFilters, TransactionRow

logger = logging.getLogger(__name__)

# (member, amount in cents, weight)
ContributionInput = tuple[str, int, float]


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
            CREATE TABLE IF NOT EXISTS ledgers (
                name TEXT PRIMARY KEY,
                currency TEXT NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS members (
                name TEXT NOT NULL,
                ledger TEXT NOT NULL REFERENCES ledgers(name),
                active INTEGER NOT NULL DEFAULT 1,
                PRIMARY KEY (name, ledger)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS transactions (
                id TEXT PRIMARY KEY,
                name TEXT,
                category TEXT,
                currency TEXT NOT NULL,
                date DATE NOT NULL,
                exchange_rate REAL NOT NULL DEFAULT 1,
                expense_type TEXT NOT NULL,
                ledger TEXT NOT NULL REFERENCES ledgers(name),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                is_deleted INTEGER NOT NULL DEFAULT 0,
                is_template INTEGER NOT NULL DEFAULT 0
            )
        """
        )

        # One row per member taking part in a transaction
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS contributions (
                transaction_id TEXT NOT NULL REFERENCES transactions(id),
                member TEXT NOT NULL,
                ledger TEXT NOT NULL,
                amount INTEGER NOT NULL,
                weight REAL NOT NULL,
                PRIMARY KEY (transaction_id, member, ledger),
                FOREIGN KEY (member, ledger) REFERENCES members(name, ledger)
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Ledger operations
    # ========================================================================

    def get_ledger(self, name: str) -> Ledger | None:
        """Get a ledger by name."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT name, currency FROM ledgers WHERE name = ?", (name,))
        row = cursor.fetchone()
        return Ledger(name=row["name"], currency=row["currency"]) if row else None

    def list_ledgers(self) -> list[Ledger]:
        """Get all ledgers."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT name, currency FROM ledgers ORDER BY name")
        return [
            Ledger(name=row["name"], currency=row["currency"])
            for row in cursor.fetchall()
        ]

    def save_ledger(self, ledger: Ledger) -> bool:
        """Insert or update a ledger. Returns True if it was created."""
        created = self.get_ledger(ledger.name) is None
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO ledgers (name, currency) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET currency = excluded.currency
                """,
                (ledger.name, ledger.currency),
            )
        return created

    def delete_ledger(self, name: str) -> bool:
        """Delete a ledger and everything in it. Returns False if missing."""
        with self.conn:
            cursor = self.conn.execute(
                "SELECT name FROM ledgers WHERE name = ?", (name,)
            )
            if cursor.fetchone() is None:
                return False

            self.conn.execute("DELETE FROM contributions WHERE ledger = ?", (name,))
            self.conn.execute("DELETE FROM transactions WHERE ledger = ?", (name,))
            self.conn.execute("DELETE FROM members WHERE ledger = ?", (name,))
            self.conn.execute("DELETE FROM ledgers WHERE name = ?", (name,))

        logger.info(f"Deleted ledger '{name}'")
        return True

    # ========================================================================
    # Member operations
    # ========================================================================

    def list_members(
        self, ledger: str | None = None, active: bool | None = None
    ) -> list[Member]:
        """Get members, optionally filtered by ledger and activity."""
        clauses = []
        params: list[str | int] = []
        if ledger is not None:
            clauses.append("ledger = ?")
            params.append(ledger)
        if active is not None:
            clauses.append("active = ?")
            params.append(int(active))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT name, ledger, active FROM members {where} ORDER BY ledger, name",
            params,
        )
        return [
            Member(name=row["name"], ledger=row["ledger"], active=bool(row["active"]))
            for row in cursor.fetchall()
        ]

    def get_member(self, ledger: str, name: str) -> Member | None:
        """Get a single member."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT name, ledger, active FROM members WHERE ledger = ? AND name = ?",
            (ledger, name),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return Member(
            name=row["name"], ledger=row["ledger"], active=bool(row["active"])
        )

    def save_member(self, member: Member) -> bool:
        """Insert or update a member. Returns True if it was created."""
        created = self.get_member(member.ledger, member.name) is None
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO members (name, ledger, active) VALUES (?, ?, ?)
                ON CONFLICT(name, ledger) DO UPDATE SET active = excluded.active
                """,
                (member.name, member.ledger, int(member.active)),
            )
        return created

    # ========================================================================
    # Transaction operations
    # ========================================================================

    def fetch_transaction_rows(
        self, filters: TransactionFilters
    ) -> list[TransactionRow]:
        """
        Get joined transaction/contribution rows.

        Deleted transactions and templates are never returned. Rows are
        ordered newest first, contributions in insertion order.
        """
        clauses = ["t.is_deleted = 0", "t.is_template = 0"]
        params: list[str] = []

        column_filters = {
            "t.id": filters.id,
            "c.ledger": filters.ledger,
            "t.name": filters.name,
            "t.category": filters.category,
            "t.currency": filters.currency,
            "t.expense_type": filters.expense_type,
        }
        for column, value in column_filters.items():
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)

        if filters.date_after is not None:
            clauses.append("t.date >= ?")
            params.append(filters.date_after.isoformat())
        if filters.date_before is not None:
            clauses.append("t.date <= ?")
            params.append(filters.date_before.isoformat())

        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            SELECT t.id, t.name, t.category, t.currency, t.date, t.created_at,
                   t.exchange_rate, t.expense_type, c.ledger, c.member,
                   c.amount, c.weight
            FROM transactions AS t
            JOIN contributions AS c ON c.transaction_id = t.id
            WHERE {' AND '.join(clauses)}
            ORDER BY t.date DESC, t.created_at DESC, t.id, c.rowid
            """,
            params,
        )
        return [
            TransactionRow(
                id=row["id"],
                name=row["name"],
                category=row["category"],
                currency=row["currency"],
                date=date.fromisoformat(row["date"]),
                created_at=(
                    datetime.fromisoformat(row["created_at"])
                    if row["created_at"]
                    else None
                ),
                exchange_rate=row["exchange_rate"],
                expense_type=row["expense_type"],
                ledger=row["ledger"],
                member=row["member"],
                amount=row["amount"],
                weight=row["weight"],
            )
            for row in cursor.fetchall()
        ]

    def fetch_ledger_snapshot(
        self, ledger: str
    ) -> tuple[list[TransactionRow], list[Member]]:
        """Read a ledger's rows and members inside one read transaction."""
        self.conn.execute("BEGIN")
        try:
            rows = self.fetch_transaction_rows(TransactionFilters(ledger=ledger))
            members = self.list_members(ledger=ledger)
        finally:
            self.conn.commit()
        return rows, members

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        """Get a transaction header by id, including deleted ones."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, name, category, currency, date, exchange_rate,
                   expense_type, ledger, created_at, is_deleted, is_template
            FROM transactions
            WHERE id = ?
            """,
            (transaction_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None

        return Transaction(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            currency=row["currency"],
            date=date.fromisoformat(row["date"]),
            exchange_rate=row["exchange_rate"],
            expense_type=row["expense_type"],
            ledger=row["ledger"],
            created_at=(
                datetime.fromisoformat(row["created_at"]) if row["created_at"] else None
            ),
            is_deleted=bool(row["is_deleted"]),
            is_template=bool(row["is_template"]),
        )

    def insert_transaction(
        self, transaction: Transaction, contributions: list[ContributionInput]
    ) -> None:
        """Insert a transaction and its contributions in one write."""
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO transactions (
                    id, name, category, currency, date, exchange_rate,
                    expense_type, ledger, created_at, is_deleted, is_template
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    transaction.id,
                    transaction.name,
                    transaction.category,
                    transaction.currency,
                    transaction.date.isoformat(),
                    transaction.exchange_rate,
                    transaction.expense_type,
                    transaction.ledger,
                    (transaction.created_at or datetime.now()).isoformat(
                        sep=" ", timespec="seconds"
                    ),
                    int(transaction.is_deleted),
                    int(transaction.is_template),
                ),
            )
            self._insert_contributions(transaction, contributions)

    def update_transaction(
        self, transaction: Transaction, contributions: list[ContributionInput]
    ) -> None:
        """Update a transaction header and replace its contributions."""
        with self.conn:
            self.conn.execute(
                """
                UPDATE transactions SET
                    name = ?, category = ?, currency = ?, date = ?,
                    exchange_rate = ?, expense_type = ?, ledger = ?,
                    is_deleted = ?, is_template = ?
                WHERE id = ?
                """,
                (
                    transaction.name,
                    transaction.category,
                    transaction.currency,
                    transaction.date.isoformat(),
                    transaction.exchange_rate,
                    transaction.expense_type,
                    transaction.ledger,
                    int(transaction.is_deleted),
                    int(transaction.is_template),
                    transaction.id,
                ),
            )
            self.conn.execute(
                "DELETE FROM contributions WHERE transaction_id = ?", (transaction.id,)
            )
            self._insert_contributions(transaction, contributions)

    def _insert_contributions(
        self, transaction: Transaction, contributions: list[ContributionInput]
    ):
        """Insert contribution rows, dropping ones with no amount and no weight."""
        self.conn.executemany(
            """
            INSERT INTO contributions (transaction_id, member, ledger, amount, weight)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (transaction.id, member, transaction.ledger, amount, weight)
                for member, amount, weight in contributions
                if amount != 0 or weight != 0
            ],
        )

    def soft_delete_transaction(self, transaction_id: str) -> None:
        """Mark a transaction as deleted."""
        with self.conn:
            self.conn.execute(
                "UPDATE transactions SET is_deleted = 1 WHERE id = ?",
                (transaction_id,),
            )

    def list_categories(self, ledger: str) -> list[str]:
        """Get distinct non-empty categories used by a ledger's live transactions."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT DISTINCT category FROM transactions
            WHERE ledger = ? AND is_deleted = 0 AND is_template = 0
              AND category IS NOT NULL AND category != ''
            ORDER BY category
            """,
            (ledger,),
        )
        return [row["category"] for row in cursor.fetchall()]

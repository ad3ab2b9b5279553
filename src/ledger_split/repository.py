"""Data-access port consumed by the ledger service."""

from typing import Protocol

from .models import Ledger, Member, Transaction, TransactionFilters, TransactionRow


class LedgerRepository(Protocol):
    """Port exposing the reads and writes the ledger service needs."""

    def get_ledger(self, name: str) -> Ledger | None:
        """Return a ledger by name."""

    def list_ledgers(self) -> list[Ledger]:
        """Return every ledger."""

    def save_ledger(self, ledger: Ledger) -> bool:
        """Insert or update a ledger. Return True if it was created."""

    def delete_ledger(self, name: str) -> bool:
        """Delete a ledger with its members and transactions."""

    def list_members(
        self, ledger: str | None = None, active: bool | None = None
    ) -> list[Member]:
        """Return members, optionally filtered by ledger and activity."""

    def get_member(self, ledger: str, name: str) -> Member | None:
        """Return a single member."""

    def save_member(self, member: Member) -> bool:
        """Insert or update a member. Return True if it was created."""

    def fetch_transaction_rows(
        self, filters: TransactionFilters
    ) -> list[TransactionRow]:
        """Return joined rows of live transactions, newest first."""

    def fetch_ledger_snapshot(
        self, ledger: str
    ) -> tuple[list[TransactionRow], list[Member]]:
        """Return a ledger's rows and members read consistently together."""

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        """Return a stored transaction header, deleted or not."""

    def insert_transaction(
        self, transaction: Transaction, contributions: list[tuple[str, int, float]]
    ) -> None:
        """Insert a header and its (member, amount, weight) rows atomically."""

    def update_transaction(
        self, transaction: Transaction, contributions: list[tuple[str, int, float]]
    ) -> None:
        """Update a header and replace its contribution rows atomically."""

    def soft_delete_transaction(self, transaction_id: str) -> None:
        """Flag a transaction as deleted."""

    def list_categories(self, ledger: str) -> list[str]:
        """Return distinct non-empty categories of a ledger's live transactions."""


__all__ = ["LedgerRepository"]

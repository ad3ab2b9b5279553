"""Service layer that composes storage, validation and the settlement core.

Every operation a front end needs goes through LedgerService. The arithmetic
itself lives in pure modules (apportion, assembler, balances, settlement);
this layer only reads rows through the repository port, hands them to those
functions, and writes validated transactions back.
"""

import logging
import secrets
from datetime import date, datetime
from typing import cast

from .assembler import assemble_transactions, cents_to_dollars, dollars_to_cents
from .balances import compute_balances
from .clients.exchange_rates import ExchangeRateClient
from .config import Settings
from .exceptions import NotFoundError, ValidationError
from .models import (
    AssembleOptions,
    ExpenseType,
    Ledger,
    MapTransactionView,
    Member,
    MemberBalance,
    MoneyFormat,
    ObjectTransactionView,
    SettlementTransfer,
    Transaction,
    TransactionDraft,
    TransactionFilters,
    TransactionView,
)
from .repository import LedgerRepository
from .settlement import settle
from .validation import normalize_draft, validate_draft

logger = logging.getLogger(__name__)

ID_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
ID_LENGTH = 10

DEFAULT_CATEGORIES = [
    "🛒 Groceries",
    "🍽️ Food",
    "💡 Utilities",
    "🏡 Household",
    "🏠 Rent",
    "🛠️ Maintenance",
    "🛡️ Insurance",
    "🏥 Health",
    "🎬 Entertainment",
    "👗 Clothing",
    "📚 Subscriptions",
    "💸 Transfer",
    "📶 Internet",
    "🚿 Water",
    "🔥 Gas",
    "🚡 Transportation",
    "⚡ Hydro",
    "❓ Miscellaneous",
]


def generate_transaction_id() -> str:
    """Generate a random 10 character alphanumeric transaction id."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


class LedgerService:
    """Service for recording shared transactions and settling ledgers."""

    def __init__(self, settings: Settings, repository: LedgerRepository):
        """Initialize the ledger service."""
        self.settings = settings
        self.repository = repository

    # ========================================================================
    # Ledgers and members
    # ========================================================================

    def list_ledgers(self) -> list[Ledger]:
        """Return every ledger."""
        return self.repository.list_ledgers()

    def get_ledger(self, name: str) -> Ledger:
        """Return a ledger, raising NotFoundError if it does not exist."""
        ledger = self.repository.get_ledger(name)
        if ledger is None:
            raise NotFoundError("ledger", f"Ledger '{name}' does not exist")
        return ledger

    def save_ledger(self, name: str, currency: str | None = None) -> bool:
        """Create or update a ledger. Returns True if it was created."""
        currency = currency or self.settings.base_currency
        if currency not in self.settings.supported_currencies:
            raise ValidationError(
                f"Currency is not supported, we support the following currencies: "
                f"{', '.join(self.settings.supported_currencies)}"
            )

        created = self.repository.save_ledger(Ledger(name=name, currency=currency))
        logger.info(f"{'Created' if created else 'Updated'} ledger '{name}'")
        return created

    def delete_ledger(self, name: str) -> None:
        """Delete a ledger with all of its members and transactions."""
        if not self.repository.delete_ledger(name):
            raise NotFoundError("ledger", f"Ledger '{name}' does not exist")

    def list_members(
        self, ledger: str | None = None, active: bool | None = None
    ) -> list[Member]:
        """Return members, optionally restricted to one ledger."""
        if ledger is not None:
            self.get_ledger(ledger)
        return self.repository.list_members(ledger=ledger, active=active)

    def get_member(self, ledger: str, name: str) -> Member:
        """Return a member, raising NotFoundError if it does not exist."""
        member = self.repository.get_member(ledger, name)
        if member is None:
            raise NotFoundError(
                "member", f"Member '{name}' does not exist in ledger '{ledger}'"
            )
        return member

    def save_member(self, ledger: str, name: str, active: bool = True) -> bool:
        """Create or update a member. Returns True if it was created."""
        self.get_ledger(ledger)

        name = name.strip()
        if not name:
            raise ValidationError("Member name cannot be empty.")

        if not active:
            # Deactivating is only allowed once the member is settled up
            balances = {b.name: b for b in self.compute_balances(ledger, "cents")}
            current = balances.get(name)
            if current is not None and current.balance != 0:
                raise ValidationError(
                    f"Member '{name}' still has a balance of "
                    f"{cents_to_dollars(int(current.balance))} and cannot be "
                    f"deactivated."
                )

        created = self.repository.save_member(
            Member(name=name, ledger=ledger, active=active)
        )
        logger.info(
            f"{'Added' if created else 'Updated'} member '{name}' in '{ledger}' "
            f"(active: {active})"
        )
        return created

    def list_categories(self, ledger: str) -> list[str]:
        """Return default categories followed by the ledger's own, deduplicated."""
        self.get_ledger(ledger)
        used = self.repository.list_categories(ledger)
        return list(dict.fromkeys([*DEFAULT_CATEGORIES, *used]))

    # ========================================================================
    # Reading transactions
    # ========================================================================

    def assemble_transactions(
        self,
        filters: TransactionFilters | None = None,
        options: AssembleOptions | None = None,
    ) -> list[TransactionView]:
        """
        Fetch and assemble transactions matching the filters.

        Args:
            filters: Row filters (ledger, name, category, dates, ...)
            options: Exchange rate, money format and shape

        Returns:
            Assembled transactions, newest first
        """
        rows = self.repository.fetch_transaction_rows(filters or TransactionFilters())
        return assemble_transactions(rows, options or AssembleOptions())

    def get_transaction(self, transaction_id: str) -> ObjectTransactionView:
        """Return one live transaction in object shape, in dollars."""
        views = self.assemble_transactions(
            TransactionFilters(id=transaction_id), AssembleOptions(shape="object")
        )
        if not views:
            raise NotFoundError(
                "transaction", f"Transaction '{transaction_id}' not found"
            )
        return cast(ObjectTransactionView, views[0])

    # ========================================================================
    # Balances and settlement
    # ========================================================================

    def compute_balances(
        self, ledger: str, money_format: MoneyFormat = "dollars"
    ) -> list[MemberBalance]:
        """
        Compute each active member's paid, owed and balance in a ledger.

        Amounts are converted with each transaction's stored exchange rate.

        Raises:
            NotFoundError: If the ledger does not exist
            InternalInvariantViolation: If an inactive member is not settled
        """
        self.get_ledger(ledger)

        rows, members = self.repository.fetch_ledger_snapshot(ledger)
        views = assemble_transactions(
            rows,
            AssembleOptions(use_exchange_rate=True, money_format="cents", shape="map"),
        )
        balances = compute_balances(
            cast(list[MapTransactionView], views), members, money_format
        )

        logger.info(
            f"Computed {len(balances)} balances for '{ledger}' "
            f"from {len(views)} transactions"
        )
        return balances

    def compute_settlement(
        self, ledger: str, money_format: MoneyFormat = "dollars"
    ) -> list[SettlementTransfer]:
        """Compute the transfers that settle every balance in a ledger."""
        balances = self.compute_balances(ledger, "cents")
        transfers = settle(balances)

        if money_format == "dollars":
            transfers = [
                transfer.model_copy(
                    update={"amount": cents_to_dollars(int(transfer.amount))}
                )
                for transfer in transfers
            ]

        return transfers

    # ========================================================================
    # Writing transactions
    # ========================================================================

    def create_transaction(self, draft: TransactionDraft) -> str:
        """
        Validate and store a new transaction.

        The exchange rate is fetched before anything is written, so a failed
        lookup leaves the database untouched.

        Returns:
            The new transaction id
        """
        draft = self._prepare_draft(draft)
        exchange_rate = self._fetch_exchange_rate(draft.currency)

        transaction = Transaction(
            id=generate_transaction_id(),
            name=draft.name,
            category=draft.category,
            currency=draft.currency,
            date=draft.date or date.today(),
            exchange_rate=exchange_rate,
            expense_type=cast(ExpenseType, draft.expense_type),
            ledger=draft.ledger,
            created_at=datetime.now().replace(microsecond=0),
            is_template=draft.is_template,
        )
        self.repository.insert_transaction(transaction, self._contributions(draft))

        logger.info(f"Created transaction {transaction.id} in '{draft.ledger}'")
        return transaction.id

    def update_transaction(self, transaction_id: str, draft: TransactionDraft) -> str:
        """
        Validate and replace an existing transaction and its contributions.

        The stored exchange rate is kept unless the currency changes.
        """
        existing = self.repository.get_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(
                "transaction",
                f"Transaction '{transaction_id}' not found. Use create to add "
                f"new transactions.",
            )
        if existing.is_deleted:
            raise ValidationError("The specified transaction has been deleted.")
        self._ensure_no_inactive_members(existing)

        draft = self._prepare_draft(draft)
        exchange_rate = existing.exchange_rate
        if draft.currency != existing.currency:
            exchange_rate = self._fetch_exchange_rate(draft.currency)

        transaction = existing.model_copy(
            update={
                "name": draft.name,
                "category": draft.category,
                "currency": draft.currency,
                "date": draft.date or existing.date,
                "exchange_rate": exchange_rate,
                "expense_type": draft.expense_type,
                "ledger": draft.ledger,
                "is_template": draft.is_template,
            }
        )
        self.repository.update_transaction(transaction, self._contributions(draft))

        logger.info(f"Updated transaction {transaction_id}")
        return transaction_id

    def delete_transaction(self, transaction_id: str) -> None:
        """Soft-delete a transaction. Templates cannot be deleted."""
        existing = self.repository.get_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(
                "transaction", f"Transaction '{transaction_id}' not found"
            )
        if existing.is_template:
            raise ValidationError("Templates cannot be deleted.")
        self._ensure_no_inactive_members(existing)

        self.repository.soft_delete_transaction(transaction_id)
        logger.info(f"Deleted transaction {transaction_id}")

    def _prepare_draft(self, draft: TransactionDraft) -> TransactionDraft:
        """Normalize and validate a draft against its ledger."""
        draft = normalize_draft(draft)
        ledger = self.repository.get_ledger(draft.ledger)
        members = self.repository.list_members(ledger=draft.ledger) if ledger else []
        validate_draft(draft, ledger, members, self.settings.supported_currencies)
        return draft

    def _ensure_no_inactive_members(self, existing: Transaction) -> None:
        """
        Refuse to change a stored transaction that involves inactive members.

        Inactive members must stay at a zero balance, so the transactions
        they took part in are frozen until they are reactivated.
        """
        rows = self.repository.fetch_transaction_rows(
            TransactionFilters(id=existing.id)
        )
        involved = {row.member for row in rows}
        inactive = [
            member.name
            for member in self.repository.list_members(
                ledger=existing.ledger, active=False
            )
            if member.name in involved
        ]
        if inactive:
            raise ValidationError(
                f"Transactions involving inactive members cannot be changed: "
                f"{', '.join(inactive)}"
            )

    def _fetch_exchange_rate(self, currency: str) -> float:
        """Look up the rate converting `currency` into the base currency."""
        if currency == self.settings.base_currency:
            return 1.0

        with ExchangeRateClient(
            self.settings.exchange_rate_url, timeout=self.settings.http_timeout
        ) as client:
            return client.get_rate(currency, self.settings.base_currency)

    @staticmethod
    def _contributions(draft: TransactionDraft) -> list[tuple[str, int, float]]:
        """Pair each member with their paid cents and weight."""
        return [
            (member, dollars_to_cents(paid), weight)
            for member, paid, weight in zip(
                draft.members, draft.paid, draft.weights, strict=True
            )
        ]

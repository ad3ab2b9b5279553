"""Pydantic domain models for ledger-split."""

import datetime as dt
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field

ExpenseType = Literal["expense", "income", "transfer"]
MoneyFormat = Literal["cents", "dollars"]
Shape = Literal["list", "object", "map"]

# Integer cents, or Decimal dollars once formatted for presentation
Money = int | Decimal

# ============================================================================
# Stored Models
# ============================================================================


class Ledger(BaseModel):
    """A named group of members sharing expenses."""

    name: str
    currency: str = "CAD"


class Member(BaseModel):
    """A member of a ledger."""

    name: str
    ledger: str
    active: bool = True


class Transaction(BaseModel):
    """A stored transaction header."""

    id: str
    name: str | None = None
    category: str | None = None
    currency: str
    date: dt.date
    exchange_rate: float = 1.0
    expense_type: ExpenseType
    ledger: str
    created_at: dt.datetime | None = None
    is_deleted: bool = False
    is_template: bool = False


class TransactionRow(BaseModel):
    """One transaction header joined with one of its contributions."""

    id: str
    name: str | None = None
    category: str | None = None
    currency: str
    date: dt.date
    created_at: dt.datetime | None = None
    exchange_rate: float = 1.0
    expense_type: ExpenseType
    ledger: str
    member: str
    amount: int  # cents
    weight: float


# ============================================================================
# Transaction Views
# ============================================================================


class TransactionHeader(BaseModel):
    """Fields shared by every rendering of an assembled transaction."""

    id: str
    name: str | None = None
    category: str | None = None
    currency: str
    date: dt.date
    exchange_rate: float
    expense_type: ExpenseType
    ledger: str
    amount: Money  # sum of paid


class ListTransactionView(TransactionHeader):
    """Parallel arrays, one entry per contributing member."""

    shape: Literal["list"] = "list"
    members: list[str]
    weights: list[float]
    paid: list[Money]
    owed: list[Money]


class MemberContribution(BaseModel):
    """A member's line in an object-shaped view."""

    member: str
    weight: float
    paid: Money
    owed: Money


class ObjectTransactionView(TransactionHeader):
    """A list of per-member contribution records."""

    shape: Literal["object"] = "object"
    contributions: list[MemberContribution]


class ContributionShare(BaseModel):
    """A member's line in a map-shaped view, keyed by member name."""

    weight: float
    paid: Money
    owed: Money


class MapTransactionView(TransactionHeader):
    """A mapping from member name to contribution."""

    shape: Literal["map"] = "map"
    contributions: dict[str, ContributionShare]


TransactionView = Annotated[
    ListTransactionView | ObjectTransactionView | MapTransactionView,
    Field(discriminator="shape"),
]


class AssembleOptions(BaseModel):
    """How assembled transactions are computed and rendered."""

    use_exchange_rate: bool = False
    money_format: MoneyFormat = "dollars"
    shape: Shape = "list"


class TransactionFilters(BaseModel):
    """Filters for the transaction row query. Unset fields do not filter."""

    id: str | None = None
    ledger: str | None = None
    name: str | None = None
    category: str | None = None
    currency: str | None = None
    expense_type: ExpenseType | None = None
    date_after: dt.date | None = None  # inclusive
    date_before: dt.date | None = None  # inclusive


# ============================================================================
# Derived Models
# ============================================================================


class MemberBalance(BaseModel):
    """A member's running position in a ledger."""

    name: str
    paid: Money
    owed: Money
    balance: Money  # paid - owed


class SettlementTransfer(BaseModel):
    """A single payment that moves a debtor toward zero."""

    payer: str
    payee: str
    amount: Money = Field(gt=0)


# ============================================================================
# Write Models
# ============================================================================


class TransactionDraft(BaseModel):
    """A transaction as submitted for creation or update.

    Paid amounts are in dollars; they are converted to integer cents on write.
    """

    name: str | None = None
    category: str | None = None
    ledger: str
    currency: str
    expense_type: str = "expense"
    date: dt.date | None = None
    members: list[str]
    weights: list[float]
    paid: list[Decimal]
    is_template: bool = False

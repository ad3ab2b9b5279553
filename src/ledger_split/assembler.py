"""Assemble joined transaction rows into per-transaction views."""

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_EVEN, Decimal

from .apportion import split_by_weights
from .models import (
    AssembleOptions,
    ContributionShare,
    ListTransactionView,
    MapTransactionView,
    MemberContribution,
    Money,
    ObjectTransactionView,
    TransactionRow,
    TransactionView,
)

logger = logging.getLogger(__name__)


def multiply_cents(cents: int, multiplier: float) -> int:
    """
    Multiply integer cents by a float rate, rounding half to even.

    The rate goes through its shortest repr so 0.7 multiplies as 0.7,
    not as its binary approximation.
    """
    product = Decimal(cents) * Decimal(repr(multiplier))
    return int(product.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def dollars_to_cents(amount: Decimal | float | int) -> int:
    """Convert a dollar amount to integer cents, rounding half to even."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def cents_to_dollars(cents: int) -> Decimal:
    """Convert integer cents to Decimal dollars."""
    return Decimal(cents) / 100


def group_rows(rows: Iterable[TransactionRow]) -> list[list[TransactionRow]]:
    """Group rows by transaction id, keeping first-seen order of transactions."""
    groups: dict[str, list[TransactionRow]] = {}
    for row in rows:
        groups.setdefault(row.id, []).append(row)
    return list(groups.values())


def assemble_transaction(
    rows: list[TransactionRow], options: AssembleOptions
) -> TransactionView:
    """
    Build one transaction view from its header and contribution rows.

    paid is each contribution (times the exchange rate when requested);
    owed is the paid total split by weight, seeded by the transaction id.
    Both always sum to the transaction amount.

    Args:
        rows: All rows of a single transaction (at least one)
        options: Exchange rate, money format and shape options

    Returns:
        A list, object or map shaped view
    """
    if not rows:
        raise ValueError("A transaction needs at least one contribution row")

    header = rows[0]
    multiplier = header.exchange_rate if options.use_exchange_rate else 1.0

    members = [row.member for row in rows]
    weights = [row.weight for row in rows]
    paid_cents = [multiply_cents(row.amount, multiplier) for row in rows]
    total_cents = sum(paid_cents)
    owed_cents = split_by_weights(total_cents, weights, seed=header.id)

    convert = cents_to_dollars if options.money_format == "dollars" else int
    paid: list[Money] = [convert(value) for value in paid_cents]
    owed: list[Money] = [convert(value) for value in owed_cents]

    fields = {
        "id": header.id,
        "name": header.name,
        "category": header.category,
        "currency": header.currency,
        "date": header.date,
        "exchange_rate": header.exchange_rate,
        "expense_type": header.expense_type,
        "ledger": header.ledger,
        "amount": convert(total_cents),
    }

    if options.shape == "list":
        return ListTransactionView(
            **fields, members=members, weights=weights, paid=paid, owed=owed
        )

    if options.shape == "object":
        return ObjectTransactionView(
            **fields,
            contributions=[
                MemberContribution(member=m, weight=w, paid=p, owed=o)
                for m, w, p, o in zip(members, weights, paid, owed, strict=True)
            ],
        )

    return MapTransactionView(
        **fields,
        contributions={
            m: ContributionShare(weight=w, paid=p, owed=o)
            for m, w, p, o in zip(members, weights, paid, owed, strict=True)
        },
    )


def assemble_transactions(
    rows: Iterable[TransactionRow], options: AssembleOptions | None = None
) -> list[TransactionView]:
    """Assemble every transaction present in the rows, in row order."""
    options = options or AssembleOptions()
    views = [assemble_transaction(group, options) for group in group_rows(rows)]
    logger.debug(
        f"Assembled {len(views)} transactions "
        f"({options.shape}, {options.money_format})"
    )
    return views

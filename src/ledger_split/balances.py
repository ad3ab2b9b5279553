"""Per-member balance aggregation across a ledger's transactions."""

import logging
from collections.abc import Iterable

from .assembler import cents_to_dollars
from .exceptions import InternalInvariantViolation
from .models import MapTransactionView, Member, MemberBalance, MoneyFormat

logger = logging.getLogger(__name__)


def compute_balances(
    transactions: Iterable[MapTransactionView],
    members: Iterable[Member],
    money_format: MoneyFormat = "cents",
) -> list[MemberBalance]:
    """
    Sum paid and owed per member across transactions.

    Transactions must be map shaped, in integer cents, with the exchange
    rate already applied. Income transactions count negatively for both
    paid and owed.

    Args:
        transactions: Non-deleted, non-template transactions of one ledger
        members: The ledger's members, active and inactive
        money_format: Format of the returned amounts

    Returns:
        Balances of active members, in member order

    Raises:
        InternalInvariantViolation: If an inactive member's balance is not zero
    """
    transactions = list(transactions)
    balances = []

    for member in members:
        paid = 0
        owed = 0
        for transaction in transactions:
            share = transaction.contributions.get(member.name)
            if share is None:
                continue
            sign = -1 if transaction.expense_type == "income" else 1
            paid += sign * int(share.paid)
            owed += sign * int(share.owed)

        balance = paid - owed

        if not member.active:
            if balance != 0:
                logger.error(
                    f"Inactive member '{member.name}' in ledger "
                    f"'{member.ledger}' has balance {balance}"
                )
                raise InternalInvariantViolation(
                    f"inactive member '{member.name}' has a non-zero balance "
                    f"of {balance} cents"
                )
            continue

        if money_format == "dollars":
            balances.append(
                MemberBalance(
                    name=member.name,
                    paid=cents_to_dollars(paid),
                    owed=cents_to_dollars(owed),
                    balance=cents_to_dollars(balance),
                )
            )
        else:
            balances.append(
                MemberBalance(name=member.name, paid=paid, owed=owed, balance=balance)
            )

    return balances

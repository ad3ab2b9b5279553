"""Greedy settlement of ledger balances."""

import logging
from collections.abc import Iterable

from .exceptions import InternalInvariantViolation
from .models import MemberBalance, SettlementTransfer

logger = logging.getLogger(__name__)


def settle(balances: Iterable[MemberBalance]) -> list[SettlementTransfer]:
    """
    Compute transfers that bring every balance to zero.

    Repeatedly pays the largest creditor from the largest debtor. Produces
    at most n - 1 transfers for n nonzero balances; this is not globally
    minimal since zero-sum subgroups are not settled separately.

    Args:
        balances: Balances in integer cents, summing to zero

    Returns:
        Transfers in integer cents, in the order they were derived

    Raises:
        ValueError: If a balance is not a whole number of cents
        InternalInvariantViolation: If the balances do not sum to zero
    """
    balances = list(balances)
    for balance in balances:
        if balance.balance != int(balance.balance):
            raise ValueError(
                f"Balance of '{balance.name}' is not a whole number of cents: "
                f"{balance.balance}"
            )

    remaining = [
        [balance.name, int(balance.balance)]
        for balance in balances
        if balance.balance != 0
    ]

    net = sum(amount for _, amount in remaining)
    if net != 0:
        raise InternalInvariantViolation(
            f"ledger balances sum to {net} cents instead of zero"
        )

    # Creditors first, debtors last
    remaining.sort(key=lambda entry: (-entry[1], entry[0]))

    transfers = []
    while len(remaining) > 1:
        payee = remaining[0]
        payer = remaining[-1]

        amount = min(abs(payee[1]), abs(payer[1]))
        transfers.append(
            SettlementTransfer(payer=payer[0], payee=payee[0], amount=amount)
        )

        payee[1] -= amount
        payer[1] += amount

        if payer[1] == 0:
            remaining.pop()
        if payee[1] == 0:
            remaining.pop(0)

    if remaining:
        raise InternalInvariantViolation(
            f"member '{remaining[0][0]}' left unsettled with {remaining[0][1]} cents"
        )

    logger.info(f"Settled {len(transfers)} transfers")

    return transfers

"""Validation of transactions submitted for creation or update."""

from typing import get_args

from .exceptions import ValidationError
from .models import ExpenseType, Ledger, Member, TransactionDraft

EXPENSE_TYPES: tuple[str, ...] = get_args(ExpenseType)


def normalize_draft(draft: TransactionDraft) -> TransactionDraft:
    """Trim text fields and turn empty name/category into None."""
    name = draft.name.strip() if draft.name else None
    category = draft.category.strip() if draft.category else None
    return draft.model_copy(
        update={
            "name": name or None,
            "category": category or None,
            "members": [member.strip() for member in draft.members],
        }
    )


def validate_draft(
    draft: TransactionDraft,
    ledger: Ledger | None,
    members: list[Member],
    supported_currencies: list[str],
) -> None:
    """
    Check a normalized draft against the ledger it is written to.

    Args:
        draft: Normalized transaction draft
        ledger: The draft's ledger, or None if it does not exist
        members: Members of that ledger
        supported_currencies: ISO codes transactions may use

    Raises:
        ValidationError: On the first rule the draft breaks
    """
    supported = supported_currencies
    if draft.currency not in supported:
        raise ValidationError(
            f"Currency is not supported, we support the following currencies: "
            f"{', '.join(supported)}"
        )

    if not draft.members:
        raise ValidationError("A transaction must have at least one member.")

    if not (len(draft.members) == len(draft.weights) == len(draft.paid)):
        raise ValidationError(
            "The number of members, weights, and paid amounts must be the same."
        )

    if len(set(draft.members)) != len(draft.members):
        raise ValidationError("Members must be unique.")

    if any(weight < 0 for weight in draft.weights):
        raise ValidationError("Weights cannot be negative.")

    if all(weight == 0 for weight in draft.weights):
        raise ValidationError("All the weights are zero, the transaction is invalid.")

    if draft.expense_type not in EXPENSE_TYPES:
        raise ValidationError(
            'The expense type must be either "expense", "income", or "transfer".'
        )

    verb = "received" if draft.expense_type == "income" else "paid"
    if any(amount < 0 for amount in draft.paid):
        raise ValidationError(f"All the {verb} amounts must be non-negative.")
    if not any(amount > 0 for amount in draft.paid):
        raise ValidationError(f"At least one {verb} amount must be positive.")

    if ledger is None:
        raise ValidationError("The specified ledger does not exist.")

    if not draft.name and not draft.category:
        raise ValidationError("A transaction must have a name or a category.")

    known = {member.name for member in members}
    unknown = [member for member in draft.members if member not in known]
    if unknown:
        raise ValidationError(
            f"One or more members do not exist in the ledger: {', '.join(unknown)}"
        )

    inactive = {member.name for member in members if not member.active}
    blocked = [member for member in draft.members if member in inactive]
    if blocked:
        raise ValidationError(
            f"Inactive members cannot take part in transactions: {', '.join(blocked)}"
        )

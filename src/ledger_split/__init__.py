"""ledger-split - Split shared expenses penny-exactly and settle up."""

__version__ = "0.1.0"

from .apportion import split_by_weights
from .assembler import assemble_transactions
from .balances import compute_balances
from .config import Settings, load_settings
from .db import Database
from .models import (
    AssembleOptions,
    MemberBalance,
    SettlementTransfer,
    TransactionDraft,
    TransactionFilters,
    TransactionRow,
)
from .service import LedgerService
from .settlement import settle

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "AssembleOptions",
    "MemberBalance",
    "SettlementTransfer",
    "TransactionDraft",
    "TransactionFilters",
    "TransactionRow",
    "split_by_weights",
    "assemble_transactions",
    "compute_balances",
    "settle",
    "LedgerService",
]

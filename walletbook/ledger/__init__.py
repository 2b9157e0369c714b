"""Wallet balance ledger package."""

from walletbook.ledger.balances import (
    apply_transaction,
    find_balance_drift,
    impact,
    recompute_balance,
    replace_transaction,
    revert_transaction,
)

__all__ = [
    "apply_transaction",
    "find_balance_drift",
    "impact",
    "recompute_balance",
    "replace_transaction",
    "revert_transaction",
]

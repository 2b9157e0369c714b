"""Command validation and referential-integrity package."""

from walletbook.validation.integrity import (
    category_delete_blockers,
    wallet_delete_blockers,
)
from walletbook.validation.validator import LedgerValidator

__all__ = [
    "LedgerValidator",
    "category_delete_blockers",
    "wallet_delete_blockers",
]

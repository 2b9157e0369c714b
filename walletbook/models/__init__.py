"""
Data Models Package

This package contains all Pydantic models used in Walletbook.
All data flowing through the ledger must conform to these schemas.
"""

from walletbook.models.ledger import (
    SNAPSHOT_VERSION,
    Budget,
    Category,
    Frequency,
    LedgerSnapshot,
    RecurringRule,
    RecurringRuleDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
    UserIdentity,
    Wallet,
    WalletKind,
    default_categories,
    default_wallets,
    generate_id,
)
from walletbook.models.metrics import (
    BalanceDrift,
    BudgetStatus,
    BusinessMetrics,
    CategorySpending,
    FinancialHealthMetrics,
    MonthlySummary,
)
from walletbook.models.results import (
    CommandErrorKind,
    CommandResult,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Ledger entities
    "SNAPSHOT_VERSION",
    "Budget",
    "Category",
    "Frequency",
    "LedgerSnapshot",
    "RecurringRule",
    "RecurringRuleDraft",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "UserIdentity",
    "Wallet",
    "WalletKind",
    "default_categories",
    "default_wallets",
    "generate_id",
    # Reports
    "BalanceDrift",
    "BudgetStatus",
    "BusinessMetrics",
    "CategorySpending",
    "FinancialHealthMetrics",
    "MonthlySummary",
    # Results
    "CommandErrorKind",
    "CommandResult",
    "ValidationIssue",
    "ValidationResult",
]

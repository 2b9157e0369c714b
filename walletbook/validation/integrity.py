"""
Referential-Integrity Guards

Synchronous pre-checks run before a delete. They only read the snapshot:
an empty list means the delete may proceed; anything else names the
relationship that blocks it. Nothing is ever partially deleted.
"""

from walletbook.models.ledger import LedgerSnapshot
from walletbook.models.results import ValidationIssue


def wallet_delete_blockers(snapshot: LedgerSnapshot, wallet_id: str) -> list[ValidationIssue]:
    """Reasons the wallet cannot be deleted right now."""
    issues = []

    tx_count = sum(
        1 for t in snapshot.transactions
        if t.wallet_id == wallet_id or t.transfer_to_wallet_id == wallet_id
    )
    if tx_count:
        issues.append(ValidationIssue(
            field="transactions",
            issue_type="referenced_by_transactions",
            message=f"Wallet is used by {tx_count} transaction(s)",
            severity="error",
            suggested_fix="Delete or move those transactions first",
        ))

    rule_count = sum(
        1 for r in snapshot.recurring_rules
        if r.wallet_id == wallet_id or r.transfer_to_wallet_id == wallet_id
    )
    if rule_count:
        issues.append(ValidationIssue(
            field="recurring_rules",
            issue_type="referenced_by_recurring_rules",
            message=f"Wallet is used by {rule_count} recurring rule(s)",
            severity="error",
            suggested_fix="Delete those recurring rules first",
        ))

    if len(snapshot.wallets) < 2:
        issues.append(ValidationIssue(
            field="wallets",
            issue_type="last_wallet",
            message="At least one wallet must remain",
            severity="error",
            suggested_fix="Create another wallet before deleting this one",
        ))

    return issues


def category_delete_blockers(snapshot: LedgerSnapshot, category_id: str) -> list[ValidationIssue]:
    """Reasons the category cannot be deleted right now (active and inactive rules both count)."""
    issues = []

    tx_count = sum(1 for t in snapshot.transactions if t.category_id == category_id)
    if tx_count:
        issues.append(ValidationIssue(
            field="transactions",
            issue_type="referenced_by_transactions",
            message=f"Category is used by {tx_count} transaction(s)",
            severity="error",
            suggested_fix="Recategorize or delete those transactions first",
        ))

    rule_count = sum(1 for r in snapshot.recurring_rules if r.category_id == category_id)
    if rule_count:
        issues.append(ValidationIssue(
            field="recurring_rules",
            issue_type="referenced_by_recurring_rules",
            message=f"Category is used by {rule_count} recurring rule(s)",
            severity="error",
            suggested_fix="Delete those recurring rules first",
        ))

    return issues

"""
Two-Stage Command Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (amount, wallet, type)
- Amount is finite and at least one cent
- Transfer has a destination

STAGE 2 - REFERENCE VALIDATION:
- Wallets and categories exist in the snapshot
- Transfer does not point back at its origin
- Category kind matches the transaction kind (warning only)

WHY TWO STAGES:
1. Separation of concerns (structural vs relational)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 is skipped when stage 1 already failed

IMPORTANT: Validation NEVER silently fixes issues, and NEVER turns a
NaN into zero. A rejected command leaves the snapshot untouched.
"""

from decimal import Decimal
from typing import Optional, Union

from walletbook.models.ledger import (
    LedgerSnapshot,
    RecurringRuleDraft,
    TransactionDraft,
    TransactionType,
)
from walletbook.models.results import ValidationIssue, ValidationResult
from walletbook.money import (
    MAX_AMOUNT,
    ZERO,
    InvalidAmountError,
    is_finite_amount,
    sanitize,
)

Draft = Union[TransactionDraft, RecurringRuleDraft]


class LedgerValidator:
    """
    Validates command inputs against the current snapshot.

    Stateless: the snapshot is passed per call.
    """

    def validate_amount(
        self,
        amount: Optional[Decimal],
        field: str = "amount",
        allow_zero: bool = False,
        allow_negative: bool = False,
    ) -> list[ValidationIssue]:
        """Check a monetary value is present, finite and in range."""
        if amount is None:
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message="Amount is required",
                severity="error",
            )]

        too_large = ValidationIssue(
            field=field,
            issue_type="out_of_range",
            message=f"Amount ({amount}) is too large",
            severity="error",
            suggested_fix=f"Amounts go up to {MAX_AMOUNT}",
        )
        try:
            value = sanitize(amount)
        except InvalidAmountError:
            if is_finite_amount(amount):
                return [too_large]
            return [ValidationIssue(
                field=field,
                issue_type="non_finite",
                message=f"Amount ({amount}) is not a finite number",
                severity="error",
                suggested_fix="Enter a regular number such as 12.50",
            )]

        if abs(value) > MAX_AMOUNT:
            return [too_large]
        if value < ZERO and not allow_negative:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount cannot be negative",
                severity="error",
                suggested_fix="Enter the magnitude; the type decides the sign",
            )]
        if value == ZERO and not allow_zero:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount must be at least 0.01",
                severity="error",
            )]
        return []

    def _validate_schema(self, draft: Draft) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = self.validate_amount(draft.amount)

        if not draft.wallet_id:
            issues.append(ValidationIssue(
                field="wallet_id",
                issue_type="missing",
                message="A wallet is required",
                severity="error",
                suggested_fix="Pick the wallet the money moves from",
            ))

        if draft.type is None:
            issues.append(ValidationIssue(
                field="type",
                issue_type="missing",
                message="Transaction type is required",
                severity="error",
            ))
        elif draft.type == TransactionType.TRANSFER:
            if not draft.transfer_to_wallet_id:
                issues.append(ValidationIssue(
                    field="transfer_to_wallet_id",
                    issue_type="missing",
                    message="A transfer needs a destination wallet",
                    severity="error",
                    suggested_fix="Pick the wallet the money moves to",
                ))
        elif not draft.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="A category is required for income and expenses",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_references(
        self,
        draft: Draft,
        snapshot: LedgerSnapshot,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Reference validation against the snapshot.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if snapshot.find_wallet(draft.wallet_id) is None:
            issues.append(ValidationIssue(
                field="wallet_id",
                issue_type="unknown_reference",
                message=f"Wallet {draft.wallet_id} does not exist",
                severity="error",
            ))

        if draft.type == TransactionType.TRANSFER:
            if draft.transfer_to_wallet_id == draft.wallet_id:
                issues.append(ValidationIssue(
                    field="transfer_to_wallet_id",
                    issue_type="invalid_value",
                    message="A transfer cannot go to the wallet it comes from",
                    severity="error",
                ))
            elif snapshot.find_wallet(draft.transfer_to_wallet_id) is None:
                issues.append(ValidationIssue(
                    field="transfer_to_wallet_id",
                    issue_type="unknown_reference",
                    message=f"Wallet {draft.transfer_to_wallet_id} does not exist",
                    severity="error",
                ))
        else:
            category = snapshot.find_category(draft.category_id)
            if category is None:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_reference",
                    message=f"Category {draft.category_id} does not exist",
                    severity="error",
                ))
            elif category.type != draft.type:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="kind_mismatch",
                    message=(
                        f"Category '{category.name}' is for {category.type.value}, "
                        f"not {draft.type.value}"
                    ),
                    severity="warning",
                    suggested_fix="Double-check the category",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, draft: Draft, snapshot: LedgerSnapshot) -> ValidationResult:
        """
        Run the two-stage pipeline on a transaction or recurring rule draft.

        Returns:
            ValidationResult with all issues found
        """
        schema_valid, issues = self._validate_schema(draft)
        if schema_valid:
            _, reference_issues = self._validate_references(draft, snapshot)
            issues.extend(reference_issues)
        return ValidationResult.from_issues(issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text for the caller to show next to the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)

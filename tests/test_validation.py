"""
Tests for command validation and referential-integrity guards.
"""

import pytest
from datetime import date
from decimal import Decimal

from walletbook.models import (
    Frequency,
    LedgerSnapshot,
    RecurringRule,
    RecurringRuleDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from walletbook.validation import (
    LedgerValidator,
    category_delete_blockers,
    wallet_delete_blockers,
)


def issue_types(result):
    return {issue.issue_type for issue in result.issues}


class TestAmountValidation:
    """Tests for validate_amount()."""

    def setup_method(self):
        self.validator = LedgerValidator()

    def test_missing(self):
        (issue,) = self.validator.validate_amount(None)
        assert issue.issue_type == "missing"

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), float("-inf")])
    def test_non_finite(self, value):
        (issue,) = self.validator.validate_amount(value)
        assert issue.issue_type == "non_finite"
        assert issue.severity == "error"

    def test_zero_and_negative(self):
        assert self.validator.validate_amount(Decimal("0"))[0].issue_type == "invalid_value"
        assert self.validator.validate_amount(Decimal("0.001"))[0].issue_type == "invalid_value"
        assert self.validator.validate_amount(Decimal("-5"))[0].issue_type == "invalid_value"

    @pytest.mark.parametrize("value", [Decimal("1e30"), 1e300, Decimal("1000000000000"), Decimal("-1e13")])
    def test_too_large(self, value):
        (issue,) = self.validator.validate_amount(value, allow_negative=True)
        assert issue.issue_type == "out_of_range"

    def test_largest_accepted_amount(self):
        assert self.validator.validate_amount(Decimal("999999999999.99")) == []

    def test_allowances(self):
        assert self.validator.validate_amount(Decimal("0"), allow_zero=True) == []
        assert self.validator.validate_amount(Decimal("-5"), allow_negative=True) == []


class TestDraftValidation:
    """Tests for the two-stage draft pipeline."""

    def setup_method(self):
        self.validator = LedgerValidator()
        self.snapshot = LedgerSnapshot()

    def test_valid_expense(self):
        draft = TransactionDraft(
            amount=Decimal("12.50"),
            wallet_id="w1",
            category_id="exp1",
            type=TransactionType.EXPENSE,
        )
        result = self.validator.validate(draft, self.snapshot)
        assert result.is_valid is True
        assert result.issues == []

    def test_missing_fields(self):
        """Test an empty draft reports amount, wallet and type."""
        result = self.validator.validate(TransactionDraft(), self.snapshot)
        assert result.is_valid is False
        assert {i.field for i in result.issues} == {"amount", "wallet_id", "type"}

    def test_schema_failure_skips_reference_stage(self):
        draft = TransactionDraft(wallet_id="nope", type=TransactionType.EXPENSE, category_id="exp1")
        result = self.validator.validate(draft, self.snapshot)
        assert issue_types(result) == {"missing"}

    def test_non_finite_amount(self):
        draft = TransactionDraft(
            amount=Decimal("NaN"),
            wallet_id="w1",
            category_id="exp1",
            type=TransactionType.EXPENSE,
        )
        result = self.validator.validate(draft, self.snapshot)
        assert "non_finite" in issue_types(result)

    def test_transfer_without_destination(self):
        draft = TransactionDraft(amount=Decimal("5"), wallet_id="w1", type=TransactionType.TRANSFER)
        result = self.validator.validate(draft, self.snapshot)
        assert [i.field for i in result.issues] == ["transfer_to_wallet_id"]

    def test_transfer_needs_no_category(self):
        draft = TransactionDraft(
            amount=Decimal("5"),
            wallet_id="w1",
            transfer_to_wallet_id="w2",
            type=TransactionType.TRANSFER,
        )
        assert self.validator.validate(draft, self.snapshot).is_valid is True

    def test_transfer_to_same_wallet(self):
        draft = TransactionDraft(
            amount=Decimal("5"),
            wallet_id="w1",
            transfer_to_wallet_id="w1",
            type=TransactionType.TRANSFER,
        )
        result = self.validator.validate(draft, self.snapshot)
        assert result.is_valid is False
        assert issue_types(result) == {"invalid_value"}

    def test_expense_without_category(self):
        draft = TransactionDraft(amount=Decimal("5"), wallet_id="w1", type=TransactionType.EXPENSE)
        result = self.validator.validate(draft, self.snapshot)
        assert [i.field for i in result.issues] == ["category_id"]

    def test_unknown_references(self):
        draft = TransactionDraft(
            amount=Decimal("5"),
            wallet_id="ghost",
            category_id="ghost",
            type=TransactionType.EXPENSE,
        )
        result = self.validator.validate(draft, self.snapshot)
        assert issue_types(result) == {"unknown_reference"}
        assert result.error_count == 2

    def test_category_kind_mismatch_is_warning(self):
        draft = TransactionDraft(
            amount=Decimal("5"),
            wallet_id="w1",
            category_id="inc1",
            type=TransactionType.EXPENSE,
        )
        result = self.validator.validate(draft, self.snapshot)
        assert result.is_valid is True
        assert len(result.warnings) == 1

    def test_recurring_rule_draft(self):
        draft = RecurringRuleDraft(
            amount=Decimal("9.99"),
            wallet_id="w1",
            category_id="exp5",
            type=TransactionType.EXPENSE,
        )
        assert self.validator.validate(draft, self.snapshot).is_valid is True

    def test_user_friendly_summary(self):
        result = self.validator.validate(TransactionDraft(), self.snapshot)
        summary = self.validator.get_user_friendly_summary(result)
        assert summary.startswith("Please fix the following:")
        assert "Amount is required" in summary

    def test_summary_when_clean(self):
        draft = TransactionDraft(
            amount=Decimal("1"),
            wallet_id="w1",
            category_id="exp1",
            type=TransactionType.EXPENSE,
        )
        result = self.validator.validate(draft, self.snapshot)
        assert self.validator.get_user_friendly_summary(result) == "All checks passed."


class TestIntegrityGuards:
    """Tests for delete pre-checks."""

    def make_snapshot(self, transactions=(), rules=()):
        return LedgerSnapshot(transactions=tuple(transactions), recurring_rules=tuple(rules))

    def test_unreferenced_wallet_is_deletable(self):
        assert wallet_delete_blockers(self.make_snapshot(), "w2") == []

    def test_wallet_used_as_transfer_destination(self):
        tx = Transaction(
            amount=Decimal("1"),
            wallet_id="w1",
            transfer_to_wallet_id="w2",
            type=TransactionType.TRANSFER,
        )
        blockers = wallet_delete_blockers(self.make_snapshot([tx]), "w2")
        assert [b.issue_type for b in blockers] == ["referenced_by_transactions"]

    def test_wallet_used_by_rule(self):
        rule = RecurringRule(
            amount=Decimal("1"),
            category_id="exp1",
            wallet_id="w2",
            type=TransactionType.EXPENSE,
            frequency=Frequency.WEEKLY,
            next_due_date=date(2024, 1, 1),
            original_day=1,
        )
        blockers = wallet_delete_blockers(self.make_snapshot(rules=[rule]), "w2")
        assert [b.issue_type for b in blockers] == ["referenced_by_recurring_rules"]

    def test_last_wallet(self):
        snapshot = LedgerSnapshot().model_copy(update={"wallets": LedgerSnapshot().wallets[:1]})
        blockers = wallet_delete_blockers(snapshot, "w1")
        assert [b.issue_type for b in blockers] == ["last_wallet"]

    def test_category_referenced_by_transaction(self):
        tx = Transaction(
            amount=Decimal("1"),
            wallet_id="w1",
            category_id="exp1",
            type=TransactionType.EXPENSE,
        )
        blockers = category_delete_blockers(self.make_snapshot([tx]), "exp1")
        assert [b.issue_type for b in blockers] == ["referenced_by_transactions"]

    def test_category_referenced_by_inactive_rule(self):
        rule = RecurringRule(
            amount=Decimal("1"),
            category_id="exp5",
            wallet_id="w1",
            type=TransactionType.EXPENSE,
            frequency=Frequency.MONTHLY,
            next_due_date=date(2024, 1, 1),
            original_day=1,
            active=False,
        )
        blockers = category_delete_blockers(self.make_snapshot(rules=[rule]), "exp5")
        assert [b.issue_type for b in blockers] == ["referenced_by_recurring_rules"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

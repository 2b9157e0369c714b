"""Tests for the financial metrics calculators."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from walletbook.metrics import (
    budget_status,
    business_metrics,
    calculate_safe_to_spend,
    category_breakdown,
    financial_health,
    month_bounds,
    monthly_summary,
    total_balance,
)
from walletbook.models import (
    Budget,
    Frequency,
    RecurringRule,
    Transaction,
    TransactionType,
    Wallet,
    default_categories,
)

TODAY = date(2024, 4, 15)


def make_tx(type, amount, when=datetime(2024, 4, 10), category_id="exp1", wallet_id="w1", to=None, business=False):
    return Transaction(
        amount=Decimal(amount),
        date=when,
        category_id=None if type == TransactionType.TRANSFER else category_id,
        wallet_id=wallet_id,
        transfer_to_wallet_id=to,
        type=type,
        is_business=business,
    )


def make_rule(amount, next_due, type=TransactionType.EXPENSE, active=True):
    return RecurringRule(
        amount=Decimal(amount),
        category_id="exp3",
        wallet_id="w1",
        type=type,
        frequency=Frequency.MONTHLY,
        next_due_date=next_due,
        original_day=next_due.day,
        active=active,
    )


class TestMonthHelpers:
    def test_month_bounds(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))

    def test_total_balance(self):
        wallets = [
            Wallet(name="a", balance=Decimal("10.10")),
            Wallet(name="b", balance=Decimal("-3.05")),
        ]
        assert total_balance(wallets) == Decimal("7.05")


class TestSafeToSpend:
    """Tests for safe-to-spend."""

    def test_subtracts_expenses_due_this_month(self):
        rules = [
            make_rule("100", date(2024, 4, 20)),
            make_rule("50", date(2024, 4, 30)),
            make_rule("30", date(2024, 4, 1)),  # overdue, still committed
            make_rule("999", date(2024, 5, 1)),  # next month
            make_rule("40", date(2024, 4, 20), active=False),
            make_rule("70", date(2024, 4, 20), type=TransactionType.INCOME),
        ]
        assert calculate_safe_to_spend(Decimal("1000"), rules, TODAY) == Decimal("820.00")

    def test_can_go_negative(self):
        rules = [make_rule("150", date(2024, 4, 20))]
        assert calculate_safe_to_spend(Decimal("100"), rules, TODAY) == Decimal("-50.00")


class TestFinancialHealth:
    """Tests for burn rate, average and efficiency."""

    def test_current_month_only(self):
        txs = [
            make_tx(TransactionType.INCOME, "1000", category_id="inc1"),
            make_tx(TransactionType.EXPENSE, "250"),
            make_tx(TransactionType.EXPENSE, "150"),
            make_tx(TransactionType.EXPENSE, "999", when=datetime(2024, 3, 31, 23, 59)),
        ]
        health = financial_health(txs, TODAY)

        assert health.income == Decimal("1000.00")
        assert health.expense == Decimal("400.00")
        assert health.transaction_count == 3
        assert health.burn_rate == pytest.approx(40.0)
        assert health.efficiency_score == pytest.approx(60.0)
        assert health.avg_transaction == Decimal("133.33")

    def test_no_income(self):
        health = financial_health([make_tx(TransactionType.EXPENSE, "10")], TODAY)
        assert health.burn_rate == 0.0
        assert health.efficiency_score == 0.0

    def test_overspending_is_negative_but_display_is_clamped(self):
        txs = [
            make_tx(TransactionType.INCOME, "100", category_id="inc1"),
            make_tx(TransactionType.EXPENSE, "300"),
        ]
        health = financial_health(txs, TODAY)
        assert health.efficiency_score == pytest.approx(-200.0)
        assert health.display_efficiency_score == 0.0

    def test_empty_month(self):
        health = financial_health([], TODAY)
        assert health.transaction_count == 0
        assert health.avg_transaction == Decimal("0.00")


class TestBusinessMetrics:
    """Tests for the business-only view."""

    def test_profit_and_margin(self):
        txs = [
            make_tx(TransactionType.INCOME, "2000", category_id="inc2"),
            make_tx(TransactionType.EXPENSE, "500", business=True),
            make_tx(TransactionType.EXPENSE, "300"),
        ]
        metrics = business_metrics(txs, 2024, 4)

        assert metrics.total_income == Decimal("2000.00")
        assert metrics.total_business_expenses == Decimal("500.00")
        assert metrics.total_personal_expenses == Decimal("300.00")
        assert metrics.net_profit == Decimal("1500.00")
        assert metrics.margin == pytest.approx(75.0)

    def test_no_income_margin_is_zero(self):
        metrics = business_metrics([make_tx(TransactionType.EXPENSE, "5", business=True)], 2024, 4)
        assert metrics.net_profit == Decimal("-5.00")
        assert metrics.margin == 0.0


class TestMonthlySummary:
    """Tests for the dashboard summary."""

    def setup_method(self):
        self.wallets = [
            Wallet(id="w1", name="Cash", balance=Decimal("100")),
            Wallet(id="w2", name="Bank", balance=Decimal("400")),
        ]
        self.txs = [
            make_tx(TransactionType.INCOME, "500", category_id="inc1", wallet_id="w2"),
            make_tx(TransactionType.EXPENSE, "40", business=True),
            make_tx(TransactionType.EXPENSE, "60", wallet_id="w2"),
            make_tx(TransactionType.TRANSFER, "25", wallet_id="w2", to="w1"),
        ]

    def test_all_wallets(self):
        summary = monthly_summary(self.txs, self.wallets, 2024, 4)
        assert summary.income == Decimal("500.00")
        assert summary.expenses == Decimal("100.00")
        assert summary.business_expenses == Decimal("40.00")
        assert summary.total_balance == Decimal("500.00")
        assert summary.wallet_balance == Decimal("500.00")

    def test_single_wallet(self):
        summary = monthly_summary(self.txs, self.wallets, 2024, 4, wallet_id="w1")
        assert summary.income == Decimal("0.00")
        assert summary.expenses == Decimal("40.00")
        assert summary.wallet_balance == Decimal("100.00")
        assert summary.total_balance == Decimal("500.00")


class TestBudgetStatus:
    """Tests for budget progress."""

    def test_exceeded_and_warning(self):
        budgets = [
            Budget(id="b1", category_id="exp1", amount=Decimal("100")),
            Budget(id="b2", category_id="exp2", amount=Decimal("100")),
            Budget(id="b3", category_id="exp3", amount=Decimal("100")),
        ]
        txs = [
            make_tx(TransactionType.EXPENSE, "120", category_id="exp1"),
            make_tx(TransactionType.EXPENSE, "85", category_id="exp2"),
            make_tx(TransactionType.EXPENSE, "80", category_id="exp3"),
            make_tx(TransactionType.EXPENSE, "500", category_id="exp3", when=datetime(2024, 3, 1)),
        ]
        statuses = {s.budget_id: s for s in budget_status(budgets, default_categories(), txs, TODAY)}

        assert statuses["b1"].is_exceeded is True
        assert statuses["b1"].remaining == Decimal("-20.00")
        assert statuses["b1"].category_name == "Supermercado"
        assert statuses["b2"].is_exceeded is False
        assert statuses["b2"].is_warning is True
        assert statuses["b2"].percent_used == pytest.approx(85.0)
        assert statuses["b3"].is_warning is False
        assert statuses["b3"].spent == Decimal("80.00")

    def test_exactly_at_limit_is_not_exceeded(self):
        budgets = [Budget(id="b1", category_id="exp1", amount=Decimal("50"))]
        txs = [make_tx(TransactionType.EXPENSE, "50")]
        (status,) = budget_status(budgets, default_categories(), txs, TODAY)
        assert status.is_exceeded is False
        assert status.remaining == Decimal("0.00")


class TestCategoryBreakdown:
    def test_expense_categories_with_spending(self):
        txs = [
            make_tx(TransactionType.EXPENSE, "10", category_id="exp1"),
            make_tx(TransactionType.EXPENSE, "15.50", category_id="exp1"),
            make_tx(TransactionType.EXPENSE, "7", category_id="exp4"),
            make_tx(TransactionType.INCOME, "100", category_id="inc1"),
        ]
        rows = category_breakdown(default_categories(), txs, 2024, 4)
        assert [(r.category_id, r.total) for r in rows] == [
            ("exp1", Decimal("25.50")),
            ("exp4", Decimal("7.00")),
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

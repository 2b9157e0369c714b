"""
Financial Metrics Calculators

DESIGN DECISION: Metrics are computed on demand from the snapshot.
They are pure and read-only; nothing here is cached or persisted.
Inputs are one person's history, so a full scan is always cheap.

Every function takes "today" (or an explicit year/month) so results
are deterministic in tests.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from walletbook.models.ledger import (
    Budget,
    Category,
    RecurringRule,
    Transaction,
    TransactionType,
    Wallet,
)
from walletbook.models.metrics import (
    BudgetStatus,
    BusinessMetrics,
    CategorySpending,
    FinancialHealthMetrics,
    MonthlySummary,
)
from walletbook.money import ZERO, sanitize

BUDGET_WARNING_RATIO = Decimal("0.8")


def month_bounds(today: date) -> tuple[date, date]:
    """First and last day of the calendar month containing today."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def transactions_in_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[Transaction]:
    return [t for t in transactions if t.date.year == year and t.date.month == month]


def _total(transactions: Iterable[Transaction]) -> Decimal:
    total = ZERO
    for tx in transactions:
        total = sanitize(total + tx.amount)
    return total


def _percent(part: Decimal, whole: Decimal) -> float:
    return float(part / whole * 100) if whole > ZERO else 0.0


def calculate_safe_to_spend(
    current_balance: Decimal,
    rules: Sequence[RecurringRule],
    today: date,
) -> Decimal:
    """
    Balance left after this month's committed recurring expenses.

    Counts every active expense rule whose next due date falls on or
    before the last day of today's month, overdue ones included.
    """
    _, end_of_month = month_bounds(today)
    committed = ZERO
    for rule in rules:
        if rule.active and rule.type == TransactionType.EXPENSE and rule.next_due_date <= end_of_month:
            committed = sanitize(committed + rule.amount)
    return sanitize(current_balance - committed)


def financial_health(
    transactions: Sequence[Transaction],
    today: date,
) -> FinancialHealthMetrics:
    """
    Burn rate, average transaction and efficiency for today's month.

    efficiency_score is left raw; callers clamp it for display.
    """
    month_txs = transactions_in_month(transactions, today.year, today.month)
    income = _total(t for t in month_txs if t.type == TransactionType.INCOME)
    expense = _total(t for t in month_txs if t.type == TransactionType.EXPENSE)

    avg_transaction = sanitize(expense / len(month_txs)) if month_txs else ZERO

    return FinancialHealthMetrics(
        income=income,
        expense=expense,
        transaction_count=len(month_txs),
        burn_rate=_percent(expense, income),
        avg_transaction=avg_transaction,
        efficiency_score=_percent(income - expense, income),
    )


def business_metrics(
    transactions: Sequence[Transaction],
    year: int,
    month: int,
) -> BusinessMetrics:
    """Revenue against business expenses for one month."""
    month_txs = transactions_in_month(transactions, year, month)
    total_income = _total(t for t in month_txs if t.type == TransactionType.INCOME)
    business = _total(
        t for t in month_txs if t.type == TransactionType.EXPENSE and t.is_business
    )
    personal = _total(
        t for t in month_txs if t.type == TransactionType.EXPENSE and not t.is_business
    )
    net_profit = sanitize(total_income - business)

    return BusinessMetrics(
        total_income=total_income,
        total_business_expenses=business,
        total_personal_expenses=personal,
        net_profit=net_profit,
        margin=_percent(net_profit, total_income),
    )


def total_balance(wallets: Iterable[Wallet]) -> Decimal:
    total = ZERO
    for wallet in wallets:
        total = sanitize(total + wallet.balance)
    return total


def _touches_wallet(tx: Transaction, wallet_id: str) -> bool:
    return tx.wallet_id == wallet_id or (
        tx.type == TransactionType.TRANSFER and tx.transfer_to_wallet_id == wallet_id
    )


def monthly_summary(
    transactions: Sequence[Transaction],
    wallets: Sequence[Wallet],
    year: int,
    month: int,
    wallet_id: Optional[str] = None,
) -> MonthlySummary:
    """
    Income, expenses and business expenses for one month.

    With wallet_id, only that wallet's transactions count (a transfer
    counts for both its origin and destination) and wallet_balance is
    that wallet's balance instead of the total.
    """
    scoped = transactions
    if wallet_id is not None:
        scoped = [t for t in transactions if _touches_wallet(t, wallet_id)]
    month_txs = transactions_in_month(scoped, year, month)

    overall = total_balance(wallets)
    if wallet_id is None:
        wallet_balance = overall
    else:
        wallet = next((w for w in wallets if w.id == wallet_id), None)
        wallet_balance = wallet.balance if wallet else ZERO

    return MonthlySummary(
        year=year,
        month=month,
        wallet_id=wallet_id,
        income=_total(t for t in month_txs if t.type == TransactionType.INCOME),
        expenses=_total(t for t in month_txs if t.type == TransactionType.EXPENSE),
        business_expenses=_total(
            t for t in month_txs if t.type == TransactionType.EXPENSE and t.is_business
        ),
        total_balance=overall,
        wallet_balance=wallet_balance,
    )


def budget_status(
    budgets: Sequence[Budget],
    categories: Sequence[Category],
    transactions: Sequence[Transaction],
    today: date,
) -> list[BudgetStatus]:
    """How much of each monthly budget today's month has used."""
    month_expenses = [
        t for t in transactions_in_month(transactions, today.year, today.month)
        if t.type == TransactionType.EXPENSE
    ]
    names = {c.id: c.name for c in categories}

    statuses = []
    for budget in budgets:
        spent = _total(t for t in month_expenses if t.category_id == budget.category_id)
        statuses.append(BudgetStatus(
            budget_id=budget.id,
            category_id=budget.category_id,
            category_name=names.get(budget.category_id, ""),
            limit=budget.amount,
            spent=spent,
            remaining=sanitize(budget.amount - spent),
            percent_used=_percent(spent, budget.amount),
            is_exceeded=spent > budget.amount,
            is_warning=spent > sanitize(budget.amount * BUDGET_WARNING_RATIO),
        ))
    return statuses


def category_breakdown(
    categories: Sequence[Category],
    transactions: Sequence[Transaction],
    year: int,
    month: int,
) -> list[CategorySpending]:
    """Expense total per expense category; categories with nothing spent are left out."""
    month_expenses = [
        t for t in transactions_in_month(transactions, year, month)
        if t.type == TransactionType.EXPENSE
    ]
    rows = []
    for category in categories:
        if category.type != TransactionType.EXPENSE:
            continue
        total = _total(t for t in month_expenses if t.category_id == category.id)
        if total > ZERO:
            rows.append(CategorySpending(
                category_id=category.id,
                name=category.name,
                color=category.color,
                total=total,
            ))
    return rows

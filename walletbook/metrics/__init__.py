"""Financial metrics package."""

from walletbook.metrics.calculators import (
    budget_status,
    business_metrics,
    calculate_safe_to_spend,
    category_breakdown,
    financial_health,
    month_bounds,
    monthly_summary,
    total_balance,
    transactions_in_month,
)

__all__ = [
    "budget_status",
    "business_metrics",
    "calculate_safe_to_spend",
    "category_breakdown",
    "financial_health",
    "month_bounds",
    "monthly_summary",
    "total_balance",
    "transactions_in_month",
]

"""
Read-only report models.

These are projections over a snapshot. Nothing here is persisted.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FinancialHealthMetrics(BaseModel):
    """
    Current-month health indicators.

    efficiency_score is the raw value and may be negative when spending
    exceeds income. Use display_efficiency_score for gauges.
    """
    model_config = ConfigDict(frozen=True)

    income: Decimal
    expense: Decimal
    transaction_count: int = Field(ge=0)
    burn_rate: float = Field(description="Expense as a percentage of income")
    avg_transaction: Decimal = Field(description="Expense spread over all of the month's transactions")
    efficiency_score: float = Field(description="Share of income kept, in percent")

    @property
    def display_efficiency_score(self) -> float:
        """efficiency_score clamped to [0, 100]."""
        return max(0.0, min(100.0, self.efficiency_score))


class BusinessMetrics(BaseModel):
    """Business-only view of a month."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal
    total_business_expenses: Decimal
    total_personal_expenses: Decimal
    net_profit: Decimal
    margin: float = Field(description="Net profit as a percentage of income")


class MonthlySummary(BaseModel):
    """Month totals, optionally narrowed to one wallet."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=1, le=12)
    wallet_id: Optional[str] = None
    income: Decimal
    expenses: Decimal
    business_expenses: Decimal
    total_balance: Decimal
    wallet_balance: Decimal


class BudgetStatus(BaseModel):
    """How far a monthly budget has been used."""
    model_config = ConfigDict(frozen=True)

    budget_id: str
    category_id: str
    category_name: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    percent_used: float
    is_exceeded: bool
    is_warning: bool = Field(description="More than 80% used")


class CategorySpending(BaseModel):
    """Total expense for one category in a month."""
    model_config = ConfigDict(frozen=True)

    category_id: str
    name: str
    color: str
    total: Decimal


class BalanceDrift(BaseModel):
    """A wallet whose stored balance no longer matches its history."""
    model_config = ConfigDict(frozen=True)

    wallet_id: str
    stored_balance: Decimal
    expected_balance: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.expected_balance

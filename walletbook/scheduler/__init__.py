"""Recurring obligation scheduler package."""

from walletbook.scheduler.recurrence import (
    AUTO_SUFFIX,
    MAX_CATCH_UP_ITERATIONS,
    RecurringRunResult,
    RuleCatchUp,
    advance_due_date,
    catch_up_rule,
    confirm_occurrence,
    process_recurring_rules,
    upcoming_items,
)

__all__ = [
    "AUTO_SUFFIX",
    "MAX_CATCH_UP_ITERATIONS",
    "RecurringRunResult",
    "RuleCatchUp",
    "advance_due_date",
    "catch_up_rule",
    "confirm_occurrence",
    "process_recurring_rules",
    "upcoming_items",
]

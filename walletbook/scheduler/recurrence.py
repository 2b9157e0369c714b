"""
Recurring Obligation Scheduler

Two ways a recurring rule produces transactions:

1. CATCH-UP (auto_pay rules): on load/startup, every occurrence whose due
   date is on or before today is generated, backdated to its due date,
   and applied to the wallets. At most MAX_CATCH_UP_ITERATIONS per rule
   per call; the rest of a long backlog is picked up by the next call.

2. MANUAL CONFIRMATION (everything else): the user confirms one
   occurrence. One transaction dated now, due date moves one step.

INVARIANTS:
- next_due_date only moves forward, exactly one step per occurrence
- Catch-up is re-entrant: once next_due_date is after today, repeated
  calls generate nothing
- original_day is never changed, so month-end anchors do not drift
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Callable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from walletbook.ledger.balances import apply_transaction
from walletbook.models.ledger import (
    Frequency,
    RecurringRule,
    Transaction,
    Wallet,
    generate_id,
)

MAX_CATCH_UP_ITERATIONS = 12
AUTO_SUFFIX = " (Auto)"

IdFactory = Callable[[], str]


class RuleCatchUp(BaseModel):
    """What processing one rule produced."""
    model_config = ConfigDict(frozen=True)

    rule: RecurringRule
    transactions: tuple[Transaction, ...] = ()
    wallets: tuple[Wallet, ...]
    iterations: int = Field(default=0, ge=0)
    cap_reached: bool = False


class RecurringRunResult(BaseModel):
    """What a catch-up pass over every rule produced."""
    model_config = ConfigDict(frozen=True)

    rules: tuple[RecurringRule, ...]
    new_transactions: tuple[Transaction, ...] = ()
    wallets: tuple[Wallet, ...]
    iterations_by_rule: dict[str, int] = Field(default_factory=dict)
    capped_rule_ids: tuple[str, ...] = Field(
        default=(),
        description="Rules that still have backlog after this pass"
    )

    @property
    def generated_count(self) -> int:
        return len(self.new_transactions)


def _clamped(year: int, month: int, original_day: int) -> date:
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, min(original_day, days_in_month))


def advance_due_date(due: date, frequency: Frequency, original_day: int) -> date:
    """
    Move a due date forward by one frequency step.

    Monthly and yearly steps clamp the day to the target month's length
    but always start from original_day, so:
        2024-01-31 -> 2024-02-29 -> 2024-03-31   (original_day=31)
        2024-02-29 -> 2025-02-28                 (yearly, original_day=29)
    """
    if frequency == Frequency.DAILY:
        return due + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        return due + timedelta(days=7)
    if frequency == Frequency.MONTHLY:
        year, month = (due.year + 1, 1) if due.month == 12 else (due.year, due.month + 1)
        return _clamped(year, month, original_day)
    if frequency == Frequency.YEARLY:
        return _clamped(due.year + 1, due.month, original_day)
    raise ValueError(f"Unknown frequency: {frequency}")


def _occurrence(rule: RecurringRule, when: datetime, description: str, id_factory: IdFactory) -> Transaction:
    return Transaction(
        id=id_factory(),
        amount=rule.amount,
        description=description,
        date=when,
        category_id=rule.category_id,
        wallet_id=rule.wallet_id,
        transfer_to_wallet_id=rule.transfer_to_wallet_id,
        type=rule.type,
        is_business=rule.is_business,
        is_recurring=True,
    )


def catch_up_rule(
    rule: RecurringRule,
    wallets: Sequence[Wallet],
    today: date,
    id_factory: IdFactory = generate_id,
) -> RuleCatchUp:
    """
    Generate every overdue occurrence of an auto_pay rule, up to the cap.

    Each occurrence is dated at midnight of its own due date and applied
    to the wallets before the due date advances.
    Inactive and manual rules are returned untouched.
    """
    current_wallets = tuple(wallets)
    if not rule.active or not rule.auto_pay:
        return RuleCatchUp(rule=rule, wallets=current_wallets)

    due = rule.next_due_date
    generated = []
    iterations = 0

    while due <= today and iterations < MAX_CATCH_UP_ITERATIONS:
        iterations += 1
        tx = _occurrence(
            rule,
            datetime.combine(due, time.min),
            f"{rule.description}{AUTO_SUFFIX}",
            id_factory,
        )
        generated.append(tx)
        current_wallets = apply_transaction(current_wallets, tx)
        due = advance_due_date(due, rule.frequency, rule.original_day)

    if not iterations:
        return RuleCatchUp(rule=rule, wallets=current_wallets)

    return RuleCatchUp(
        rule=rule.model_copy(update={"next_due_date": due}),
        transactions=tuple(generated),
        wallets=current_wallets,
        iterations=iterations,
        cap_reached=iterations >= MAX_CATCH_UP_ITERATIONS and due <= today,
    )


def process_recurring_rules(
    rules: Sequence[RecurringRule],
    wallets: Sequence[Wallet],
    today: date,
    id_factory: IdFactory = generate_id,
) -> RecurringRunResult:
    """Run catch-up over every rule, threading the wallets through."""
    current_wallets = tuple(wallets)
    updated_rules = []
    new_transactions: list[Transaction] = []
    iterations_by_rule = {}
    capped = []

    for rule in rules:
        outcome = catch_up_rule(rule, current_wallets, today, id_factory)
        updated_rules.append(outcome.rule)
        current_wallets = outcome.wallets
        new_transactions.extend(outcome.transactions)
        if outcome.iterations:
            iterations_by_rule[rule.id] = outcome.iterations
        if outcome.cap_reached:
            capped.append(rule.id)

    return RecurringRunResult(
        rules=tuple(updated_rules),
        new_transactions=tuple(new_transactions),
        wallets=current_wallets,
        iterations_by_rule=iterations_by_rule,
        capped_rule_ids=tuple(capped),
    )


def confirm_occurrence(
    rule: RecurringRule,
    wallets: Sequence[Wallet],
    now: datetime,
    id_factory: IdFactory = generate_id,
) -> RuleCatchUp:
    """
    Record one user-confirmed occurrence.

    The transaction is dated now, and next_due_date moves exactly one
    step from its previous value however overdue the rule was.
    """
    tx = _occurrence(rule, now, rule.description, id_factory)
    next_due = advance_due_date(rule.next_due_date, rule.frequency, rule.original_day)
    return RuleCatchUp(
        rule=rule.model_copy(update={"next_due_date": next_due}),
        transactions=(tx,),
        wallets=apply_transaction(wallets, tx),
        iterations=1,
    )


def upcoming_items(
    rules: Sequence[RecurringRule],
    today: date,
    lookahead_days: int = 7,
) -> list[RecurringRule]:
    """
    Active rules due within the lookahead window, soonest first.

    Overdue rules are included: they still need action.
    """
    limit = today + timedelta(days=lookahead_days)
    due_soon = [rule for rule in rules if rule.active and rule.next_due_date <= limit]
    return sorted(due_soon, key=lambda rule: rule.next_due_date)

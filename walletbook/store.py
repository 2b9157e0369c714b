"""
Ledger Store

This module ties together all the components and owns the one mutable
thing in the system: the current LedgerSnapshot.

Every command follows the same path:
1. Validate (LedgerValidator, integrity guards)
2. Compute the next snapshot with pure functions (balances, scheduler)
3. Replace the snapshot in a single assignment
4. Persist it, request a mirror sync, log one structured event

DESIGN DECISION: The store enforces the boundaries:
- A rejected command never mutates anything
- Balances only ever change through apply/revert/replace
- Nothing outside the store gets a mutable reference to the snapshot

Expected failures come back as CommandResult values. The only thing
that can raise out of a command is a programming error.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from pydantic import ValidationError

from walletbook.config import LedgerSettings, Settings, get_settings
from walletbook.export import generate_csv
from walletbook.ledger import (
    apply_transaction,
    find_balance_drift,
    replace_transaction,
    revert_transaction,
)
from walletbook.metrics import (
    budget_status,
    business_metrics,
    calculate_safe_to_spend,
    category_breakdown,
    financial_health,
    monthly_summary,
    total_balance,
)
from walletbook.models import (
    BalanceDrift,
    Budget,
    BudgetStatus,
    BusinessMetrics,
    Category,
    CategorySpending,
    CommandErrorKind,
    CommandResult,
    FinancialHealthMetrics,
    LedgerSnapshot,
    MonthlySummary,
    RecurringRule,
    RecurringRuleDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
    UserIdentity,
    ValidationIssue,
    Wallet,
    WalletKind,
    generate_id,
)
from walletbook.money import ZERO, AmountLike, sanitize
from walletbook.observability import configure_logging, create_correlation_id, get_logger
from walletbook.scheduler import (
    RecurringRunResult,
    confirm_occurrence,
    process_recurring_rules,
    upcoming_items,
)
from walletbook.services.mirror import (
    GoogleSheetsMirror,
    RemoteMirrorInterface,
    SyncCoordinator,
)
from walletbook.services.storage import (
    JsonFileSnapshotStorage,
    SnapshotCorruptError,
    SnapshotStorageInterface,
    StorageError,
    dump_backup,
    load_backup,
)
from walletbook.validation import (
    LedgerValidator,
    category_delete_blockers,
    wallet_delete_blockers,
)

logger = get_logger("walletbook.store")

PIN_LENGTH = 4
ADJUSTMENT_DESCRIPTION = "Ajuste Manual de Saldo"


def _issues_from_error(error: ValidationError) -> list[ValidationIssue]:
    """Turn a pydantic ValidationError into ledger validation issues."""
    return [
        ValidationIssue(
            field=".".join(str(part) for part in err["loc"]) or "input",
            issue_type=err["type"],
            message=err["msg"],
            severity="error",
        )
        for err in error.errors()
    ]


def _newest_first(transactions) -> tuple[Transaction, ...]:
    return tuple(sorted(transactions, key=lambda t: t.date, reverse=True))


class LedgerStore:
    """
    Constructible state container for one user's ledger.

    Commands return CommandResult. Queries are computed on demand from
    the current snapshot and never mutate it.
    """

    def __init__(
        self,
        snapshot: Optional[LedgerSnapshot] = None,
        storage: Optional[SnapshotStorageInterface] = None,
        sync: Optional[SyncCoordinator] = None,
        settings: Optional[LedgerSettings] = None,
        validator: Optional[LedgerValidator] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = generate_id,
    ):
        self._snapshot = snapshot or LedgerSnapshot()
        self._storage = storage
        self._sync = sync or SyncCoordinator()
        self._settings = settings or LedgerSettings()
        self._validator = validator or LedgerValidator()
        self._clock = clock
        self._id_factory = id_factory
        self._is_dirty = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def wallets(self) -> tuple[Wallet, ...]:
        return self._snapshot.wallets

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._snapshot.transactions

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._snapshot.categories

    @property
    def recurring_rules(self) -> tuple[RecurringRule, ...]:
        return self._snapshot.recurring_rules

    @property
    def budgets(self) -> tuple[Budget, ...]:
        return self._snapshot.budgets

    @property
    def is_dirty(self) -> bool:
        """True while the current snapshot has not reached storage."""
        return self._is_dirty

    @property
    def sync(self) -> SyncCoordinator:
        return self._sync

    @property
    def is_online(self) -> bool:
        return self._sync.is_online

    @property
    def is_syncing(self) -> bool:
        return self._sync.is_syncing

    @property
    def last_synced(self) -> Optional[datetime]:
        return self._sync.last_synced

    def _today(self) -> date:
        return self._clock().date()

    # =========================================================================
    # COMMIT / PERSIST
    # =========================================================================

    def _log(self, command: str):
        return logger.bind(
            command=command,
            correlation_id=str(create_correlation_id()),
        )

    def _persist(self, log) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_snapshot(self._snapshot)
        except StorageError as e:
            log.error("snapshot_persist_failed", error=str(e))
            return
        self._is_dirty = False

    def _commit(self, snapshot: LedgerSnapshot, log, event: str, **fields) -> None:
        self._snapshot = snapshot
        self._is_dirty = True
        self._persist(log)
        self._sync.request_sync(snapshot)
        log.info(event, **fields)

    def _reject(
        self,
        log,
        kind: CommandErrorKind,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
        entity_id: Optional[str] = None,
    ) -> CommandResult:
        event = "delete_blocked" if kind == CommandErrorKind.REFERENTIAL_INTEGRITY else "command_rejected"
        log.warning(
            event,
            error_kind=kind.value,
            entity_id=entity_id,
            reason=message,
            issue_types=[issue.issue_type for issue in issues or []],
        )
        return CommandResult.rejected(kind, message, issues, entity_id)

    def _not_found(self, log, what: str, entity_id: str) -> CommandResult:
        return self._reject(
            log,
            CommandErrorKind.NOT_FOUND,
            f"{what} {entity_id} not found",
            entity_id=entity_id,
        )

    def _with_catch_up(
        self,
        snapshot: LedgerSnapshot,
        today: date,
    ) -> tuple[LedgerSnapshot, RecurringRunResult]:
        run = process_recurring_rules(
            snapshot.recurring_rules,
            snapshot.wallets,
            today,
            self._id_factory,
        )
        if not run.generated_count:
            return snapshot, run
        return snapshot.model_copy(update={
            "recurring_rules": run.rules,
            "wallets": run.wallets,
            "transactions": _newest_first(run.new_transactions + snapshot.transactions),
        }), run

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def _build_transaction(self, draft: TransactionDraft, transaction_id: str) -> Transaction:
        is_transfer = draft.type == TransactionType.TRANSFER
        return Transaction(
            id=transaction_id,
            amount=sanitize(draft.amount),
            description=draft.description or "",
            date=draft.date or self._clock(),
            category_id=draft.category_id,
            wallet_id=draft.wallet_id,
            transfer_to_wallet_id=draft.transfer_to_wallet_id if is_transfer else None,
            type=draft.type,
            is_business=bool(draft.is_business),
            is_recurring=bool(draft.is_recurring),
        )

    def _insert_transaction(self, tx: Transaction, log, event: str, **fields) -> None:
        snapshot = self._snapshot.model_copy(update={
            "transactions": (tx,) + self._snapshot.transactions,
            "wallets": apply_transaction(self._snapshot.wallets, tx),
        })
        self._commit(
            snapshot, log, event,
            transaction_id=tx.id,
            type=tx.type.value,
            amount=str(tx.amount),
            **fields,
        )

    def add_transaction(self, draft: TransactionDraft) -> CommandResult:
        """Record a new transaction and apply it to the wallets."""
        log = self._log("add_transaction")

        validation = self._validator.validate(draft, self._snapshot)
        if not validation.is_valid:
            return self._reject(
                log,
                CommandErrorKind.VALIDATION,
                self._validator.get_user_friendly_summary(validation),
                validation.issues,
            )

        tx = self._build_transaction(draft, self._id_factory())
        self._insert_transaction(tx, log, "transaction_added")
        return CommandResult.ok(
            "Transaction added",
            entity_id=tx.id,
            generated_count=1,
            issues=validation.issues,
        )

    def update_transaction(self, transaction_id: str, changes: TransactionDraft) -> CommandResult:
        """
        Edit a transaction as revert-old then apply-new.

        Fields left as None in changes keep their current value.
        """
        log = self._log("update_transaction")

        old = self._snapshot.find_transaction(transaction_id)
        if old is None:
            return self._not_found(log, "Transaction", transaction_id)

        merged = TransactionDraft.model_validate({
            **old.model_dump(exclude={"id"}),
            **changes.model_dump(exclude_none=True),
        })
        validation = self._validator.validate(merged, self._snapshot)
        if not validation.is_valid:
            return self._reject(
                log,
                CommandErrorKind.VALIDATION,
                self._validator.get_user_friendly_summary(validation),
                validation.issues,
                entity_id=transaction_id,
            )

        new = self._build_transaction(merged, old.id)
        snapshot = self._snapshot.model_copy(update={
            "transactions": tuple(
                new if t.id == transaction_id else t
                for t in self._snapshot.transactions
            ),
            "wallets": replace_transaction(self._snapshot.wallets, old, new),
        })
        self._commit(
            snapshot, log, "transaction_updated",
            transaction_id=transaction_id,
            old_amount=str(old.amount),
            new_amount=str(new.amount),
        )
        return CommandResult.ok(
            "Transaction updated",
            entity_id=transaction_id,
            issues=validation.issues,
        )

    def delete_transaction(self, transaction_id: str) -> CommandResult:
        """Remove a transaction and revert its balance impact."""
        log = self._log("delete_transaction")

        tx = self._snapshot.find_transaction(transaction_id)
        if tx is None:
            return self._not_found(log, "Transaction", transaction_id)

        snapshot = self._snapshot.model_copy(update={
            "transactions": tuple(t for t in self._snapshot.transactions if t.id != transaction_id),
            "wallets": revert_transaction(self._snapshot.wallets, tx),
        })
        self._commit(snapshot, log, "transaction_deleted", transaction_id=transaction_id)
        return CommandResult.ok("Transaction deleted", entity_id=transaction_id)

    # =========================================================================
    # RECURRING RULES
    # =========================================================================

    def add_recurring_rule(self, draft: RecurringRuleDraft) -> CommandResult:
        """
        Create a recurring rule, then catch up immediately.

        A rule whose first due date is today (the default) with auto_pay
        generates its first transaction right away.
        """
        log = self._log("add_recurring_rule")

        validation = self._validator.validate(draft, self._snapshot)
        if not validation.is_valid:
            return self._reject(
                log,
                CommandErrorKind.VALIDATION,
                self._validator.get_user_friendly_summary(validation),
                validation.issues,
            )

        today = self._today()
        first_due = draft.first_due_date or today
        is_transfer = draft.type == TransactionType.TRANSFER
        rule = RecurringRule(
            id=self._id_factory(),
            amount=sanitize(draft.amount),
            description=draft.description or "",
            category_id=draft.category_id,
            wallet_id=draft.wallet_id,
            transfer_to_wallet_id=draft.transfer_to_wallet_id if is_transfer else None,
            type=draft.type,
            frequency=draft.frequency,
            next_due_date=first_due,
            original_day=draft.original_day or first_due.day,
            is_business=draft.is_business,
            auto_pay=draft.auto_pay,
            reminder_days=(
                draft.reminder_days
                if draft.reminder_days is not None
                else self._settings.default_reminder_days
            ),
        )

        snapshot = self._snapshot.model_copy(update={
            "recurring_rules": self._snapshot.recurring_rules + (rule,),
        })
        snapshot, run = self._with_catch_up(snapshot, today)
        self._commit(
            snapshot, log, "recurring_rule_added",
            rule_id=rule.id,
            frequency=rule.frequency.value,
            next_due_date=snapshot.find_rule(rule.id).next_due_date.isoformat(),
            generated_count=run.generated_count,
        )
        return CommandResult.ok(
            "Recurring rule added",
            entity_id=rule.id,
            generated_count=run.generated_count,
            issues=validation.issues,
        )

    def set_recurring_rule_active(self, rule_id: str, active: bool) -> CommandResult:
        """Pause or resume a rule. Paused rules never generate anything."""
        log = self._log("set_recurring_rule_active")

        rule = self._snapshot.find_rule(rule_id)
        if rule is None:
            return self._not_found(log, "Recurring rule", rule_id)

        updated = rule.model_copy(update={"active": active})
        snapshot = self._snapshot.model_copy(update={
            "recurring_rules": tuple(
                updated if r.id == rule_id else r
                for r in self._snapshot.recurring_rules
            ),
        })
        self._commit(snapshot, log, "recurring_rule_toggled", rule_id=rule_id, active=active)
        return CommandResult.ok(
            "Recurring rule resumed" if active else "Recurring rule paused",
            entity_id=rule_id,
        )

    def delete_recurring_rule(self, rule_id: str) -> CommandResult:
        """Delete a rule. Transactions it already generated stay."""
        log = self._log("delete_recurring_rule")

        if self._snapshot.find_rule(rule_id) is None:
            return self._not_found(log, "Recurring rule", rule_id)

        snapshot = self._snapshot.model_copy(update={
            "recurring_rules": tuple(r for r in self._snapshot.recurring_rules if r.id != rule_id),
        })
        self._commit(snapshot, log, "recurring_rule_deleted", rule_id=rule_id)
        return CommandResult.ok("Recurring rule deleted", entity_id=rule_id)

    def confirm_recurring_rule(self, rule_id: str) -> CommandResult:
        """
        Manually confirm one occurrence of a rule.

        Generates exactly one transaction dated now and advances the due
        date by one step, however overdue the rule is.
        """
        log = self._log("confirm_recurring_rule")

        rule = self._snapshot.find_rule(rule_id)
        if rule is None:
            return self._not_found(log, "Recurring rule", rule_id)
        if not rule.active:
            return self._reject(
                log,
                CommandErrorKind.VALIDATION,
                "Paused rules cannot be confirmed",
                [ValidationIssue(
                    field="active",
                    issue_type="inactive_rule",
                    message="This recurring rule is paused",
                    severity="error",
                    suggested_fix="Resume the rule first",
                )],
                entity_id=rule_id,
            )

        outcome = confirm_occurrence(rule, self._snapshot.wallets, self._clock(), self._id_factory)
        tx = outcome.transactions[0]
        snapshot = self._snapshot.model_copy(update={
            "recurring_rules": tuple(
                outcome.rule if r.id == rule_id else r
                for r in self._snapshot.recurring_rules
            ),
            "wallets": outcome.wallets,
            "transactions": (tx,) + self._snapshot.transactions,
        })
        self._commit(
            snapshot, log, "recurring_rule_confirmed",
            rule_id=rule_id,
            transaction_id=tx.id,
            next_due_date=outcome.rule.next_due_date.isoformat(),
        )
        return CommandResult.ok(
            "Payment confirmed",
            entity_id=tx.id,
            generated_count=1,
        )

    def process_recurring_rules(self, today: Optional[date] = None) -> CommandResult:
        """
        Catch up every auto_pay rule that is due (the load/startup tick).

        Safe to call any number of times. Nothing is persisted when
        nothing was due.
        """
        log = self._log("process_recurring_rules")

        snapshot, run = self._with_catch_up(self._snapshot, today or self._today())
        if not run.generated_count:
            log.debug("recurring_nothing_due")
            return CommandResult.ok("Nothing due", generated_count=0)

        self._commit(
            snapshot, log, "recurring_caught_up",
            generated_count=run.generated_count,
            iterations_by_rule=run.iterations_by_rule,
            capped_rule_ids=list(run.capped_rule_ids),
        )
        return CommandResult.ok(
            f"{run.generated_count} recurring transaction(s) generated",
            generated_count=run.generated_count,
        )

    # =========================================================================
    # WALLETS
    # =========================================================================

    def add_wallet(
        self,
        name: str,
        initial_balance: AmountLike = 0,
        currency: Optional[str] = None,
        kind: WalletKind = WalletKind.CASH,
    ) -> CommandResult:
        """Create a wallet whose balance starts at its initial balance."""
        log = self._log("add_wallet")

        issues = self._validator.validate_amount(
            initial_balance,
            field="initial_balance",
            allow_zero=True,
            allow_negative=True,
        )
        if issues:
            return self._reject(log, CommandErrorKind.VALIDATION, issues[0].message, issues)

        baseline = sanitize(initial_balance)
        try:
            wallet = Wallet(
                id=self._id_factory(),
                name=name,
                balance=baseline,
                initial_balance=baseline,
                currency=currency or self._settings.default_currency,
                kind=kind,
            )
        except ValidationError as e:
            issues = _issues_from_error(e)
            return self._reject(log, CommandErrorKind.VALIDATION, issues[0].message, issues)

        snapshot = self._snapshot.model_copy(update={
            "wallets": self._snapshot.wallets + (wallet,),
        })
        self._commit(snapshot, log, "wallet_added", wallet_id=wallet.id, kind=wallet.kind.value)
        return CommandResult.ok("Wallet added", entity_id=wallet.id)

    def update_wallet(
        self,
        wallet_id: str,
        name: Optional[str] = None,
        currency: Optional[str] = None,
        kind: Optional[WalletKind] = None,
    ) -> CommandResult:
        """Rename or reclassify a wallet. Balances cannot be edited here."""
        log = self._log("update_wallet")

        wallet = self._snapshot.find_wallet(wallet_id)
        if wallet is None:
            return self._not_found(log, "Wallet", wallet_id)

        updates = {
            key: value
            for key, value in {"name": name, "currency": currency, "kind": kind}.items()
            if value is not None
        }
        try:
            updated = Wallet.model_validate({**wallet.model_dump(), **updates})
        except ValidationError as e:
            issues = _issues_from_error(e)
            return self._reject(log, CommandErrorKind.VALIDATION, issues[0].message, issues, wallet_id)

        snapshot = self._snapshot.model_copy(update={
            "wallets": tuple(updated if w.id == wallet_id else w for w in self._snapshot.wallets),
        })
        self._commit(snapshot, log, "wallet_updated", wallet_id=wallet_id, fields=sorted(updates))
        return CommandResult.ok("Wallet updated", entity_id=wallet_id)

    def reconcile_wallet(self, wallet_id: str, actual_balance: AmountLike) -> CommandResult:
        """
        Bring a wallet's balance to the amount the user actually holds.

        The difference is recorded as an uncategorized income or expense
        adjustment dated now, so the balance stays derived from history.
        A wallet that already matches is left alone.
        """
        log = self._log("reconcile_wallet")

        wallet = self._snapshot.find_wallet(wallet_id)
        if wallet is None:
            return self._not_found(log, "Wallet", wallet_id)

        issues = self._validator.validate_amount(
            actual_balance,
            field="actual_balance",
            allow_zero=True,
            allow_negative=True,
        )
        if issues:
            return self._reject(log, CommandErrorKind.VALIDATION, issues[0].message, issues, wallet_id)

        diff = sanitize(sanitize(actual_balance) - wallet.balance)
        if diff == ZERO:
            log.debug("wallet_already_reconciled", wallet_id=wallet_id)
            return CommandResult.ok("Balance already matches", entity_id=wallet_id)

        tx = Transaction(
            id=self._id_factory(),
            amount=abs(diff),
            description=ADJUSTMENT_DESCRIPTION,
            date=self._clock(),
            wallet_id=wallet_id,
            type=TransactionType.INCOME if diff > ZERO else TransactionType.EXPENSE,
        )
        self._insert_transaction(tx, log, "wallet_reconciled", wallet_id=wallet_id)
        return CommandResult.ok(
            "Balance reconciled",
            entity_id=tx.id,
            generated_count=1,
        )

    def delete_wallet(self, wallet_id: str) -> CommandResult:
        """Delete a wallet nothing references. At least one wallet always remains."""
        log = self._log("delete_wallet")

        if self._snapshot.find_wallet(wallet_id) is None:
            return self._not_found(log, "Wallet", wallet_id)

        blockers = wallet_delete_blockers(self._snapshot, wallet_id)
        if blockers:
            return self._reject(
                log,
                CommandErrorKind.REFERENTIAL_INTEGRITY,
                "; ".join(issue.message for issue in blockers),
                blockers,
                wallet_id,
            )

        snapshot = self._snapshot.model_copy(update={
            "wallets": tuple(w for w in self._snapshot.wallets if w.id != wallet_id),
        })
        self._commit(snapshot, log, "wallet_deleted", wallet_id=wallet_id)
        return CommandResult.ok("Wallet deleted", entity_id=wallet_id)

    # =========================================================================
    # CATEGORIES AND BUDGETS
    # =========================================================================

    def add_category(
        self,
        name: str,
        type: TransactionType,
        icon: str = "Tag",
        color: str = "text-slate-400",
    ) -> CommandResult:
        log = self._log("add_category")

        try:
            category = Category(
                id=self._id_factory(),
                name=name,
                icon=icon,
                color=color,
                type=type,
            )
        except ValidationError as e:
            issues = _issues_from_error(e)
            return self._reject(log, CommandErrorKind.VALIDATION, issues[0].message, issues)

        snapshot = self._snapshot.model_copy(update={
            "categories": self._snapshot.categories + (category,),
        })
        self._commit(snapshot, log, "category_added", category_id=category.id)
        return CommandResult.ok("Category added", entity_id=category.id)

    def delete_category(self, category_id: str) -> CommandResult:
        """Delete an unreferenced category together with its budget."""
        log = self._log("delete_category")

        if self._snapshot.find_category(category_id) is None:
            return self._not_found(log, "Category", category_id)

        blockers = category_delete_blockers(self._snapshot, category_id)
        if blockers:
            return self._reject(
                log,
                CommandErrorKind.REFERENTIAL_INTEGRITY,
                "; ".join(issue.message for issue in blockers),
                blockers,
                category_id,
            )

        snapshot = self._snapshot.model_copy(update={
            "categories": tuple(c for c in self._snapshot.categories if c.id != category_id),
            "budgets": tuple(b for b in self._snapshot.budgets if b.category_id != category_id),
        })
        self._commit(snapshot, log, "category_deleted", category_id=category_id)
        return CommandResult.ok("Category deleted", entity_id=category_id)

    def set_budget(self, category_id: str, amount: AmountLike) -> CommandResult:
        """Create or replace the monthly budget of a category."""
        log = self._log("set_budget")

        issues = self._validator.validate_amount(amount)
        if self._snapshot.find_category(category_id) is None:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_reference",
                message=f"Category {category_id} does not exist",
                severity="error",
            ))
        if issues:
            return self._reject(log, CommandErrorKind.VALIDATION, issues[0].message, issues)

        limit = sanitize(amount)
        existing = next((b for b in self._snapshot.budgets if b.category_id == category_id), None)
        if existing is not None:
            budget = existing.model_copy(update={"amount": limit})
            budgets = tuple(budget if b.id == existing.id else b for b in self._snapshot.budgets)
        else:
            budget = Budget(id=self._id_factory(), category_id=category_id, amount=limit)
            budgets = self._snapshot.budgets + (budget,)

        snapshot = self._snapshot.model_copy(update={"budgets": budgets})
        self._commit(
            snapshot, log, "budget_set",
            budget_id=budget.id,
            category_id=category_id,
            amount=str(limit),
        )
        return CommandResult.ok("Budget saved", entity_id=budget.id)

    def delete_budget(self, budget_id: str) -> CommandResult:
        log = self._log("delete_budget")

        if not any(b.id == budget_id for b in self._snapshot.budgets):
            return self._not_found(log, "Budget", budget_id)

        snapshot = self._snapshot.model_copy(update={
            "budgets": tuple(b for b in self._snapshot.budgets if b.id != budget_id),
        })
        self._commit(snapshot, log, "budget_deleted", budget_id=budget_id)
        return CommandResult.ok("Budget deleted", entity_id=budget_id)

    # =========================================================================
    # PROFILE AND SESSION
    # =========================================================================

    def _set_profile(self, command: str, **fields) -> CommandResult:
        log = self._log(command)
        snapshot = self._snapshot.model_copy(update=fields)
        # Never log the PIN itself
        self._commit(snapshot, log, "profile_updated", fields=sorted(fields))
        return CommandResult.ok("Profile updated")

    def set_user(self, user: Optional[UserIdentity]) -> CommandResult:
        return self._set_profile("set_user", user=user)

    def set_has_onboarded(self, value: bool) -> CommandResult:
        return self._set_profile("set_has_onboarded", has_onboarded=value)

    def set_security_pin(self, pin: Optional[str]) -> CommandResult:
        """Set a 4-digit PIN, or clear it with None."""
        if pin is not None and (len(pin) != PIN_LENGTH or not pin.isdigit()):
            return self._reject(
                self._log("set_security_pin"),
                CommandErrorKind.VALIDATION,
                f"PIN must be exactly {PIN_LENGTH} digits",
                [ValidationIssue(
                    field="security_pin",
                    issue_type="invalid_format",
                    message=f"PIN must be exactly {PIN_LENGTH} digits",
                    severity="error",
                )],
            )
        return self._set_profile("set_security_pin", security_pin=pin)

    def set_biometrics_enabled(self, enabled: bool) -> CommandResult:
        return self._set_profile("set_biometrics_enabled", biometrics_enabled=enabled)

    def set_online_status(self, online: bool) -> None:
        """Connectivity is session state; it is not part of the snapshot."""
        self._sync.set_online(online)

    def reset(self) -> CommandResult:
        """Wipe everything back to a fresh ledger, including persisted data."""
        log = self._log("reset")

        self._snapshot = LedgerSnapshot()
        self._is_dirty = False
        if self._storage is not None:
            try:
                self._storage.clear()
            except StorageError as e:
                self._is_dirty = True
                log.error("snapshot_clear_failed", error=str(e))
        log.info("ledger_reset")
        return CommandResult.ok("Ledger reset")

    # =========================================================================
    # BACKUP
    # =========================================================================

    def export_backup(self) -> str:
        """Full snapshot as backup JSON."""
        return dump_backup(self._snapshot)

    def restore_backup(self, text: str) -> CommandResult:
        """
        Replace the whole ledger with a backup.

        The backup is taken as-is. Wallets whose stored balance does not
        match their history are reported in the logs, not corrected.
        """
        log = self._log("restore_backup")

        try:
            snapshot = load_backup(text)
        except SnapshotCorruptError as e:
            return self._reject(
                log,
                CommandErrorKind.VALIDATION,
                "Backup could not be read",
                [ValidationIssue(
                    field="backup",
                    issue_type="corrupt_backup",
                    message=str(e),
                    severity="error",
                )],
            )

        self._commit(
            snapshot, log, "backup_restored",
            wallet_count=len(snapshot.wallets),
            transaction_count=len(snapshot.transactions),
        )
        drifts = find_balance_drift(snapshot.wallets, snapshot.transactions)
        if drifts:
            log.warning(
                "balance_drift_detected",
                wallet_ids=[d.wallet_id for d in drifts],
            )
        return CommandResult.ok("Backup restored")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def total_balance(self) -> Decimal:
        return total_balance(self._snapshot.wallets)

    def upcoming_items(self, today: Optional[date] = None) -> list[RecurringRule]:
        """Active rules due within the configured lookahead (overdue included)."""
        return upcoming_items(
            self._snapshot.recurring_rules,
            today or self._today(),
            self._settings.upcoming_lookahead_days,
        )

    def safe_to_spend(self, today: Optional[date] = None) -> Decimal:
        return calculate_safe_to_spend(
            self.total_balance(),
            self._snapshot.recurring_rules,
            today or self._today(),
        )

    def health(self, today: Optional[date] = None) -> FinancialHealthMetrics:
        return financial_health(self._snapshot.transactions, today or self._today())

    def business_metrics(self, year: Optional[int] = None, month: Optional[int] = None) -> BusinessMetrics:
        today = self._today()
        return business_metrics(
            self._snapshot.transactions,
            year or today.year,
            month or today.month,
        )

    def monthly_summary(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        wallet_id: Optional[str] = None,
    ) -> MonthlySummary:
        today = self._today()
        return monthly_summary(
            self._snapshot.transactions,
            self._snapshot.wallets,
            year or today.year,
            month or today.month,
            wallet_id,
        )

    def budget_status(self, today: Optional[date] = None) -> list[BudgetStatus]:
        return budget_status(
            self._snapshot.budgets,
            self._snapshot.categories,
            self._snapshot.transactions,
            today or self._today(),
        )

    def category_breakdown(self, year: Optional[int] = None, month: Optional[int] = None) -> list[CategorySpending]:
        today = self._today()
        return category_breakdown(
            self._snapshot.categories,
            self._snapshot.transactions,
            year or today.year,
            month or today.month,
        )

    def export_csv(self) -> str:
        return generate_csv(
            self._snapshot.transactions,
            self._snapshot.wallets,
            self._snapshot.categories,
        )

    def find_balance_drift(self) -> list[BalanceDrift]:
        return find_balance_drift(self._snapshot.wallets, self._snapshot.transactions)


def create_store(
    settings: Optional[Settings] = None,
    storage: Optional[SnapshotStorageInterface] = None,
    mirror: Optional[RemoteMirrorInterface] = None,
    clock: Callable[[], datetime] = datetime.now,
    id_factory: Callable[[], str] = generate_id,
) -> LedgerStore:
    """
    Factory function to create a ready-to-use store.

    Loads the persisted snapshot (or starts fresh), wires the remote
    mirror if one is configured and runs the startup catch-up.

    Args:
        settings: Root settings; defaults to get_settings()
        storage: Snapshot storage; defaults to the JSON file in data_dir
        mirror: Remote mirror; defaults to the configured backend

    Raises:
        SnapshotCorruptError: If a snapshot exists but cannot be read.
            Starting fresh would overwrite it on the next command.
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger
    sync_settings = settings.sync
    configure_logging(ledger_settings.log_level)

    if storage is None:
        storage = JsonFileSnapshotStorage(ledger_settings.snapshot_path)

    try:
        snapshot = storage.load_snapshot()
    except StorageError as e:
        logger.error("snapshot_load_failed", error=str(e), error_type=type(e).__name__)
        raise

    if mirror is None and sync_settings.mirror_backend == "google_sheets":
        try:
            mirror = GoogleSheetsMirror()
        except ValidationError as e:
            # Mirror not configured - continue without it
            logger.warning("mirror_unavailable", backend="google_sheets", error=str(e))

    sync = SyncCoordinator(
        mirror,
        latency_seconds=sync_settings.latency_seconds,
        clock=clock,
    )
    store = LedgerStore(
        snapshot=snapshot,
        storage=storage,
        sync=sync,
        settings=ledger_settings,
        clock=clock,
        id_factory=id_factory,
    )
    logger.info(
        "store_loaded",
        fresh=snapshot is None,
        wallet_count=len(store.wallets),
        transaction_count=len(store.transactions),
    )
    store.process_recurring_rules()
    return store

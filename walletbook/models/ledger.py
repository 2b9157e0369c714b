"""
Core Ledger Models for Walletbook

These models define the strict schemas for every entity the ledger owns.
They are designed to:
1. Enforce type safety at runtime
2. Behave like values (frozen, replaced wholesale, never patched)
3. Round-trip losslessly through JSON for persistence
4. Keep money in cent-quantized Decimals

DESIGN DECISION: Entities are frozen pydantic models and collections are
tuples. The store can hand a snapshot to any calculator without worrying
that someone will mutate it behind its back.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from walletbook.money import ZERO, sanitize

SNAPSHOT_VERSION = 2


def generate_id() -> str:
    """Create a new entity identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Frequency(str, Enum):
    """How often a recurring rule comes due."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class WalletKind(str, Enum):
    """What kind of account a wallet represents."""
    CASH = "cash"
    DEBIT = "debit"
    CREDIT = "credit"
    SAVINGS = "savings"


# =============================================================================
# ENTITIES
# =============================================================================

class Wallet(BaseModel):
    """
    An account holding a monetary balance.

    CRITICAL: balance is derived. It equals initial_balance plus the
    signed impact of every transaction touching this wallet, and it is
    only ever changed by the balance ledger.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    balance: Decimal = Field(
        default=ZERO,
        description="Current balance (derived)"
    )
    initial_balance: Decimal = Field(
        default=ZERO,
        description="Baseline the balance is derived from"
    )
    currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="ISO currency code"
    )
    kind: WalletKind = Field(
        default=WalletKind.CASH,
        description="Account kind"
    )

    @field_validator('balance', 'initial_balance')
    @classmethod
    def quantize_money(cls, v: Decimal) -> Decimal:
        return sanitize(v)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Transaction(BaseModel):
    """
    A single monetary event affecting one wallet, or two for transfers.

    amount is always a positive magnitude; the sign comes from the type.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude of the transaction"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the transaction happened"
    )
    category_id: Optional[str] = Field(
        default=None,
        description="Category (absent only for transfers)"
    )
    wallet_id: str = Field(
        ...,
        min_length=1,
        description="Origin wallet"
    )
    transfer_to_wallet_id: Optional[str] = Field(
        default=None,
        description="Destination wallet (transfers only)"
    )
    type: TransactionType
    is_business: bool = False
    is_recurring: bool = False

    @field_validator('amount')
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        """Amounts are stored at cent precision and must stay positive."""
        v = sanitize(v)
        if v <= ZERO:
            raise ValueError("Amount must be at least one cent")
        return v

    @field_validator('date')
    @classmethod
    def naive_local_date(cls, v: datetime) -> datetime:
        """Stored timestamps are naive local time so they always sort together."""
        if v.tzinfo is None:
            return v
        return v.astimezone().replace(tzinfo=None)

    @model_validator(mode='after')
    def validate_transfer_destination(self) -> 'Transaction':
        """A destination wallet is required for transfers and only for them."""
        if self.type == TransactionType.TRANSFER:
            if not self.transfer_to_wallet_id:
                raise ValueError("Transfer requires a destination wallet")
        elif self.transfer_to_wallet_id:
            raise ValueError("Only transfers can have a destination wallet")
        return self


class RecurringRule(BaseModel):
    """
    A template that periodically produces transactions.

    original_day is the anchor day of month captured at creation.
    It is never lowered, so a rule anchored on the 31st goes back to
    the 31st after passing through February.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    amount: Decimal = Field(..., gt=0)
    description: str = Field(default="", max_length=480)
    category_id: Optional[str] = None
    wallet_id: str = Field(..., min_length=1)
    transfer_to_wallet_id: Optional[str] = None
    type: TransactionType
    frequency: Frequency
    next_due_date: date
    original_day: int = Field(
        ...,
        ge=1,
        le=31,
        description="Anchor day of month"
    )
    active: bool = True
    is_business: bool = False
    auto_pay: bool = Field(
        default=True,
        description="Generate silently instead of waiting for confirmation"
    )
    reminder_days: int = Field(default=2, ge=0)

    @field_validator('amount')
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        v = sanitize(v)
        if v <= ZERO:
            raise ValueError("Amount must be at least one cent")
        return v

    @model_validator(mode='after')
    def validate_transfer_destination(self) -> 'RecurringRule':
        if self.type == TransactionType.TRANSFER:
            if not self.transfer_to_wallet_id:
                raise ValueError("Transfer requires a destination wallet")
        elif self.transfer_to_wallet_id:
            raise ValueError("Only transfers can have a destination wallet")
        return self


class Category(BaseModel):
    """Lightweight classifier referenced by transactions, rules and budgets."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = "Tag"
    color: str = "text-slate-400"
    type: TransactionType


class Budget(BaseModel):
    """Monthly spending limit for one category."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    category_id: str
    amount: Decimal = Field(..., gt=0)
    period: str = Field(default="monthly", pattern="^monthly$")

    @field_validator('amount')
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        return sanitize(v)


class UserIdentity(BaseModel):
    """Signed-in user, if any. Used only to label the remote mirror."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


# =============================================================================
# DEFAULT DATA
# =============================================================================

def default_categories() -> tuple[Category, ...]:
    """Categories every new ledger starts with."""
    return (
        Category(id="inc1", name="Nómina / Salario", icon="Briefcase", color="text-emerald-400", type=TransactionType.INCOME),
        Category(id="inc2", name="Ventas Extra", icon="TrendingUp", color="text-teal-400", type=TransactionType.INCOME),
        Category(id="inc3", name="Regalos / Otros", icon="Gift", color="text-slate-400", type=TransactionType.INCOME),
        Category(id="exp1", name="Supermercado", icon="ShoppingCart", color="text-blue-400", type=TransactionType.EXPENSE),
        Category(id="exp2", name="Transporte / Gasolina", icon="Car", color="text-orange-400", type=TransactionType.EXPENSE),
        Category(id="exp3", name="Vivienda / Servicios", icon="Home", color="text-purple-400", type=TransactionType.EXPENSE),
        Category(id="exp4", name="Comida Fuera / UberEats", icon="Coffee", color="text-yellow-400", type=TransactionType.EXPENSE),
        Category(id="exp5", name="Suscripciones (Netflix/Spotify)", icon="Tv", color="text-indigo-400", type=TransactionType.EXPENSE),
        Category(id="exp6", name="Salud / Farmacia", icon="Heart", color="text-rose-500", type=TransactionType.EXPENSE),
        Category(id="exp7", name="Entretenimiento / Ocio", icon="Gamepad2", color="text-pink-400", type=TransactionType.EXPENSE),
        Category(id="exp8", name="Deudas / Préstamos", icon="CreditCard", color="text-slate-500", type=TransactionType.EXPENSE),
    )


def default_wallets() -> tuple[Wallet, ...]:
    """Wallets every new ledger starts with."""
    return (
        Wallet(id="w1", name="Efectivo (Billetera)", currency="USD", kind=WalletKind.CASH),
        Wallet(id="w2", name="Cuenta de Nómina", currency="USD", kind=WalletKind.DEBIT),
    )


# =============================================================================
# SNAPSHOT
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    The whole persisted state of one user's ledger.

    CRITICAL: Only the store replaces the snapshot. Everything else
    receives it read-only and returns new values.
    """
    model_config = ConfigDict(frozen=True)

    version: int = SNAPSHOT_VERSION
    wallets: tuple[Wallet, ...] = Field(default_factory=default_wallets)
    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = Field(default_factory=default_categories)
    recurring_rules: tuple[RecurringRule, ...] = ()
    budgets: tuple[Budget, ...] = ()

    has_onboarded: bool = False
    security_pin: Optional[str] = None
    biometrics_enabled: bool = False
    user: Optional[UserIdentity] = None

    def find_wallet(self, wallet_id: Optional[str]) -> Optional[Wallet]:
        return next((w for w in self.wallets if w.id == wallet_id), None)

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def find_category(self, category_id: Optional[str]) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    def find_rule(self, rule_id: str) -> Optional[RecurringRule]:
        return next((r for r in self.recurring_rules if r.id == rule_id), None)


# =============================================================================
# COMMAND INPUTS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    Proposed transaction data from a command.

    All fields are optional: this is what the caller SENT, not what the
    ledger accepts. It goes through LedgerValidator before a Transaction
    is built from it. On edits, None means "keep the current value".
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=True,
        description="May be non-finite here; the validator rejects it"
    )
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[datetime] = None
    category_id: Optional[str] = None
    wallet_id: Optional[str] = None
    transfer_to_wallet_id: Optional[str] = None
    type: Optional[TransactionType] = None
    is_business: Optional[bool] = None
    is_recurring: Optional[bool] = None


class RecurringRuleDraft(BaseModel):
    """Proposed recurring rule data from a command."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(default=None, allow_inf_nan=True)
    description: Optional[str] = Field(default=None, max_length=480)
    category_id: Optional[str] = None
    wallet_id: Optional[str] = None
    transfer_to_wallet_id: Optional[str] = None
    type: Optional[TransactionType] = None
    frequency: Frequency = Frequency.MONTHLY
    first_due_date: Optional[date] = Field(
        default=None,
        description="First occurrence; defaults to today"
    )
    original_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Anchor day; defaults to the first due date's day"
    )
    auto_pay: bool = True
    reminder_days: Optional[int] = Field(default=None, ge=0)
    is_business: bool = False

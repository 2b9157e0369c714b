"""
Wallet Balance Ledger

Pure functions mapping a transaction to signed balance deltas.

INVARIANT: for every wallet,
    balance == initial_balance + sum(impact(tx, wallet.id) for tx in history)
rounded to the cent after each step.

GUARANTEES:
- revert_transaction(apply_transaction(W, tx), tx) == W
- Wallets a transaction does not touch are returned unchanged
- Inputs are never mutated; new tuples are returned
"""

from decimal import Decimal
from typing import Iterable, Sequence

from walletbook.models.ledger import Transaction, TransactionType, Wallet
from walletbook.models.metrics import BalanceDrift
from walletbook.money import ZERO, sanitize


def impact(tx: Transaction, wallet_id: str) -> Decimal:
    """
    Signed effect of a transaction on one wallet.

    transfer: -amount on the origin, +amount on the destination
    income:   +amount on the origin
    expense:  -amount on the origin
    Any other wallet gets zero.
    """
    if tx.type == TransactionType.TRANSFER:
        if tx.wallet_id == wallet_id:
            return -tx.amount
        if tx.transfer_to_wallet_id == wallet_id:
            return tx.amount
        return ZERO

    if tx.wallet_id != wallet_id:
        return ZERO
    return tx.amount if tx.type == TransactionType.INCOME else -tx.amount


def _shift(wallets: Sequence[Wallet], tx: Transaction, direction: int) -> tuple[Wallet, ...]:
    shifted = []
    for wallet in wallets:
        delta = impact(tx, wallet.id)
        if delta == ZERO:
            shifted.append(wallet)
            continue
        new_balance = sanitize(wallet.balance + delta * direction)
        shifted.append(wallet.model_copy(update={"balance": new_balance}))
    return tuple(shifted)


def apply_transaction(wallets: Sequence[Wallet], tx: Transaction) -> tuple[Wallet, ...]:
    """Add a transaction's impact to every wallet it touches."""
    return _shift(wallets, tx, 1)


def revert_transaction(wallets: Sequence[Wallet], tx: Transaction) -> tuple[Wallet, ...]:
    """Remove a transaction's impact. Exact inverse of apply_transaction."""
    return _shift(wallets, tx, -1)


def replace_transaction(
    wallets: Sequence[Wallet],
    old: Transaction,
    new: Transaction,
) -> tuple[Wallet, ...]:
    """
    Edit a transaction as revert-old then apply-new.

    Both steps happen inside this call so the intermediate balances
    are never visible to anyone.
    """
    return apply_transaction(revert_transaction(wallets, old), new)


def recompute_balance(wallet: Wallet, transactions: Iterable[Transaction]) -> Decimal:
    """Balance the wallet should have, re-summed from its baseline."""
    balance = wallet.initial_balance
    for tx in transactions:
        balance = sanitize(balance + impact(tx, wallet.id))
    return balance


def find_balance_drift(
    wallets: Sequence[Wallet],
    transactions: Sequence[Transaction],
) -> list[BalanceDrift]:
    """
    Integrity check: wallets whose stored balance disagrees with history.

    This is the only place balances are re-summed from scratch.
    """
    drifts = []
    for wallet in wallets:
        expected = recompute_balance(wallet, transactions)
        if expected != wallet.balance:
            drifts.append(BalanceDrift(
                wallet_id=wallet.id,
                stored_balance=wallet.balance,
                expected_balance=expected,
            ))
    return drifts

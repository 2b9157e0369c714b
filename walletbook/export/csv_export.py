"""
CSV Export

Produces the spreadsheet-friendly ledger export. The layout is a fixed
contract (column order, localized header, quoting per column), so it is
assembled by hand rather than with the csv module, whose quoting modes
cannot quote some columns and leave others bare.
"""

from datetime import date
from typing import Iterable, Optional

from walletbook.models.ledger import Category, Transaction, TransactionType, Wallet

CSV_HEADERS = [
    "Fecha",
    "Tipo",
    "Descripción",
    "Categoría",
    "Monto",
    "Moneda",
    "Cuenta (Origen)",
    "Cuenta (Destino)",
    "Es Negocio",
    "Es Recurrente",
]

TYPE_LABELS = {
    TransactionType.INCOME: "INGRESO",
    TransactionType.EXPENSE: "GASTO",
    TransactionType.TRANSFER: "TRANSFERENCIA",
}

TRANSFER_CATEGORY_LABEL = "Transferencia Interna"
NO_CATEGORY_LABEL = "Sin Categoría"
UNKNOWN_WALLET_LABEL = "Desconocido"
DEFAULT_CURRENCY = "USD"


def _quoted(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _flag(value: bool) -> str:
    return "SI" if value else "NO"


def _transaction_row(
    tx: Transaction,
    wallets: dict[str, Wallet],
    categories: dict[str, Category],
) -> str:
    wallet: Optional[Wallet] = wallets.get(tx.wallet_id)
    destination = wallets.get(tx.transfer_to_wallet_id) if tx.transfer_to_wallet_id else None
    category = categories.get(tx.category_id) if tx.category_id else None

    if category is not None:
        category_name = category.name
    elif tx.type == TransactionType.TRANSFER:
        category_name = TRANSFER_CATEGORY_LABEL
    else:
        category_name = NO_CATEGORY_LABEL

    return ",".join([
        _quoted(tx.date.date().isoformat()),
        _quoted(TYPE_LABELS[tx.type]),
        _quoted(tx.description),
        _quoted(category_name),
        f"{tx.amount:.2f}",
        wallet.currency if wallet else DEFAULT_CURRENCY,
        _quoted(wallet.name if wallet else UNKNOWN_WALLET_LABEL),
        _quoted(destination.name if destination else ""),
        _flag(tx.is_business),
        _flag(tx.is_recurring),
    ])


def generate_csv(
    transactions: Iterable[Transaction],
    wallets: Iterable[Wallet],
    categories: Iterable[Category],
) -> str:
    """
    Render transactions as CSV text.

    Rows keep the order of the transactions given. Lines are joined
    with a bare newline and there is no trailing newline.
    """
    wallet_index = {w.id: w for w in wallets}
    category_index = {c.id: c for c in categories}

    lines = [",".join(CSV_HEADERS)]
    lines.extend(
        _transaction_row(tx, wallet_index, category_index)
        for tx in transactions
    )
    return "\n".join(lines)


def export_filename(today: date) -> str:
    """Default file name for an export made on the given day."""
    return f"walletbook_libro_{today.isoformat()}.csv"

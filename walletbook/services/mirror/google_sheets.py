"""
Google Sheets Remote Mirror

DESIGN DECISION: Google Sheets is offered as the remote mirror because:
1. Non-technical users can look at their ledger directly in Sheets
2. No server or database to run
3. It doubles as an off-device backup

TRADEOFFS:
- Every push rewrites the three worksheets wholesale (fine at personal scale)
- Nothing is ever read back; the local snapshot stays authoritative
- gspread is blocking, so pushes run in a worker thread
"""

import asyncio
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from walletbook.config import GoogleSheetsSettings, get_settings
from walletbook.models.ledger import (
    LedgerSnapshot,
    RecurringRule,
    Transaction,
    Wallet,
)
from walletbook.services.mirror.interface import (
    ConnectionError,
    MirrorError,
    RemoteMirrorInterface,
)


# Column mappings for Wallets sheet
WALLET_COLUMNS = [
    "id",
    "name",
    "kind",
    "currency",
    "initial_balance",
    "balance",
]

# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "date",
    "type",
    "amount",
    "description",
    "category_id",
    "wallet_id",
    "transfer_to_wallet_id",
    "is_business",
    "is_recurring",
]

# Column mappings for Recurring Rules sheet
RECURRING_COLUMNS = [
    "id",
    "description",
    "type",
    "amount",
    "frequency",
    "next_due_date",
    "original_day",
    "category_id",
    "wallet_id",
    "transfer_to_wallet_id",
    "active",
    "auto_pay",
    "reminder_days",
    "is_business",
]


def _wallet_to_row(wallet: Wallet) -> list:
    """Convert a Wallet to a spreadsheet row."""
    return [
        wallet.id,
        wallet.name,
        wallet.kind.value,
        wallet.currency,
        str(wallet.initial_balance),
        str(wallet.balance),
    ]


def _transaction_to_row(tx: Transaction) -> list:
    """Convert a Transaction to a spreadsheet row."""
    return [
        tx.id,
        tx.date.isoformat(),
        tx.type.value,
        str(tx.amount),
        tx.description,
        tx.category_id or "",
        tx.wallet_id,
        tx.transfer_to_wallet_id or "",
        "TRUE" if tx.is_business else "FALSE",
        "TRUE" if tx.is_recurring else "FALSE",
    ]


def _rule_to_row(rule: RecurringRule) -> list:
    """Convert a RecurringRule to a spreadsheet row."""
    return [
        rule.id,
        rule.description,
        rule.type.value,
        str(rule.amount),
        rule.frequency.value,
        rule.next_due_date.isoformat(),
        rule.original_day,
        rule.category_id or "",
        rule.wallet_id,
        rule.transfer_to_wallet_id or "",
        "TRUE" if rule.active else "FALSE",
        "TRUE" if rule.auto_pay else "FALSE",
        rule.reminder_days,
        "TRUE" if rule.is_business else "FALSE",
    ]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class GoogleSheetsMirror(RemoteMirrorInterface):
    """
    Google Sheets implementation of the remote mirror.

    Wallets, transactions and recurring rules each get a worksheet with
    one entity per row. Each push replaces the sheet contents.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _replace_sheet(self, title: str, columns: list[str], rows: list[list]) -> None:
        sheet = self._client.get_sheet(title, columns)
        sheet.clear()
        sheet.update(values=[columns] + rows, range_name="A1")

    def _push_blocking(self, snapshot: LedgerSnapshot) -> None:
        settings = self._client.settings
        try:
            self._replace_sheet(
                settings.wallets_sheet_name,
                WALLET_COLUMNS,
                [_wallet_to_row(w) for w in snapshot.wallets],
            )
            self._replace_sheet(
                settings.transactions_sheet_name,
                TRANSACTION_COLUMNS,
                [_transaction_to_row(t) for t in snapshot.transactions],
            )
            self._replace_sheet(
                settings.recurring_sheet_name,
                RECURRING_COLUMNS,
                [_rule_to_row(r) for r in snapshot.recurring_rules],
            )
        except gspread.exceptions.APIError as e:
            raise MirrorError(f"Google Sheets push failed: {e}") from e

    async def push_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        await asyncio.to_thread(self._push_blocking, snapshot)
        return True

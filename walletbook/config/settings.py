"""
Configuration Management for Walletbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external collaborators exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="WALLETBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Local persistence
    data_dir: Path = Field(
        default=Path.home() / ".walletbook",
        description="Directory holding the persisted snapshot"
    )
    snapshot_filename: str = Field(
        default="walletbook-storage-v2.json",
        description="File name of the persisted snapshot"
    )

    # Ledger defaults
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency code for new wallets"
    )
    upcoming_lookahead_days: int = Field(
        default=7,
        ge=0,
        le=366,
        description="How many days ahead recurring reminders look"
    )
    default_reminder_days: int = Field(
        default=2,
        ge=0,
        le=60,
        description="Reminder lead time for new recurring rules"
    )

    @field_validator('default_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def snapshot_path(self) -> Path:
        """Full path of the persisted snapshot file."""
        return self.data_dir / self.snapshot_filename


class SyncSettings(BaseSettings):
    """Remote mirror sync configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETBOOK_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    latency_seconds: float = Field(
        default=1.2,
        ge=0.0,
        le=30.0,
        description="Fixed wait before a sync is marked complete"
    )
    mirror_backend: Literal["none", "google_sheets"] = Field(
        default="none",
        description="Which remote mirror to push snapshots to"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    wallets_sheet_name: str = Field(
        default="Wallets",
        description="Name of the sheet for wallets"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    recurring_sheet_name: str = Field(
        default="RecurringRules",
        description="Name of the sheet for recurring rules"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before enabling the remote mirror."
            )
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are built on access so a missing optional
    # collaborator (Google Sheets) never blocks the ledger itself.

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings(require_mirror: Optional[bool] = None) -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Google Sheets is only checked when the mirror backend asks for it,
    unless require_mirror forces the check either way.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        sync = settings.sync
        results["sync"] = True
    except Exception as e:
        sync = None
        results["sync"] = False
        results["sync_error"] = str(e)

    if require_mirror is None:
        require_mirror = sync is not None and sync.mirror_backend == "google_sheets"

    if require_mirror:
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results

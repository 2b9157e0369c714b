"""Ledger export formats."""

from walletbook.export.csv_export import CSV_HEADERS, export_filename, generate_csv

__all__ = ["CSV_HEADERS", "export_filename", "generate_csv"]

"""
Statement Converter - turns bank statement exports into YNAB4 CSV imports.

This package provides functionality to:
- Read statement files (CSV, XLS, XLSX) from various banks
- Normalize rows into a common transaction format using per-bank configurations
- Filter transactions by start date
- Export transactions in the YNAB4 import layout

The normalized transaction format includes:
- date: Transaction date (YYYY-MM-DD, or the raw text if it could not be parsed)
- description: Transaction description
- amount: Signed amount (negative for outflows, positive for inflows)
- payee: Payee from a dedicated bank column, or None

The export format is Date,Payee,Category,Memo,Outflow,Inflow.
"""

from .config import BANK_CONFIGS, BankConfig, get_bank_config
from .ingest import read_statement, find_column
from .normalize import (
    clean_amount,
    standardize_date,
    normalize_transactions,
    filter_by_start_date
)
from .export import (
    ExportOptions,
    to_ledger_records,
    serialize
)
from .convert import parse_file, convert_file, output_filename

__all__ = [
    'BANK_CONFIGS',
    'BankConfig',
    'get_bank_config',
    'read_statement',
    'find_column',
    'clean_amount',
    'standardize_date',
    'normalize_transactions',
    'filter_by_start_date',
    'ExportOptions',
    'to_ledger_records',
    'serialize',
    'parse_file',
    'convert_file',
    'output_filename'
]

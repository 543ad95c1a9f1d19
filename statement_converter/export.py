"""
Ledger export.

Converts canonical transactions into the YNAB4 CSV import layout:

    Date,Payee,Category,Memo,Outflow,Inflow

Outflow and Inflow are unsigned two-decimal strings and at most one of them is
filled per row. Category is always left empty for the ledger to assign.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .normalize import is_iso_date

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = ['Date', 'Payee', 'Category', 'Memo', 'Outflow', 'Inflow']
LEDGER_CSV_HEADER = ','.join(LEDGER_COLUMNS)

OUTPUT_DATE_FORMATS = {
    'Day/Month/Year': '{day}/{month}/{year}',
    'Month/Day/Year': '{month}/{day}/{year}',
    'Year/Month/Day': '{year}/{month}/{day}',
}


@dataclass(frozen=True)
class ExportOptions:
    """User choices for building ledger rows.

    Attributes:
        import_memos: Use the description at all (as memo, or as payee when swapped)
        swap_payees_memos: Put the description in Payee instead of Memo. Ignored
            for transactions that carry their own payee.
        output_date_format: 'Day/Month/Year', 'Month/Day/Year' or
            'Year/Month/Day'; anything else keeps YYYY-MM-DD
    """

    import_memos: bool = True
    swap_payees_memos: bool = False
    output_date_format: Optional[str] = None


def format_date_for_output(date_value, output_date_format=None):
    """Rewrite a YYYY-MM-DD date in the chosen display format.

    Dates that never got normalized are returned unchanged.
    """
    template = OUTPUT_DATE_FORMATS.get(output_date_format)
    if template is None or not is_iso_date(date_value):
        return date_value
    year, month, day = date_value.split('-')
    return template.format(year=year, month=month, day=day)


def assign_payee_and_memo(description, payee, options):
    """Decide the Payee and Memo cells for one transaction.

    Returns:
        tuple: (payee, memo)
    """
    if isinstance(payee, str) and payee.strip():
        return payee, description
    if not options.import_memos:
        return '', ''
    if options.swap_payees_memos:
        return description, ''
    return '', description


def split_amount(amount):
    """Split a signed amount into (outflow, inflow) strings."""
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        amount = 0.0
    if not np.isfinite(amount):
        amount = 0.0

    if amount < 0:
        return f"{abs(amount):.2f}", ''
    if amount > 0:
        return '', f"{amount:.2f}"
    return '', ''


def to_ledger_records(transactions, options=None):
    """Build ledger rows from canonical transactions.

    Args:
        transactions (pd.DataFrame): Columns date, description, amount and
            optionally payee
        options (ExportOptions, optional): Defaults to ExportOptions()

    Returns:
        pd.DataFrame: LEDGER_COLUMNS, all values strings
    """
    if options is None:
        options = ExportOptions()

    records = []
    for _, tx in transactions.iterrows():
        description = tx.get('description')
        description = '' if description is None or pd.isna(description) else str(description)
        payee, memo = assign_payee_and_memo(description, tx.get('payee'), options)
        outflow, inflow = split_amount(tx.get('amount'))
        records.append({
            'Date': format_date_for_output(str(tx.get('date')), options.output_date_format),
            'Payee': payee,
            'Category': '',
            'Memo': memo,
            'Outflow': outflow,
            'Inflow': inflow,
        })

    logger.debug(f"Built {len(records)} ledger rows with {options}")
    return pd.DataFrame(records, columns=LEDGER_COLUMNS)


def serialize(ledger_records):
    """Render ledger rows as CSV text with the Date,Payee,... header line."""
    frame = ledger_records.reindex(columns=LEDGER_COLUMNS).fillna('')
    return frame.to_csv(index=False, lineterminator='\n')

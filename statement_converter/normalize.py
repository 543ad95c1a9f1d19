"""
Transaction normalization.

Turns raw statement rows into the canonical transaction frame used by the
exporter:

- date: YYYY-MM-DD, or the original string when it cannot be parsed
- description: trimmed, never empty
- amount: float, negative for outflows, positive for inflows, never NaN
- payee: trimmed string, or None when the bank has no payee field or it is blank

Row-level problems never raise. Rows without a date or description are dropped,
unparseable amounts become 0 and unparseable dates keep their raw text. Each of
these is logged as a warning.
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone

import numpy as np
import pandas as pd
from dateutil import parser as dateparser

from .ingest import find_column

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = ['date', 'description', 'amount', 'payee']

# Hint tokens understood by the strict parser. Output format names are accepted
# too since a single date format selection is often used for both.
DATE_HINT_ALIASES = {
    'DD/MM/YYYY': 'DD/MM/YYYY',
    'Day/Month/Year': 'DD/MM/YYYY',
    'MM/DD/YYYY': 'MM/DD/YYYY',
    'Month/Day/Year': 'MM/DD/YYYY',
    'YYYY/MM/DD': 'YYYY/MM/DD',
    'YYYY-MM-DD': 'YYYY/MM/DD',
    'Year/Month/Day': 'YYYY/MM/DD',
}

_YEAR_LAST_PATTERN = re.compile(r'^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2}|\d{4})$')
_YEAR_FIRST_PATTERN = re.compile(r'^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})$')
_ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_NUMERIC_PATTERN = re.compile(r'^\d+(\.\d+)?$')
_YEAR_FIRST_PREFIX = re.compile(r'^\d{4}[/\-.]')

# Fills the parts a free-form date leaves out, e.g. the day of "Jan 2023"
_PARSE_DEFAULT = datetime(2000, 1, 1)

# Spreadsheet serial dates count days from 1899-12-30. A bare number is only
# read as one when the resulting date falls inside this window.
SERIAL_DATE_EPOCH = datetime(1899, 12, 30)
SERIAL_DATE_MIN = date(1950, 1, 1)
SERIAL_DATE_MAX = date(2099, 12, 31)


def is_iso_date(value):
    """Check whether a value is a zero-padded YYYY-MM-DD string."""
    return isinstance(value, str) and bool(_ISO_DATE_PATTERN.match(value))


def clean_amount(amount):
    """Clean and parse an amount value.

    Everything except digits, dots and minus signs is stripped before parsing,
    which removes currency symbols, thousands separators and whitespace.

    Args:
        amount (str, float or None): Raw amount

    Returns:
        float: Parsed amount, 0.0 when the value is missing or unparseable
    """
    if amount is None:
        return 0.0
    if isinstance(amount, (int, float, np.number)):
        if pd.isna(amount) or not np.isfinite(amount):
            return 0.0
        return float(amount)

    cleaned = re.sub(r'[^0-9.\-]', '', str(amount))
    try:
        result = float(cleaned)
    except ValueError:
        if cleaned:
            logger.debug(f"Could not parse amount {amount!r}, using 0")
        return 0.0
    return result if np.isfinite(result) else 0.0


def resolve_amount(config, outflow=None, inflow=None, amount=None):
    """Derive the signed amount for one row.

    The configuration's transform_amount wins when present. Otherwise a single
    amount column is cleaned and parsed as-is, and split columns give
    inflow - outflow.

    Args:
        config (BankConfig): Institution configuration
        outflow (str, optional): Raw outflow/debit cell
        inflow (str, optional): Raw inflow/credit cell
        amount (str, optional): Raw amount cell

    Returns:
        float: Signed amount (negative for outflows), never NaN
    """
    if config.transform_amount is not None:
        result = config.transform_amount(outflow, inflow, amount)
    elif config.amount_field:
        result = clean_amount(amount)
    else:
        result = clean_amount(inflow) - clean_amount(outflow)

    try:
        result = float(result)
    except (TypeError, ValueError):
        logger.warning(f"Amount transform returned {result!r} for {config.label}, using 0")
        return 0.0
    if not np.isfinite(result):
        logger.warning(f"Amount transform returned {result} for {config.label}, using 0")
        return 0.0
    return result


def serial_to_date(value):
    """Interpret a value as a spreadsheet serial date number.

    Args:
        value (str or float): Day count since 1899-12-30, fractions allowed

    Returns:
        datetime.date or None: The date, or None when the value is not numeric
        or lands outside SERIAL_DATE_MIN..SERIAL_DATE_MAX
    """
    try:
        serial = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(serial):
        return None
    try:
        result = (SERIAL_DATE_EPOCH + timedelta(days=serial)).date()
    except OverflowError:
        return None
    if not SERIAL_DATE_MIN <= result <= SERIAL_DATE_MAX:
        return None
    return result


def _parse_with_hint(value, hint):
    """Strict parse of a numeric date whose layout is given by the hint.

    Returns the date, or None when the parts do not form a real calendar date
    (e.g. month 31 under MM/DD/YYYY).
    """
    if hint == 'YYYY/MM/DD':
        year, month, day = _YEAR_FIRST_PATTERN.match(value).groups()
    elif hint == 'DD/MM/YYYY':
        day, month, year = _YEAR_LAST_PATTERN.match(value).groups()
    else:
        month, day, year = _YEAR_LAST_PATTERN.match(value).groups()

    year = int(year)
    if year < 100:
        year += 2000
    try:
        return date(year, int(month), int(day))
    except ValueError:
        return None


def _parse_generic(value, dayfirst=False):
    try:
        return dateparser.parse(value, default=_PARSE_DEFAULT, dayfirst=dayfirst)
    except (ValueError, OverflowError):
        return None


def _hint_matches(value, hint):
    if hint == 'YYYY/MM/DD':
        return bool(_YEAR_FIRST_PATTERN.match(value))
    if hint in ('DD/MM/YYYY', 'MM/DD/YYYY'):
        return bool(_YEAR_LAST_PATTERN.match(value))
    return False


def _is_serial_candidate(text, parsed):
    if not _NUMERIC_PATTERN.match(text):
        return False
    if parsed is None or '.' in text:
        return True
    # 6 and 8 digit numbers are compact YYMMDD/YYYYMMDD dates
    return parsed.year == int(text) or len(text) < 6


def standardize_date(value, date_format=None):
    """Convert a raw date to YYYY-MM-DD.

    Parsing order:
    1. Strict parse when the hint is DD/MM/YYYY, MM/DD/YYYY or YYYY/MM/DD and
       the value has that numeric shape. The hint is authoritative here, an
       impossible date under it is a failure.
    2. Generic calendar parsing (free-form hints such as 'DD MMM YYYY' land
       here; hints starting with DD prefer day-first readings).
    3. Spreadsheet serial number, for bare numbers the generic parser rejects
       or reads as a year equal to the number itself.

    Timestamps carrying a UTC offset are converted to UTC before the calendar
    day is taken.

    Args:
        value (str): Raw date value
        date_format (str, optional): Format hint

    Returns:
        str: YYYY-MM-DD, or the original value unchanged when parsing fails
    """
    raw = str(value)
    text = raw.strip()
    hint = DATE_HINT_ALIASES.get(date_format, date_format)

    if hint and _hint_matches(text, hint):
        parsed = _parse_with_hint(text, hint)
    else:
        dayfirst = (
            bool(hint) and hint.upper().startswith('DD') and not _YEAR_FIRST_PREFIX.match(text)
        )
        parsed = _parse_generic(text, dayfirst=dayfirst) if text else None
        if _is_serial_candidate(text, parsed):
            parsed = serial_to_date(text)

    if parsed is None:
        logger.warning(
            f'Could not parse date: "{raw}" with date format hint: "{date_format}". '
            f'Falling back to original string.'
        )
        return raw
    if isinstance(parsed, datetime) and parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime('%Y-%m-%d')


def filter_by_start_date(transactions, start_date=None):
    """Keep transactions dated on or after start_date.

    Transactions whose date could not be normalized are always kept because
    they cannot be compared. A malformed start_date disables the filter.

    Args:
        transactions (pd.DataFrame): Canonical transactions
        start_date (str or datetime.date, optional): Inclusive YYYY-MM-DD bound

    Returns:
        pd.DataFrame: Filtered transactions with a fresh index
    """
    if not start_date or transactions.empty:
        return transactions
    if isinstance(start_date, date):
        start_date = start_date.strftime('%Y-%m-%d')
    if not is_iso_date(start_date):
        logger.warning(f"Ignoring malformed start date filter: {start_date!r}")
        return transactions

    def keep(date_value):
        if not is_iso_date(date_value):
            logger.warning(
                f"Transaction has invalid or unparsed date format ('{date_value}'); "
                f"including it regardless of start date {start_date}"
            )
            return True
        return date_value >= start_date

    mask = transactions['date'].apply(keep).astype(bool)
    result = transactions.loc[mask].reset_index(drop=True)
    logger.info(f"Start date {start_date} kept {len(result)} of {len(transactions)} transactions")
    return result


def _cell(row, column):
    if column is None:
        return ''
    value = row[column]
    if value is None or pd.isna(value):
        return ''
    return str(value)


def normalize_transactions(raw_rows, config, date_format=None, start_date=None):
    """Map raw statement rows to canonical transactions.

    Args:
        raw_rows (pd.DataFrame): Raw rows keyed by original header
        config (BankConfig): Institution configuration
        date_format (str, optional): Date format hint overriding config.date_format
        start_date (str, optional): Inclusive YYYY-MM-DD lower bound

    Returns:
        pd.DataFrame: Columns date, description, amount, payee
    """
    effective_format = date_format or config.date_format
    columns = list(raw_rows.columns)

    date_col = find_column(columns, config.date_field)
    description_col = find_column(columns, config.description_field)
    payee_col = find_column(columns, config.payee_field)
    amount_col = find_column(columns, config.amount_field)
    outflow_col = find_column(columns, config.outflow_field)
    inflow_col = find_column(columns, config.inflow_field)

    for field, col in [(config.date_field, date_col), (config.description_field, description_col)]:
        if col is None and columns:
            logger.warning(f"Column {field!r} not found in {columns}")

    records = []
    for idx, row in raw_rows.iterrows():
        date_value = _cell(row, date_col)
        description_value = _cell(row, description_col)
        if not date_value.strip() or not description_value.strip():
            logger.warning(f"Skipping row {idx + 1} due to missing date or description: {row.to_dict()}")
            continue

        amount = resolve_amount(
            config,
            outflow=_cell(row, outflow_col) if config.outflow_field else None,
            inflow=_cell(row, inflow_col) if config.inflow_field else None,
            amount=_cell(row, amount_col) if config.amount_field else None,
        )
        payee = _cell(row, payee_col).strip() if config.payee_field else ''

        records.append({
            'date': standardize_date(date_value, effective_format),
            'description': description_value.strip(),
            'amount': amount,
            'payee': payee or None,
        })

    transactions = pd.DataFrame(records, columns=TRANSACTION_COLUMNS)
    # Object dtype so absent payees stay None instead of an inferred string NA
    transactions['payee'] = pd.Series(
        [record['payee'] for record in records], index=transactions.index, dtype=object
    )
    logger.info(f"Normalized {len(transactions)} of {len(raw_rows)} rows for {config.label}")

    if transactions.empty and not raw_rows.empty:
        logger.warning(
            "File parsed but no valid transactions extracted. "
            "Check field names in bank config and file structure."
        )
        logger.debug(f"Raw data sample (first few rows):\n{raw_rows.head().to_string()}")
        logger.debug(
            f"Expected field names from config: date={config.date_field!r}, "
            f"description={config.description_field!r}, amount={config.amount_field!r}"
        )

    return filter_by_start_date(transactions, start_date)

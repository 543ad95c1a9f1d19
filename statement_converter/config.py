"""
Institution configurations.

Each supported export format is described by a plain BankConfig record: which
headers carry the date, description, payee and amount, how many leading rows to
skip, a date format hint, and an optional amount transform holding the
institution's sign convention. Adding an institution means adding an entry to
BANK_CONFIGS, not writing a new parser.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional

import numpy as np

from .normalize import clean_amount

logger = logging.getLogger(__name__)

# (outflow, inflow, amount) -> signed amount, negative for outflows
AmountTransform = Callable[[Optional[str], Optional[str], Optional[str]], float]

# Configurations skipping at least this many rows have a header whose position
# varies between export versions, unless they say otherwise explicitly.
HEADER_SEARCH_MIN_SKIP_ROWS = 10


def strip_currency(value):
    """Parse an amount after removing dollar signs and thousands separators."""
    if not isinstance(value, str):
        return 0.0
    try:
        result = float(value.replace('$', '').replace(',', ''))
    except ValueError:
        return 0.0
    return result if np.isfinite(result) else 0.0


def eqbank_amount(outflow=None, inflow=None, amount=None):
    # EQ Bank already signs withdrawals negative
    return strip_currency(amount)


def flipped_amount(outflow=None, inflow=None, amount=None):
    """Single amount column where charges are positive and credits negative."""
    result = -clean_amount(amount)
    return result if result else 0.0


def signed_amount(outflow=None, inflow=None, amount=None):
    return clean_amount(amount)


@dataclass(frozen=True)
class BankConfig:
    """Field mapping and parsing rules for one institution's export.

    Exactly one of ``amount_field`` or the ``outflow_field``/``inflow_field``
    pair must be set. ``transform_amount``, when present, is consulted before
    either and receives the raw strings of whichever fields are configured.
    """

    label: str
    date_field: str
    description_field: str
    payee_field: Optional[str] = None
    amount_field: Optional[str] = None
    outflow_field: Optional[str] = None
    inflow_field: Optional[str] = None
    transform_amount: Optional[AmountTransform] = None
    skip_rows: int = 0
    date_format: Optional[str] = None
    locate_header_by_marker: Optional[bool] = None

    def __post_init__(self):
        if not self.date_field or not self.description_field:
            raise ValueError(f"{self.label}: date_field and description_field are required")
        has_split = bool(self.outflow_field) or bool(self.inflow_field)
        if has_split and not (self.outflow_field and self.inflow_field):
            raise ValueError(f"{self.label}: outflow_field and inflow_field must be set together")
        if bool(self.amount_field) == has_split:
            raise ValueError(
                f"{self.label}: configure either amount_field or outflow_field/inflow_field, not both"
            )
        if self.skip_rows < 0:
            raise ValueError(f"{self.label}: skip_rows cannot be negative")

    @property
    def locates_header(self):
        """Whether spreadsheet ingestion should search for a 'Date' header cell."""
        if self.locate_header_by_marker is not None:
            return self.locate_header_by_marker
        return self.skip_rows >= HEADER_SEARCH_MIN_SKIP_ROWS


BANK_CONFIGS: Mapping[str, BankConfig] = MappingProxyType({
    'eqbank': BankConfig(
        label='EQ Bank (CSV)',
        date_field='Transfer date',
        description_field='Description',
        amount_field='Amount',
        skip_rows=0,
        date_format='DD MMM YYYY',
        transform_amount=eqbank_amount,
    ),
    # Summary.xls puts its header on row 13, after an account summary block
    'amex': BankConfig(
        label='American Express (XLS)',
        date_field='Date',
        description_field='Description',
        payee_field='Merchant',
        amount_field='Amount',
        skip_rows=12,
        date_format='MM/DD/YYYY',
        transform_amount=flipped_amount,
        locate_header_by_marker=True,
    ),
    'scotiabank': BankConfig(
        label='Scotiabank (CSV)',
        date_field='Date',
        description_field='Description',
        payee_field='Sub-description',
        amount_field='Amount',
        skip_rows=0,
        date_format='YYYY-MM-DD',
        transform_amount=flipped_amount,
    ),
    'generic_dmy': BankConfig(
        label='Generic CSV/XLSX (Date, Description, Amount - DD/MM/YYYY)',
        date_field='Date',
        description_field='Description',
        amount_field='Amount',
        date_format='DD/MM/YYYY',
        transform_amount=signed_amount,
    ),
    'generic_mdy': BankConfig(
        label='Generic CSV/XLSX (Date, Description, Amount - MM/DD/YYYY)',
        date_field='Date',
        description_field='Description',
        amount_field='Amount',
        date_format='MM/DD/YYYY',
        transform_amount=signed_amount,
    ),
    'generic_debit_credit': BankConfig(
        label='Generic CSV/XLSX (Date, Description, Debit, Credit)',
        date_field='Date',
        description_field='Description',
        outflow_field='Debit',
        inflow_field='Credit',
    ),
})


def get_bank_config(bank_key, configs=None):
    """Look up an institution configuration.

    Args:
        bank_key (str): Institution identifier, e.g. 'amex'
        configs (Mapping, optional): Configuration table. Defaults to BANK_CONFIGS.

    Returns:
        BankConfig: The matching configuration

    Raises:
        ValueError: If no configuration exists for bank_key
    """
    if configs is None:
        configs = BANK_CONFIGS
    config = configs.get(bank_key)
    if config is None:
        raise ValueError(f"Unsupported bank type: {bank_key}. No configuration found.")
    logger.debug(f"Using {bank_key} configuration: {config.label}")
    return config

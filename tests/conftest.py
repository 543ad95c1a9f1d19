import pytest
import logging
import pandas as pd
from datetime import datetime
from openpyxl import Workbook

# Sample data for each bank format
eqbank_sample_data = {
    'Transfer date': ['01 Jan 2023', '15 Jan 2023', '30 Jan 2023'],
    'Description': ['Older Transaction', 'Boundary Transaction', 'Newer Transaction'],
    'Amount': ['-$10.00', '$20.00', '$1,030.00']  # Negative for withdrawals
}

scotiabank_sample_data = {
    'Filter': ['Some filter data', '', '', '', ''],
    'Date': ['2025-05-10', '2025-05-09', '2025-04-29', '2025-04-23', '2025-05-08'],
    'Description': ['taverna greka', 'no frills', 'thank you', 'ebay', 'netflix'],
    'Sub-description': ['New Westminstbc', 'Vancouver Bc', 'U', 'San Jose Ca', ''],
    'Status': ['posted'] * 5,
    'Type of Transaction': ['Debit', 'Debit', 'Credit', 'Credit', 'Debit'],
    'Amount': ['37.88', '49.67', '-5124.07', '-47.92', '23.99']  # Positive for debits
}

generic_dmy_sample_data = {
    'Date': ['07/08/2023', '31/12/2023'],
    'Description': ['Bakery', 'Salary'],
    'Amount': ['-4.50', '2500.00']
}

debit_credit_sample_data = {
    'Date': ['2023-03-01', '2023-03-02', '2023-03-03'],
    'Description': ['Rent', 'Refund', 'Pending hold'],
    'Debit': ['1,200.00', '', ''],
    'Credit': ['', '35.10', '']
}

# Rows as they come out of an AMEX Summary.xls, header on row 13
amex_preamble_rows = [[f'Summary line {i + 1}', ''] for i in range(12)]
amex_header_row = ['Date', 'Description', 'Merchant', 'Amount']
amex_data_rows = [
    [datetime(2023, 7, 25), 'Coffee Shop', 'Starbucks', 10.50],
    [datetime(2023, 7, 28), 'PAYMENT RECEIVED - THANK YOU', '', -100],
]


@pytest.fixture
def create_test_df():
    """Helper fixture to create raw statement DataFrames per bank"""
    def _create_df(bank_key):
        sample_data = {
            'eqbank': eqbank_sample_data,
            'scotiabank': scotiabank_sample_data,
            'generic_dmy': generic_dmy_sample_data,
            'generic_debit_credit': debit_credit_sample_data
        }
        if bank_key not in sample_data:
            raise ValueError(f"Unknown bank: {bank_key}")
        return pd.DataFrame(sample_data[bank_key])
    return _create_df


@pytest.fixture
def write_csv(tmp_path):
    """Write a raw statement DataFrame to a CSV file and return its path"""
    def _write(df, name='statement.csv'):
        file_path = tmp_path / name
        df.to_csv(file_path, index=False)
        return file_path
    return _write


@pytest.fixture
def write_xlsx(tmp_path):
    """Write rows (lists of cells) to the first sheet of a new workbook"""
    def _write(rows, name='Summary.xlsx'):
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(row)
        file_path = tmp_path / name
        wb.save(file_path)
        return file_path
    return _write


@pytest.fixture
def amex_rows():
    """AMEX sheet rows with the header at index 12"""
    return amex_preamble_rows + [amex_header_row] + amex_data_rows


@pytest.fixture
def sample_transactions_df():
    """Canonical transactions covering payee, no payee, outflow, inflow and zero"""
    return pd.DataFrame({
        'date': ['2023-01-01', '2023-01-02', '2023-01-03', 'invalid-date'],
        'description': ['Weekly shopping', 'Salary', 'Gas Station', 'Mystery'],
        'amount': [-50.25, 1000.00, -30.00, 0.0],
        'payee': ['Grocery Store', None, None, None]
    }, columns=['date', 'description', 'amount', 'payee'])


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging replaces the root handlers, put the originals back"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)

"""
Ledger Export Tests

This module verifies the conversion of canonical transactions into YNAB4
import rows and their CSV rendering.

Test Coverage:
- Payee and memo assignment under each option combination
- Outflow/Inflow split
- Output date formats
- Exact CSV output, quoting and empty documents

Dependencies: test_4_normalization.py (canonical transaction layout)
"""

import pytest
import pandas as pd
from statement_converter.export import (
    LEDGER_COLUMNS,
    LEDGER_CSV_HEADER,
    ExportOptions,
    assign_payee_and_memo,
    format_date_for_output,
    split_amount,
    to_ledger_records,
    serialize
)


class TestPayeeAndMemo:
    """Test suite for Payee/Memo assignment"""

    @pytest.mark.parametrize("import_memos,swap,expected", [
        (True, False, ('', 'Weekly shopping')),
        (True, True, ('Weekly shopping', '')),
        (False, False, ('', '')),
        (False, True, ('', '')),
    ])
    def test_without_payee(self, import_memos, swap, expected):
        options = ExportOptions(import_memos=import_memos, swap_payees_memos=swap)
        assert assign_payee_and_memo('Weekly shopping', None, options) == expected

    @pytest.mark.parametrize("import_memos,swap", [
        (True, False), (True, True), (False, False), (False, True)
    ])
    def test_explicit_payee_always_wins(self, import_memos, swap):
        """A bank payee column is used regardless of the memo options"""
        options = ExportOptions(import_memos=import_memos, swap_payees_memos=swap)
        assert assign_payee_and_memo('Weekly shopping', 'Grocery Store', options) == (
            'Grocery Store', 'Weekly shopping'
        )

    def test_blank_payee_is_treated_as_missing(self):
        assert assign_payee_and_memo('Tea', '  ', ExportOptions()) == ('', 'Tea')
        assert assign_payee_and_memo('Tea', float('nan'), ExportOptions()) == ('', 'Tea')


class TestAmountSplit:
    """Test suite for Outflow/Inflow columns"""

    def test_outflow(self):
        assert split_amount(-50.25) == ('50.25', '')

    def test_inflow(self):
        assert split_amount(1000) == ('', '1000.00')

    @pytest.mark.parametrize("amount", [0, 0.0, -0.0, None, float('nan')])
    def test_zero_leaves_both_empty(self, amount):
        assert split_amount(amount) == ('', '')

    def test_rounding(self):
        assert split_amount(-1234.5) == ('1234.50', '')
        assert split_amount(12.345678) == ('', '12.35')


class TestOutputDates:
    """Test suite for output date formatting"""

    @pytest.mark.parametrize("output_format,expected", [
        ('Day/Month/Year', '31/01/2023'),
        ('Month/Day/Year', '01/31/2023'),
        ('Year/Month/Day', '2023/01/31'),
        (None, '2023-01-31'),
        ('YYYY-MM-DD', '2023-01-31'),
    ])
    def test_formats(self, output_format, expected):
        assert format_date_for_output('2023-01-31', output_format) == expected

    def test_unparsed_dates_pass_through(self):
        assert format_date_for_output('invalid-date', 'Day/Month/Year') == 'invalid-date'


@pytest.mark.dependency()
class TestLedgerRecords:
    """Test suite for building and serializing ledger rows"""

    @pytest.mark.dependency()
    def test_records(self, sample_transactions_df):
        result = to_ledger_records(sample_transactions_df)

        assert list(result.columns) == LEDGER_COLUMNS
        assert result.iloc[0].tolist() == [
            '2023-01-01', 'Grocery Store', '', 'Weekly shopping', '50.25', ''
        ]
        assert result.iloc[1].tolist() == ['2023-01-02', '', '', 'Salary', '', '1000.00']
        assert result.iloc[3].tolist() == ['invalid-date', '', '', 'Mystery', '', '']
        assert (result['Category'] == '').all()

    @pytest.mark.dependency(depends=["TestLedgerRecords::test_records"])
    def test_serialize_exact_output(self, sample_transactions_df):
        options = ExportOptions(swap_payees_memos=True, output_date_format='Day/Month/Year')
        document = serialize(to_ledger_records(sample_transactions_df, options))

        assert document == (
            "Date,Payee,Category,Memo,Outflow,Inflow\n"
            "01/01/2023,Grocery Store,,Weekly shopping,50.25,\n"
            "02/01/2023,Salary,,,,1000.00\n"
            "03/01/2023,Gas Station,,,30.00,\n"
            "invalid-date,Mystery,,,,\n"
        )

    def test_fields_with_commas_and_quotes_are_quoted(self):
        transactions = pd.DataFrame({
            'date': ['2023-01-01'],
            'description': ['Dinner, "The Place"'],
            'amount': [-12.0],
            'payee': [None]
        })
        document = serialize(to_ledger_records(transactions))
        assert document.splitlines()[1] == '2023-01-01,,,"Dinner, ""The Place""",12.00,'

    def test_empty_transactions(self):
        transactions = pd.DataFrame(columns=['date', 'description', 'amount', 'payee'])
        records = to_ledger_records(transactions)

        assert records.empty
        assert serialize(records) == LEDGER_CSV_HEADER + '\n'

    def test_missing_payee_column(self):
        transactions = pd.DataFrame({'date': ['2023-01-01'], 'description': ['Tea'], 'amount': [-3.5]})
        result = to_ledger_records(transactions)
        assert result.loc[0, 'Payee'] == ''
        assert result.loc[0, 'Memo'] == 'Tea'

    def test_serialize_is_deterministic(self, sample_transactions_df):
        records = to_ledger_records(sample_transactions_df)
        assert serialize(records) == serialize(records)

    def test_input_is_not_modified(self, sample_transactions_df):
        before = sample_transactions_df.copy()
        to_ledger_records(sample_transactions_df, ExportOptions(swap_payees_memos=True))
        pd.testing.assert_frame_equal(sample_transactions_df, before)

"""
Bank Statement to YNAB4 Conversion

Entry points tying the pipeline together:

    read_statement -> normalize_transactions -> to_ledger_records -> serialize

parse_file covers the first two stages and is what a front end calls after the
user picks a file and a bank. Only configuration problems (unknown bank,
unsupported file type) and decode failures are raised; row-level issues are
logged and absorbed. An empty result is not an error.
"""

import argparse
import logging
import os
import pathlib
import sys

from .config import BANK_CONFIGS, get_bank_config
from .export import OUTPUT_DATE_FORMATS, ExportOptions, serialize, to_ledger_records
from .ingest import read_statement
from .normalize import normalize_transactions
from .utils import ensure_parent_directory, setup_logging

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = '_YNAB4.csv'


def parse_file(source, bank_key, date_format=None, start_date=None, filename=None, configs=None):
    """Read a statement file and normalize its transactions.

    Args:
        source (str, Path, bytes or file object): Statement file or its content
        bank_key (str): Institution identifier in the configuration table
        date_format (str, optional): Date format hint overriding the bank's own
        start_date (str, optional): Keep transactions on or after this YYYY-MM-DD date
        filename (str, optional): File name when source is content
        configs (Mapping, optional): Configuration table. Defaults to BANK_CONFIGS.

    Returns:
        pd.DataFrame: Canonical transactions (date, description, amount, payee)

    Raises:
        ValueError: Unknown bank or unsupported file type
        FileNotFoundError: Source path does not exist
    """
    config = get_bank_config(bank_key, configs)
    raw_rows = read_statement(
        source,
        filename=filename,
        skip_rows=config.skip_rows,
        locate_header=config.locates_header,
    )
    return normalize_transactions(
        raw_rows,
        config,
        date_format=date_format,
        start_date=start_date,
    )


def convert_file(source, bank_key, options=None, date_format=None, start_date=None,
                 filename=None, configs=None):
    """Run the whole conversion and return the ledger CSV text."""
    transactions = parse_file(
        source,
        bank_key,
        date_format=date_format,
        start_date=start_date,
        filename=filename,
        configs=configs,
    )
    return serialize(to_ledger_records(transactions, options))


def output_filename(source_path):
    """Name of the converted file: the source stem plus OUTPUT_SUFFIX, same folder."""
    source_path = pathlib.Path(source_path)
    return source_path.with_name(f"{source_path.stem or 'export'}{OUTPUT_SUFFIX}")


def build_parser(configs=None):
    if configs is None:
        configs = BANK_CONFIGS
    parser = argparse.ArgumentParser(description='Convert bank statements to YNAB4 CSV imports')
    parser.add_argument('file', nargs='?', help='Statement file (.csv, .xls or .xlsx)')
    parser.add_argument('--bank', choices=sorted(configs),
                        help='Institution the statement comes from')
    parser.add_argument('--date-format', default=None,
                        help='Input date format hint, e.g. DD/MM/YYYY (defaults to the bank\'s)')
    parser.add_argument('--start-date', default=None,
                        help='Only keep transactions on or after this date (YYYY-MM-DD)')
    parser.add_argument('--output-date-format', choices=sorted(OUTPUT_DATE_FORMATS),
                        default=None, help='Date format of the output (default YYYY-MM-DD)')
    parser.add_argument('--no-memos', action='store_true',
                        help='Do not copy descriptions into the output')
    parser.add_argument('--swap-payees-memos', action='store_true',
                        help='Use the description as payee when the bank has no payee field')
    parser.add_argument('--output', default=None,
                        help='Output file (default: <file>_YNAB4.csv next to the input)')
    parser.add_argument('--list-banks', action='store_true',
                        help='List supported banks and exit')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv=None, configs=None):
    """Main execution function.

    Returns:
        int: Process exit status, 1 when no transactions were found
    """
    if configs is None:
        configs = BANK_CONFIGS
    parser = build_parser(configs)
    args = parser.parse_args(argv)

    if args.list_banks:
        for key in sorted(configs):
            print(f"{key}: {configs[key].label}")
        return 0
    if not args.file or not args.bank:
        parser.error('file and --bank are required')

    setup_logging(debug=args.debug)
    logger.info(f"Converting {args.file} as {args.bank}")

    try:
        transactions = parse_file(
            args.file,
            args.bank,
            date_format=args.date_format,
            start_date=args.start_date,
            configs=configs,
        )
    except Exception as e:
        logger.error(f"Error processing {args.file}: {str(e)}")
        raise

    if transactions.empty:
        logger.warning(
            f"No transactions found in {os.path.basename(args.file)} with current settings. "
            f"Check file, bank selection, input date format, or bank configuration "
            f"(skip_rows, field names)."
        )
        return 1

    options = ExportOptions(
        import_memos=not args.no_memos,
        swap_payees_memos=args.swap_payees_memos,
        output_date_format=args.output_date_format,
    )
    document = serialize(to_ledger_records(transactions, options))

    output_path = ensure_parent_directory(args.output or output_filename(args.file))
    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        f.write(document)

    logger.info(f"Wrote {len(transactions)} transactions to {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

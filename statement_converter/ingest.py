"""
Statement file ingestion.

Reads a CSV, XLS or XLSX statement into a frame of raw rows. Every cell is a
string and the columns are the file's own headers, so nothing here knows about
institutions beyond the row offsets they configure.
"""

import csv
import io
import logging
import os
import pathlib
from datetime import date, datetime

import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ['.csv', '.xls', '.xlsx']
CSV_ENCODINGS = ['utf-8-sig', 'cp1252']
CSV_DELIMITERS = ',\t;|'

# First cell of the header row in exports whose header position varies
HEADER_MARKER = 'date'


def get_extension(filename):
    """Return the lower-cased extension of a file name, including the dot."""
    return pathlib.Path(str(filename)).suffix.lower()


def validate_extension(filename):
    """Reject anything that is not a CSV or Excel workbook.

    Args:
        filename (str or Path): File name used to pick the decoder

    Returns:
        str: The extension ('.csv', '.xls' or '.xlsx')

    Raises:
        ValueError: If the extension is not supported
    """
    ext = get_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type: {os.path.basename(str(filename))}. "
            f"Please upload CSV, XLS, or XLSX."
        )
    return ext


def find_column(columns, field):
    """Resolve a configured field name against actual headers.

    An exact match wins, otherwise the first header equal to the field after
    trimming and case-folding is used.

    Args:
        columns (list): Headers present in the file
        field (str or None): Configured header name

    Returns:
        The matching header, or None if the field is unset or absent
    """
    if not field:
        return None
    if field in columns:
        return field
    wanted = field.strip().casefold()
    for col in columns:
        if str(col).strip().casefold() == wanted:
            return col
    return None


def cell_to_string(value):
    """Render a decoded cell as text.

    Native date cells become YYYY-MM-DD from their calendar fields so that no
    timezone shift or second round of date parsing can change the day.
    """
    if value is None or value is pd.NaT:
        return ''
    if isinstance(value, (datetime, date)):
        return value.strftime('%Y-%m-%d')
    if isinstance(value, float) and pd.isna(value):
        return ''
    return str(value)


def _buffer(source):
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def _skip_malformed_line(bad_line):
    logger.warning(f"Skipping malformed CSV line: {bad_line}")
    return None


def detect_delimiter(header_line):
    """Pick the delimiter of a header line, comma when none of CSV_DELIMITERS fits."""
    try:
        return csv.Sniffer().sniff(header_line, delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        return ','


def read_csv_rows(source, skip_rows=0):
    """Read delimited text whose first line is the header.

    The delimiter (comma, tab, semicolon or pipe) is detected from the header
    line. Lines with more fields than the header are logged and skipped. After
    parsing, the first skip_rows data rows are discarded.

    Args:
        source (str, Path or bytes): File path or raw content
        skip_rows (int): Leading data rows to drop

    Returns:
        pd.DataFrame: Raw rows, all cells as strings

    Raises:
        UnicodeDecodeError: If no encoding in CSV_ENCODINGS fits the content
    """
    if not isinstance(source, (bytes, bytearray)):
        source = pathlib.Path(source).read_bytes()

    last_error = None
    for encoding in CSV_ENCODINGS:
        try:
            text = bytes(source).decode(encoding)
        except UnicodeDecodeError as e:
            logger.debug(f"Could not decode CSV as {encoding}: {e}")
            last_error = e
            continue
        logger.debug(f"Successfully decoded CSV with encoding: {encoding}")
        break
    else:
        raise last_error

    header_line = next((line for line in text.splitlines() if line.strip()), '')
    delimiter = detect_delimiter(header_line)
    logger.debug(f"Using delimiter {delimiter!r}")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=0,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine='python',
            on_bad_lines=_skip_malformed_line,
        )
    except pd.errors.EmptyDataError:
        logger.warning("CSV file is empty, no rows read")
        return pd.DataFrame()

    df.columns = [str(col).strip() for col in df.columns]
    df = df.fillna('')
    if skip_rows:
        df = df.iloc[skip_rows:]
    return df.reset_index(drop=True)


def find_header_row(rows, skip_rows=0, locate_header=False):
    """Pick the index of the header row in a sheet.

    Args:
        rows (list): Sheet rows as lists of cells
        skip_rows (int): Default header index
        locate_header (bool): Search for the first row whose first cell is 'Date'

    Returns:
        int: Header row index
    """
    if locate_header:
        for i, row in enumerate(rows):
            if row and cell_to_string(row[0]).strip().casefold() == HEADER_MARKER:
                if i != skip_rows:
                    logger.info(f"Found header row at index {i} (configured {skip_rows})")
                return i
        logger.debug(f"No '{HEADER_MARKER}' header cell found, using row {skip_rows}")
    return skip_rows


def read_excel_rows(source, skip_rows=0, locate_header=False):
    """Read the first sheet of a workbook into raw rows.

    Args:
        source (str, Path or bytes): File path or raw content
        skip_rows (int): Rows before the header
        locate_header (bool): Search for a 'Date' header cell instead of
            trusting skip_rows

    Returns:
        pd.DataFrame: Raw rows, all cells as strings
    """
    sheet = pd.read_excel(_buffer(source), sheet_name=0, header=None, dtype=object)
    rows = sheet.values.tolist()
    if not rows:
        logger.warning("Workbook's first sheet is empty")
        return pd.DataFrame()

    header_idx = find_header_row(rows, skip_rows, locate_header)
    if header_idx >= len(rows):
        logger.error(
            f"skip_rows ({header_idx}) is past the end of the sheet ({len(rows)} rows), "
            f"no header or data found"
        )
        return pd.DataFrame()

    headers = [cell_to_string(cell).strip() for cell in rows[header_idx]]
    columns = list(dict.fromkeys(h for h in headers if h))

    records = []
    for row in rows[header_idx + 1:]:
        values = [cell_to_string(cell) for cell in row]
        if not any(v.strip() for v in values):
            continue
        record = dict.fromkeys(columns, '')
        for header, value in zip(headers, values):
            if header:
                record[header] = value
        records.append(record)

    logger.debug(f"Header row {header_idx}: {columns}")
    return pd.DataFrame(records, columns=columns)


def read_statement(source, filename=None, skip_rows=0, locate_header=False):
    """Read a statement file into raw rows.

    Args:
        source (str, Path, bytes or file object): Path to the file, or its content
        filename (str, optional): Name used for the extension check when source
            is content rather than a path
        skip_rows (int): Data rows to drop (CSV) or rows before the header (Excel)
        locate_header (bool): Search Excel sheets for a 'Date' header cell

    Returns:
        pd.DataFrame: Raw rows keyed by original header, all cells as strings

    Raises:
        ValueError: If the file type is unsupported or no name is available
        FileNotFoundError: If a source path does not exist
    """
    if hasattr(source, 'read'):
        filename = filename or getattr(source, 'name', None)
        source = source.read()
        if isinstance(source, str):
            source = source.encode('utf-8')

    if isinstance(source, (bytes, bytearray)):
        if not filename:
            raise ValueError("A file name is required to determine the type of in-memory content")
        name = filename
    else:
        name = filename or source

    ext = validate_extension(name)

    if not isinstance(source, (bytes, bytearray)):
        if not os.path.exists(source):
            raise FileNotFoundError(f"File not found: {source}")
        if os.path.isdir(source):
            raise ValueError(f"Path is a directory: {source}")

    logger.info(f"Reading {os.path.basename(str(name))}")
    if ext == '.csv':
        rows = read_csv_rows(source, skip_rows)
    else:
        rows = read_excel_rows(source, skip_rows, locate_header)

    logger.info(f"Read {len(rows)} raw rows with columns {list(rows.columns)}")
    return rows

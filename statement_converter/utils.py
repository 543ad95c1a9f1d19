"""
Utility functions for the statement converter.

This module contains helpers used by the command-line shell that are not
directly related to reading or converting transactions.
"""

import os
import pathlib
import logging

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'convert.log'


def setup_logging(debug=False, log_level='info', log_file=None):
    """Send log records to a file and to the console.

    Called once by the command line. Any handlers installed earlier are
    replaced, so repeated runs in one process do not duplicate output.

    Args:
        debug (bool): Log at DEBUG regardless of log_level
        log_level (str): Level name, e.g. 'warning'. Unknown names mean INFO.
        log_file (str, optional): Destination file. Falls back to the
            LOG_FILE environment variable, then DEFAULT_LOG_FILE.

    Returns:
        str: The log file in use
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)
    log_file = log_file or os.getenv('LOG_FILE', DEFAULT_LOG_FILE)
    ensure_parent_directory(log_file)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
        force=True,
    )
    logger.debug(f"Logging to {log_file} at level {logging.getLevelName(level)}")
    return str(log_file)


def ensure_parent_directory(file_path):
    """Create the parent directory of an output file if it is missing.

    Args:
        file_path (str or pathlib.Path): File about to be written

    Returns:
        pathlib.Path: The file path as a Path
    """
    file_path = pathlib.Path(file_path)
    if not file_path.parent.exists():
        logger.info(f"Creating output directory {file_path.parent}")
        file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path

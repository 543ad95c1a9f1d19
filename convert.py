"""Command-line launcher: python convert.py statement.csv --bank eqbank"""

import sys

from statement_converter.convert import main

if __name__ == '__main__':
    sys.exit(main())

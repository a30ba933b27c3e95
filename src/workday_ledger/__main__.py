"""Entry point for ``python -m workday_ledger``."""

import sys

from workday_ledger.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""Run the interactive ledger with ``python -m rupee_ledger``"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())

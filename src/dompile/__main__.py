"""Allow ``python -m dompile``."""
from __future__ import annotations

import sys

from dompile.cli._dispatcher import main

if __name__ == "__main__":
    sys.exit(main())

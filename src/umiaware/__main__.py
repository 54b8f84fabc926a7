"""Allow ``python -m umiaware``."""

import sys

from umiaware.cli import main

if __name__ == "__main__":
    sys.exit(main())

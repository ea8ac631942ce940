"""Run the CLI with ``python -m monoswap``."""

import sys

from monoswap.cli import main

sys.exit(main())

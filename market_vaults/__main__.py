"""python -m market_vaults: same as the market-vaults script."""

import sys

from market_vaults.cli import main

raise SystemExit(main(sys.argv[1:]))

"""Main entry point for running symcalc_pkg as a module.

This allows running SymCalc with:
    python -m symcalc_pkg
    python -m symcalc_pkg --health-check
    python -m symcalc_pkg -e "2x + 3x"

This is equivalent to running:
    python -m symcalc_pkg.cli
    symcalc
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())

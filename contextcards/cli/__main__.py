"""
contextcards CLI entry point.

Usage:
    python -m contextcards.cli load
    python -m contextcards.cli check <uri>
    python -m contextcards.cli add <name> --uri <uri>
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())

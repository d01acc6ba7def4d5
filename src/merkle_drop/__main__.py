"""
Module execution entry point.

Allows running with: python -m merkle_drop
"""

import sys

from merkle_drop.cli import main

if __name__ == "__main__":
    sys.exit(main())

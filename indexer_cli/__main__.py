"""
Module execution entry point.

Allows running with: python -m indexer_cli
"""

import sys
from indexer_cli.main import main

if __name__ == "__main__":
    sys.exit(main())

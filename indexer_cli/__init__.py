"""
Indexer CLI

Command-line interface for the commitment indexer.

Usage:
    python -m indexer_cli serve
    python -m indexer_cli sync --once
    python -m indexer_cli path 0 > path.json
    python -m indexer_cli verify-path path.json
"""

__version__ = "0.1.0"

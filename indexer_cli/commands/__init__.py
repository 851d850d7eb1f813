"""
CLI command modules.
"""

from indexer_cli.commands import query, serve, submit, verify

__all__ = ["query", "serve", "submit", "verify"]

"""
Storage Module

SQLite-backed commitment ledger and root store.
"""

from .db import Database, IN_MEMORY
from .ledger import CommitmentLedger
from .roots import RootStore

__all__ = [
    "Database",
    "IN_MEMORY",
    "CommitmentLedger",
    "RootStore",
]

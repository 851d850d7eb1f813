"""
Indexer Module

Ingestion cycle, polling loop, root publisher and proof-path service
composed over the core ledger and tree engine.
"""

from indexer.cycle import CycleResult, IngestionCycle, bootstrap_snapshot
from indexer.loop import IngestionLoop
from indexer.proofs import ProofPathService
from indexer.publisher import PublishOutcome, PublishStatus, RootPublisher
from indexer.service import Indexer

__all__ = [
    "CycleResult",
    "IngestionCycle",
    "bootstrap_snapshot",
    "IngestionLoop",
    "ProofPathService",
    "PublishOutcome",
    "PublishStatus",
    "RootPublisher",
    "Indexer",
]

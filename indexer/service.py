"""
Indexer Service

Wires configuration into the ledger, root store, tree builder, snapshot
holder, proof service, publisher and (when a chain is configured) the
ingestion loop.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from core.chain.events import EventSource, StarknetEventSource
from core.chain.rpc import StarknetRpcClient
from core.chain.submitter import RootSubmitter, build_submitter
from core.config.runtime import IndexerConfig
from core.crypto.field import to_decimal
from core.crypto.hashing import get_hasher
from core.http.client import HttpClient
from core.merkle.merkle_tree import TreeBuilder
from core.merkle.snapshot import SnapshotHolder
from core.schemas.errors import InconsistentLeafError
from core.storage.db import Database
from core.storage.ledger import CommitmentLedger
from core.storage.roots import RootStore
from indexer.cycle import IngestionCycle, bootstrap_snapshot
from indexer.loop import IngestionLoop
from indexer.proofs import ProofPathService
from indexer.publisher import RootPublisher


logger = logging.getLogger(__name__)


class Indexer:
    """
    Composition root for one deployment (one contract, one tree).

    Usage:
        indexer = Indexer.from_config(load_config())
        indexer.start()
        ...
        indexer.stop()
    """

    def __init__(
        self,
        config: IndexerConfig,
        *,
        db: Optional[Database] = None,
        source: Optional[EventSource] = None,
        submitter: Optional[RootSubmitter] = None,
    ) -> None:
        self.config = config
        self.db = db or Database(config.storage.db_path)
        self.ledger = CommitmentLedger(self.db)
        self.roots = RootStore(self.db)
        self.builder = TreeBuilder(get_hasher(config.tree.hash), config.tree.height)

        # Restart = replay the commitments table; no other bootstrap state.
        # A stored gap keeps ingestion halted but the prefix is still served.
        self.halt_reason: Optional[str] = None
        try:
            snapshot = bootstrap_snapshot(self.ledger, self.builder)
        except InconsistentLeafError as e:
            self.halt_reason = f"{e.code}: {e.message}"
            logger.critical(f"Stored leaves are inconsistent, ingestion halted: {e.message}")
            snapshot = bootstrap_snapshot(self.ledger, self.builder, prefix_only=True)
        self.holder = SnapshotHolder(snapshot)
        self.proofs = ProofPathService(self.holder)

        self.submitter = submitter or build_submitter(
            rpc_url=config.chain.rpc_url,
            contract=config.chain.contract,
            account_address=config.chain.account.address,
            private_key=config.chain.account.private_key,
            chain_id=config.chain.chain_id,
        )
        self.publisher = RootPublisher(self.roots, self.submitter)

        self.source = source
        self.cycle: Optional[IngestionCycle] = None
        self.loop: Optional[IngestionLoop] = None
        if self.source is not None:
            self._attach_source(self.source)

    @classmethod
    def from_config(cls, config: IndexerConfig, *, with_chain: bool = True) -> "Indexer":
        """Build an indexer, connecting the Starknet event source when configured."""
        source: Optional[EventSource] = None
        if with_chain and config.chain.rpc_url and config.chain.contract:
            rpc = StarknetRpcClient(
                config.chain.rpc_url,
                http=HttpClient(timeout=config.http.timeout),
                max_attempts=config.http.max_retries,
                retry_delay=config.http.retry_delay,
            )
            source = StarknetEventSource(rpc, config.chain.contract, chunk_size=config.chain.chunk_size)
        elif with_chain:
            logger.warning("RPC_URL/CONTRACT not configured; serving local state only")
        return cls(config, source=source)

    def _attach_source(self, source: EventSource) -> None:
        self.cycle = IngestionCycle(
            self.ledger,
            self.roots,
            self.builder,
            self.holder,
            source,
            self.publisher,
            start_block=self.config.chain.start_block,
            auto_submit=self.config.ingest.auto_submit,
        )
        self.loop = IngestionLoop(
            self.cycle,
            poll_interval=self.config.ingest.poll_interval,
            retry_delay=self.config.ingest.retry_delay,
        )
        if self.halt_reason is not None:
            self.loop.halt(self.halt_reason)

    def start(self) -> None:
        if self.loop is not None:
            self.loop.start()

    def stop(self) -> None:
        if self.loop is not None:
            self.loop.stop()
        if self.source is not None:
            self.source.close()

    def close(self) -> None:
        self.stop()
        self.db.close()

    def health(self) -> dict[str, Any]:
        """Snapshot of liveness and tree state for /health."""
        latest = self.roots.latest()
        if self.loop is not None:
            status, halt_reason = self.loop.status, self.loop.halt_reason
        else:
            status = "halted" if self.halt_reason else "ok"
            halt_reason = self.halt_reason
        return {
            "status": status,
            "leaves": self.proofs.leaf_count(),
            "latestRoot": to_decimal(latest.root) if latest else None,
            "generation": self.proofs.generation(),
            "pendingRoots": self.roots.count(submitted=False),
            "ingesting": bool(self.loop and self.loop.running),
            "haltReason": halt_reason,
        }

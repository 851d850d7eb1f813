"""
Root Publisher

Moves unsubmitted roots from the root store to the chain, oldest first.

Policy:
- First-in-first-out. If the oldest pending root fails, newer roots wait
  for the next cycle. Ordering is not needed for correctness (the verifier
  accepts any registered ancestor root), it avoids paying for roots that
  would be superseded anyway.
- A root already marked submitted is never sent again; the flag is
  re-read under the publisher lock right before each submission.
- Failures leave submitted=false. There is no retry limit.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from core.chain.submitter import RootSubmitter
from core.crypto.field import short
from core.schemas.errors import NotFoundError, PublishError
from core.storage.roots import RootStore


logger = logging.getLogger(__name__)


class PublishStatus(str, Enum):
    SUBMITTED = "submitted"
    FAILED = "failed"
    ALREADY_SUBMITTED = "already_submitted"
    MANUAL = "manual"


@dataclass
class PublishOutcome:
    """Result of trying to publish one root."""
    root: int
    status: PublishStatus
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    manual: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status in (PublishStatus.SUBMITTED, PublishStatus.ALREADY_SUBMITTED)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "root": str(self.root),
            "status": self.status.value,
            "success": self.success,
        }
        if self.tx_hash:
            data["tx"] = self.tx_hash
        if self.error:
            data["error"] = self.error
        if self.manual:
            data.update(self.manual)
        return data


class RootPublisher:
    """Publishes recorded roots through a RootSubmitter."""

    def __init__(self, roots: RootStore, submitter: RootSubmitter) -> None:
        self.roots = roots
        self.submitter = submitter
        self._lock = threading.Lock()

    @property
    def can_submit(self) -> bool:
        return self.submitter.can_submit

    def _publish_one(self, root: int) -> PublishOutcome:
        """Submit a single recorded root. Caller holds the lock."""
        record = self.roots.get(root)
        if record is None:
            raise NotFoundError("Root was never recorded", details={"root": str(root)})
        if record.submitted:
            logger.info(f"Root {short(root)} already submitted, skipping")
            return PublishOutcome(root=root, status=PublishStatus.ALREADY_SUBMITTED, tx_hash=record.tx_hash)

        if not self.submitter.can_submit:
            return PublishOutcome(
                root=root,
                status=PublishStatus.MANUAL,
                manual=self.submitter.manual_instructions(root),
            )

        try:
            receipt = self.submitter.submit(root)
        except PublishError as e:
            logger.error(f"Failed to submit root {short(root)}: {e.message}")
            return PublishOutcome(root=root, status=PublishStatus.FAILED, error=e.message)

        self.roots.mark_submitted(root, tx_hash=receipt.tx_hash)
        logger.info(f"Root {short(root)} submitted, tx: {receipt.tx_hash}")
        return PublishOutcome(root=root, status=PublishStatus.SUBMITTED, tx_hash=receipt.tx_hash)

    def publish_pending(self) -> list[PublishOutcome]:
        """
        Submit every pending root, oldest first, stopping at the first failure.

        Returns an empty list when the submitter cannot sign.
        """
        if not self.submitter.can_submit:
            return []

        outcomes: list[PublishOutcome] = []
        with self._lock:
            for record in self.roots.list_unsubmitted():
                outcome = self._publish_one(record.root)
                outcomes.append(outcome)
                if not outcome.success:
                    logger.warning(
                        f"Stopping publication at root {short(record.root)}; "
                        f"newer roots wait for the next cycle"
                    )
                    break
        return outcomes

    def submit_root(self, root: Optional[int] = None) -> PublishOutcome:
        """
        Manually publish one root (default: the newest pending one).

        Raises:
            NotFoundError: If no root is given and none is pending, or the
                given root was never recorded
        """
        with self._lock:
            if root is None:
                record = self.roots.latest_unsubmitted()
                if record is None:
                    raise NotFoundError("No pending roots to submit")
                root = record.root
            return self._publish_one(root)

"""
CLI Submit Commands

    indexer submit [--root R]
    indexer submit-all

Without an indexer account, `submit` prints the calldata and a starkli
command for manual submission.
"""

from __future__ import annotations

import logging
from argparse import Namespace

from core.crypto.field import parse_field_element
from indexer.publisher import PublishOutcome, PublishStatus
from indexer_cli.commands._output import emit
from indexer_cli.commands.query import open_local


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def _describe(outcome: PublishOutcome) -> list[str]:
    if outcome.status == PublishStatus.MANUAL:
        manual = outcome.manual
        return [
            manual.get("message", ""),
            f"  root: {outcome.root}",
            f"  low:  {manual['calldata']['low']}",
            f"  high: {manual['calldata']['high']}",
            f"  {manual.get('command', '')}",
        ]
    line = f"{outcome.status.value:<18} {outcome.root}"
    if outcome.tx_hash:
        line += f"  tx: {outcome.tx_hash}"
    if outcome.error:
        line += f"  error: {outcome.error}"
    return [line]


def submit_cmd(args: Namespace) -> int:
    root = parse_field_element(args.root) if args.root else None
    indexer = open_local(args)
    try:
        outcome = indexer.publisher.submit_root(root)
    finally:
        indexer.close()

    emit(args, outcome.to_dict(), _describe(outcome))
    return EXIT_RUNTIME_ERROR if outcome.status == PublishStatus.FAILED else EXIT_SUCCESS


def submit_all_cmd(args: Namespace) -> int:
    indexer = open_local(args)
    try:
        if not indexer.publisher.can_submit:
            logger.error("No indexer account configured (INDEXER_ACCOUNT_ADDRESS / INDEXER_PRIVATE_KEY)")
            return EXIT_RUNTIME_ERROR
        outcomes = indexer.publisher.publish_pending()
    finally:
        indexer.close()

    submitted = sum(1 for o in outcomes if o.status == PublishStatus.SUBMITTED)
    lines = [line for o in outcomes for line in _describe(o)] or ["No pending roots"]
    lines.append(f"Submitted {submitted} root(s)")
    emit(args, {"submitted": submitted, "results": [o.to_dict() for o in outcomes]}, lines)
    return EXIT_SUCCESS if all(o.success for o in outcomes) else EXIT_RUNTIME_ERROR

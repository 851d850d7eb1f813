"""
CLI Query Commands

Read local state (the database replayed into a tree) without touching
the chain:

    indexer root
    indexer path 3
    indexer path --commitment 0x1234
    indexer pending
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace

from core.crypto.field import parse_field_element, to_decimal
from indexer.service import Indexer
from indexer_cli.commands._output import emit


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def open_local(args: Namespace) -> Indexer:
    """Indexer over the configured database, no event source attached."""
    return Indexer.from_config(args.indexer_config, with_chain=False)


def root_cmd(args: Namespace) -> int:
    indexer = open_local(args)
    try:
        snapshot = indexer.proofs.snapshot()
        root = None if snapshot.is_empty else to_decimal(snapshot.root)
        emit(
            args,
            {"root": root, "leaves": snapshot.leaf_count},
            [f"root:   {root if root is not None else '(empty tree)'}",
             f"leaves: {snapshot.leaf_count}"],
        )
    finally:
        indexer.close()
    return EXIT_SUCCESS


def path_cmd(args: Namespace) -> int:
    """Print an inclusion path as JSON (the input format of verify-path)."""
    if args.commitment is None and args.leaf_index is None:
        logger.error("Give a leaf index or --commitment")
        return EXIT_RUNTIME_ERROR

    indexer = open_local(args)
    try:
        if args.commitment is not None:
            proof = indexer.proofs.path_for_commitment(parse_field_element(args.commitment))
        else:
            proof = indexer.proofs.path_for_index(args.leaf_index)
        print(json.dumps(proof.to_dict(), indent=2))
    finally:
        indexer.close()
    return EXIT_SUCCESS


def pending_cmd(args: Namespace) -> int:
    indexer = open_local(args)
    try:
        pending = [
            {"root": to_decimal(r.root), "block": r.observed_at_block}
            for r in indexer.roots.list_unsubmitted()
        ]
        lines = [f"{p['block']:>10}  {p['root']}" for p in pending] or ["No pending roots"]
        emit(args, {"pending": pending}, lines)
    finally:
        indexer.close()
    return EXIT_SUCCESS

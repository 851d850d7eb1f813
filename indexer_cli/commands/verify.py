"""
CLI Verify-Path Command

Recompute the root from a served inclusion path, with the same side rule
the proving circuit applies:

    indexer verify-path path.json [--root R]

Exit codes: 0 valid, 1 unreadable input, 2 root mismatch.
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from pathlib import Path

from core.crypto.field import parse_field_element, to_decimal
from core.crypto.hashing import get_hasher
from core.merkle.merkle_proofs import MerkleProof, compute_root_from_path
from indexer_cli.commands._output import emit


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def verify_path_cmd(args: Namespace) -> int:
    path = Path(args.path_file)
    try:
        proof = MerkleProof.from_dict(json.loads(path.read_text()))
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Cannot read path from {path}: {e}")
        return EXIT_RUNTIME_ERROR

    config = args.indexer_config
    if proof.height != config.tree.height:
        logger.warning(
            f"Path has {proof.height} siblings, configured tree height is {config.tree.height}"
        )

    hasher = get_hasher(config.tree.hash)
    try:
        computed = compute_root_from_path(hasher, proof.leaf, proof.index, proof.siblings)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_VERIFICATION_FAILED

    expected = parse_field_element(args.root) if args.root else proof.root
    valid = computed == expected
    emit(
        args,
        {
            "valid": valid,
            "leaf_index": proof.index,
            "computed_root": to_decimal(computed),
            "expected_root": to_decimal(expected),
        },
        [
            f"leaf_index:    {proof.index}",
            f"computed root: {to_decimal(computed)}",
            f"expected root: {to_decimal(expected)}",
            "OK" if valid else "MISMATCH",
        ],
    )
    return EXIT_SUCCESS if valid else EXIT_VERIFICATION_FAILED

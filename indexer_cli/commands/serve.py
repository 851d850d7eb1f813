"""
CLI Serve / Sync Commands

    indexer serve [--host H] [--port P] [--no-ingest]
    indexer sync [--once]

`serve` runs the query API (uvicorn) with the ingestion loop in a
background thread. `sync` runs ingestion in the foreground only.
"""

from __future__ import annotations

import logging
from argparse import Namespace

from core.crypto.field import short
from indexer.service import Indexer
from indexer_cli.commands._output import emit


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_HALTED = 2


def serve_cmd(args: Namespace) -> int:
    import uvicorn

    from api.app import create_app

    config = args.indexer_config
    if args.host:
        config.api.host = args.host
    if args.port:
        config.api.port = args.port
    if args.no_ingest:
        config.api.run_ingestion = False

    logger.info(f"Merkle Indexer API listening on {config.api.host}:{config.api.port}")
    uvicorn.run(create_app(config=config), host=config.api.host, port=config.api.port)
    return EXIT_SUCCESS


def sync_cmd(args: Namespace) -> int:
    config = args.indexer_config
    config.require_chain()

    indexer = Indexer.from_config(config)
    try:
        if args.once:
            result = indexer.cycle.run_once()
            emit(
                args,
                {
                    "from_block": result.from_block,
                    "to_block": result.to_block,
                    "events": result.events,
                    "inserted": result.inserted,
                    "leaves": result.leaves,
                    "root": str(result.root) if result.root is not None else None,
                    "published": [o.to_dict() for o in result.published],
                },
                [
                    f"blocks:   {result.from_block} -> {result.to_block if result.to_block is not None else '(up to date)'}",
                    f"events:   {result.events} ({result.inserted} new)",
                    f"leaves:   {result.leaves}",
                    f"root:     {short(result.root) if result.root is not None else '(unchanged)'}",
                ],
            )
            return EXIT_SUCCESS

        loop = indexer.loop
        try:
            loop.run_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping after the current cycle")
        if loop.halted:
            logger.error(f"Ingestion halted: {loop.halt_reason}")
            return EXIT_HALTED
        return EXIT_SUCCESS
    finally:
        indexer.close()

"""
FastAPI Application

Query API for the commitment indexer. On startup the app builds an Indexer
from the loaded configuration (unless one is injected) and starts the
ingestion loop in a background thread; on shutdown the loop is stopped
after its in-flight cycle.

Usage:
    uvicorn api.app:app --port 4000

    # Or run directly
    python -m api.app
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, tree, roots
from api.errors import (
    APIError,
    api_error_handler,
    generic_error_handler,
    indexer_error_handler,
)
from core.config.runtime import IndexerConfig, load_config
from core.schemas.errors import IndexerException
from indexer.service import Indexer


logger = logging.getLogger(__name__)


def _resolve_log_level() -> int:
    """Resolve log level from INDEXER_LOG_LEVEL, defaulting to INFO."""
    raw = os.getenv("INDEXER_LOG_LEVEL")
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app(
    indexer: Optional[Indexer] = None,
    config: Optional[IndexerConfig] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        indexer: Pre-built indexer to serve; its lifecycle stays with the caller
        config: Configuration used to build an indexer at startup when none
            is injected (default: load_config())
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.indexer is None
        if owned:
            cfg = config or load_config()
            app.state.indexer = Indexer.from_config(cfg)
        current: Indexer = app.state.indexer
        if owned and current.config.api.run_ingestion:
            current.start()
        try:
            yield
        finally:
            if owned:
                current.close()
                app.state.indexer = None

    app = FastAPI(
        title="Commitment Indexer API",
        description="""
Merkle-tree indexer for on-chain commitments.

## Endpoints

- **GET /root** - Current root (null when the tree is empty)
- **GET /path/{leaf_index}** - Inclusion path by leaf index
- **GET /path/commitment/{commitment}** - Inclusion path by commitment value
- **GET /pending-roots** - Recorded roots not yet submitted on-chain
- **POST /submit-root** - Submit one root (or get calldata for manual submission)
- **POST /submit-all-roots** - Submit every pending root, oldest first
- **GET /health** - Health check

Field elements are serialized as decimal strings.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.indexer = indexer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(IndexerException, indexer_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.include_router(health.router)
    app.include_router(tree.router)
    app.include_router(roots.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "4000"))
    uvicorn.run(app, host="0.0.0.0", port=port)

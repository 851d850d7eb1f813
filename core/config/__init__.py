"""
Runtime Configuration Module

Provides configuration loading and management for the indexer.
"""

from .runtime import (
    AccountConfig,
    ApiConfig,
    ChainConfig,
    HttpConfig,
    IndexerConfig,
    IngestConfig,
    StorageConfig,
    TreeConfig,
    load_config,
)

__all__ = [
    "AccountConfig",
    "ApiConfig",
    "ChainConfig",
    "HttpConfig",
    "IndexerConfig",
    "IngestConfig",
    "StorageConfig",
    "TreeConfig",
    "load_config",
]

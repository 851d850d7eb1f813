"""
Runtime Configuration

Central configuration for the indexer: chain access, tree parameters,
storage, polling and the query API.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.schemas.errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class HttpConfig:
    """Configuration for the HTTP client used by the RPC layer."""
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0


@dataclass
class AccountConfig:
    """Indexer account used to submit roots. Both fields unset = manual mode."""
    address: Optional[str] = None
    private_key: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.address and self.private_key)


@dataclass
class ChainConfig:
    """Configuration for the settlement chain."""
    rpc_url: Optional[str] = None
    contract: Optional[str] = None
    chain_id: str = "SN_SEPOLIA"
    start_block: int = 0
    chunk_size: int = 50
    account: AccountConfig = field(default_factory=AccountConfig)


@dataclass
class TreeConfig:
    """Tree parameters; must match the proving circuit."""
    height: int = 32
    hash: str = "poseidon"


@dataclass
class StorageConfig:
    """Configuration for the SQLite database."""
    db_path: str = "commitments.db"


@dataclass
class IngestConfig:
    """Configuration for the ingestion loop."""
    poll_interval: float = 6.0
    retry_delay: float = 2.0
    auto_submit: bool = True


@dataclass
class ApiConfig:
    """Configuration for the query API."""
    host: str = "0.0.0.0"
    port: int = 4000
    run_ingestion: bool = True


@dataclass
class IndexerConfig:
    """
    Complete runtime configuration for the indexer.

    Can be loaded from:
    - Environment variables
    - JSON or YAML file
    - Programmatic construction
    """
    chain: ChainConfig = field(default_factory=ChainConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - RPC_URL: Starknet JSON-RPC endpoint
        - CONTRACT: Commitment contract address
        - START_BLOCK: First block to scan on an empty database
        - PORT: Query API port
        - INDEXER_ACCOUNT_ADDRESS / INDEXER_PRIVATE_KEY: root submission account
        - INDEXER_CHAIN_ID: SN_MAIN or SN_SEPOLIA
        - INDEXER_DB_PATH: SQLite database file
        - INDEXER_TREE_HEIGHT / INDEXER_HASH: tree parameters
        - INDEXER_POLL_INTERVAL: seconds between polls
        - INDEXER_AUTO_SUBMIT: submit new roots automatically (true/false)
        - INDEXER_LOG_LEVEL: log level
        """
        overrides: dict[str, Any] = {}

        def _set(section: str, key: str, value: Any) -> None:
            overrides.setdefault(section, {})[key] = value

        if os.getenv("RPC_URL"):
            _set("chain", "rpc_url", os.getenv("RPC_URL"))
        if os.getenv("CONTRACT"):
            _set("chain", "contract", os.getenv("CONTRACT"))
        if os.getenv("START_BLOCK"):
            _set("chain", "start_block", int(os.getenv("START_BLOCK", "0")))
        if os.getenv("INDEXER_CHAIN_ID"):
            _set("chain", "chain_id", os.getenv("INDEXER_CHAIN_ID"))
        if os.getenv("INDEXER_ACCOUNT_ADDRESS"):
            _set("account", "address", os.getenv("INDEXER_ACCOUNT_ADDRESS"))
        if os.getenv("INDEXER_PRIVATE_KEY"):
            _set("account", "private_key", os.getenv("INDEXER_PRIVATE_KEY"))

        if os.getenv("INDEXER_TREE_HEIGHT"):
            _set("tree", "height", int(os.getenv("INDEXER_TREE_HEIGHT", "32")))
        if os.getenv("INDEXER_HASH"):
            _set("tree", "hash", os.getenv("INDEXER_HASH"))

        if os.getenv("INDEXER_DB_PATH"):
            _set("storage", "db_path", os.getenv("INDEXER_DB_PATH"))

        if os.getenv("INDEXER_POLL_INTERVAL"):
            _set("ingest", "poll_interval", float(os.getenv("INDEXER_POLL_INTERVAL", "6")))
        if os.getenv("INDEXER_AUTO_SUBMIT"):
            _set("ingest", "auto_submit", os.getenv("INDEXER_AUTO_SUBMIT", "true").lower() == "true")

        if os.getenv("PORT"):
            _set("api", "port", int(os.getenv("PORT", "4000")))

        if os.getenv("INDEXER_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("INDEXER_LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "IndexerConfig":
        """Load configuration purely from environment variables."""
        return cls().with_env_overrides()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "IndexerConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "IndexerConfig":
        """Load configuration from a .json, .yaml or .yml file."""
        path = Path(path)
        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndexerConfig":
        """Load configuration from a dictionary (supports partial data)."""
        try:
            chain_data = dict(data.get("chain", {}))
            account_data = chain_data.pop("account", None) or data.get("account", {})
            chain = ChainConfig(
                **chain_data,
                account=AccountConfig(**account_data) if account_data else AccountConfig(),
            )
            tree = TreeConfig(**data.get("tree", {}))
            storage = StorageConfig(**data.get("storage", {}))
            ingest = IngestConfig(**data.get("ingest", {}))
            api = ApiConfig(**data.get("api", {}))
            http = HttpConfig(**data.get("http", {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        config = cls(
            chain=chain,
            tree=tree,
            storage=storage,
            ingest=ingest,
            api=api,
            http=http,
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )
        config.validate()
        return config

    def with_env_overrides(self) -> "IndexerConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        sections = {
            "chain": new_config.chain,
            "account": new_config.chain.account,
            "tree": new_config.tree,
            "storage": new_config.storage,
            "ingest": new_config.ingest,
            "api": new_config.api,
        }
        for section, target in sections.items():
            for key, value in overrides.get(section, {}).items():
                setattr(target, key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        new_config.validate()
        return new_config

    def validate(self) -> None:
        """
        Check values that would otherwise fail late.

        Raises:
            ConfigurationError: On an unusable value
        """
        if not 1 <= self.tree.height <= 64:
            raise ConfigurationError(
                f"Tree height must be between 1 and 64, got {self.tree.height}"
            )
        if self.chain.start_block < 0:
            raise ConfigurationError("start_block must be non-negative")
        if self.chain.chunk_size < 1:
            raise ConfigurationError("chunk_size must be positive")
        if self.ingest.poll_interval < 0 or self.ingest.retry_delay < 0:
            raise ConfigurationError("Intervals must be non-negative")
        if bool(self.chain.account.address) != bool(self.chain.account.private_key):
            raise ConfigurationError(
                "INDEXER_ACCOUNT_ADDRESS and INDEXER_PRIVATE_KEY must be set together"
            )

    def require_chain(self) -> None:
        """Raise unless the chain endpoint and contract are configured."""
        missing = [
            name for name, value in (("RPC_URL", self.chain.rpc_url), ("CONTRACT", self.chain.contract))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing chain configuration: {', '.join(missing)}",
                details={"missing": missing},
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary. The private key is redacted."""
        return {
            "chain": {
                "rpc_url": self.chain.rpc_url,
                "contract": self.chain.contract,
                "chain_id": self.chain.chain_id,
                "start_block": self.chain.start_block,
                "chunk_size": self.chain.chunk_size,
                "account": {
                    "address": self.chain.account.address,
                    "private_key": "***" if self.chain.account.private_key else None,
                },
            },
            "tree": {
                "height": self.tree.height,
                "hash": self.tree.hash,
            },
            "storage": {
                "db_path": self.storage.db_path,
            },
            "ingest": {
                "poll_interval": self.ingest.poll_interval,
                "retry_delay": self.ingest.retry_delay,
                "auto_submit": self.ingest.auto_submit,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "run_ingestion": self.api.run_ingestion,
            },
            "http": {
                "timeout": self.http.timeout,
                "max_retries": self.http.max_retries,
                "retry_delay": self.http.retry_delay,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


CONFIG_SEARCH_PATHS = (
    Path("indexer.json"),
    Path(".indexer.json"),
    Path.home() / ".config" / "commitment-indexer" / "config.json",
)


def load_config(path: str | Path | None = None) -> IndexerConfig:
    """
    Load configuration from a file, then overlay environment variables.

    Search order when no path is given:
      1. ./indexer.json
      2. ./.indexer.json
      3. ~/.config/commitment-indexer/config.json

    Environment variables ALWAYS override config file values.
    """
    if path is not None:
        return IndexerConfig.from_file(path).with_env_overrides()

    for candidate in CONFIG_SEARCH_PATHS:
        if candidate.exists():
            logger.info(f"Loaded config from {candidate}")
            return IndexerConfig.from_file(candidate).with_env_overrides()

    return IndexerConfig.from_env()

"""
CLI Configuration

Config-file template for `config --init`. Loading itself is shared with
the API (core.config.runtime.load_config).
"""

from __future__ import annotations

import json

from core.config.runtime import IndexerConfig


def get_default_config_template() -> str:
    """JSON template with every setting at its default value."""
    data = IndexerConfig().to_dict()
    data.pop("extra", None)
    # Secrets belong in the environment (INDEXER_PRIVATE_KEY), not the file.
    data["chain"]["account"]["private_key"] = None
    data["chain"]["rpc_url"] = "https://starknet-sepolia.public.blastapi.io/rpc/v0_7"
    data["chain"]["contract"] = "0x..."
    return json.dumps(data, indent=2) + "\n"

"""
Root Submitters

Deliver a root to the contract's accepted-roots registry:
    submit_merkle_root(low: u128, high: u128)

StarknetRootSubmitter signs and sends the invoke with starknet-py and waits
for the transaction to be accepted. CalldataOnlySubmitter is used when the
indexer has no account: it never submits, it only describes how to.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from core.crypto.field import short, split_u256
from core.schemas.errors import ConfigurationError, PublishError


logger = logging.getLogger(__name__)


SUBMIT_ENTRYPOINT = "submit_merkle_root"

_CHAIN_IDS = {
    "SN_MAIN": "MAINNET",
    "SN_MAINNET": "MAINNET",
    "MAINNET": "MAINNET",
    "SN_SEPOLIA": "SEPOLIA",
    "SEPOLIA": "SEPOLIA",
}


def root_calldata(root: int) -> tuple[int, int]:
    """Split a root into the (low, high) u128 halves the entrypoint expects."""
    return split_u256(root)


@dataclass(frozen=True)
class SubmissionReceipt:
    """Proof that a root was accepted on-chain."""
    root: int
    tx_hash: str


class RootSubmitter(ABC):
    """Sends one root to the chain; raises PublishError on any failure."""

    #: False for submitters that cannot sign transactions
    can_submit: bool = True

    @abstractmethod
    def submit(self, root: int) -> SubmissionReceipt:
        ...

    def manual_instructions(self, root: int) -> dict[str, Any]:
        """Calldata for submitting the root by hand."""
        low, high = root_calldata(root)
        return {
            "root": str(root),
            "calldata": {"low": str(low), "high": str(high)},
        }


class CalldataOnlySubmitter(RootSubmitter):
    """Placeholder used when no indexer account is configured."""

    can_submit = False

    def __init__(self, contract: str = "") -> None:
        self.contract = contract

    def submit(self, root: int) -> SubmissionReceipt:
        raise PublishError(
            "No indexer account configured; submit the root manually",
            root=root,
        )

    def manual_instructions(self, root: int) -> dict[str, Any]:
        info = super().manual_instructions(root)
        low, high = root_calldata(root)
        info["message"] = "No indexer account configured. Use this calldata to submit manually:"
        info["command"] = (
            f"starkli invoke {self.contract or '<CONTRACT>'} {SUBMIT_ENTRYPOINT} "
            f"{low} {high} --account <YOUR_ACCOUNT>"
        )
        return info


class StarknetRootSubmitter(RootSubmitter):
    """
    Invoke submit_merkle_root from the indexer account.

    The starknet-py account is created lazily on first use.
    """

    def __init__(
        self,
        *,
        rpc_url: str,
        contract: str,
        account_address: str,
        private_key: str,
        chain_id: str = "SN_SEPOLIA",
    ) -> None:
        if not (rpc_url and contract and account_address and private_key):
            raise ConfigurationError(
                "StarknetRootSubmitter needs rpc_url, contract, account_address and private_key"
            )
        if chain_id.upper() not in _CHAIN_IDS:
            raise ConfigurationError(
                f"Unknown chain id '{chain_id}'",
                details={"supported": sorted(_CHAIN_IDS)},
            )
        self.rpc_url = rpc_url
        self.contract = contract
        self.account_address = account_address
        self.chain_id = chain_id.upper()
        self._private_key = private_key
        self._account = None

    def _get_account(self):
        if self._account is None:
            from starknet_py.net.account.account import Account
            from starknet_py.net.full_node_client import FullNodeClient
            from starknet_py.net.models import StarknetChainId
            from starknet_py.net.signer.stark_curve_signer import KeyPair

            client = FullNodeClient(node_url=self.rpc_url)
            self._account = Account(
                client=client,
                address=self.account_address,
                key_pair=KeyPair.from_private_key(int(self._private_key, 16)),
                chain=getattr(StarknetChainId, _CHAIN_IDS[self.chain_id]),
            )
        return self._account

    async def _submit(self, root: int) -> str:
        from starknet_py.hash.selector import get_selector_from_name
        from starknet_py.net.client_models import Call

        account = self._get_account()
        low, high = root_calldata(root)
        call = Call(
            to_addr=int(self.contract, 16),
            selector=get_selector_from_name(SUBMIT_ENTRYPOINT),
            calldata=[low, high],
        )
        response = await account.execute_v3(calls=[call], auto_estimate=True)
        await account.client.wait_for_tx(response.transaction_hash)
        return hex(response.transaction_hash)

    def submit(self, root: int) -> SubmissionReceipt:
        logger.info(f"Submitting root {short(root)} to {self.contract}")
        try:
            tx_hash = asyncio.run(self._submit(root))
        except PublishError:
            raise
        except Exception as e:
            raise PublishError(f"Root submission failed: {e}", root=root) from e
        logger.info(f"Root submitted, tx: {tx_hash}")
        return SubmissionReceipt(root=root, tx_hash=tx_hash)


def build_submitter(
    *,
    rpc_url: Optional[str],
    contract: Optional[str],
    account_address: Optional[str],
    private_key: Optional[str],
    chain_id: str = "SN_SEPOLIA",
) -> RootSubmitter:
    """Return a signing submitter when an account is configured, else calldata-only."""
    if account_address and private_key and rpc_url and contract:
        return StarknetRootSubmitter(
            rpc_url=rpc_url,
            contract=contract,
            account_address=account_address,
            private_key=private_key,
            chain_id=chain_id,
        )
    return CalldataOnlySubmitter(contract or "")

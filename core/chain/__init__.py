"""
Chain Module

Settlement-chain collaborators: the event source adapter that feeds the
ledger and the submitters that publish roots.
"""

from .events import (
    COMMITMENT_EVENT_NAMES,
    EventSource,
    StarknetEventSource,
    decode_event,
    event_selectors,
)
from .rpc import StarknetRpcClient
from .submitter import (
    SUBMIT_ENTRYPOINT,
    CalldataOnlySubmitter,
    RootSubmitter,
    StarknetRootSubmitter,
    SubmissionReceipt,
    build_submitter,
    root_calldata,
)

__all__ = [
    "COMMITMENT_EVENT_NAMES",
    "EventSource",
    "StarknetEventSource",
    "decode_event",
    "event_selectors",
    "StarknetRpcClient",
    "SUBMIT_ENTRYPOINT",
    "CalldataOnlySubmitter",
    "RootSubmitter",
    "StarknetRootSubmitter",
    "SubmissionReceipt",
    "build_submitter",
    "root_calldata",
]

"""
Node Module - Client for the identity node's JSON-RPC interface.

The ceremony reads the epoch clock and ceremony intervals from the
node, enumerates and fetches flips, and submits answers through it.
"""

from .client import NodeClient, RpcError
from .models import (
    AnswerItem,
    CeremonyIntervals,
    EpochInfo,
    FlipHashItem,
    FlipPayload,
    SubmitAnswersParams,
)

__all__ = [
    "NodeClient",
    "RpcError",
    "AnswerItem",
    "CeremonyIntervals",
    "EpochInfo",
    "FlipHashItem",
    "FlipPayload",
    "SubmitAnswersParams",
]

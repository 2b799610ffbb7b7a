"""
Effect Runner - Executes reducer effects against the node.

The runner:
1. Receives an effect from the reducer (or the session)
2. Performs the I/O
3. Returns the actions describing the outcome

Fetch failures become FETCH_FLIPS_FAILED actions; submission
failures raise.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any

from ..engine_core.action import Action
from ..engine_core.effects import Effect, FetchFlips, SubmitAnswers
from ..engine_core.state import Flip, SessionType
from ..node.client import NodeClient, RpcError
from ..node.models import FlipHashItem
from .submission import submit_answers

logger = logging.getLogger(__name__)


class EffectRunner:
    """Runs effects and returns the resulting actions."""

    def __init__(self, client: NodeClient):
        self.client = client

    async def run(self, effect: Effect) -> list[Action]:
        if isinstance(effect, FetchFlips):
            return [await self.fetch_flips(effect.session_type, effect.known_flips)]
        if isinstance(effect, SubmitAnswers):
            return [
                await submit_answers(self.client, effect.session_type, effect.flips, effect.epoch)
            ]
        raise TypeError(f"Unknown effect: {type(effect).__name__}")

    async def fetch_flips(self, session_type: SessionType, flips: list[Flip]) -> Action:
        """
        One fetch cycle.

        Enumerates hashes, then fetches every flip that still needs data
        concurrently. Resolved flips are not fetched again.
        """
        try:
            hashes = await self.client.fetch_flip_hashes(session_type)
        except RpcError as e:
            logger.warning("Cannot fetch %s flip hashes: %s", session_type.value, e)
            return Action.fetch_flips_failed(str(e))

        if hashes is None:
            return Action.fetch_flips_failed("Cannot fetch flips")

        known = {flip.hash: flip for flip in flips}
        data = await asyncio.gather(
            *(self._fetch_item(item, known.get(item.hash)) for item in hashes)
        )
        return Action.fetch_flips_succeeded(list(data), session_type)

    async def _fetch_item(self, item: FlipHashItem, existing: Flip | None) -> dict[str, Any]:
        entry = {"hash": item.hash, "hidden": item.extra, "ready": item.ready}

        if existing is not None:
            if existing.is_resolved:
                return {"hash": existing.hash, "hidden": existing.hidden, "ready": existing.ready}
        elif not item.ready:
            return entry

        try:
            payload = await self.client.fetch_flip(item.hash)
        except RpcError as e:
            # No payload: a ready flip without data fails to decode
            logger.warning("Cannot fetch flip %s: %s", item.hash, e)
            return entry

        if payload is not None:
            entry.update(payload.model_dump(exclude_none=True))
        return entry

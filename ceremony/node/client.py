"""
Node Client - JSON-RPC over HTTP POST.

Every call posts {method, params, id} and returns the response's
result member. Transport failures and error responses raise RpcError;
deciding whether a failure is transient is left to the caller.
"""

from __future__ import annotations
import itertools
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..engine_core.state import SessionType
from .models import (
    CeremonyIntervals,
    EpochInfo,
    FlipHashItem,
    FlipPayload,
    RpcRequest,
    SubmitAnswersParams,
)

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """Raised when a node call fails."""

    def __init__(self, message: str, method: str | None = None, code: int | None = None):
        super().__init__(message)
        self.method = method
        self.code = code


class NodeClient:
    """
    Async client for the node's RPC surface.

    Usage:
        async with NodeClient("http://localhost:9009") as client:
            epoch = await client.fetch_epoch()
            hashes = await client.fetch_flip_hashes(SessionType.SHORT)
    """

    def __init__(self, url: str, http_client: httpx.AsyncClient | None = None):
        self.url = url
        self._http = http_client or httpx.AsyncClient()
        self._owns_http = http_client is None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> NodeClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def call(self, method: str, *params: Any) -> Any:
        """Call a node method and return its result (None if absent)."""
        request = RpcRequest(method=method, params=list(params), id=next(self._ids))
        try:
            response = await self._http.post(
                self.url,
                json=request.model_dump(),
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("RPC %s failed: %s", method, e)
            raise RpcError(str(e), method=method) from e

        if not isinstance(body, dict):
            raise RpcError("Malformed RPC response", method=method)

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(
                    error.get("message", "RPC error"),
                    method=method,
                    code=error.get("code"),
                )
            raise RpcError(str(error), method=method)

        return body.get("result")

    async def _call_model(self, model, method: str, *params: Any):
        result = await self.call(method, *params)
        if result is None:
            return None
        try:
            return model.model_validate(result)
        except ValidationError as e:
            raise RpcError(f"Unexpected {method} result: {e}", method=method) from e

    async def fetch_epoch(self) -> EpochInfo | None:
        return await self._call_model(EpochInfo, "dna_epoch")

    async def fetch_ceremony_intervals(self) -> CeremonyIntervals | None:
        return await self._call_model(CeremonyIntervals, "dna_ceremonyIntervals")

    async def fetch_flip_hashes(self, session_type: SessionType) -> list[FlipHashItem] | None:
        """Flip hashes assigned for the session type, or None if the node has none."""
        method = f"flip_{session_type.value}Hashes"
        result = await self.call(method)
        if result is None:
            return None
        try:
            return [FlipHashItem.model_validate(item) for item in result]
        except (ValidationError, TypeError) as e:
            raise RpcError(f"Unexpected {method} result: {e}", method=method) from e

    async def fetch_flip(self, flip_hash: str) -> FlipPayload | None:
        return await self._call_model(FlipPayload, "flip_get", flip_hash)

    async def submit_short_answers(
        self, answers: list[dict[str, Any]], nonce: int, epoch: int
    ) -> Any:
        return await self._submit("flip_submitShortAnswers", answers, nonce, epoch)

    async def submit_long_answers(
        self, answers: list[dict[str, Any]], nonce: int, epoch: int
    ) -> Any:
        return await self._submit("flip_submitLongAnswers", answers, nonce, epoch)

    async def _submit(
        self, method: str, answers: list[dict[str, Any]], nonce: int, epoch: int
    ) -> Any:
        params = SubmitAnswersParams.model_validate(
            {"answers": answers, "nonce": nonce, "epoch": epoch}
        )
        return await self.call(method, params.model_dump())

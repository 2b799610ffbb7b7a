"""
Tests for the node JSON-RPC client.

Requests are answered by an httpx.MockTransport, so no node is needed.
"""

import asyncio
import json

import httpx
import pytest

from ..engine_core.state import EpochPeriod, SessionType
from ..node.client import NodeClient, RpcError
from .fakes import T0


def make_client(results: dict, status_code: int = 200, requests: list | None = None) -> NodeClient:
    """Client whose node answers each method with results[method]."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if requests is not None:
            requests.append(body)
        answer = results.get(body["method"], {"result": None})
        return httpx.Response(status_code, json={"id": body["id"], **answer})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NodeClient("http://node.test", http_client=http)


def run(coro):
    return asyncio.run(coro)


class TestEpochAndTiming:
    """Tests for dna_epoch and dna_ceremonyIntervals."""

    def test_fetch_epoch(self):
        """dna_epoch parses into EpochInfo."""
        client = make_client({
            "dna_epoch": {"result": {
                "epoch": 10,
                "currentPeriod": "ShortSession",
                "nextValidation": "2026-10-19T12:00:00Z",
                "currentValidationStart": "2026-10-19T12:00:00Z",
            }},
        })

        epoch = run(client.fetch_epoch())

        assert epoch.epoch == 10
        assert epoch.current_period == EpochPeriod.SHORT_SESSION
        assert epoch.current_validation_start == T0
        assert epoch.next_validation == T0

    def test_fetch_ceremony_intervals(self):
        """dna_ceremonyIntervals parses the Pascal-case durations."""
        client = make_client({
            "dna_ceremonyIntervals": {"result": {
                "ShortSessionDuration": 120,
                "LongSessionDuration": 1800,
            }},
        })

        timing = run(client.fetch_ceremony_intervals())

        assert timing.short_session_duration == 120
        assert timing.long_session_duration == 1800

    def test_missing_result_is_none(self):
        """A null result comes back as None."""
        assert run(make_client({}).fetch_epoch()) is None

    def test_unexpected_result_raises(self):
        """A result of the wrong shape is an RpcError."""
        client = make_client({"dna_epoch": {"result": {"currentPeriod": "ShortSession"}}})

        with pytest.raises(RpcError):
            run(client.fetch_epoch())


class TestFlips:
    """Tests for flip enumeration and retrieval."""

    def test_fetch_flip_hashes_uses_session_method(self):
        """Each session type has its own hashes method."""
        requests = []
        client = make_client(
            {"flip_longHashes": {"result": [
                {"hash": "0xa", "extra": False, "ready": True},
                {"hash": "0xb", "extra": True, "ready": False},
            ]}},
            requests=requests,
        )

        hashes = run(client.fetch_flip_hashes(SessionType.LONG))

        assert requests[0]["method"] == "flip_longHashes"
        assert requests[0]["params"] == []
        assert [(h.hash, h.extra, h.ready) for h in hashes] == [
            ("0xa", False, True),
            ("0xb", True, False),
        ]

    def test_no_hashes_is_none(self):
        """A null hash list comes back as None."""
        assert run(make_client({}).fetch_flip_hashes(SessionType.SHORT)) is None

    def test_fetch_flip_passes_hash(self):
        """flip_get takes the hash as its only param."""
        requests = []
        client = make_client(
            {"flip_get": {"result": {"hex": "0x01", "ready": True}}},
            requests=requests,
        )

        payload = run(client.fetch_flip("0xa"))

        assert requests[0]["params"] == ["0xa"]
        assert payload.hex == "0x01"
        assert payload.ready
        assert payload.hidden is None


class TestSubmit:
    """Tests for answer submission."""

    def test_submit_short_answers_payload(self):
        """Answers go out with nonce and epoch."""
        requests = []
        client = make_client({"flip_submitShortAnswers": {"result": "0xtx"}}, requests=requests)
        answers = [{"hash": "0xa", "answer": 1, "easy": False}]

        result = run(client.submit_short_answers(answers, 0, 0))

        assert result == "0xtx"
        assert requests[0]["method"] == "flip_submitShortAnswers"
        assert requests[0]["params"] == [{"answers": answers, "nonce": 0, "epoch": 0}]

    def test_submit_long_answers_method(self):
        """Long answers use their own method."""
        requests = []
        client = make_client({}, requests=requests)

        run(client.submit_long_answers([], 0, 0))

        assert requests[0]["method"] == "flip_submitLongAnswers"


class TestErrors:
    """Tests for failure mapping."""

    def test_error_member_raises(self):
        """A JSON-RPC error member raises with its code."""
        client = make_client({"flip_submitShortAnswers": {
            "error": {"code": -32000, "message": "answers already submitted"},
        }})

        with pytest.raises(RpcError) as exc_info:
            run(client.submit_short_answers([], 0, 0))

        assert exc_info.value.code == -32000
        assert exc_info.value.method == "flip_submitShortAnswers"
        assert "already submitted" in str(exc_info.value)

    def test_http_error_raises(self):
        """HTTP errors raise RpcError."""
        client = make_client({}, status_code=500)

        with pytest.raises(RpcError):
            run(client.fetch_epoch())

    def test_transport_error_raises(self):
        """Connection failures raise RpcError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = NodeClient("http://node.test", http_client=http)

        with pytest.raises(RpcError):
            run(client.fetch_epoch())

    def test_request_ids_increase(self):
        """Every request gets the next id."""
        requests = []
        client = make_client({}, requests=requests)

        async def poll_twice():
            await client.fetch_epoch()
            await client.fetch_epoch()

        run(poll_twice())

        assert [r["id"] for r in requests] == [1, 2]

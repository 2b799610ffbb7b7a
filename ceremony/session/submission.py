"""
Submission - Turns recorded answers into the node's payload and sends it.

Unanswered flips are submitted with answer code 0 rather than left out.
There is no retry here: a failed submission raises to the caller.
"""

from __future__ import annotations
import logging
from typing import Any

from ..engine_core.action import Action
from ..engine_core.state import AnswerType, Flip, SessionType
from ..node.client import NodeClient

logger = logging.getLogger(__name__)

# The node takes nonce and epoch from its own state
SUBMIT_NONCE = 0
SUBMIT_EPOCH = 0


class AlreadySubmittedError(RuntimeError):
    """Raised when a phase's answers were already submitted or are in flight."""


def prepare_answers(flips: list[Flip]) -> list[dict[str, Any]]:
    """Map every flip to {hash, answer, easy}."""
    return [
        {
            "hash": flip.hash,
            "answer": int(flip.answer) if flip.has_answer else int(AnswerType.NONE),
            "easy": False,
        }
        for flip in flips
    ]


async def submit_answers(
    client: NodeClient,
    session_type: SessionType,
    flips: list[Flip],
    epoch: int | None,
) -> Action:
    """
    Submit answers for a phase.

    Returns the action that finalizes the submission locally.
    """
    payload = prepare_answers(flips)

    if session_type == SessionType.SHORT:
        await client.submit_short_answers(payload, SUBMIT_NONCE, SUBMIT_EPOCH)
    else:
        await client.submit_long_answers(payload, SUBMIT_NONCE, SUBMIT_EPOCH)

    answered = len([item for item in payload if item["answer"]])
    logger.info(
        "Submitted %s answers for epoch %s (%d of %d answered)",
        session_type.value, epoch, answered, len(payload),
    )
    return Action.submit_answers(session_type, payload, epoch)

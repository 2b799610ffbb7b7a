"""
Flip Collection - Merges fetched flip data into the known flip list.

Rules:
- Resolved flips (loaded or failed) are kept as-is, never re-decoded
- Pending flips whose fresh entry is ready get decoded
- Decode failures mark the flip failed for the rest of the phase
- Display order is ready, loading, failed, hidden (stable within buckets)
"""

from __future__ import annotations
import logging
from typing import Any

from .codec import FlipDecodeError, decode_flip
from .state import Flip

logger = logging.getLogger(__name__)


def seed_flips(data: list[dict[str, Any]]) -> list[Flip]:
    """Create the initial flip list from the first fetch."""
    return [
        Flip(hash=item["hash"], hidden=bool(item.get("hidden", False)))
        for item in data
    ]


def merge_flip(flip: Flip, item: dict[str, Any] | None) -> Flip:
    """
    Merge one fresh entry into a known flip.

    Returns the flip unchanged if it is already resolved or has no
    fresh entry.
    """
    if flip.is_resolved or item is None:
        return flip

    hidden = bool(flip.hidden or item.get("hidden", False))

    if not item.get("ready"):
        return Flip(hash=item["hash"], hidden=bool(item.get("hidden", False)), ready=False)

    try:
        decoded = decode_flip(item.get("hex"))
    except FlipDecodeError as e:
        logger.debug("Flip %s failed to decode: %s", flip.hash, e)
        return Flip(
            hash=flip.hash,
            hidden=hidden,
            ready=False,
            loaded=False,
            failed=True,
        )

    return flip._copy_with(
        ready=True,
        loaded=True,
        pics=decoded.pics,
        orders=decoded.orders,
        hidden=hidden,
    )


def decode_flips(data: list[dict[str, Any]], current_flips: list[Flip]) -> list[Flip]:
    """
    Recompute the flip list from freshly fetched data.

    The known list keeps its membership once seeded; fresh entries are
    matched by hash.
    """
    flips = current_flips if current_flips else seed_flips(data)
    by_hash = {item["hash"]: item for item in data}
    return [merge_flip(flip, by_hash.get(flip.hash)) for flip in flips]


def reorder_flips(flips: list[Flip]) -> list[Flip]:
    """Stable partition into ready, loading, failed and hidden flips."""
    ready: list[Flip] = []
    loading: list[Flip] = []
    failed: list[Flip] = []
    hidden: list[Flip] = []
    for flip in flips:
        if flip.hidden:
            hidden.append(flip)
        elif flip.is_loaded:
            ready.append(flip)
        elif flip.failed:
            failed.append(flip)
        else:
            loading.append(flip)
    return ready + loading + failed + hidden


def can_submit(flips: list[Flip], index: int) -> bool:
    """
    Whether the submit affordance is enabled.

    True when every visible, non-failed flip has an answer, or when
    the index has reached the last visible flip.
    """
    available = [f for f in flips if not f.hidden and not f.failed]
    visible = [f for f in flips if not f.hidden]
    return all(f.has_answer for f in available) or index >= len(visible) - 1

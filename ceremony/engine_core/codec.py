"""
Flip Codec - Decodes the node's hex-encoded flip payloads.

A payload is an RLP list of two fields:
1. pics: ordered list of raw image blobs
2. orders: one permutation per answer option, each element a
   byte string whose first byte is the image index (empty means 0)

Any failure raises FlipDecodeError; callers never see a partial decode.
"""

from __future__ import annotations
from dataclasses import dataclass

import rlp
from rlp.exceptions import RLPException


class FlipDecodeError(Exception):
    """Raised when a flip payload cannot be decoded."""


@dataclass
class DecodedFlip:
    """The decoded content of a flip."""
    pics: list[bytes]
    orders: list[list[int]]


def from_hex_string(hex_string: str) -> bytes:
    """Parse a hex string, with or without a 0x prefix."""
    if hex_string.startswith(("0x", "0X")):
        hex_string = hex_string[2:]
    return bytes.fromhex(hex_string)


def _unwrap_order_item(item) -> int:
    if not isinstance(item, bytes):
        raise FlipDecodeError(f"Order item must be a byte string, got {type(item).__name__}")
    return item[0] if item else 0


def decode_flip(hex_string: str) -> DecodedFlip:
    """
    Decode a hex-encoded flip payload.

    Raises FlipDecodeError for malformed hex, malformed RLP,
    or an unexpected structure.
    """
    if not isinstance(hex_string, str):
        raise FlipDecodeError("Flip payload must be a hex string")

    try:
        decoded = rlp.decode(from_hex_string(hex_string))
    except (ValueError, RLPException) as e:
        raise FlipDecodeError(f"Malformed flip payload: {e}") from e

    if not isinstance(decoded, list) or len(decoded) < 2:
        raise FlipDecodeError("Flip payload must be a list of [pics, orders]")

    raw_pics, raw_orders = decoded[0], decoded[1]
    if not isinstance(raw_pics, list) or not isinstance(raw_orders, list):
        raise FlipDecodeError("Flip pics and orders must be lists")

    pics = []
    for pic in raw_pics:
        if not isinstance(pic, bytes):
            raise FlipDecodeError("Flip image must be a byte string")
        pics.append(pic)

    orders = []
    for order in raw_orders:
        if not isinstance(order, list):
            raise FlipDecodeError("Flip order must be a list")
        orders.append([_unwrap_order_item(item) for item in order])

    return DecodedFlip(pics=pics, orders=orders)


def encode_flip(pics: list[bytes], orders: list[list[int]]) -> str:
    """Encode pics and orders into the 0x-prefixed hex payload format."""
    encoded_orders = [
        [bytes([index]) if index else b"" for index in order]
        for order in orders
    ]
    return "0x" + rlp.encode([list(pics), encoded_orders]).hex()

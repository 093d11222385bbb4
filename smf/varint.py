"""Variable-length quantity codec for delta times and meta lengths.

Groups of 7 bits are stored low-order first; a set high bit (0x80) means
another byte follows.  At most six bytes are accepted: five continuation
bytes and a terminal byte whose value may only use bit 0, which caps the
decoded value just below 2**36.
"""

from __future__ import annotations

from .cursor import ByteCursor
from .errors import VarintOverflowError

CONTINUATION = 0x80
MAX_VARINT_BYTES = 6


def decode_varint(cursor: ByteCursor) -> int:
    start = cursor.position
    value = 0
    for index in range(MAX_VARINT_BYTES):
        byte = cursor.read_byte()
        if index == MAX_VARINT_BYTES - 1 and byte > 1:
            raise VarintOverflowError(
                f"variable-length quantity at offset {start} exceeds {MAX_VARINT_BYTES} bytes"
            )
        value |= (byte & 0x7F) << (7 * index)
        if byte < CONTINUATION:
            break
    return value


def encode_varint(value: int) -> bytes:
    """Inverse of :func:`decode_varint`, used to author test input."""
    if value < 0:
        raise ValueError(f"negative value {value}")
    out = bytearray()
    while True:
        group = value & 0x7F
        value >>= 7
        if value:
            out.append(group | CONTINUATION)
        else:
            out.append(group)
            break
    if len(out) > MAX_VARINT_BYTES or (len(out) == MAX_VARINT_BYTES and out[-1] > 1):
        raise ValueError("value too large for a variable-length quantity")
    return bytes(out)

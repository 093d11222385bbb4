"""Header (``MThd``) and track (``MTrk``) chunk framing.

Both chunk kinds start with a 4-byte ASCII magic followed by a big-endian
u32 payload length.  The header payload is always read as the canonical
six bytes: format, track count, division (three big-endian u16 words).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .cursor import ByteCursor
from .errors import EndOfInputError, InvalidHeaderError, SMFNotImplementedError

logger = logging.getLogger(__name__)

HEADER_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"
HEADER_LENGTH = 6

FORMAT_SINGLE_TRACK = 0
FORMAT_MULTI_TRACK = 1
FORMAT_MULTI_SEQUENCE = 2
SUPPORTED_FORMATS = frozenset({FORMAT_MULTI_TRACK})


def _read_magic(cursor: ByteCursor, expected: bytes) -> None:
    offset = cursor.position
    magic = cursor.read_exact(len(expected))
    if magic != expected:
        raise InvalidHeaderError(
            f"expected {expected.decode('ascii')} at offset {offset}, found {magic!r}"
        )


@dataclass(frozen=True)
class Header:
    length: int  # declared payload length, conventionally 6
    format: int
    tracks: int
    division: int  # raw 16-bit division word

    @classmethod
    def from_cursor(cls, cursor: ByteCursor) -> "Header":
        _read_magic(cursor, HEADER_MAGIC)
        length = cursor.read_u32()
        fmt = cursor.read_u16()
        tracks = cursor.read_u16()
        division = cursor.read_u16()
        if length != HEADER_LENGTH:
            logger.debug("header declares %d payload bytes; reading %d", length, HEADER_LENGTH)
        logger.debug("header format=%d tracks=%d division=0x%04X", fmt, tracks, division)
        return cls(length=length, format=fmt, tracks=tracks, division=division)

    @property
    def uses_smpte(self) -> bool:
        return bool(self.division & 0x8000)

    @property
    def ticks_per_quarter(self) -> Optional[int]:
        """Metrical resolution, or None when the division is SMPTE-based."""
        if self.uses_smpte:
            return None
        return self.division & 0x7FFF

    @property
    def smpte_format(self) -> Optional[int]:
        """Frames per second (24, 25, 29 or 30) for SMPTE divisions.

        The high byte holds the negated frame rate in two's complement.
        """
        if not self.uses_smpte:
            return None
        return 256 - (self.division >> 8)

    @property
    def ticks_per_frame(self) -> Optional[int]:
        if not self.uses_smpte:
            return None
        return self.division & 0xFF


@dataclass(frozen=True)
class TrackFrame:
    """Boundaries of one track chunk.

    ``end_remaining`` is the cursor's ``remaining()`` value at which the
    track's payload is exhausted.
    """

    index: int  # 1-based track number
    length: int
    start: int  # absolute offset of the first payload byte
    end_remaining: int

    @property
    def end(self) -> int:
        return self.start + self.length

    @classmethod
    def from_cursor(cls, cursor: ByteCursor, header: Header, index: int) -> "TrackFrame":
        _read_magic(cursor, TRACK_MAGIC)
        if header.format not in (FORMAT_SINGLE_TRACK, FORMAT_MULTI_TRACK, FORMAT_MULTI_SEQUENCE):
            raise InvalidHeaderError(f"unknown SMF format {header.format}")
        if header.format not in SUPPORTED_FORMATS:
            raise SMFNotImplementedError(f"SMF format {header.format} is not supported")
        length = cursor.read_u32()
        remaining = cursor.remaining()
        if length > remaining:
            raise EndOfInputError(
                f"track {index} declares {length} bytes but only {remaining} remain"
            )
        frame = cls(
            index=index,
            length=length,
            start=cursor.position,
            end_remaining=remaining - length,
        )
        logger.debug("track %d: %d bytes at offset %d", index, length, frame.start)
        return frame

    def has_more(self, cursor: ByteCursor) -> bool:
        return cursor.remaining() > self.end_remaining

    def overrun(self, cursor: ByteCursor) -> int:
        """Number of bytes consumed past the end of this track (0 if none)."""
        return max(0, self.end_remaining - cursor.remaining())

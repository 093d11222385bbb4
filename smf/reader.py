"""Pull-based decoding session over a complete SMF byte buffer.

Typical use::

    reader = MidiReader(data)
    header = reader.read_header()
    while reader.has_next_track():
        frame = reader.read_next_track()
        while reader.has_next_event():
            event = reader.read_next_event()

``MidiFile.from_bytes`` runs the same loop and collects the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

from .chunks import Header, TrackFrame
from .cursor import ByteCursor
from .decoder import TrackState, decode_next
from .errors import TrackOverrunError
from .events import Event, Text, TextType

logger = logging.getLogger(__name__)


class MidiReader:
    """One decoding session: header once, then each track in order.

    A reader is single-use.  After any :class:`~smf.errors.SMFError` its
    state is undefined and it must be discarded.
    """

    def __init__(self, data: bytes, *, strict_bounds: bool = True) -> None:
        self._cursor = ByteCursor(data)
        self._strict_bounds = strict_bounds
        self._header: Optional[Header] = None
        self._frame: Optional[TrackFrame] = None
        self._state = TrackState()
        self._tracks_read = 0

    @property
    def header(self) -> Optional[Header]:
        return self._header

    @property
    def frame(self) -> Optional[TrackFrame]:
        return self._frame

    @property
    def state(self) -> TrackState:
        return self._state

    @property
    def position(self) -> int:
        return self._cursor.position

    @property
    def done(self) -> bool:
        """True once every declared track has been read to exhaustion."""
        return (
            self._header is not None
            and not self.has_next_track()
            and not self.has_next_event()
        )

    def read_header(self) -> Header:
        if self._header is not None:
            raise RuntimeError("header has already been read")
        self._header = Header.from_cursor(self._cursor)
        return self._header

    def _require_header(self) -> Header:
        if self._header is None:
            raise RuntimeError("read_header() must be called first")
        return self._header

    def has_next_track(self) -> bool:
        return self._tracks_read < self._require_header().tracks

    def read_next_track(self) -> TrackFrame:
        """Frame the next track chunk and reset running status and time.

        Unread events of the current track are skipped.
        """
        header = self._require_header()
        if not self.has_next_track():
            raise RuntimeError(f"all {header.tracks} tracks have been read")
        if self._frame is not None and self._frame.has_more(self._cursor):
            skipped = self._cursor.remaining() - self._frame.end_remaining
            logger.debug("skipping %d unread bytes of track %d", skipped, self._frame.index)
            self._cursor.read_exact(skipped)
        self._tracks_read += 1
        self._frame = TrackFrame.from_cursor(self._cursor, header, self._tracks_read)
        self._state.reset()
        return self._frame

    def has_next_event(self) -> bool:
        return self._frame is not None and self._frame.has_more(self._cursor)

    def read_next_event(self) -> Event:
        frame = self._frame
        if frame is None:
            raise RuntimeError("read_next_track() must be called first")
        if not frame.has_more(self._cursor):
            raise RuntimeError(f"track {frame.index} is exhausted")
        start = self._cursor.position
        event = decode_next(self._cursor, self._state)
        if self._strict_bounds:
            over = frame.overrun(self._cursor)
            if over:
                raise TrackOverrunError(
                    f"event at offset {start} runs {over} bytes past the end of track {frame.index}"
                )
        logger.debug("track %d tick %d: %s", frame.index, event.tick, event.kind.value)
        return event

    def iter_events(self) -> Iterator[Event]:
        while self.has_next_event():
            yield self.read_next_event()

    def tracks(self) -> Iterator[TrackFrame]:
        """Frame each remaining track in turn; events are pulled between steps."""
        while self.has_next_track():
            yield self.read_next_track()


@dataclass(frozen=True)
class Track:
    index: int  # 1-based
    length: int  # declared chunk payload length
    events: List[Event]

    @property
    def name(self) -> Optional[str]:
        """Text of the first track-name meta event, if any."""
        for event in self.events:
            if isinstance(event, Text) and event.subtype is TextType.TRACK_NAME:
                return event.text
        return None

    @property
    def duration(self) -> int:
        """Tick of the last event in the track."""
        return self.events[-1].tick if self.events else 0


@dataclass(frozen=True)
class MidiFile:
    """Fully decoded SMF: header plus every track's events."""

    header: Header
    tracks: List[Track]

    @classmethod
    def from_bytes(cls, data: bytes, *, strict_bounds: bool = True) -> "MidiFile":
        reader = MidiReader(data, strict_bounds=strict_bounds)
        header = reader.read_header()
        tracks: List[Track] = []
        for frame in reader.tracks():
            events = list(reader.iter_events())
            tracks.append(Track(index=frame.index, length=frame.length, events=events))
        return cls(header=header, tracks=tracks)

    @classmethod
    def from_path(cls, path: Union[str, Path], *, strict_bounds: bool = True) -> "MidiFile":
        return cls.from_bytes(Path(path).read_bytes(), strict_bounds=strict_bounds)

"""Decoded MIDI event model.

Each concrete event is a frozen dataclass with a ``kind`` tag, so callers
can dispatch on ``event.kind`` (or ``isinstance``) exhaustively.  All
events share ``delta`` (ticks since the previous event in the same track),
``tick`` (cumulative ticks since track start) and ``channel`` (1-16 for
channel-voice events, otherwise None).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Optional


class EventKind(enum.Enum):
    NOTE_ON = "note_on"
    NOTE_OFF = "note_off"
    CONTROL_CHANGE = "control_change"
    PROGRAM_CHANGE = "program_change"
    CHANNEL_PRESSURE = "channel_pressure"
    PITCH_BEND = "pitch_bend"
    SYSEX = "sysex"
    TIMING_MARKER = "timing_marker"
    SEQUENCER_SPECIFIC = "sequencer_specific"
    SMPTE_OFFSET = "smpte_offset"
    KEY_SIGNATURE = "key_signature"
    TIME_SIGNATURE = "time_signature"
    TEXT = "text"
    TEMPO = "tempo"
    END_OF_TRACK = "end_of_track"
    # Recognised but never produced; decoding it raises SMFNotImplementedError.
    TRACK_SEQUENCE_NUMBER = "track_sequence_number"


class TextType(enum.IntEnum):
    TEXT = 0x01
    COPYRIGHT = 0x02
    TRACK_NAME = 0x03
    INSTRUMENT_NAME = 0x04
    LYRIC = 0x05
    MARKER = 0x06
    CUE_POINT = 0x07
    PROGRAM_NAME = 0x08
    DEVICE_NAME = 0x09


@dataclass(frozen=True)
class Event:
    kind: ClassVar[EventKind]

    delta: int
    tick: int
    channel: Optional[int] = None


@dataclass(frozen=True)
class NoteOn(Event):
    kind: ClassVar[EventKind] = EventKind.NOTE_ON
    key: int = 0
    velocity: int = 0


@dataclass(frozen=True)
class NoteOff(Event):
    """Note-off, also produced for polyphonic key aftertouch (0xA0)."""

    kind: ClassVar[EventKind] = EventKind.NOTE_OFF
    key: int = 0
    velocity: int = 0


@dataclass(frozen=True)
class ControlChange(Event):
    kind: ClassVar[EventKind] = EventKind.CONTROL_CHANGE
    controller: int = 0
    value: int = 0


@dataclass(frozen=True)
class ProgramChange(Event):
    kind: ClassVar[EventKind] = EventKind.PROGRAM_CHANGE
    program: int = 0


@dataclass(frozen=True)
class ChannelPressure(Event):
    kind: ClassVar[EventKind] = EventKind.CHANNEL_PRESSURE
    pressure: int = 0


@dataclass(frozen=True)
class PitchBend(Event):
    kind: ClassVar[EventKind] = EventKind.PITCH_BEND
    value: int = 0  # 0..16383, 8192 = centre


@dataclass(frozen=True)
class Sysex(Event):
    kind: ClassVar[EventKind] = EventKind.SYSEX
    data: bytes = b""  # excludes the 0xF7 terminator


@dataclass(frozen=True)
class TimingMarker(Event):
    """Timing clock / start / continue / stop (0xF8, 0xFA, 0xFB, 0xFC)."""

    kind: ClassVar[EventKind] = EventKind.TIMING_MARKER
    status: int = 0


@dataclass(frozen=True)
class SequencerSpecific(Event):
    kind: ClassVar[EventKind] = EventKind.SEQUENCER_SPECIFIC
    data: bytes = b""


@dataclass(frozen=True)
class SmpteOffset(Event):
    kind: ClassVar[EventKind] = EventKind.SMPTE_OFFSET
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    frames: int = 0
    sub_frames: int = 0


@dataclass(frozen=True)
class KeySignature(Event):
    kind: ClassVar[EventKind] = EventKind.KEY_SIGNATURE
    sharps_flats: int = 0  # -7 (7 flats) .. 7 (7 sharps)
    major_minor: int = 0  # 0 = major, 1 = minor

    @property
    def is_minor(self) -> bool:
        return self.major_minor == 1


@dataclass(frozen=True)
class TimeSignature(Event):
    kind: ClassVar[EventKind] = EventKind.TIME_SIGNATURE
    numerator: int = 4
    denominator: int = 2  # power-of-two exponent: 2 = quarter, 3 = eighth
    clocks_per_click: int = 24
    thirty_seconds_per_quarter: int = 8

    @property
    def denominator_value(self) -> int:
        return 2 ** self.denominator


@dataclass(frozen=True)
class Text(Event):
    kind: ClassVar[EventKind] = EventKind.TEXT
    subtype: TextType = TextType.TEXT
    text: str = ""
    raw: bytes = b""


@dataclass(frozen=True)
class Tempo(Event):
    kind: ClassVar[EventKind] = EventKind.TEMPO
    microseconds_per_quarter: int = 500_000

    @property
    def bpm(self) -> Optional[float]:
        """Beats per minute, or None for a zero tempo value."""
        if not self.microseconds_per_quarter:
            return None
        return 60_000_000 / self.microseconds_per_quarter


@dataclass(frozen=True)
class EndOfTrack(Event):
    kind: ClassVar[EventKind] = EventKind.END_OF_TRACK


_CSV_NAMES = {
    EventKind.NOTE_ON: "Note_on_c",
    EventKind.NOTE_OFF: "Note_off_c",
    EventKind.CONTROL_CHANGE: "Control_c",
    EventKind.PROGRAM_CHANGE: "Program_c",
    EventKind.CHANNEL_PRESSURE: "Channel_aftertouch_c",
    EventKind.PITCH_BEND: "Pitch_bend_c",
    EventKind.SYSEX: "System_exclusive",
    EventKind.TIMING_MARKER: "Timing_marker",
    EventKind.SEQUENCER_SPECIFIC: "Sequencer_specific",
    EventKind.SMPTE_OFFSET: "SMPTE_offset",
    EventKind.KEY_SIGNATURE: "Key_signature",
    EventKind.TIME_SIGNATURE: "Time_signature",
    EventKind.TEXT: "Text_t",
    EventKind.TEMPO: "Tempo",
    EventKind.END_OF_TRACK: "End_track",
}

_TEXT_NAMES = {
    TextType.TEXT: "Text_t",
    TextType.COPYRIGHT: "Copyright_t",
    TextType.TRACK_NAME: "Title_t",
    TextType.INSTRUMENT_NAME: "Instrument_name_t",
    TextType.LYRIC: "Lyric_t",
    TextType.MARKER: "Marker_t",
    TextType.CUE_POINT: "Cue_point_t",
    TextType.PROGRAM_NAME: "Program_name_t",
    TextType.DEVICE_NAME: "Device_name_t",
}


def _fields(event: Event) -> list[str]:
    if isinstance(event, (NoteOn, NoteOff)):
        return [str(event.key), str(event.velocity)]
    if isinstance(event, ControlChange):
        return [str(event.controller), str(event.value)]
    if isinstance(event, ProgramChange):
        return [str(event.program)]
    if isinstance(event, ChannelPressure):
        return [str(event.pressure)]
    if isinstance(event, PitchBend):
        return [str(event.value)]
    if isinstance(event, (Sysex, SequencerSpecific)):
        return [str(len(event.data))] + [str(b) for b in event.data]
    if isinstance(event, TimingMarker):
        return [f"0x{event.status:02X}"]
    if isinstance(event, SmpteOffset):
        return [
            str(event.hours),
            str(event.minutes),
            str(event.seconds),
            str(event.frames),
            str(event.sub_frames),
        ]
    if isinstance(event, KeySignature):
        return [str(event.sharps_flats), "minor" if event.is_minor else "major"]
    if isinstance(event, TimeSignature):
        return [
            str(event.numerator),
            str(event.denominator),
            str(event.clocks_per_click),
            str(event.thirty_seconds_per_quarter),
        ]
    if isinstance(event, Text):
        escaped = event.text.replace("\\", "\\\\").replace('"', '\\"')
        return [f'"{escaped}"']
    if isinstance(event, Tempo):
        return [str(event.microseconds_per_quarter)]
    return []


def format_event(event: Event) -> str:
    """Render one event as a CSV-like line: ``tick, channel, Name, fields...``.

    Events without a channel render channel 0.
    """
    if isinstance(event, Text):
        name = _TEXT_NAMES[event.subtype]
    else:
        name = _CSV_NAMES[event.kind]
    parts = [str(event.tick), str(event.channel or 0), name] + _fields(event)
    return ", ".join(parts)

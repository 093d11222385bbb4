"""Decode one delta-timed event from a track chunk.

Per-event layout inside an ``MTrk`` payload::

    <varint delta> <status byte | running-status data byte> <payload>

A status byte has its high bit set.  For channel-voice statuses
(0x80-0xEF) the high nibble is the command and the low nibble the
channel; 0xF0-0xFF statuses are used verbatim and carry no channel.
A data byte where a status is expected means "running status": the
previous command and channel apply and the byte belongs to the payload.

Meta events (0xFF) continue with ``<type byte> <varint length> <length
bytes>``.  Fixed-shape meta events have their length validated before
any payload byte is consumed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .cursor import ByteCursor
from .errors import (
    InvalidCommandCodeError,
    InvalidLengthError,
    InvalidMetaEventTypeError,
    InvalidPitchByteError,
    InvalidPressureError,
    InvalidProgramError,
    SMFNotImplementedError,
)
from .events import (
    ChannelPressure,
    ControlChange,
    EndOfTrack,
    Event,
    KeySignature,
    NoteOff,
    NoteOn,
    PitchBend,
    ProgramChange,
    SequencerSpecific,
    SmpteOffset,
    Sysex,
    Tempo,
    Text,
    TextType,
    TimeSignature,
    TimingMarker,
)
from .varint import decode_varint

logger = logging.getLogger(__name__)

# Channel-voice commands (high nibble of the status byte).
NOTE_OFF = 0x80
NOTE_ON = 0x90
KEY_AFTERTOUCH = 0xA0
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_PRESSURE = 0xD0
PITCH_WHEEL = 0xE0

# System statuses, used verbatim.
SYSEX = 0xF0
EOX = 0xF7
TIMING_CLOCK = 0xF8
START_SEQUENCE = 0xFA
CONTINUE_SEQUENCE = 0xFB
STOP_SEQUENCE = 0xFC
AUTO_SENSING = 0xFE
META_EVENT = 0xFF

TIMING_MARKERS = frozenset({TIMING_CLOCK, START_SEQUENCE, CONTINUE_SEQUENCE, STOP_SEQUENCE})

# Meta event types.
META_SEQUENCE_NUMBER = 0x00
META_MIDI_CHANNEL = 0x20
META_MIDI_PORT = 0x21
META_END_OF_TRACK = 0x2F
META_SET_TEMPO = 0x51
META_SMPTE_OFFSET = 0x54
META_TIME_SIGNATURE = 0x58
META_KEY_SIGNATURE = 0x59
META_SEQUENCER_SPECIFIC = 0x7F

TEXT_META_TYPES = frozenset(int(t) for t in TextType)

FIXED_META_LENGTHS = {
    META_END_OF_TRACK: 0,
    META_SET_TEMPO: 3,
    META_SMPTE_OFFSET: 5,
    META_TIME_SIGNATURE: 4,
    META_KEY_SIGNATURE: 2,
}

META_NAMES = {
    META_SEQUENCE_NUMBER: "sequence number",
    META_MIDI_CHANNEL: "MIDI channel prefix",
    META_MIDI_PORT: "MIDI port",
    META_END_OF_TRACK: "end of track",
    META_SET_TEMPO: "set tempo",
    META_SMPTE_OFFSET: "SMPTE offset",
    META_TIME_SIGNATURE: "time signature",
    META_KEY_SIGNATURE: "key signature",
}


@dataclass
class TrackState:
    """Running status and cumulative time for the track being decoded.

    ``last_command`` stays None until the track's first status byte.
    """

    last_command: Optional[int] = None
    last_channel: Optional[int] = None
    cumulative_time: int = 0

    def reset(self) -> None:
        self.last_command = None
        self.last_channel = None
        self.cumulative_time = 0


@dataclass(frozen=True)
class _Context:
    """Fields shared by every event built from one status resolution."""

    delta: int
    tick: int
    channel: Optional[int]


def _data_byte(cursor: ByteCursor, error: type, what: str) -> int:
    offset = cursor.position
    value = cursor.read_byte()
    if value & 0x80:
        raise error(f"{what} byte 0x{value:02X} at offset {offset} has its high bit set")
    return value


# ── channel-voice payloads ─────────────────────────────────────────


def _note_on(cursor: ByteCursor, ctx: _Context) -> Event:
    key = cursor.read_byte()
    velocity = cursor.read_byte()
    return NoteOn(ctx.delta, ctx.tick, ctx.channel, key=key, velocity=velocity)


def _note_off(cursor: ByteCursor, ctx: _Context) -> Event:
    # Key aftertouch shares this two-byte shape and decodes as a note-off.
    key = cursor.read_byte()
    velocity = cursor.read_byte()
    return NoteOff(ctx.delta, ctx.tick, ctx.channel, key=key, velocity=velocity)


def _control_change(cursor: ByteCursor, ctx: _Context) -> Event:
    controller = cursor.read_byte()
    value = cursor.read_byte()
    return ControlChange(ctx.delta, ctx.tick, ctx.channel, controller=controller, value=value)


def _program_change(cursor: ByteCursor, ctx: _Context) -> Event:
    program = _data_byte(cursor, InvalidProgramError, "program")
    return ProgramChange(ctx.delta, ctx.tick, ctx.channel, program=program)


def _channel_pressure(cursor: ByteCursor, ctx: _Context) -> Event:
    pressure = _data_byte(cursor, InvalidPressureError, "pressure")
    return ChannelPressure(ctx.delta, ctx.tick, ctx.channel, pressure=pressure)


def _pitch_wheel(cursor: ByteCursor, ctx: _Context) -> Event:
    offset = cursor.position
    lsb = cursor.read_byte()
    msb = cursor.read_byte()
    if lsb & 0x80 or msb & 0x80:
        raise InvalidPitchByteError(
            f"pitch wheel bytes 0x{lsb:02X} 0x{msb:02X} at offset {offset} have a high bit set"
        )
    return PitchBend(ctx.delta, ctx.tick, ctx.channel, value=lsb + (msb << 7))


# ── system payloads ────────────────────────────────────────────────


def _sysex(cursor: ByteCursor, ctx: _Context) -> Event:
    data = bytearray()
    while True:
        b = cursor.read_byte()
        if b == EOX:
            break
        data.append(b)
    return Sysex(ctx.delta, ctx.tick, ctx.channel, data=bytes(data))


def _timing_marker(status: int) -> Callable[[ByteCursor, _Context], Event]:
    def decode(cursor: ByteCursor, ctx: _Context) -> Event:
        return TimingMarker(ctx.delta, ctx.tick, ctx.channel, status=status)

    return decode


def _not_implemented(name: str) -> Callable[[ByteCursor, _Context], Event]:
    def decode(cursor: ByteCursor, ctx: _Context) -> Event:
        raise SMFNotImplementedError(f"standalone {name} status is not supported")

    return decode


# ── meta events ────────────────────────────────────────────────────


def _meta_event(cursor: ByteCursor, ctx: _Context) -> Event:
    meta_type = cursor.read_byte()
    length = decode_varint(cursor)

    if meta_type in FIXED_META_LENGTHS and length != FIXED_META_LENGTHS[meta_type]:
        raise InvalidLengthError(
            f"{META_NAMES[meta_type]} meta event declares length {length}, "
            f"expected {FIXED_META_LENGTHS[meta_type]}"
        )

    if meta_type in TEXT_META_TYPES:
        raw = cursor.read_exact(length)
        return Text(
            ctx.delta,
            ctx.tick,
            ctx.channel,
            subtype=TextType(meta_type),
            text=raw.decode("latin-1"),
            raw=raw,
        )
    if meta_type in (META_SEQUENCE_NUMBER, META_MIDI_CHANNEL, META_MIDI_PORT):
        raise SMFNotImplementedError(f"{META_NAMES[meta_type]} meta event is not supported")
    if meta_type == META_END_OF_TRACK:
        return EndOfTrack(ctx.delta, ctx.tick, ctx.channel)
    if meta_type == META_SET_TEMPO:
        b1, b2, b3 = cursor.read_exact(3)
        return Tempo(
            ctx.delta,
            ctx.tick,
            ctx.channel,
            microseconds_per_quarter=(b1 << 16) + (b2 << 8) + b3,
        )
    if meta_type == META_SMPTE_OFFSET:
        hours, minutes, seconds, frames, sub_frames = cursor.read_exact(5)
        return SmpteOffset(
            ctx.delta,
            ctx.tick,
            ctx.channel,
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            frames=frames,
            sub_frames=sub_frames,
        )
    if meta_type == META_TIME_SIGNATURE:
        numerator, denominator, clocks, thirty_seconds = cursor.read_exact(4)
        return TimeSignature(
            ctx.delta,
            ctx.tick,
            ctx.channel,
            numerator=numerator,
            denominator=denominator,
            clocks_per_click=clocks,
            thirty_seconds_per_quarter=thirty_seconds,
        )
    if meta_type == META_KEY_SIGNATURE:
        sharps_flats, major_minor = cursor.read_exact(2)
        if sharps_flats > 0x7F:
            sharps_flats -= 0x100
        return KeySignature(
            ctx.delta,
            ctx.tick,
            ctx.channel,
            sharps_flats=sharps_flats,
            major_minor=major_minor,
        )
    if meta_type == META_SEQUENCER_SPECIFIC:
        data = cursor.read_exact(length)
        return SequencerSpecific(ctx.delta, ctx.tick, ctx.channel, data=data)
    raise InvalidMetaEventTypeError(f"unknown meta event type 0x{meta_type:02X}")


_DISPATCH: Dict[int, Callable[[ByteCursor, _Context], Event]] = {
    NOTE_ON: _note_on,
    NOTE_OFF: _note_off,
    KEY_AFTERTOUCH: _note_off,
    CONTROL_CHANGE: _control_change,
    PROGRAM_CHANGE: _program_change,
    CHANNEL_PRESSURE: _channel_pressure,
    PITCH_WHEEL: _pitch_wheel,
    SYSEX: _sysex,
    EOX: _not_implemented("EOX"),
    AUTO_SENSING: _not_implemented("auto-sensing"),
    META_EVENT: _meta_event,
}
_DISPATCH.update({status: _timing_marker(status) for status in TIMING_MARKERS})


def decode_next(cursor: ByteCursor, state: TrackState) -> Event:
    """Decode the next event at ``cursor`` and advance ``state``.

    Raises
    ------
    SMFError
        Any subclass from :mod:`smf.errors`; the cursor position is then
        undefined.
    """
    delta = decode_varint(cursor)
    state.cumulative_time += delta

    offset = cursor.position
    status = cursor.read_byte()
    if not status & 0x80:
        if state.last_command is None:
            raise InvalidCommandCodeError(
                f"data byte 0x{status:02X} at offset {offset} with no running status"
            )
        command = state.last_command
        channel = state.last_channel
        cursor.unread_last_byte()
        logger.debug("running status 0x%02X at offset %d", command, offset)
    elif status & 0xF0 == 0xF0:
        command = status
        channel = None
    else:
        command = status & 0xF0
        channel = (status & 0x0F) + 1
    state.last_command = command
    state.last_channel = channel

    handler = _DISPATCH.get(command)
    if handler is None:
        raise InvalidCommandCodeError(f"unknown command code 0x{command:02X} at offset {offset}")
    ctx = _Context(delta=delta, tick=state.cumulative_time, channel=channel)
    return handler(cursor, ctx)

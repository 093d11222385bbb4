"""Tests for single-event decoding, running status and meta sub-decoders."""

from pathlib import Path
import sys
from typing import List

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smf.cursor import ByteCursor  # noqa: E402
from smf.decoder import TrackState, decode_next  # noqa: E402
from smf.errors import (  # noqa: E402
    EndOfInputError,
    InvalidCommandCodeError,
    InvalidLengthError,
    InvalidMetaEventTypeError,
    InvalidPitchByteError,
    InvalidPressureError,
    InvalidProgramError,
    SMFNotImplementedError,
)
from smf.events import (  # noqa: E402
    ChannelPressure,
    ControlChange,
    EndOfTrack,
    EventKind,
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


def _decode_all(data: bytes) -> List:
    cursor = ByteCursor(data)
    state = TrackState()
    events = []
    while cursor.remaining():
        events.append(decode_next(cursor, state))
    return events


def _decode_one(data: bytes):
    cursor = ByteCursor(data)
    event = decode_next(cursor, TrackState())
    assert cursor.remaining() == 0, "event did not consume its exact payload"
    return event


# ── channel voice ──────────────────────────────────────────────────


class TestChannelVoice:
    def test_note_on(self):
        event = _decode_one(b"\x00\x93\x3c\x64")
        assert event == NoteOn(delta=0, tick=0, channel=4, key=0x3C, velocity=0x64)
        assert event.kind is EventKind.NOTE_ON

    def test_note_off(self):
        event = _decode_one(b"\x05\x80\x3c\x40")
        assert event == NoteOff(delta=5, tick=5, channel=1, key=0x3C, velocity=0x40)

    def test_key_aftertouch_decodes_as_note_off(self):
        event = _decode_one(b"\x00\xaf\x3c\x22")
        assert isinstance(event, NoteOff)
        assert event.channel == 16
        assert (event.key, event.velocity) == (0x3C, 0x22)

    def test_control_change(self):
        event = _decode_one(b"\x00\xb1\x07\x64")
        assert event == ControlChange(delta=0, tick=0, channel=2, controller=7, value=100)

    def test_program_change(self):
        event = _decode_one(b"\x00\xc9\x19")
        assert event == ProgramChange(delta=0, tick=0, channel=10, program=25)

    def test_program_change_high_bit(self):
        with pytest.raises(InvalidProgramError):
            _decode_one(b"\x00\xc0\x80")

    def test_channel_pressure(self):
        event = _decode_one(b"\x00\xd2\x40")
        assert event == ChannelPressure(delta=0, tick=0, channel=3, pressure=0x40)

    def test_channel_pressure_high_bit(self):
        with pytest.raises(InvalidPressureError):
            _decode_one(b"\x00\xd0\xff")

    def test_pitch_bend_centre(self):
        event = _decode_one(b"\x00\xe0\x00\x40")
        assert event == PitchBend(delta=0, tick=0, channel=1, value=8192)

    def test_pitch_bend_combines_seven_bit_halves(self):
        event = _decode_one(b"\x00\xe0\x7f\x7f")
        assert event.value == 16383

    @pytest.mark.parametrize("payload", [b"\x80\x40", b"\x00\x80"])
    def test_pitch_bend_high_bit(self, payload):
        with pytest.raises(InvalidPitchByteError):
            _decode_one(b"\x00\xe0" + payload)

    def test_truncated_payload(self):
        with pytest.raises(EndOfInputError):
            _decode_one(b"\x00\x90\x3c")


# ── running status ─────────────────────────────────────────────────


class TestRunningStatus:
    def test_two_note_ons_share_one_status(self):
        # Event bytes 90 40 7F | 41 5A, each preceded by a zero delta.
        cursor = ByteCursor(b"\x00\x90\x40\x7f\x00\x41\x5a")
        state = TrackState()
        first = decode_next(cursor, state)
        second = decode_next(cursor, state)
        assert first == NoteOn(delta=0, tick=0, channel=1, key=0x40, velocity=0x7F)
        assert second == NoteOn(delta=0, tick=0, channel=1, key=0x41, velocity=0x5A)
        assert cursor.position == 7
        assert cursor.remaining() == 0

    def test_state_tracks_last_status(self):
        cursor = ByteCursor(b"\x00\xb5\x07\x64")
        state = TrackState()
        decode_next(cursor, state)
        assert state.last_command == 0xB0
        assert state.last_channel == 6

    def test_running_status_reads_but_does_not_change_state(self):
        state = TrackState(last_command=0xC0, last_channel=9)
        event = decode_next(ByteCursor(b"\x00\x05"), state)
        assert event == ProgramChange(delta=0, tick=0, channel=9, program=5)
        assert (state.last_command, state.last_channel) == (0xC0, 9)

    def test_data_byte_before_any_status(self):
        with pytest.raises(InvalidCommandCodeError):
            decode_next(ByteCursor(b"\x00\x40\x7f"), TrackState())

    def test_system_status_has_no_channel(self):
        state = TrackState()
        decode_next(ByteCursor(b"\x00\xf8"), state)
        assert state.last_command == 0xF8
        assert state.last_channel is None

    def test_reset(self):
        state = TrackState(last_command=0x90, last_channel=1, cumulative_time=40)
        state.reset()
        assert state == TrackState()


# ── cumulative time ────────────────────────────────────────────────


def test_ticks_accumulate_deltas():
    events = _decode_all(b"\x0a\x90\x3c\x64\x14\x80\x3c\x00\x00\xff\x2f\x00")
    assert [e.delta for e in events] == [10, 20, 0]
    assert [e.tick for e in events] == [10, 30, 30]


def test_multi_byte_delta():
    # 0x81 0x01 = 129 ticks
    events = _decode_all(b"\x81\x01\x90\x3c\x64")
    assert events[0].delta == 129
    assert events[0].tick == 129


# ── system events ──────────────────────────────────────────────────


class TestSystem:
    def test_sysex_is_terminated_by_f7(self):
        event = _decode_one(b"\x00\xf0\x7e\x7f\x09\x01\xf7")
        assert event == Sysex(delta=0, tick=0, channel=None, data=b"\x7e\x7f\x09\x01")

    def test_sysex_without_terminator(self):
        with pytest.raises(EndOfInputError):
            _decode_one(b"\x00\xf0\x7e\x7f")

    @pytest.mark.parametrize("status", [0xF8, 0xFA, 0xFB, 0xFC])
    def test_timing_markers_have_no_payload(self, status):
        event = _decode_one(bytes([0x00, status]))
        assert event == TimingMarker(delta=0, tick=0, channel=None, status=status)

    @pytest.mark.parametrize("status", [0xF7, 0xFE])
    def test_standalone_eox_and_auto_sensing(self, status):
        with pytest.raises(SMFNotImplementedError):
            _decode_one(bytes([0x00, status]))

    @pytest.mark.parametrize("status", [0xF1, 0xF2, 0xF9, 0xFD])
    def test_unknown_system_status(self, status):
        with pytest.raises(InvalidCommandCodeError):
            _decode_one(bytes([0x00, status, 0x00]))


# ── meta events ────────────────────────────────────────────────────


class TestMeta:
    def test_end_of_track(self):
        event = _decode_one(b"\x00\xff\x2f\x00")
        assert event == EndOfTrack(delta=0, tick=0, channel=None)
        assert event.kind is EventKind.END_OF_TRACK

    def test_end_of_track_with_payload(self):
        with pytest.raises(InvalidLengthError):
            _decode_one(b"\x00\xff\x2f\x01\x00")

    def test_tempo(self):
        event = _decode_one(b"\x00\xff\x51\x03\x07\xa1\x20")
        assert event == Tempo(delta=0, tick=0, channel=None, microseconds_per_quarter=500_000)
        assert event.bpm == pytest.approx(120.0)

    def test_tempo_uses_full_24_bits(self):
        event = _decode_one(b"\x00\xff\x51\x03\xff\xff\xff")
        assert event.microseconds_per_quarter == 0xFFFFFF

    def test_zero_tempo_has_no_bpm(self):
        event = _decode_one(b"\x00\xff\x51\x03\x00\x00\x00")
        assert event.microseconds_per_quarter == 0
        assert event.bpm is None

    def test_tempo_wrong_length_consumes_nothing_after_length(self):
        cursor = ByteCursor(b"\x00\xff\x51\x02\x07\xa1\x20")
        with pytest.raises(InvalidLengthError):
            decode_next(cursor, TrackState())
        assert cursor.position == 4

    def test_smpte_offset(self):
        event = _decode_one(b"\x00\xff\x54\x05\x01\x02\x03\x04\x05")
        assert event == SmpteOffset(
            delta=0, tick=0, channel=None,
            hours=1, minutes=2, seconds=3, frames=4, sub_frames=5,
        )

    def test_smpte_offset_wrong_length(self):
        with pytest.raises(InvalidLengthError):
            _decode_one(b"\x00\xff\x54\x04\x01\x02\x03\x04")

    def test_time_signature(self):
        event = _decode_one(b"\x00\xff\x58\x04\x06\x03\x24\x08")
        assert event == TimeSignature(
            delta=0, tick=0, channel=None,
            numerator=6, denominator=3, clocks_per_click=36, thirty_seconds_per_quarter=8,
        )
        assert event.denominator_value == 8

    def test_time_signature_wrong_length(self):
        with pytest.raises(InvalidLengthError):
            _decode_one(b"\x00\xff\x58\x03\x04\x02\x18")

    def test_key_signature_flats_are_negative(self):
        event = _decode_one(b"\x00\xff\x59\x02\xfd\x01")
        assert event == KeySignature(delta=0, tick=0, channel=None, sharps_flats=-3, major_minor=1)
        assert event.is_minor

    def test_key_signature_sharps(self):
        event = _decode_one(b"\x00\xff\x59\x02\x02\x00")
        assert event.sharps_flats == 2
        assert not event.is_minor

    def test_key_signature_wrong_length(self):
        with pytest.raises(InvalidLengthError):
            _decode_one(b"\x00\xff\x59\x01\x00")

    @pytest.mark.parametrize("subtype", list(TextType))
    def test_text_family(self, subtype):
        event = _decode_one(bytes([0x00, 0xFF, int(subtype), 0x05]) + b"Piano")
        assert isinstance(event, Text)
        assert event.subtype is subtype
        assert event.text == "Piano"
        assert event.raw == b"Piano"

    def test_empty_text(self):
        event = _decode_one(b"\x00\xff\x03\x00")
        assert event.text == ""

    def test_text_keeps_non_ascii_bytes(self):
        event = _decode_one(b"\x00\xff\x01\x02\xe9\xff")
        assert event.raw == b"\xe9\xff"
        assert event.text == "éÿ"

    def test_sequencer_specific(self):
        event = _decode_one(b"\x00\xff\x7f\x03\x00\x00\x41")
        assert event == SequencerSpecific(delta=0, tick=0, channel=None, data=b"\x00\x00\x41")

    def test_meta_payload_truncated(self):
        with pytest.raises(EndOfInputError):
            _decode_one(b"\x00\xff\x7f\x05\x00")

    @pytest.mark.parametrize("meta_type", [0x00, 0x20, 0x21])
    def test_unsupported_meta_types(self, meta_type):
        with pytest.raises(SMFNotImplementedError):
            _decode_one(bytes([0x00, 0xFF, meta_type, 0x01, 0x00]))

    @pytest.mark.parametrize("meta_type", [0x0A, 0x50, 0x7E])
    def test_unknown_meta_type(self, meta_type):
        with pytest.raises(InvalidMetaEventTypeError):
            _decode_one(bytes([0x00, 0xFF, meta_type, 0x00]))

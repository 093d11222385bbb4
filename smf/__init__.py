"""Decoder for Standard MIDI Files (header chunk plus delta-timed track events)."""

from .chunks import (  # noqa: F401
    FORMAT_MULTI_SEQUENCE,
    FORMAT_MULTI_TRACK,
    FORMAT_SINGLE_TRACK,
    HEADER_MAGIC,
    TRACK_MAGIC,
    Header,
    TrackFrame,
)
from .cursor import ByteCursor  # noqa: F401
from .decoder import TrackState, decode_next  # noqa: F401
from .errors import (  # noqa: F401
    EndOfInputError,
    InvalidCommandCodeError,
    InvalidHeaderError,
    InvalidLengthError,
    InvalidMetaEventTypeError,
    InvalidPitchByteError,
    InvalidPressureError,
    InvalidProgramError,
    SMFError,
    SMFNotImplementedError,
    TrackOverrunError,
    VarintOverflowError,
)
from .events import (  # noqa: F401
    ChannelPressure,
    ControlChange,
    EndOfTrack,
    Event,
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
    format_event,
)
from .reader import MidiFile, MidiReader, Track  # noqa: F401
from .varint import decode_varint, encode_varint  # noqa: F401

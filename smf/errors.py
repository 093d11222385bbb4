"""Exceptions raised while decoding Standard MIDI Files.

Every failure is fatal to the decode call that raised it.  A reader that
has raised must not be reused; its cursor position is undefined.
"""

from __future__ import annotations


class SMFError(ValueError):
    """Base class for all decoding failures."""


class EndOfInputError(SMFError):
    """The byte source ran out before a complete item was read."""


class InvalidHeaderError(SMFError):
    """A chunk magic did not match (``MThd`` / ``MTrk``) or format is unknown."""


class InvalidCommandCodeError(SMFError):
    pass


class InvalidMetaEventTypeError(SMFError):
    pass


class InvalidLengthError(SMFError):
    """A fixed-shape meta event declared the wrong payload length."""


class TrackOverrunError(InvalidLengthError):
    """An event consumed bytes past the end of its track chunk."""


class VarintOverflowError(SMFError):
    pass


class InvalidProgramError(SMFError):
    pass


class InvalidPressureError(SMFError):
    pass


class InvalidPitchByteError(SMFError):
    pass


class SMFNotImplementedError(SMFError, NotImplementedError):
    """Recognised construct the decoder does not handle."""

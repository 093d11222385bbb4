from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from smf.cursor import ByteCursor  # noqa: E402
from smf.errors import EndOfInputError  # noqa: E402


def test_read_byte_advances_and_reports_remaining() -> None:
    cursor = ByteCursor(b"\x01\x02\x03")
    assert cursor.read_byte() == 0x01
    assert cursor.position == 1
    assert cursor.remaining() == 2


def test_read_byte_past_end_raises() -> None:
    cursor = ByteCursor(b"\x7f")
    cursor.read_byte()
    with pytest.raises(EndOfInputError):
        cursor.read_byte()


def test_unread_last_byte_rewinds_exactly_one() -> None:
    cursor = ByteCursor(b"\x90\x40")
    cursor.read_byte()
    cursor.read_byte()
    cursor.unread_last_byte()
    assert cursor.position == 1
    assert cursor.read_byte() == 0x40


def test_unread_is_single_slot() -> None:
    cursor = ByteCursor(b"\x90\x40")
    cursor.read_byte()
    cursor.unread_last_byte()
    with pytest.raises(RuntimeError):
        cursor.unread_last_byte()


def test_unread_after_read_exact_is_rejected() -> None:
    cursor = ByteCursor(b"MThd")
    cursor.read_exact(4)
    with pytest.raises(RuntimeError):
        cursor.unread_last_byte()


def test_read_exact_insufficient_bytes() -> None:
    cursor = ByteCursor(b"MTr")
    with pytest.raises(EndOfInputError):
        cursor.read_exact(4)
    # Nothing consumed on a failed exact read.
    assert cursor.position == 0


def test_big_endian_words() -> None:
    cursor = ByteCursor(b"\x00\x00\x00\x06\x00\x60")
    assert cursor.read_u32() == 6
    assert cursor.read_u16() == 96
    assert cursor.remaining() == 0

from __future__ import annotations

from .errors import EndOfInputError


class ByteCursor:
    """Forward-only reader over a fully materialised byte buffer.

    Supports exactly one byte of pushback: ``unread_last_byte`` undoes the
    most recent ``read_byte`` and nothing further.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._can_unread = False

    @property
    def position(self) -> int:
        return self._pos

    def __len__(self) -> int:
        return len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_byte(self) -> int:
        if self._pos >= len(self._data):
            self._can_unread = False
            raise EndOfInputError(f"end of input at offset {self._pos}")
        value = self._data[self._pos]
        self._pos += 1
        self._can_unread = True
        return value

    def unread_last_byte(self) -> None:
        """Step back over the byte just returned by ``read_byte``; only legal directly after it."""
        if not self._can_unread:
            raise RuntimeError("unread_last_byte() must directly follow read_byte()")
        self._pos -= 1
        self._can_unread = False

    def read_exact(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"negative read length {count}")
        end = self._pos + count
        if end > len(self._data):
            raise EndOfInputError(
                f"need {count} bytes at offset {self._pos}, only {self.remaining()} left"
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        self._can_unread = False
        return chunk

    def read_u16(self) -> int:
        return int.from_bytes(self.read_exact(2), "big")

    def read_u32(self) -> int:
        return int.from_bytes(self.read_exact(4), "big")

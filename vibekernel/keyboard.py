"""Scancode set 1 translation and a bounded key buffer."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional

BUFFER_SIZE = 256
KEY_DELETE = 0x7F
LSHIFT = 0x2A
RSHIFT = 0x36
_RELEASE_BIT = 0x80

_UNSHIFTED = (
    "\x00\x1b1234567890-=\b"
    "\tqwertyuiop[]\n"
    "\x00asdfghjkl;'`\x00"
    "\\zxcvbnm,./\x00*\x00 "
    + "\x00" * 64
    + "\x7f"
)

_SHIFTED = (
    "\x00\x1b!@#$%^&*()_+\b"
    "\tQWERTYUIOP{}\n"
    "\x00ASDFGHJKL:\"~\x00"
    "|ZXCVBNM<>?\x00*\x00 "
    + "\x00" * 64
    + "\x7f"
)


def translate_scancode(scancode: int, shift: bool) -> Optional[str]:
    """The character a key-press scancode produces, or None if it produces none."""
    table = _SHIFTED if shift else _UNSHIFTED
    if not 0 <= scancode < len(table):
        return None
    char = table[scancode]
    return None if char == "\x00" else char


class Keyboard:
    """Turns scancodes into characters held in a bounded buffer.

    ``source`` optionally supplies further scancodes; ``getc`` draws on it
    when the buffer is empty and raises EOFError once it is exhausted.
    """

    def __init__(self, source: Optional[Iterable[int]] = None) -> None:
        self._buffer: deque[str] = deque()
        self._source = iter(source) if source is not None else None
        self.shift_active = False

    def handle_scancode(self, scancode: int) -> None:
        """Process one scancode: track shift and buffer any character produced."""
        scancode &= 0xFF
        if scancode & _RELEASE_BIT:
            if scancode & 0x7F in (LSHIFT, RSHIFT):
                self.shift_active = False
            return
        if scancode in (LSHIFT, RSHIFT):
            self.shift_active = True
            return
        char = translate_scancode(scancode, self.shift_active)
        if char is not None:
            self._enqueue(char)

    def push(self, char: str) -> None:
        """Add a character to the buffer; a NUL is ignored."""
        if char == "\0":
            return
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        self._enqueue(char)

    def getc(self) -> str:
        """Take the oldest buffered character."""
        while not self._buffer:
            if self._source is None:
                raise EOFError("no key available")
            try:
                scancode = next(self._source)
            except StopIteration:
                raise EOFError("no key available") from None
            self.handle_scancode(scancode)
        return self._buffer.popleft()

    def __len__(self) -> int:
        return len(self._buffer)

    def _enqueue(self, char: str) -> None:
        # One slot of the ring is always kept free, so a full buffer drops keys.
        if len(self._buffer) < BUFFER_SIZE - 1:
            self._buffer.append(char)
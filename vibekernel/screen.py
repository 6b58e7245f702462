"""An 80x25 text-mode screen held in memory."""

from __future__ import annotations

VIDEO_ADDRESS = 0xB8000
MAX_ROWS = 25
MAX_COLS = 80
WHITE_ON_BLACK = 0x0F

SCREEN_BYTES = MAX_ROWS * MAX_COLS * 2
_ENCODING = "cp437"


def get_offset(col: int, row: int) -> int:
    """Byte offset of a cell in video memory."""
    return 2 * (row * MAX_COLS + col)


def offset_row(offset: int) -> int:
    """Row of the cell at ``offset``."""
    return offset // (2 * MAX_COLS)


def offset_col(offset: int) -> int:
    """Column of the cell at ``offset``."""
    return (offset - offset_row(offset) * 2 * MAX_COLS) // 2


class Screen:
    """Text-mode video memory: a character byte and an attribute byte per cell.

    The cursor is a byte offset. Output has no scrolling: the cursor moves on
    past the last row and anything written there is not shown.
    """

    def __init__(self) -> None:
        self.memory = bytearray(b" " + bytes([WHITE_ON_BLACK])) * (MAX_ROWS * MAX_COLS)
        self.cursor = 0
        self.colour = WHITE_ON_BLACK

    def set_colour(self, colour: int) -> None:
        """Set the attribute byte used for further output."""
        self.colour = colour & 0xFF

    def print_at(self, message: str, col: int, row: int) -> None:
        """Write ``message``, first moving the cursor to (col, row) if both are non-negative."""
        if col >= 0 and row >= 0:
            self.cursor = get_offset(col, row)
        for char in message:
            if char == "\0":
                break
            self._put_char(char, self.colour)

    def print_string(self, message: str) -> None:
        """Write ``message`` at the cursor."""
        self.print_at(message, -1, -1)

    def clear(self) -> None:
        """Blank every cell and home the cursor."""
        self.memory[:] = bytearray(b" " + bytes([WHITE_ON_BLACK])) * (MAX_ROWS * MAX_COLS)
        self.cursor = 0

    def char_at(self, col: int, row: int) -> str:
        """The character shown at (col, row)."""
        if not (0 <= col < MAX_COLS and 0 <= row < MAX_ROWS):
            raise IndexError(f"cell ({col}, {row}) is off screen")
        return bytes([self.memory[get_offset(col, row)]]).decode(_ENCODING)

    def row_text(self, row: int) -> str:
        """The characters of ``row`` with trailing blanks removed."""
        if not 0 <= row < MAX_ROWS:
            raise IndexError(f"row {row} is off screen")
        start = get_offset(0, row)
        chars = bytes(self.memory[start:start + 2 * MAX_COLS:2])
        return chars.decode(_ENCODING).rstrip(" ")

    def _put_char(self, char: str, attr: int) -> None:
        if not attr:
            attr = WHITE_ON_BLACK
        if char == "\n":
            self.cursor = get_offset(0, offset_row(self.cursor) + 1)
        elif char == "\b":
            if self.cursor > 0:
                self.cursor -= 2
        else:
            if 0 <= self.cursor < SCREEN_BYTES - 1:
                self.memory[self.cursor] = char.encode(_ENCODING, errors="replace")[0]
                self.memory[self.cursor + 1] = attr
            self.cursor += 2
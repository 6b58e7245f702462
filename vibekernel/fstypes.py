"""Types shared by the file system layers."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class FileMode(enum.Enum):
    READ = 0
    WRITE = 1
    APPEND = 2
    INVALID = 3


class SeekWhence(enum.IntEnum):
    SET = 0
    CUR = 1
    END = 2


class StatFlags(enum.IntFlag):
    NONE = 0
    READ_ONLY = 0x01
    HIDDEN = 0x02
    SYSTEM = 0x04
    VOLUME_LABEL = 0x08
    DIRECTORY = 0x10
    ARCHIVE = 0x20


@dataclass(frozen=True)
class FileStat:
    """Size and attribute flags of an open file."""

    flags: StatFlags
    filesize: int


_MODES = {"r": FileMode.READ, "w": FileMode.WRITE, "a": FileMode.APPEND}


def parse_mode(mode_str: str) -> FileMode:
    """Map a mode string to a FileMode by its first character."""
    return _MODES.get(mode_str[:1], FileMode.INVALID)
"""32-bit ELF file and program header parsing."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

EI_NIDENT = 16
ELFMAG = b"\x7fELF"

ELFCLASSNONE = 0
ELFCLASS32 = 1
ELFCLASS64 = 2

ELFDATANONE = 0
ELFDATA2LSB = 1
ELFDATA2MSB = 2

PT_NULL = 0
PT_LOAD = 1
PT_DYNAMIC = 2
PT_INTERP = 3
PT_NOTE = 4
PT_SHLIB = 5
PT_PHDR = 6


class ElfError(ValueError):
    """Raised when ELF data is too short to hold the requested structure."""


@dataclass(frozen=True)
class ElfHeader:
    """The ELF32 file header."""

    e_ident: bytes
    e_type: int
    e_machine: int
    e_version: int
    e_entry: int
    e_phoff: int
    e_shoff: int
    e_flags: int
    e_ehsize: int
    e_phentsize: int
    e_phnum: int
    e_shentsize: int
    e_shnum: int
    e_shstrndx: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<16sHHIIIIIHHHHHH")
    SIZE: ClassVar[int] = _STRUCT.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "ElfHeader":
        """Parse a header from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise ElfError(f"ELF header needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls._STRUCT.unpack_from(data))

    def is_valid(self) -> bool:
        """True for a 32-bit ELF image."""
        return self.e_ident[:4] == ELFMAG and self.e_ident[4] == ELFCLASS32


@dataclass(frozen=True)
class ProgramHeader:
    """An ELF32 program (segment) header."""

    p_type: int
    p_offset: int
    p_vaddr: int
    p_paddr: int
    p_filesz: int
    p_memsz: int
    p_flags: int
    p_align: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<8I")
    SIZE: ClassVar[int] = _STRUCT.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "ProgramHeader":
        """Parse a program header from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise ElfError(f"program header needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls._STRUCT.unpack_from(data))


def is_valid_header(header: ElfHeader) -> bool:
    """True if ``header`` describes a 32-bit ELF image."""
    return header.is_valid()
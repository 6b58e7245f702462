"""A small hobby-kernel model: FAT16 volumes, a virtual file system, ELF headers, descriptor tables, console, keyboard and shell."""

__version__ = "0.1.0"
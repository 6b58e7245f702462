"""The interactive command shell started at boot."""

from __future__ import annotations

import argparse
import contextlib
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, TextIO

from .command import CommandRegistry
from .disk import Device
from .elf import PT_LOAD, ElfError, ElfHeader, ProgramHeader
from .fat16 import Fat16Volume
from .fstypes import SeekWhence
from .keyboard import KEY_DELETE, Keyboard
from .screen import Screen
from .vfs import VfsError, VirtualFileSystem

VERSION_TEXT = "VibeKernel-x86 v0.1.0"
LINE_LIMIT = 127
RAW_LOAD_ADDRESS = 0x400000
_ELF_MAGIC = b"\x7fELF"


class KeySource(Protocol):
    def getc(self) -> str: ...


@dataclass(frozen=True)
class LoadedProgram:
    """A program image: its segments as (virtual address, bytes) and its entry point."""

    name: str
    entry: int
    segments: tuple[tuple[int, bytes], ...]


Launcher = Callable[[LoadedProgram], object]


class _LoadError(Exception):
    pass


class Shell:
    """Reads lines from the keyboard and runs them as commands."""

    def __init__(
        self,
        devices: Sequence[Device] = (),
        keyboard: Optional[KeySource] = None,
        screen: Optional[Screen] = None,
        launcher: Optional[Launcher] = None,
        output: Optional[Callable[[str], object]] = None,
    ) -> None:
        self.vfs = VirtualFileSystem(devices)
        self.vfs.insert_filesystem(Fat16Volume)
        self.keyboard = keyboard if keyboard is not None else Keyboard()
        self.screen = screen if screen is not None else Screen()
        self._launcher = launcher
        self._tee = output
        self.commands = CommandRegistry(self._write)
        self.commands.register("help", "Display this help message", self.commands.help)
        self.commands.register("cls", "Clear the screen", self._cls)
        self.commands.register("version", "Display kernel version", self._version)
        self.commands.register("echo", "Print arguments to the screen", self._echo)
        self.commands.register("print", "Display text on the screen", self._echo)
        self.commands.register("run", "Execute a binary or ELF file", self._run)
        self.commands.register("ls", "List directory contents", self._ls)

    def run_line(self, line: str) -> bool:
        """Run one command line; True if a command ran."""
        return self.commands.run(line)

    def read_line(self) -> str:
        """Read a line from the keyboard, echoing it and applying backspace."""
        chars: list[str] = []
        while True:
            char = self.keyboard.getc()
            if char == "\n":
                self._write("\n")
                return "".join(chars)
            if char in ("\b", chr(KEY_DELETE)):
                if chars:
                    chars.pop()
                    self._write("\b \b")
            elif len(chars) < LINE_LIMIT:
                chars.append(char)
                self._write(char)

    def boot(self) -> None:
        """Show the boot banner, then run commands until the keyboard runs dry."""
        self.screen.clear()
        self._write("VibeKernel-x86 Booting...\n")
        self.run_line("echo VibeKernel is ready.")
        self._write("Type 'help' for a list of commands.\n")
        while True:
            self._write("> ")
            try:
                line = self.read_line()
            except EOFError:
                return
            self.run_line(line)

    def _write(self, text: str) -> None:
        self.screen.print_string(text)
        if self._tee is not None:
            self._tee(text)

    def _cls(self, argv: list) -> None:
        self.screen.clear()

    def _version(self, argv: list) -> None:
        self._write(VERSION_TEXT + "\n")

    def _echo(self, argv: list) -> None:
        self._write(" ".join(argv[1:]) + "\n")

    def _ls(self, argv: list) -> None:
        path = argv[1] if len(argv) > 1 else "0:/"
        try:
            names = self.vfs.list(path)
        except VfsError:
            self._write(f"ls: Failed to list directory: {path}\n")
            return
        for name in names:
            self._write(name + "\n")

    def _run(self, argv: list) -> None:
        if len(argv) < 2:
            self._write("Usage: run <filename>\n")
            return
        name = argv[1]
        try:
            program = self._load(name)
        except (_LoadError, VfsError, ElfError):
            self._write(f"Failed to load process: {name}\n")
            return
        self._write(f"Starting process: {name}\n")
        if self._launcher is not None:
            self._launcher(program)

    def _load(self, name: str) -> LoadedProgram:
        fd = self.vfs.open(name, "r")
        try:
            magic = self.vfs.read(fd, 4, 1)
        finally:
            self.vfs.close(fd)
        if len(magic) < 4:
            raise _LoadError("file too short")
        fd = self.vfs.open(name, "r")
        try:
            if magic == _ELF_MAGIC:
                return self._load_elf(name, fd)
            return self._load_raw(name, fd)
        finally:
            self.vfs.close(fd)

    def _read_exact(self, fd: int, size: int) -> bytes:
        data = self.vfs.read(fd, 1, size)
        if len(data) != size:
            raise _LoadError("short read")
        return data

    def _load_elf(self, name: str, fd: int) -> LoadedProgram:
        header = ElfHeader.from_bytes(self._read_exact(fd, ElfHeader.SIZE))
        if not header.is_valid():
            raise _LoadError("not a 32-bit ELF image")
        self.vfs.seek(fd, header.e_phoff, SeekWhence.SET)
        segments = []
        for _ in range(header.e_phnum):
            phdr = ProgramHeader.from_bytes(self._read_exact(fd, ProgramHeader.SIZE))
            if phdr.p_type != PT_LOAD:
                continue
            resume = self.vfs.tell(fd)
            self.vfs.seek(fd, phdr.p_offset, SeekWhence.SET)
            data = self._read_exact(fd, phdr.p_filesz)
            self.vfs.seek(fd, resume, SeekWhence.SET)
            segments.append((phdr.p_vaddr, data.ljust(phdr.p_memsz, b"\x00")))
        return LoadedProgram(name, header.e_entry, tuple(segments))

    def _load_raw(self, name: str, fd: int) -> LoadedProgram:
        size = self.vfs.stat(fd).filesize
        if size == 0:
            raise _LoadError("empty file")
        data = self._read_exact(fd, size)
        return LoadedProgram(name, RAW_LOAD_ADDRESS, ((RAW_LOAD_ADDRESS, data),))


class _StreamKeys:
    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def getc(self) -> str:
        char = self._stream.read(1)
        if not char:
            raise EOFError("end of input")
        return char


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Boot the shell over up to two disk images, reading keys from standard input."""
    parser = argparse.ArgumentParser(description="Run the kernel command shell.")
    parser.add_argument("images", nargs="*", help="disk images for drives 0 and 1")
    args = parser.parse_args(argv)
    if len(args.images) > 2:
        parser.error("at most two disk images")
    with contextlib.ExitStack() as stack:
        devices = [stack.enter_context(open(path, "rb")) for path in args.images]
        shell = Shell(devices, keyboard=_StreamKeys(sys.stdin), output=sys.stdout.write)
        shell.boot()
    sys.stdout.write("\n")
    return 0
"""A drive-numbered virtual file system with a table of open file descriptors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from .disk import Device, DiskStream
from .fstypes import FileMode, FileStat, SeekWhence, parse_mode
from .paths import PathError, parse_path

MAX_FILESYSTEMS = 12
MAX_FILE_DESCRIPTORS = 512
DRIVE_COUNT = 2


class VfsError(OSError):
    """Raised when a path, drive, descriptor or file system operation fails."""


class Filesystem(Protocol):
    """A file system type: builds a volume from a disk stream or raises."""

    def resolve(self, stream: DiskStream) -> Any: ...


@dataclass
class _OpenFile:
    index: int
    filesystem: Any
    volume: Any
    handle: Any
    drive_no: int


class VirtualFileSystem:
    """Routes paths like ``0:/dir/file`` to the file system found on each drive.

    ``devices`` holds the disk images of drives 0 and 1. Descriptors are
    numbered from 1 and the lowest free number is handed out first.
    """

    def __init__(self, devices: Sequence[Device] = ()) -> None:
        if len(devices) > DRIVE_COUNT:
            raise ValueError(f"at most {DRIVE_COUNT} drives, got {len(devices)}")
        self._devices: list[Optional[Device]] = list(devices)
        self._devices += [None] * (DRIVE_COUNT - len(self._devices))
        self._filesystems: list[Filesystem] = []
        self._descriptors: list[Optional[_OpenFile]] = [None] * MAX_FILE_DESCRIPTORS

    def insert_filesystem(self, fs: Filesystem) -> None:
        """Register a file system type to try when resolving drives."""
        if len(self._filesystems) >= MAX_FILESYSTEMS:
            raise VfsError("file system table is full")
        self._filesystems.append(fs)

    def resolve(self, drive_no: int) -> Any:
        """The volume of the first registered file system that accepts the drive."""
        if not 0 <= drive_no < DRIVE_COUNT:
            raise VfsError(f"no such drive: {drive_no}")
        device = self._devices[drive_no]
        if device is None:
            raise VfsError(f"drive {drive_no} has no disk")
        for fs in self._filesystems:
            try:
                return fs.resolve(DiskStream(device, drive_no))
            except (OSError, ValueError):
                continue
        raise VfsError(f"no file system recognises drive {drive_no}")

    def open(self, filename: str, mode: str) -> int:
        """Open ``filename`` and return its descriptor number."""
        try:
            root = parse_path(filename)
        except PathError as exc:
            raise VfsError(str(exc)) from exc
        if not root.parts:
            raise VfsError(f"no file named in {filename!r}")
        if not 0 <= root.drive_no < DRIVE_COUNT:
            raise VfsError(f"no such drive: {root.drive_no}")
        volume = self.resolve(root.drive_no)
        file_mode = parse_mode(mode)
        if file_mode is FileMode.INVALID:
            raise VfsError(f"invalid mode: {mode!r}")
        try:
            handle = volume.open(root.parts, file_mode)
        except (OSError, ValueError) as exc:
            raise VfsError(f"cannot open {filename!r}: {exc}") from exc

        for slot, entry in enumerate(self._descriptors):
            if entry is None:
                self._descriptors[slot] = _OpenFile(
                    slot + 1, type(volume), volume, handle, root.drive_no
                )
                return slot + 1
        handle.close()
        raise VfsError("too many open files")

    def read(self, fd: int, size: int, nmemb: int) -> bytes:
        """Read up to ``size * nmemb`` bytes from the file."""
        return self._call(fd, "read", size, nmemb)

    def seek(self, fd: int, offset: int, whence: SeekWhence = SeekWhence.SET) -> None:
        """Move the file position."""
        self._call(fd, "seek", offset, whence)

    def tell(self, fd: int) -> int:
        """The file position."""
        return self._call(fd, "tell")

    def stat(self, fd: int) -> FileStat:
        """Size and attribute flags of the file."""
        return self._call(fd, "stat")

    def close(self, fd: int) -> None:
        """Close the file and free its descriptor number."""
        entry = self._get(fd)
        self._call(fd, "close")
        self._descriptors[entry.index - 1] = None

    def list(self, path: str) -> list[str]:
        """Names in the directory at ``path``."""
        try:
            root = parse_path(path)
        except PathError as exc:
            raise VfsError(str(exc)) from exc
        if not 0 <= root.drive_no < DRIVE_COUNT:
            raise VfsError(f"no such drive: {root.drive_no}")
        volume = self.resolve(root.drive_no)
        lister = getattr(volume, "list", None)
        if lister is None:
            raise VfsError("file system cannot list directories")
        try:
            return lister(root.parts)
        except (OSError, ValueError) as exc:
            raise VfsError(f"cannot list {path!r}: {exc}") from exc

    def _get(self, fd: int) -> _OpenFile:
        entry = self._descriptors[fd - 1] if 0 < fd <= MAX_FILE_DESCRIPTORS else None
        if entry is None:
            raise VfsError(f"bad file descriptor: {fd}")
        return entry

    def _call(self, fd: int, operation: str, *args: Any) -> Any:
        method = getattr(self._get(fd).handle, operation, None)
        if method is None:
            raise VfsError(f"file system does not support {operation}")
        try:
            return method(*args)
        except VfsError:
            raise
        except (OSError, ValueError) as exc:
            raise VfsError(f"{operation} failed: {exc}") from exc
"""FAT16 volumes: boot sector, directories, cluster chains and open files."""

from __future__ import annotations

import string
import struct
from dataclasses import dataclass
from typing import ClassVar, Generator, Optional, Sequence

from .disk import DiskReadError, DiskStream
from .fstypes import FileMode, FileStat, SeekWhence, StatFlags

NAME = "FAT16"

FAT16_SIGNATURE = 0x29
FAT16_ENTRY_SIZE = 2
FAT16_UNUSED = 0x00

FAT16_CLUSTER_FREE = 0x0000
FAT16_CLUSTER_RESERVED_MIN = 0xFFF0
FAT16_CLUSTER_RESERVED_MAX = 0xFFF6
FAT16_CLUSTER_BAD = 0xFFF7
FAT16_CLUSTER_LAST_MIN = 0xFFF8
FAT16_CLUSTER_LAST_MAX = 0xFFFF

FAT_FILE_READ_ONLY = 0x01
FAT_FILE_HIDDEN = 0x02
FAT_FILE_SYSTEM = 0x04
FAT_FILE_VOLUME_LABEL = 0x08
FAT_FILE_SUBDIRECTORY = 0x10
FAT_FILE_ARCHIVE = 0x20
FAT_FILE_DEVICE = 0x40
FAT_FILE_RESERVED = 0x80

BOOT_SIGNATURE = 0xAA55
_EXTENDED_SIGNATURES = (0x28, 0x29)
_END_OF_DIRECTORY = 0x00
_DELETED = 0xE5

_ATTRIBUTE_FLAGS = (
    (FAT_FILE_READ_ONLY, StatFlags.READ_ONLY),
    (FAT_FILE_HIDDEN, StatFlags.HIDDEN),
    (FAT_FILE_SYSTEM, StatFlags.SYSTEM),
    (FAT_FILE_VOLUME_LABEL, StatFlags.VOLUME_LABEL),
    (FAT_FILE_SUBDIRECTORY, StatFlags.DIRECTORY),
    (FAT_FILE_ARCHIVE, StatFlags.ARCHIVE),
)

_ASCII_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)


class Fat16Error(OSError):
    """Raised when a volume is not usable FAT16 or a lookup or file operation fails."""


def _names_match(a: str, b: str) -> bool:
    return a.translate(_ASCII_UPPER) == b.translate(_ASCII_UPPER)


def _trim_field(field: bytes, limit: int) -> bytes:
    out = bytearray()
    for byte in field[:limit]:
        if byte in (0x00, 0x20):
            break
        out.append(byte)
    return bytes(out)


def format_short_name(filename: bytes, ext: bytes) -> str:
    """Join an 8.3 name and extension, dropping the padding, as ``NAME.EXT``."""
    name = _trim_field(filename, 8)
    if ext and ext[0] not in (0x00, 0x20):
        name += b"." + _trim_field(ext, 3)
    return name.decode("latin-1")


@dataclass(frozen=True)
class BootSector:
    """The FAT16 boot sector with its BIOS parameter block."""

    short_jmp_ins: bytes
    oem_identifier: bytes
    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sectors: int
    fat_copies: int
    root_dir_entries: int
    total_sectors: int
    media_type: int
    fat_sectors: int
    sectors_per_track: int
    number_of_heads: int
    hidden_sectors: int
    sectors_big: int
    drive_number: int
    reserved: int
    signature: int
    volume_id: int
    volume_label: bytes
    system_id: bytes
    boot_code: bytes
    boot_signature: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<3s8sHBHBHHBHHHIIBBBI11s8s448sH")
    SIZE: ClassVar[int] = _STRUCT.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "BootSector":
        """Parse a boot sector from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise Fat16Error(f"boot sector needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls._STRUCT.unpack_from(data))


@dataclass(frozen=True)
class DirectoryItem:
    """A 32-byte directory entry."""

    filename: bytes
    ext: bytes
    attribute: int
    reserved: int
    creation_time_tenth: int
    creation_time: int
    creation_date: int
    last_access_date: int
    high_16_bits_first_cluster: int
    last_mod_time: int
    last_mod_date: int
    low_16_bits_first_cluster: int
    filesize: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<8s3sBBBHHHHHHHI")
    SIZE: ClassVar[int] = _STRUCT.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "DirectoryItem":
        """Parse a directory entry from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise Fat16Error(f"directory entry needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls._STRUCT.unpack_from(data))

    @property
    def name(self) -> str:
        return format_short_name(self.filename, self.ext)

    @property
    def is_directory(self) -> bool:
        return bool(self.attribute & FAT_FILE_SUBDIRECTORY)

    @property
    def first_cluster(self) -> int:
        return self.low_16_bits_first_cluster


class Fat16Volume:
    """A FAT16 file system read through a disk stream."""

    name = NAME

    def __init__(self, stream: DiskStream, boot_sector: BootSector) -> None:
        self.stream = stream
        self.boot_sector = boot_sector

    @classmethod
    def resolve(cls, stream: DiskStream) -> "Fat16Volume":
        """Read and check the boot sector at the start of ``stream``."""
        stream.seek(0)
        try:
            data = stream.read(BootSector.SIZE)
        except DiskReadError as exc:
            raise Fat16Error("cannot read boot sector") from exc
        bpb = BootSector.from_bytes(data)
        if bpb.boot_signature != BOOT_SIGNATURE:
            raise Fat16Error(f"bad boot signature 0x{bpb.boot_signature:04X}")
        if bpb.signature not in _EXTENDED_SIGNATURES:
            raise Fat16Error(f"bad extended BPB signature 0x{bpb.signature:02X}")
        if bpb.bytes_per_sector != 512 or bpb.sectors_per_cluster == 0:
            raise Fat16Error("unsupported sector or cluster size")
        return cls(stream, bpb)

    @property
    def bytes_per_sector(self) -> int:
        return self.boot_sector.bytes_per_sector

    @property
    def cluster_size(self) -> int:
        return self.boot_sector.sectors_per_cluster * self.bytes_per_sector

    def root_directory_sector(self) -> int:
        """First sector of the fixed-size root directory."""
        bpb = self.boot_sector
        return bpb.reserved_sectors + bpb.fat_copies * bpb.fat_sectors

    def cluster_to_sector(self, cluster: int) -> int:
        """Absolute sector where data cluster ``cluster`` begins."""
        bpb = self.boot_sector
        bps = bpb.bytes_per_sector
        root_dir_sectors = (bpb.root_dir_entries * DirectoryItem.SIZE + bps - 1) // bps
        first_data_sector = self.root_directory_sector() + root_dir_sectors
        return first_data_sector + (cluster - 2) * bpb.sectors_per_cluster

    def fat_entry(self, cluster: int) -> int:
        """The FAT entry for ``cluster``; 0xFFFF if it cannot be read."""
        pos = (self.boot_sector.reserved_sectors * self.bytes_per_sector
               + cluster * FAT16_ENTRY_SIZE)
        self.stream.seek(pos)
        try:
            data = self.stream.read(FAT16_ENTRY_SIZE)
        except DiskReadError:
            return FAT16_CLUSTER_LAST_MAX
        return int.from_bytes(data, "little")

    def _cluster_for_offset(self, start_cluster: int, offset: int) -> int:
        cluster = start_cluster
        for _ in range(offset // self.cluster_size):
            cluster = self.fat_entry(cluster)
            if cluster >= FAT16_CLUSTER_LAST_MIN:
                return FAT16_CLUSTER_LAST_MAX
        return cluster

    def _scan_region(
        self, pos: int, count: int, strict: bool
    ) -> Generator[DirectoryItem, None, bool]:
        """Yield live entries of a run of ``count`` slots; return True at an end marker."""
        for index in range(count):
            self.stream.seek(pos + index * DirectoryItem.SIZE)
            try:
                data = self.stream.read(DirectoryItem.SIZE)
            except DiskReadError as exc:
                if strict:
                    raise Fat16Error("cannot read directory entry") from exc
                return False
            item = DirectoryItem.from_bytes(data)
            if item.filename[0] == _END_OF_DIRECTORY:
                return True
            if item.filename[0] == _DELETED:
                continue
            yield item
        return False

    def _scan(self, cluster: int, strict: bool) -> Generator[DirectoryItem, None, None]:
        bps = self.bytes_per_sector
        if cluster == 0:
            yield from self._scan_region(
                self.root_directory_sector() * bps, self.boot_sector.root_dir_entries, strict
            )
            return
        slots = self.cluster_size // DirectoryItem.SIZE
        while cluster < FAT16_CLUSTER_RESERVED_MIN:
            pos = self.cluster_to_sector(cluster) * bps
            ended = yield from self._scan_region(pos, slots, strict)
            if ended and strict:
                return
            cluster = self.fat_entry(cluster)

    def find_entry(self, cluster: int, name: str) -> DirectoryItem:
        """Find ``name`` (ASCII case-insensitive) in the directory at ``cluster``; 0 is the root."""
        for item in self._scan(cluster, strict=True):
            if _names_match(item.name, name):
                return item
        raise Fat16Error(f"no such entry: {name!r}")

    def list(self, parts: Sequence[str]) -> list[str]:
        """Names in the directory reached by ``parts``, subdirectories ending in ``/``."""
        cluster = 0
        for part in parts:
            item = self.find_entry(cluster, part)
            if not item.is_directory:
                raise Fat16Error(f"not a directory: {part!r}")
            cluster = item.first_cluster
        return [
            item.name + ("/" if item.is_directory else "")
            for item in self._scan(cluster, strict=False)
        ]

    def open(self, parts: Sequence[str], mode: FileMode) -> "Fat16File":
        """Open the file reached by ``parts``; only reading is supported."""
        if mode != FileMode.READ:
            raise Fat16Error(f"unsupported mode: {mode}")
        if not parts:
            raise Fat16Error("no file named")
        cluster = 0
        item: Optional[DirectoryItem] = None
        for index, part in enumerate(parts):
            item = self.find_entry(cluster, part)
            if index < len(parts) - 1:
                if not item.is_directory:
                    raise Fat16Error(f"not a directory: {part!r}")
                cluster = item.first_cluster
        assert item is not None
        if item.is_directory:
            raise Fat16Error(f"is a directory: {parts[-1]!r}")
        return Fat16File(self, item)


class Fat16File:
    """An open FAT16 file with a position and a cached cluster lookup."""

    def __init__(self, volume: Fat16Volume, item: DirectoryItem) -> None:
        self.volume = volume
        self.item = item
        self.pos = 0
        self.last_cluster = item.first_cluster
        self.last_cluster_pos = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed file")

    def read(self, size: int, nmemb: int) -> bytes:
        """Read up to ``size * nmemb`` bytes, stopping at the end of the file."""
        self._check_open()
        if size < 0 or nmemb < 0:
            raise ValueError("negative read size")
        volume = self.volume
        total = min(size * nmemb, self.item.filesize - self.pos)
        if total <= 0:
            return b""

        cluster_size = volume.cluster_size
        if self.pos >= self.last_cluster_pos:
            start_cluster, start_pos = self.last_cluster, self.last_cluster_pos
        else:
            start_cluster, start_pos = self.item.first_cluster, 0

        cluster = volume._cluster_for_offset(start_cluster, self.pos - start_pos)
        if cluster >= FAT16_CLUSTER_RESERVED_MIN:
            return b""
        self.last_cluster = cluster
        self.last_cluster_pos = (self.pos // cluster_size) * cluster_size

        out = bytearray()
        while len(out) < total:
            offset_in_file = self.pos + len(out)
            offset_in_cluster = offset_in_file % cluster_size
            if out and offset_in_cluster == 0:
                cluster = volume.fat_entry(cluster)
                self.last_cluster = cluster
                self.last_cluster_pos = offset_in_file
            if cluster >= FAT16_CLUSTER_RESERVED_MIN:
                break
            abs_pos = (volume.cluster_to_sector(cluster) * volume.bytes_per_sector
                       + offset_in_cluster)
            chunk = min(cluster_size - offset_in_cluster, total - len(out))
            volume.stream.seek(abs_pos)
            try:
                out += volume.stream.read(chunk)
            except DiskReadError:
                break

        self.pos += len(out)
        return bytes(out)

    def seek(self, offset: int, whence: SeekWhence = SeekWhence.SET) -> None:
        """Move the position; a position before the start or past the end fails."""
        self._check_open()
        whence = SeekWhence(whence)
        if whence is SeekWhence.SET:
            new_pos = offset
        elif whence is SeekWhence.CUR:
            new_pos = self.pos + offset
        else:
            new_pos = self.item.filesize + offset
        if new_pos < 0 or new_pos > self.item.filesize:
            raise Fat16Error(f"seek position {new_pos} outside file")
        self.pos = new_pos

    def tell(self) -> int:
        """The current position."""
        self._check_open()
        return self.pos

    def stat(self) -> FileStat:
        """Size and attribute flags of the file."""
        self._check_open()
        flags = StatFlags.NONE
        for attribute, flag in _ATTRIBUTE_FLAGS:
            if self.item.attribute & attribute:
                flags |= flag
        return FileStat(flags, self.item.filesize)

    def close(self) -> None:
        """Close the file."""
        self._closed = True

    def __enter__(self) -> "Fat16File":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
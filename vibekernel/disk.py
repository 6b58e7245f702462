"""Byte-addressed reading over a sector-based disk image."""

from __future__ import annotations

import io
from typing import BinaryIO, Union

SECTOR_SIZE = 512

Device = Union[bytes, bytearray, memoryview, BinaryIO]


class DiskReadError(OSError):
    """Raised when a sector cannot be read from the device."""


class DiskStream:
    """A seekable byte stream over a disk made of 512-byte sectors.

    The device is either a bytes-like image or a binary file object. Reads
    fetch whole sectors; a sector that starts past the end of the device
    fails, and a short final sector is padded with zero bytes.
    """

    def __init__(self, device: Device, disk_id: int = 0) -> None:
        if isinstance(device, (bytes, bytearray, memoryview)):
            device = io.BytesIO(bytes(device))
        self._device = device
        self.disk_id = disk_id
        self.pos = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def seek(self, pos: int) -> None:
        """Move the stream to absolute byte position ``pos``."""
        if pos < 0:
            raise ValueError(f"negative disk position: {pos}")
        self.pos = pos

    def read(self, total: int) -> bytes:
        """Read ``total`` bytes from the current position and advance past them."""
        if self._closed:
            raise ValueError("I/O operation on closed disk stream")
        if total < 0:
            raise ValueError(f"negative read size: {total}")

        sector, offset = divmod(self.pos, SECTOR_SIZE)
        out = bytearray()
        remaining = total
        while remaining > 0:
            data = self._read_sector(sector)
            chunk = data[offset:offset + remaining]
            out += chunk
            remaining -= len(chunk)
            sector += 1
            offset = 0

        self.pos += total
        return bytes(out)

    def close(self) -> None:
        """Mark the stream closed; the underlying device is left open."""
        self._closed = True

    def _read_sector(self, sector: int) -> bytes:
        self._device.seek(sector * SECTOR_SIZE)
        data = self._device.read(SECTOR_SIZE)
        if not data:
            raise DiskReadError(f"disk {self.disk_id}: cannot read sector {sector}")
        return data.ljust(SECTOR_SIZE, b"\x00")

    def __enter__(self) -> "DiskStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
"""Parsing of drive-qualified paths such as ``0:/dir/file.txt``."""

from __future__ import annotations

from dataclasses import dataclass

_DIGITS = "0123456789"


class PathError(ValueError):
    """Raised when a path does not begin with a ``<digit>:/`` drive prefix."""


@dataclass(frozen=True)
class PathRoot:
    """A parsed path: the drive number and the path components in order."""

    drive_no: int
    parts: tuple[str, ...] = ()


def parse_path(path: str) -> PathRoot:
    """Split ``path`` into its drive number and components.

    Components are read up to the first empty one, so ``0:/a//b`` yields
    only ``a`` and a trailing slash adds nothing.
    """
    prefix, rest = path[:3], path[3:]
    if len(prefix) < 3 or prefix[0] not in _DIGITS or prefix[1:] != ":/":
        raise PathError(f"path has no drive prefix: {path!r}")

    parts: list[str] = []
    for part in rest.split("/"):
        if not part:
            break
        parts.append(part)
    return PathRoot(int(prefix[0]), tuple(parts))
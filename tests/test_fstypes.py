import io

import pytest

from vibekernel.fstypes import FileMode, FileStat, SeekWhence, StatFlags, parse_mode


@pytest.mark.parametrize(
    "mode_str,expected",
    [
        ("r", FileMode.READ),
        ("rb", FileMode.READ),
        ("w", FileMode.WRITE),
        ("a+", FileMode.APPEND),
        ("x", FileMode.INVALID),
        ("R", FileMode.INVALID),
        ("", FileMode.INVALID),
    ],
)
def test_parse_mode(mode_str, expected):
    assert parse_mode(mode_str) is expected


def test_stat_flags_match_attribute_bits():
    assert StatFlags(0x10) is StatFlags.DIRECTORY
    combined = StatFlags(0x01 | 0x20)
    assert StatFlags.READ_ONLY in combined
    assert StatFlags.ARCHIVE in combined
    assert StatFlags.HIDDEN not in combined


def test_file_stat_flag_membership():
    stat = FileStat(flags=StatFlags.HIDDEN | StatFlags.SYSTEM, filesize=10)
    assert StatFlags.HIDDEN in stat.flags
    assert StatFlags.DIRECTORY not in stat.flags
    assert stat.filesize == 10


def test_file_stat_equality():
    assert FileStat(StatFlags.ARCHIVE, 5) == FileStat(StatFlags.ARCHIVE, 5)
    assert FileStat(StatFlags.ARCHIVE, 5) != FileStat(StatFlags.NONE, 5)


@pytest.mark.parametrize(
    "value,expected",
    [
        (io.SEEK_SET, "SET"),
        (io.SEEK_CUR, "CUR"),
        (io.SEEK_END, "END"),
    ],
)
def test_seek_whence_matches_io_constants(value, expected):
    assert SeekWhence(value) is SeekWhence[expected]
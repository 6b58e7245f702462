import pytest

from vibekernel.disk import SECTOR_SIZE, DiskReadError, DiskStream

IMAGE = bytes(range(256)) * 8


def test_read_within_one_sector():
    stream = DiskStream(IMAGE)
    stream.seek(10)
    assert stream.read(5) == IMAGE[10:15]
    assert stream.pos == 15


def test_read_across_sector_boundary():
    stream = DiskStream(IMAGE)
    stream.seek(SECTOR_SIZE - 12)
    assert stream.read(100) == IMAGE[SECTOR_SIZE - 12:SECTOR_SIZE + 88]


def test_consecutive_reads_continue():
    stream = DiskStream(IMAGE)
    first = stream.read(700)
    second = stream.read(700)
    assert first + second == IMAGE[:1400]


def test_read_whole_image():
    stream = DiskStream(IMAGE)
    assert stream.read(len(IMAGE)) == IMAGE


def test_zero_length_read():
    stream = DiskStream(IMAGE)
    stream.seek(3)
    assert stream.read(0) == b""
    assert stream.pos == 3


def test_read_past_end_raises_and_keeps_position():
    stream = DiskStream(IMAGE)
    stream.seek(len(IMAGE) - 4)
    with pytest.raises(DiskReadError):
        stream.read(8)
    assert stream.pos == len(IMAGE) - 4


def test_short_last_sector_is_zero_padded():
    image = IMAGE[:SECTOR_SIZE + 88]
    stream = DiskStream(image)
    stream.seek(len(image) - 2)
    assert stream.read(4) == image[-2:] + b"\x00\x00"


def test_reads_from_file_object(tmp_path):
    path = tmp_path / "disk.img"
    path.write_bytes(IMAGE)
    with path.open("rb") as fh:
        stream = DiskStream(fh, disk_id=1)
        stream.seek(1000)
        assert stream.read(50) == IMAGE[1000:1050]
        assert stream.disk_id == 1


def test_negative_seek_rejected():
    stream = DiskStream(IMAGE)
    with pytest.raises(ValueError):
        stream.seek(-1)


def test_read_after_close_raises():
    with DiskStream(IMAGE) as stream:
        assert stream.read(2) == IMAGE[:2]
    assert stream.closed
    with pytest.raises(ValueError):
        stream.read(1)
import struct

import pytest

from vibekernel.disk import DiskStream
from vibekernel.fat16 import (
    BOOT_SIGNATURE,
    FAT16_CLUSTER_LAST_MAX,
    BootSector,
    DirectoryItem,
    Fat16Error,
    Fat16File,
    Fat16Volume,
    format_short_name,
)
from vibekernel.fstypes import FileMode, SeekWhence, StatFlags

SECTOR = 512
HELLO = b"Hello, FAT16 world!\n"
BIG = bytes(i % 251 for i in range(1200))
INNER = b"inside\n"


def _boot_sector(bytes_per_sector=512, spc=1, signature=0x29, boot_signature=0xAA55):
    return struct.pack(
        "<3s8sHBHBHHBHHHIIBBBI11s8s448sH",
        b"\xeb\x3c\x90", b"MKFS.FAT", bytes_per_sector, spc, 1, 2, 16, 10, 0xF8,
        1, 32, 2, 0, 0, 0x80, 0, signature, 0x11111111, b"NO NAME    ",
        b"FAT16   ", b"\x00" * 448, boot_signature,
    )


def _entry(name, ext, attr, cluster, size):
    return struct.pack("<8s3sBBBHHHHHHHI", name, ext, attr, 0, 0, 0, 0, 0, 0, 0, 0, cluster, size)


def build_image(sectors=10, **boot):
    image = bytearray(10 * SECTOR)
    image[0:SECTOR] = _boot_sector(**boot)
    fat = struct.pack("<8H", 0xFFF8, 0xFFFF, 0xFFFF, 6, 0xFFFF, 0xFFFF, 4, 0xFFFF)
    for sector in (1, 2):
        image[sector * SECTOR:sector * SECTOR + len(fat)] = fat
    root = b"".join([
        _entry(b"HELLO   ", b"TXT", 0x20, 2, len(HELLO)),
        _entry(b"\xe5IDDEN  ", b"TXT", 0x20, 2, len(HELLO)),
        _entry(b"BIG     ", b"BIN", 0x20, 3, len(BIG)),
        _entry(b"SUB     ", b"   ", 0x10, 5, 0),
        _entry(b"README  ", b"   ", 0x21, 0, 0),
    ])
    image[3 * SECTOR:3 * SECTOR + len(root)] = root

    def put(cluster, data):
        start = (4 + cluster - 2) * SECTOR
        image[start:start + len(data)] = data

    put(2, HELLO)
    put(3, BIG[:512])
    put(6, BIG[512:1024])
    put(4, BIG[1024:])
    put(5, b"".join([
        _entry(b".       ", b"   ", 0x10, 5, 0),
        _entry(b"..      ", b"   ", 0x10, 0, 0),
        _entry(b"\xe5NNER   ", b"TXT", 0x20, 7, len(INNER)),
        _entry(b"INNER   ", b"TXT", 0x20, 7, len(INNER)),
    ]))
    put(7, INNER)
    return bytes(image[:sectors * SECTOR])


@pytest.fixture
def volume():
    return Fat16Volume.resolve(DiskStream(build_image()))


def test_format_short_name_with_extension():
    assert format_short_name(b"HELLO   ", b"TXT") == "HELLO.TXT"


def test_format_short_name_without_extension():
    assert format_short_name(b"README  ", b"   ") == "README"


def test_format_short_name_stops_at_nul():
    assert format_short_name(b"AB\x00CD   ", b"\x00XY") == "AB"


def test_boot_sector_parses_fields():
    bpb = BootSector.from_bytes(_boot_sector())
    assert bpb.bytes_per_sector == 512
    assert bpb.boot_signature == BOOT_SIGNATURE
    assert bpb.system_id == b"FAT16   "
    assert BootSector.SIZE == 512


def test_boot_sector_too_short():
    with pytest.raises(Fat16Error):
        BootSector.from_bytes(b"\x00" * 100)


def test_directory_item_round_trip():
    item = DirectoryItem.from_bytes(_entry(b"SUB     ", b"   ", 0x10, 5, 0))
    assert item.name == "SUB"
    assert item.is_directory
    assert item.first_cluster == 5
    assert DirectoryItem.SIZE == 32


def test_directory_item_too_short():
    with pytest.raises(Fat16Error):
        DirectoryItem.from_bytes(b"\x00" * 31)


@pytest.mark.parametrize("boot", [
    {"boot_signature": 0x1234},
    {"signature": 0x27},
    {"bytes_per_sector": 1024},
    {"spc": 0},
])
def test_resolve_rejects_bad_boot_sector(boot):
    with pytest.raises(Fat16Error):
        Fat16Volume.resolve(DiskStream(build_image(**boot)))


def test_resolve_rejects_empty_device():
    with pytest.raises(Fat16Error):
        Fat16Volume.resolve(DiskStream(b""))


def test_resolve_accepts_old_extended_signature():
    vol = Fat16Volume.resolve(DiskStream(build_image(signature=0x28)))
    assert vol.boot_sector.signature == 0x28


def test_layout(volume):
    assert volume.root_directory_sector() == 3
    assert volume.cluster_to_sector(2) == 4
    assert volume.cluster_to_sector(3) - volume.cluster_to_sector(2) == 1
    assert volume.bytes_per_sector == 512


def test_fat_entries(volume):
    assert volume.fat_entry(3) == 6
    assert volume.fat_entry(6) == 4
    assert volume.fat_entry(4) == FAT16_CLUSTER_LAST_MAX


def test_find_entry_case_insensitive(volume):
    item = volume.find_entry(0, "hello.txt")
    assert item.filesize == len(HELLO)
    assert item.name == "HELLO.TXT"


def test_find_entry_missing(volume):
    with pytest.raises(Fat16Error):
        volume.find_entry(0, "NOPE.TXT")


def test_find_entry_skips_deleted(volume):
    with pytest.raises(Fat16Error):
        volume.find_entry(0, "\xe5IDDEN.TXT")


def test_list_root(volume):
    assert volume.list([]) == ["HELLO.TXT", "BIG.BIN", "SUB/", "README"]


def test_list_subdirectory(volume):
    assert volume.list(["sub"]) == ["./", "../", "INNER.TXT"]


def test_list_parent_is_root(volume):
    assert volume.list(["SUB", ".."]) == volume.list([])


def test_list_file_fails(volume):
    with pytest.raises(Fat16Error):
        volume.list(["HELLO.TXT"])


def test_list_missing_fails(volume):
    with pytest.raises(Fat16Error):
        volume.list(["NOPE"])


def test_read_whole_small_file(volume):
    f = volume.open(["HELLO.TXT"], FileMode.READ)
    assert f.read(1, 100) == HELLO
    assert f.tell() == len(HELLO)
    assert f.read(1, 10) == b""


def test_read_counts_size_times_nmemb(volume):
    f = volume.open(["HELLO.TXT"], FileMode.READ)
    assert f.read(4, 3) == HELLO[:12]
    assert f.tell() == 12


def test_read_across_fragmented_chain(volume):
    f = volume.open(["BIG.BIN"], FileMode.READ)
    assert f.read(1, len(BIG)) == BIG


def test_read_in_chunks(volume):
    f = volume.open(["BIG.BIN"], FileMode.READ)
    chunks = []
    while True:
        data = f.read(1, 100)
        if not data:
            break
        chunks.append(data)
    assert b"".join(chunks) == BIG


def test_seek_backwards_and_reread(volume):
    f = volume.open(["BIG.BIN"], FileMode.READ)
    f.read(1, 1100)
    f.seek(600, SeekWhence.SET)
    assert f.read(1, 10) == BIG[600:610]
    f.seek(5)
    assert f.read(1, 600) == BIG[5:605]


def test_seek_cur_and_end(volume):
    f = volume.open(["BIG.BIN"], FileMode.READ)
    f.seek(10)
    f.seek(20, SeekWhence.CUR)
    assert f.tell() == 30
    f.seek(-10, SeekWhence.END)
    assert f.read(1, 100) == BIG[-10:]


@pytest.mark.parametrize("offset, whence", [(1, SeekWhence.END), (-1, SeekWhence.SET)])
def test_seek_outside_fails(volume, offset, whence):
    f = volume.open(["BIG.BIN"], FileMode.READ)
    f.seek(7)
    with pytest.raises(Fat16Error):
        f.seek(offset, whence)
    assert f.tell() == 7


def test_read_stops_at_missing_sector():
    vol = Fat16Volume.resolve(DiskStream(build_image(sectors=8)))
    f = vol.open(["BIG.BIN"], FileMode.READ)
    assert f.read(1, len(BIG)) == BIG[:512]
    assert f.tell() == 512


def test_open_nested(volume):
    with volume.open(["SUB", "inner.txt"], FileMode.READ) as f:
        assert f.read(1, 100) == INNER
    assert f.closed


def test_open_through_file_fails(volume):
    with pytest.raises(Fat16Error):
        volume.open(["HELLO.TXT", "X"], FileMode.READ)


def test_open_directory_fails(volume):
    with pytest.raises(Fat16Error):
        volume.open(["SUB"], FileMode.READ)


def test_open_write_mode_fails(volume):
    with pytest.raises(Fat16Error):
        volume.open(["HELLO.TXT"], FileMode.WRITE)


def test_open_empty_path_fails(volume):
    with pytest.raises(Fat16Error):
        volume.open([], FileMode.READ)


def test_stat_flags(volume):
    st = volume.open(["README"], FileMode.READ).stat()
    assert st.flags == StatFlags.READ_ONLY | StatFlags.ARCHIVE
    assert st.filesize == 0


def test_stat_size(volume):
    st = volume.open(["BIG.BIN"], FileMode.READ).stat()
    assert st.filesize == len(BIG)
    assert st.flags == StatFlags.ARCHIVE


def test_empty_file_reads_nothing(volume):
    f = volume.open(["README"], FileMode.READ)
    assert f.read(1, 10) == b""
    assert f.tell() == 0


def test_closed_file_rejects_read(volume):
    f = volume.open(["HELLO.TXT"], FileMode.READ)
    assert isinstance(f, Fat16File)
    f.close()
    with pytest.raises(ValueError):
        f.read(1, 1)
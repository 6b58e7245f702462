# vibekernel

`vibekernel` models the parts of a small 32-bit hobby kernel in plain
Python. You can use it to look inside FAT16 disk images and 32-bit ELF
executables, to build x86 descriptor tables, or to try out the kernel's
text console and command shell without booting anything.

The package has no dependencies outside the standard library.

## Modules

- `vibekernel.paths`: `parse_path` splits a drive path such as
  `0:/bin/test.elf` into a `PathRoot` with `drive_no` and `parts`.
  Components are read up to the first empty one, so `0:/a//b` gives only
  `a`. A path without a `<digit>:/` prefix raises `PathError`.
- `vibekernel.disk`: `DiskStream` reads bytes at any position of a disk
  image (bytes or a binary file object), a 512-byte sector at a time.
  It has `seek`, `read` and `close` and works as a context manager. A
  sector that starts past the end of the image raises `DiskReadError`.
- `vibekernel.fat16`: `BootSector` and `DirectoryItem` decode the boot
  sector and 32-byte directory entries; `format_short_name` joins an 8.3
  name as `NAME.EXT`. `Fat16Volume.resolve` checks the boot and extended
  signatures and the sector size; the volume then offers
  `root_directory_sector`, `cluster_to_sector`, `fat_entry`,
  `find_entry` (case-insensitive), `list` and `open`. `open` returns a
  `Fat16File` with `read(size, nmemb)`, `seek`, `tell`, `stat` and
  `close`. Failures raise `Fat16Error`.
- `vibekernel.fstypes`: `FileMode`, `SeekWhence`, `StatFlags`,
  `FileStat` and `parse_mode`, shared by the file system layers.
- `vibekernel.vfs`: `VirtualFileSystem` takes the images of drives 0
  and 1, a table of up to 12 file system types and up to 512 numbered
  descriptors (lowest free number first, starting at 1). It has
  `insert_filesystem`, `resolve`, `open`, `read`, `seek`, `tell`,
  `stat`, `close` and `list`, and raises `VfsError` on failure.
- `vibekernel.elf`: `ElfHeader` and `ProgramHeader` decode ELF32
  headers; `is_valid_header` checks the magic number and the 32-bit
  class. Short data raises `ElfError`.
- `vibekernel.descriptors`: `gdt_entry`, `build_gdt`, `idt_gate`,
  `low_16` and `high_16` build `GdtEntry`, `TaskStateSegment` and
  `IdtGate` values, whose `pack` methods give their packed byte layouts.
- `vibekernel.interrupts`: `InterruptDispatcher` runs the handlers
  registered for interrupt vectors. `handle_isr` reports a CPU exception
  (vectors 0–31) and raises `CpuException`; `handle_irq` writes the
  end-of-interrupt bytes to the PIC ports first. `exception_message`
  names an exception.
- `vibekernel.screen`: `Screen` is an 80×25 text console in memory with
  a cursor and a colour attribute: `print_string`, `print_at`,
  `set_colour`, `clear`, `char_at` and `row_text`.
- `vibekernel.keyboard`: `Keyboard` turns scancode set 1 codes into
  characters, tracks the shift keys and buffers up to 255 characters;
  `getc` raises `EOFError` when no key is left. `translate_scancode`
  maps a single code.
- `vibekernel.command`: `CommandRegistry` holds up to 50 commands and
  runs the one named by the first word of a line; `split_args` splits a
  line on spaces into at most 10 words.
- `vibekernel.shell`: `Shell` joins the screen, keyboard, commands and
  file system into the kernel's prompt; `main` starts it.

## Installing

```
pip install .
```

With the test tools:

```
pip install ".[test]"
```

## Quick look

```python
from vibekernel.paths import parse_path
from vibekernel.command import split_args
from vibekernel.keyboard import translate_scancode
from vibekernel.screen import get_offset, offset_row, offset_col

parse_path("0:/bin/test.elf")      # PathRoot(drive_no=0, parts=('bin', 'test.elf'))
split_args("echo   hello world")   # ['echo', 'hello', 'world']
translate_scancode(0x1E, False)    # 'a'
translate_scancode(0x1E, True)     # 'A'

offset = get_offset(5, 2)
offset_row(offset), offset_col(offset)   # (2, 5)
```

Reading a file from a FAT16 image:

```python
from vibekernel.vfs import VirtualFileSystem
from vibekernel.fat16 import Fat16Volume

with open("fat16.img", "rb") as image:
    vfs = VirtualFileSystem([image])
    vfs.insert_filesystem(Fat16Volume)
    print(vfs.list("0:/"))
    fd = vfs.open("0:/blank.bin", "r")
    data = vfs.read(fd, 1, vfs.stat(fd).filesize)
    vfs.close(fd)
```

## The shell

```
vibekernel-shell [IMAGE0 [IMAGE1]]
```

The optional arguments are disk images for drives 0 and 1. The shell
prints a greeting, then reads keys from standard input and shows a
`> ` prompt, until input ends. Commands:

- `help`: list the commands
- `cls`: clear the screen
- `version`: show the kernel version
- `echo`, `print`: print their arguments
- `ls [path]`: list a directory, `0:/` by default
- `run <filename>`: load a raw binary or ELF program

## What the package does not do

- It does not execute programs. `run` reads the file and builds its
  segments and entry point; a `Shell` hands them to a launcher only if
  one was given, and `vibekernel-shell` gives none, so it only prints
  `Starting process: ...`.
- There is no paging, memory allocator or task switching.
- FAT16 volumes are read-only, with 8.3 names only; opening for writing
  or appending fails.
- The screen does not scroll: text past the last row is not shown.

## Running the tests

```
pytest
```
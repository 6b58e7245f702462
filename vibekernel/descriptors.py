"""Segment, task-state and interrupt-gate descriptors in their packed layouts."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass, field
from typing import ClassVar

GDT_ACCESS_PRESENT = 0x80
GDT_ACCESS_DPL0 = 0x00
GDT_ACCESS_DPL3 = 0x60
GDT_ACCESS_S = 0x10
GDT_ACCESS_TYPE_CODE_EXREAD = 0x0A
GDT_ACCESS_TYPE_DATA_RDWR = 0x02
GDT_ACCESS_TSS = 0x89

GDT_GRAN_4KB = 0x80
GDT_GRAN_32BIT = 0x40

GDT_ENTRIES = 6
KERNEL_CODE_SELECTOR = 0x08
KERNEL_DATA_SELECTOR = 0x10
TSS_SELECTOR = 0x28

KERNEL_CS = 0x08
IDT_ENTRIES = 256
IDT_PRESENT = 0x80
IDT_DPL_0 = 0x00
IDT_DPL_3 = 0x60
IDT_TYPE_INTERRUPT_GATE_32 = 0x0E
IDT_TYPE_TRAP_GATE_32 = 0x0F

_U32 = 0xFFFFFFFF


def low_16(address: int) -> int:
    """The low 16 bits of ``address``."""
    return address & 0xFFFF


def high_16(address: int) -> int:
    """Bits 16 to 31 of ``address``."""
    return (address >> 16) & 0xFFFF


@dataclass(frozen=True)
class GdtEntry:
    """One 8-byte segment descriptor."""

    limit_low: int
    base_low: int
    base_middle: int
    access: int
    granularity: int
    base_high: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<HHBBBB")
    SIZE: ClassVar[int] = _STRUCT.size

    @property
    def base(self) -> int:
        return self.base_low | (self.base_middle << 16) | (self.base_high << 24)

    @property
    def limit(self) -> int:
        return self.limit_low | ((self.granularity & 0x0F) << 16)

    def pack(self) -> bytes:
        """The descriptor as it sits in the table."""
        return self._STRUCT.pack(*astuple(self))


def gdt_entry(base: int, limit: int, access: int, gran: int) -> GdtEntry:
    """Build a segment descriptor; only the top nibble of ``gran`` is used."""
    base &= _U32
    limit &= _U32
    return GdtEntry(
        limit_low=limit & 0xFFFF,
        base_low=base & 0xFFFF,
        base_middle=(base >> 16) & 0xFF,
        access=access & 0xFF,
        granularity=((limit >> 16) & 0x0F) | (gran & 0xF0),
        base_high=(base >> 24) & 0xFF,
    )


_TSS_FIELDS = (
    "prev_tss esp0 ss0 esp1 ss1 esp2 ss2 cr3 eip eflags eax ecx edx ebx "
    "esp ebp esi edi es cs ss ds fs gs ldt trap iomap_base"
).split()


@dataclass
class TaskStateSegment:
    """The 32-bit task-state segment."""

    prev_tss: int = 0
    esp0: int = 0
    ss0: int = 0
    esp1: int = 0
    ss1: int = 0
    esp2: int = 0
    ss2: int = 0
    cr3: int = 0
    eip: int = 0
    eflags: int = 0
    eax: int = 0
    ecx: int = 0
    edx: int = 0
    ebx: int = 0
    esp: int = 0
    ebp: int = 0
    esi: int = 0
    edi: int = 0
    es: int = 0
    cs: int = 0
    ss: int = 0
    ds: int = 0
    fs: int = 0
    gs: int = 0
    ldt: int = 0
    trap: int = 0
    iomap_base: int = 0

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<25I2H")
    SIZE: ClassVar[int] = _STRUCT.size

    def pack(self) -> bytes:
        """The segment's bytes."""
        return self._STRUCT.pack(*(getattr(self, name) for name in _TSS_FIELDS))


def build_gdt(tss_base: int, esp0: int = 0) -> tuple[tuple[GdtEntry, ...], TaskStateSegment]:
    """The six descriptors (null, kernel code/data, user code/data, TSS) and the TSS."""
    flat = GDT_GRAN_4KB | GDT_GRAN_32BIT
    kernel_code = GDT_ACCESS_PRESENT | GDT_ACCESS_S | GDT_ACCESS_TYPE_CODE_EXREAD
    kernel_data = GDT_ACCESS_PRESENT | GDT_ACCESS_S | GDT_ACCESS_TYPE_DATA_RDWR
    entries = (
        gdt_entry(0, 0, 0, 0),
        gdt_entry(0, _U32, kernel_code, flat),
        gdt_entry(0, _U32, kernel_data, flat),
        gdt_entry(0, _U32, kernel_code | GDT_ACCESS_DPL3, flat),
        gdt_entry(0, _U32, kernel_data | GDT_ACCESS_DPL3, flat),
        gdt_entry(tss_base, TaskStateSegment.SIZE - 1, GDT_ACCESS_TSS, 0x00),
    )
    tss = TaskStateSegment(
        ss0=KERNEL_DATA_SELECTOR,
        esp0=esp0 & _U32,
        cs=KERNEL_CODE_SELECTOR,
        ss=KERNEL_DATA_SELECTOR,
        ds=KERNEL_DATA_SELECTOR,
        es=KERNEL_DATA_SELECTOR,
        fs=KERNEL_DATA_SELECTOR,
        gs=KERNEL_DATA_SELECTOR,
    )
    return entries, tss


@dataclass(frozen=True)
class IdtGate:
    """One 8-byte interrupt descriptor table gate."""

    low_offset: int
    sel: int
    always0: int
    flags: int
    high_offset: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<HHBBH")
    SIZE: ClassVar[int] = _STRUCT.size

    @property
    def handler(self) -> int:
        return self.low_offset | (self.high_offset << 16)

    def pack(self) -> bytes:
        """The gate as it sits in the table."""
        return self._STRUCT.pack(*astuple(self))


def idt_gate(handler: int, flags: int) -> IdtGate:
    """A gate to ``handler`` in the kernel code segment."""
    return IdtGate(low_16(handler), KERNEL_CS, 0, flags & 0xFF, high_16(handler))
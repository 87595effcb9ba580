"""Global and interrupt descriptor tables for x86-64 long mode."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

_GDT_ENTRY = struct.Struct("<HHBBBB")
_IDT_ENTRY = struct.Struct("<HHBBHII")
_TABLE_POINTER = struct.Struct("<HQ")

KERNEL_CODE_SELECTOR = 8
INTERRUPT_GATE_FLAGS = 0x8E
IDT_MAX_DESCRIPTORS = 256
GDT_DEFAULT_SIZE = 5


@dataclass
class GdtEntry:
    """One packed 8-byte segment descriptor."""

    limit: int = 0
    base_low: int = 0
    base_middle: int = 0
    access: int = 0
    flags: int = 0
    base_high: int = 0

    def pack(self) -> bytes:
        """Return the descriptor in its in-memory layout."""
        return _GDT_ENTRY.pack(
            self.limit, self.base_low, self.base_middle, self.access, self.flags, self.base_high
        )


class Gdt:
    """A global descriptor table of a fixed number of entries."""

    def __init__(self, size: int = GDT_DEFAULT_SIZE) -> None:
        if size <= 0:
            raise ValueError("a GDT needs at least one entry")
        self.entries = [GdtEntry() for _ in range(size)]

    def set_gate(self, num: int, base: int, limit: int, access: int, gran: int) -> None:
        """Fill entry ``num`` from a base, a limit, an access byte and granularity flags."""
        if not 0 <= num < len(self.entries):
            raise IndexError(f"GDT entry {num} out of range")
        base &= 0xFFFFFFFF
        limit &= 0xFFFFFFFF
        self.entries[num] = GdtEntry(
            limit=limit & 0xFFFF,
            base_low=base & 0xFFFF,
            base_middle=(base >> 16) & 0xFF,
            access=access & 0xFF,
            flags=((limit >> 16) & 0x0F) | (gran & 0xF0),
            base_high=(base >> 24) & 0xFF,
        )

    def pack(self) -> bytes:
        """Return the whole table as bytes."""
        return b"".join(entry.pack() for entry in self.entries)

    def pointer(self, base_address: int) -> bytes:
        """Return the 10-byte operand for ``lgdt`` for a table at ``base_address``."""
        return _TABLE_POINTER.pack(len(self.pack()) - 1, base_address)


def kernel_gdt() -> Gdt:
    """Return the flat long-mode table: null, kernel code/data, user data/code."""
    gdt = Gdt(GDT_DEFAULT_SIZE)
    gdt.entries[1].access = 0b10011010
    gdt.entries[1].flags = 0b00100000
    gdt.entries[2].access = 0b10010010
    gdt.entries[3].access = 0b11110010
    gdt.entries[4].access = 0b11111010
    gdt.entries[4].flags = 0b00100000
    return gdt


@dataclass
class IdtEntry:
    """One packed 16-byte interrupt gate."""

    offset_lo: int = 0
    selector: int = 0
    ist: int = 0
    flags: int = 0
    offset_mid: int = 0
    offset_hi: int = 0
    zero: int = 0

    def pack(self) -> bytes:
        """Return the gate in its in-memory layout."""
        return _IDT_ENTRY.pack(
            self.offset_lo,
            self.selector,
            self.ist,
            self.flags,
            self.offset_mid,
            self.offset_hi,
            self.zero,
        )

    def handler_address(self) -> int:
        """Return the 64-bit handler address spread over the three offset fields."""
        return self.offset_lo | (self.offset_mid << 16) | (self.offset_hi << 32)


@dataclass
class Idt:
    """An interrupt descriptor table with a gate for every vector."""

    entries: list[IdtEntry] = field(init=False)

    def __init__(self) -> None:
        self.entries = [IdtEntry() for _ in range(IDT_MAX_DESCRIPTORS)]

    def set_desc(self, vec: int, handler: int, ist: int) -> None:
        """Install a present, ring-0 interrupt gate for ``vec`` pointing at ``handler``."""
        if not 0 <= vec < IDT_MAX_DESCRIPTORS:
            raise IndexError(f"interrupt vector {vec} out of range")
        address = handler & 0xFFFFFFFFFFFFFFFF
        self.entries[vec] = IdtEntry(
            offset_lo=address & 0xFFFF,
            selector=KERNEL_CODE_SELECTOR,
            ist=ist & 0xFF,
            flags=INTERRUPT_GATE_FLAGS,
            offset_mid=(address >> 16) & 0xFFFF,
            offset_hi=(address >> 32) & 0xFFFFFFFF,
            zero=0,
        )

    def pack(self) -> bytes:
        """Return the whole table as bytes."""
        return b"".join(entry.pack() for entry in self.entries)

    def pointer(self, base_address: int) -> bytes:
        """Return the 10-byte operand for ``lidt`` for a table at ``base_address``."""
        return _TABLE_POINTER.pack(len(self.pack()) - 1, base_address)
import struct

import pytest

from kodiak.descriptors import Gdt, GdtEntry, Idt, IdtEntry, kernel_gdt


def test_gdt_entry_packs_to_eight_bytes():
    assert len(GdtEntry().pack()) == 8


def test_gdt_entry_layout_round_trip():
    entry = GdtEntry(limit=0x1234, base_low=0x5678, base_middle=0x9A, access=0xBC, flags=0xDE, base_high=0xF0)
    assert struct.unpack("<HHBBBB", entry.pack()) == (0x1234, 0x5678, 0x9A, 0xBC, 0xDE, 0xF0)


def test_kernel_gdt_access_and_flags():
    gdt = kernel_gdt()
    assert [e.access for e in gdt.entries] == [0, 0b10011010, 0b10010010, 0b11110010, 0b11111010]
    assert [e.flags for e in gdt.entries] == [0, 0b00100000, 0, 0, 0b00100000]


def test_kernel_gdt_null_descriptor_is_zero():
    packed = kernel_gdt().pack()
    assert packed[: len(GdtEntry().pack())] == bytes(len(GdtEntry().pack()))


def test_gdt_pack_length_is_entry_count_times_entry_size():
    gdt = Gdt(7)
    assert len(gdt.pack()) == 7 * len(GdtEntry().pack())


@pytest.mark.parametrize(
    "base, limit, access, gran",
    [(0, 0xFFFFF, 0x9A, 0xA0), (0x12345678, 0xABCDE, 0x92, 0xC0), (0xFFFFFFFF, 0, 0xF2, 0x20)],
)
def test_set_gate_fields_reassemble(base, limit, access, gran):
    gdt = Gdt()
    gdt.set_gate(2, base, limit, access, gran)
    e = gdt.entries[2]
    assert e.base_low | (e.base_middle << 16) | (e.base_high << 24) == base
    assert e.limit | ((e.flags & 0x0F) << 16) == limit & 0xFFFFF
    assert e.flags & 0xF0 == gran & 0xF0
    assert e.access == access


def test_set_gate_out_of_range():
    with pytest.raises(IndexError):
        Gdt(5).set_gate(5, 0, 0, 0, 0)


def test_gdt_requires_entries():
    with pytest.raises(ValueError):
        Gdt(0)


def test_gdt_pointer_holds_limit_and_base():
    gdt = kernel_gdt()
    pointer = gdt.pointer(0xFFFFFFFF80001000)
    assert len(pointer) == 10
    assert struct.unpack("<HQ", pointer) == (len(gdt.pack()) - 1, 0xFFFFFFFF80001000)


def test_idt_entry_packs_to_sixteen_bytes():
    assert len(IdtEntry().pack()) == 16


@pytest.mark.parametrize("address", [0, 0xFFFFFFFF80123456, 0x0000123456789ABC, 0xFFFF])
def test_set_desc_handler_address_round_trip(address):
    idt = Idt()
    idt.set_desc(33, address, 0)
    assert idt.entries[33].handler_address() == address


def test_set_desc_gate_attributes():
    idt = Idt()
    idt.set_desc(14, 0xFFFFFFFF80000000, 2)
    e = idt.entries[14]
    assert (e.selector, e.flags, e.ist, e.zero) == (8, 0x8E, 2, 0)


def test_set_desc_out_of_range():
    with pytest.raises(IndexError):
        Idt().set_desc(256, 0, 0)


def test_idt_pack_and_pointer():
    idt = Idt()
    packed = idt.pack()
    assert len(packed) == len(idt.entries) * len(IdtEntry().pack())
    limit, base = struct.unpack("<HQ", idt.pointer(0x2000))
    assert limit == len(packed) - 1
    assert base == 0x2000


def test_idt_pack_contains_gate_bytes():
    idt = Idt()
    idt.set_desc(1, 0xDEADBEEF, 0)
    size = len(IdtEntry().pack())
    assert idt.pack()[size : 2 * size] == idt.entries[1].pack()
import pytest

from kodiak.interrupts import (
    CpuException,
    InterruptDispatcher,
    Registers,
    UnhandledInterrupt,
    build_idt,
    interrupt_stack_index,
)


def test_registers_pack_round_trip():
    regs = Registers(rax=1, rbx=2, isr_number=33, err_code=0xFFFF, rip=0xFFFFFFFF80000000, ss=0x10)
    assert Registers.unpack(regs.pack()) == regs


def test_registers_pack_order_starts_with_r15():
    regs = Registers(r15=0xAA, ss=0xBB)
    packed = regs.pack()
    assert packed[0] == 0xAA
    assert packed[-8] == 0xBB


@pytest.mark.parametrize("vector", [0, 13, 14, 31])
def test_cpu_exceptions_raise(vector):
    dispatcher = InterruptDispatcher()
    dispatcher.set_handler(vector, lambda r: "never")
    with pytest.raises(CpuException) as info:
        dispatcher.handle(Registers(isr_number=vector, err_code=3))
    assert info.value.vector == vector
    assert info.value.registers.err_code == 3


def test_handler_receives_registers_and_returns():
    dispatcher = InterruptDispatcher()
    seen = []

    def handler(regs):
        seen.append(regs.rax)
        return regs.isr_number

    dispatcher.set_handler(32, handler)
    assert dispatcher.handle(Registers(isr_number=32, rax=99)) == 32
    assert seen == [99]


def test_missing_handler_raises():
    with pytest.raises(UnhandledInterrupt):
        InterruptDispatcher().handle(Registers(isr_number=40))


def test_removed_handler_raises():
    dispatcher = InterruptDispatcher()
    dispatcher.set_handler(40, lambda r: 1)
    dispatcher.set_handler(40, None)
    with pytest.raises(UnhandledInterrupt):
        dispatcher.handle(Registers(isr_number=40))


def test_set_handler_out_of_range():
    with pytest.raises(IndexError):
        InterruptDispatcher().set_handler(256, lambda r: None)


@pytest.mark.parametrize("vector, expected", [(14, 2), (48, 1), (0, 0), (32, 0), (255, 0)])
def test_interrupt_stack_index(vector, expected):
    assert interrupt_stack_index(vector) == expected


def test_build_idt_points_each_vector_at_its_stub():
    stubs = [0xFFFFFFFF80100000 + 16 * v for v in range(256)]
    idt = build_idt(stubs)
    assert [e.handler_address() for e in idt.entries] == stubs
    assert [e.ist for e in idt.entries] == [interrupt_stack_index(v) for v in range(256)]


def test_build_idt_requires_all_vectors():
    with pytest.raises(ValueError):
        build_idt([0] * 255)
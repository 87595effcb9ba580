"""Interrupt service routine dispatch."""

from __future__ import annotations

import struct
from collections.abc import Callable, Sequence
from dataclasses import astuple, dataclass, fields
from typing import Any

from kodiak.descriptors import IDT_MAX_DESCRIPTORS, Idt

EXCEPTION_VECTORS = 32
PAGE_FAULT_VECTOR = 14
SCHEDULER_VECTOR = 48


@dataclass
class Registers:
    """CPU state saved by an interrupt stub, in stack order."""

    r15: int = 0
    r14: int = 0
    r13: int = 0
    r12: int = 0
    r11: int = 0
    r10: int = 0
    r9: int = 0
    r8: int = 0
    rsi: int = 0
    rdi: int = 0
    rbp: int = 0
    rdx: int = 0
    rcx: int = 0
    rbx: int = 0
    rax: int = 0
    core: int = 0
    isr_number: int = 0
    err_code: int = 0
    rip: int = 0
    cs: int = 0
    rflags: int = 0
    rsp: int = 0
    ss: int = 0

    @classmethod
    def _layout(cls) -> struct.Struct:
        return struct.Struct(f"<{len(fields(cls))}Q")

    def pack(self) -> bytes:
        """Return the saved frame in its in-memory layout."""
        return self._layout().pack(*astuple(self))

    @classmethod
    def unpack(cls, data: bytes) -> Registers:
        """Read a saved frame from its in-memory layout."""
        return cls(*cls._layout().unpack(data))


class CpuException(Exception):
    """Raised when a CPU exception vector (below 32) reaches the dispatcher."""

    def __init__(self, registers: Registers) -> None:
        super().__init__(
            f"CPU exception {registers.isr_number} (error code {registers.err_code:#x})"
        )
        self.registers = registers
        self.vector = registers.isr_number


class UnhandledInterrupt(LookupError):
    """Raised when an interrupt arrives for a vector with no handler."""


Handler = Callable[[Registers], Any]


class InterruptDispatcher:
    """Routes interrupts to per-vector handlers."""

    def __init__(self) -> None:
        self._handlers: list[Handler | None] = [None] * IDT_MAX_DESCRIPTORS

    def set_handler(self, n: int, handler: Handler | None) -> None:
        """Install ``handler`` for vector ``n``; None removes it."""
        if not 0 <= n < IDT_MAX_DESCRIPTORS:
            raise IndexError(f"interrupt vector {n} out of range")
        self._handlers[n] = handler

    def handle(self, registers: Registers) -> Any:
        """Dispatch one interrupt and return what its handler returns."""
        vector = registers.isr_number
        if vector < EXCEPTION_VECTORS:
            raise CpuException(registers)
        if vector >= IDT_MAX_DESCRIPTORS:
            raise IndexError(f"interrupt vector {vector} out of range")
        handler = self._handlers[vector]
        if handler is None:
            raise UnhandledInterrupt(f"no handler for interrupt {vector}")
        return handler(registers)


def interrupt_stack_index(vector: int) -> int:
    """Return the interrupt stack table slot used for ``vector``."""
    if vector == PAGE_FAULT_VECTOR:
        return 2
    if vector == SCHEDULER_VECTOR:
        return 1
    return 0


def build_idt(stub_addresses: Sequence[int]) -> Idt:
    """Return an IDT with a gate for every vector pointing at its stub."""
    if len(stub_addresses) != IDT_MAX_DESCRIPTORS:
        raise ValueError(
            f"expected {IDT_MAX_DESCRIPTORS} stub addresses, got {len(stub_addresses)}"
        )
    idt = Idt()
    for vector, address in enumerate(stub_addresses):
        idt.set_desc(vector, address, interrupt_stack_index(vector))
    return idt
"""Terminal emulator core on an in-memory cell grid, with descriptor table, interrupt and boot protocol helpers."""

__version__ = "0.1.0"

__all__ = [
    "backend",
    "charmap",
    "descriptors",
    "interrupts",
    "klibc",
    "limine",
    "sgr",
    "terminal",
]
"""Boot protocol identifiers, constants and framebuffer records.

The loader finds requests in the kernel image by their 256-bit identifiers.
It answers by filling in response pointers and rewriting the base-revision
words.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

API_REVISION = 3
MAX_API_REVISION = 3

COMMON_MAGIC = (0xC7B1DD30DF4C8B88, 0x0A82E883A194F07B)

_BASE_REVISION_MAGIC = (0xF9562B2D5C95A6C8, 0x6A7B384944536BDC)
_REQUESTS_START_MARKER = (
    0xF6B8F4B39DE7D1AE,
    0xFAB91A6940FCB9CF,
    0x785C6ED015D3E316,
    0x181E920A7852B9D9,
)
_REQUESTS_END_MARKER = (0xADC0E0531BB10D03, 0x9572709F31764C62)

_U64_MAX = 2**64 - 1

FRAMEBUFFER_RGB = 1

# limine_framebuffer up to and including the EDID pointer; 7 unused bytes pad it.
_FRAMEBUFFER = struct.Struct("<QQQQHB6B7xQQ")


class RequestKind(Enum):
    """Every request the protocol knows, valued by the two words after the common magic."""

    BOOTLOADER_INFO = (0xF55038D8E2A1202F, 0x279426FCF5F59740)
    EXECUTABLE_CMDLINE = (0x4B161536E598651E, 0xB390AD4A2F1F303A)
    FIRMWARE_TYPE = (0x8C2F75D90BEF28A8, 0x7045A4688EAC00C3)
    STACK_SIZE = (0x224EF0460A8E8926, 0xE1CB0FC25F46EA3D)
    HHDM = (0x48DCF1CB8AD2B852, 0x63984E959A98244B)
    FRAMEBUFFER = (0x9D5827DCD881DD75, 0xA3148604F6FAB11B)
    TERMINAL = (0xC8AC59310C2B0844, 0xA68D0C7265D38878)
    PAGING_MODE = (0x95C1A0EDAB0944CB, 0xA4E5CB3842F7488A)
    FIVE_LEVEL_PAGING = (0x94469551DA9B3192, 0xEBE5E86DB7382888)
    MP = (0x95A67B819A1B857E, 0xA0B61B723B6A73E0)
    MEMMAP = (0x67CF3D9D378A806F, 0xE304ACDFC50C3C62)
    ENTRY_POINT = (0x13D86C035A1CD3E1, 0x2B0CAA89D8F3026A)
    EXECUTABLE_FILE = (0xAD97E90E83F1ED67, 0x31EB5D1C5FF23B69)
    MODULE = (0x3E7E279702BE32AF, 0xCA1C4F3BD1280CEE)
    RSDP = (0xC5E77B6B397E7B43, 0x27637845ACCDCF3C)
    SMBIOS = (0x9E9046F11E095391, 0xAA4A520FEFBDE5EE)
    EFI_SYSTEM_TABLE = (0x5CEBA5163EAAF6D6, 0x0A6981610CF65FCC)
    EFI_MEMMAP = (0x7DF62A431D6872D5, 0xA4FCDFB3E57306C8)
    DATE_AT_BOOT = (0x502746E184C088AA, 0xFBC5EC83E6327893)
    EXECUTABLE_ADDRESS = (0x71BA76863CC55F63, 0xB2644A48C516A487)
    DTB = (0xB40DDB48FB54BAC7, 0x545081493F81FFB7)
    RISCV_BSP_HARTID = (0x1369359F025525F9, 0x2FF2A56178391BB6)
    BOOTLOADER_PERFORMANCE = (0x6B50AD9BF36D13AD, 0xDC4C7E88FC759E17)


class MemmapType(IntEnum):
    """Memory map entry types."""

    USABLE = 0
    RESERVED = 1
    ACPI_RECLAIMABLE = 2
    ACPI_NVS = 3
    BAD_MEMORY = 4
    BOOTLOADER_RECLAIMABLE = 5
    EXECUTABLE_AND_MODULES = 6
    FRAMEBUFFER = 7


class FirmwareType(IntEnum):
    """Firmware the machine booted from."""

    X86BIOS = 0
    UEFI32 = 1
    UEFI64 = 2
    SBI = 3


class MediaType(IntEnum):
    """Media a file was loaded from."""

    GENERIC = 0
    OPTICAL = 1
    TFTP = 2


class PagingMode(IntEnum):
    """x86-64 paging modes."""

    X86_64_4LVL = 0
    X86_64_5LVL = 1


PAGING_MODE_MIN = PagingMode.X86_64_4LVL
PAGING_MODE_DEFAULT = PagingMode.X86_64_4LVL


def _check_u64(value: int, what: str) -> int:
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"{what} {value} does not fit in 64 bits")
    return value


def request_id(kind: RequestKind) -> tuple[int, int, int, int]:
    """Return the four 64-bit words identifying a request of ``kind``."""
    if not isinstance(kind, RequestKind):
        raise TypeError(f"expected a RequestKind, got {type(kind).__name__}")
    return (*COMMON_MAGIC, *kind.value)


def base_revision_words(revision: int) -> tuple[int, int, int]:
    """Return the three words a kernel places to ask for base revision ``revision``."""
    _check_u64(revision, "base revision")
    return (*_BASE_REVISION_MAGIC, revision)


def _check_revision_words(words: tuple[int, ...] | list[int]) -> None:
    if len(words) != 3:
        raise ValueError(f"expected 3 base revision words, got {len(words)}")
    for word in words:
        _check_u64(word, "base revision word")


def base_revision_supported(words: tuple[int, ...] | list[int]) -> bool:
    """Return True when the loader zeroed the third word, accepting the revision."""
    _check_revision_words(words)
    return words[2] == 0


def loaded_base_revision(words: tuple[int, ...] | list[int]) -> int | None:
    """Return the base revision the loader reports, or None if it wrote none."""
    _check_revision_words(words)
    if words[1] == _BASE_REVISION_MAGIC[1]:
        return None
    return words[1]


def requests_start_marker() -> tuple[int, int, int, int]:
    """Return the words that open the request section."""
    return _REQUESTS_START_MARKER


def requests_end_marker() -> tuple[int, int]:
    """Return the words that close the request section."""
    return _REQUESTS_END_MARKER


@dataclass(frozen=True)
class ColorMask:
    """Position and width of one colour channel inside a pixel."""

    offset: int
    length: int

    def __post_init__(self) -> None:
        if self.offset < 0 or self.length < 0:
            raise ValueError("mask offset and length must not be negative")

    @property
    def mask(self) -> int:
        """Return the bits the channel occupies."""
        return ((1 << self.length) - 1) << self.offset

    def extract(self, pixel: int) -> int:
        """Return the raw channel value stored in ``pixel``."""
        return (pixel & self.mask) >> self.offset


@dataclass
class FramebufferInfo:
    """A framebuffer as described by the loader."""

    address: int
    width: int
    height: int
    pitch: int
    bpp: int
    memory_model: int
    red: ColorMask
    green: ColorMask
    blue: ColorMask
    edid_size: int = 0
    edid: int = 0

    SIZE = _FRAMEBUFFER.size

    @property
    def color_masks(self) -> tuple[ColorMask, ColorMask, ColorMask]:
        """Return the red, green and blue masks in that order."""
        return (self.red, self.green, self.blue)

    @property
    def is_rgb(self) -> bool:
        """Return True for the direct-colour RGB memory model."""
        return self.memory_model == FRAMEBUFFER_RGB

    def pack(self) -> bytes:
        """Return the record in its in-memory layout."""
        return _FRAMEBUFFER.pack(
            self.address,
            self.width,
            self.height,
            self.pitch,
            self.bpp,
            self.memory_model,
            self.red.length,
            self.red.offset,
            self.green.length,
            self.green.offset,
            self.blue.length,
            self.blue.offset,
            self.edid_size,
            self.edid,
        )

    @classmethod
    def unpack(cls, data: bytes) -> FramebufferInfo:
        """Read a record from its in-memory layout."""
        if len(data) < _FRAMEBUFFER.size:
            raise ValueError(
                f"framebuffer record needs {_FRAMEBUFFER.size} bytes, got {len(data)}"
            )
        (
            address,
            width,
            height,
            pitch,
            bpp,
            memory_model,
            red_size,
            red_shift,
            green_size,
            green_shift,
            blue_size,
            blue_shift,
            edid_size,
            edid,
        ) = _FRAMEBUFFER.unpack_from(data)
        return cls(
            address=address,
            width=width,
            height=height,
            pitch=pitch,
            bpp=bpp,
            memory_model=memory_model,
            red=ColorMask(red_shift, red_size),
            green=ColorMask(green_shift, green_size),
            blue=ColorMask(blue_shift, blue_size),
            edid_size=edid_size,
            edid=edid,
        )
"""Character tables used by the terminal.

This module covers Unicode to code page 437 translation, display widths,
the DEC special graphics set and the xterm 256-colour palette.
"""

from __future__ import annotations

from bisect import bisect_right

# Code points for CP437 glyphs 1..31.
_CP437_LOW = (
    0x263A, 0x263B, 0x2665, 0x2666, 0x2663, 0x2660, 0x2022, 0x25D8,
    0x25CB, 0x25D9, 0x2642, 0x2640, 0x266A, 0x266B, 0x263C, 0x25BA,
    0x25C4, 0x2195, 0x203C, 0x00B6, 0x00A7, 0x25AC, 0x21A8, 0x2191,
    0x2193, 0x2192, 0x2190, 0x221F, 0x2194, 0x25B2, 0x25BC,
)

# Code points for CP437 glyphs 127..254.
_CP437_HIGH = (
    0x2302,
    0x00C7, 0x00FC, 0x00E9, 0x00E2, 0x00E4, 0x00E0, 0x00E5, 0x00E7,
    0x00EA, 0x00EB, 0x00E8, 0x00EF, 0x00EE, 0x00EC, 0x00C4, 0x00C5,
    0x00C9, 0x00E6, 0x00C6, 0x00F4, 0x00F6, 0x00F2, 0x00FB, 0x00F9,
    0x00FF, 0x00D6, 0x00DC, 0x00A2, 0x00A3, 0x00A5, 0x20A7, 0x0192,
    0x00E1, 0x00ED, 0x00F3, 0x00FA, 0x00F1, 0x00D1, 0x00AA, 0x00BA,
    0x00BF, 0x2310, 0x00AC, 0x00BD, 0x00BC, 0x00A1, 0x00AB, 0x00BB,
    0x2591, 0x2592, 0x2593, 0x2502, 0x2524, 0x2561, 0x2562, 0x2556,
    0x2555, 0x2563, 0x2551, 0x2557, 0x255D, 0x255C, 0x255B, 0x2510,
    0x2514, 0x2534, 0x252C, 0x251C, 0x2500, 0x253C, 0x255E, 0x255F,
    0x255A, 0x2554, 0x2569, 0x2566, 0x2560, 0x2550, 0x256C, 0x2567,
    0x2568, 0x2564, 0x2565, 0x2559, 0x2558, 0x2552, 0x2553, 0x256B,
    0x256A, 0x2518, 0x250C, 0x2588, 0x2584, 0x258C, 0x2590, 0x2580,
    0x03B1, 0x00DF, 0x0393, 0x03C0, 0x03A3, 0x03C3, 0x00B5, 0x03C4,
    0x03A6, 0x0398, 0x03A9, 0x03B4, 0x221E, 0x03C6, 0x03B5, 0x2229,
    0x2261, 0x00B1, 0x2265, 0x2264, 0x2320, 0x2321, 0x00F7, 0x2248,
    0x00B0, 0x2219, 0x00B7, 0x221A, 0x207F, 0x00B2, 0x25A0,
)

_CP437 = {
    **{cp: glyph for glyph, cp in enumerate(_CP437_LOW, start=1)},
    **{cp: glyph for glyph, cp in enumerate(_CP437_HIGH, start=127)},
}

# Sorted, non-overlapping ranges of non-spacing characters.
_COMBINING = (
    (0x0300, 0x036F), (0x0483, 0x0486), (0x0488, 0x0489),
    (0x0591, 0x05BD), (0x05BF, 0x05BF), (0x05C1, 0x05C2),
    (0x05C4, 0x05C5), (0x05C7, 0x05C7), (0x0600, 0x0603),
    (0x0610, 0x0615), (0x064B, 0x065E), (0x0670, 0x0670),
    (0x06D6, 0x06E4), (0x06E7, 0x06E8), (0x06EA, 0x06ED),
    (0x070F, 0x070F), (0x0711, 0x0711), (0x0730, 0x074A),
    (0x07A6, 0x07B0), (0x07EB, 0x07F3), (0x0901, 0x0902),
    (0x093C, 0x093C), (0x0941, 0x0948), (0x094D, 0x094D),
    (0x0951, 0x0954), (0x0962, 0x0963), (0x0981, 0x0981),
    (0x09BC, 0x09BC), (0x09C1, 0x09C4), (0x09CD, 0x09CD),
    (0x09E2, 0x09E3), (0x0A01, 0x0A02), (0x0A3C, 0x0A3C),
    (0x0A41, 0x0A42), (0x0A47, 0x0A48), (0x0A4B, 0x0A4D),
    (0x0A70, 0x0A71), (0x0A81, 0x0A82), (0x0ABC, 0x0ABC),
    (0x0AC1, 0x0AC5), (0x0AC7, 0x0AC8), (0x0ACD, 0x0ACD),
    (0x0AE2, 0x0AE3), (0x0B01, 0x0B01), (0x0B3C, 0x0B3C),
    (0x0B3F, 0x0B3F), (0x0B41, 0x0B43), (0x0B4D, 0x0B4D),
    (0x0B56, 0x0B56), (0x0B82, 0x0B82), (0x0BC0, 0x0BC0),
    (0x0BCD, 0x0BCD), (0x0C3E, 0x0C40), (0x0C46, 0x0C48),
    (0x0C4A, 0x0C4D), (0x0C55, 0x0C56), (0x0CBC, 0x0CBC),
    (0x0CBF, 0x0CBF), (0x0CC6, 0x0CC6), (0x0CCC, 0x0CCD),
    (0x0CE2, 0x0CE3), (0x0D41, 0x0D43), (0x0D4D, 0x0D4D),
    (0x0DCA, 0x0DCA), (0x0DD2, 0x0DD4), (0x0DD6, 0x0DD6),
    (0x0E31, 0x0E31), (0x0E34, 0x0E3A), (0x0E47, 0x0E4E),
    (0x0EB1, 0x0EB1), (0x0EB4, 0x0EB9), (0x0EBB, 0x0EBC),
    (0x0EC8, 0x0ECD), (0x0F18, 0x0F19), (0x0F35, 0x0F35),
    (0x0F37, 0x0F37), (0x0F39, 0x0F39), (0x0F71, 0x0F7E),
    (0x0F80, 0x0F84), (0x0F86, 0x0F87), (0x0F90, 0x0F97),
    (0x0F99, 0x0FBC), (0x0FC6, 0x0FC6), (0x102D, 0x1030),
    (0x1032, 0x1032), (0x1036, 0x1037), (0x1039, 0x1039),
    (0x1058, 0x1059), (0x1160, 0x11FF), (0x135F, 0x135F),
    (0x1712, 0x1714), (0x1732, 0x1734), (0x1752, 0x1753),
    (0x1772, 0x1773), (0x17B4, 0x17B5), (0x17B7, 0x17BD),
    (0x17C6, 0x17C6), (0x17C9, 0x17D3), (0x17DD, 0x17DD),
    (0x180B, 0x180D), (0x18A9, 0x18A9), (0x1920, 0x1922),
    (0x1927, 0x1928), (0x1932, 0x1932), (0x1939, 0x193B),
    (0x1A17, 0x1A18), (0x1B00, 0x1B03), (0x1B34, 0x1B34),
    (0x1B36, 0x1B3A), (0x1B3C, 0x1B3C), (0x1B42, 0x1B42),
    (0x1B6B, 0x1B73), (0x1DC0, 0x1DCA), (0x1DFE, 0x1DFF),
    (0x200B, 0x200F), (0x202A, 0x202E), (0x2060, 0x2063),
    (0x206A, 0x206F), (0x20D0, 0x20EF), (0x302A, 0x302F),
    (0x3099, 0x309A), (0xA806, 0xA806), (0xA80B, 0xA80B),
    (0xA825, 0xA826), (0xFB1E, 0xFB1E), (0xFE00, 0xFE0F),
    (0xFE20, 0xFE23), (0xFEFF, 0xFEFF), (0xFFF9, 0xFFFB),
    (0x10A01, 0x10A03), (0x10A05, 0x10A06), (0x10A0C, 0x10A0F),
    (0x10A38, 0x10A3A), (0x10A3F, 0x10A3F), (0x1D167, 0x1D169),
    (0x1D173, 0x1D182), (0x1D185, 0x1D18B), (0x1D1AA, 0x1D1AD),
    (0x1D242, 0x1D244), (0xE0001, 0xE0001), (0xE0020, 0xE007F),
    (0xE0100, 0xE01EF),
)
_COMBINING_FIRSTS = [first for first, _ in _COMBINING]

_DEC_SPECIAL = {
    ord("`"): 0x04, ord("0"): 0xDB, ord("-"): 0x18, ord(","): 0x1B,
    ord("."): 0x19, ord("a"): 0xB1, ord("f"): 0xF8, ord("g"): 0xF1,
    ord("h"): 0xB0, ord("j"): 0xD9, ord("k"): 0xBF, ord("l"): 0xDA,
    ord("m"): 0xC0, ord("n"): 0xC5, ord("q"): 0xC4, ord("s"): 0x5F,
    ord("t"): 0xC3, ord("u"): 0xB4, ord("v"): 0xC1, ord("w"): 0xC2,
    ord("x"): 0xB3, ord("y"): 0xF3, ord("z"): 0xF2, ord("~"): 0xFA,
    ord("_"): 0xFF, ord("+"): 0x1A, ord("{"): 0xE3, ord("}"): 0x9C,
}

_CUBE_LEVELS = (0x00, 0x5F, 0x87, 0xAF, 0xD7, 0xFF)


def _rgb(r: int, g: int, b: int) -> int:
    return (r << 16) | (g << 8) | b


# Entries 16..231 are a 6x6x6 colour cube, 232..255 a grey ramp.
_PALETTE = tuple(
    [_rgb(r, g, b) for r in _CUBE_LEVELS for g in _CUBE_LEVELS for b in _CUBE_LEVELS]
    + [_rgb(v, v, v) for v in range(0x08, 0xEF, 10)]
)


def unicode_to_cp437(code_point: int) -> int | None:
    """Return the CP437 glyph for ``code_point``, or None if it has none."""
    return _CP437.get(code_point)


def _is_combining(code_point: int) -> bool:
    index = bisect_right(_COMBINING_FIRSTS, code_point) - 1
    return index >= 0 and code_point <= _COMBINING[index][1]


def wcwidth(code_point: int) -> int:
    """Return the number of cells ``code_point`` takes: 0, 1 or 2.

    NUL and combining characters take none; control characters count as one.
    """
    if code_point < 0:
        raise ValueError(f"invalid code point {code_point}")
    if code_point == 0:
        return 0
    if code_point < 32 or 0x7F <= code_point < 0xA0:
        return 1
    if _is_combining(code_point):
        return 0
    wide = code_point >= 0x1100 and (
        code_point <= 0x115F
        or code_point in (0x2329, 0x232A)
        or (0x2E80 <= code_point <= 0xA4CF and code_point != 0x303F)
        or 0xAC00 <= code_point <= 0xD7A3
        or 0xF900 <= code_point <= 0xFAFF
        or 0xFE10 <= code_point <= 0xFE19
        or 0xFE30 <= code_point <= 0xFE6F
        or 0xFF00 <= code_point <= 0xFF60
        or 0xFFE0 <= code_point <= 0xFFE6
        or 0x20000 <= code_point <= 0x2FFFD
        or 0x30000 <= code_point <= 0x3FFFD
    )
    return 2 if wide else 1


def dec_special_char(c: int) -> int | None:
    """Return the CP437 glyph for byte ``c`` in the DEC special graphics set, or None."""
    return _DEC_SPECIAL.get(c)


def color256(index: int) -> int:
    """Return the 0xRRGGBB value of xterm palette entry ``index`` (16 to 255)."""
    if not 16 <= index <= 255:
        raise ValueError(f"palette index {index} is outside 16..255")
    return _PALETTE[index - 16]
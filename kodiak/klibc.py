"""Small string and character helpers used by the kernel runtime.

Strings follow C conventions: an embedded NUL ends the string.
"""

from __future__ import annotations

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_ULONG_MASK = 2**64 - 1
_SPACE_CHARS = frozenset(" \t\n\v\f\r")


def _terminated(text: str) -> str:
    """Return ``text`` cut at its first NUL character."""
    return text.split("\0", 1)[0]


def memcmp(s1: bytes, s2: bytes, n: int) -> bool:
    """Return True when the first ``n`` bytes of both buffers are equal."""
    if n < 0:
        raise ValueError("n must not be negative")
    if len(s1) < n or len(s2) < n:
        raise ValueError("buffers are shorter than n")
    return bytes(s1[:n]) == bytes(s2[:n])


def strcmp(s1: str, s2: str) -> int:
    """Return 0 when the strings are equal, 1 otherwise."""
    first = _terminated(s1) + "\0"
    second = _terminated(s2) + "\0"
    for c1, c2 in zip(first, second):
        if c1 != c2:
            return 1
        if c2 == "\0":
            return 0
    return 1


def strncmp(s1: str, s2: str, n: int) -> int:
    """Compare at most ``n`` characters; return the difference at the first mismatch."""
    a = _terminated(s1)
    b = _terminated(s2)
    for i in range(max(n, 0)):
        c1 = ord(a[i]) if i < len(a) else 0
        c2 = ord(b[i]) if i < len(b) else 0
        if c1 != c2:
            return c1 - c2
        if c1 == 0:
            break
    return 0


def isspace(c: str) -> bool:
    """Return True for space, tab, newline, vertical tab, form feed or carriage return."""
    return c in _SPACE_CHARS and len(c) == 1


def isalpha(c: str) -> bool:
    """Return True for an ASCII letter."""
    return len(c) == 1 and ("A" <= c <= "Z" or "a" <= c <= "z")


def upper(c: str) -> str:
    """Upper-case an ASCII lower-case letter; leave anything else alone."""
    if len(c) == 1 and "a" <= c <= "z":
        return chr(ord(c) - 32)
    return c


def lower(c: str) -> str:
    """Lower-case an ASCII upper-case letter; leave anything else alone."""
    if len(c) == 1 and "A" <= c <= "Z":
        return chr(ord(c) + 32)
    return c


def itoa(value: int, base: str) -> str:
    """Format a C ``int``.

    ``base`` is the conversion letter: ``'d'`` gives signed decimal, ``'x'``
    lower-case hexadecimal and anything else unsigned decimal.  Negative
    values in the unsigned forms wrap to 64 bits.
    """
    if not _INT_MIN <= value <= _INT_MAX:
        raise OverflowError(f"{value} does not fit in a C int")

    prefix = ""
    if base == "d" and value < 0:
        prefix = "-"
        magnitude = -value
    else:
        magnitude = value & _ULONG_MASK

    divisor = 16 if base == "x" else 10
    digits = []
    while True:
        magnitude, remainder = divmod(magnitude, divisor)
        digits.append("0123456789abcdef"[remainder])
        if magnitude == 0:
            break
    return prefix + "".join(reversed(digits))


def strstr(haystack: str, needle: str) -> int | None:
    """Return the index of the first occurrence of ``needle``, or None."""
    h = _terminated(haystack)
    n = _terminated(needle)
    index = h.find(n)
    return None if index < 0 else index
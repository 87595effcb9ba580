"""A VT100/Linux-console style terminal emulator core.

The terminal parses a byte stream and drives a :class:`~kodiak.backend.Backend`,
which owns the character grid.  Escape sequences, control characters,
UTF-8 decoding and character-set switching are handled here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from enum import IntEnum, IntFlag
from typing import Any

from kodiak.backend import Backend
from kodiak.charmap import dec_special_char, unicode_to_cp437, wcwidth
from kodiak.sgr import TextAttributes, apply_sgr

MAX_ESC_VALUES = 16
_U32_MASK = 0xFFFFFFFF
_REPLACEMENT_GLYPH = 0xFE
_SPACE = 0x20
_ESC = 0x1B


class CallbackType(IntEnum):
    """Events the terminal reports to its client."""

    DEC = 10
    BELL = 20
    PRIVATE_ID = 30
    STATUS_REPORT = 40
    POS_REPORT = 50
    KBD_LEDS = 60
    MODE = 70
    LINUX = 80


class OobOutput(IntFlag):
    """Output post-processing flags, named after their termios counterparts."""

    OCRNL = 1 << 0
    OFDEL = 1 << 1
    OFILL = 1 << 2
    OLCUC = 1 << 3
    ONLCR = 1 << 4
    ONLRET = 1 << 5
    ONOCR = 1 << 6
    OPOST = 1 << 7


class Charset(IntEnum):
    """Character sets that G0 and G1 can designate."""

    DEFAULT = 0
    DEC_SPECIAL = 1


Callback = Callable[["Terminal", CallbackType, Any, Any, Any], Any]


class Terminal:
    """Parses terminal output and draws it on a backend.

    ``callback`` is called as ``callback(terminal, kind, a, b, c)`` for
    events the terminal cannot handle by itself, such as the bell or a
    cursor position report.
    """

    def __init__(self, backend: Backend, callback: Callback | None = None) -> None:
        self.backend = backend
        self.callback = callback
        self._saved_attrs = TextAttributes()
        self._saved_charset = 0
        self.reinit()

    # -- shared state with the backend -------------------------------------

    @property
    def rows(self) -> int:
        return self.backend.rows

    @property
    def cols(self) -> int:
        return self.backend.cols

    @property
    def scroll_enabled(self) -> bool:
        return self.backend.scroll_enabled

    @scroll_enabled.setter
    def scroll_enabled(self, value: bool) -> None:
        self.backend.scroll_enabled = value

    @property
    def scroll_top_margin(self) -> int:
        return self.backend.scroll_top_margin

    @scroll_top_margin.setter
    def scroll_top_margin(self, value: int) -> None:
        self.backend.scroll_top_margin = value

    @property
    def scroll_bottom_margin(self) -> int:
        return self.backend.scroll_bottom_margin

    @scroll_bottom_margin.setter
    def scroll_bottom_margin(self, value: int) -> None:
        self.backend.scroll_bottom_margin = value

    # -- public interface ----------------------------------------------------

    def reinit(self) -> None:
        """Reset the parser and modes to their power-on state."""
        self.tab_size = 8
        self.autoflush = True
        self.cursor_enabled = True
        self.scroll_enabled = True
        self.control_sequence = False
        self.escape = False
        self.osc = False
        self.osc_escape = False
        self.rrr = False
        self.discard_next = False
        self.dec_private = False
        self.insert_mode = False
        self.attrs = TextAttributes()
        self.code_point = 0
        self.unicode_remaining = 0
        self.g_select = 0
        self.charsets = [Charset.DEFAULT, Charset.DEC_SPECIAL]
        self.current_charset = 0
        self.escape_offset = 0
        self.esc_values = [0] * MAX_ESC_VALUES
        self.esc_values_i = 0
        self.saved_cursor = (0, 0)
        self.scroll_top_margin = 0
        self.scroll_bottom_margin = self.rows
        self.oob_output = OobOutput.ONLCR

    def write(self, data: bytes | bytearray | memoryview | str) -> None:
        """Feed output to the terminal; text is encoded as UTF-8."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        for byte in bytes(data):
            self._putchar(byte)
        if self.autoflush:
            self.backend.double_buffer_flush()

    def flush(self) -> None:
        """Make everything drawn so far visible."""
        self.backend.double_buffer_flush()

    def full_refresh(self) -> None:
        """Redraw the whole screen."""
        self.backend.full_refresh()

    def deinit(self) -> None:
        """Shut the backend down."""
        self.backend.deinit()

    def dimensions(self) -> tuple[int, int]:
        """Return the screen size as ``(cols, rows)``."""
        return self.cols, self.rows

    # -- helpers -------------------------------------------------------------

    def _notify(self, kind: CallbackType, a: Any = 0, b: Any = 0, c: Any = 0) -> None:
        if self.callback is not None:
            self.callback(self, kind, a, b, c)

    def _params(self) -> tuple[int, ...]:
        return tuple(self.esc_values[: self.esc_values_i])

    def _save_state(self) -> None:
        self.backend.save_state()
        self._saved_attrs = replace(self.attrs)
        self._saved_charset = self.current_charset

    def _restore_state(self) -> None:
        self.attrs = replace(self._saved_attrs)
        self.current_charset = self._saved_charset
        self.backend.restore_state()

    # -- byte-level parsing --------------------------------------------------

    def _putchar(self, c: int) -> None:
        backend = self.backend

        if self.discard_next or c in (0x18, 0x1A):
            self.discard_next = False
            self.escape = False
            self.control_sequence = False
            self.unicode_remaining = 0
            self.osc = False
            self.osc_escape = False
            self.g_select = 0
            return

        if self.unicode_remaining:
            if (c & 0xC0) == 0x80:
                self.unicode_remaining -= 1
                self.code_point |= (c & 0x3F) << (6 * self.unicode_remaining)
                if self.unicode_remaining:
                    return
                self._put_code_point(self.code_point)
                return
            self.unicode_remaining = 0

        if 0xC0 <= c <= 0xF7:
            if c <= 0xDF:
                self.unicode_remaining = 1
                self.code_point = (c & 0x1F) << 6
            elif c <= 0xEF:
                self.unicode_remaining = 2
                self.code_point = (c & 0x0F) << 12
            else:
                self.unicode_remaining = 3
                self.code_point = (c & 0x07) << 18
            return

        if self.escape:
            self._escape_parse(c)
            return

        if self.g_select:
            self.g_select -= 1
            if c == ord("B"):
                self.charsets[self.g_select] = Charset.DEFAULT
            elif c == ord("0"):
                self.charsets[self.g_select] = Charset.DEC_SPECIAL
            self.g_select = 0
            return

        x, y = backend.get_cursor_pos()

        if c in (0x00, 0x7F):
            return
        if c == _ESC:
            self.escape_offset = 0
            self.escape = True
            return
        if c == 0x09:
            if x // self.tab_size + 1 >= self.cols:
                backend.set_cursor_pos(self.cols - 1, y)
            else:
                backend.set_cursor_pos((x // self.tab_size + 1) * self.tab_size, y)
            return
        if c in (0x0A, 0x0B, 0x0C):
            new_x = 0 if self.oob_output & OobOutput.ONLCR else x
            if y == self.scroll_bottom_margin - 1:
                backend.scroll()
                backend.set_cursor_pos(new_x, y)
            else:
                backend.set_cursor_pos(new_x, y + 1)
            return
        if c == 0x08:
            backend.set_cursor_pos(x - 1, y)
            return
        if c == 0x0D:
            backend.set_cursor_pos(0, y)
            return
        if c == 0x07:
            self._notify(CallbackType.BELL)
            return
        if c == 14:
            self.current_charset = 1
            return
        if c == 15:
            self.current_charset = 0
            return

        if self.insert_mode:
            for i in range(self.cols - 1, x - 1, -1):
                backend.move_character(i + 1, y, i, y)

        if self.charsets[self.current_charset] == Charset.DEC_SPECIAL:
            glyph = dec_special_char(c)
            if glyph is not None:
                backend.raw_putchar(glyph)
                return

        backend.raw_putchar(c if 0x20 <= c <= 0x7E else _REPLACEMENT_GLYPH)

    def _put_code_point(self, code_point: int) -> None:
        glyph = unicode_to_cp437(code_point)
        if glyph is not None:
            self.backend.raw_putchar(glyph)
            return
        width = wcwidth(code_point)
        if width > 0:
            self.backend.raw_putchar(_REPLACEMENT_GLYPH)
        for _ in range(1, width):
            self.backend.raw_putchar(_SPACE)

    def _escape_parse(self, c: int) -> None:
        self.escape_offset += 1

        if self.osc:
            self._osc_parse(c)
            return
        if self.control_sequence:
            self._control_sequence_parse(c)
            return

        backend = self.backend
        x, y = backend.get_cursor_pos()
        ch = chr(c)

        if ch == "]":
            self.osc_escape = False
            self.osc = True
            return
        if ch == "[":
            self.esc_values = [0] * MAX_ESC_VALUES
            self.esc_values_i = 0
            self.rrr = False
            self.control_sequence = True
            return

        if ch == "7":
            self._save_state()
        elif ch == "8":
            self._restore_state()
        elif ch == "c":
            self.reinit()
            backend.clear(True)
        elif ch == "D":
            if y == self.scroll_bottom_margin - 1:
                backend.scroll()
                backend.set_cursor_pos(x, y)
            else:
                backend.set_cursor_pos(x, y + 1)
        elif ch == "E":
            if y == self.scroll_bottom_margin - 1:
                backend.scroll()
                backend.set_cursor_pos(0, y)
            else:
                backend.set_cursor_pos(0, y + 1)
        elif ch == "M":
            if y == self.scroll_top_margin:
                backend.revscroll()
                backend.set_cursor_pos(0, y)
            else:
                backend.set_cursor_pos(0, y - 1)
        elif ch == "Z":
            self._notify(CallbackType.PRIVATE_ID)
        elif ch in "()":
            self.g_select = c - ord("'")

        self.escape = False

    def _osc_parse(self, c: int) -> None:
        if not (self.osc_escape and c == ord("\\")):
            self.osc_escape = False
            if c == _ESC:
                self.osc_escape = True
                return
        self.osc_escape = False
        self.osc = False
        self.escape = False

    def _end_control_sequence(self) -> None:
        self.control_sequence = False
        self.escape = False

    def _control_sequence_parse(self, c: int) -> None:
        ch = chr(c)

        if self.escape_offset == 2:
            if ch == "[":
                self.discard_next = True
                self._end_control_sequence()
                return
            if ch == "?":
                self.dec_private = True
                return

        if "0" <= ch <= "9":
            if self.esc_values_i == MAX_ESC_VALUES:
                return
            self.rrr = True
            i = self.esc_values_i
            self.esc_values[i] = (self.esc_values[i] * 10 + (c - ord("0"))) & _U32_MASK
            return

        if self.rrr:
            self.esc_values_i += 1
            self.rrr = False
            if ch == ";":
                return
        elif ch == ";":
            if self.esc_values_i == MAX_ESC_VALUES:
                return
            self.esc_values[self.esc_values_i] = 0
            self.esc_values_i += 1
            return

        default = 0 if ch in "JKq" else 1
        for i in range(self.esc_values_i, MAX_ESC_VALUES):
            self.esc_values[i] = default

        if self.dec_private:
            self._dec_private_parse(c)
            self._end_control_sequence()
            return

        saved_scroll = self.scroll_enabled
        self.scroll_enabled = False
        try:
            self._run_control_sequence(ch)
        finally:
            self.scroll_enabled = saved_scroll
        self._end_control_sequence()

    def _run_control_sequence(self, ch: str) -> None:
        backend = self.backend
        values = self.esc_values
        rows, cols = self.rows, self.cols
        x, y = backend.get_cursor_pos()

        if ch in "FA":
            if ch == "F":
                x = 0
            values[0] = min(values[0], y)
            dest_y = y - values[0]
            top, bottom = self.scroll_top_margin, self.scroll_bottom_margin
            in_region = dest_y <= top <= y or dest_y <= bottom <= y
            if in_region and dest_y < top:
                dest_y = top
            backend.set_cursor_pos(x, dest_y)
        elif ch in "EeB":
            if ch == "E":
                x = 0
            if y + values[0] > rows - 1:
                values[0] = (rows - 1) - y
            dest_y = y + values[0]
            top, bottom = self.scroll_top_margin, self.scroll_bottom_margin
            in_region = y <= top <= dest_y or y <= bottom <= dest_y
            if in_region and dest_y >= bottom:
                dest_y = bottom - 1
            backend.set_cursor_pos(x, dest_y)
        elif ch in "aC":
            if x + values[0] > cols - 1:
                values[0] = (cols - 1) - x
            backend.set_cursor_pos(x + values[0], y)
        elif ch == "D":
            values[0] = min(values[0], x)
            backend.set_cursor_pos(x - values[0], y)
        elif ch == "c":
            self._notify(CallbackType.PRIVATE_ID)
        elif ch == "d":
            row = values[0] - 1
            if row < 0 or row >= rows:
                row = rows - 1
            backend.set_cursor_pos(x, row)
        elif ch in "G`":
            col = values[0] - 1
            if col < 0 or col >= cols:
                col = cols - 1
            backend.set_cursor_pos(col, y)
        elif ch in "Hf":
            row = max(values[0] - 1, 0)
            col = max(values[1] - 1, 0)
            backend.set_cursor_pos(min(col, cols - 1), min(row, rows - 1))
        elif ch == "M":
            for _ in range(min(values[0], rows)):
                backend.scroll()
        elif ch == "L":
            old_top = self.scroll_top_margin
            if y < self.scroll_bottom_margin:
                self.scroll_top_margin = y
                try:
                    for _ in range(min(values[0], rows)):
                        backend.revscroll()
                finally:
                    self.scroll_top_margin = old_top
        elif ch == "n":
            if values[0] == 5:
                self._notify(CallbackType.STATUS_REPORT)
            elif values[0] == 6:
                self._notify(CallbackType.POS_REPORT, x + 1, y + 1, 0)
        elif ch == "q":
            self._notify(CallbackType.KBD_LEDS, values[0], 0, 0)
        elif ch == "J":
            self._erase_display(values[0], x, y)
        elif ch == "@":
            for i in range(cols - 1, x - 1, -1):
                backend.move_character(i + values[0], y, i, y)
                backend.set_cursor_pos(i, y)
                backend.raw_putchar(_SPACE)
            backend.set_cursor_pos(x, y)
        elif ch in "PX":
            if ch == "P":
                for i in range(x + values[0], cols):
                    backend.move_character(i - values[0], y, i, y)
                backend.set_cursor_pos(cols - values[0], y)
            for _ in range(min(values[0], cols)):
                backend.raw_putchar(_SPACE)
            backend.set_cursor_pos(x, y)
        elif ch == "m":
            apply_sgr(self.attrs, backend, self._params())
        elif ch == "s":
            self.saved_cursor = backend.get_cursor_pos()
        elif ch == "u":
            backend.set_cursor_pos(*self.saved_cursor)
        elif ch == "K":
            self._erase_line(values[0], x, y)
        elif ch == "r":
            self._set_scroll_region()
        elif ch in "lh":
            self._mode_toggle(ord(ch))
        elif ch == "]":
            if self.esc_values_i:
                self._notify(CallbackType.LINUX, self.esc_values_i, self._params(), 0)

    def _erase_display(self, mode: int, x: int, y: int) -> None:
        backend = self.backend
        rows, cols = self.rows, self.cols
        if mode == 0:
            to_clear = (rows - (y + 1)) * cols + (cols - (x + 1)) + 1
            for _ in range(to_clear):
                backend.raw_putchar(_SPACE)
            backend.set_cursor_pos(x, y)
        elif mode == 1:
            backend.set_cursor_pos(0, 0)
            for yc in range(rows):
                for xc in range(cols):
                    backend.raw_putchar(_SPACE)
                    if xc == x and yc == y:
                        backend.set_cursor_pos(x, y)
                        return
        elif mode in (2, 3):
            backend.clear(False)

    def _erase_line(self, mode: int, x: int, y: int) -> None:
        backend = self.backend
        if mode == 0:
            for _ in range(x, self.cols):
                backend.raw_putchar(_SPACE)
            backend.set_cursor_pos(x, y)
        elif mode == 1:
            backend.set_cursor_pos(0, y)
            for _ in range(x):
                backend.raw_putchar(_SPACE)
        elif mode == 2:
            backend.set_cursor_pos(0, y)
            for _ in range(self.cols):
                backend.raw_putchar(_SPACE)
            backend.set_cursor_pos(x, y)

    def _set_scroll_region(self) -> None:
        values = self.esc_values
        rows = self.rows
        if values[0] == 0:
            values[0] = 1
        if values[1] == 0:
            values[1] = 1
        top, bottom = 0, rows
        if self.esc_values_i > 0:
            top = values[0] - 1
        if self.esc_values_i > 1:
            bottom = values[1]
        if top >= rows or bottom > rows or top >= bottom - 1:
            top, bottom = 0, rows
        self.scroll_top_margin = top
        self.scroll_bottom_margin = bottom
        self.backend.set_cursor_pos(0, 0)

    def _dec_private_parse(self, c: int) -> None:
        self.dec_private = False
        if self.esc_values_i == 0:
            return
        if c == ord("h"):
            enable = True
        elif c == ord("l"):
            enable = False
        else:
            return
        if self.esc_values[0] == 25:
            self.cursor_enabled = enable
            return
        self._notify(CallbackType.DEC, self.esc_values_i, self._params(), c)

    def _mode_toggle(self, c: int) -> None:
        if self.esc_values_i == 0:
            return
        enable = c == ord("h")
        if self.esc_values[0] == 4:
            self.insert_mode = enable
            return
        self._notify(CallbackType.MODE, self.esc_values_i, self._params(), c)
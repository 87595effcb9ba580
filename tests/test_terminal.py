import pytest

from kodiak.backend import DEFAULT_FG, DEFAULT_PALETTE, Backend
from kodiak.charmap import color256, dec_special_char, unicode_to_cp437
from kodiak.terminal import CallbackType, Charset, OobOutput, Terminal


def make(rows=5, cols=10, callback=None):
    backend = Backend(rows=rows, cols=cols)
    return Terminal(backend, callback), backend


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, terminal, kind, a, b, c):
        self.calls.append((kind, a, b, c))


def text(backend):
    return [line.rstrip() for line in backend.lines()]


def test_plain_text_is_drawn_and_flushed():
    term, backend = make()
    term.write("hello")
    assert text(backend)[0] == "hello"
    assert backend.displayed_lines()[0].rstrip() == "hello"
    assert backend.get_cursor_pos() == (5, 0)


def test_no_autoflush_until_flush():
    term, backend = make()
    term.autoflush = False
    term.write("abc")
    assert backend.displayed_lines()[0].strip() == ""
    term.flush()
    assert backend.displayed_lines()[0].rstrip() == "abc"


def test_newline_returns_carriage_with_onlcr():
    term, backend = make()
    term.write("ab\ncd")
    assert text(backend)[:2] == ["ab", "cd"]


def test_newline_keeps_column_without_onlcr():
    term, backend = make()
    term.oob_output = OobOutput(0)
    term.write("ab\ncd")
    assert text(backend)[1] == "  cd"


def test_scrolls_at_bottom():
    term, backend = make(rows=3)
    term.write("a\nb\nc\nd")
    assert text(backend) == ["b", "c", "d"]


def test_cursor_position_sequence():
    term, backend = make()
    term.write("\x1b[3;4HX")
    assert backend.cell(3, 2).char == ord("X")


def test_cursor_position_is_clamped():
    term, backend = make(rows=5, cols=10)
    term.write("\x1b[99;99H")
    assert backend.get_cursor_pos() == (9, 4)


def test_cursor_movement_relative():
    term, backend = make()
    term.write("\x1b[3;4H\x1b[2A\x1b[1D")
    assert backend.get_cursor_pos() == (2, 0)


def test_erase_display():
    term, backend = make()
    term.write("abc\ndef")
    term.write("\x1b[2J")
    assert all(line == "" for line in text(backend))


def test_erase_to_end_of_line():
    term, backend = make()
    term.write("abcdef\r\x1b[2C\x1b[K")
    assert text(backend)[0] == "ab"
    assert backend.get_cursor_pos() == (2, 0)


def test_sgr_colour_and_reset():
    term, backend = make()
    term.write("\x1b[31mX\x1b[0mY")
    assert backend.cell(0, 0).fg == DEFAULT_PALETTE[1]
    assert backend.cell(1, 0).fg == DEFAULT_FG


def test_sgr_256_colour():
    term, backend = make()
    term.write("\x1b[38;5;196mZ")
    assert backend.cell(0, 0).fg == color256(196)


def test_utf8_maps_to_cp437():
    term, backend = make()
    term.write("é")
    assert backend.cell(0, 0).char == unicode_to_cp437(0xE9)


def test_unmapped_wide_character_uses_two_cells():
    term, backend = make()
    term.write("\u4e00")
    assert backend.cell(0, 0).char == 0xFE
    assert backend.cell(1, 0).char == 0x20
    assert backend.get_cursor_pos() == (2, 0)


def test_dec_special_graphics():
    term, backend = make()
    term.write("\x1b(0q")
    assert term.charsets[0] == Charset.DEC_SPECIAL
    assert backend.cell(0, 0).char == dec_special_char(ord("q"))


def test_shift_out_selects_g1():
    term, backend = make()
    term.write("\x0eq\x0fq")
    assert backend.cell(0, 0).char == dec_special_char(ord("q"))
    assert backend.cell(1, 0).char == ord("q")


def test_bell_callback():
    recorder = Recorder()
    term, _ = make(callback=recorder)
    term.write("\a")
    assert recorder.calls == [(CallbackType.BELL, 0, 0, 0)]


def test_position_report():
    recorder = Recorder()
    term, _ = make(callback=recorder)
    term.write("\x1b[2;3H\x1b[6n")
    assert recorder.calls == [(CallbackType.POS_REPORT, 3, 2, 0)]


def test_dec_private_callback_and_cursor_toggle():
    recorder = Recorder()
    term, _ = make(callback=recorder)
    term.write("\x1b[?25l")
    assert term.cursor_enabled is False
    term.write("\x1b[?1049h")
    assert recorder.calls == [(CallbackType.DEC, 1, (1049,), ord("h"))]


def test_insert_mode_shifts_text():
    term, backend = make()
    term.write("abc\r\x1b[4hX")
    assert term.insert_mode is True
    assert text(backend)[0] == "Xabc"


def test_save_and_restore_cursor():
    term, backend = make()
    term.write("\x1b[2;2H\x1b[s\x1b[5;5H\x1b[u")
    assert backend.get_cursor_pos() == (1, 1)
    term.write("\x1b7\x1b[4;4H\x1b8")
    assert backend.get_cursor_pos() == (1, 1)


def test_cancel_aborts_escape():
    term, backend = make()
    term.write("\x1b[3\x18A")
    assert text(backend)[0] == "A"
    assert term.escape is False


def test_scroll_region():
    term, backend = make(rows=5)
    term.write("\x1b[2;3r")
    assert (term.scroll_top_margin, term.scroll_bottom_margin) == (1, 3)
    term.write("\x1b[9;9r")
    assert (term.scroll_top_margin, term.scroll_bottom_margin) == (0, 5)


def test_reset_clears_screen_and_state():
    term, backend = make()
    term.write("abc\x1b[4h\x1bc")
    assert term.insert_mode is False
    assert all(line == "" for line in text(backend))
    assert backend.get_cursor_pos() == (0, 0)


def test_dimensions():
    term, _ = make(rows=7, cols=13)
    assert term.dimensions() == (13, 7)


def test_full_refresh_counts():
    term, backend = make()
    term.full_refresh()
    assert backend.refresh_count == 1


def test_deinit_closes_backend():
    term, backend = make()
    term.deinit()
    assert backend.closed is True
    with pytest.raises(RuntimeError):
        term.write("x")


def test_default_oob_output_and_callback_lookup():
    term, _ = make()
    assert term.oob_output == OobOutput.ONLCR
    assert term.oob_output == 16
    assert CallbackType(50) is CallbackType.POS_REPORT
import pytest

from kodiak.backend import Backend
from kodiak.charmap import color256
from kodiak.sgr import TextAttributes, apply_sgr

PALETTE = tuple(range(0x10, 0x18))
BRIGHT = tuple(range(0x20, 0x28))
DEF_FG, DEF_BG, DEF_FG_BRIGHT, DEF_BG_BRIGHT = 0xA1, 0xB1, 0xC1, 0xD1


@pytest.fixture
def backend():
    return Backend(
        2,
        2,
        palette=PALETTE,
        bright_palette=BRIGHT,
        default_fg=DEF_FG,
        default_bg=DEF_BG,
        default_fg_bright=DEF_FG_BRIGHT,
        default_bg_bright=DEF_BG_BRIGHT,
    )


@pytest.fixture
def attrs():
    return TextAttributes()


def test_empty_parameters_reset(attrs, backend):
    apply_sgr(attrs, backend, [1, 31, 44])
    apply_sgr(attrs, backend, [])
    assert attrs == TextAttributes()
    assert (backend.text_fg, backend.text_bg) == (DEF_FG, DEF_BG)


def test_zero_resets_reverse_video(attrs, backend):
    apply_sgr(attrs, backend, [7, 31])
    apply_sgr(attrs, backend, [0])
    assert attrs.reverse_video is False
    assert (backend.text_fg, backend.text_bg) == (DEF_FG, DEF_BG)


def test_reset_method_swaps_back(attrs, backend):
    apply_sgr(attrs, backend, [7])
    attrs.reset(backend)
    assert attrs.reverse_video is False
    assert (backend.text_fg, backend.text_bg) == (DEF_FG, DEF_BG)


def test_foreground_colour(attrs, backend):
    apply_sgr(attrs, backend, [31])
    assert backend.text_fg == PALETTE[1]
    assert attrs.current_primary == 1


def test_background_colour(attrs, backend):
    apply_sgr(attrs, backend, [44])
    assert backend.text_bg == PALETTE[4]
    assert attrs.current_bg == 4


def test_bold_makes_foreground_bright(attrs, backend):
    apply_sgr(attrs, backend, [1, 31])
    assert backend.text_fg == BRIGHT[1]


def test_bold_without_colour_uses_bright_default(attrs, backend):
    apply_sgr(attrs, backend, [1])
    assert backend.text_fg == DEF_FG_BRIGHT
    assert attrs.bold is True


def test_bold_off_restores_normal_colour(attrs, backend):
    apply_sgr(attrs, backend, [1, 31, 22])
    assert backend.text_fg == PALETTE[1]
    assert attrs.bold is False


def test_blink_brightens_background(attrs, backend):
    apply_sgr(attrs, backend, [5])
    assert backend.text_bg == DEF_BG_BRIGHT
    apply_sgr(attrs, backend, [44])
    assert backend.text_bg == BRIGHT[4]
    apply_sgr(attrs, backend, [25])
    assert backend.text_bg == PALETTE[4]


def test_bright_colours(attrs, backend):
    apply_sgr(attrs, backend, [95, 102])
    assert (backend.text_fg, backend.text_bg) == (BRIGHT[5], BRIGHT[2])


def test_reverse_video_swaps_and_unswaps(attrs, backend):
    apply_sgr(attrs, backend, [7])
    assert (backend.text_fg, backend.text_bg) == (DEF_BG, DEF_FG)
    apply_sgr(attrs, backend, [7])
    assert (backend.text_fg, backend.text_bg) == (DEF_BG, DEF_FG)
    apply_sgr(attrs, backend, [27])
    assert (backend.text_fg, backend.text_bg) == (DEF_FG, DEF_BG)


def test_reverse_video_routes_colours(attrs, backend):
    apply_sgr(attrs, backend, [7, 31, 44])
    assert backend.text_bg == PALETTE[1]
    assert backend.text_fg == PALETTE[4]


def test_default_foreground_and_background(attrs, backend):
    apply_sgr(attrs, backend, [31, 44, 39, 49])
    assert (backend.text_fg, backend.text_bg) == (DEF_FG, DEF_BG)
    assert attrs.current_primary is None and attrs.current_bg is None


def test_default_foreground_under_reverse(attrs, backend):
    apply_sgr(attrs, backend, [7, 31, 39])
    assert backend.text_bg == DEF_FG


def test_truecolour(attrs, backend):
    apply_sgr(attrs, backend, [38, 2, 0x12, 0x34, 0x56])
    assert backend.text_fg == 0x123456


def test_palette_256_low_entries(attrs, backend):
    apply_sgr(attrs, backend, [38, 5, 3, 48, 5, 10])
    assert backend.text_fg == PALETTE[3]
    assert backend.text_bg == BRIGHT[10 - 8]


def test_palette_256_cube(attrs, backend):
    apply_sgr(attrs, backend, [48, 5, 196])
    assert backend.text_bg == color256(196)


def test_palette_256_out_of_range_ignored(attrs, backend):
    apply_sgr(attrs, backend, [38, 5, 300])
    assert backend.text_fg == DEF_FG


def test_truncated_truecolour_ignored(attrs, backend):
    apply_sgr(attrs, backend, [38, 2, 1])
    assert backend.text_fg == DEF_FG


def test_unknown_extended_mode_continues(attrs, backend):
    apply_sgr(attrs, backend, [38, 9, 31])
    assert backend.text_fg == PALETTE[1]


def test_extended_colour_without_mode_stops(attrs, backend):
    apply_sgr(attrs, backend, [38])
    assert backend.text_fg == DEF_FG
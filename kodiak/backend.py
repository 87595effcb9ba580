"""An in-memory character-cell display for the terminal to draw on.

The terminal keeps its escape-sequence state and leaves the drawing to a
backend.  This one keeps a grid of cells with a back buffer that is drawn
into and a front buffer that a flush makes visible.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

PALETTE_SIZE = 8

DEFAULT_PALETTE = (
    0x000000, 0xAA0000, 0x00AA00, 0xAA5500,
    0x0000AA, 0xAA00AA, 0x00AAAA, 0xAAAAAA,
)
DEFAULT_BRIGHT_PALETTE = (
    0x555555, 0xFF5555, 0x55FF55, 0xFFFF55,
    0x5555FF, 0xFF55FF, 0x55FFFF, 0xFFFFFF,
)
DEFAULT_FG = 0xEEE8D5
DEFAULT_BG = 0x124560
DEFAULT_FG_BRIGHT = 0xFFFFFF
DEFAULT_BG_BRIGHT = 0x124560

_SPACE = 0x20


@dataclass(frozen=True)
class Cell:
    """One character cell: a CP437 glyph and its colours as 0xRRGGBB."""

    char: int
    fg: int
    bg: int


class Backend:
    """A grid of cells with a cursor, colours and a scroll region."""

    def __init__(
        self,
        rows: int = 25,
        cols: int = 80,
        *,
        palette: Sequence[int] = DEFAULT_PALETTE,
        bright_palette: Sequence[int] = DEFAULT_BRIGHT_PALETTE,
        default_fg: int = DEFAULT_FG,
        default_bg: int = DEFAULT_BG,
        default_fg_bright: int = DEFAULT_FG_BRIGHT,
        default_bg_bright: int = DEFAULT_BG_BRIGHT,
    ) -> None:
        if rows <= 0 or cols <= 0:
            raise ValueError("a display needs at least one row and one column")
        if len(palette) != PALETTE_SIZE or len(bright_palette) != PALETTE_SIZE:
            raise ValueError(f"palettes must hold exactly {PALETTE_SIZE} colours")
        self.rows = rows
        self.cols = cols
        self.palette = tuple(palette)
        self.bright_palette = tuple(bright_palette)
        self.default_fg = default_fg
        self.default_bg = default_bg
        self.default_fg_bright = default_fg_bright
        self.default_bg_bright = default_bg_bright

        self.text_fg = default_fg
        self.text_bg = default_bg
        self.cursor_x = 0
        self.cursor_y = 0
        self.scroll_enabled = True
        self.scroll_top_margin = 0
        self.scroll_bottom_margin = rows
        self.closed = False
        self.flush_count = 0
        self.refresh_count = 0

        self._grid = [self._blank_row() for _ in range(rows)]
        self._front = [row[:] for row in self._grid]
        self._saved = (self.text_fg, self.text_bg, self.cursor_x, self.cursor_y)

    # -- helpers ---------------------------------------------------------

    def _require_open(self) -> None:
        if self.closed:
            raise RuntimeError("the display has been shut down")

    def _blank_row(self) -> list[Cell]:
        return [Cell(_SPACE, self.text_fg, self.text_bg)] * self.cols

    def _scroll_region(self) -> tuple[int, int]:
        top, bottom = self.scroll_top_margin, self.scroll_bottom_margin
        if not 0 <= top < bottom <= self.rows:
            raise ValueError(f"invalid scroll region {top}..{bottom}")
        return top, bottom

    @staticmethod
    def _row_text(row: list[Cell]) -> str:
        return bytes(cell.char for cell in row).decode("cp437")

    @staticmethod
    def _palette_colour(palette: tuple[int, ...], index: int) -> int:
        if not 0 <= index < PALETTE_SIZE:
            raise IndexError(f"palette index {index} out of range")
        return palette[index]

    # -- inspection ------------------------------------------------------

    def cell(self, x: int, y: int) -> Cell:
        """Return the cell at column ``x``, row ``y`` of the back buffer."""
        self._require_open()
        return self._grid[y][x]

    def lines(self) -> list[str]:
        """Return the back buffer as text, one string per row."""
        return [self._row_text(row) for row in self._grid]

    def displayed_lines(self) -> list[str]:
        """Return what the last flush made visible, one string per row."""
        return [self._row_text(row) for row in self._front]

    # -- drawing ---------------------------------------------------------

    def raw_putchar(self, c: int) -> None:
        """Draw glyph ``c`` at the cursor and advance, wrapping and scrolling."""
        self._require_open()
        if not 0 <= c <= 0xFF:
            raise ValueError(f"glyph {c} is not a byte")
        if self.cursor_x >= self.cols:
            if self.scroll_enabled or self.cursor_y < self.scroll_bottom_margin - 1:
                self.cursor_x = 0
                self.cursor_y += 1
                if self.cursor_y == self.scroll_bottom_margin:
                    self.cursor_y -= 1
                    self.scroll()
                self.cursor_y = min(self.cursor_y, self.rows - 1)
            else:
                self.cursor_x = self.cols - 1
        self._grid[self.cursor_y][self.cursor_x] = Cell(c, self.text_fg, self.text_bg)
        self.cursor_x += 1

    def clear(self, move: bool) -> None:
        """Blank every cell in the current background; home the cursor if ``move``."""
        self._require_open()
        self._grid = [self._blank_row() for _ in range(self.rows)]
        if move:
            self.cursor_x = 0
            self.cursor_y = 0

    def set_cursor_pos(self, x: int, y: int) -> None:
        """Move the cursor, clamping it to the grid."""
        self.cursor_x = min(max(x, 0), self.cols - 1)
        self.cursor_y = min(max(y, 0), self.rows - 1)

    def get_cursor_pos(self) -> tuple[int, int]:
        """Return the cursor as ``(x, y)`` inside the grid."""
        return min(self.cursor_x, self.cols - 1), min(self.cursor_y, self.rows - 1)

    def set_text_fg(self, fg: int) -> None:
        """Use palette colour ``fg`` for text."""
        self.text_fg = self._palette_colour(self.palette, fg)

    def set_text_bg(self, bg: int) -> None:
        """Use palette colour ``bg`` for the background."""
        self.text_bg = self._palette_colour(self.palette, bg)

    def set_text_fg_bright(self, fg: int) -> None:
        """Use bright palette colour ``fg`` for text."""
        self.text_fg = self._palette_colour(self.bright_palette, fg)

    def set_text_bg_bright(self, bg: int) -> None:
        """Use bright palette colour ``bg`` for the background."""
        self.text_bg = self._palette_colour(self.bright_palette, bg)

    def set_text_fg_rgb(self, fg: int) -> None:
        """Use the 0xRRGGBB colour ``fg`` for text."""
        self.text_fg = fg & 0xFFFFFF

    def set_text_bg_rgb(self, bg: int) -> None:
        """Use the 0xRRGGBB colour ``bg`` for the background."""
        self.text_bg = bg & 0xFFFFFF

    def set_text_fg_default(self) -> None:
        """Use the default text colour."""
        self.text_fg = self.default_fg

    def set_text_bg_default(self) -> None:
        """Use the default background colour."""
        self.text_bg = self.default_bg

    def set_text_fg_default_bright(self) -> None:
        """Use the bright default text colour."""
        self.text_fg = self.default_fg_bright

    def set_text_bg_default_bright(self) -> None:
        """Use the bright default background colour."""
        self.text_bg = self.default_bg_bright

    def move_character(self, new_x: int, new_y: int, old_x: int, old_y: int) -> None:
        """Copy one cell; positions outside the grid are ignored."""
        self._require_open()
        inside = (
            0 <= new_x < self.cols
            and 0 <= old_x < self.cols
            and 0 <= new_y < self.rows
            and 0 <= old_y < self.rows
        )
        if inside:
            self._grid[new_y][new_x] = self._grid[old_y][old_x]

    def scroll(self) -> None:
        """Move the scroll region up one row and blank its last row."""
        self._require_open()
        top, bottom = self._scroll_region()
        self._grid.pop(top)
        self._grid.insert(bottom - 1, self._blank_row())

    def revscroll(self) -> None:
        """Move the scroll region down one row and blank its first row."""
        self._require_open()
        top, bottom = self._scroll_region()
        self._grid.pop(bottom - 1)
        self._grid.insert(top, self._blank_row())

    def swap_palette(self) -> None:
        """Exchange the text and background colours."""
        self.text_fg, self.text_bg = self.text_bg, self.text_fg

    def save_state(self) -> None:
        """Remember the colours and the cursor."""
        self._saved = (self.text_fg, self.text_bg, self.cursor_x, self.cursor_y)

    def restore_state(self) -> None:
        """Return to the colours and cursor last saved."""
        self.text_fg, self.text_bg, self.cursor_x, self.cursor_y = self._saved

    def double_buffer_flush(self) -> None:
        """Make the back buffer visible."""
        self._require_open()
        self._front = [row[:] for row in self._grid]
        self.flush_count += 1

    def full_refresh(self) -> None:
        """Redraw the whole visible screen from the back buffer."""
        self._require_open()
        self._front = [row[:] for row in self._grid]
        self.refresh_count += 1

    def deinit(self) -> None:
        """Release the buffers; drawing afterwards raises RuntimeError."""
        self._grid = []
        self._front = []
        self.closed = True
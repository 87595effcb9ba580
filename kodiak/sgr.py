"""Select Graphic Rendition: the ``ESC [ ... m`` colour and attribute codes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from kodiak.backend import Backend
from kodiak.charmap import color256

_U32_MASK = 0xFFFFFFFF


@dataclass
class TextAttributes:
    """Rendition state the terminal keeps between sequences."""

    bold: bool = False
    bg_bold: bool = False
    reverse_video: bool = False
    current_primary: int | None = None
    current_bg: int | None = None

    def reset(self, backend: Backend) -> None:
        """Return to plain text in the default colours."""
        if self.reverse_video:
            self.reverse_video = False
            backend.swap_palette()
        self.bold = False
        self.bg_bold = False
        self.current_primary = None
        self.current_bg = None
        backend.set_text_bg_default()
        backend.set_text_fg_default()


def _set_fg(attrs: TextAttributes, backend: Backend, colour: int) -> None:
    if (attrs.bold and not attrs.reverse_video) or (attrs.bg_bold and attrs.reverse_video):
        backend.set_text_fg_bright(colour)
    else:
        backend.set_text_fg(colour)


def _set_bg(attrs: TextAttributes, backend: Backend, colour: int) -> None:
    if (attrs.bold and attrs.reverse_video) or (attrs.bg_bold and not attrs.reverse_video):
        backend.set_text_bg_bright(colour)
    else:
        backend.set_text_bg(colour)


def _bold_on(attrs: TextAttributes, backend: Backend) -> None:
    attrs.bold = True
    reverse = attrs.reverse_video
    if attrs.current_primary is not None:
        if reverse:
            backend.set_text_bg_bright(attrs.current_primary)
        else:
            backend.set_text_fg_bright(attrs.current_primary)
    elif reverse:
        backend.set_text_bg_default_bright()
    else:
        backend.set_text_fg_default_bright()


def _bg_bold_on(attrs: TextAttributes, backend: Backend) -> None:
    attrs.bg_bold = True
    reverse = attrs.reverse_video
    if attrs.current_bg is not None:
        if reverse:
            backend.set_text_fg_bright(attrs.current_bg)
        else:
            backend.set_text_bg_bright(attrs.current_bg)
    elif reverse:
        backend.set_text_fg_default_bright()
    else:
        backend.set_text_bg_default_bright()


def _bold_off(attrs: TextAttributes, backend: Backend) -> None:
    attrs.bold = False
    reverse = attrs.reverse_video
    if attrs.current_primary is not None:
        if reverse:
            backend.set_text_bg(attrs.current_primary)
        else:
            backend.set_text_fg(attrs.current_primary)
    elif reverse:
        backend.set_text_bg_default()
    else:
        backend.set_text_fg_default()


def _bg_bold_off(attrs: TextAttributes, backend: Backend) -> None:
    attrs.bg_bold = False
    reverse = attrs.reverse_video
    if attrs.current_bg is not None:
        if reverse:
            backend.set_text_fg(attrs.current_bg)
        else:
            backend.set_text_bg(attrs.current_bg)
    elif reverse:
        backend.set_text_fg_default()
    else:
        backend.set_text_bg_default()


def _default_fg(attrs: TextAttributes, backend: Backend) -> None:
    attrs.current_primary = None
    if attrs.reverse_video:
        backend.swap_palette()
    if attrs.bold:
        backend.set_text_fg_default_bright()
    else:
        backend.set_text_fg_default()
    if attrs.reverse_video:
        backend.swap_palette()


def _default_bg(attrs: TextAttributes, backend: Backend) -> None:
    attrs.current_bg = None
    if attrs.reverse_video:
        backend.swap_palette()
    if attrs.bg_bold:
        backend.set_text_bg_default_bright()
    else:
        backend.set_text_bg_default()
    if attrs.reverse_video:
        backend.swap_palette()


def apply_sgr(attrs: TextAttributes, backend: Backend, values: Sequence[int]) -> None:
    """Apply the parameters of one SGR sequence; no parameters means reset."""
    count = len(values)
    if count == 0:
        attrs.reset(backend)
        return

    i = 0
    while i < count:
        value = values[i]
        if value == 0:
            attrs.reset(backend)
        elif value == 1:
            _bold_on(attrs, backend)
        elif value == 5:
            _bg_bold_on(attrs, backend)
        elif value == 22:
            _bold_off(attrs, backend)
        elif value == 25:
            _bg_bold_off(attrs, backend)
        elif 30 <= value <= 37:
            colour = value - 30
            attrs.current_primary = colour
            if attrs.reverse_video:
                _set_bg(attrs, backend, colour)
            else:
                _set_fg(attrs, backend, colour)
        elif 40 <= value <= 47:
            colour = value - 40
            attrs.current_bg = colour
            if attrs.reverse_video:
                _set_fg(attrs, backend, colour)
            else:
                _set_bg(attrs, backend, colour)
        elif 90 <= value <= 97:
            colour = value - 90
            attrs.current_primary = colour
            if attrs.reverse_video:
                backend.set_text_bg_bright(colour)
            else:
                backend.set_text_fg_bright(colour)
        elif 100 <= value <= 107:
            colour = value - 100
            attrs.current_bg = colour
            if attrs.reverse_video:
                backend.set_text_fg_bright(colour)
            else:
                backend.set_text_bg_bright(colour)
        elif value == 39:
            _default_fg(attrs, backend)
        elif value == 49:
            _default_bg(attrs, backend)
        elif value == 7:
            if not attrs.reverse_video:
                attrs.reverse_video = True
                backend.swap_palette()
        elif value == 27:
            if attrs.reverse_video:
                attrs.reverse_video = False
                backend.swap_palette()
        elif value in (38, 48):
            fg = value == 38
            i += 1
            if i >= count:
                break
            mode = values[i]
            if mode == 2:
                if i + 3 >= count:
                    break
                rgb = (
                    (values[i + 1] << 16) | (values[i + 2] << 8) | values[i + 3]
                ) & _U32_MASK
                i += 3
                (backend.set_text_fg_rgb if fg else backend.set_text_bg_rgb)(rgb)
            elif mode == 5:
                if i + 1 >= count:
                    break
                col = values[i + 1]
                i += 1
                if col < 8:
                    (backend.set_text_fg if fg else backend.set_text_bg)(col)
                elif col < 16:
                    (backend.set_text_fg_bright if fg else backend.set_text_bg_bright)(col - 8)
                elif col < 256:
                    (backend.set_text_fg_rgb if fg else backend.set_text_bg_rgb)(color256(col))
        i += 1
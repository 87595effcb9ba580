# kodiak

A small terminal-emulator core that draws on an in-memory character grid,
together with the building blocks a hobby x86-64 kernel uses around it:
descriptor tables, interrupt dispatch and boot protocol constants.

## Modules

- `kodiak.terminal`: `Terminal`, which parses a byte stream (control
  characters, CSI sequences, SGR, OSC, DEC private modes, G0/G1 character
  set selection, UTF-8 input) and drives a `Backend`. Events it cannot
  handle itself go to an optional callback, tagged with a `CallbackType`
  (`BELL`, `STATUS_REPORT`, `POS_REPORT`, `KBD_LEDS`, `MODE`, `DEC`,
  `LINUX`, `PRIVATE_ID`). Also defines `OobOutput` and `Charset`.
- `kodiak.backend`: `Backend`, a grid of `Cell`s (a CP437 glyph plus
  foreground and background colours as `0xRRGGBB`) with a cursor, an
  8-colour palette and a bright palette, a scroll region, and a back buffer
  that `double_buffer_flush` copies to a visible front buffer.
- `kodiak.sgr`: `TextAttributes` and `apply_sgr`, which apply Select
  Graphic Rendition parameters, including the `38;5;n`/`48;5;n` 256-colour
  and `38;2;r;g;b`/`48;2;r;g;b` RGB forms.
- `kodiak.charmap`: `unicode_to_cp437`, `wcwidth`, `dec_special_char` and
  `color256`.
- `kodiak.descriptors`: `Gdt`, `GdtEntry`, `Idt` and `IdtEntry`, which
  build the packed bytes of x86-64 descriptor tables and their 10-byte
  `lgdt`/`lidt` operands. `kernel_gdt()` returns the flat five-entry layout
  (null, kernel code, kernel data, user data, user code).
- `kodiak.interrupts`: `Registers` (the saved CPU frame, with `pack` and
  `unpack`), `InterruptDispatcher`, `CpuException`, `UnhandledInterrupt`,
  `interrupt_stack_index` and `build_idt`.
- `kodiak.limine`: boot protocol request identifiers (`RequestKind`,
  `request_id`), base revision helpers (`base_revision_words`,
  `base_revision_supported`, `loaded_base_revision`), request section
  markers, the enumerations `MemmapType`, `FirmwareType`, `MediaType` and
  `PagingMode`, and the `FramebufferInfo`/`ColorMask` records.
- `kodiak.klibc`: C-style string helpers: `memcmp`, `strcmp`, `strncmp`,
  `strstr`, `itoa`, `isspace`, `isalpha`, `upper` and `lower`.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Using the terminal

```python
from kodiak.backend import Backend
from kodiak.terminal import CallbackType, Terminal

def on_event(terminal, kind, a, b, c):
    if kind == CallbackType.BELL:
        print("ding")
    elif kind == CallbackType.POS_REPORT:
        print(f"cursor at column {a}, row {b}")

screen = Backend(rows=5, cols=20)
term = Terminal(screen, on_event)
term.write(b"\x1b[1;31mhello\x1b[0m\n")
term.write("\x07")            # str is encoded as UTF-8
term.write(b"\x1b[6n")        # cursor position report

print(screen.displayed_lines()[0])   # 'hello' padded to 20 columns
print(hex(screen.cell(0, 0).fg))     # bold red from the bright palette
cols, rows = term.dimensions()
```

`write` accepts `bytes`, `bytearray`, `memoryview` or `str`. After each
write it calls the backend's `double_buffer_flush`, unless
`term.autoflush` has been set to `False`; `flush()` does it by hand.
`Backend.lines()` shows the back buffer and `displayed_lines()` what the
last flush made visible. Characters outside ASCII are drawn as their CP437
glyph where one exists, otherwise as a replacement block padded to the
character's `wcwidth`.

`Backend` takes keyword arguments for its palettes and default colours.
After `deinit()`, drawing on it raises `RuntimeError`.

## Descriptor tables and interrupts

```python
from kodiak.descriptors import Idt, kernel_gdt
from kodiak.interrupts import InterruptDispatcher, Registers, build_idt

gdt = kernel_gdt()
table_bytes = gdt.pack()            # 5 entries of 8 bytes
pointer_bytes = gdt.pointer(0x1000) # limit 39, base 0x1000

idt = Idt()
idt.set_desc(14, 0xFFFFFFFF80001234, 2)
assert idt.entries[14].handler_address() == 0xFFFFFFFF80001234

idt = build_idt([0x1000 + 16 * v for v in range(256)])  # IST 2 for 14, 1 for 48

dispatcher = InterruptDispatcher()
dispatcher.set_handler(48, lambda regs: regs.rip)
dispatcher.handle(Registers(isr_number=48, rip=0x42))   # returns 0x42
```

`handle` raises `CpuException` for vectors below 32, `UnhandledInterrupt`
for a vector with no handler, and `IndexError` for vectors outside 0–255.

## What it does not do

The package does not talk to hardware or boot anything. `Backend` keeps its
cells in memory and does not render pixels to a real framebuffer; the
descriptor and boot protocol modules produce and read bytes and values but
do not load tables into a CPU or talk to a loader. There is no command-line
program.
# galtonboard

A Galton board simulation drawn into a 128x64 monochrome framebuffer laid out
the way an SSD1306 OLED controller expects it: eight vertical pages of 128
bytes, one bit per pixel.

Balls enter at the left, bounce off five rows of pins and drop into one of five
slots. Up to five balls fall at once. Each time a ball lands, the histogram on
the right of the screen is redrawn, scaled to the fullest slot.

## Installing

```
pip install .
```

## Running

```
galtonboard
```

The command runs the simulation, then prints the framebuffer as ASCII art
(`#` for a lit pixel, `.` for a dark one) followed by a line with the count of
balls in each slot.

Options:

- `--steps N` – number of frames to run (default 2000, must not be negative).
- `--seed N` – seed for the left/right choices, for repeatable runs.
- `--interval US` – microseconds between new balls (default 500000, must be
  positive).
- `--realtime` – pace the simulation with the wall clock. Without it a virtual
  clock is used that advances only by the pauses the simulation takes, so a run
  finishes at once.

## Using it as a library

- `galtonboard.ssd1306` holds the display side: the `Command` opcodes,
  `RenderArea` (with its `buffer_length`), the drawing helpers (`new_buffer`,
  `set_pixel`, `draw_line`, `draw_char`, `draw_string`), the command sequences
  `init_commands` and `scroll_commands`, and the `Display` and `BitmapDisplay`
  drivers. Both drivers write to a bus object with a `write(address, data)`
  method. `MemoryBus` records every write in its `writes` list, so you can see
  what would go out on the wire. `set_pixel` raises `ValueError` for
  coordinates off the screen; `draw_char` and `draw_string` skip text whose
  position would not fit and fold lower case to upper case.
- `galtonboard.font` maps characters to their 8x8 glyphs (`glyph_index`,
  `glyph`). It has upper-case letters and digits; any other character gets the
  blank glyph.
- `galtonboard.board` holds the pixel helpers `pixel_is_on`, `draw_dot` and
  `clear_dot` (which ignore off-screen coordinates), the `Ball` record and
  `GaltonBoard`. A board takes a display, a clock returning microseconds, a
  sleep function taking milliseconds and a random source with `randrange`;
  each defaults to something usable. It offers `draw_pins`, `add_ball`,
  `update`, `draw_histogram`, `render`, and keeps `buffer`, `slot_counts` and
  `active_balls`.
- `galtonboard.cli` holds `render_ascii(buffer)`, `run(board, steps,
  ball_interval_us)`, which returns the slot counts, and the `main` entry point.

Example:

```python
import random
import time

from galtonboard.board import GaltonBoard
from galtonboard.cli import render_ascii, run
from galtonboard.ssd1306 import Display, MemoryBus

display = Display(MemoryBus(), 0x3C)
board = GaltonBoard(
    display,
    lambda: time.monotonic_ns() // 1000,
    lambda ms: time.sleep(ms / 1000),
    random.Random(1),
)
counts = run(board, 200, 500_000)
print(render_ascii(board.buffer))
print(counts)
```

## What it does not do

The package does not drive a physical display. The drivers only produce the
command and data bytes an SSD1306 would receive; the buses provided record or
count those bytes. To show the picture on real hardware you must supply a bus
object whose `write(address, data)` sends the bytes over I2C yourself.

## Tests

```
pip install .[test]
pytest
```
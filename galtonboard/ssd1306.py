"""Frame buffer drawing and command stream for an SSD1306 OLED over I2C."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Protocol

from .font import GLYPH_SIZE, glyph

WIDTH = 128
HEIGHT = 64
I2C_ADDRESS = 0x3C
I2C_CLOCK_KHZ = 400
PAGE_HEIGHT = 8
N_PAGES = HEIGHT // PAGE_HEIGHT
BUFFER_LENGTH = N_PAGES * WIDTH

COMMAND_PREFIX = 0x80
DATA_PREFIX = 0x40

# COM pin hardware configuration depends on the panel geometry.
_PIN_CONFIGURATION = 0x12 if (WIDTH, HEIGHT) == (128, 64) else 0x02


class Command(IntEnum):
    """SSD1306 command opcodes."""

    SET_MEMORY_MODE = 0x20
    SET_COLUMN_ADDRESS = 0x21
    SET_PAGE_ADDRESS = 0x22
    SET_HORIZONTAL_SCROLL = 0x26
    SET_SCROLL = 0x2E
    SET_DISPLAY_START_LINE = 0x40
    SET_CONTRAST = 0x81
    SET_CHARGE_PUMP = 0x8D
    SET_SEGMENT_REMAP = 0xA0
    SET_ENTIRE_ON = 0xA4
    SET_ALL_ON = 0xA5
    SET_NORMAL_DISPLAY = 0xA6
    SET_INVERSE_DISPLAY = 0xA7
    SET_MUX_RATIO = 0xA8
    SET_DISPLAY = 0xAE
    SET_COMMON_OUTPUT_DIRECTION = 0xC0
    SET_COMMON_OUTPUT_DIRECTION_FLIP = 0xC0
    SET_DISPLAY_OFFSET = 0xD3
    SET_DISPLAY_CLOCK_DIVIDE_RATIO = 0xD5
    SET_PRECHARGE = 0xD9
    SET_COMMON_PIN_CONFIGURATION = 0xDA
    SET_VCOMH_DESELECT_LEVEL = 0xDB
    WRITE_MODE = 0xFE
    READ_MODE = 0xFF


class Bus(Protocol):
    def write(self, address: int, data: bytes) -> None: ...


@dataclass
class RenderArea:
    """A rectangle of columns and pages to be refreshed."""

    start_column: int = 0
    end_column: int = WIDTH - 1
    start_page: int = 0
    end_page: int = N_PAGES - 1

    @property
    def buffer_length(self) -> int:
        """Number of frame-buffer bytes covered by the area."""
        return (self.end_column - self.start_column + 1) * (
            self.end_page - self.start_page + 1
        )


class MemoryBus:
    """An I2C bus that records every write instead of sending it."""

    def __init__(self) -> None:
        self.writes: list[tuple[int, bytes]] = []

    def write(self, address: int, data: bytes) -> None:
        self.writes.append((address, bytes(data)))


def new_buffer() -> bytearray:
    """A blank full-screen frame buffer."""
    return bytearray(BUFFER_LENGTH)


def init_commands() -> bytes:
    """The command sequence that brings up the display."""
    return bytes(
        [
            Command.SET_DISPLAY,
            Command.SET_MEMORY_MODE, 0x00,
            Command.SET_DISPLAY_START_LINE,
            Command.SET_SEGMENT_REMAP | 0x01,
            Command.SET_MUX_RATIO, HEIGHT - 1,
            Command.SET_COMMON_OUTPUT_DIRECTION | 0x08,
            Command.SET_DISPLAY_OFFSET, 0x00,
            Command.SET_COMMON_PIN_CONFIGURATION, _PIN_CONFIGURATION,
            Command.SET_DISPLAY_CLOCK_DIVIDE_RATIO, 0x80,
            Command.SET_PRECHARGE, 0xF1,
            Command.SET_VCOMH_DESELECT_LEVEL, 0x30,
            Command.SET_CONTRAST, 0xFF,
            Command.SET_ENTIRE_ON,
            Command.SET_NORMAL_DISPLAY,
            Command.SET_CHARGE_PUMP, 0x14,
            Command.SET_SCROLL | 0x00,
            Command.SET_DISPLAY | 0x01,
        ]
    )


def scroll_commands(enable: bool) -> bytes:
    """Commands that configure horizontal scrolling and switch it on or off."""
    return bytes(
        [
            Command.SET_HORIZONTAL_SCROLL | 0x00,
            0x00, 0x00, 0x00, 0x03, 0x00, 0xFF,
            Command.SET_SCROLL | (0x01 if enable else 0x00),
        ]
    )


def set_pixel(buffer: bytearray, x: int, y: int, on: bool) -> None:
    """Set or clear one pixel; coordinates must be on screen."""
    if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
        raise ValueError(f"pixel ({x}, {y}) is outside the display")
    index = (y // PAGE_HEIGHT) * WIDTH + x
    mask = 1 << (y % PAGE_HEIGHT)
    if on:
        buffer[index] |= mask
    else:
        buffer[index] &= ~mask & 0xFF


def draw_line(
    buffer: bytearray, x0: int, y0: int, x1: int, y1: int, on: bool
) -> None:
    """Draw a straight line with Bresenham's algorithm, endpoints included."""
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    error = dx + dy
    while True:
        set_pixel(buffer, x0, y0, on)
        if x0 == x1 and y0 == y1:
            break
        doubled = 2 * error
        if doubled >= dy:
            error += dy
            x0 += sx
        if doubled <= dx:
            error += dx
            y0 += sy


def _fits(x: int, y: int) -> bool:
    if x < 0 or y < 0:
        raise ValueError(f"text position ({x}, {y}) is negative")
    return x <= WIDTH - GLYPH_SIZE and y <= HEIGHT - GLYPH_SIZE


def draw_char(buffer: bytearray, x: int, y: int, character: str) -> None:
    """Draw one character at column ``x`` on the page holding row ``y``.

    Characters that would not fit on screen are silently skipped.
    """
    if not _fits(x, y):
        return
    start = (y // PAGE_HEIGHT) * WIDTH + x
    buffer[start:start + GLYPH_SIZE] = glyph(character.upper())


def draw_string(buffer: bytearray, x: int, y: int, text: str) -> None:
    """Draw ``text`` left to right, eight columns per character."""
    if not _fits(x, y):
        return
    for character in text:
        draw_char(buffer, x, y, character)
        x += GLYPH_SIZE


class Display:
    """An SSD1306 driven with a fixed-size buffer and explicit render areas."""

    def __init__(self, bus: Bus, address: int = I2C_ADDRESS) -> None:
        self.bus = bus
        self.address = address

    def send_command(self, command: int) -> None:
        self.bus.write(self.address, bytes([COMMAND_PREFIX, command & 0xFF]))

    def send_command_list(self, commands: Iterable[int]) -> None:
        for command in commands:
            self.send_command(command)

    def send_buffer(self, data: bytes) -> None:
        self.bus.write(self.address, bytes([DATA_PREFIX]) + bytes(data))

    def init(self) -> None:
        self.send_command_list(init_commands())

    def scroll(self, enable: bool) -> None:
        self.send_command_list(scroll_commands(enable))

    def render(self, buffer: bytes, area: RenderArea) -> None:
        """Send the bytes of ``buffer`` that ``area`` covers."""
        self.send_command_list(
            [
                Command.SET_COLUMN_ADDRESS, area.start_column, area.end_column,
                Command.SET_PAGE_ADDRESS, area.start_page, area.end_page,
            ]
        )
        self.send_buffer(bytes(buffer[: area.buffer_length]))


@dataclass
class BitmapDisplay:
    """An SSD1306 that owns its RAM buffer and is fed whole bitmaps."""

    bus: Bus
    width: int = WIDTH
    height: int = HEIGHT
    external_vcc: bool = False
    address: int = I2C_ADDRESS
    pages: int = field(init=False)
    bufsize: int = field(init=False)
    ram_buffer: bytearray = field(init=False)

    def __post_init__(self) -> None:
        self.pages = self.height // PAGE_HEIGHT
        self.bufsize = self.pages * self.width + 1
        self.ram_buffer = bytearray(self.bufsize)
        self.ram_buffer[0] = DATA_PREFIX

    def command(self, command: int) -> None:
        self.bus.write(self.address, bytes([COMMAND_PREFIX, command & 0xFF]))

    def config(self) -> None:
        """Send the bring-up sequence (vertical addressing mode)."""
        for command in (
            Command.SET_DISPLAY | 0x00,
            Command.SET_MEMORY_MODE, 0x01,
            Command.SET_DISPLAY_START_LINE | 0x00,
            Command.SET_SEGMENT_REMAP | 0x01,
            Command.SET_MUX_RATIO, HEIGHT - 1,
            Command.SET_COMMON_OUTPUT_DIRECTION | 0x08,
            Command.SET_DISPLAY_OFFSET, 0x00,
            Command.SET_COMMON_PIN_CONFIGURATION, 0x12,
            Command.SET_DISPLAY_CLOCK_DIVIDE_RATIO, 0x80,
            Command.SET_PRECHARGE, 0xF1,
            Command.SET_VCOMH_DESELECT_LEVEL, 0x30,
            Command.SET_CONTRAST, 0xFF,
            Command.SET_ENTIRE_ON,
            Command.SET_NORMAL_DISPLAY,
            Command.SET_CHARGE_PUMP, 0x14,
            Command.SET_DISPLAY | 0x01,
        ):
            self.command(command)

    def send_data(self) -> None:
        """Address the whole screen and send the RAM buffer."""
        for command in (
            Command.SET_COLUMN_ADDRESS, 0, self.width - 1,
            Command.SET_PAGE_ADDRESS, 0, self.pages - 1,
        ):
            self.command(command)
        self.bus.write(self.address, bytes(self.ram_buffer))

    def draw_bitmap(self, bitmap: bytes) -> None:
        """Copy ``bitmap`` into RAM byte by byte, refreshing after each byte."""
        needed = self.bufsize - 1
        if len(bitmap) < needed:
            raise ValueError(f"bitmap needs {needed} bytes, got {len(bitmap)}")
        for offset, value in enumerate(bitmap[:needed], start=1):
            self.ram_buffer[offset] = value
            self.send_data()
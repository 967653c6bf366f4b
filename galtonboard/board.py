"""Galton board simulation drawn into an SSD1306 frame buffer."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from .ssd1306 import (
    HEIGHT,
    PAGE_HEIGHT,
    WIDTH,
    Display,
    MemoryBus,
    RenderArea,
    new_buffer,
)

LEVELS = 5
SPACING_X = 18
SPACING_Y = 8
START_X = 4
PIN_CENTER_Y = 25
BALL_CENTER_Y = 32
FINAL_X = START_X + LEVELS * SPACING_X + 2
SLOT_MARK_WIDTH = 4

NUM_SLOTS = 5
MAX_BALLS = 5
BALL_INTERVAL_US = 150_000
FLASH_MS = 100

HISTOGRAM_START_X = 105
HISTOGRAM_START_Y = 10
MAX_BAR_HEIGHT = 40
BAR_SPACING = 3

_U32 = 0xFFFFFFFF


class Rng(Protocol):
    def randrange(self, stop: int) -> int: ...


def _on_screen(x: int, y: int) -> bool:
    return 0 <= x < WIDTH and 0 <= y < HEIGHT


def _locate(x: int, y: int) -> tuple[int, int]:
    return (y // PAGE_HEIGHT) * WIDTH + x, 1 << (y % PAGE_HEIGHT)


def pixel_is_on(buffer: bytes, x: int, y: int) -> bool:
    """Whether the pixel is lit; anything off screen counts as dark."""
    if not _on_screen(x, y):
        return False
    index, mask = _locate(x, y)
    return bool(buffer[index] & mask)


def draw_dot(buffer: bytearray, x: int, y: int) -> None:
    """Light one pixel; off-screen coordinates are ignored."""
    if _on_screen(x, y):
        index, mask = _locate(x, y)
        buffer[index] |= mask


def clear_dot(buffer: bytearray, x: int, y: int) -> None:
    """Darken one pixel; off-screen coordinates are ignored."""
    if _on_screen(x, y):
        index, mask = _locate(x, y)
        buffer[index] &= ~mask & 0xFF


@dataclass
class Ball:
    """A ball falling through the pins."""

    x: int = START_X
    y: int = BALL_CENTER_Y
    slot_index: int = 0
    level: int = 0
    descending: bool = False
    last_update: int = 0
    interval: int = BALL_INTERVAL_US


def _default_clock() -> int:
    return (time.monotonic_ns() // 1000) & _U32


def _default_sleep(milliseconds: int) -> None:
    time.sleep(milliseconds / 1000)


class GaltonBoard:
    """Balls bouncing through five rows of pins into five slots.

    ``clock`` returns microseconds as a wrapping 32-bit counter, ``sleep``
    takes milliseconds and ``rng`` supplies the left/right choices.
    """

    def __init__(
        self,
        display: Display | None = None,
        clock: Callable[[], int] | None = None,
        sleep: Callable[[int], None] | None = None,
        rng: Rng | None = None,
    ) -> None:
        self.display = display if display is not None else Display(MemoryBus())
        self.clock = clock if clock is not None else _default_clock
        self.sleep = sleep if sleep is not None else _default_sleep
        self.rng = rng if rng is not None else random.Random()
        self.buffer = new_buffer()
        self.area = RenderArea()
        self.slot_counts = [0] * NUM_SLOTS
        self.balls: list[Ball | None] = [None] * MAX_BALLS

    @property
    def active_balls(self) -> list[Ball]:
        """The balls currently falling, in slot order."""
        return [ball for ball in self.balls if ball is not None]

    def draw_pins(self) -> None:
        """Draw the triangle of pins and the marks for the final slots."""
        for column in range(LEVELS):
            pins = column + 1
            offset_y = PIN_CENTER_Y - (pins - 1) * SPACING_Y // 2
            x = START_X + column * SPACING_X
            for row in range(pins):
                draw_dot(self.buffer, x, offset_y + row * SPACING_Y)

        offset_y = PIN_CENTER_Y - (LEVELS - 1) * SPACING_Y // 2
        for slot in range(LEVELS):
            y = offset_y + slot * SPACING_Y
            for dx in range(SLOT_MARK_WIDTH):
                draw_dot(self.buffer, FINAL_X + dx, y)

    def draw_histogram(self) -> None:
        """Redraw the slot counts as vertical bars on the right of the screen."""
        for x in range(HISTOGRAM_START_X, WIDTH):
            for y in range(HISTOGRAM_START_Y, HEIGHT):
                clear_dot(self.buffer, x, y)

        max_count = max(1, *self.slot_counts)
        base_y = HISTOGRAM_START_Y + MAX_BAR_HEIGHT + 1
        for slot, count in enumerate(self.slot_counts):
            bar_height = min(count * MAX_BAR_HEIGHT // max_count, MAX_BAR_HEIGHT)
            slot_x = HISTOGRAM_START_X + slot * BAR_SPACING
            for h in range(bar_height):
                y = HISTOGRAM_START_Y + MAX_BAR_HEIGHT - h
                draw_dot(self.buffer, slot_x, y)
                draw_dot(self.buffer, slot_x + 1, y)
            draw_dot(self.buffer, slot_x, base_y)
            draw_dot(self.buffer, slot_x + 1, base_y)

    def add_ball(self) -> Ball | None:
        """Drop a new ball into the first free place; None if all are in use."""
        for index, ball in enumerate(self.balls):
            if ball is None:
                new = Ball(last_update=self.clock())
                self.balls[index] = new
                return new
        return None

    def update(self) -> None:
        """Move every ball whose interval has elapsed one step onward."""
        now = self.clock()
        for index, ball in enumerate(self.balls):
            if ball is None or ((now - ball.last_update) & _U32) < ball.interval:
                continue
            ball.last_update = now
            clear_dot(self.buffer, ball.x, ball.y)

            if ball.level < LEVELS:
                ball.x = START_X + ball.level * SPACING_X
                if self.rng.randrange(2) == 1:
                    ball.slot_index += 1
                    ball.y += SPACING_Y
                else:
                    ball.y -= SPACING_Y
                ball.level += 1
                draw_dot(self.buffer, ball.x, ball.y)
                continue

            ball.x = FINAL_X
            ball.y = (
                BALL_CENTER_Y
                + ball.slot_index * SPACING_Y
                - LEVELS * SPACING_Y // 2
            )
            draw_dot(self.buffer, ball.x, ball.y)
            self.render()
            self.sleep(FLASH_MS)
            clear_dot(self.buffer, ball.x, ball.y)

            if 0 <= ball.slot_index < NUM_SLOTS:
                self.slot_counts[ball.slot_index] += 1
                self.draw_histogram()

            self.balls[index] = None

    def render(self) -> None:
        """Send the whole frame buffer to the display."""
        self.display.render(self.buffer, self.area)
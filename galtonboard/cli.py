"""Command line runner that simulates the board and prints the screen."""

from __future__ import annotations

import argparse
import random
import sys
from typing import Sequence

from .board import GaltonBoard, pixel_is_on
from .ssd1306 import HEIGHT, WIDTH, Display

DEFAULT_BALL_INTERVAL_US = 500_000
STARTUP_PAUSE_MS = 1000
FRAME_PAUSE_MS = 10
_U32 = 0xFFFFFFFF


def render_ascii(buffer: bytes) -> str:
    """The frame buffer as text: one line per row, ``#`` for a lit pixel."""
    return "\n".join(
        "".join("#" if pixel_is_on(buffer, x, y) else "." for x in range(WIDTH))
        for y in range(HEIGHT)
    )


def run(
    board: GaltonBoard,
    steps: int,
    ball_interval_us: int = DEFAULT_BALL_INTERVAL_US,
) -> list[int]:
    """Bring up the display and run ``steps`` frames; returns the slot counts."""
    board.display.init()
    board.draw_pins()
    board.render()
    board.sleep(STARTUP_PAUSE_MS)

    last_ball = board.clock()
    for _ in range(steps):
        now = board.clock()
        if ((now - last_ball) & _U32) >= ball_interval_us:
            board.add_ball()
            last_ball = now
        board.update()
        board.render()
        board.sleep(FRAME_PAUSE_MS)
    return list(board.slot_counts)


class _CountingBus:
    """A bus that keeps only a tally of the traffic sent to it."""

    def __init__(self) -> None:
        self.writes = 0
        self.bytes_written = 0

    def write(self, address: int, data: bytes) -> None:
        self.writes += 1
        self.bytes_written += len(data)


class _VirtualClock:
    """Microsecond counter that only advances when slept on."""

    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now & _U32

    def sleep(self, milliseconds: int) -> None:
        self.now += milliseconds * 1000


def _non_negative(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def _positive(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="galtonboard", description="Simulate a Galton board on a 128x64 screen."
    )
    parser.add_argument("--steps", type=_non_negative, default=2000,
                        help="number of frames to run")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed for the left/right choices")
    parser.add_argument("--interval", type=_positive, default=DEFAULT_BALL_INTERVAL_US,
                        help="microseconds between new balls")
    parser.add_argument("--realtime", action="store_true",
                        help="pace the simulation with the wall clock")
    args = parser.parse_args(argv)

    display = Display(_CountingBus())
    rng = random.Random(args.seed)
    if args.realtime:
        board = GaltonBoard(display, rng=rng)
    else:
        clock = _VirtualClock()
        board = GaltonBoard(display, clock, clock.sleep, rng)

    counts = run(board, args.steps, args.interval)
    print(render_ascii(board.buffer))
    print("slot counts: " + " ".join(str(count) for count in counts))
    return 0


if __name__ == "__main__":
    sys.exit(main())
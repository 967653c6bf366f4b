import random

import pytest

from galtonboard.board import MAX_BALLS, GaltonBoard, draw_dot
from galtonboard.cli import main, render_ascii, run
from galtonboard.ssd1306 import Display, MemoryBus, new_buffer


class Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now & 0xFFFFFFFF

    def sleep(self, ms):
        self.now += ms * 1000


def make_board(seed, bus=None):
    clock = Clock()
    return GaltonBoard(Display(bus or MemoryBus()), clock, clock.sleep, random.Random(seed))


def test_render_ascii_shape_and_pixels():
    buffer = new_buffer()
    draw_dot(buffer, 3, 2)
    lines = render_ascii(buffer).split("\n")
    assert len(lines) == 64
    assert all(len(line) == 128 for line in lines)
    assert lines[2][3] == "#"
    assert lines[2].count("#") == 1
    assert sum(line.count("#") for line in lines) == 1


def test_render_ascii_blank():
    assert set(render_ascii(new_buffer())) == {".", "\n"}


def test_run_starts_with_init_commands():
    bus = MemoryBus()
    board = make_board(3, bus)
    run(board, 0)
    assert bus.writes[0] == (0x3C, bytes([0x80, 0xAE]))
    assert bus.writes[-1][1][0] == 0x40


def test_run_is_deterministic():
    first = run(make_board(7), 1000)
    second = run(make_board(7), 1000)
    assert first == second


def test_run_without_steps_adds_no_balls():
    board = make_board(1)
    assert run(board, 0) == [0, 0, 0, 0, 0]
    assert board.active_balls == []


def test_main_prints_screen_and_counts(capsys):
    assert main(["--steps", "600", "--seed", "2"]) == 0
    lines = capsys.readouterr().out.rstrip("\n").split("\n")
    assert len(lines) == 65
    assert lines[-1].startswith("slot counts: ")
    assert len(lines[-1].split()) == 7
    assert lines[25][4] == "#"


def test_main_rejects_negative_steps():
    with pytest.raises(SystemExit):
        main(["--steps", "-1"])


def test_main_rejects_zero_interval():
    with pytest.raises(SystemExit):
        main(["--interval", "0"])
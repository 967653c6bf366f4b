import pytest

from galtonboard.font import glyph
from galtonboard.ssd1306 import (
    BUFFER_LENGTH,
    HEIGHT,
    I2C_ADDRESS,
    WIDTH,
    BitmapDisplay,
    Command,
    Display,
    MemoryBus,
    RenderArea,
    draw_char,
    draw_line,
    draw_string,
    init_commands,
    new_buffer,
    scroll_commands,
    set_pixel,
)


def pixel(buffer, x, y):
    return bool(buffer[(y // 8) * WIDTH + x] & (1 << (y % 8)))


def lit_pixels(buffer):
    return {(x, y) for x in range(WIDTH) for y in range(HEIGHT) if pixel(buffer, x, y)}


def test_full_area_covers_whole_buffer():
    assert RenderArea().buffer_length == BUFFER_LENGTH
    assert len(new_buffer()) == BUFFER_LENGTH


def test_partial_area_length():
    area = RenderArea(start_column=10, end_column=19, start_page=2, end_page=3)
    assert area.buffer_length == 10 * 2


def test_set_and_clear_pixel_round_trip():
    buffer = new_buffer()
    set_pixel(buffer, 5, 13, True)
    assert lit_pixels(buffer) == {(5, 13)}
    set_pixel(buffer, 5, 13, False)
    assert buffer == new_buffer()


@pytest.mark.parametrize("x,y", [(-1, 0), (WIDTH, 0), (0, HEIGHT), (0, -1)])
def test_set_pixel_rejects_off_screen(x, y):
    with pytest.raises(ValueError):
        set_pixel(new_buffer(), x, y, True)


def test_diagonal_line_lights_each_step():
    buffer = new_buffer()
    draw_line(buffer, 0, 0, 7, 7, True)
    assert lit_pixels(buffer) == {(i, i) for i in range(8)}


def test_horizontal_line_and_erase():
    buffer = new_buffer()
    draw_line(buffer, 20, 30, 3, 30, True)
    assert lit_pixels(buffer) == {(x, 30) for x in range(3, 21)}
    draw_line(buffer, 3, 30, 20, 30, False)
    assert not lit_pixels(buffer)


def test_draw_char_uppercases_and_uses_page():
    buffer = new_buffer()
    draw_char(buffer, 0, 8, "a")
    assert bytes(buffer[WIDTH:WIDTH + 8]) == glyph("A")
    assert sum(buffer[:WIDTH]) == 0


def test_draw_char_off_screen_is_ignored():
    buffer = new_buffer()
    draw_char(buffer, WIDTH - 7, 0, "A")
    draw_char(buffer, 0, HEIGHT - 7, "A")
    assert buffer == new_buffer()


def test_draw_string_places_glyphs_side_by_side():
    buffer = new_buffer()
    draw_string(buffer, 0, 0, "Hi9")
    assert bytes(buffer[0:24]) == glyph("H") + glyph("I") + glyph("9")


def test_draw_string_clips_at_right_edge():
    buffer = new_buffer()
    draw_string(buffer, 112, 0, "ABC")
    assert bytes(buffer[112:128]) == glyph("A") + glyph("B")
    assert bytes(buffer[128:136]) == bytes(8)


def test_send_command_wire_format():
    bus = MemoryBus()
    Display(bus).send_command(Command.SET_DISPLAY)
    assert bus.writes == [(0x3C, bytes([0x80, 0xAE]))]


def test_init_sends_each_command_framed():
    bus = MemoryBus()
    Display(bus).init()
    commands = init_commands()
    assert [data for _, data in bus.writes] == [bytes([0x80, c]) for c in commands]
    assert commands[0] == Command.SET_DISPLAY
    assert commands[-1] == Command.SET_DISPLAY | 0x01
    assert HEIGHT - 1 in commands and 0x12 in commands


def test_scroll_commands_toggle_last_byte():
    assert scroll_commands(True)[-1] == Command.SET_SCROLL | 0x01
    assert scroll_commands(False)[-1] == Command.SET_SCROLL
    assert scroll_commands(True)[:-1] == scroll_commands(False)[:-1]


def test_render_sends_addressing_then_data():
    bus = MemoryBus()
    display = Display(bus, I2C_ADDRESS)
    buffer = new_buffer()
    set_pixel(buffer, 0, 0, True)
    area = RenderArea()
    display.render(buffer, area)
    assert [data[1] for _, data in bus.writes[:6]] == [
        Command.SET_COLUMN_ADDRESS, 0, WIDTH - 1,
        Command.SET_PAGE_ADDRESS, 0, 7,
    ]
    address, payload = bus.writes[6]
    assert address == I2C_ADDRESS
    assert payload == bytes([0x40]) + bytes(buffer)


def test_bitmap_display_buffer_layout():
    display = BitmapDisplay(MemoryBus(), 128, 64, False, I2C_ADDRESS)
    assert display.pages == 8
    assert display.bufsize == BUFFER_LENGTH + 1
    assert display.ram_buffer[0] == 0x40


def test_bitmap_config_starts_and_ends_with_display_toggle():
    bus = MemoryBus()
    BitmapDisplay(bus, 128, 64, False, I2C_ADDRESS).config()
    sent = [data[1] for _, data in bus.writes]
    assert sent[0] == Command.SET_DISPLAY
    assert sent[-1] == Command.SET_DISPLAY | 0x01
    assert sent[1:3] == [Command.SET_MEMORY_MODE, 0x01]


def test_draw_bitmap_copies_and_refreshes_per_byte():
    bus = MemoryBus()
    display = BitmapDisplay(bus, 16, 8, False, I2C_ADDRESS)
    bitmap = bytes(range(1, 17))
    display.draw_bitmap(bitmap)
    assert bytes(display.ram_buffer) == bytes([0x40]) + bitmap
    assert len(bus.writes) == len(bitmap) * 7
    assert bus.writes[-1][1] == bytes([0x40]) + bitmap


def test_draw_bitmap_rejects_short_bitmap():
    display = BitmapDisplay(MemoryBus(), 16, 8, False, I2C_ADDRESS)
    with pytest.raises(ValueError):
        display.draw_bitmap(bytes(5))
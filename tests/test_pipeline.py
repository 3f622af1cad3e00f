import pytest

from pocketboy.lcd import COLORS_DEFAULT, Lcd
from pocketboy.pipeline import XRES, FetchState, OamEntry, Pipeline, window_visible
from pocketboy.ppu import Ppu


def make_ppu(reads=None):
    lcd = Lcd(lambda value: None)
    holder = {}

    def bus_read(address):
        if reads is not None:
            reads.append(address)
        if 0x8000 <= address < 0xA000:
            return holder["ppu"].vram_read(address)
        return 0xFF

    ppu = Ppu(lcd, bus_read, lambda it: None)
    holder["ppu"] = ppu
    return ppu, lcd


def test_oam_entry_from_bytes_fields():
    entry = OamEntry.from_bytes(bytes([16, 8, 5, 0x60]))
    assert (entry.y, entry.x, entry.tile) == (16, 8, 5)
    assert entry.x_flip and entry.y_flip
    assert not entry.bgp and not entry.pn


def test_oam_entry_palette_and_priority_bits():
    assert OamEntry.from_bytes(bytes([0, 0, 0, 0x80])).bgp
    assert OamEntry.from_bytes(bytes([0, 0, 0, 0x10])).pn
    assert OamEntry.from_bytes(bytes([0, 0, 0, 0x07])).cgb_pn == 7


def test_oam_entry_short_data_raises():
    with pytest.raises(ValueError):
        OamEntry.from_bytes(bytes([1, 2]))


def test_window_visible_depends_on_enable_and_position():
    _, lcd = make_ppu()
    assert not window_visible(lcd)
    lcd.lcdc |= 1 << 5
    assert window_visible(lcd)
    lcd.win_x = 200
    assert not window_visible(lcd)
    lcd.win_x = 0
    lcd.win_y = 144
    assert not window_visible(lcd)


def test_fifo_add_refuses_when_full():
    ppu, _ = make_ppu()
    pipeline = Pipeline(ppu)
    pipeline.fifo.extend([0] * 9)
    assert pipeline.fifo_add() is False
    assert len(pipeline.fifo) == 9


def test_fifo_add_pushes_eight_pixels_when_on_screen():
    ppu, lcd = make_ppu()
    pipeline = Pipeline(ppu)
    pipeline.fetch_x = 8
    pipeline.bgw_fetch_data = [0, 0xFF, 0xFF]
    assert pipeline.fifo_add() is True
    assert list(pipeline.fifo) == [lcd.bg_colors[3]] * 8
    assert pipeline.fifo_x == len(pipeline.fifo)


def test_fifo_add_discards_pixels_left_of_screen():
    ppu, _ = make_ppu()
    pipeline = Pipeline(ppu)
    pipeline.fetch_x = 0
    assert pipeline.fifo_add() is True
    assert len(pipeline.fifo) == 0


def test_push_pixel_waits_for_more_than_eight():
    ppu, _ = make_ppu()
    pipeline = Pipeline(ppu)
    pipeline.fifo.extend([COLORS_DEFAULT[2]] * 8)
    pipeline.push_pixel()
    assert pipeline.pushed_x == 0
    pipeline.fifo.append(COLORS_DEFAULT[2])
    pipeline.push_pixel()
    assert pipeline.pushed_x == 1
    assert ppu.video_buffer[0] == COLORS_DEFAULT[2]


def test_push_pixel_writes_on_current_line():
    ppu, lcd = make_ppu()
    lcd.ly = 3
    pipeline = Pipeline(ppu)
    pipeline.fifo.extend([COLORS_DEFAULT[1]] * 9)
    pipeline.push_pixel()
    assert ppu.video_buffer[3 * XRES] == COLORS_DEFAULT[1]


def test_fifo_reset_empties_fifo():
    ppu, _ = make_ppu()
    pipeline = Pipeline(ppu)
    pipeline.fifo.extend(range(12))
    pipeline.fifo_reset()
    assert len(pipeline.fifo) == 0


def test_fetch_cycles_through_states():
    ppu, _ = make_ppu()
    pipeline = Pipeline(ppu)
    seen = [pipeline.state]
    for _ in range(5):
        pipeline.fetch()
        seen.append(pipeline.state)
    assert seen == [
        FetchState.TILE,
        FetchState.DATA0,
        FetchState.DATA1,
        FetchState.IDLE,
        FetchState.PUSH,
        FetchState.TILE,
    ]
    assert pipeline.fetch_x == 8


def test_fetch_signed_tile_addressing():
    reads = []
    ppu, lcd = make_ppu(reads)
    lcd.lcdc = 0x81  # LCD on, BG on, tile data at 0x8800
    ppu.vram_write(0x9800, 0x80)
    pipeline = Pipeline(ppu)
    pipeline.fetch()
    assert pipeline.bgw_fetch_data[0] == 0
    pipeline.fetch()
    assert reads[-1] == 0x8800


def _sprite_pipeline(flags, bg_priority_color=0):
    ppu, lcd = make_ppu()
    pipeline = Pipeline(ppu)
    pipeline.fetched_entries = [OamEntry(16, 8, 0, flags)]
    pipeline.fetch_entry_data = [0x80, 0, 0, 0, 0, 0]
    pipeline.fifo_x = 0
    return pipeline, lcd


def test_sprite_pixel_overrides_background():
    pipeline, lcd = _sprite_pipeline(0)
    assert pipeline.fetch_sprite_pixels(COLORS_DEFAULT[3], 0) == lcd.sp1_colors[1]


def test_sprite_pixel_uses_second_palette():
    pipeline, lcd = _sprite_pipeline(0x10)
    lcd.update_palette(0b11111100, 2)
    assert pipeline.fetch_sprite_pixels(COLORS_DEFAULT[0], 0) == lcd.sp2_colors[1]


def test_flipped_transparent_sprite_keeps_background():
    pipeline, _ = _sprite_pipeline(0x20)
    assert pipeline.fetch_sprite_pixels(COLORS_DEFAULT[2], 0) == COLORS_DEFAULT[2]


def test_background_priority_hides_sprite_over_coloured_bg():
    pipeline, lcd = _sprite_pipeline(0x80)
    assert pipeline.fetch_sprite_pixels(COLORS_DEFAULT[2], 2) == COLORS_DEFAULT[2]
    assert pipeline.fetch_sprite_pixels(COLORS_DEFAULT[0], 0) == lcd.sp1_colors[1]
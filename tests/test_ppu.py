from pocketboy.interrupts import InterruptType
from pocketboy.lcd import COLORS_DEFAULT, Lcd, LcdMode, StatSource
from pocketboy.pipeline import XRES, YRES
from pocketboy.ppu import LINES_PER_FRAME, OAM_SCAN_TICKS, TICKS_PER_LINE, Ppu


def make_ppu():
    lcd = Lcd(lambda value: None)
    requests = []
    holder = {}

    def bus_read(address):
        if 0x8000 <= address < 0xA000:
            return holder["ppu"].vram_read(address)
        return 0xFF

    ppu = Ppu(lcd, bus_read, requests.append)
    holder["ppu"] = ppu
    ppu.target_frame_time = 0
    return ppu, lcd, requests


def write_sprite(ppu, index, y, x, tile=0, flags=0):
    for offset, value in enumerate((y, x, tile, flags)):
        ppu.oam_write(0xFE00 + index * 4 + offset, value)


def test_reset_state():
    ppu, lcd, _ = make_ppu()
    assert lcd.mode is LcdMode.OAM
    assert lcd.lcdc == 0x91
    assert len(ppu.video_buffer) == XRES * YRES
    assert set(ppu.video_buffer) == {0}
    assert ppu.current_frame == 0


def test_oam_round_trip_both_address_forms():
    ppu, _, _ = make_ppu()
    ppu.oam_write(0xFE05, 0x42)
    assert ppu.oam_read(5) == 0x42
    ppu.oam_write(7, 0x99)
    assert ppu.oam_read(0xFE07) == 0x99


def test_vram_round_trip():
    ppu, _, _ = make_ppu()
    ppu.vram_write(0x9FFF, 0x1234)
    assert ppu.vram_read(0x9FFF) == 0x34
    assert ppu.vram[0x1FFF] == 0x34


def test_oam_scan_switches_to_transfer():
    ppu, lcd, _ = make_ppu()
    for _ in range(OAM_SCAN_TICKS - 1):
        ppu.tick()
    assert lcd.mode is LcdMode.OAM
    ppu.tick()
    assert lcd.mode is LcdMode.XFER


def test_load_line_sprites_sorted_and_skips_zero_x():
    ppu, _, _ = make_ppu()
    write_sprite(ppu, 0, 16, 30)
    write_sprite(ppu, 1, 16, 10)
    write_sprite(ppu, 2, 16, 0)
    write_sprite(ppu, 3, 16, 20)
    write_sprite(ppu, 4, 100, 5)
    sprites = ppu.load_line_sprites()
    assert [s.x for s in sprites] == [10, 20, 30]
    assert ppu.line_sprites == sprites


def test_load_line_sprites_limit():
    ppu, _, _ = make_ppu()
    for i in range(15):
        write_sprite(ppu, i, 16, 40 - i)
    sprites = ppu.load_line_sprites()
    assert len(sprites) == 10
    xs = [s.x for s in sprites]
    assert xs == sorted(xs)


def test_increment_ly_lyc_interrupt():
    ppu, lcd, requests = make_ppu()
    lcd.ly_compare = 1
    lcd.lcds |= StatSource.LYC
    ppu.increment_ly()
    assert lcd.ly == 1
    assert lcd.lyc
    assert requests == [InterruptType.LCD_STAT]
    ppu.increment_ly()
    assert not lcd.lyc
    assert requests == [InterruptType.LCD_STAT]


def test_one_line_advances_ly():
    ppu, lcd, _ = make_ppu()
    for _ in range(TICKS_PER_LINE):
        ppu.tick()
    assert lcd.ly == 1
    assert lcd.mode is LcdMode.OAM
    assert ppu.line_ticks == 0


def test_hblank_stat_interrupt_requested():
    ppu, lcd, requests = make_ppu()
    lcd.lcds |= StatSource.HBLANK
    for _ in range(TICKS_PER_LINE - 1):
        ppu.tick()
    assert lcd.mode is LcdMode.HBLANK
    assert InterruptType.LCD_STAT in requests


def test_renders_solid_tile_line():
    ppu, lcd, _ = make_ppu()
    for address in range(0x8000, 0x8010):
        ppu.vram_write(address, 0xFF)
    for _ in range(TICKS_PER_LINE):
        ppu.tick()
    assert ppu.video_buffer[:XRES] == [lcd.bg_colors[3]] * XRES
    assert lcd.bg_colors[3] == COLORS_DEFAULT[3]


def test_vblank_wraps_to_line_zero():
    ppu, lcd, _ = make_ppu()
    lcd.mode = LcdMode.VBLANK
    lcd.ly = LINES_PER_FRAME - 1
    ppu.window_line = 5
    ppu.line_ticks = TICKS_PER_LINE
    ppu.mode_vblank()
    assert lcd.ly == 0
    assert lcd.mode is LcdMode.OAM
    assert ppu.window_line == 0


def test_full_frame_requests_vblank_and_counts_frame():
    ppu, lcd, requests = make_ppu()
    seconds = []
    ppu.on_second = seconds.append
    for _ in range(YRES * TICKS_PER_LINE):
        ppu.tick()
    assert ppu.current_frame == 1
    assert lcd.mode is LcdMode.VBLANK
    assert InterruptType.VBLANK in requests
    for _ in range((LINES_PER_FRAME - YRES) * TICKS_PER_LINE):
        ppu.tick()
    assert lcd.ly == 0
    assert lcd.mode is LcdMode.OAM


def test_hblank_on_last_visible_line_enters_vblank_with_stat():
    ppu, lcd, requests = make_ppu()
    lcd.mode = LcdMode.HBLANK
    lcd.lcds |= StatSource.VBLANK
    lcd.ly = YRES - 1
    ppu.line_ticks = TICKS_PER_LINE
    ppu.mode_hblank()
    assert lcd.mode is LcdMode.VBLANK
    assert requests == [InterruptType.VBLANK, InterruptType.LCD_STAT]
    assert ppu.current_frame == 1
"""The picture processing unit: VRAM, OAM and the per-line mode state machine."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .interrupts import InterruptType
from .lcd import Lcd, LcdMode, StatSource
from .pipeline import XRES, YRES, FetchState, OamEntry, Pipeline, window_visible

LINES_PER_FRAME = 154
TICKS_PER_LINE = 456
OAM_SCAN_TICKS = 80
MAX_LINE_SPRITES = 10

_OAM_ENTRIES = 40
_VRAM_BASE = 0x8000
_VRAM_SIZE = 0x2000

_log = logging.getLogger(__name__)


class Ppu:
    """Renders frames into ``video_buffer`` as 32-bit ARGB values."""

    def __init__(
        self,
        lcd: Lcd,
        bus_read: Callable[[int], int],
        request_interrupt: Callable[[InterruptType], None],
    ) -> None:
        self.lcd = lcd
        self.bus_read = bus_read
        self.request_interrupt = request_interrupt
        self.vram = bytearray(_VRAM_SIZE)
        # Frame pacing: milliseconds a frame should last (0 disables the limit)
        # and a hook called once a second with the number of frames drawn.
        self.target_frame_time = 1000 // 60
        self.on_second: Optional[Callable[[int], None]] = None
        self._epoch = time.monotonic()
        self._prev_frame_time = 0
        self._start_timer = 0
        self._frame_count = 0
        self.reset()

    def reset(self) -> None:
        """Put the PPU and LCD into their power-on state."""
        self.current_frame = 0
        self.line_ticks = 0
        self.video_buffer = [0] * (XRES * YRES)
        self.oam_ram = bytearray(_OAM_ENTRIES * 4)
        self.line_sprites: list[OamEntry] = []
        self.window_line = 0
        self.pipeline = Pipeline(self)
        self.lcd.reset()
        self.lcd.mode = LcdMode.OAM

    def _ticks_ms(self) -> int:
        return int((time.monotonic() - self._epoch) * 1000)

    def tick(self) -> None:
        self.line_ticks += 1
        mode = self.lcd.mode
        if mode is LcdMode.OAM:
            self.mode_oam()
        elif mode is LcdMode.XFER:
            self.mode_xfer()
        elif mode is LcdMode.VBLANK:
            self.mode_vblank()
        else:
            self.mode_hblank()

    @staticmethod
    def _oam_offset(address: int) -> int:
        return address - 0xFE00 if address >= 0xFE00 else address

    def oam_read(self, address: int) -> int:
        return self.oam_ram[self._oam_offset(address)]

    def oam_write(self, address: int, value: int) -> None:
        self.oam_ram[self._oam_offset(address)] = value & 0xFF

    def vram_read(self, address: int) -> int:
        return self.vram[address - _VRAM_BASE]

    def vram_write(self, address: int, value: int) -> None:
        self.vram[address - _VRAM_BASE] = value & 0xFF

    def _oam_entries(self):
        for i in range(_OAM_ENTRIES):
            yield OamEntry.from_bytes(self.oam_ram[i * 4:i * 4 + 4])

    def load_line_sprites(self) -> list[OamEntry]:
        """Collect up to 10 sprites on the current line, ordered by X."""
        cur_y = self.lcd.ly
        height = self.lcd.obj_height
        sprites: list[OamEntry] = []

        for entry in self._oam_entries():
            if not entry.x:
                continue
            if len(sprites) >= MAX_LINE_SPRITES:
                break
            if entry.y <= cur_y + 16 < entry.y + height:
                index = next(
                    (i for i, other in enumerate(sprites) if other.x > entry.x), len(sprites)
                )
                sprites.insert(index, entry)

        self.line_sprites = sprites
        return sprites

    def increment_ly(self) -> None:
        lcd = self.lcd
        if window_visible(lcd) and lcd.win_y <= lcd.ly < lcd.win_y + YRES:
            self.window_line = (self.window_line + 1) & 0xFF

        lcd.ly = (lcd.ly + 1) & 0xFF

        if lcd.ly == lcd.ly_compare:
            lcd.lyc = True
            if lcd.stat_interrupt(StatSource.LYC):
                self.request_interrupt(InterruptType.LCD_STAT)
        else:
            lcd.lyc = False

    def mode_oam(self) -> None:
        if self.line_ticks >= OAM_SCAN_TICKS:
            self.lcd.mode = LcdMode.XFER
            p = self.pipeline
            p.state = FetchState.TILE
            p.line_x = 0
            p.fetch_x = 0
            p.pushed_x = 0
            p.fifo_x = 0

        if self.line_ticks == 1:
            self.line_sprites = []
            self.load_line_sprites()

    def mode_xfer(self) -> None:
        self.pipeline.process()

        if self.pipeline.pushed_x >= XRES:
            self.pipeline.fifo_reset()
            self.lcd.mode = LcdMode.HBLANK
            if self.lcd.stat_interrupt(StatSource.HBLANK):
                self.request_interrupt(InterruptType.LCD_STAT)

    def mode_vblank(self) -> None:
        if self.line_ticks >= TICKS_PER_LINE:
            self.increment_ly()

            if self.lcd.ly >= LINES_PER_FRAME:
                self.lcd.mode = LcdMode.OAM
                self.lcd.ly = 0
                self.window_line = 0

            self.line_ticks = 0

    def _end_frame(self) -> None:
        end = self._ticks_ms()
        frame_time = end - self._prev_frame_time

        if frame_time < self.target_frame_time:
            time.sleep((self.target_frame_time - frame_time) / 1000)

        if end - self._start_timer >= 1000:
            fps = self._frame_count
            self._start_timer = end
            self._frame_count = 0
            _log.info("FPS: %d", fps)
            if self.on_second is not None:
                self.on_second(fps)

        self._frame_count += 1
        self._prev_frame_time = self._ticks_ms()

    def mode_hblank(self) -> None:
        if self.line_ticks >= TICKS_PER_LINE:
            self.increment_ly()

            if self.lcd.ly >= YRES:
                self.lcd.mode = LcdMode.VBLANK
                self.request_interrupt(InterruptType.VBLANK)
                if self.lcd.stat_interrupt(StatSource.VBLANK):
                    self.request_interrupt(InterruptType.LCD_STAT)
                self.current_frame += 1
                self._end_frame()
            else:
                self.lcd.mode = LcdMode.OAM

            self.line_ticks = 0
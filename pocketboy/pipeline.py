"""The pixel fetcher and pixel FIFO that turn VRAM into scanline colours."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import IntEnum

XRES = 160
YRES = 144


class FetchState(IntEnum):
    """Steps of the background/window tile fetcher."""

    TILE = 0
    DATA0 = 1
    DATA1 = 2
    IDLE = 3
    PUSH = 4


@dataclass(frozen=True)
class OamEntry:
    """One 4-byte sprite attribute entry.

    Flag bits: 7 BG/window over OBJ, 6 Y flip, 5 X flip, 4 palette number,
    3 VRAM bank (CGB), 2-0 CGB palette number.
    """

    y: int
    x: int
    tile: int
    flags: int = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "OamEntry":
        if len(data) < 4:
            raise ValueError(f"an OAM entry needs 4 bytes, got {len(data)}")
        return cls(data[0], data[1], data[2], data[3])

    @property
    def cgb_pn(self) -> int:
        return self.flags & 0b111

    @property
    def cgb_vram_bank(self) -> bool:
        return bool(self.flags & (1 << 3))

    @property
    def pn(self) -> bool:
        return bool(self.flags & (1 << 4))

    @property
    def x_flip(self) -> bool:
        return bool(self.flags & (1 << 5))

    @property
    def y_flip(self) -> bool:
        return bool(self.flags & (1 << 6))

    @property
    def bgp(self) -> bool:
        return bool(self.flags & (1 << 7))


def window_visible(lcd) -> bool:
    """Whether the window is enabled and positioned on screen."""
    return bool(lcd.win_enable and 0 <= lcd.win_x <= 166 and 0 <= lcd.win_y < YRES)


class Pipeline:
    """Fetcher state and pixel FIFO for the scanline being drawn by ``ppu``."""

    def __init__(self, ppu) -> None:
        self.ppu = ppu
        self.state = FetchState.TILE
        self.fifo: deque[int] = deque()
        self.line_x = 0
        self.pushed_x = 0
        self.fetch_x = 0
        self.bgw_fetch_data = [0, 0, 0]
        self.fetch_entry_data = [0] * 6
        self.map_y = 0
        self.map_x = 0
        self.tile_y = 0
        self.fifo_x = 0
        self.fetched_entries: list[OamEntry] = []

    def fetch_sprite_pixels(self, color: int, bg_color: int) -> int:
        """Return the colour of the current pixel once sprites are laid over ``color``."""
        lcd = self.ppu.lcd
        for i, entry in enumerate(self.fetched_entries):
            sp_x = (entry.x - 8) + (lcd.scroll_x % 8)
            if sp_x + 8 < self.fifo_x:
                continue

            offset = self.fifo_x - sp_x
            if offset < 0 or offset > 7:
                continue

            bit = offset if entry.x_flip else 7 - offset
            hi = 1 if self.fetch_entry_data[i * 2] & (1 << bit) else 0
            lo = 2 if self.fetch_entry_data[i * 2 + 1] & (1 << bit) else 0
            index = hi | lo

            if not index:
                continue

            if not entry.bgp or bg_color == 0:
                color = lcd.sp2_colors[index] if entry.pn else lcd.sp1_colors[index]
                break

        return color

    def fifo_add(self) -> bool:
        """Push the fetched tile row into the FIFO; False if the FIFO is full."""
        if len(self.fifo) > 8:
            return False

        lcd = self.ppu.lcd
        x = self.fetch_x - (8 - (lcd.scroll_x % 8))

        for i in range(8):
            bit = 7 - i
            hi = 1 if self.bgw_fetch_data[1] & (1 << bit) else 0
            lo = 2 if self.bgw_fetch_data[2] & (1 << bit) else 0
            color = lcd.bg_colors[hi | lo]

            if not lcd.bgw_enable:
                color = lcd.bg_colors[0]

            if lcd.obj_enable:
                color = self.fetch_sprite_pixels(color, hi | lo)

            if x >= 0:
                self.fifo.append(color)
                self.fifo_x = (self.fifo_x + 1) & 0xFF

        return True

    def _load_sprite_tile(self) -> None:
        scroll = self.ppu.lcd.scroll_x % 8
        for entry in self.ppu.line_sprites:
            sp_x = (entry.x - 8) + scroll
            if (self.fetch_x <= sp_x < self.fetch_x + 8) or (
                self.fetch_x <= sp_x + 8 < self.fetch_x + 8
            ):
                self.fetched_entries.append(entry)
            if len(self.fetched_entries) >= 3:
                break

    def _load_sprite_data(self, offset: int) -> None:
        lcd = self.ppu.lcd
        cur_y = lcd.ly
        height = lcd.obj_height

        for i, entry in enumerate(self.fetched_entries):
            ty = (((cur_y + 16) - entry.y) * 2) & 0xFF
            if entry.y_flip:
                ty = ((height * 2 - 2) - ty) & 0xFF

            tile_index = entry.tile
            if height == 16:
                tile_index &= ~1

            self.fetch_entry_data[i * 2 + offset] = self.ppu.bus_read(
                0x8000 + tile_index * 16 + ty + offset
            )

    def _load_window_tile(self) -> None:
        lcd = self.ppu.lcd
        if not window_visible(lcd):
            return

        window_y = lcd.win_y
        if lcd.win_x <= self.fetch_x + 7 < lcd.win_x + YRES + 14:
            if window_y <= lcd.ly < window_y + XRES:
                w_tile_y = (self.ppu.window_line // 8) & 0xFF
                tile = self.ppu.bus_read(
                    lcd.win_map_area + (self.fetch_x + 7 - lcd.win_x) // 8 + w_tile_y * 32
                )
                if lcd.bgw_data_area == 0x8800:
                    tile = (tile + 128) & 0xFF
                self.bgw_fetch_data[0] = tile

    def fetch(self) -> None:
        """Advance the tile fetcher by one step."""
        lcd = self.ppu.lcd
        read = self.ppu.bus_read

        if self.state is FetchState.TILE:
            self.fetched_entries = []

            if lcd.bgw_enable:
                tile = read(lcd.bg_map_area + self.map_x // 8 + (self.map_y // 8) * 32)
                if lcd.bgw_data_area == 0x8800:
                    tile = (tile + 128) & 0xFF
                self.bgw_fetch_data[0] = tile
                self._load_window_tile()

            if lcd.obj_enable and self.ppu.line_sprites:
                self._load_sprite_tile()

            self.state = FetchState.DATA0
            self.fetch_x = (self.fetch_x + 8) & 0xFF

        elif self.state is FetchState.DATA0:
            self.bgw_fetch_data[1] = read(
                lcd.bgw_data_area + self.bgw_fetch_data[0] * 16 + self.tile_y
            )
            self._load_sprite_data(0)
            self.state = FetchState.DATA1

        elif self.state is FetchState.DATA1:
            self.bgw_fetch_data[2] = read(
                lcd.bgw_data_area + self.bgw_fetch_data[0] * 16 + self.tile_y + 1
            )
            self._load_sprite_data(1)
            self.state = FetchState.IDLE

        elif self.state is FetchState.IDLE:
            self.state = FetchState.PUSH

        elif self.fifo_add():
            self.state = FetchState.TILE

    def push_pixel(self) -> None:
        """Move one pixel from the FIFO to the video buffer once it holds more than 8."""
        if len(self.fifo) <= 8:
            return

        pixel = self.fifo.popleft()
        lcd = self.ppu.lcd
        if self.line_x >= lcd.scroll_x % 8:
            self.ppu.video_buffer[self.pushed_x + lcd.ly * XRES] = pixel
            self.pushed_x += 1

        self.line_x = (self.line_x + 1) & 0xFF

    def process(self) -> None:
        """Run one dot of pixel transfer."""
        lcd = self.ppu.lcd
        self.map_y = (lcd.ly + lcd.scroll_y) & 0xFF
        self.map_x = (self.fetch_x + lcd.scroll_x) & 0xFF
        self.tile_y = ((lcd.ly + lcd.scroll_y) % 8) * 2

        if not self.ppu.line_ticks & 1:
            self.fetch()

        self.push_pixel()

    def fifo_reset(self) -> None:
        self.fifo.clear()
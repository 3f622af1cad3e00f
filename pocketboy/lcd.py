"""LCD control/status registers and palettes."""

from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Callable

COLORS_DEFAULT = (0xFFFFFFFF, 0xFFAAAAAA, 0xFF555555, 0xFF000000)

_BASE = 0xFF40
_FIELDS = (
    "lcdc",
    "lcds",
    "scroll_y",
    "scroll_x",
    "ly",
    "ly_compare",
    "dma",
    "bg_palette",
    "obj_palette0",
    "obj_palette1",
    "win_y",
    "win_x",
)


class LcdMode(IntEnum):
    HBLANK = 0
    VBLANK = 1
    OAM = 2
    XFER = 3


class StatSource(IntFlag):
    HBLANK = 1 << 3
    VBLANK = 1 << 4
    OAM = 1 << 5
    LYC = 1 << 6


class Lcd:
    """The registers at 0xFF40-0xFF4B and the colour tables they select."""

    def __init__(self, start_dma: Callable[[int], None]) -> None:
        self._start_dma = start_dma
        self.lcds = 0
        self.dma = 0
        self.reset()

    def reset(self) -> None:
        self.lcdc = 0x91
        self.scroll_x = 0
        self.scroll_y = 0
        self.ly = 0
        self.ly_compare = 0
        self.bg_palette = 0xFC
        self.obj_palette0 = 0xFF
        self.obj_palette1 = 0xFF
        self.win_y = 0
        self.win_x = 0
        self.bg_colors = list(COLORS_DEFAULT)
        self.sp1_colors = list(COLORS_DEFAULT)
        self.sp2_colors = list(COLORS_DEFAULT)

    @staticmethod
    def _field(address: int) -> str:
        offset = address - _BASE
        if not 0 <= offset < len(_FIELDS):
            raise ValueError(f"not an LCD register: {address:#06x}")
        return _FIELDS[offset]

    def read(self, address: int) -> int:
        return getattr(self, self._field(address)) & 0xFF

    def write(self, address: int, value: int) -> None:
        value &= 0xFF
        setattr(self, self._field(address), value)

        if address == 0xFF46:
            self._start_dma(value)

        if address == 0xFF47:
            self.update_palette(value, 0)
        elif address == 0xFF48:
            self.update_palette(value & 0b11111100, 1)
        elif address == 0xFF49:
            self.update_palette(value & 0b11111100, 2)

    def update_palette(self, palette_data: int, pal: int) -> None:
        """Map the four 2-bit shades of ``palette_data`` onto palette ``pal``."""
        target = {1: self.sp1_colors, 2: self.sp2_colors}.get(pal, self.bg_colors)
        target[:] = [COLORS_DEFAULT[(palette_data >> shift) & 0b11] for shift in (0, 2, 4, 6)]

    @property
    def mode(self) -> LcdMode:
        return LcdMode(self.lcds & 0b11)

    @mode.setter
    def mode(self, mode: LcdMode) -> None:
        self.lcds = (self.lcds & ~0b11 & 0xFF) | int(mode)

    @property
    def lyc(self) -> bool:
        return bool(self.lcds & (1 << 2))

    @lyc.setter
    def lyc(self, on: bool) -> None:
        if on:
            self.lcds |= 1 << 2
        else:
            self.lcds &= ~(1 << 2) & 0xFF

    def stat_interrupt(self, src: StatSource) -> bool:
        return bool(self.lcds & src)

    @property
    def bgw_enable(self) -> bool:
        return bool(self.lcdc & 1)

    @property
    def obj_enable(self) -> bool:
        return bool(self.lcdc & (1 << 1))

    @property
    def obj_height(self) -> int:
        return 16 if self.lcdc & (1 << 2) else 8

    @property
    def bg_map_area(self) -> int:
        return 0x9C00 if self.lcdc & (1 << 3) else 0x9800

    @property
    def bgw_data_area(self) -> int:
        return 0x8000 if self.lcdc & (1 << 4) else 0x8800

    @property
    def win_enable(self) -> bool:
        return bool(self.lcdc & (1 << 5))

    @property
    def win_map_area(self) -> int:
        return 0x9C00 if self.lcdc & (1 << 6) else 0x9800

    @property
    def lcd_enable(self) -> bool:
        return bool(self.lcdc & (1 << 7))
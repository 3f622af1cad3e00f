"""OAM DMA transfer."""

from __future__ import annotations

from typing import Callable

_OAM_SIZE = 0xA0


class Dma:
    """Copies 160 bytes from ``value * 0x100`` into OAM, one byte per tick."""

    def __init__(self, read: Callable[[int], int], oam_write: Callable[[int, int], None]) -> None:
        self._read = read
        self._oam_write = oam_write
        self.active = False
        self.byte = 0
        self.value = 0
        self.start_delay = 0

    def start(self, value: int) -> None:
        self.active = True
        self.byte = 0
        self.start_delay = 2
        self.value = value & 0xFF

    def tick(self) -> None:
        if not self.active:
            return
        if self.start_delay:
            self.start_delay -= 1
            return

        self._oam_write(self.byte, self._read(self.value * 0x100 + self.byte))
        self.byte += 1
        self.active = self.byte < _OAM_SIZE

    def transferring(self) -> bool:
        return self.active
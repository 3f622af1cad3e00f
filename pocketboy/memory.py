"""Work RAM and high RAM."""

from __future__ import annotations

_WRAM_BASE = 0xC000
_WRAM_SIZE = 0x2000
_HRAM_BASE = 0xFF80
_HRAM_SIZE = 0x80


class Ram:
    """The 8 KiB work RAM at 0xC000 and the 127-byte high RAM at 0xFF80."""

    def __init__(self) -> None:
        self.wram = bytearray(_WRAM_SIZE)
        self.hram = bytearray(_HRAM_SIZE)

    @staticmethod
    def _offset(address: int, base: int, size: int, label: str) -> int:
        offset = (address - base) & 0xFFFF
        if offset >= size:
            raise ValueError(f"invalid {label} address {address:#06x}")
        return offset

    def wram_read(self, address: int) -> int:
        return self.wram[self._offset(address, _WRAM_BASE, _WRAM_SIZE, "WRAM")]

    def wram_write(self, address: int, value: int) -> None:
        self.wram[self._offset(address, _WRAM_BASE, _WRAM_SIZE, "WRAM")] = value & 0xFF

    def hram_read(self, address: int) -> int:
        return self.hram[self._offset(address, _HRAM_BASE, _HRAM_SIZE, "HRAM")]

    def hram_write(self, address: int, value: int) -> None:
        self.hram[self._offset(address, _HRAM_BASE, _HRAM_SIZE, "HRAM")] = value & 0xFF
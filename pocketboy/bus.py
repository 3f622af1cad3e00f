"""The 16-bit address bus that routes reads and writes to each component."""

from __future__ import annotations


class Bus:
    """Maps the address space onto the cartridge, RAM, VRAM, OAM and I/O.

    Memory map:
        0x0000-0x7FFF cartridge ROM, 0x8000-0x9FFF VRAM,
        0xA000-0xBFFF cartridge RAM, 0xC000-0xDFFF work RAM,
        0xE000-0xFDFF echo RAM (unused), 0xFE00-0xFE9F OAM,
        0xFEA0-0xFEFF unusable, 0xFF00-0xFF7F I/O registers,
        0xFF80-0xFFFE high RAM, 0xFFFF interrupt enable register.
    """

    def __init__(self, cart, ram, io, dma, ppu, cpu) -> None:
        self.cart = cart
        self.ram = ram
        self.io = io
        self.dma = dma
        self.ppu = ppu
        self.cpu = cpu

    def read(self, address: int) -> int:
        address &= 0xFFFF
        if address < 0x8000:
            return self.cart.read(address)
        if address < 0xA000:
            return self.ppu.vram_read(address)
        if address < 0xC000:
            return self.cart.read(address)
        if address < 0xE000:
            return self.ram.wram_read(address)
        if address < 0xFE00:
            return 0
        if address < 0xFEA0:
            if self.dma.transferring():
                return 0xFF
            return self.ppu.oam_read(address)
        if address < 0xFF00:
            return 0
        if address < 0xFF80:
            return self.io.read(address)
        if address == 0xFFFF:
            return self.cpu.ie_register
        return self.ram.hram_read(address)

    def write(self, address: int, value: int) -> None:
        address &= 0xFFFF
        value &= 0xFF
        if address < 0x8000:
            self.cart.write(address, value)
        elif address < 0xA000:
            self.ppu.vram_write(address, value)
        elif address < 0xC000:
            self.cart.write(address, value)
        elif address < 0xE000:
            self.ram.wram_write(address, value)
        elif address < 0xFE00:
            pass
        elif address < 0xFEA0:
            if not self.dma.transferring():
                self.ppu.oam_write(address, value)
        elif address < 0xFF00:
            pass
        elif address < 0xFF80:
            self.io.write(address, value)
        elif address == 0xFFFF:
            self.cpu.ie_register = value
        else:
            self.ram.hram_write(address, value)

    def read16(self, address: int) -> int:
        lo = self.read(address)
        hi = self.read((address + 1) & 0xFFFF)
        return lo | (hi << 8)

    def write16(self, address: int, value: int) -> None:
        self.write((address + 1) & 0xFFFF, (value >> 8) & 0xFF)
        self.write(address, value & 0xFF)
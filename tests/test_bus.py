import pytest

from pocketboy.cartridge import Cartridge
from pocketboy.emulator import Emulator


@pytest.fixture
def emu():
    rom = bytearray(0x8000)
    rom[0x200] = 0xAB
    return Emulator(Cartridge(bytes(rom)))


def test_rom_read(emu):
    assert emu.bus.read(0x200) == 0xAB


def test_wram_round_trip(emu):
    emu.bus.write(0xC010, 0x5A)
    assert emu.bus.read(0xC010) == 0x5A
    assert emu.ram.wram[0x10] == 0x5A


def test_hram_round_trip(emu):
    emu.bus.write(0xFF80, 0x11)
    emu.bus.write(0xFFFE, 0x22)
    assert emu.bus.read(0xFF80) == 0x11
    assert emu.bus.read(0xFFFE) == 0x22


def test_vram_round_trip(emu):
    emu.bus.write(0x8001, 0x33)
    assert emu.bus.read(0x8001) == 0x33
    assert emu.ppu.vram[1] == 0x33


def test_ie_register(emu):
    emu.bus.write(0xFFFF, 0x1F)
    assert emu.cpu.ie_register == 0x1F
    assert emu.bus.read(0xFFFF) == 0x1F


def test_echo_ram_ignored(emu):
    emu.bus.write(0xE000, 0x44)
    assert emu.bus.read(0xE000) == 0
    assert emu.ram.wram[0] == 0


def test_unusable_region_reads_zero(emu):
    emu.bus.write(0xFEA0, 0x44)
    assert emu.bus.read(0xFEA0) == 0


def test_oam_round_trip(emu):
    emu.bus.write(0xFE05, 0x66)
    assert emu.bus.read(0xFE05) == 0x66
    assert emu.ppu.oam_read(5) == 0x66


def test_oam_blocked_during_dma(emu):
    emu.ppu.oam_write(0, 0x12)
    emu.dma.start(0xC0)
    assert emu.bus.read(0xFE00) == 0xFF
    emu.bus.write(0xFE00, 0x34)
    assert emu.ppu.oam_read(0) == 0x12


def test_io_timer_register(emu):
    emu.bus.write(0xFF06, 0x77)
    assert emu.bus.read(0xFF06) == 0x77
    assert emu.timer.tma == 0x77


def test_interrupt_flags_through_io(emu):
    emu.bus.write(0xFF0F, 0x04)
    assert emu.cpu.int_flags == 0x04
    assert emu.bus.read(0xFF0F) == 0x04


def test_write16_little_endian(emu):
    emu.bus.write16(0xC000, 0x1234)
    assert emu.bus.read(0xC000) == 0x34
    assert emu.bus.read(0xC001) == 0x12
    assert emu.bus.read16(0xC000) == 0x1234


def test_rom_only_cart_ignores_writes(emu):
    emu.bus.write(0x200, 0x00)
    assert emu.bus.read(0x200) == 0xAB
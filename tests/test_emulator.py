import threading
import time

import pytest

from pocketboy.cartridge import Cartridge
from pocketboy.emulator import Emulator, main


@pytest.fixture
def emu():
    return Emulator(Cartridge(bytes(0x8000)))


def test_cycles_count_four_ticks_per_cycle(emu):
    emu.cycles(3)
    assert emu.ticks == 12


def test_cycles_advance_timer(emu):
    emu.timer.div = 0
    emu.cycles(2)
    assert emu.timer.div == 8


def test_cycles_run_dma(emu):
    emu.bus.write(0xC000, 0x42)
    emu.bus.write(0xC09F, 0x24)
    emu.bus.write(0xFF46, 0xC0)
    assert emu.dma.transferring()
    emu.cycles(0xA0 + 2)
    assert not emu.dma.transferring()
    assert emu.ppu.oam_read(0) == 0x42
    assert emu.ppu.oam_read(0x9F) == 0x24


def test_cpu_is_wired_to_bus(emu):
    assert emu.cpu.bus is emu.bus
    emu.cpu.regs.sp = 0xC010
    emu.cpu.stack_push16(0xBEEF)
    assert emu.bus.read16(0xC00E) == 0xBEEF


def test_stop(emu):
    emu.running = True
    emu.stop()
    assert emu.running is False
    assert emu.die is True


def test_run_cpu_until_stopped(emu):
    emu.ppu.target_frame_time = 0
    thread = threading.Thread(target=emu.run_cpu, daemon=True)
    thread.start()
    deadline = time.monotonic() + 5
    while emu.ticks == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    emu.stop()
    thread.join(5)
    assert not thread.is_alive()
    assert emu.ticks > 0
    assert emu.cpu.regs.pc != 0x100


def test_main_without_arguments():
    assert main([]) == -1


def test_main_missing_rom(tmp_path):
    assert main([str(tmp_path / "missing.gb")]) == -2
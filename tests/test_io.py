from types import SimpleNamespace

import pytest

from pocketboy.gamepad import Gamepad
from pocketboy.io import IoRegisters
from pocketboy.lcd import Lcd
from pocketboy.timer import Timer


@pytest.fixture
def io():
    interrupts = SimpleNamespace(int_flags=0)
    timer = Timer(lambda it: None)
    lcd = Lcd(lambda value: None)
    return IoRegisters(Gamepad(), timer, lcd, interrupts)


def test_joypad_read_and_select(io):
    io.gamepad.state.start = True
    io.write(0xFF00, 0x10)
    assert io.gamepad.dir_sel is True
    assert io.read(0xFF00) == io.gamepad.output()
    assert io.read(0xFF00) & 0x08 == 0


def test_serial_round_trip(io):
    io.write(0xFF01, 0x41)
    io.write(0xFF02, 0x81)
    assert io.read(0xFF01) == 0x41
    assert io.read(0xFF02) == 0x81


def test_timer_registers(io):
    io.write(0xFF06, 0x33)
    io.write(0xFF07, 0x05)
    assert io.read(0xFF06) == 0x33
    assert io.timer.tac == 0x05
    io.timer.div = 0x1234
    io.write(0xFF04, 0x99)
    assert io.read(0xFF04) == 0


def test_interrupt_flags(io):
    io.write(0xFF0F, 0x1F)
    assert io.interrupts.int_flags == 0x1F
    assert io.read(0xFF0F) == 0x1F


def test_sound_range_ignored(io):
    io.write(0xFF26, 0x80)
    assert io.read(0xFF26) == 0


def test_lcd_range(io):
    io.write(0xFF42, 0x20)
    assert io.lcd.scroll_y == 0x20
    assert io.read(0xFF42) == 0x20


def test_unsupported_address_reads_zero(io):
    io.write(0xFF50, 0x12)
    assert io.read(0xFF50) == 0
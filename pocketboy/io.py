"""Dispatch of the I/O register range 0xFF00-0xFF7F."""

from __future__ import annotations

import logging

from .gamepad import Gamepad
from .lcd import Lcd
from .timer import Timer

_log = logging.getLogger(__name__)


class IoRegisters:
    """Routes I/O reads and writes to the joypad, serial, timer, interrupts and LCD.

    ``interrupts`` is any object with an ``int_flags`` attribute.
    """

    def __init__(self, gamepad: Gamepad, timer: Timer, lcd: Lcd, interrupts) -> None:
        self.gamepad = gamepad
        self.timer = timer
        self.lcd = lcd
        self.interrupts = interrupts
        self.serial_data = bytearray(2)

    def read(self, address: int) -> int:
        if address == 0xFF00:
            return self.gamepad.output()
        if address == 0xFF01:
            return self.serial_data[0]
        if address == 0xFF02:
            return self.serial_data[1]
        if 0xFF04 <= address <= 0xFF07:
            return self.timer.read(address)
        if address == 0xFF0F:
            return self.interrupts.int_flags & 0xFF
        if 0xFF10 <= address <= 0xFF3F:
            return 0
        if 0xFF40 <= address <= 0xFF4B:
            return self.lcd.read(address)

        _log.warning("UNSUPPORTED bus_read(%04X)", address)
        return 0

    def write(self, address: int, value: int) -> None:
        value &= 0xFF
        if address == 0xFF00:
            self.gamepad.set_sel(value)
        elif address == 0xFF01:
            self.serial_data[0] = value
        elif address == 0xFF02:
            self.serial_data[1] = value
        elif 0xFF04 <= address <= 0xFF07:
            self.timer.write(address, value)
        elif address == 0xFF0F:
            self.interrupts.int_flags = value
        elif 0xFF10 <= address <= 0xFF3F:
            pass
        elif 0xFF40 <= address <= 0xFF4B:
            self.lcd.write(address, value)
        else:
            _log.warning("UNSUPPORTED bus_write(%04X)", address)
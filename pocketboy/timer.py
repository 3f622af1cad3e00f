"""The DIV/TIMA/TMA/TAC timer."""

from __future__ import annotations

from typing import Callable

from .interrupts import InterruptType

# DIV bit whose falling edge clocks TIMA, indexed by TAC & 3.
_TAC_BITS = (9, 3, 5, 7)


class Timer:
    """Divider and programmable timer; requests a TIMER interrupt on reload."""

    def __init__(self, request_interrupt: Callable[[InterruptType], None]) -> None:
        self._request_interrupt = request_interrupt
        self.div = 0
        self.tima = 0
        self.tma = 0
        self.tac = 0

    def reset(self) -> None:
        """Set the divider to its power-on value."""
        self.div = 0xAC00

    def tick(self) -> None:
        prev_div = self.div
        self.div = (self.div + 1) & 0xFFFF

        mask = 1 << _TAC_BITS[self.tac & 0b11]
        falling_edge = bool(prev_div & mask) and not (self.div & mask)

        if falling_edge and self.tac & 0b100:
            self.tima = (self.tima + 1) & 0xFF
            if self.tima == 0xFF:
                self.tima = self.tma
                self._request_interrupt(InterruptType.TIMER)

    def read(self, address: int) -> int:
        if address == 0xFF04:
            return self.div >> 8
        if address == 0xFF05:
            return self.tima
        if address == 0xFF06:
            return self.tma
        if address == 0xFF07:
            return self.tac
        raise ValueError(f"not a timer register: {address:#06x}")

    def write(self, address: int, value: int) -> None:
        value &= 0xFF
        if address == 0xFF04:
            self.div = 0
        elif address == 0xFF05:
            self.tima = value
        elif address == 0xFF06:
            self.tma = value
        elif address == 0xFF07:
            self.tac = value
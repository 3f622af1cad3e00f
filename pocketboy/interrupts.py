"""Interrupt sources and dispatch."""

from __future__ import annotations

from enum import IntFlag
from typing import Optional


class InterruptType(IntFlag):
    """Bits of the interrupt flag and interrupt enable registers."""

    VBLANK = 1
    LCD_STAT = 2
    TIMER = 4
    SERIAL = 8
    JOYPAD = 16


_VECTORS = (
    (InterruptType.VBLANK, 0x40),
    (InterruptType.LCD_STAT, 0x48),
    (InterruptType.TIMER, 0x50),
    (InterruptType.SERIAL, 0x58),
    (InterruptType.JOYPAD, 0x60),
)


def handle_interrupts(cpu) -> Optional[InterruptType]:
    """Service the highest-priority pending and enabled interrupt.

    The current PC is pushed and execution jumps to the interrupt's vector;
    its request bit is cleared, the CPU leaves HALT and the master enable is
    turned off. Returns the serviced interrupt, or None if none was pending.
    """
    for it, vector in _VECTORS:
        if cpu.int_flags & it and cpu.ie_register & it:
            cpu.stack_push16(cpu.regs.pc)
            cpu.regs.pc = vector
            cpu.int_flags &= ~it & 0xFF
            cpu.halted = False
            cpu.int_master_enabled = False
            return it
    return None
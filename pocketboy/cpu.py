"""The processor core: registers, operand fetch, stack and the step loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .instructions import AddrMode, InType, Instruction, RegType, inst_to_str, instruction_by_opcode
from .interrupts import InterruptType, handle_interrupts
from .processors import get_processor

_log = logging.getLogger(__name__)

_PAIRS = {
    RegType.AF: ("a", "f"),
    RegType.BC: ("b", "c"),
    RegType.DE: ("d", "e"),
    RegType.HL: ("h", "l"),
}

_SINGLE = {
    RegType.A: "a",
    RegType.F: "f",
    RegType.B: "b",
    RegType.C: "c",
    RegType.D: "d",
    RegType.E: "e",
    RegType.H: "h",
    RegType.L: "l",
}


class CpuError(RuntimeError):
    """Raised when the CPU meets an instruction or operand it cannot handle."""


@dataclass
class Registers:
    """The eight 8-bit registers plus the program counter and stack pointer."""

    a: int = 0
    f: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    h: int = 0
    l: int = 0  # noqa: E741
    pc: int = 0
    sp: int = 0


class SerialDebug:
    """Collects bytes that a program sends out through the serial port."""

    def __init__(self) -> None:
        self.buffer = bytearray()

    @property
    def message(self) -> str:
        return self.buffer.decode("latin-1")

    def update(self, bus) -> None:
        """Take the pending serial byte, if a transfer was started."""
        if bus.read(0xFF02) == 0x81:
            self.buffer.append(bus.read(0xFF01) & 0xFF)
            bus.write(0xFF02, 0)


class Cpu:
    """The CPU. ``bus`` may be attached after construction."""

    def __init__(self, bus, cycles: Optional[Callable[[int], None]] = None) -> None:
        self.bus = bus
        self._cycles = cycles
        self.regs = Registers()
        self.fetched_data = 0
        self.mem_dest = 0
        self.dest_is_mem = False
        self.cur_opcode = 0
        self.cur_inst: Optional[Instruction] = None
        self.halted = False
        self.stepping = False
        self.int_master_enabled = False
        self.enabling_ime = False
        self.ie_register = 0
        self.int_flags = 0
        self.serial = SerialDebug()

    def cycles(self, n: int) -> None:
        if self._cycles is not None:
            self._cycles(n)

    def reset(self) -> None:
        """Set the registers to their state after the boot ROM."""
        self.regs.pc = 0x100
        self.regs.sp = 0xFFFE
        self.set_reg(RegType.AF, 0x01B0)
        self.set_reg(RegType.BC, 0x0013)
        self.set_reg(RegType.DE, 0x00D8)
        self.set_reg(RegType.HL, 0x014D)
        self.ie_register = 0
        self.int_flags = 0
        self.int_master_enabled = False
        self.enabling_ime = False

    def _fetch_instruction(self) -> None:
        self.cur_opcode = self.bus.read(self.regs.pc)
        self.regs.pc = (self.regs.pc + 1) & 0xFFFF
        self.cur_inst = instruction_by_opcode(self.cur_opcode)

    def _execute(self) -> None:
        proc = get_processor(self.cur_inst.type)
        if proc is None:
            raise CpuError(f"instruction not implemented: {self.cur_opcode:02X}")
        proc(self)

    def step(self) -> bool:
        """Run one instruction (or one halted cycle) and service interrupts."""
        if not self.halted:
            self._fetch_instruction()
            self.cycles(1)
            self.fetch_data()

            if _log.isEnabledFor(logging.DEBUG):
                _log.debug("%04X: %s", (self.regs.pc - 1) & 0xFFFF, self.disassemble())

            if self.cur_inst.type is InType.NONE:
                raise CpuError(f"Unknown Instruction! {self.cur_opcode:02X}")

            self.serial.update(self.bus)
            self._execute()
        else:
            self.cycles(1)
            if self.int_flags:
                self.halted = False

        if self.int_master_enabled:
            handle_interrupts(self)
            self.enabling_ime = False

        if self.enabling_ime:
            self.int_master_enabled = True

        return True

    def _read_pc8(self) -> int:
        value = self.bus.read(self.regs.pc)
        self.cycles(1)
        self.regs.pc = (self.regs.pc + 1) & 0xFFFF
        return value

    def _read_pc16(self) -> int:
        lo = self.bus.read(self.regs.pc)
        self.cycles(1)
        hi = self.bus.read((self.regs.pc + 1) & 0xFFFF)
        self.cycles(1)
        self.regs.pc = (self.regs.pc + 2) & 0xFFFF
        return lo | (hi << 8)

    def fetch_data(self) -> None:
        """Load the operand of the current instruction per its addressing mode."""
        self.mem_dest = 0
        self.dest_is_mem = False

        inst = self.cur_inst
        if inst is None:
            return

        mode = inst.mode
        M = AddrMode

        if mode is M.IMP:
            return
        if mode is M.R:
            self.fetched_data = self.read_reg(inst.reg_1)
        elif mode is M.R_R:
            self.fetched_data = self.read_reg(inst.reg_2)
        elif mode in (M.R_D8, M.R_A8, M.HL_SPR, M.D8):
            self.fetched_data = self._read_pc8()
        elif mode in (M.R_D16, M.D16):
            self.fetched_data = self._read_pc16()
        elif mode is M.MR_R:
            self.fetched_data = self.read_reg(inst.reg_2)
            self.mem_dest = self.read_reg(inst.reg_1)
            self.dest_is_mem = True
            if inst.reg_1 is RegType.C:
                self.mem_dest |= 0xFF00
        elif mode is M.R_MR:
            addr = self.read_reg(inst.reg_2)
            if inst.reg_2 is RegType.C:
                addr |= 0xFF00
            self.fetched_data = self.bus.read(addr)
            self.cycles(1)
        elif mode in (M.R_HLI, M.R_HLD):
            self.fetched_data = self.bus.read(self.read_reg(inst.reg_2))
            self.cycles(1)
            step = 1 if mode is M.R_HLI else -1
            self.set_reg(RegType.HL, (self.read_reg(RegType.HL) + step) & 0xFFFF)
        elif mode in (M.HLI_R, M.HLD_R):
            self.fetched_data = self.read_reg(inst.reg_2)
            self.mem_dest = self.read_reg(inst.reg_1)
            self.dest_is_mem = True
            step = 1 if mode is M.HLI_R else -1
            self.set_reg(RegType.HL, (self.read_reg(RegType.HL) + step) & 0xFFFF)
        elif mode is M.A8_R:
            self.mem_dest = self.bus.read(self.regs.pc) | 0xFF00
            self.dest_is_mem = True
            self.cycles(1)
            self.regs.pc = (self.regs.pc + 1) & 0xFFFF
        elif mode in (M.A16_R, M.D16_R):
            self.mem_dest = self._read_pc16()
            self.dest_is_mem = True
            self.fetched_data = self.read_reg(inst.reg_2)
        elif mode is M.MR_D8:
            self.fetched_data = self._read_pc8()
            self.mem_dest = self.read_reg(inst.reg_1)
            self.dest_is_mem = True
        elif mode is M.MR:
            self.mem_dest = self.read_reg(inst.reg_1)
            self.dest_is_mem = True
            self.fetched_data = self.bus.read(self.mem_dest)
            self.cycles(1)
        elif mode is M.R_A16:
            addr = self._read_pc16()
            self.fetched_data = self.bus.read(addr)
            self.cycles(1)
        else:
            raise CpuError(f"Unknown Addressing Mode! {int(mode)} ({self.cur_opcode:02X})")

    def read_reg(self, rt: RegType) -> int:
        if rt in _SINGLE:
            return getattr(self.regs, _SINGLE[rt])
        if rt in _PAIRS:
            hi, lo = _PAIRS[rt]
            return (getattr(self.regs, hi) << 8) | getattr(self.regs, lo)
        if rt is RegType.PC:
            return self.regs.pc
        if rt is RegType.SP:
            return self.regs.sp
        return 0

    def set_reg(self, rt: RegType, val: int) -> None:
        if rt in _SINGLE:
            setattr(self.regs, _SINGLE[rt], val & 0xFF)
        elif rt in _PAIRS:
            hi, lo = _PAIRS[rt]
            setattr(self.regs, hi, (val >> 8) & 0xFF)
            setattr(self.regs, lo, val & 0xFF)
        elif rt is RegType.PC:
            self.regs.pc = val & 0xFFFF
        elif rt is RegType.SP:
            self.regs.sp = val & 0xFFFF

    def read_reg8(self, rt: RegType) -> int:
        """Read an 8-bit operand; HL means the byte at address HL."""
        if rt in _SINGLE:
            return getattr(self.regs, _SINGLE[rt])
        if rt is RegType.HL:
            return self.bus.read(self.read_reg(RegType.HL))
        raise CpuError(f"invalid 8-bit register: {rt!r}")

    def set_reg8(self, rt: RegType, val: int) -> None:
        """Write an 8-bit operand; HL means the byte at address HL."""
        if rt in _SINGLE:
            setattr(self.regs, _SINGLE[rt], val & 0xFF)
        elif rt is RegType.HL:
            self.bus.write(self.read_reg(RegType.HL), val & 0xFF)
        else:
            raise CpuError(f"invalid 8-bit register: {rt!r}")

    def stack_push(self, data: int) -> None:
        self.regs.sp = (self.regs.sp - 1) & 0xFFFF
        self.bus.write(self.regs.sp, data & 0xFF)

    def stack_push16(self, data: int) -> None:
        self.stack_push((data >> 8) & 0xFF)
        self.stack_push(data & 0xFF)

    def stack_pop(self) -> int:
        value = self.bus.read(self.regs.sp)
        self.regs.sp = (self.regs.sp + 1) & 0xFFFF
        return value

    def stack_pop16(self) -> int:
        lo = self.stack_pop()
        hi = self.stack_pop()
        return (hi << 8) | lo

    def request_interrupt(self, it: InterruptType) -> None:
        self.int_flags = (self.int_flags | int(it)) & 0xFF

    def disassemble(self) -> str:
        """Render the current instruction with its fetched operand."""
        if self.cur_inst is None:
            raise CpuError("no instruction has been fetched")
        last_byte = 0
        if self.cur_inst.mode is AddrMode.A8_R:
            last_byte = self.bus.read((self.regs.pc - 1) & 0xFFFF)
        return inst_to_str(self.cur_inst, self.fetched_data, last_byte)
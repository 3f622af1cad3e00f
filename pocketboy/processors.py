"""Execution of decoded instructions.

Each processor takes the CPU object and acts on it. The CPU is expected to
provide ``regs`` (with ``a``, ``f``, ``pc`` and ``sp``), ``fetched_data``,
``mem_dest``, ``dest_is_mem``, ``cur_opcode``, ``cur_inst``, ``halted``,
``int_master_enabled`` and ``enabling_ime``. It also provides ``bus`` (with
``read``, ``write`` and ``write16``), a ``cycles(n)`` callable, and the
register and stack methods ``read_reg``, ``set_reg``, ``read_reg8``,
``set_reg8``, ``stack_push``, ``stack_push16`` and ``stack_pop``.
"""

from __future__ import annotations

import sys
from typing import Callable, Optional

from .instructions import AddrMode, CondType, InType, RegType

Processor = Callable[[object], None]

_FLAG_Z = 7
_FLAG_N = 6
_FLAG_H = 5
_FLAG_C = 4

_RT_LOOKUP = (
    RegType.B,
    RegType.C,
    RegType.D,
    RegType.E,
    RegType.H,
    RegType.L,
    RegType.HL,
    RegType.A,
)


def _signed8(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def _flag(cpu, bit: int) -> int:
    return (cpu.regs.f >> bit) & 1


def set_flags(cpu, z, n, h, c) -> None:
    """Set the Z, N, H and C flags; a value of None leaves that flag as it is."""
    f = cpu.regs.f
    for value, bit in ((z, _FLAG_Z), (n, _FLAG_N), (h, _FLAG_H), (c, _FLAG_C)):
        if value is None:
            continue
        if value:
            f |= 1 << bit
        else:
            f &= ~(1 << bit)
    cpu.regs.f = f & 0xFF


def decode_reg(reg: int) -> RegType:
    """Map the 3-bit register field of a CB opcode to a register."""
    if not 0 <= reg <= 0b111:
        return RegType.NONE
    return _RT_LOOKUP[reg]


def _proc_none(cpu) -> None:
    raise RuntimeError(f"invalid instruction: {cpu.cur_opcode:02X}")


def _proc_nop(cpu) -> None:
    pass


def _proc_cb(cpu) -> None:
    op = cpu.fetched_data & 0xFF
    reg = decode_reg(op & 0b111)
    bit = (op >> 3) & 0b111
    bit_op = (op >> 6) & 0b11
    reg_val = cpu.read_reg8(reg)

    cpu.cycles(1)
    if reg is RegType.HL:
        cpu.cycles(2)

    if bit_op == 1:
        set_flags(cpu, not (reg_val & (1 << bit)), 0, 1, None)
        return
    if bit_op == 2:
        cpu.set_reg8(reg, reg_val & ~(1 << bit) & 0xFF)
        return
    if bit_op == 3:
        cpu.set_reg8(reg, (reg_val | (1 << bit)) & 0xFF)
        return

    flag_c = _flag(cpu, _FLAG_C)

    if bit == 0:  # RLC
        result = (reg_val << 1) & 0xFF
        set_c = bool(reg_val & 0x80)
        if set_c:
            result |= 1
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, set_c)
    elif bit == 1:  # RRC
        result = ((reg_val >> 1) | (reg_val << 7)) & 0xFF
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, reg_val & 1)
    elif bit == 2:  # RL
        result = ((reg_val << 1) | flag_c) & 0xFF
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, reg_val & 0x80)
    elif bit == 3:  # RR
        result = ((reg_val >> 1) | (flag_c << 7)) & 0xFF
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, reg_val & 1)
    elif bit == 4:  # SLA
        result = (reg_val << 1) & 0xFF
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, reg_val & 0x80)
    elif bit == 5:  # SRA
        result = ((reg_val >> 1) | (reg_val & 0x80)) & 0xFF
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, reg_val & 1)
    elif bit == 6:  # SWAP
        result = ((reg_val & 0xF0) >> 4) | ((reg_val & 0x0F) << 4)
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, 0)
    else:  # SRL
        result = reg_val >> 1
        cpu.set_reg8(reg, result)
        set_flags(cpu, result == 0, 0, 0, reg_val & 1)


def _proc_rlca(cpu) -> None:
    u = cpu.regs.a
    c = (u >> 7) & 1
    cpu.regs.a = ((u << 1) | c) & 0xFF
    set_flags(cpu, 0, 0, 0, c)


def _proc_rrca(cpu) -> None:
    b = cpu.regs.a & 1
    cpu.regs.a = ((cpu.regs.a >> 1) | (b << 7)) & 0xFF
    set_flags(cpu, 0, 0, 0, b)


def _proc_rla(cpu) -> None:
    u = cpu.regs.a
    cf = _flag(cpu, _FLAG_C)
    c = (u >> 7) & 1
    cpu.regs.a = ((u << 1) | cf) & 0xFF
    set_flags(cpu, 0, 0, 0, c)


def _proc_rra(cpu) -> None:
    carry = _flag(cpu, _FLAG_C)
    new_c = cpu.regs.a & 1
    cpu.regs.a = ((cpu.regs.a >> 1) | (carry << 7)) & 0xFF
    set_flags(cpu, 0, 0, 0, new_c)


def _proc_stop(cpu) -> None:
    print("STOPPING!", file=sys.stderr)


def _proc_daa(cpu) -> None:
    u = 0
    fc = 0
    n = _flag(cpu, _FLAG_N)

    if _flag(cpu, _FLAG_H) or (not n and (cpu.regs.a & 0xF) > 9):
        u = 6
    if _flag(cpu, _FLAG_C) or (not n and cpu.regs.a > 0x99):
        u |= 0x60
        fc = 1

    cpu.regs.a = (cpu.regs.a - u if n else cpu.regs.a + u) & 0xFF
    set_flags(cpu, cpu.regs.a == 0, None, 0, fc)


def _proc_cpl(cpu) -> None:
    cpu.regs.a = ~cpu.regs.a & 0xFF
    set_flags(cpu, None, 1, 1, None)


def _proc_scf(cpu) -> None:
    set_flags(cpu, None, 0, 0, 1)


def _proc_ccf(cpu) -> None:
    set_flags(cpu, None, 0, 0, _flag(cpu, _FLAG_C) ^ 1)


def _proc_halt(cpu) -> None:
    cpu.halted = True


def _proc_and(cpu) -> None:
    cpu.regs.a = cpu.regs.a & cpu.fetched_data & 0xFF
    set_flags(cpu, cpu.regs.a == 0, 0, 1, 0)


def _proc_xor(cpu) -> None:
    cpu.regs.a = (cpu.regs.a ^ cpu.fetched_data) & 0xFF
    set_flags(cpu, cpu.regs.a == 0, 0, 0, 0)


def _proc_or(cpu) -> None:
    cpu.regs.a = (cpu.regs.a | cpu.fetched_data) & 0xFF
    set_flags(cpu, cpu.regs.a == 0, 0, 0, 0)


def _proc_cp(cpu) -> None:
    a = cpu.regs.a
    data = cpu.fetched_data
    n = a - data
    set_flags(cpu, n == 0, 1, (a & 0x0F) - (data & 0x0F) < 0, n < 0)


def _proc_di(cpu) -> None:
    cpu.int_master_enabled = False


def _proc_ei(cpu) -> None:
    cpu.enabling_ime = True


def _proc_ld(cpu) -> None:
    inst = cpu.cur_inst
    if cpu.dest_is_mem:
        if inst.reg_2.is_16_bit:
            cpu.cycles(1)
            cpu.bus.write16(cpu.mem_dest, cpu.fetched_data & 0xFFFF)
        else:
            cpu.bus.write(cpu.mem_dest, cpu.fetched_data & 0xFF)
        cpu.cycles(1)
        return

    if inst.mode is AddrMode.HL_SPR:
        base = cpu.read_reg(inst.reg_2)
        data = cpu.fetched_data
        hflag = (base & 0xF) + (data & 0xF) >= 0x10
        cflag = (base & 0xFF) + (data & 0xFF) >= 0x100
        set_flags(cpu, 0, 0, hflag, cflag)
        cpu.set_reg(inst.reg_1, (base + _signed8(data)) & 0xFFFF)
        return

    cpu.set_reg(inst.reg_1, cpu.fetched_data)


def _proc_ldh(cpu) -> None:
    if cpu.cur_inst.reg_1 is RegType.A:
        cpu.set_reg(RegType.A, cpu.bus.read(0xFF00 | (cpu.fetched_data & 0xFF)))
    else:
        cpu.bus.write(cpu.mem_dest, cpu.regs.a)
    cpu.cycles(1)


def _check_cond(cpu) -> bool:
    z = _flag(cpu, _FLAG_Z)
    c = _flag(cpu, _FLAG_C)
    cond = cpu.cur_inst.cond
    if cond is CondType.NONE:
        return True
    if cond is CondType.C:
        return bool(c)
    if cond is CondType.NC:
        return not c
    if cond is CondType.Z:
        return bool(z)
    if cond is CondType.NZ:
        return not z
    return False


def _goto_addr(cpu, addr: int, pushpc: bool) -> None:
    if _check_cond(cpu):
        if pushpc:
            cpu.cycles(2)
            cpu.stack_push16(cpu.regs.pc)
        cpu.regs.pc = addr & 0xFFFF
        cpu.cycles(1)


def _proc_jp(cpu) -> None:
    _goto_addr(cpu, cpu.fetched_data, False)


def _proc_jr(cpu) -> None:
    rel = _signed8(cpu.fetched_data)
    _goto_addr(cpu, (cpu.regs.pc + rel) & 0xFFFF, False)


def _proc_call(cpu) -> None:
    _goto_addr(cpu, cpu.fetched_data, True)


def _proc_rst(cpu) -> None:
    _goto_addr(cpu, cpu.cur_inst.param, True)


def _proc_ret(cpu) -> None:
    if cpu.cur_inst.cond is not CondType.NONE:
        cpu.cycles(1)

    if _check_cond(cpu):
        lo = cpu.stack_pop()
        cpu.cycles(1)
        hi = cpu.stack_pop()
        cpu.cycles(1)
        cpu.regs.pc = ((hi << 8) | lo) & 0xFFFF
        cpu.cycles(1)


def _proc_reti(cpu) -> None:
    cpu.int_master_enabled = True
    _proc_ret(cpu)


def _proc_pop(cpu) -> None:
    lo = cpu.stack_pop()
    cpu.cycles(1)
    hi = cpu.stack_pop()
    cpu.cycles(1)

    n = ((hi << 8) | lo) & 0xFFFF
    reg = cpu.cur_inst.reg_1
    cpu.set_reg(reg, n)
    if reg is RegType.AF:
        cpu.set_reg(reg, n & 0xFFF0)


def _proc_push(cpu) -> None:
    reg = cpu.cur_inst.reg_1
    hi = (cpu.read_reg(reg) >> 8) & 0xFF
    cpu.cycles(1)
    cpu.stack_push(hi)

    lo = cpu.read_reg(reg) & 0xFF
    cpu.cycles(1)
    cpu.stack_push(lo)

    cpu.cycles(1)


def _proc_inc(cpu) -> None:
    inst = cpu.cur_inst
    val = (cpu.read_reg(inst.reg_1) + 1) & 0xFFFF

    if inst.reg_1.is_16_bit:
        cpu.cycles(1)

    if inst.reg_1 is RegType.HL and inst.mode is AddrMode.MR:
        hl = cpu.read_reg(RegType.HL)
        val = (cpu.bus.read(hl) + 1) & 0xFF
        cpu.bus.write(hl, val)
    else:
        cpu.set_reg(inst.reg_1, val)
        val = cpu.read_reg(inst.reg_1)

    if (cpu.cur_opcode & 0x03) == 0x03:
        return

    set_flags(cpu, val == 0, 0, (val & 0x0F) == 0, None)


def _proc_dec(cpu) -> None:
    inst = cpu.cur_inst
    val = (cpu.read_reg(inst.reg_1) - 1) & 0xFFFF

    if inst.reg_1.is_16_bit:
        cpu.cycles(1)

    if inst.reg_1 is RegType.HL and inst.mode is AddrMode.MR:
        hl = cpu.read_reg(RegType.HL)
        val = (cpu.bus.read(hl) - 1) & 0xFFFF
        cpu.bus.write(hl, val & 0xFF)
    else:
        cpu.set_reg(inst.reg_1, val)
        val = cpu.read_reg(inst.reg_1)

    if (cpu.cur_opcode & 0x0B) == 0x0B:
        return

    set_flags(cpu, val == 0, 1, (val & 0x0F) == 0x0F, None)


def _proc_sub(cpu) -> None:
    reg = cpu.cur_inst.reg_1
    r = cpu.read_reg(reg)
    data = cpu.fetched_data
    val = (r - data) & 0xFFFF

    z = val == 0
    h = (r & 0xF) - (data & 0xF) < 0
    c = r - data < 0

    cpu.set_reg(reg, val)
    set_flags(cpu, z, 1, h, c)


def _proc_sbc(cpu) -> None:
    reg = cpu.cur_inst.reg_1
    r = cpu.read_reg(reg)
    data = cpu.fetched_data
    carry = _flag(cpu, _FLAG_C)
    val = (data + carry) & 0xFF

    z = r - val == 0
    h = (r & 0xF) - (data & 0xF) - carry < 0
    c = r - data - carry < 0

    cpu.set_reg(reg, (r - val) & 0xFFFF)
    set_flags(cpu, z, 1, h, c)


def _proc_adc(cpu) -> None:
    u = cpu.fetched_data
    a = cpu.regs.a
    c = _flag(cpu, _FLAG_C)

    cpu.regs.a = (a + u + c) & 0xFF
    set_flags(cpu, cpu.regs.a == 0, 0, (a & 0xF) + (u & 0xF) + c > 0xF, a + u + c > 0xFF)


def _proc_add(cpu) -> None:
    reg = cpu.cur_inst.reg_1
    r = cpu.read_reg(reg)
    data = cpu.fetched_data
    val = r + data
    is_16bit = reg.is_16_bit

    if is_16bit:
        cpu.cycles(1)

    if reg is RegType.SP:
        val = r + _signed8(data)

    z = (val & 0xFF) == 0
    h = (r & 0xF) + (data & 0xF) >= 0x10
    c = (r & 0xFF) + (data & 0xFF) >= 0x100

    if is_16bit:
        z = None
        h = (r & 0xFFF) + (data & 0xFFF) >= 0x1000
        c = r + data >= 0x10000

    if reg is RegType.SP:
        z = 0
        h = (r & 0xF) + (data & 0xF) >= 0x10
        c = (r & 0xFF) + (data & 0xFF) >= 0x100

    cpu.set_reg(reg, val & 0xFFFF)
    set_flags(cpu, z, 0, h, c)


_PROCESSORS: dict[InType, Processor] = {
    InType.NONE: _proc_none,
    InType.NOP: _proc_nop,
    InType.LD: _proc_ld,
    InType.LDH: _proc_ldh,
    InType.JP: _proc_jp,
    InType.DI: _proc_di,
    InType.POP: _proc_pop,
    InType.PUSH: _proc_push,
    InType.JR: _proc_jr,
    InType.CALL: _proc_call,
    InType.RET: _proc_ret,
    InType.RST: _proc_rst,
    InType.DEC: _proc_dec,
    InType.INC: _proc_inc,
    InType.ADD: _proc_add,
    InType.ADC: _proc_adc,
    InType.SUB: _proc_sub,
    InType.SBC: _proc_sbc,
    InType.AND: _proc_and,
    InType.XOR: _proc_xor,
    InType.OR: _proc_or,
    InType.CP: _proc_cp,
    InType.CB: _proc_cb,
    InType.RRCA: _proc_rrca,
    InType.RLCA: _proc_rlca,
    InType.RRA: _proc_rra,
    InType.RLA: _proc_rla,
    InType.STOP: _proc_stop,
    InType.HALT: _proc_halt,
    InType.DAA: _proc_daa,
    InType.CPL: _proc_cpl,
    InType.SCF: _proc_scf,
    InType.CCF: _proc_ccf,
    InType.EI: _proc_ei,
    InType.RETI: _proc_reti,
}


def get_processor(in_type: InType) -> Optional[Processor]:
    """Return the function executing ``in_type``, or None if it has none."""
    return _PROCESSORS.get(InType(in_type))
"""Instruction set tables: addressing modes, registers, opcodes and disassembly."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class AddrMode(IntEnum):
    """How an instruction obtains its operands."""

    IMP = 0
    R_D16 = 1
    R_R = 2
    MR_R = 3
    R = 4
    R_D8 = 5
    R_MR = 6
    R_HLI = 7
    R_HLD = 8
    HLI_R = 9
    HLD_R = 10
    R_A8 = 11
    A8_R = 12
    HL_SPR = 13
    D16 = 14
    D8 = 15
    D16_R = 16
    MR_D8 = 17
    MR = 18
    A16_R = 19
    R_A16 = 20


class RegType(IntEnum):
    """CPU registers, 8-bit ones first, then the 16-bit pairs."""

    NONE = 0
    A = 1
    F = 2
    B = 3
    C = 4
    D = 5
    E = 6
    H = 7
    L = 8
    AF = 9
    BC = 10
    DE = 11
    HL = 12
    SP = 13
    PC = 14

    @property
    def is_16_bit(self) -> bool:
        return self >= RegType.AF


class InType(IntEnum):
    """Instruction kinds."""

    NONE = 0
    NOP = 1
    LD = 2
    INC = 3
    DEC = 4
    RLCA = 5
    ADD = 6
    RRCA = 7
    STOP = 8
    RLA = 9
    JR = 10
    RRA = 11
    DAA = 12
    CPL = 13
    SCF = 14
    CCF = 15
    HALT = 16
    ADC = 17
    SUB = 18
    SBC = 19
    AND = 20
    XOR = 21
    OR = 22
    CP = 23
    POP = 24
    JP = 25
    PUSH = 26
    RET = 27
    CB = 28
    CALL = 29
    RETI = 30
    LDH = 31
    JPHL = 32
    DI = 33
    EI = 34
    RST = 35
    ERR = 36
    RLC = 37
    RRC = 38
    RL = 39
    RR = 40
    SLA = 41
    SRA = 42
    SWAP = 43
    SRL = 44
    BIT = 45
    RES = 46
    SET = 47


class CondType(IntEnum):
    """Branch conditions."""

    NONE = 0
    NZ = 1
    Z = 2
    NC = 3
    C = 4


@dataclass(frozen=True)
class Instruction:
    """One decoded opcode."""

    type: InType
    mode: AddrMode = AddrMode.IMP
    reg_1: RegType = RegType.NONE
    reg_2: RegType = RegType.NONE
    cond: CondType = CondType.NONE
    param: int = 0


def _build_table() -> tuple[Instruction, ...]:
    I, M, R, C = InType, AddrMode, RegType, CondType
    table: dict[int, Instruction] = {
        0x00: Instruction(I.NOP, M.IMP),
        0x01: Instruction(I.LD, M.R_D16, R.BC),
        0x02: Instruction(I.LD, M.MR_R, R.BC, R.A),
        0x03: Instruction(I.INC, M.R, R.BC),
        0x04: Instruction(I.INC, M.R, R.B),
        0x05: Instruction(I.DEC, M.R, R.B),
        0x06: Instruction(I.LD, M.R_D8, R.B),
        0x07: Instruction(I.RLCA),
        0x08: Instruction(I.LD, M.A16_R, R.NONE, R.SP),
        0x09: Instruction(I.ADD, M.R_R, R.HL, R.BC),
        0x0A: Instruction(I.LD, M.R_MR, R.A, R.BC),
        0x0B: Instruction(I.DEC, M.R, R.BC),
        0x0C: Instruction(I.INC, M.R, R.C),
        0x0D: Instruction(I.DEC, M.R, R.C),
        0x0E: Instruction(I.LD, M.R_D8, R.C),
        0x0F: Instruction(I.RRCA),
        0x10: Instruction(I.STOP),
        0x11: Instruction(I.LD, M.R_D16, R.DE),
        0x12: Instruction(I.LD, M.MR_R, R.DE, R.A),
        0x13: Instruction(I.INC, M.R, R.DE),
        0x14: Instruction(I.INC, M.R, R.D),
        0x15: Instruction(I.DEC, M.R, R.D),
        0x16: Instruction(I.LD, M.R_D8, R.D),
        0x17: Instruction(I.RLA),
        0x18: Instruction(I.JR, M.D8),
        0x19: Instruction(I.ADD, M.R_R, R.HL, R.DE),
        0x1A: Instruction(I.LD, M.R_MR, R.A, R.DE),
        0x1B: Instruction(I.DEC, M.R, R.DE),
        0x1C: Instruction(I.INC, M.R, R.E),
        0x1D: Instruction(I.DEC, M.R, R.E),
        0x1E: Instruction(I.LD, M.R_D8, R.E),
        0x1F: Instruction(I.RRA),
        0x20: Instruction(I.JR, M.D8, R.NONE, R.NONE, C.NZ),
        0x21: Instruction(I.LD, M.R_D16, R.HL),
        0x22: Instruction(I.LD, M.HLI_R, R.HL, R.A),
        0x23: Instruction(I.INC, M.R, R.HL),
        0x24: Instruction(I.INC, M.R, R.H),
        0x25: Instruction(I.DEC, M.R, R.H),
        0x26: Instruction(I.LD, M.R_D8, R.H),
        0x27: Instruction(I.DAA),
        0x28: Instruction(I.JR, M.D8, R.NONE, R.NONE, C.Z),
        0x29: Instruction(I.ADD, M.R_R, R.HL, R.HL),
        0x2A: Instruction(I.LD, M.R_HLI, R.A, R.HL),
        0x2B: Instruction(I.DEC, M.R, R.HL),
        0x2C: Instruction(I.INC, M.R, R.L),
        0x2D: Instruction(I.DEC, M.R, R.L),
        0x2E: Instruction(I.LD, M.R_D8, R.L),
        0x2F: Instruction(I.CPL),
        0x30: Instruction(I.JR, M.D8, R.NONE, R.NONE, C.NC),
        0x31: Instruction(I.LD, M.R_D16, R.SP),
        0x32: Instruction(I.LD, M.HLD_R, R.HL, R.A),
        0x33: Instruction(I.INC, M.R, R.SP),
        0x34: Instruction(I.INC, M.MR, R.HL),
        0x35: Instruction(I.DEC, M.MR, R.HL),
        0x36: Instruction(I.LD, M.MR_D8, R.HL),
        0x37: Instruction(I.SCF),
        0x38: Instruction(I.JR, M.D8, R.NONE, R.NONE, C.C),
        0x39: Instruction(I.ADD, M.R_R, R.HL, R.SP),
        0x3A: Instruction(I.LD, M.R_HLD, R.A, R.HL),
        0x3B: Instruction(I.DEC, M.R, R.SP),
        0x3C: Instruction(I.INC, M.R, R.A),
        0x3D: Instruction(I.DEC, M.R, R.A),
        0x3E: Instruction(I.LD, M.R_D8, R.A),
        0x3F: Instruction(I.CCF),
        0x76: Instruction(I.HALT),
        0xC0: Instruction(I.RET, M.IMP, R.NONE, R.NONE, C.NZ),
        0xC1: Instruction(I.POP, M.R, R.BC),
        0xC2: Instruction(I.JP, M.D16, R.NONE, R.NONE, C.NZ),
        0xC3: Instruction(I.JP, M.D16),
        0xC4: Instruction(I.CALL, M.D16, R.NONE, R.NONE, C.NZ),
        0xC5: Instruction(I.PUSH, M.R, R.BC),
        0xC6: Instruction(I.ADD, M.R_D8, R.A),
        0xC8: Instruction(I.RET, M.IMP, R.NONE, R.NONE, C.Z),
        0xC9: Instruction(I.RET),
        0xCA: Instruction(I.JP, M.D16, R.NONE, R.NONE, C.Z),
        0xCB: Instruction(I.CB, M.D8),
        0xCC: Instruction(I.CALL, M.D16, R.NONE, R.NONE, C.Z),
        0xCD: Instruction(I.CALL, M.D16),
        0xCE: Instruction(I.ADC, M.R_D8, R.A),
        0xD0: Instruction(I.RET, M.IMP, R.NONE, R.NONE, C.NC),
        0xD1: Instruction(I.POP, M.R, R.DE),
        0xD2: Instruction(I.JP, M.D16, R.NONE, R.NONE, C.NC),
        0xD4: Instruction(I.CALL, M.D16, R.NONE, R.NONE, C.NC),
        0xD5: Instruction(I.PUSH, M.R, R.DE),
        0xD6: Instruction(I.SUB, M.R_D8, R.A),
        0xD8: Instruction(I.RET, M.IMP, R.NONE, R.NONE, C.C),
        0xD9: Instruction(I.RETI),
        0xDA: Instruction(I.JP, M.D16, R.NONE, R.NONE, C.C),
        0xDC: Instruction(I.CALL, M.D16, R.NONE, R.NONE, C.C),
        0xDE: Instruction(I.SBC, M.R_D8, R.A),
        0xE0: Instruction(I.LDH, M.A8_R, R.NONE, R.A),
        0xE1: Instruction(I.POP, M.R, R.HL),
        0xE2: Instruction(I.LD, M.MR_R, R.C, R.A),
        0xE5: Instruction(I.PUSH, M.R, R.HL),
        0xE6: Instruction(I.AND, M.R_D8, R.A),
        0xE8: Instruction(I.ADD, M.R_D8, R.SP),
        0xE9: Instruction(I.JP, M.R, R.HL),
        0xEA: Instruction(I.LD, M.A16_R, R.NONE, R.A),
        0xEE: Instruction(I.XOR, M.R_D8, R.A),
        0xF0: Instruction(I.LDH, M.R_A8, R.A),
        0xF1: Instruction(I.POP, M.R, R.AF),
        0xF2: Instruction(I.LD, M.R_MR, R.A, R.C),
        0xF3: Instruction(I.DI),
        0xF5: Instruction(I.PUSH, M.R, R.AF),
        0xF6: Instruction(I.OR, M.R_D8, R.A),
        0xF8: Instruction(I.LD, M.HL_SPR, R.HL, R.SP),
        0xF9: Instruction(I.LD, M.R_R, R.SP, R.HL),
        0xFA: Instruction(I.LD, M.R_A16, R.A),
        0xFB: Instruction(I.EI),
        0xFE: Instruction(I.CP, M.R_D8, R.A),
    }

    # 0x40-0x7F: LD r,r' with (HL) as source/destination at index 6.
    operands = (R.B, R.C, R.D, R.E, R.H, R.L, R.HL, R.A)
    for opcode in range(0x40, 0x80):
        if opcode == 0x76:
            continue
        dst = operands[(opcode >> 3) & 7]
        src = operands[opcode & 7]
        if dst is R.HL:
            table[opcode] = Instruction(I.LD, M.MR_R, R.HL, src)
        elif src is R.HL:
            table[opcode] = Instruction(I.LD, M.R_MR, dst, R.HL)
        else:
            table[opcode] = Instruction(I.LD, M.R_R, dst, src)

    # 0x80-0xBF: ALU operations on A.
    alu = (I.ADD, I.ADC, I.SUB, I.SBC, I.AND, I.XOR, I.OR, I.CP)
    for opcode in range(0x80, 0xC0):
        kind = alu[(opcode >> 3) & 7]
        src = operands[opcode & 7]
        mode = M.R_MR if src is R.HL else M.R_R
        table[opcode] = Instruction(kind, mode, R.A, src)

    # RST vectors.
    for opcode in range(0xC7, 0x100, 8):
        table[opcode] = Instruction(I.RST, M.IMP, R.NONE, R.NONE, C.NONE, opcode & 0x38)

    blank = Instruction(I.NONE)
    return tuple(table.get(opcode, blank) for opcode in range(0x100))


_INSTRUCTIONS = _build_table()

_IN_NAMES = {
    InType.NONE: "<NONE>",
    InType.ERR: "IN_ERR",
    **{t: t.name for t in InType if InType.NOP <= t <= InType.RST},
    **{t: f"IN_{t.name}" for t in InType if t >= InType.RLC},
}

_REG_NAMES = {RegType.NONE: "<NONE>", **{r: r.name for r in RegType if r is not RegType.NONE}}


def instruction_by_opcode(opcode: int) -> Instruction:
    """Return the instruction for an 8-bit opcode; unused opcodes decode to InType.NONE."""
    return _INSTRUCTIONS[opcode & 0xFF]


def inst_name(in_type: InType) -> str:
    """Return the mnemonic for an instruction kind."""
    return _IN_NAMES[InType(in_type)]


def inst_to_str(instruction: Instruction, fetched_data: int, last_byte: int = 0) -> str:
    """Render an instruction and its fetched operand as assembly text.

    ``last_byte`` is the byte just before the program counter, used by the
    ``A8_R`` addressing mode.
    """
    name = inst_name(instruction.type)
    r1 = _REG_NAMES[instruction.reg_1]
    r2 = _REG_NAMES[instruction.reg_2]
    d8 = fetched_data & 0xFF
    d16 = fetched_data & 0xFFFF
    mode = instruction.mode

    if mode is AddrMode.IMP:
        return f"{name} "
    if mode in (AddrMode.R_D16, AddrMode.R_A16):
        return f"{name} {r1},${d16:04X}"
    if mode is AddrMode.R:
        return f"{name} {r1}"
    if mode is AddrMode.R_R:
        return f"{name} {r1},{r2}"
    if mode is AddrMode.MR_R:
        return f"{name} ({r1}),{r2}"
    if mode is AddrMode.MR:
        return f"{name} ({r1})"
    if mode is AddrMode.R_MR:
        return f"{name} {r1},({r2})"
    if mode in (AddrMode.R_D8, AddrMode.R_A8):
        return f"{name} {r1},${d8:02X}"
    if mode is AddrMode.R_HLI:
        return f"{name} {r1},({r2}+)"
    if mode is AddrMode.R_HLD:
        return f"{name} {r1},({r2}-)"
    if mode is AddrMode.HLI_R:
        return f"{name} ({r1}+),{r2}"
    if mode is AddrMode.HLD_R:
        return f"{name} ({r1}-),{r2}"
    if mode is AddrMode.A8_R:
        return f"{name} ${last_byte & 0xFF:02X},{r2}"
    if mode is AddrMode.HL_SPR:
        return f"{name} ({r1}),SP+{d8}"
    if mode is AddrMode.D8:
        return f"{name} ${d8:02X}"
    if mode is AddrMode.D16:
        return f"{name} ${d16:04X}"
    if mode is AddrMode.MR_D8:
        return f"{name} ({r1}),${d8:02X}"
    if mode is AddrMode.A16_R:
        return f"{name} (${d16:04X}),{r2}"
    raise ValueError(f"invalid addressing mode: {mode!r}")
from dataclasses import dataclass, field
from types import SimpleNamespace

from pocketboy.interrupts import InterruptType, handle_interrupts


@dataclass
class FakeCpu:
    int_flags: int = 0
    ie_register: int = 0
    halted: bool = True
    int_master_enabled: bool = True
    regs: SimpleNamespace = field(default_factory=lambda: SimpleNamespace(pc=0x1234))
    pushed: list = field(default_factory=list)

    def stack_push16(self, value):
        self.pushed.append(value)


def test_vblank_takes_priority():
    cpu = FakeCpu(int_flags=InterruptType.VBLANK | InterruptType.TIMER, ie_register=0xFF)
    assert handle_interrupts(cpu) is InterruptType.VBLANK
    assert cpu.regs.pc == 0x40
    assert cpu.pushed == [0x1234]
    assert cpu.int_flags == InterruptType.TIMER
    assert cpu.halted is False
    assert cpu.int_master_enabled is False


def test_disabled_interrupt_is_skipped():
    cpu = FakeCpu(int_flags=InterruptType.VBLANK | InterruptType.JOYPAD, ie_register=InterruptType.JOYPAD)
    assert handle_interrupts(cpu) is InterruptType.JOYPAD
    assert cpu.regs.pc == 0x60
    assert cpu.int_flags == InterruptType.VBLANK


def test_nothing_pending_leaves_state():
    cpu = FakeCpu(int_flags=InterruptType.TIMER, ie_register=InterruptType.SERIAL)
    assert handle_interrupts(cpu) is None
    assert cpu.regs.pc == 0x1234
    assert cpu.pushed == []
    assert cpu.halted is True
    assert cpu.int_master_enabled is True


def test_each_source_has_distinct_vector():
    vectors = set()
    for it in InterruptType:
        cpu = FakeCpu(int_flags=it, ie_register=it)
        assert handle_interrupts(cpu) is it
        assert cpu.int_flags == 0
        vectors.add(cpu.regs.pc)
    assert vectors == {0x40, 0x48, 0x50, 0x58, 0x60}


def test_only_one_serviced_per_call():
    cpu = FakeCpu(int_flags=0x1F, ie_register=0x1F)
    serviced = []
    while (it := handle_interrupts(cpu)) is not None:
        serviced.append(it)
    assert serviced == list(InterruptType)
    assert len(cpu.pushed) == len(InterruptType)
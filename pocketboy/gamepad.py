"""Joypad state and the P1 register."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GamepadState:
    """Which buttons are currently held."""

    start: bool = False
    select: bool = False
    a: bool = False
    b: bool = False
    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False


@dataclass
class Gamepad:
    """The joypad with its button/direction selection lines."""

    button_sel: bool = False
    dir_sel: bool = False
    state: GamepadState = field(default_factory=GamepadState)

    def set_sel(self, value: int) -> None:
        self.button_sel = bool(value & 0x20)
        self.dir_sel = bool(value & 0x10)

    def output(self) -> int:
        """Return the P1 register value; pressed buttons read as cleared bits."""
        output = 0xCF
        s = self.state

        if not self.button_sel:
            for pressed, bit in ((s.start, 3), (s.select, 2), (s.a, 0), (s.b, 1)):
                if pressed:
                    output &= ~(1 << bit)

        if not self.dir_sel:
            for pressed, bit in ((s.left, 1), (s.right, 0), (s.up, 2), (s.down, 3)):
                if pressed:
                    output &= ~(1 << bit)

        return output & 0xFF
"""Wires the components together and runs the emulation loop."""

from __future__ import annotations

import sys
import threading
import time
from typing import Optional, Sequence

from .bus import Bus
from .cartridge import Cartridge, CartridgeError
from .cpu import Cpu
from .dma import Dma
from .gamepad import Gamepad
from .io import IoRegisters
from .lcd import Lcd
from .memory import Ram
from .ppu import Ppu
from .timer import Timer

_POST_BOOT_DIV = 0xABCC


class Emulator:
    """A complete machine built around one cartridge."""

    def __init__(self, cart: Cartridge) -> None:
        self.cart = cart
        self.paused = False
        self.running = False
        self.die = False
        self.ticks = 0

        self.ram = Ram()
        self.gamepad = Gamepad()
        self.cpu = Cpu(None, self.cycles)
        self.timer = Timer(self.cpu.request_interrupt)
        self.dma = Dma(self._bus_read, self._oam_write)
        self.lcd = Lcd(self.dma.start)
        self.ppu = Ppu(self.lcd, self._bus_read, self.cpu.request_interrupt)
        self.ppu.on_second = self._on_second
        self.io = IoRegisters(self.gamepad, self.timer, self.lcd, self.cpu)
        self.bus = Bus(self.cart, self.ram, self.io, self.dma, self.ppu, self.cpu)
        self.cpu.bus = self.bus

    def _bus_read(self, address: int) -> int:
        return self.bus.read(address)

    def _oam_write(self, address: int, value: int) -> None:
        self.ppu.oam_write(address, value)

    def _on_second(self, fps: int) -> None:
        if self.cart.need_save():
            self.cart.battery_save()

    def cycles(self, cpu_cycles: int) -> None:
        """Advance the machine by ``cpu_cycles`` machine cycles (4 dots each)."""
        for _ in range(cpu_cycles):
            for _ in range(4):
                self.ticks += 1
                self.timer.tick()
                self.ppu.tick()
            self.dma.tick()

    def run_cpu(self) -> None:
        """Reset the machine and step the CPU until stopped."""
        self.timer.reset()
        self.cpu.reset()
        self.timer.div = _POST_BOOT_DIV
        self.ppu.reset()

        self.running = True
        self.paused = False
        self.ticks = 0

        while self.running:
            if self.paused:
                time.sleep(0.01)
                continue
            if not self.cpu.step():
                print("CPU Stopped")
                return

    def stop(self) -> None:
        self.running = False
        self.die = True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load the ROM named on the command line and run it in a window."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: emu <rom_file>")
        return -1

    try:
        cart = Cartridge.load(args[0])
    except CartridgeError:
        print(f"Failed to load ROM file: {args[0]}")
        return -2

    print("Cart loaded..")

    from .ui import Ui

    emulator = Emulator(cart)
    ui = Ui(emulator)

    cpu_thread = threading.Thread(target=emulator.run_cpu, name="cpu", daemon=True)
    cpu_thread.start()

    prev_frame = 0
    while not emulator.die:
        time.sleep(0.001)
        ui.handle_events()
        if prev_frame != emulator.ppu.current_frame:
            ui.update()
        prev_frame = emulator.ppu.current_frame

    emulator.stop()
    cpu_thread.join(timeout=1.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
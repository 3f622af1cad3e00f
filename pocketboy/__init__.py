"""A Game Boy emulator: CPU, PPU, timer, DMA, joypad, MBC1 cartridges and a pygame front end."""

__version__ = "0.1.0"
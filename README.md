# pocketboy

pocketboy is an emulator for the original (monochrome) Game Boy. It includes:

- an SM83 CPU interpreter covering the base and CB-prefixed instruction sets,
- a PPU built around a pixel FIFO, with background, window and sprite rendering,
- a timer, OAM DMA, joypad input and interrupt handling,
- ROM-only and MBC1 cartridges. For cartridge type `0x03` (MBC1+RAM+BATTERY),
  cartridge RAM is loaded from and saved to `<rom>.battery` next to the ROM.

The screen is drawn in a pygame window. To the right of the game screen the
same window shows a viewer of the 384 tiles held in VRAM at `0x8000`.

## Installation

```
pip install .
```

To run the test suite, install the test extra and run pytest:

```
pip install .[test]
pytest
```

## Running a ROM

```
pocketboy path/to/game.gb
```

When the cartridge loads, the header is printed: title, type, ROM size, RAM
size code, licensee, version and whether the header checksum passed. If no ROM
path is given, a usage line is printed and the command exits with a non-zero
status; the same happens if the file cannot be opened.

### Controls

| Key         | Game Boy button |
|-------------|-----------------|
| Arrow keys  | D-pad           |
| X           | A               |
| Z           | B               |
| Enter       | Start           |
| Tab         | Select          |

Close the window to quit.

## Using it as a library

The components can be used on their own:

```python
from pocketboy.instructions import instruction_by_opcode, inst_name
from pocketboy.cartridge import Cartridge

inst = instruction_by_opcode(0xC3)
print(inst_name(inst.type))          # JP

cart = Cartridge.load("game.gb")     # raises CartridgeError if it cannot be read
print(cart.type_name(), cart.lic_name(), cart.checksum_ok())
```

`pocketboy.emulator.Emulator` connects a `Cartridge` to the CPU, bus, RAM, PPU,
LCD, timer, DMA and gamepad. `Emulator.run_cpu()` resets the machine and steps
the CPU until `Emulator.stop()` is called; the rendered frame is in
`Emulator.ppu.video_buffer` as 160×144 ARGB values. Bytes a program sends over
the serial port are collected in `Emulator.cpu.serial.message`. With the
`pocketboy.cpu` logger at DEBUG level, each executed instruction is logged
in disassembled form.

## What it does not do

- There is no sound: the audio registers are ignored and read as zero.
- Only MBC1 banking is implemented. Other cartridge types are read as plain
  ROM and writes to them are ignored.
- Game Boy Color features are not emulated.
- There are no save states; only battery-backed cartridge RAM is stored.
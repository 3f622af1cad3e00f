"""Cartridge ROM loading, header parsing, MBC1 banking and battery saves."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

HEADER_OFFSET = 0x100
HEADER_SIZE = 0x50
RAM_BANK_SIZE = 0x2000
ROM_BANK_SIZE = 0x4000

_HEADER_FORMAT = struct.Struct("<4s48s16sHBBBBBBBBH")

_ROM_TYPES = (
    "ROM ONLY",
    "MBC1",
    "MBC1+RAM",
    "MBC1+RAM+BATTERY",
    "0x04 ???",
    "MBC2",
    "MBC2+BATTERY",
    "0x07 ???",
    "ROM+RAM 1",
    "ROM+RAM+BATTERY 1",
    "0x0A ???",
    "MMM01",
    "MMM01+RAM",
    "MMM01+RAM+BATTERY",
    "0x0E ???",
    "MBC3+TIMER+BATTERY",
    "MBC3+TIMER+RAM+BATTERY 2",
    "MBC3",
    "MBC3+RAM 2",
    "MBC3+RAM+BATTERY 2",
    "0x14 ???",
    "0x15 ???",
    "0x16 ???",
    "0x17 ???",
    "0x18 ???",
    "MBC5",
    "MBC5+RAM",
    "MBC5+RAM+BATTERY",
    "MBC5+RUMBLE",
    "MBC5+RUMBLE+RAM",
    "MBC5+RUMBLE+RAM+BATTERY",
    "0x1F ???",
    "MBC6",
    "0x21 ???",
    "MBC7+SENSOR+RUMBLE+RAM+BATTERY",
)

_LIC_CODES = {
    0x00: "None",
    0x01: "Nintendo R&D1",
    0x08: "Capcom",
    0x13: "Electronic Arts",
    0x18: "Hudson Soft",
    0x19: "b-ai",
    0x20: "kss",
    0x22: "pow",
    0x24: "PCM Complete",
    0x25: "san-x",
    0x28: "Kemco Japan",
    0x29: "seta",
    0x30: "Viacom",
    0x31: "Nintendo",
    0x32: "Bandai",
    0x33: "Ocean/Acclaim",
    0x34: "Konami",
    0x35: "Hector",
    0x37: "Taito",
    0x38: "Hudson",
    0x39: "Banpresto",
    0x41: "Ubi Soft",
    0x42: "Atlus",
    0x44: "Malibu",
    0x46: "angel",
    0x47: "Bullet-Proof",
    0x49: "irem",
    0x50: "Absolute",
    0x51: "Acclaim",
    0x52: "Activision",
    0x53: "American sammy",
    0x54: "Konami",
    0x55: "Hi tech entertainment",
    0x56: "LJN",
    0x57: "Matchbox",
    0x58: "Mattel",
    0x59: "Milton Bradley",
    0x60: "Titus",
    0x61: "Virgin",
    0x64: "LucasArts",
    0x67: "Ocean",
    0x69: "Electronic Arts",
    0x70: "Infogrames",
    0x71: "Interplay",
    0x72: "Broderbund",
    0x73: "sculptured",
    0x75: "sci",
    0x78: "THQ",
    0x79: "Accolade",
    0x80: "misawa",
    0x83: "lozc",
    0x86: "Tokuma Shoten Intermedia",
    0x87: "Tsukuda Original",
    0x91: "Chunsoft",
    0x92: "Video system",
    0x93: "Ocean/Acclaim",
    0x95: "Varie",
    0x96: "Yonezawa/s’pal",
    0x97: "Kaneko",
    0x99: "Pack in soft",
    0xA4: "Konami (Yu-Gi-Oh!)",
}

# RAM size code -> number of 8 KiB banks.
_RAM_BANK_COUNTS = {2: 1, 3: 4, 4: 16, 5: 8}


class CartridgeError(Exception):
    """Raised when a cartridge cannot be opened or parsed."""


@dataclass(frozen=True)
class RomHeader:
    """The cartridge header found at 0x0100-0x014F."""

    entry: bytes
    logo: bytes
    title: str
    new_lic_code: int
    sgb_flag: int
    type: int
    rom_size: int
    ram_size: int
    dest_code: int
    lic_code: int
    version: int
    checksum: int
    global_checksum: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "RomHeader":
        """Parse the 0x50 header bytes (the slice starting at 0x0100)."""
        if len(data) < HEADER_SIZE:
            raise CartridgeError(f"header needs {HEADER_SIZE} bytes, got {len(data)}")
        (entry, logo, raw_title, new_lic, sgb, kind, rom_size, ram_size,
         dest, lic, version, checksum, global_checksum) = _HEADER_FORMAT.unpack_from(data)
        title = raw_title[:15].split(b"\0", 1)[0].decode("latin-1")
        return cls(entry, logo, title, new_lic, sgb, kind, rom_size, ram_size,
                   dest, lic, version, checksum, global_checksum)


class Cartridge:
    """A loaded cartridge with MBC1 ROM/RAM banking and battery-backed RAM."""

    def __init__(self, rom: bytes, filename: Optional[str] = None) -> None:
        if len(rom) < HEADER_OFFSET + HEADER_SIZE:
            raise CartridgeError(f"ROM too small: {len(rom)} bytes")
        self.rom = bytearray(rom)
        # The last title byte is forced to a terminator, in the ROM image too.
        self.rom[0x143] = 0
        self.filename = filename
        self.header = RomHeader.from_bytes(bytes(self.rom[HEADER_OFFSET:HEADER_OFFSET + HEADER_SIZE]))

        self.ram_enabled = False
        self.ram_banking = False
        self.banking_mode = 0
        self.rom_bank_value = 0
        self.ram_bank_value = 0
        self._rom_bank_offset = ROM_BANK_SIZE

        count = _RAM_BANK_COUNTS.get(self.header.ram_size, 0)
        self.ram_banks: list[Optional[bytearray]] = [
            bytearray(RAM_BANK_SIZE) if i < count else None for i in range(16)
        ]
        self.ram_bank = self.ram_banks[0]

        self.battery = self.header.type == 3
        self._need_save = False

        if self.battery:
            self.battery_load()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Cartridge":
        """Read a ROM file, print its header summary and return the cartridge."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise CartridgeError(f"Failed to open: {path}") from exc
        print(f"Opened: {path}")
        cart = cls(data, str(path))
        for line in cart._summary():
            print(line)
        return cart

    def _summary(self) -> list[str]:
        h = self.header
        return [
            "Cartridge Loaded:",
            f"\t Title    : {h.title}",
            f"\t Type     : {h.type:02X} ({self.type_name()})",
            f"\t ROM Size : {32 << h.rom_size} KB",
            f"\t RAM Size : {h.ram_size:02X}",
            f"\t LIC Code : {h.lic_code:02X} ({self.lic_name()})",
            f"\t ROM Vers : {h.version:02X}",
            f"\t Checksum : {h.checksum:02X} ({'PASSED' if self.checksum_ok() else 'FAILED'})",
        ]

    @property
    def is_mbc1(self) -> bool:
        return 1 <= self.header.type <= 3

    def type_name(self) -> str:
        if self.header.type <= 0x22:
            return _ROM_TYPES[self.header.type]
        return "UNKNOWN"

    def lic_name(self) -> str:
        if self.header.new_lic_code <= 0xA4:
            return _LIC_CODES.get(self.header.lic_code, "UNKNOWN")
        return "UNKNOWN"

    def checksum_ok(self) -> bool:
        x = 0
        for byte in self.rom[0x134:0x14D]:
            x = (x - byte - 1) & 0xFFFF
        return bool(x & 0xFF)

    def need_save(self) -> bool:
        return self._need_save

    @property
    def _battery_path(self) -> Optional[Path]:
        return None if self.filename is None else Path(f"{self.filename}.battery")

    def battery_load(self) -> None:
        """Fill the current RAM bank from the battery file, if there is one."""
        path = self._battery_path
        if self.ram_bank is None or path is None:
            return
        try:
            with path.open("rb") as fp:
                data = fp.read(RAM_BANK_SIZE)
        except OSError:
            print(f"FAILED TO OPEN: {path}", file=sys.stderr)
            return
        self.ram_bank[: len(data)] = data

    def battery_save(self) -> None:
        """Write the current RAM bank to the battery file."""
        path = self._battery_path
        if self.ram_bank is None or path is None:
            return
        try:
            with path.open("wb") as fp:
                fp.write(self.ram_bank)
        except OSError:
            print(f"FAILED TO OPEN: {path}", file=sys.stderr)

    def _rom_byte(self, index: int) -> int:
        return self.rom[index] if 0 <= index < len(self.rom) else 0xFF

    def read(self, address: int) -> int:
        if not self.is_mbc1 or address < 0x4000:
            return self._rom_byte(address)

        if address & 0xE000 == 0xA000:
            if not self.ram_enabled or self.ram_bank is None:
                return 0xFF
            return self.ram_bank[address - 0xA000]

        return self._rom_byte(self._rom_bank_offset + address - 0x4000)

    def _select_ram_bank(self) -> None:
        if self._need_save:
            self.battery_save()
        self.ram_bank = self.ram_banks[self.ram_bank_value]

    def write(self, address: int, value: int) -> None:
        if not self.is_mbc1:
            return
        value &= 0xFF
        region = address & 0xE000

        if address < 0x2000:
            self.ram_enabled = (value & 0xF) == 0xA

        if region == 0x2000:
            if value == 0:
                value = 1
            self.rom_bank_value = value & 0b11111
            self._rom_bank_offset = ROM_BANK_SIZE * self.rom_bank_value

        if region == 0x4000:
            self.ram_bank_value = value & 0b11
            if self.ram_banking:
                self._select_ram_bank()

        if region == 0x6000:
            self.banking_mode = value & 1
            self.ram_banking = bool(self.banking_mode)
            if self.ram_banking:
                self._select_ram_bank()

        if region == 0xA000:
            if not self.ram_enabled or self.ram_bank is None:
                return
            self.ram_bank[address - 0xA000] = value
            if self.battery:
                self._need_save = True
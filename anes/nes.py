"""NES memory map: CPU RAM, PPU registers and memory, sprites, controllers, mappers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple

from anes.input import Direction, InputDevice
from anes.messages import MessageBuffer
from anes.rom import PRG_PAGE_SIZE, MapperType, Rom, RomError

PPU_SIZE = 0x4000
RAM_SIZE = 0x10000
SPRITE_MEM_SIZE = 256
PATTERN_SIZE = 16


class Mirroring(enum.IntEnum):
    HORIZONTAL = 0
    VERTICAL = 1


class PPUMemory:
    """The 16K PPU address space with name-table mirroring and change tracking.

    ``palette_dirty`` marks the 32 palette entries written since they were last
    taken up; ``dirty_patterns`` holds (table, index) pairs of changed patterns.
    """

    def __init__(self, mirroring: Mirroring = Mirroring.HORIZONTAL) -> None:
        self.memory = bytearray(PPU_SIZE)
        self.mirroring = Mirroring(mirroring)
        self.palette_dirty: List[bool] = [False] * 32
        self.palette_updated = False
        self.dirty_patterns: Set[Tuple[int, int]] = set()
        self.patterns_updated = False
        self.clear()

    def clear(self) -> None:
        """Zero the memory and mark every palette entry and pattern for refresh."""
        self.memory[:] = bytes(PPU_SIZE)
        self.palette_dirty = [True] * 32
        self.palette_updated = True
        self.dirty_patterns = {(t, i) for t in range(2) for i in range(256)}
        self.patterns_updated = True

    def write(self, address: int, value: int) -> None:
        a = address & (PPU_SIZE - 1)
        d = value & 0xFF
        mem = self.memory
        if 0x3F00 <= a < 0x3F20:
            if mem[a] == d:
                return
            if not a & 0xF:
                for i in range(8):
                    mem[0x3F00 + i * 4] = d
                    self.palette_dirty[i * 4] = True
                self.palette_updated = True
            elif a & 3:
                mem[a] = d
                self.palette_dirty[a - 0x3F00] = True
                self.palette_updated = True
            return
        mem[a] = d
        if a < 0x2000:
            self.dirty_patterns.add((a // 0x1000, (a & 0xFFF) // PATTERN_SIZE))
            self.patterns_updated = True
        elif a < 0x3000:
            mirror = 0x400 if self.mirroring == Mirroring.HORIZONTAL else 0x800
            mem[a ^ mirror] = d

    def read(self, address: int) -> int:
        return self.memory[address & (PPU_SIZE - 1)]


def _copy_chr(ppu: PPUMemory, page: bytes) -> None:
    ppu.memory[0:len(page)] = page
    ppu.dirty_patterns.update((t, i) for t in range(2) for i in range(256))
    ppu.patterns_updated = True


@dataclass(frozen=True)
class Sprite:
    y: int
    pattern: int
    attributes: int
    x: int

    @property
    def palette(self) -> int:
        return self.attributes & 3

    @property
    def flip_x(self) -> bool:
        return bool(self.attributes & 0x40)

    @property
    def flip_y(self) -> bool:
        return bool(self.attributes & 0x80)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Sprite":
        return cls(data[0], data[1], data[2], data[3])


_JOY_BITS = {
    1: ("but", Direction.BUT1),
    2: ("but", Direction.BUT0),
    3: ("but", Direction.BUT2),
    4: ("but", Direction.BUT3),
    5: ("stat", Direction.UP),
    6: ("stat", Direction.DOWN),
    7: ("stat", Direction.LEFT),
    8: ("stat", Direction.RIGHT),
}


class NESHardware:
    """The NES registers and memory as seen from the CPU."""

    def __init__(
        self,
        rom: Rom,
        messages: Optional[MessageBuffer] = None,
        controllers: Sequence[Optional[InputDevice]] = (None, None),
        scanline: Optional[Callable[[], int]] = None,
    ) -> None:
        self.rom = rom
        self.messages = messages if messages is not None else MessageBuffer()
        self.controllers: List[Optional[InputDevice]] = list(controllers)
        self.scanline: Callable[[], int] = scanline or (lambda: 0)
        self.ppu = PPUMemory()
        self.messages.add(f"{PPU_SIZE // 1024}K PPU address space created", 2)
        self.ram = bytearray(RAM_SIZE)
        self.messages.add("64K CPU address space created", 2)
        self.sprite_memory = bytearray(SPRITE_MEM_SIZE)
        self.messages.add("256 byte sprite mem created", 2)
        self.ppu_address = 0
        self.ppu_read_latch = False
        self.sprite_address = 0
        self.scroll_x = 0
        self.scroll_y = 0
        self.scroll_scanline = 0
        self.vblank = False
        self.hitflag = False
        self.frame = False
        self.nametable_shown = 0
        self.vrom_switch = 0
        self.konami_switch = 0
        self.cpu_paused = True

    @property
    def mirroring(self) -> Mirroring:
        return self.ppu.mirroring

    def reset(self) -> None:
        """Clear memory and map the ROM pages into the address spaces."""
        self.scroll_x = self.scroll_y = 0
        self.ppu_address = 0
        self.ppu_read_latch = False
        self.sprite_address = 0
        self.nametable_shown = 0
        self.ppu.clear()
        self.ram[:] = bytes(RAM_SIZE)
        self.sprite_memory[:] = bytes(SPRITE_MEM_SIZE)
        header = self.rom.header
        self.ppu.mirroring = (
            Mirroring.VERTICAL if header.vertical_mirroring else Mirroring.HORIZONTAL
        )
        prg = self.rom.prg_pages
        if not prg:
            self.messages.error("No rom data!")
            raise RomError("No rom data!")
        self.ram[0xC000:0xC000 + PRG_PAGE_SIZE] = prg[-1]
        if len(prg) >= 2:
            self.ram[0x8000:0x8000 + PRG_PAGE_SIZE] = prg[0]
        if self.rom.chr_pages:
            _copy_chr(self.ppu, self.rom.chr_pages[0])

        bank = header.bank_type
        if bank == MapperType.NONE:
            pass
        elif bank == MapperType.SEQ:
            self.messages.add("Sequential mapper initialized", 2)
        elif bank == MapperType.VROM_SWITCH:
            self.messages.add("VROM switch initialized", 2)
            self.vrom_switch = 0
        elif bank == MapperType.KONAMI:
            self.konami_switch = 0
            self.messages.add("Konami mapper initialized", 2)
        else:
            self.messages.error("Unsupported mapping type")

        self.cpu_paused = False
        self.messages.add("NES hardware reset", 1)

    def start_frame(self) -> None:
        self.frame = True
        self.vblank = False

    def start_vblank(self) -> None:
        self.vblank = True
        self.hitflag = False
        self.frame = False
        self.scroll_scanline = 0

    def sprite(self, index: int) -> Sprite:
        if not 0 <= index < 64:
            raise IndexError(f"sprite {index} out of range")
        return Sprite.from_bytes(self.sprite_memory[index * 4:index * 4 + 4])

    def _advance_ppu_address(self) -> None:
        step = 32 if self.ram[0x2000] & 4 else 1
        self.ppu_address = (self.ppu_address + step) & 0xFFFF

    # reads

    def read(self, address: int) -> int:
        a = address & 0xFFFF
        if a < 0x2000:
            return self.ram[a & 0x7FF]
        if a < 0x4000:
            return self._read_ports(a)
        if a < 0x5000:
            return self._read_joystick(a)
        return self.ram[a]

    def _read_ports(self, a: int) -> int:
        if a in (0x2000, 0x2001):
            return self.ram[a]
        if a == 0x2002:
            status = 0
            if self.vblank:
                status |= 0x80
                self.vblank = False
            if not self.hitflag and self.sprite_memory[0] < self.scanline():
                status |= 0x40
                self.hitflag = True
            return status
        if a == 0x2004:
            value = self.sprite_memory[self.sprite_address]
            self.sprite_address = (self.sprite_address + 1) & 0xFF
            return value
        if a == 0x2005:
            self.messages.error("bgscroll read!")
            return 0
        if a == 0x2007:
            if self.ppu_read_latch:
                self.ppu_read_latch = False
                return 0
            value = self.ppu.read(self.ppu_address)
            self._advance_ppu_address()
            return value
        return 0

    def _read_joystick(self, a: int) -> int:
        if a not in (0x4016, 0x4017):
            return 0
        step = self.ram[a]
        self.ram[a] = (step + 1) & 0xFF
        index = a - 0x4016
        device = self.controllers[index] if index < len(self.controllers) else None
        entry = _JOY_BITS.get(step)
        if entry is None or device is None:
            return 0
        name, bit = entry
        return 1 if getattr(device, name) & bit else 0

    # writes

    def write(self, address: int, value: int) -> None:
        a = address & 0xFFFF
        d = value & 0xFF
        if a < 0x2000:
            self.ram[a & 0x7FF] = d
        elif a < 0x4000:
            self._write_ports(a, d)
        elif a < 0x5000:
            self._write_upper(a, d)
        elif a < 0x8000:
            self.ram[a] = d
        else:
            self._write_mapper(a, d)

    def _write_ports(self, a: int, d: int) -> None:
        ram = self.ram
        if a == 0x2000:
            if self.scanline() >= self.scroll_scanline:
                self.nametable_shown = d & 3
            ram[a] = d
        elif a == 0x2001:
            ram[a] = d
        elif a == 0x2003:
            self.sprite_address = d
        elif a == 0x2004:
            self.sprite_memory[self.sprite_address] = d
            self.sprite_address = (self.sprite_address + 1) & 0xFF
        elif a == 0x2005:
            line = self.scanline()
            if line >= self.scroll_scanline:
                if not ram[0x2005]:
                    self.scroll_x = d
                elif d <= 239:
                    self.scroll_y = d
                self.scroll_scanline = line
            ram[0x2005] ^= 1
        elif a == 0x2006:
            ram[0x2006] ^= 1
            if ram[0x2006]:
                self.ppu_address = (d << 8) | (self.ppu_address & 0xFF)
            else:
                self.ppu_address = (self.ppu_address & 0xFF00) | d
            self.ppu_read_latch = True
        elif a == 0x2007:
            self.ppu.write(self.ppu_address, d)
            self._advance_ppu_address()
        else:
            self.messages.add(f"unsupported write: {a:X} {d:X}", 1)

    def _write_upper(self, a: int, d: int) -> None:
        if a == 0x4014:
            self.sprite_memory[:] = self.ram[d * 0x100:d * 0x100 + 0x100]
        elif a == 0x4015:
            self.ram[a] = d
        elif a in (0x4016, 0x4017):
            self.ram[0x4016] = 1
            self.ram[0x4017] = 1

    def _write_mapper(self, a: int, d: int) -> None:
        bank = self.rom.header.bank_type
        if bank == MapperType.NONE:
            self.messages.error("ROM write!!")
        elif bank == MapperType.SEQ:
            self.messages.error(f"Seq[{a:X}]={d:X}")
        elif bank == MapperType.VROM_SWITCH:
            self.messages.error(f"VROM[{a:X}]={d:X}")
            d &= 3
            if d < len(self.rom.chr_pages):
                _copy_chr(self.ppu, self.rom.chr_pages[d])
        elif bank == MapperType.KONAMI:
            if d != self.konami_switch and d < len(self.rom.prg_pages):
                self.ram[0x8000:0x8000 + PRG_PAGE_SIZE] = self.rom.prg_pages[d]
                self.konami_switch = d
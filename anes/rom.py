"""iNES ROM images: the 16-byte header and the PRG/CHR pages that follow it."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

HEADER_SIZE = 16
TRAINER_SIZE = 512
PRG_PAGE_SIZE = 0x4000
CHR_PAGE_SIZE = 0x2000

_SIGNATURE = b"NES"


class RomError(ValueError):
    """Raised when a ROM image cannot be opened or is malformed."""


class MapperType(enum.IntEnum):
    NONE = 0
    SEQ = 1
    KONAMI = 2
    VROM_SWITCH = 3
    MMC_5202 = 4


_BANK_NAMES = ("None", "Sequential", "Konami", "VROM Switch", "5202 Chip")


def bank_type_name(bank_type: int) -> str:
    return _BANK_NAMES[bank_type] if 0 <= bank_type < len(_BANK_NAMES) else "Unknown"


@dataclass
class RomHeader:
    signature: bytes = b"NES\x1a"
    num16k: int = 0
    num8k: int = 0
    vertical_mirroring: bool = False
    battery: bool = False
    trainer: bool = False
    reserved_bit: bool = False
    bank_type: int = MapperType.NONE
    reserved: bytes = bytes(9)

    @classmethod
    def parse(cls, data: bytes) -> "RomHeader":
        """Decode the first 16 bytes of an image."""
        if len(data) < HEADER_SIZE:
            raise RomError("Unable to read header")
        flags = data[6]
        return cls(
            signature=bytes(data[0:4]),
            num16k=data[4],
            num8k=data[5],
            vertical_mirroring=bool(flags & 0x01),
            battery=bool(flags & 0x02),
            trainer=bool(flags & 0x04),
            reserved_bit=bool(flags & 0x08),
            bank_type=flags >> 4,
            reserved=bytes(data[7:HEADER_SIZE]),
        )

    def validate(self) -> bool:
        """True when the header starts with the "NES" signature."""
        return self.signature[:3] == _SIGNATURE

    def info(self) -> List[str]:
        """Describe the header, one line per fact."""
        lines = [
            f"# of 16K ROM banks: {self.num16k}",
            f"# of  8K VROM banks: {self.num8k}",
            f"{'Vertical' if self.vertical_mirroring else 'Horizontal'} mirroring",
        ]
        if self.battery:
            lines.append("Battery backed RAM")
        if self.trainer:
            lines.append("Trainer")
        if self.reserved_bit:
            lines.append("reserved bit set")
        lines.append(f"MMC #{self.bank_type}: {bank_type_name(self.bank_type)}")
        return lines


@dataclass
class Rom:
    header: RomHeader
    trainer: Optional[bytes] = None
    prg_pages: List[bytes] = field(default_factory=list)
    chr_pages: List[bytes] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Rom":
        header = RomHeader.parse(data)
        if not header.validate():
            raise RomError("Bad ROM header")
        pos = HEADER_SIZE
        trainer = None
        if header.trainer:
            trainer = bytes(data[pos:pos + TRAINER_SIZE])
            if len(trainer) < TRAINER_SIZE:
                raise RomError("truncated trainer")
            pos += TRAINER_SIZE

        def pages(count: int, size: int, what: str) -> List[bytes]:
            nonlocal pos
            result = []
            for _ in range(count):
                page = bytes(data[pos:pos + size])
                if len(page) < size:
                    raise RomError(f"truncated {what} data")
                result.append(page)
                pos += size
            return result

        prg = pages(header.num16k, PRG_PAGE_SIZE, "ROM")
        chr_ = pages(header.num8k, CHR_PAGE_SIZE, "VROM")
        return cls(header, trainer, prg, chr_)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Rom":
        """Load an image, adding ".nes" when the file name has no extension."""
        path = Path(path)
        if "." not in path.name:
            path = path.with_name(path.name + ".nes")
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise RomError(f"Unable to open file {path}") from exc
        return cls.from_bytes(data)
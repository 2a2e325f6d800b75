"""Bitmap fonts built from RLE glyph images."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Dict, Optional, Union

from anes.image import ImageError, Img, Surface

SPACE_WIDTH = 6
GLYPH_COUNT = 128
_HEADER = struct.Struct(f"<i{GLYPH_COUNT}H")

CharLike = Union[str, int]


def _code(char: CharLike) -> Optional[int]:
    code = ord(char) if isinstance(char, str) else int(char)
    return code if 0 <= code < GLYPH_COUNT else None


class Font:
    """A set of up to 128 glyph images; missing glyphs draw as a blank gap."""

    def __init__(self, glyphs: Optional[Dict[int, Img]] = None) -> None:
        self._glyphs: Dict[int, Img] = dict(glyphs or {})

    def glyph(self, char: CharLike) -> Optional[Img]:
        code = _code(char)
        return None if code is None else self._glyphs.get(code)

    def draw_char(self, surface: Surface, char: CharLike, x: int, y: int) -> int:
        """Draw one character and return its advance width."""
        image = self.glyph(char)
        if image is None:
            return SPACE_WIDTH
        image.draw(surface, x, y)
        return image.width

    def draw(self, surface: Surface, text: str, x: int, y: int) -> None:
        for char in text:
            x += self.draw_char(surface, char, x, y)

    def draw_centered(self, surface: Surface, text: str, x: int, y: int) -> None:
        self.draw(surface, text, x - self.width_of(text) // 2, y)

    def width_of(self, text: str) -> int:
        total = 0
        for char in text:
            image = self.glyph(char)
            total += SPACE_WIDTH if image is None else image.width
        return total

    def add_symbol(self, image: Img, char: CharLike) -> None:
        code = _code(char)
        if code is None:
            raise ValueError(f"character {char!r} outside font range")
        self._glyphs[code] = image.duplicate()

    def duplicate(self) -> "Font":
        return Font({code: image.duplicate() for code, image in self._glyphs.items()})

    def convert_color(self, a: int, b: int) -> None:
        for image in self._glyphs.values():
            image.convert_color(a, b)

    def to_bytes(self) -> bytes:
        offsets = [0] * GLYPH_COUNT
        blobs = []
        position = _HEADER.size
        for code in sorted(self._glyphs):
            if position > 0xFFFF:
                raise ValueError("font too large for 16-bit glyph offsets")
            blob = self._glyphs[code].to_bytes()
            offsets[code] = position
            blobs.append(blob)
            position += len(blob)
        return _HEADER.pack(position, *offsets) + b"".join(blobs)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Font":
        if len(data) < _HEADER.size:
            raise ImageError("truncated font header")
        _size, *offsets = _HEADER.unpack_from(data)
        glyphs = {}
        for code, offset in enumerate(offsets):
            if offset:
                glyphs[code] = Img.from_bytes(data[offset:])
        return cls(glyphs)

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_bytes(self.to_bytes())


def load_font(path: Union[str, Path]) -> Font:
    return Font.from_bytes(Path(path).read_bytes())
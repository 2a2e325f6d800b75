"""Palettes, colour maps and the RLE (.r2) and raw (.scr) bitmap formats."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Union

MAX_FADE_LEVEL = 32
IMG_TYPE = 1
SCR_TYPE = 2

_HEADER = struct.Struct("<4i")


class ImageError(ValueError):
    """Raised for malformed or unexpected image data."""


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    def fade(self, level: int) -> "Color":
        """Return this colour scaled by ``level``/MAX_FADE_LEVEL."""
        return Color(
            self.r * level // MAX_FADE_LEVEL,
            self.g * level // MAX_FADE_LEVEL,
            self.b * level // MAX_FADE_LEVEL,
        )


@dataclass
class Palette:
    colors: List[Color] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> Color:
        return self.colors[index]

    def __iter__(self) -> Iterator[Color]:
        return iter(self.colors)

    def duplicate(self, num: int) -> "Palette":
        return Palette(list(self.colors[:num]))

    def fade(self, num: int, level: int) -> "Palette":
        """Return the first ``num`` colours faded to ``level``."""
        return Palette([c.fade(level) for c in self.colors[:num]])

    def find_closest_match(self, color: Color, num: int) -> int:
        closest = 0
        distance = 0xFFFFFFF
        for index, c in enumerate(self.colors[:num]):
            dist = (c.r - color.r) ** 2 + (c.g - color.g) ** 2 + (c.b - color.b) ** 2
            if dist < distance:
                closest, distance = index, dist
        return closest


@dataclass
class ColorMap:
    table: bytearray = field(default_factory=lambda: bytearray(range(256)))

    def __getitem__(self, index: int) -> int:
        return self.table[index]

    def clear(self) -> None:
        """Reset to the identity mapping."""
        self.table[:] = bytes(range(256))

    def create_shade_map(self, palette: Palette, rl: int, gl: int, bl: int) -> None:
        """Map each colour to the palette entry closest to its shaded version."""
        for index in range(256):
            c = palette[index]
            shaded = Color(
                c.r * rl // MAX_FADE_LEVEL,
                c.g * gl // MAX_FADE_LEVEL,
                c.b * bl // MAX_FADE_LEVEL,
            )
            self.table[index] = palette.find_closest_match(shaded, 256)


@dataclass
class Surface:
    """An 8-bit indexed drawing target."""

    width: int
    height: int
    pixels: Optional[bytearray] = None

    def __post_init__(self) -> None:
        if self.pixels is None:
            self.pixels = bytearray(self.width * self.height)
        elif len(self.pixels) != self.width * self.height:
            raise ValueError("pixel buffer does not match surface size")

    def _inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> int:
        if not self._inside(x, y):
            raise IndexError(f"pixel ({x}, {y}) outside surface")
        return self.pixels[y * self.width + x]

    def put(self, x: int, y: int, color: int) -> None:
        """Set a pixel; writes outside the surface are clipped away."""
        if self._inside(x, y):
            self.pixels[y * self.width + x] = color & 0xFF

    def fill(self, color: int) -> None:
        self.pixels[:] = bytes([color & 0xFF]) * len(self.pixels)


def _scan_line(data, offset: int, width: int):
    """Walk one RLE scanline; return its end offset and its opaque runs."""
    runs = []
    i = offset
    x = 0
    remaining = width
    while remaining > 0:
        skip = data[i]
        i += 1
        remaining -= skip
        x += skip
        if remaining <= 0:
            break
        count = data[i]
        i += 1
        runs.append((x, i, min(count, remaining)))
        i += count
        x += count
        remaining -= count
    return i, runs


@dataclass
class Scr:
    """An uncompressed bitmap."""

    width: int
    height: int
    data: Optional[bytearray] = None

    def __post_init__(self) -> None:
        if self.data is None:
            self.data = bytearray(self.width * self.height)
        else:
            self.data = bytearray(self.data)
            if len(self.data) != self.width * self.height:
                raise ImageError("bitmap data does not match its size")

    def compress(self, transparent: int) -> "Img":
        """Encode as run-length data with ``transparent`` as the clear colour."""
        lines = []
        for y in range(self.height):
            row = self.data[y * self.width:(y + 1) * self.width]
            line = bytearray()
            pos = 0
            remaining = self.width
            while remaining > 0:
                run = 0
                while remaining > 0 and run < 255 and row[pos] == transparent:
                    pos += 1
                    run += 1
                    remaining -= 1
                line.append(run)
                if remaining <= 0:
                    break
                start = pos
                run = 0
                while remaining > 0 and run < 255 and row[pos] != transparent:
                    pos += 1
                    run += 1
                    remaining -= 1
                line.append(run)
                line += row[start:pos]
            lines.append(line)
        return Img(self.width, self.height, lines)

    def draw(self, surface: Surface, x: int, y: int) -> None:
        for row in range(self.height):
            for col in range(self.width):
                surface.put(x + col, y + row, self.data[row * self.width + col])

    def to_bytes(self) -> bytes:
        size = _HEADER.size + len(self.data)
        return _HEADER.pack(SCR_TYPE, size, self.width, self.height) + bytes(self.data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Scr":
        if len(data) < _HEADER.size:
            raise ImageError("truncated bitmap header")
        kind, _size, width, height = _HEADER.unpack_from(data)
        if kind != SCR_TYPE:
            raise ImageError("not an uncompressed bitmap")
        if width < 0 or height < 0:
            raise ImageError("negative bitmap size")
        end = _HEADER.size + width * height
        if len(data) < end:
            raise ImageError("truncated bitmap data")
        return cls(width, height, bytearray(data[_HEADER.size:end]))


@dataclass
class Img:
    """A run-length encoded bitmap; each line alternates clear and opaque runs."""

    width: int
    height: int
    lines: List[bytearray] = field(default_factory=list)

    def _opaque_runs(self):
        for row, line in enumerate(self.lines):
            _, runs = _scan_line(line, 0, self.width)
            for x, start, count in runs:
                yield row, line, x, start, count

    def draw(self, surface: Surface, x: int, y: int) -> None:
        for row, line, col, start, count in self._opaque_runs():
            for k in range(count):
                surface.put(x + col + k, y + row, line[start + k])

    def draw_map(self, colormap: ColorMap, surface: Surface, x: int, y: int) -> None:
        """Remap the surface pixels lying under the opaque pixels."""
        for row, _line, col, _start, count in self._opaque_runs():
            for k in range(count):
                px, py = x + col + k, y + row
                if 0 <= px < surface.width and 0 <= py < surface.height:
                    surface.put(px, py, colormap[surface.get(px, py)])

    def convert_color(self, a: int, b: int) -> None:
        """Replace opaque colour ``a`` by ``b``."""
        a &= 0xFF
        b &= 0xFF
        for _row, line, _col, start, count in self._opaque_runs():
            for k in range(start, start + count):
                if line[k] == a:
                    line[k] = b

    def apply_colormap(self, colormap: ColorMap) -> None:
        for _row, line, _col, start, count in self._opaque_runs():
            for k in range(start, start + count):
                line[k] = colormap[line[k]]

    def duplicate(self) -> "Img":
        return Img(self.width, self.height, [bytearray(line) for line in self.lines])

    def to_bytes(self) -> bytes:
        offset = _HEADER.size + 4 * self.height
        offsets = []
        for line in self.lines:
            offsets.append(offset)
            offset += len(line)
        header = _HEADER.pack(IMG_TYPE, offset, self.width, self.height)
        table = struct.pack(f"<{self.height}i", *offsets)
        return header + table + b"".join(bytes(line) for line in self.lines)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Img":
        if len(data) < _HEADER.size:
            raise ImageError("truncated image header")
        kind, size, width, height = _HEADER.unpack_from(data)
        if kind != IMG_TYPE:
            raise ImageError("not an RLE image")
        if width < 0 or height < 0:
            raise ImageError("negative image size")
        if size > len(data) or _HEADER.size + 4 * height > len(data):
            raise ImageError("truncated image data")
        body = data[:size]
        offsets = struct.unpack_from(f"<{height}i", data, _HEADER.size)
        lines = []
        try:
            for offset in offsets:
                end, _ = _scan_line(body, offset, width)
                if end > len(body):
                    raise IndexError(end)
                lines.append(bytearray(body[offset:end]))
        except IndexError as exc:
            raise ImageError("corrupt scanline data") from exc
        return cls(width, height, lines)


Bitmap = Union[Img, Scr]


def load_bitmap(path: Union[str, Path]) -> Bitmap:
    """Load either bitmap type, dispatching on the stored type field."""
    data = Path(path).read_bytes()
    if len(data) < 4:
        raise ImageError("truncated bitmap header")
    kind = struct.unpack_from("<i", data)[0]
    if kind == IMG_TYPE:
        return Img.from_bytes(data)
    if kind == SCR_TYPE:
        return Scr.from_bytes(data)
    raise ImageError(f"unknown bitmap type {kind}")


def save_bitmap(bitmap: Bitmap, path: Union[str, Path]) -> Path:
    """Write a bitmap, adding the default extension when the name has none."""
    path = Path(path)
    if "." not in path.name:
        path = path.with_name(path.name + (".R2" if isinstance(bitmap, Img) else ".SCR"))
    path.write_bytes(bitmap.to_bytes())
    return path


def reverse_word(value: int) -> int:
    """Swap the two bytes of a 16-bit word."""
    return ((value >> 8) | (value << 8)) & 0xFFFF


def find_chunk(data: bytes, tag: bytes) -> Optional[int]:
    """Return the offset of a four-byte chunk tag, or None."""
    index = bytes(data).find(tag)
    return None if index < 0 else index


def _expand_plane(row: bytearray, planar: bytes, bit: int) -> None:
    limit = len(row)
    for byte_index, value in enumerate(planar):
        base = byte_index * 8
        for b in range(8):
            if value & (0x80 >> b) and base + b < limit:
                row[base + b] |= bit


def decode_iff(data: bytes, width: int, height: int, compressed: bool) -> bytearray:
    """Decode eight-plane interleaved bitmap body data into chunky pixels."""
    words = (width + 15) >> 4
    plane_bytes = words * 2
    out = bytearray()
    pos = 0
    try:
        for _ in range(height):
            row = bytearray(words * 16)
            for plane in range(8):
                if not compressed:
                    planar = bytes(data[pos:pos + plane_bytes])
                    if len(planar) < plane_bytes:
                        raise IndexError(pos)
                    pos += plane_bytes
                else:
                    planar = bytearray()
                    remaining = plane_bytes
                    while remaining > 0:
                        n = data[pos]
                        pos += 1
                        if n >= 128:
                            n -= 256
                        if n >= 0:
                            count = n + 1
                            chunk = data[pos:pos + count]
                            if len(chunk) < count:
                                raise IndexError(pos)
                            planar += chunk
                            pos += count
                            remaining -= count
                        elif n != -128:
                            count = 1 - n
                            planar += bytes([data[pos]]) * count
                            pos += 1
                            remaining -= count
                _expand_plane(row, planar, 1 << plane)
            out += row[:width]
    except IndexError as exc:
        raise ImageError("truncated bitmap body") from exc
    return out


def read_lbm(path: Union[str, Path]) -> Scr:
    """Read an ILBM/PBM-style .lbm or .bbm file into an uncompressed bitmap."""
    data = Path(path).read_bytes()
    if data[:4] != b"FORM":
        raise ImageError("not IFF file")
    if find_chunk(data, b"ILBM") is None:
        raise ImageError("not old DP2 format")
    header = find_chunk(data, b"BMHD")
    if header is None:
        raise ImageError("BMHD tag not found")
    i = header + 8
    if len(data) < i + 11:
        raise ImageError("truncated BMHD chunk")
    width = int.from_bytes(data[i:i + 2], "big")
    height = int.from_bytes(data[i + 2:i + 4], "big")
    compression = data[i + 10]
    body = find_chunk(data, b"BODY")
    if body is None:
        raise ImageError("BODY tag not found")
    pixels = decode_iff(data[body + 8:], width, height, bool(compression))
    return Scr(width, height, pixels)


def draw_hline(surface: Surface, color: int, x: int, y: int, x2: int) -> None:
    for px in range(x, x2):
        surface.put(px, y, color)


def draw_vline(surface: Surface, color: int, x: int, y: int, y2: int) -> None:
    for py in range(y, y2):
        surface.put(x, py, color)


def draw_box(surface: Surface, color: int, x1: int, y1: int, x2: int, y2: int) -> None:
    """Outline the rectangle [x1, x2) x [y1, y2)."""
    draw_hline(surface, color, x1, y1, x2)
    draw_hline(surface, color, x1, y2 - 1, x2)
    draw_vline(surface, color, x1, y1, y2)
    draw_vline(surface, color, x2 - 1, y1, y2)
"""NES picture output: decoded pattern cache, palette refresh, name tables and sprites."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from anes.image import Surface
from anes.nes import NESHardware

CBASE = 224
NAMETABLE_BASE = 0x2000
NAMETABLE_SIZE = 0x400
ATTRIBUTE_OFFSET = 960
TILE_COLUMNS = 32
TILE_ROWS = 30
PATTERN_BYTES = 16
PALETTE_BASE = 0x3F00

_ATTRIB_SHIFT = [[((x >> 1) | (y & 2)) * 2 for y in range(4)] for x in range(4)]


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def decode_pattern(low: Sequence[int], high: Sequence[int]) -> Tuple[bytearray, bool]:
    """Turn the two bit planes of an 8x8 pattern into 64 pixel values (0-3).

    The flag returned is True when every pixel is transparent.
    """
    if len(low) != 8 or len(high) != 8:
        raise ValueError("a pattern has eight bytes in each plane")
    pixels = bytearray(64)
    solid = 0
    for y, (lo, hi) in enumerate(zip(low, high)):
        for x in range(8):
            mask = 0x80 >> x
            pixels[y * 8 + x] = (1 if lo & mask else 0) | (2 if hi & mask else 0)
        solid |= lo | hi
    return pixels, not solid


def add_tile(pixels: Sequence[int], value: int) -> bytearray:
    """Return the pixels with ``value`` or-ed into every one."""
    return bytearray((p | value) & 0xFF for p in pixels)


def add_sprite(pixels: Sequence[int], value: int) -> bytearray:
    """Return the pixels with ``value`` or-ed into every non-transparent one."""
    return bytearray(((p | value) & 0xFF) if p else 0 for p in pixels)


def attribute_of(attributes: Sequence[int], x: int, y: int) -> int:
    """Return the two palette bits for tile column ``x`` and row ``y``."""
    byte = attributes[(y // 4) * 8 + x // 4]
    return (byte >> _ATTRIB_SHIFT[x & 3][y & 3]) & 3


def _blank() -> List[bytearray]:
    return [bytearray(64) for _ in range(4)]


@dataclass
class Pattern:
    """A pattern decoded once for each of the four tile and sprite palettes."""

    tiles: List[bytearray] = field(default_factory=_blank)
    sprites: List[bytearray] = field(default_factory=_blank)
    updated: bool = True
    transparent: bool = True

    def refresh(self, low: Sequence[int], high: Sequence[int]) -> None:
        pixels, self.transparent = decode_pattern(low, high)
        self.tiles = [add_tile(pixels, CBASE + (i << 2)) for i in range(4)]
        self.sprites = [add_sprite(pixels, CBASE + 16 + (i << 2)) for i in range(4)]
        self.updated = False


class NesVideo:
    """Renders the NES picture from the hardware state onto a surface."""

    def __init__(self, hardware: NESHardware, width: int = 256, height: int = 224) -> None:
        self.hardware = hardware
        self.width = width
        self.height = height
        self.patterns: List[List[Pattern]] = [
            [Pattern() for _ in range(256)] for _ in range(2)
        ]
        self.force_fill = 1
        self._clip: Optional[Tuple[int, int, int, int]] = None
        self.reset_pattern_cache()
        hardware.messages.add(f"NES video initialized: {width}x{height}", 2)

    # caches

    def reset_pattern_cache(self) -> None:
        """Mark every pattern as needing to be decoded again."""
        ppu = self.hardware.ppu
        for table in self.patterns:
            for pattern in table:
                pattern.updated = True
        ppu.dirty_patterns.update((t, i) for t in range(2) for i in range(256))
        ppu.patterns_updated = True

    def reset_palette(self) -> None:
        ppu = self.hardware.ppu
        ppu.palette_dirty = [True] * 32
        ppu.palette_updated = True

    def refresh_palette(self, set_color: Callable[[int, int], None]) -> None:
        """Call ``set_color(colour index, NES colour)`` for each changed entry."""
        ppu = self.hardware.ppu
        if not ppu.palette_updated:
            return
        for i, dirty in enumerate(ppu.palette_dirty):
            if dirty:
                set_color(CBASE + i, ppu.memory[PALETTE_BASE + i])
                ppu.palette_dirty[i] = False
        ppu.palette_updated = False

    def refresh_patterns(self) -> None:
        ppu = self.hardware.ppu
        if not ppu.patterns_updated:
            return
        for table, index in ppu.dirty_patterns:
            self.patterns[table][index].updated = True
        ppu.dirty_patterns.clear()
        memory = ppu.memory
        for t, table in enumerate(self.patterns):
            for i, pattern in enumerate(table):
                if pattern.updated:
                    start = t * 0x1000 + i * PATTERN_BYTES
                    pattern.refresh(memory[start:start + 8], memory[start + 8:start + 16])
        ppu.patterns_updated = False

    # drawing primitives

    def _put(self, surface: Surface, x: int, y: int, color: int) -> None:
        if self._clip is not None:
            x1, y1, x2, y2 = self._clip
            if not (x1 <= x < x2 and y1 <= y < y2):
                return
        surface.put(x, y, color)

    def draw_tile(self, surface: Surface, pixels: Sequence[int], x: int, y: int) -> None:
        for row in range(8):
            for col in range(8):
                self._put(surface, x + col, y + row, pixels[row * 8 + col])

    def draw_sprite(
        self, surface: Surface, pixels: Sequence[int], x: int, y: int, orientation: int
    ) -> None:
        """Draw non-zero pixels; orientation bit 1 flips x, bit 2 flips y."""
        flip_x = orientation & 1
        flip_y = orientation & 2
        for row in range(8):
            dy = 7 - row if flip_y else row
            for col in range(8):
                color = pixels[row * 8 + col]
                if color:
                    dx = col ^ 7 if flip_x else col
                    self._put(surface, x + dx, y + dy, color)

    def draw_nametable(
        self, surface: Surface, table: int, sx: int, sy: int, patterns: Sequence[Pattern]
    ) -> None:
        memory = self.hardware.ppu.memory
        base = NAMETABLE_BASE + (table & 3) * NAMETABLE_SIZE
        attributes = memory[base + ATTRIBUTE_OFFSET:base + NAMETABLE_SIZE]
        if sx < 0:
            xstart, xend = _cdiv(-sx, 8), TILE_COLUMNS
        else:
            xstart, xend = 0, min(_cdiv(surface.width - sx, 8) + 1, TILE_COLUMNS)
        if sy < 0:
            ystart, yend = _cdiv(-sy, 8), TILE_ROWS
        else:
            ystart, yend = 0, min(_cdiv(surface.height - sy, 8) + 1, TILE_ROWS)
        for y in range(ystart, yend):
            for x in range(xstart, xend):
                pattern = patterns[memory[base + y * TILE_COLUMNS + x]]
                pixels = pattern.tiles[attribute_of(attributes, x, y)]
                self.draw_tile(surface, pixels, sx + x * 8, sy + y * 8)

    def draw_background(self, surface: Surface) -> None:
        hw = self.hardware
        sx = -hw.scroll_x
        sy = -hw.scroll_y - 8
        patterns = self.patterns[1 if hw.ram[0x2000] & 16 else 0]
        n = hw.nametable_shown
        self.draw_nametable(surface, n, sx, sy, patterns)
        self.draw_nametable(surface, n ^ 1, sx + 32 * 8, sy, patterns)
        self.draw_nametable(surface, n ^ 2, sx, sy + 30 * 8, patterns)
        self.draw_nametable(surface, n ^ 3, sx + 32 * 8, sy + 30 * 8, patterns)

    def draw_sprites(self, surface: Surface) -> None:
        """Draw all 64 sprites, last first, in 8x8 or 8x16 mode."""
        hw = self.hardware
        tall = bool(hw.ram[0x2000] & 32)
        patterns = self.patterns[1 if hw.ram[0x2000] & 8 else 0]
        for index in range(63, -1, -1):
            sprite = hw.sprite(index)
            if not (sprite.x < surface.width and sprite.y - 8 < surface.height):
                continue
            orientation = int(sprite.flip_x) | (int(sprite.flip_y) << 1)
            if tall:
                p = sprite.pattern
                pnum = (p & 0xFE) ^ int(sprite.flip_y)
                table = self.patterns[p & 1]
                self.draw_sprite(surface, table[pnum].sprites[sprite.palette],
                                 sprite.x, sprite.y + 1 - 8, orientation)
                self.draw_sprite(surface, table[pnum ^ 1].sprites[sprite.palette],
                                 sprite.x, sprite.y + 9 - 8, orientation)
            else:
                pattern = patterns[sprite.pattern]
                if not pattern.transparent:
                    self.draw_sprite(surface, pattern.sprites[sprite.palette],
                                     sprite.x, sprite.y + 1 - 8, orientation)

    def draw(self, surface: Surface) -> None:
        """Render one frame; a blanked screen is filled with colour 0."""
        ram = self.hardware.ram
        if self.force_fill > 0:
            surface.fill(0)
            self.force_fill -= 1
        elif not ram[0x2001] & 8:
            surface.fill(0)
            return
        self.refresh_patterns()
        w, h = surface.width, surface.height
        self._clip = (
            _cdiv(w - self.width, 2), _cdiv(h - self.height, 2),
            _cdiv(w + self.width, 2), _cdiv(h + self.height, 2),
        )
        try:
            self.draw_background(surface)
            if ram[0x2001] & 16:
                self.draw_sprites(surface)
        finally:
            self._clip = None
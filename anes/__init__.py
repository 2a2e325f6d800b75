"""NES emulator building blocks: iNES ROMs, PPU memory and registers, pattern video, bitmaps, fonts, input and messages."""

__version__ = "0.1.0"
"""Command line front end: load an iNES image, report on it, render a frame."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from anes.image import Scr, Surface, save_bitmap
from anes.messages import MessageBuffer
from anes.nes import NESHardware
from anes.rom import CHR_PAGE_SIZE, PRG_PAGE_SIZE, Rom, RomError
from anes.video import NesVideo

APP_NAME = "aNES"
SCREEN_WIDTH = 256
SCREEN_HEIGHT = 224


def _load_rom(filename: str, messages: MessageBuffer) -> Rom:
    path = Path(filename)
    if "." not in path.name:
        path = path.with_name(path.name + ".nes")
    messages.add(f"Loading rom {path}...", 2)
    try:
        rom = Rom.load(path)
    except RomError as exc:
        messages.error(str(exc))
        raise
    messages.add(f"{len(rom.prg_pages) * PRG_PAGE_SIZE // 1024}K ROM read", 1)
    messages.add(f"{len(rom.chr_pages) * CHR_PAGE_SIZE // 1024}K VROM read", 1)
    messages.add(f"{filename} loaded", 2)
    return rom


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="anes", description=f"{APP_NAME} NES ROM tool")
    parser.add_argument("rom", help="ROM image (.nes is added when there is no extension)")
    parser.add_argument("--info", action="store_true", help="describe the ROM header")
    parser.add_argument("--render", metavar="PATH", help="write the first frame as a .scr bitmap")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    messages = MessageBuffer()
    try:
        rom = _load_rom(args.rom, messages)
        if args.info:
            for line in rom.header.info():
                messages.add(line, 1)
        if args.render:
            hardware = NESHardware(rom, messages)
            hardware.reset()
            video = NesVideo(hardware, SCREEN_WIDTH, SCREEN_HEIGHT)
            surface = Surface(SCREEN_WIDTH, SCREEN_HEIGHT)
            video.draw(surface)
            written = save_bitmap(Scr(surface.width, surface.height, surface.pixels), args.render)
            messages.add(f"Frame written to {written}", 2)
    except (RomError, OSError) as exc:
        for message in messages.lines():
            print(message.text)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    for message in messages.lines():
        print(message.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
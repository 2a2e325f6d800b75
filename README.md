# anes

Building blocks for a NES emulator, written in plain Python with no
third-party dependencies.

## What is in it

- `anes.rom`: reads iNES images with `Rom.load` (which adds `.nes` when the
  file name has no extension) and `Rom.from_bytes`. `RomHeader.parse` decodes
  the 16-byte header. `RomHeader.validate` checks the `NES` signature, and
  `RomHeader.info` describes the bank counts, the mirroring, the battery,
  trainer and reserved flags, and the mapper (`MapperType`). Bad or truncated
  images raise `RomError`.
- `anes.nes`: `NESHardware` is the memory map as the CPU sees it. It covers
  2K of mirrored RAM and the PPU control, status, scroll, address and data
  registers. It also handles sprite memory and DMA (`0x4014`), the two
  joypad ports (`0x4016`/`0x4017`, read from `InputDevice` objects) and the
  mapper writes for the Konami and VROM-switch boards. `reset` maps the ROM
  pages into place. `PPUMemory` holds the 16K PPU space with palette and
  name-table mirroring, and records which palette entries and patterns have
  changed. `Sprite` decodes one entry of sprite memory.
- `anes.video`: `decode_pattern`, `add_tile`, `add_sprite` and
  `attribute_of` turn pattern and attribute data into pixels. `Pattern`
  caches a decoded pattern for all four palettes. `NesVideo` draws the four
  name tables, with scrolling, and the 8x8 or 8x16 sprites onto a `Surface`.
  Its `refresh_palette` passes each changed palette entry to a callback you
  supply.
- `anes.image`: an 8-bit indexed `Surface`, `Color`, `Palette` and
  `ColorMap` (fading, closest-colour search, shade maps). It also has the
  run-length encoded `Img` and raw `Scr` bitmaps with their binary formats,
  `load_bitmap` and `save_bitmap`, an IFF/LBM reader (`read_lbm`,
  `decode_iff`, `find_chunk`), and line and box drawing.
- `anes.font`: `Font` holds up to 128 `Img` glyphs. A missing glyph
  advances 6 pixels. Fonts can be drawn, measured, recoloured, saved and
  read back with `load_font`.
- `anes.keyboard`: `Keyboard` tracks the shift, ctrl and alt state
  (`Modifier`) and keeps a 16-slot scan-code queue. It also translates scan
  codes to ASCII. `key_name` gives a printable name for a scan code.
- `anes.input`: controller devices. `KeyboardInput` works through a
  `Keymap`. `Joystick` and `GravisPad` read a `(x, y, buttons)` source you
  supply and compare it against a `JoyThreshold`. `NoInput` reports nothing.
  `InputPorts` holds the two ports, and `new_input_device` builds a device
  from `InputSettings` for a `DeviceType`.
- `anes.messages`: `MessageBuffer` is a ring of the last 256 coloured
  messages. `WrappingMessageBuffer` splits text to a pixel width using a
  font per colour.
- `anes.blaster`: `detect_settings` parses a `BLASTER` environment string
  into `BlasterSettings`.

## Installing

```
pip install .
```

## Command line

```
anes path/to/game.nes
anes path/to/game.nes --info
anes path/to/game.nes --render frame
```

The command loads the image (adding `.nes` when the name has no extension)
and prints the status messages.

- `--info` adds the header description.
- `--render PATH` does three things. It resets the emulated hardware, draws
  one frame with `NesVideo` onto a 256x224 surface, and writes that frame
  as an uncompressed bitmap. `.SCR` is added when the name has no extension.

On a missing or malformed image the command prints the messages gathered so
far, writes `error: ...` to standard error and exits with status 1.

## Library use

```python
from anes.rom import Rom
from anes.nes import NESHardware

rom = Rom.load("game.nes")
print("\n".join(rom.header.info()))

hw = NESHardware(rom)
hw.reset()
hw.write(0x2006, 0x3F)
hw.write(0x2006, 0x00)
hw.write(0x2007, 0x0F)
for message in hw.messages.lines():
    print(message.text)
```

## What it does not do

There is no 6502 CPU core, so ROM code is never executed. `NESHardware`
only answers the reads and writes it is given, and the current scanline
comes from a callable you pass in. There is also no window or display
output, no sound, no interactive user interface, and no reading of real
joysticks or keyboards: devices are fed the values you hand them.

## Running the tests

```
pip install .[test]
pytest
```
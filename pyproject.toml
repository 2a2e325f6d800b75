[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "anes"
version = "0.1.0"
description = "NES emulator pieces: iNES ROM loading, PPU memory and registers, pattern video, RLE images, fonts, input devices and message buffers"
requires-python = ">=3.10"
dependencies = []
keywords = ["nes", "emulator", "ppu", "rom", "ines", "rle", "lbm", "iff"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
anes = "anes.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["anes"]

[tool.pytest.ini_options]
addopts = "-ra"

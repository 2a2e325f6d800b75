"""Sound card settings from the BLASTER environment variable."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class BlasterSettings:
    base_io: int
    irq: int
    dma: int
    dma16: int = 0


def _parse_unsigned(text: str) -> int:
    """Parse an integer the way C's strtoul does with base 0."""
    text = text.lstrip(" \t\n\v\f\r")
    sign = 1
    if text[:1] in "+-" and text:
        if text[0] == "-":
            sign = -1
        text = text[1:]
    if text[:2].lower() == "0x" and text[2:3] and text[2] in "0123456789abcdefABCDEF":
        base, digits, text = 16, "0123456789abcdef", text[2:]
    elif text.startswith("0"):
        base, digits = 8, "01234567"
    else:
        base, digits = 10, "0123456789"
    value = 0
    for char in text.lower():
        if char not in digits:
            break
        value = value * base + digits.index(char)
    return sign * value


def get_setting(text: str, ident: str, hexadecimal: bool) -> Optional[int]:
    """Return the number following the first ``ident`` in ``text``, or None."""
    start = text.find(ident)
    if start < 0:
        return None
    param = text[start + 1:].split(" ", 1)[0]
    if hexadecimal:
        param = "0x" + param
    return _parse_unsigned(param)


def detect_settings(environ: Optional[Mapping[str, str]] = None) -> Optional[BlasterSettings]:
    """Read the card settings; None if BLASTER is unset or lacks A, I or D."""
    env = os.environ if environ is None else environ
    blaster = env.get("BLASTER")
    if blaster is None:
        return None
    blaster = blaster.upper()
    base_io = get_setting(blaster, "A", True)
    if base_io is None:
        return None
    irq = get_setting(blaster, "I", False)
    if irq is None:
        return None
    dma = get_setting(blaster, "D", False)
    if dma is None:
        return None
    dma16 = get_setting(blaster, "H", False)
    return BlasterSettings(base_io, irq, dma, 0 if dma16 is None else dma16)
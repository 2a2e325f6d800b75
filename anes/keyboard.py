"""Keyboard scan-code handling: modifiers, key queue, ASCII and key names."""

from __future__ import annotations

import enum
from typing import Callable, List, Optional

QUEUE_SIZE = 16


class Modifier(enum.IntFlag):
    NONE = 0
    SHIFT = 1
    CTRL = 2
    ALT = 4


_SHIFT_SCANS = (42, 54)
_CTRL_SCAN = 29
_ALT_SCAN = 56

_FKEYS = list(range(128, 138))

_PLAIN = (
    [0, 27, 49, 50, 51, 52, 53, 54, 55, 56, 57, 48, 45, 61, 8, 9,
     113, 119, 101, 114, 116, 121, 117, 105, 111,
     112, 91, 93, 13, 0, 97, 115, 100, 102, 103, 104, 106, 107, 108, 59, 39, 96,
     0, 92, 122, 120, 99, 118,
     98, 110, 109, 44, 46, 47, 0, 42, 0, 32]
    + _FKEYS
    + [0, 0, 0, 0, 0, 45]
    + [0] * 29
)

_SHIFTED = (
    [0, 27, 33, 64, 35, 36, 37, 94, 38, 42, 40, 41, 95, 43, 8, 9,
     81, 87, 69, 82, 84, 89, 85, 73, 79,
     80, 123, 125, 13, 0, 65, 83, 68, 70, 71, 72, 74, 75, 76, 58, 34, 126,
     0, 124, 90, 88, 67, 86,
     66, 78, 77, 60, 62, 63, 0, 42, 0, 32]
    + _FKEYS
    + [0, 0, 0, 0, 0, 45]
    + [0] * 29
)

_KEY_NAMES = {
    0x48: "Up", 0x50: "Down", 0x4B: "Left", 0x4D: "Right",
    0x47: "Home", 0x4F: "End", 0x49: "Page Up", 0x51: "Page Down",
    0x52: "Insert", 0x53: "Delete", 0xE0: "\\", 0x37: "*", 0x4A: "-", 0x4E: "+",
    0x29: "`", 0x02: "1", 0x03: "2", 0x04: "3", 0x05: "4", 0x06: "5",
    0x07: "6", 0x08: "7", 0x09: "8", 0x0A: "9", 0x0B: "0", 0x0C: "-", 0x0D: "-",
    0x1A: "[", 0x1B: "]", 0x27: ";", 0x28: "'", 0x2B: "\\",
    0x33: ",", 0x34: ".", 0x35: "/",
    0x10: "q", 0x11: "w", 0x12: "e", 0x13: "r", 0x14: "t",
    0x15: "y", 0x16: "u", 0x17: "i", 0x18: "o", 0x19: "p",
    0x1E: "a", 0x1F: "s", 0x20: "d", 0x21: "f", 0x22: "g",
    0x23: "h", 0x24: "j", 0x25: "k", 0x26: "l",
    0x2C: "z", 0x2D: "x", 0x2E: "c", 0x2F: "v", 0x30: "b", 0x31: "n", 0x32: "m",
}

NO_KEY_NAME = "<none>"


def key_name(scan: int) -> str:
    """Return a printable name for a scan code, or "<none>"."""
    return _KEY_NAMES.get(scan & 0xFF, NO_KEY_NAME)


class Keyboard:
    """Tracks modifier and key-down state and queues raw scan codes.

    Scan codes with bit 7 set are key releases.  The queue is a 16-slot
    ring; pushing a sixteenth unread code makes it appear empty again.
    """

    def __init__(
        self,
        repeat: bool = True,
        queue_keys: bool = True,
        handler: Optional[Callable[[], object]] = None,
    ) -> None:
        self.repeat = repeat
        self.queue_keys = queue_keys
        self.handler = handler
        self.modifiers = Modifier.NONE
        self.keydown: List[bool] = [False] * 128
        self._last_scan: Optional[int] = None
        self._ring = [0] * QUEUE_SIZE
        self._head = 0
        self._tail = 0

    def _update_modifiers(self, scan: int) -> bool:
        code = scan & 0x7F
        released = bool(scan & 0x80)
        if code in _SHIFT_SCANS:
            flag = Modifier.SHIFT
        elif code == _CTRL_SCAN:
            flag = Modifier.CTRL
        elif code == _ALT_SCAN:
            flag = Modifier.ALT
        else:
            return False
        if released:
            self.modifiers &= ~flag
        else:
            self.modifiers |= flag
        return True

    def handle_scan(self, scan: int) -> bool:
        """Process one scan code from the keyboard; return True if it was queued."""
        scan &= 0xFF
        if not self.repeat and self._last_scan == scan:
            return False
        self._last_scan = scan
        self.keydown[scan & 0x7F] = not (scan & 0x80)
        if self._update_modifiers(scan):
            return False
        if self.handler is not None or self.queue_keys:
            self.push(scan)
            return True
        return False

    def push(self, scan: int) -> None:
        self._ring[self._tail] = scan & 0xFF
        self._tail = (self._tail + 1) % QUEUE_SIZE

    def get(self) -> Optional[int]:
        """Take the next scan code from the queue, or None when it is empty."""
        if self._head == self._tail:
            return None
        scan = self._ring[self._head]
        self._head = (self._head + 1) % QUEUE_SIZE
        return scan

    def has_key(self) -> bool:
        return self._head != self._tail

    def scan_to_ascii(self, scan: int) -> int:
        """Translate a scan code to a character code (0 when it has none)."""
        table = _SHIFTED if self.modifiers & Modifier.SHIFT else _PLAIN
        return table[scan] if 0 <= scan < len(table) else 0
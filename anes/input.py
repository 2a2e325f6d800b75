"""Controller input devices: keyboards, analog joysticks and Gravis pads."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple


class DeviceType(enum.IntEnum):
    NONE = 0
    GRAVIS = 1
    KEY1 = 2
    KEY2 = 3
    JOY1 = 4
    JOY2 = 5
    GRIP1 = 6
    GRIP2 = 7


class Direction(enum.IntFlag):
    NONE = 0
    RIGHT = 0x1
    LEFT = 0x2
    UP = 0x4
    DOWN = 0x8
    BUT0 = 0x10
    BUT1 = 0x20
    BUT2 = 0x40
    BUT3 = 0x80


KEYMAP_SIZE = 14


@dataclass
class Keymap:
    """Scan codes for up-left, up, up-right, left, right, down-left, down,
    down-right and six buttons, in that order."""

    codes: List[int]

    def __post_init__(self) -> None:
        self.codes = [c & 0xFF for c in self.codes]
        if len(self.codes) != KEYMAP_SIZE:
            raise ValueError(f"a keymap holds {KEYMAP_SIZE} scan codes")

    def apply(self, scan: int, state: int) -> Optional[int]:
        """Return ``state`` with the mapped key's bit set or cleared, or None
        if the scan code is not in this keymap."""
        scan &= 0xFF
        released = bool(scan & 0x80)
        code = scan & 0x7F if released else scan
        for bit, mapped in enumerate(self.codes):
            if mapped == code:
                return state & ~(1 << bit) if released else state | (1 << bit)
        return None

    def copy(self) -> "Keymap":
        return Keymap(list(self.codes))


DEFAULT_KEYMAPS: Tuple[Tuple[int, ...], Tuple[int, ...]] = (
    (0x47, 0x48, 0x49, 0x4B, 0x4D, 0x4F, 0x50, 0x51,
     0x18, 0x19, 0x1A, 0x26, 0x27, 0x28),
    (0x13, 0x14, 0x15, 0x21, 0x23, 0x2F, 0x30, 0x31,
     0x10, 0x11, 0x12, 0x1E, 0x1F, 0x20),
)


@dataclass
class JoyThreshold:
    l: int = 0
    r: int = 0
    u: int = 0
    d: int = 0


JOY_CENTER = 32768
JOY_DEADZONE = 5000


def _default_threshold() -> JoyThreshold:
    return JoyThreshold(
        JOY_CENTER - JOY_DEADZONE, JOY_CENTER + JOY_DEADZONE,
        JOY_CENTER - JOY_DEADZONE, JOY_CENTER + JOY_DEADZONE,
    )


@dataclass
class InputSettings:
    """Saved keymaps and joystick calibrations for the input devices."""

    keymaps: List[Keymap] = field(
        default_factory=lambda: [Keymap(list(codes)) for codes in DEFAULT_KEYMAPS]
    )
    joysticks: List[JoyThreshold] = field(
        default_factory=lambda: [JoyThreshold(), JoyThreshold()]
    )
    grip_slots: List[int] = field(default_factory=lambda: [0, 0])


class InputDevice(ABC):
    """A controller; ``stat`` holds directions and button-press triggers,
    ``but`` the buttons currently held."""

    def __init__(self, device_type: DeviceType) -> None:
        self.type = DeviceType(device_type)
        self.testing = False
        self.stat = 0
        self.oldbut = 0
        self.but = 0
        self.ticks = 0

    def reset(self) -> None:
        """Clear the button triggers, keeping the directions."""
        self.stat &= 0xF

    @abstractmethod
    def read(self) -> None:
        """Recompute ``stat`` and ``but`` from the device state."""

    def key(self, scan: int) -> bool:
        """Offer a scan code to the device; True if it consumed it."""
        return False

    def timer(self) -> None:
        """Called on every timer tick; counts the ticks seen."""
        self.ticks += 1

    def poll(self) -> None:
        """Called once per pass of the main loop."""

    def save_settings(self) -> None:
        """Write the device's settings back to the shared settings."""

    def _update_buttons(self, held: int) -> None:
        self.oldbut = self.but
        self.but = held
        self.stat |= (self.oldbut ^ self.but) & self.but


class NoInput(InputDevice):
    def __init__(self) -> None:
        super().__init__(DeviceType.NONE)

    def read(self) -> None:
        self.stat = 0
        self.but = 0


JoyReading = Optional[Tuple[int, int, int]]


class Joystick(InputDevice):
    """An analog joystick.  ``source`` returns (x, y, buttons) or None when
    the stick cannot be read; it is sampled from :meth:`poll` every few calls."""

    poll_period = 2

    def __init__(
        self,
        device_type: DeviceType,
        threshold: JoyThreshold,
        source: Optional[Callable[[], JoyReading]] = None,
    ) -> None:
        super().__init__(device_type)
        self._saved_threshold = threshold
        self.threshold = _default_threshold()
        self.source = source
        self.installed = True
        self.x = 0
        self.y = 0
        self.buttons = 0
        self._countdown = 0

    def _translate_buttons(self, raw: int) -> int:
        return raw

    def set_state(self, x: int, y: int, buttons: int) -> None:
        """Record a raw reading of the stick position and buttons."""
        self.x = x
        self.y = y
        self.buttons = self._translate_buttons(buttons)

    def poll(self) -> None:
        if not self.installed:
            return
        if self._countdown >= 0:
            self._countdown -= 1
            return
        self._countdown = self.poll_period
        if self.source is None:
            return
        reading = self.source()
        if reading is None:
            self.x = self.y = self.buttons = 0
            self.installed = False
            return
        self.set_state(*reading)

    def read(self) -> None:
        t = self.threshold
        self.stat &= ~0xF
        if self.x > t.r:
            self.stat |= Direction.RIGHT
        elif self.x < t.l:
            self.stat |= Direction.LEFT
        if self.y > t.d:
            self.stat |= Direction.DOWN
        elif self.y < t.u:
            self.stat |= Direction.UP
        self._update_buttons(self.buttons << 4)

    def save_settings(self) -> None:
        saved, t = self._saved_threshold, self.threshold
        saved.l, saved.r, saved.u, saved.d = t.l, t.r, t.u, t.d


_GRAVIS_BUTTONS = (0, 1, 4, 5, 2, 3, 6, 7, 8, 9, 12, 13, 10, 11, 14, 15)


class GravisPad(Joystick):
    """A Gravis gamepad: a joystick whose four buttons are wired out of order."""

    poll_period = 3

    def __init__(
        self,
        threshold: JoyThreshold,
        source: Optional[Callable[[], JoyReading]] = None,
    ) -> None:
        super().__init__(DeviceType.GRAVIS, threshold, source)

    def _translate_buttons(self, raw: int) -> int:
        return _GRAVIS_BUTTONS[raw & 15]


_UP_KEYS = (1 << 0) | (1 << 1) | (1 << 2)
_DOWN_KEYS = (1 << 5) | (1 << 6) | (1 << 7)
_RIGHT_KEYS = (1 << 2) | (1 << 4) | (1 << 7)
_LEFT_KEYS = (1 << 0) | (1 << 3) | (1 << 5)


class KeyboardInput(InputDevice):
    """A controller played on the keyboard through a keymap."""

    def __init__(self, device_type: DeviceType, keymap: Keymap) -> None:
        super().__init__(device_type)
        self._saved_keymap = keymap
        self.keymap = keymap.copy()
        self.keystate = 0

    def key(self, scan: int) -> bool:
        state = self.keymap.apply(scan, self.keystate)
        if state is None:
            return False
        self.keystate = state
        return True

    def read(self) -> None:
        ks = self.keystate
        self.stat = 0
        if ks & _UP_KEYS:
            self.stat |= Direction.UP
        elif ks & _DOWN_KEYS:
            self.stat |= Direction.DOWN
        if ks & _RIGHT_KEYS:
            self.stat |= Direction.RIGHT
        elif ks & _LEFT_KEYS:
            self.stat |= Direction.LEFT
        self._update_buttons((ks & 0xFF00) >> 4)

    def save_settings(self) -> None:
        self._saved_keymap.codes[:] = self.keymap.codes


class InputPorts:
    """The two controller ports; empty ports hold None."""

    def __init__(self, devices: Sequence[Optional[InputDevice]] = (None, None)) -> None:
        self.devices: List[Optional[InputDevice]] = list(devices)

    def _present(self):
        return (d for d in self.devices if d is not None)

    def key(self, scan: int) -> bool:
        """Offer a scan code to each device in turn; True once one takes it."""
        return any(device.key(scan) for device in self._present())

    def timer(self) -> None:
        for device in self._present():
            device.timer()

    def poll(self) -> None:
        for device in self._present():
            device.poll()


def new_input_device(
    device_type: DeviceType, settings: Optional[InputSettings]
) -> Optional[InputDevice]:
    """Create a device of the given type; None without settings or for an
    unsupported type."""
    if settings is None:
        return None
    if device_type == DeviceType.NONE:
        return NoInput()
    if device_type == DeviceType.JOY1:
        return Joystick(DeviceType.JOY1, settings.joysticks[0])
    if device_type == DeviceType.JOY2:
        return Joystick(DeviceType.JOY2, settings.joysticks[1])
    if device_type == DeviceType.GRAVIS:
        return GravisPad(settings.joysticks[0])
    if device_type == DeviceType.KEY1:
        return KeyboardInput(DeviceType.KEY1, settings.keymaps[0])
    if device_type == DeviceType.KEY2:
        return KeyboardInput(DeviceType.KEY2, settings.keymaps[1])
    return None
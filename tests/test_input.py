import pytest

from anes.input import (
    DEFAULT_KEYMAPS,
    JOY_CENTER,
    DeviceType,
    Direction,
    GravisPad,
    InputPorts,
    InputSettings,
    JoyThreshold,
    Joystick,
    Keymap,
    KeyboardInput,
    NoInput,
    new_input_device,
)

UP_KEY = DEFAULT_KEYMAPS[0][1]
UP_LEFT_KEY = DEFAULT_KEYMAPS[0][0]
BUTTON0_KEY = DEFAULT_KEYMAPS[0][8]


def test_keymap_press_and_release():
    km = Keymap(list(DEFAULT_KEYMAPS[0]))
    state = km.apply(UP_KEY, 0)
    assert state == 1 << 1
    assert km.apply(UP_KEY | 0x80, state) == 0
    assert km.apply(0x01, state) is None


def test_keymap_size_checked():
    with pytest.raises(ValueError):
        Keymap([1, 2, 3])


def test_keyboard_direction():
    dev = KeyboardInput(DeviceType.KEY1, Keymap(list(DEFAULT_KEYMAPS[0])))
    assert dev.key(UP_KEY) is True
    dev.read()
    assert dev.stat == Direction.UP


def test_keyboard_diagonal():
    dev = KeyboardInput(DeviceType.KEY1, Keymap(list(DEFAULT_KEYMAPS[0])))
    dev.key(UP_LEFT_KEY)
    dev.read()
    assert dev.stat == Direction.UP | Direction.LEFT


def test_keyboard_button_trigger_only_once():
    dev = KeyboardInput(DeviceType.KEY1, Keymap(list(DEFAULT_KEYMAPS[0])))
    dev.key(BUTTON0_KEY)
    dev.read()
    assert dev.but == Direction.BUT0
    assert dev.stat & Direction.BUT0
    dev.read()
    assert dev.but == Direction.BUT0
    assert not dev.stat & Direction.BUT0


def test_keyboard_ignores_foreign_keys():
    dev = KeyboardInput(DeviceType.KEY2, Keymap(list(DEFAULT_KEYMAPS[1])))
    assert dev.key(UP_KEY) is False
    assert dev.keystate == 0


def test_keyboard_save_settings_writes_back():
    original = Keymap(list(DEFAULT_KEYMAPS[0]))
    dev = KeyboardInput(DeviceType.KEY1, original)
    dev.keymap.codes[0] = 0x39
    assert original.codes[0] == DEFAULT_KEYMAPS[0][0]
    dev.save_settings()
    assert original.codes[0] == 0x39


def test_joystick_centre_has_no_direction():
    dev = Joystick(DeviceType.JOY1, JoyThreshold())
    dev.set_state(JOY_CENTER, JOY_CENTER, 0)
    dev.read()
    assert dev.stat == 0


def test_joystick_directions_and_buttons():
    dev = Joystick(DeviceType.JOY1, JoyThreshold())
    dev.set_state(2 * JOY_CENTER - 1, 0, 1)
    dev.read()
    assert dev.stat == Direction.RIGHT | Direction.UP | Direction.BUT0


def test_joystick_trigger_persists_until_reset():
    dev = Joystick(DeviceType.JOY2, JoyThreshold())
    dev.set_state(0, 2 * JOY_CENTER - 1, 1)
    dev.read()
    dev.read()
    assert dev.stat == Direction.LEFT | Direction.DOWN | Direction.BUT0
    dev.reset()
    assert dev.stat == Direction.LEFT | Direction.DOWN


def test_gravis_translates_buttons():
    dev = GravisPad(JoyThreshold())
    dev.set_state(JOY_CENTER, JOY_CENTER, 2)
    dev.read()
    assert dev.but == Direction.BUT2


def test_joystick_poll_samples_after_countdown():
    calls = []

    def source():
        calls.append(1)
        return (0, JOY_CENTER, 0)

    dev = Joystick(DeviceType.JOY1, JoyThreshold(), source)
    dev.poll()
    assert calls == []
    dev.poll()
    assert len(calls) == 1
    assert dev.x == 0
    dev.poll()
    assert len(calls) == 1


def test_joystick_poll_failure_uninstalls():
    dev = Joystick(DeviceType.JOY1, JoyThreshold(), lambda: None)
    dev.set_state(5, 5, 1)
    dev.poll()
    dev.poll()
    assert dev.installed is False
    assert (dev.x, dev.y, dev.buttons) == (0, 0, 0)


def test_joystick_save_settings_writes_back():
    saved = JoyThreshold()
    dev = Joystick(DeviceType.JOY1, saved)
    dev.save_settings()
    assert saved == dev.threshold


def test_no_input_reads_nothing():
    dev = NoInput()
    dev.stat = 0xFF
    dev.but = 0xF0
    dev.read()
    assert (dev.stat, dev.but) == (0, 0)


@pytest.mark.parametrize(
    "device_type, cls",
    [
        (DeviceType.NONE, NoInput),
        (DeviceType.JOY1, Joystick),
        (DeviceType.JOY2, Joystick),
        (DeviceType.GRAVIS, GravisPad),
        (DeviceType.KEY1, KeyboardInput),
        (DeviceType.KEY2, KeyboardInput),
    ],
)
def test_new_input_device_types(device_type, cls):
    dev = new_input_device(device_type, InputSettings())
    assert isinstance(dev, cls)
    assert dev.type == device_type


def test_new_input_device_unsupported_or_unconfigured():
    assert new_input_device(DeviceType.GRIP1, InputSettings()) is None
    assert new_input_device(DeviceType.KEY1, None) is None


def test_new_keyboard_uses_settings_keymap():
    settings = InputSettings()
    dev = new_input_device(DeviceType.KEY2, settings)
    assert dev.keymap.codes == settings.keymaps[1].codes


def test_ports_route_keys():
    settings = InputSettings()
    ports = InputPorts([None, new_input_device(DeviceType.KEY1, settings)])
    assert ports.key(UP_KEY) is True
    assert ports.key(0x01) is False
    assert ports.devices[1].keystate == 1 << 1


def test_ports_poll_reaches_devices():
    calls = []
    joy = Joystick(DeviceType.JOY1, JoyThreshold(), lambda: calls.append(1) or (1, 2, 0))
    ports = InputPorts([joy, None])
    ports.timer()
    ports.poll()
    ports.poll()
    assert calls == [1]
    assert (joy.x, joy.y) == (1, 2)
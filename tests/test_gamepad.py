import pytest

from pocketboy.gamepad import Gamepad


def test_idle_output():
    assert Gamepad().output() == 0xCF


def test_set_sel_bits():
    pad = Gamepad()
    pad.set_sel(0x20)
    assert pad.button_sel is True
    assert pad.dir_sel is False
    pad.set_sel(0x10)
    assert pad.button_sel is False
    assert pad.dir_sel is True


@pytest.mark.parametrize(
    "name,bit",
    [("start", 3), ("select", 2), ("a", 0), ("b", 1)],
)
def test_buttons_clear_bits_when_selected(name, bit):
    pad = Gamepad()
    pad.set_sel(0x10)
    setattr(pad.state, name, True)
    assert pad.output() & (1 << bit) == 0
    assert pad.output() | (1 << bit) == 0xCF


@pytest.mark.parametrize(
    "name,bit",
    [("left", 1), ("right", 0), ("up", 2), ("down", 3)],
)
def test_directions_clear_bits_when_selected(name, bit):
    pad = Gamepad()
    pad.set_sel(0x20)
    setattr(pad.state, name, True)
    assert pad.output() & (1 << bit) == 0


def test_nothing_reported_when_deselected():
    pad = Gamepad()
    pad.set_sel(0x30)
    pad.state.start = True
    pad.state.up = True
    assert pad.output() == 0xCF


def test_buttons_ignored_when_only_directions_selected():
    pad = Gamepad()
    pad.set_sel(0x20)
    pad.state.a = True
    assert pad.output() == 0xCF
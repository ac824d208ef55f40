from __future__ import annotations

import pytest

from tealoop.terminal.keys import parse_input
from tealoop.terminal.models import KeyMsg, MouseAction, MouseButton, MouseMsg


def test_printable_runes() -> None:
    assert parse_input(b"ab") == [KeyMsg("runes", runes="a"), KeyMsg("runes", runes="b")]


def test_utf8_runes() -> None:
    events = parse_input("é".encode())

    assert events == [KeyMsg("runes", runes="é")]


@pytest.mark.parametrize(
    ("data", "name"),
    [
        (b"\r", "enter"),
        (b"\t", "tab"),
        (b"\x7f", "backspace"),
        (b"\x03", "ctrl+c"),
        (b"\x01", "ctrl+a"),
        (b"\x1b", "esc"),
        (b" ", "space"),
    ],
)
def test_control_keys(data: bytes, name: str) -> None:
    events = parse_input(data)

    assert len(events) == 1
    assert str(events[0]) == name


@pytest.mark.parametrize(
    ("data", "name"),
    [
        (b"\x1b[A", "up"),
        (b"\x1bOB", "down"),
        (b"\x1b[1;5C", "ctrl+right"),
        (b"\x1b[1;2D", "shift+left"),
        (b"\x1b[Z", "shift+tab"),
        (b"\x1b[3~", "delete"),
        (b"\x1b[5~", "pgup"),
        (b"\x1bOP", "f1"),
        (b"\x1b[24~", "f12"),
    ],
)
def test_escape_sequences(data: bytes, name: str) -> None:
    assert parse_input(data) == [KeyMsg(name)]


def test_alt_modified_rune() -> None:
    events = parse_input(b"\x1bx")

    assert events == [KeyMsg("runes", runes="x", alt=True)]
    assert str(events[0]) == "alt+x"


def test_sequences_followed_by_runes() -> None:
    events = parse_input(b"\x1b[Aq")

    assert [str(event) for event in events] == ["up", "q"]


def test_sgr_mouse_press() -> None:
    events = parse_input(b"\x1b[<0;10;5M")

    assert events == [MouseMsg(x=9, y=4, button=MouseButton.LEFT, action=MouseAction.PRESS)]
    assert str(events[0]) == "left press"


def test_sgr_mouse_release_with_modifiers() -> None:
    (event,) = parse_input(b"\x1b[<18;1;1m")

    assert isinstance(event, MouseMsg)
    assert event.button == MouseButton.RIGHT
    assert event.action == MouseAction.RELEASE
    assert event.ctrl is True
    assert str(event) == "ctrl+right release"


def test_sgr_mouse_wheel_and_motion() -> None:
    wheel, motion = parse_input(b"\x1b[<65;3;3M\x1b[<35;4;2M")

    assert isinstance(wheel, MouseMsg)
    assert wheel.button == MouseButton.WHEEL_DOWN
    assert str(wheel) == "wheel down"
    assert isinstance(motion, MouseMsg)
    assert motion.action == MouseAction.MOTION
    assert (motion.x, motion.y) == (3, 1)

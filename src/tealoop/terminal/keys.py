"""Decode raw terminal input bytes into key and mouse messages."""

from __future__ import annotations

import re

from tealoop.terminal.models import KeyMsg, MouseAction, MouseButton, MouseMsg

ESC = "\x1b"

_SGR_MOUSE = re.compile(r"\x1b\[<(\d+);(\d+);(\d+)([Mm])")

_NAMED_CONTROLS = {
    "\r": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x1b": "esc",
    "\x00": "ctrl+@",
    "\x1c": "ctrl+\\",
    "\x1d": "ctrl+]",
    "\x1e": "ctrl+^",
    "\x1f": "ctrl+_",
}


def _build_sequences() -> dict[str, str]:
    sequences = {
        "\x1b[Z": "shift+tab",
        "\x1b[2~": "insert",
        "\x1b[3~": "delete",
        "\x1b[5~": "pgup",
        "\x1b[6~": "pgdown",
        "\x1b[H": "home",
        "\x1b[1~": "home",
        "\x1bOH": "home",
        "\x1b[F": "end",
        "\x1b[4~": "end",
        "\x1bOF": "end",
        "\x1bOP": "f1",
        "\x1bOQ": "f2",
        "\x1bOR": "f3",
        "\x1bOS": "f4",
        "\x1b[15~": "f5",
        "\x1b[17~": "f6",
        "\x1b[18~": "f7",
        "\x1b[19~": "f8",
        "\x1b[20~": "f9",
        "\x1b[21~": "f10",
        "\x1b[23~": "f11",
        "\x1b[24~": "f12",
    }
    arrows = {"A": "up", "B": "down", "C": "right", "D": "left"}
    modifiers = {"2": "shift+", "3": "alt+", "5": "ctrl+", "6": "ctrl+shift+"}
    for final, name in arrows.items():
        sequences[f"\x1b[{final}"] = name
        sequences[f"\x1bO{final}"] = name
        for code, prefix in modifiers.items():
            sequences[f"\x1b[1;{code}{final}"] = f"{prefix}{name}"
    return sequences


_SEQUENCES = _build_sequences()
# Longest first, so "\x1b[1;5A" wins over any shorter prefix.
_ORDERED_SEQUENCES = sorted(_SEQUENCES.items(), key=lambda item: len(item[0]), reverse=True)


def _single(ch: str, *, alt: bool = False) -> KeyMsg:
    named = _NAMED_CONTROLS.get(ch)
    if named is not None:
        return KeyMsg(named, alt=alt)
    code = ord(ch)
    if code < 0x20:
        return KeyMsg(f"ctrl+{chr(code + 0x60)}", alt=alt)
    if ch == " ":
        return KeyMsg("space", runes=" ", alt=alt)
    return KeyMsg("runes", runes=ch, alt=alt)


def _mouse(match: re.Match[str]) -> MouseMsg:
    code = int(match.group(1))
    x = int(match.group(2)) - 1
    y = int(match.group(3)) - 1
    released = match.group(4) == "m"

    if code & 64:
        button = MouseButton.WHEEL_DOWN if code & 1 else MouseButton.WHEEL_UP
    else:
        button = (MouseButton.LEFT, MouseButton.MIDDLE, MouseButton.RIGHT, MouseButton.NONE)[code & 3]

    if code & 32:
        action = MouseAction.MOTION
    elif released:
        action = MouseAction.RELEASE
    else:
        action = MouseAction.PRESS

    return MouseMsg(
        x=x,
        y=y,
        button=button,
        action=action,
        shift=bool(code & 4),
        alt=bool(code & 8),
        ctrl=bool(code & 16),
    )


def parse_input(data: bytes) -> list[KeyMsg | MouseMsg]:
    text = data.decode("utf-8", errors="replace")
    events: list[KeyMsg | MouseMsg] = []
    index = 0
    while index < len(text):
        ch = text[index]
        if ch != ESC:
            events.append(_single(ch))
            index += 1
            continue

        mouse = _SGR_MOUSE.match(text, index)
        if mouse is not None:
            events.append(_mouse(mouse))
            index = mouse.end()
            continue

        for sequence, name in _ORDERED_SEQUENCES:
            if text.startswith(sequence, index):
                events.append(KeyMsg(name))
                index += len(sequence)
                break
        else:
            if index + 1 < len(text):
                events.append(_single(text[index + 1], alt=True))
                index += 2
            else:
                events.append(KeyMsg("esc"))
                index += 1
    return events

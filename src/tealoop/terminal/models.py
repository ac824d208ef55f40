"""Decoded input event models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MouseButton(str, Enum):
    NONE = "none"
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"
    WHEEL_UP = "wheel up"
    WHEEL_DOWN = "wheel down"


class MouseAction(str, Enum):
    PRESS = "press"
    RELEASE = "release"
    MOTION = "motion"


@dataclass(frozen=True)
class KeyMsg:
    """A key press. ``key`` is ``"runes"`` for printable input."""

    key: str
    runes: str = ""
    alt: bool = False

    def __str__(self) -> str:
        name = self.runes if self.key == "runes" else self.key
        if self.alt:
            return f"alt+{name}"
        return name


@dataclass(frozen=True)
class MouseMsg:
    x: int
    y: int
    button: MouseButton = MouseButton.NONE
    action: MouseAction = MouseAction.PRESS
    shift: bool = False
    alt: bool = False
    ctrl: bool = False

    def __str__(self) -> str:
        parts = []
        if self.ctrl:
            parts.append("ctrl")
        if self.alt:
            parts.append("alt")
        if self.shift:
            parts.append("shift")
        if self.button in (MouseButton.WHEEL_UP, MouseButton.WHEEL_DOWN):
            parts.append(self.button.value)
        else:
            parts.append(f"{self.button.value} {self.action.value}")
        return "+".join(parts)

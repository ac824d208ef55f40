"""Message types carried on the program bus."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

Msg = Any
Cmd = Callable[[], Optional[Msg]]


class Model(Protocol):
    def init(self) -> Cmd | None: ...

    def update(self, msg: Msg) -> tuple[Model, Cmd | None]: ...

    def view(self) -> str: ...


class ExecCommand(Protocol):
    def run(self) -> None: ...

    def set_stdin(self, stream: object) -> None: ...

    def set_stdout(self, stream: object) -> None: ...

    def set_stderr(self, stream: object) -> None: ...


ExecCallback = Callable[[Optional[BaseException]], Optional[Msg]]


@dataclass(frozen=True)
class WindowSizeMsg:
    width: int
    height: int


@dataclass(frozen=True)
class QuitMsg:
    pass


@dataclass(frozen=True)
class ClearScreenMsg:
    pass


@dataclass(frozen=True)
class EnterAltScreenMsg:
    pass


@dataclass(frozen=True)
class ExitAltScreenMsg:
    pass


@dataclass(frozen=True)
class EnableMouseCellMotionMsg:
    pass


@dataclass(frozen=True)
class EnableMouseAllMotionMsg:
    pass


@dataclass(frozen=True)
class DisableMouseMsg:
    pass


@dataclass(frozen=True)
class ShowCursorMsg:
    pass


@dataclass(frozen=True)
class HideCursorMsg:
    pass


@dataclass(frozen=True)
class RepaintMsg:
    pass


@dataclass(frozen=True)
class PrintLineMsg:
    text: str


@dataclass(frozen=True)
class ExecMsg:
    command: ExecCommand
    callback: ExecCallback | None = None


@dataclass(frozen=True)
class BatchMsg:
    commands: tuple[Cmd, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SequenceMsg:
    commands: tuple[Cmd, ...] = field(default_factory=tuple)


CONTROL_MESSAGE_TYPES: tuple[type, ...] = (
    QuitMsg,
    ClearScreenMsg,
    EnterAltScreenMsg,
    ExitAltScreenMsg,
    EnableMouseCellMotionMsg,
    EnableMouseAllMotionMsg,
    DisableMouseMsg,
    ShowCursorMsg,
    HideCursorMsg,
    ExecMsg,
    BatchMsg,
    SequenceMsg,
    PrintLineMsg,
    RepaintMsg,
)


def is_control_message(msg: Msg) -> bool:
    return isinstance(msg, CONTROL_MESSAGE_TYPES)

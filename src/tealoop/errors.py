"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    PROGRAM_KILLED = 5
    TERMINAL_ERROR = 6
    PANIC = 7


@dataclass
class TealoopError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""
    model: Any = None

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class ProgramError(TealoopError):
    """Infrastructure failure that ended a run."""


@dataclass
class ProgramKilledError(TealoopError):
    message: str = "program was killed"
    code: ExitCode = ExitCode.PROGRAM_KILLED


@dataclass
class TerminalSetupError(TealoopError):
    code: ExitCode = ExitCode.TERMINAL_ERROR


@dataclass
class CommandError(TealoopError):
    """A command raised instead of returning a message."""


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."

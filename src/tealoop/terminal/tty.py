"""Low-level terminal primitives: TTY detection, raw mode, size queries."""

from __future__ import annotations

import io
import os
from typing import Any

from tealoop.errors import ExitCode, TerminalSetupError

_IS_WINDOWS = os.name == "nt"

if not _IS_WINDOWS:
    import termios
    import tty as _tty

TTY_PATH = "/dev/tty"


def file_descriptor(stream: object) -> int | None:
    if stream is None:
        return None
    fileno = getattr(stream, "fileno", None)
    if fileno is None:
        return None
    try:
        return int(fileno())
    except (OSError, ValueError, io.UnsupportedOperation):
        return None


def is_terminal(stream: object) -> bool:
    fd = file_descriptor(stream)
    if fd is None:
        return False
    try:
        return os.isatty(fd)
    except OSError:
        return False


def open_input_tty() -> io.FileIO:
    """Open the controlling terminal for reading."""
    path = "CONIN$" if _IS_WINDOWS else TTY_PATH
    try:
        return io.FileIO(path, "r")
    except OSError as exc:
        raise TerminalSetupError(
            "Could not open a TTY for input.",
            code=ExitCode.TERMINAL_ERROR,
            hint=str(exc) or "Run the program from an interactive terminal.",
        ) from exc


def make_raw(fd: int) -> Any:
    """Switch ``fd`` to raw mode and return the previous mode."""
    if _IS_WINDOWS:
        raise TerminalSetupError(
            "Raw mode is only supported on POSIX terminals.",
            code=ExitCode.TERMINAL_ERROR,
            hint="Run the program from a POSIX terminal.",
        )
    try:
        previous = termios.tcgetattr(fd)
        _tty.setraw(fd, termios.TCSANOW)
    except (termios.error, OSError) as exc:
        raise TerminalSetupError(
            "Failed to enter raw mode.",
            code=ExitCode.TERMINAL_ERROR,
            hint=str(exc) or "Verify the input is an interactive terminal.",
        ) from exc
    return previous


def restore_mode(fd: int, previous: Any) -> None:
    if _IS_WINDOWS or previous is None:
        return
    try:
        termios.tcsetattr(fd, termios.TCSANOW, previous)
    except (termios.error, OSError) as exc:
        raise TerminalSetupError(
            "Failed to restore terminal mode.",
            code=ExitCode.TERMINAL_ERROR,
            hint=str(exc) or "Run `stty sane` to reset the terminal.",
        ) from exc


def get_size(fd: int) -> tuple[int, int]:
    """Return ``(width, height)`` of the terminal behind ``fd``."""
    size = os.get_terminal_size(fd)
    return size.columns, size.lines

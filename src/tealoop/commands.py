"""Command constructors for the runtime's control surface."""

from __future__ import annotations

import subprocess
import sys
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from tealoop.messages import (
    BatchMsg,
    ClearScreenMsg,
    Cmd,
    DisableMouseMsg,
    EnableMouseAllMotionMsg,
    EnableMouseCellMotionMsg,
    EnterAltScreenMsg,
    ExecCallback,
    ExecCommand,
    ExecMsg,
    ExitAltScreenMsg,
    HideCursorMsg,
    Msg,
    PrintLineMsg,
    QuitMsg,
    SequenceMsg,
    ShowCursorMsg,
)


def quit_cmd() -> Msg:
    """Tell the program to exit after a final render."""
    return QuitMsg()


def clear_screen() -> Msg:
    return ClearScreenMsg()


def enter_alt_screen() -> Msg:
    return EnterAltScreenMsg()


def exit_alt_screen() -> Msg:
    return ExitAltScreenMsg()


def enable_mouse_cell_motion() -> Msg:
    return EnableMouseCellMotionMsg()


def enable_mouse_all_motion() -> Msg:
    return EnableMouseAllMotionMsg()


def disable_mouse() -> Msg:
    return DisableMouseMsg()


def show_cursor() -> Msg:
    return ShowCursorMsg()


def hide_cursor() -> Msg:
    return HideCursorMsg()


def _compact(cmds: Sequence[Cmd | None]) -> tuple[Cmd, ...]:
    return tuple(cmd for cmd in cmds if cmd is not None)


def batch(*cmds: Cmd | None) -> Cmd | None:
    """Run commands concurrently with no ordering guarantee."""
    valid = _compact(cmds)
    if not valid:
        return None
    if len(valid) == 1:
        return valid[0]
    return lambda: BatchMsg(commands=valid)


def sequence(*cmds: Cmd | None) -> Cmd | None:
    """Run commands one at a time, delivering each result before the next starts."""
    valid = _compact(cmds)
    if not valid:
        return None
    if len(valid) == 1:
        return valid[0]
    return lambda: SequenceMsg(commands=valid)


def println(*args: object) -> Cmd:
    text = " ".join(str(arg) for arg in args)
    return lambda: PrintLineMsg(text=text)


def printf(template: str, *args: object) -> Cmd:
    text = template % args if args else template
    return lambda: PrintLineMsg(text=text)


def tick(
    seconds: float,
    fn: Callable[[datetime], Msg | None],
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Cmd:
    def _tick() -> Msg | None:
        sleep(seconds)
        return fn(datetime.now())

    return _tick


def every(
    seconds: float,
    fn: Callable[[datetime], Msg | None],
    *,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], datetime] = datetime.now,
) -> Cmd:
    """Like tick, but fires on the next multiple of ``seconds`` of the wall clock."""
    if seconds <= 0:
        raise ValueError(f"Invalid interval: {seconds}")

    def _every() -> Msg | None:
        now = clock()
        epoch = now.timestamp()
        remainder = epoch % seconds
        delay = seconds - remainder
        sleep(delay)
        return fn(now + timedelta(seconds=delay))

    return _every


class ProcessCommand:
    """ExecCommand backed by subprocess."""

    def __init__(
        self,
        argv: Sequence[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        if not argv:
            raise ValueError("Process command cannot be empty.")
        self.argv = list(argv)
        self.cwd = cwd
        self.env = env
        self._runner = runner
        self._stdin: object = sys.stdin
        self._stdout: object = sys.stdout
        self._stderr: object = sys.stderr

    def set_stdin(self, stream: object) -> None:
        self._stdin = stream

    def set_stdout(self, stream: object) -> None:
        self._stdout = stream

    def set_stderr(self, stream: object) -> None:
        self._stderr = stream

    def run(self) -> None:
        self._runner(
            self.argv,
            stdin=self._stdin,
            stdout=self._stdout,
            stderr=self._stderr,
            cwd=self.cwd,
            env=self.env,
            check=True,
        )


def exec_process(command: ExecCommand | Sequence[str], callback: ExecCallback | None = None) -> Cmd:
    """Hand the terminal to an external process, then resume.

    ``callback`` receives the error raised by the process (or ``None``) and
    may return a message for the program.
    """
    resolved = ProcessCommand(command) if isinstance(command, (list, tuple)) else command
    return lambda: ExecMsg(command=resolved, callback=callback)

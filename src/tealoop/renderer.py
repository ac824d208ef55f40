"""Renderer contract and the line-based standard renderer."""

from __future__ import annotations

import logging as py_logging
import re
import threading
from typing import Protocol, TextIO

from tealoop.messages import Msg, PrintLineMsg, RepaintMsg, WindowSizeMsg
from tealoop.options import DEFAULT_FPS

logger = py_logging.getLogger(__name__)

CURSOR_HIDE = "\x1b[?25l"
CURSOR_SHOW = "\x1b[?25h"
ALT_SCREEN_ON = "\x1b[?1049h"
ALT_SCREEN_OFF = "\x1b[?1049l"
CLEAR_SCREEN = "\x1b[2J"
CURSOR_HOME = "\x1b[H"
ERASE_LINE = "\x1b[2K"
ERASE_LINE_RIGHT = "\x1b[K"
ERASE_DOWN = "\x1b[J"
MOUSE_CELL_MOTION_ON = "\x1b[?1002h"
MOUSE_CELL_MOTION_OFF = "\x1b[?1002l"
MOUSE_ALL_MOTION_ON = "\x1b[?1003h"
MOUSE_ALL_MOTION_OFF = "\x1b[?1003l"
MOUSE_SGR_ON = "\x1b[?1006h"
MOUSE_SGR_OFF = "\x1b[?1006l"

_SGR = re.compile(r"\x1b\[[0-9;]*m")


def cursor_up(lines: int) -> str:
    return f"\x1b[{lines}A"


class Renderer(Protocol):
    @property
    def alt_screen(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def kill(self) -> None: ...

    def write(self, view: str) -> None: ...

    def repaint(self) -> None: ...

    def clear_screen(self) -> None: ...

    def enter_alt_screen(self) -> None: ...

    def exit_alt_screen(self) -> None: ...

    def show_cursor(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def enable_mouse_cell_motion(self) -> None: ...

    def disable_mouse_cell_motion(self) -> None: ...

    def enable_mouse_all_motion(self) -> None: ...

    def disable_mouse_all_motion(self) -> None: ...

    def handle_message(self, msg: Msg) -> None: ...


def compress_sgr(frame: str) -> str:
    """Drop SGR sequences that repeat the one already in effect."""
    active = {"sgr": ""}

    def _keep(match: re.Match[str]) -> str:
        sequence = match.group(0)
        if sequence == active["sgr"]:
            return ""
        active["sgr"] = sequence
        return sequence

    return _SGR.sub(_keep, frame)


class StandardRenderer:
    """Paints frames from a ticker thread at a fixed frame rate.

    ``write`` only stores the latest frame; the ticker flushes it, skipping
    lines that did not change since the previous flush.
    """

    def __init__(self, output: TextIO, *, fps: int = DEFAULT_FPS, ansi_compressor: bool = False) -> None:
        self._out = output
        self._interval = 1.0 / max(1, fps)
        self._ansi_compressor = ansi_compressor
        self._lock = threading.RLock()
        self._pending: str | None = None
        self._last_render = ""
        self._last_frame = ""
        self._lines_rendered = 0
        self._queued_lines: list[str] = []
        self._alt_screen = False
        self._cursor_hidden = False
        self._width = 0
        self._height = 0
        self._stopping = threading.Event()
        self._ticker: threading.Thread | None = None

    @property
    def alt_screen(self) -> bool:
        return self._alt_screen

    def start(self) -> None:
        if self._ticker is not None:
            return
        self._stopping.clear()
        self._ticker = threading.Thread(target=self._tick, name="tealoop-renderer", daemon=True)
        self._ticker.start()

    def stop(self) -> None:
        self._halt()
        self.flush()
        with self._lock:
            if not self._alt_screen and self._lines_rendered:
                self._execute("\r\n")
            # A restarted renderer paints a new frame below the old one.
            self._lines_rendered = 0
            self.repaint()

    def kill(self) -> None:
        self._halt()
        with self._lock:
            self._execute(ERASE_LINE + "\r")

    def write(self, view: str) -> None:
        with self._lock:
            # An empty frame still has to replace whatever was painted before.
            self._pending = view or " "

    def repaint(self) -> None:
        with self._lock:
            self._last_render = ""
            self._last_frame = ""

    def clear_screen(self) -> None:
        with self._lock:
            self._execute(CLEAR_SCREEN + CURSOR_HOME)
            self._lines_rendered = 0
            self.repaint()

    def enter_alt_screen(self) -> None:
        with self._lock:
            if self._alt_screen:
                return
            self._alt_screen = True
            self._execute(ALT_SCREEN_ON + CLEAR_SCREEN + CURSOR_HOME)
            self._lines_rendered = 0
            if self._cursor_hidden:
                self._execute(CURSOR_HIDE)
            self.repaint()

    def exit_alt_screen(self) -> None:
        with self._lock:
            if not self._alt_screen:
                return
            self._alt_screen = False
            self._execute(ALT_SCREEN_OFF)
            self._lines_rendered = 0
            if self._cursor_hidden:
                self._execute(CURSOR_HIDE)
            self.repaint()

    def show_cursor(self) -> None:
        with self._lock:
            self._cursor_hidden = False
            self._execute(CURSOR_SHOW)

    def hide_cursor(self) -> None:
        with self._lock:
            self._cursor_hidden = True
            self._execute(CURSOR_HIDE)

    def enable_mouse_cell_motion(self) -> None:
        self._execute(MOUSE_CELL_MOTION_ON + MOUSE_SGR_ON)

    def disable_mouse_cell_motion(self) -> None:
        self._execute(MOUSE_CELL_MOTION_OFF + MOUSE_SGR_OFF)

    def enable_mouse_all_motion(self) -> None:
        self._execute(MOUSE_ALL_MOTION_ON + MOUSE_SGR_ON)

    def disable_mouse_all_motion(self) -> None:
        self._execute(MOUSE_ALL_MOTION_OFF + MOUSE_SGR_OFF)

    def handle_message(self, msg: Msg) -> None:
        if isinstance(msg, RepaintMsg):
            self.repaint()
        elif isinstance(msg, WindowSizeMsg):
            with self._lock:
                self._width = msg.width
                self._height = msg.height
                self.repaint()
        elif isinstance(msg, PrintLineMsg):
            if self._alt_screen:
                return
            with self._lock:
                self._queued_lines.extend(msg.text.split("\n"))
                self.repaint()

    def flush(self) -> None:
        with self._lock:
            frame = self._pending
            if frame is None:
                return
            if self._ansi_compressor:
                frame = compress_sgr(frame)
            if frame == self._last_frame and not self._queued_lines:
                return

            new_lines = frame.split("\n")
            if self._height and len(new_lines) > self._height:
                new_lines = new_lines[-self._height :]
            old_lines = self._last_render.split("\n") if self._last_render else []

            out: list[str] = []
            if self._lines_rendered > 1:
                out.append(cursor_up(self._lines_rendered - 1))
            out.append("\r")

            printed = 0
            if self._queued_lines and not self._alt_screen:
                for line in self._queued_lines:
                    out.append(line + ERASE_LINE_RIGHT + "\r\n")
                printed = len(self._queued_lines)
                old_lines = []
            self._queued_lines.clear()

            last_index = len(new_lines) - 1
            for index, line in enumerate(new_lines):
                if index >= len(old_lines) or old_lines[index] != line:
                    out.append(line + ERASE_LINE_RIGHT)
                if index < last_index:
                    out.append("\r\n")

            # Erase what is left of a taller previous frame.
            if self._lines_rendered > printed + len(new_lines):
                out.append("\r\n" + ERASE_DOWN + cursor_up(1))

            self._execute("".join(out))
            self._last_frame = frame
            self._last_render = "\n".join(new_lines)
            self._lines_rendered = len(new_lines)

    def _halt(self) -> None:
        self._stopping.set()
        ticker = self._ticker
        self._ticker = None
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join(timeout=1.0)

    def _tick(self) -> None:
        while not self._stopping.wait(self._interval):
            try:
                self.flush()
            except OSError as exc:
                logger.warning("Renderer flush failed: %s", exc)

    def _execute(self, sequence: str) -> None:
        with self._lock:
            self._out.write(sequence)
            self._out.flush()


class NullRenderer:
    """Renderer that paints nothing; used for headless runs."""

    def __init__(self) -> None:
        self._alt_screen = False

    @property
    def alt_screen(self) -> bool:
        return self._alt_screen

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def kill(self) -> None:
        pass

    def write(self, view: str) -> None:
        del view

    def repaint(self) -> None:
        pass

    def clear_screen(self) -> None:
        pass

    def enter_alt_screen(self) -> None:
        self._alt_screen = True

    def exit_alt_screen(self) -> None:
        self._alt_screen = False

    def show_cursor(self) -> None:
        pass

    def hide_cursor(self) -> None:
        pass

    def enable_mouse_cell_motion(self) -> None:
        pass

    def disable_mouse_cell_motion(self) -> None:
        pass

    def enable_mouse_all_motion(self) -> None:
        pass

    def disable_mouse_all_motion(self) -> None:
        pass

    def handle_message(self, msg: Msg) -> None:
        del msg

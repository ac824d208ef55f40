"""Background watchers translating OS events into bus messages."""

from __future__ import annotations

import logging as py_logging
import queue
import signal
import threading
from collections.abc import Callable, Sequence
from typing import Any

from tealoop.errors import ExitCode, ProgramError
from tealoop.messages import Msg, QuitMsg, WindowSizeMsg
from tealoop.scope import CancelScope
from tealoop.terminal.tty import file_descriptor, get_size, is_terminal

logger = py_logging.getLogger(__name__)

DEFAULT_QUIT_SIGNALS = (signal.SIGINT, signal.SIGTERM)
SignalInstaller = Callable[[int, Any], Any]


class _SignalRelay:
    """Installs handlers that feed a reentrant-safe queue drained by a thread.

    Handlers run on the main thread between bytecodes, so they only enqueue;
    the watcher thread does the actual work. Cancelling the scope enqueues a
    ``None`` sentinel that stops the thread.
    """

    name = "tealoop-watcher"

    def __init__(
        self,
        *,
        scope: CancelScope,
        signals: Sequence[int],
        install: SignalInstaller = signal.signal,
    ) -> None:
        self._scope = scope
        self._signals = tuple(signals)
        self._install_handler = install
        self._queue: queue.SimpleQueue[int | None] = queue.SimpleQueue()
        self._previous: dict[int, Any] = {}
        self.install_errors: list[tuple[int, Exception]] = []

    def notify(self, signum: int, frame: object = None) -> None:
        del frame
        self._queue.put(signum)

    def install(self) -> bool:
        if threading.current_thread() is not threading.main_thread():
            logger.warning("%s: signal handlers need the main thread; watcher disabled", self.name)
            return False
        for signum in self._signals:
            try:
                self._previous[signum] = self._install_handler(signum, self.notify)
            except (ValueError, OSError) as exc:
                logger.warning("%s: cannot handle signal %s: %s", self.name, signum, exc)
                self.install_errors.append((signum, exc))
        return bool(self._previous)

    def uninstall(self) -> None:
        previous = dict(self._previous)
        self._previous.clear()
        for signum, handler in previous.items():
            try:
                self._install_handler(signum, handler)
            except (ValueError, OSError, TypeError) as exc:
                logger.warning("%s: cannot restore handler for signal %s: %s", self.name, signum, exc)

    def _spawn(self, done: threading.Event) -> None:
        self._scope.on_cancel(lambda: self._queue.put(None))
        thread = threading.Thread(target=self._watch, args=(done,), name=self.name, daemon=True)
        thread.start()

    def _watch(self, done: threading.Event) -> None:
        try:
            while True:
                signum = self._queue.get()
                if signum is None or self._scope.cancelled:
                    return
                if self._handle(signum):
                    return
        finally:
            done.set()

    def _handle(self, signum: int) -> bool:
        """Process one signal; return ``True`` to stop watching."""
        raise NotImplementedError


class SignalWatcher(_SignalRelay):
    """Turns SIGINT/SIGTERM into a quit request.

    With raw mode on, ctrl+c arrives as a key press instead; the signal path
    matters when input is not a terminal or a signal comes from ``kill``.
    Once a quit was requested, further signals get the behaviour of the
    handler that was installed before, so a second ctrl+c still interrupts a
    program stuck in ``update``.
    """

    name = "tealoop-signals"

    def __init__(
        self,
        *,
        scope: CancelScope,
        send: Callable[[Msg], None],
        ignored: Callable[[], bool],
        signals: Sequence[int] = DEFAULT_QUIT_SIGNALS,
        install: SignalInstaller = signal.signal,
        raise_signal: Callable[[int], None] = signal.raise_signal,
    ) -> None:
        super().__init__(scope=scope, signals=signals, install=install)
        self._send = send
        self._ignored = ignored
        self._raise_signal = raise_signal
        self._quit_requested = threading.Event()

    def notify(self, signum: int, frame: object = None) -> None:
        if self._quit_requested.is_set():
            self._forward(signum, frame)
            return
        super().notify(signum, frame)

    def start(self) -> threading.Event:
        done = threading.Event()
        if not self.install():
            done.set()
            return done
        self._spawn(done)
        return done

    def _handle(self, signum: int) -> bool:
        if self._ignored():
            logger.debug("Signal %s ignored while the terminal is released", signum)
            return False
        if self._quit_requested.is_set():
            logger.debug("Signal %s received; quit already requested", signum)
            return False
        logger.debug("Signal %s received; requesting quit", signum)
        self._quit_requested.set()
        self._send(QuitMsg())
        return False

    def _forward(self, signum: int, frame: object) -> None:
        previous = self._previous.get(signum)
        if callable(previous):
            previous(signum, frame)
            return
        if previous == signal.SIG_IGN:
            return
        logger.debug("Signal %s repeated after quit; applying default action", signum)
        self._install_handler(signum, signal.SIG_DFL)
        self._raise_signal(signum)


class ResizeWatcher(_SignalRelay):
    """Reports the terminal size at startup and after every SIGWINCH."""

    name = "tealoop-resize"

    def __init__(
        self,
        *,
        scope: CancelScope,
        output: object,
        send: Callable[[Msg], None],
        fail: Callable[[BaseException], object],
        size: Callable[[int], tuple[int, int]] = get_size,
        install: SignalInstaller = signal.signal,
        terminal_check: Callable[[object], bool] = is_terminal,
    ) -> None:
        winch = getattr(signal, "SIGWINCH", None)
        super().__init__(scope=scope, signals=(winch,) if winch is not None else (), install=install)
        self._output = output
        self._send = send
        self._fail = fail
        self._size = size
        self._terminal_check = terminal_check
        self._fd: int | None = None

    def start(self) -> threading.Event:
        done = threading.Event()
        self._fd = file_descriptor(self._output)
        if self._fd is None or not self._terminal_check(self._output):
            done.set()
            return done

        if not self._report():
            done.set()
            return done

        if not self._signals or not self.install():
            if self.install_errors:
                self._fail_install()
            done.set()
            return done
        self._spawn(done)
        return done

    def _handle(self, signum: int) -> bool:
        del signum
        return not self._report()

    def _fail_install(self) -> None:
        signum, exc = self.install_errors[0]
        error = ProgramError(
            "Failed to watch terminal resizes.",
            code=ExitCode.TERMINAL_ERROR,
            hint=f"signal {signum}: {exc}",
        )
        error.__cause__ = exc
        self._fail(error)

    def _report(self) -> bool:
        if self._fd is None:
            return False
        try:
            width, height = self._size(self._fd)
        except OSError as exc:
            error = ProgramError(
                "Failed to query terminal size.",
                code=ExitCode.TERMINAL_ERROR,
                hint=str(exc) or "Verify the output is attached to a terminal.",
            )
            error.__cause__ = exc
            self._fail(error)
            return False
        self._send(WindowSizeMsg(width=width, height=height))
        return True

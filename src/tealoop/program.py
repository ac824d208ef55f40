"""Program controller: startup, event loop hand-off and teardown."""

from __future__ import annotations

import io
import logging as py_logging
import sys
import threading
import time
import traceback
from dataclasses import dataclass
from typing import Any, cast

from tealoop.barrier import ShutdownBarrier
from tealoop.dispatcher import CommandDispatcher
from tealoop.errors import ExitCode, ProgramError, ProgramKilledError, TealoopError, TerminalSetupError
from tealoop.loop import EventLoop, LoopResult
from tealoop.mailbox import Mailbox
from tealoop.messages import ExecCallback, ExecCommand, Model, Msg, PrintLineMsg, QuitMsg, RepaintMsg
from tealoop.options import MouseMode, ProgramOptions
from tealoop.renderer import Renderer, StandardRenderer
from tealoop.scope import CancelScope
from tealoop.terminal.keys import parse_input
from tealoop.terminal.reader import CanceledError, InputReader, new_reader
from tealoop.terminal.tty import file_descriptor, is_terminal, make_raw, open_input_tty, restore_mode
from tealoop.watchers import ResizeWatcher, SignalWatcher

logger = py_logging.getLogger(__name__)

READ_LOOP_TIMEOUT_SECONDS = 0.5
ALT_SCREEN_SETTLE_SECONDS = 0.01
_DEFAULT_INPUT: Any = object()


@dataclass(frozen=True)
class ProgramEvent:
    step: str
    message: str


class Program:
    """Runs a model until it quits, is killed, or its infrastructure fails.

    ``input`` defaults to stdin; passing any value (including ``None``, which
    disables input) marks the input as custom, so no TTY is opened in its
    place. ``output`` defaults to stdout.
    """

    def __init__(
        self,
        model: Model,
        options: ProgramOptions | None = None,
        *,
        input: Any = _DEFAULT_INPUT,
        output: Any = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.initial_model = model
        self.options = options or ProgramOptions()
        self._custom_input = input is not _DEFAULT_INPUT
        self._input: Any = sys.stdin if input is _DEFAULT_INPUT else input
        self._output: Any = output if output is not None else sys.stdout
        self._renderer: Renderer | None = renderer

        self._scope = CancelScope()
        self._bus = Mailbox(self._scope)
        self._commands = Mailbox(self._scope)
        self._barrier = ShutdownBarrier()
        self._loop: EventLoop | None = None
        self._signal_watcher: SignalWatcher | None = None
        self._resize_watcher: ResizeWatcher | None = None

        self._reader: InputReader | None = None
        self._read_loop_done: threading.Event | None = None
        self._opened_input: io.FileIO | None = None
        self._raw_fd: int | None = None
        self._saved_mode: Any = None

        self._ignore_signals = threading.Event()
        self._killed = threading.Event()
        self._alt_screen_was_active = False
        self._mouse_mode = MouseMode.NONE
        self._mouse_mode_before_release = MouseMode.NONE

        self._state_lock = threading.Lock()
        self._started = False
        self._torn_down = False
        self._events: list[ProgramEvent] = []
        self.panic: Exception | None = None

    @property
    def renderer(self) -> Renderer | None:
        return self._renderer

    @property
    def mouse_mode(self) -> MouseMode:
        return self._mouse_mode

    def list_events(self) -> list[ProgramEvent]:
        return list(self._events)

    # Public surface

    def run(self) -> Any:
        """Block until the program ends and return the final model.

        Raises ``ProgramKilledError`` after ``kill``, ``TerminalSetupError``
        when the terminal cannot be prepared, and the first infrastructure
        error otherwise. Every raised ``TealoopError`` carries the last model
        in ``model``. A recovered panic returns the last model and leaves the
        exception in ``panic``.
        """
        with self._state_lock:
            if self._started:
                raise ProgramError(
                    "Program has already run.",
                    code=ExitCode.RUNTIME_ERROR,
                    hint="Create a new Program for every run.",
                )
            self._started = True

        try:
            self._setup()
        except TerminalSetupError as exc:
            self._abort_setup()
            exc.model = self.initial_model
            raise

        try:
            result = self._drive()
        except BaseException as exc:
            if self.options.catch_panics:
                self._teardown(killed=True)
                if isinstance(exc, Exception):
                    self.panic = exc
                    self._report_panic(exc)
                    return self._current_model()
            else:
                self._scope.cancel()
                self._release_signals()
            raise
        return self._finish(result)

    def send(self, msg: Msg) -> None:
        """Queue ``msg`` for the event loop; a no-op once the program ended."""
        if msg is None:
            return
        self._bus.put(msg)

    def fail(self, error: BaseException) -> None:
        self._bus.fail(error)

    def quit(self) -> None:
        self.send(QuitMsg())

    def kill(self) -> None:
        """Stop immediately, skipping the final render."""
        self._killed.set()
        self._record("kill", "Kill requested.")
        self._scope.cancel()

    def println(self, *args: object) -> None:
        self.send(PrintLineMsg(text=" ".join(str(arg) for arg in args)))

    def printf(self, template: str, *args: object) -> None:
        self.send(PrintLineMsg(text=template % args if args else template))

    def release_terminal(self) -> None:
        """Hand the terminal back to its pre-program state."""
        self._ignore_signals.set()
        self._stop_read_loop()
        if self._renderer is not None:
            self._renderer.stop()
            self._alt_screen_was_active = self._renderer.alt_screen
        self._mouse_mode_before_release = self._mouse_mode
        self._record("release", "Terminal released.")
        self._restore_terminal_state()

    def restore_terminal(self) -> None:
        """Take the terminal back after ``release_terminal`` and repaint."""
        self._ignore_signals.clear()
        self._init_terminal()
        if self._input is not None:
            self._init_cancel_reader()
        if self._renderer is not None:
            self._renderer.start()
        self._enable_mouse(self._mouse_mode_before_release)
        if self._renderer is not None and self._alt_screen_was_active:
            # Entering the alt screen repaints on its own.
            self._renderer.enter_alt_screen()
        else:
            self.send(RepaintMsg())
        self._record("restore", "Terminal restored.")

    # Event loop hooks

    def track_mouse(self, mode: MouseMode) -> None:
        self._mouse_mode = mode

    def exec(self, command: ExecCommand, callback: ExecCallback | None) -> None:
        try:
            self.release_terminal()
        except TealoopError as exc:
            if callback is not None:
                self.send(callback(exc))
            return

        command.set_stdin(self._input)
        command.set_stdout(self._output)
        command.set_stderr(sys.stderr)
        self._record("exec", "Running external process.")
        try:
            command.run()
        except Exception as exc:
            logger.debug("External process failed: %s", exc)
            try:
                self.restore_terminal()
            except TealoopError as restore_exc:
                logger.warning("Terminal restore after failed process: %s", restore_exc)
            if callback is not None:
                self.send(callback(exc))
            return

        error: BaseException | None = None
        try:
            self.restore_terminal()
        except TealoopError as exc:
            error = exc
        if callback is not None:
            self.send(callback(error))

    # Startup

    def _setup(self) -> None:
        self._resolve_input()
        if not self.options.without_signal_handler:
            self._signal_watcher = SignalWatcher(
                scope=self._scope,
                send=self.send,
                ignored=self._ignore_signals.is_set,
            )
            self._barrier.add(self._signal_watcher.start())
            self._record("signals", "Signal handling started.")
        if self._renderer is None:
            self._renderer = StandardRenderer(
                self._output,
                fps=self.options.fps,
                ansi_compressor=self.options.ansi_compressor,
            )
        self._init_terminal()
        if self.options.alt_screen:
            self._renderer.enter_alt_screen()
        self._enable_mouse(self.options.mouse_mode)
        self._record("options", "Startup options applied.")

    def _resolve_input(self) -> None:
        if self.options.input_tty:
            self._opened_input = open_input_tty()
            self._input = self._opened_input
            self._record("input", "Opened TTY for input by request.")
            return
        if self._custom_input or self._input is None:
            return
        if file_descriptor(self._input) is None or is_terminal(self._input):
            return
        # Piped or redirected stdin: read keys from the controlling terminal.
        self._opened_input = open_input_tty()
        self._input = self._opened_input
        self._record("input", "Input is not a terminal; opened TTY.")

    def _init_terminal(self) -> None:
        if self._saved_mode is None and self._input is not None and is_terminal(self._input):
            fd = file_descriptor(self._input)
            if fd is not None:
                self._saved_mode = make_raw(fd)
                self._raw_fd = fd
        if self._renderer is not None:
            self._renderer.hide_cursor()
        self._record("terminal", "Terminal initialised.")

    def _enable_mouse(self, mode: MouseMode) -> None:
        if self._renderer is None:
            return
        if mode == MouseMode.CELL_MOTION:
            self._renderer.enable_mouse_cell_motion()
        elif mode == MouseMode.ALL_MOTION:
            self._renderer.enable_mouse_all_motion()
        self._mouse_mode = mode

    def _abort_setup(self) -> None:
        self._scope.cancel()
        self._barrier.wait()
        self._release_signals()
        self._close_input()
        self._record("abort", "Setup failed.")

    # Running

    def _drive(self) -> LoopResult:
        renderer = cast(Renderer, self._renderer)
        dispatcher = CommandDispatcher(self._commands, send=self.send, fail=self.fail)
        self._loop = EventLoop(
            bus=self._bus,
            renderer=renderer,
            submit=dispatcher.submit,
            controller=self,
        )

        model = self.initial_model
        init_cmd = model.init()
        if init_cmd is not None:
            dispatcher.submit(init_cmd)
        self._record("init", "Initial command scheduled." if init_cmd is not None else "No initial command.")

        renderer.start()
        renderer.write(model.view())
        self._record("render", "Initial frame rendered.")

        if self._input is not None:
            self._init_cancel_reader()

        self._resize_watcher = ResizeWatcher(
            scope=self._scope,
            output=self._output,
            send=self.send,
            fail=self.fail,
        )
        self._barrier.add(self._resize_watcher.start())
        self._barrier.add(dispatcher.start())
        self._record("loop", "Event loop started.")

        result = self._loop.run(model)
        killed = self._killed.is_set()
        if not killed:
            renderer.write(result.model.view())
            self._record("final-render", "Final frame rendered.")
        self._teardown(killed=killed)
        return result

    def _finish(self, result: LoopResult) -> Any:
        if self._killed.is_set():
            raise ProgramKilledError(model=result.model)
        error = result.error
        if error is None:
            return result.model
        if isinstance(error, TealoopError):
            error.model = result.model
            raise error
        raise ProgramError(
            f"Program stopped: {error}",
            code=ExitCode.RUNTIME_ERROR,
            model=result.model,
        ) from error

    def _current_model(self) -> Any:
        if self._loop is not None and self._loop.model is not None:
            return self._loop.model
        return self.initial_model

    def _report_panic(self, exc: Exception) -> None:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error("Caught panic in program: %s", exc, exc_info=exc)
        print(f"Caught panic:\n\n{exc!r}\n\nRestoring terminal...\n\n{trace}", file=sys.stderr)

    # Input subscription

    def _init_cancel_reader(self) -> None:
        reader = new_reader(self._input)
        done = threading.Event()
        self._reader = reader
        self._read_loop_done = done
        thread = threading.Thread(target=self._read_loop, args=(reader, done), name="tealoop-input", daemon=True)
        thread.start()

    def _read_loop(self, reader: InputReader, done: threading.Event) -> None:
        try:
            while not self._scope.cancelled:
                try:
                    data = reader.read()
                except CanceledError:
                    return
                except OSError as exc:
                    error = ProgramError(
                        "Failed to read input.",
                        code=ExitCode.TERMINAL_ERROR,
                        hint=str(exc) or "Verify the input stream is readable.",
                    )
                    error.__cause__ = exc
                    self.fail(error)
                    return
                if not data:
                    return
                for msg in parse_input(data):
                    self.send(msg)
        finally:
            done.set()

    def _stop_read_loop(self) -> None:
        reader = self._reader
        if reader is None:
            return
        # A reader that cannot interrupt its read leaves the loop to finish alone.
        finished = self._wait_for_read_loop() if reader.cancel() else False
        if finished:
            reader.close()
        self._reader = None

    def _wait_for_read_loop(self) -> bool:
        done = self._read_loop_done
        if done is None:
            return True
        if done.wait(READ_LOOP_TIMEOUT_SECONDS):
            return True
        # The reader claimed the cancel but the read is still blocked.
        logger.debug("Input read loop did not stop within %.1fs", READ_LOOP_TIMEOUT_SECONDS)
        return False

    # Teardown

    def _teardown(self, *, killed: bool) -> None:
        with self._state_lock:
            if self._torn_down:
                return
            self._torn_down = True
        self._scope.cancel()
        self._stop_read_loop()
        self._barrier.wait()
        self._release_signals()
        self._shutdown(killed=killed)
        self._close_input()
        self._record("teardown", "Program killed." if killed else "Program finished.")

    def _shutdown(self, *, killed: bool) -> None:
        if self._renderer is not None:
            if killed:
                self._renderer.kill()
            else:
                self._renderer.stop()
        try:
            self._restore_terminal_state()
        except TealoopError as exc:
            logger.warning("Terminal restore failed: %s", exc)

    def _restore_terminal_state(self) -> None:
        if self._renderer is not None:
            self._renderer.show_cursor()
            self._renderer.disable_mouse_cell_motion()
            self._renderer.disable_mouse_all_motion()
            if self._renderer.alt_screen:
                self._renderer.exit_alt_screen()
                time.sleep(ALT_SCREEN_SETTLE_SECONDS)
        self._restore_input()

    def _restore_input(self) -> None:
        saved = self._saved_mode
        fd = self._raw_fd
        self._saved_mode = None
        self._raw_fd = None
        if saved is not None and fd is not None:
            restore_mode(fd, saved)

    def _release_signals(self) -> None:
        for watcher in (self._signal_watcher, self._resize_watcher):
            if watcher is not None:
                watcher.uninstall()

    def _close_input(self) -> None:
        opened = self._opened_input
        self._opened_input = None
        if opened is not None:
            try:
                opened.close()
            except OSError as exc:
                logger.debug("Closing input TTY failed: %s", exc)

    def _record(self, step: str, message: str) -> None:
        self._events.append(ProgramEvent(step=step, message=message))
        logger.debug("program-event step=%s message=%s", step, message)

"""The event loop: the only place the model is updated."""

from __future__ import annotations

import logging as py_logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from tealoop.errors import CommandError, ExitCode
from tealoop.mailbox import Mailbox, ReceiptKind
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
    Model,
    Msg,
    PrintLineMsg,
    QuitMsg,
    RepaintMsg,
    SequenceMsg,
    ShowCursorMsg,
)
from tealoop.options import MouseMode
from tealoop.renderer import Renderer

logger = py_logging.getLogger(__name__)


class LoopController(Protocol):
    def send(self, msg: Msg) -> None: ...

    def fail(self, error: BaseException) -> None: ...

    def exec(self, command: ExecCommand, callback: ExecCallback | None) -> None: ...

    def track_mouse(self, mode: MouseMode) -> None: ...


class _Flow(str, Enum):
    FORWARD = "forward"
    SKIP = "skip"
    STOP = "stop"


@dataclass(frozen=True)
class LoopResult:
    model: Any
    error: BaseException | None = None
    cancelled: bool = False


class EventLoop:
    """Serial consumer of the message bus.

    Each message is fully handled (control effect, update, command hand-off,
    render) before the next one is taken off the bus. Control messages other
    than quit and batch are forwarded to ``update`` after their effect.
    """

    def __init__(
        self,
        *,
        bus: Mailbox,
        renderer: Renderer,
        submit: Callable[[Cmd | None], None],
        controller: LoopController,
    ) -> None:
        self._bus = bus
        self._renderer = renderer
        self._submit = submit
        self._controller = controller
        self.model: Any = None
        self.processed = 0
        self._controls: dict[type, Callable[[Any], _Flow]] = {
            QuitMsg: self._on_quit,
            ClearScreenMsg: self._on_clear_screen,
            EnterAltScreenMsg: self._on_enter_alt_screen,
            ExitAltScreenMsg: self._on_exit_alt_screen,
            EnableMouseCellMotionMsg: self._on_enable_mouse_cell_motion,
            EnableMouseAllMotionMsg: self._on_enable_mouse_all_motion,
            DisableMouseMsg: self._on_disable_mouse,
            ShowCursorMsg: self._on_show_cursor,
            HideCursorMsg: self._on_hide_cursor,
            ExecMsg: self._on_exec,
            BatchMsg: self._on_batch,
            SequenceMsg: self._on_sequence,
            PrintLineMsg: _forward,
            RepaintMsg: _forward,
        }

    def run(self, model: Model) -> LoopResult:
        self.model = model
        while True:
            receipt = self._bus.receive()
            if receipt is None:
                continue
            if receipt.kind == ReceiptKind.CANCELLED:
                return LoopResult(self.model, cancelled=True)
            if receipt.kind == ReceiptKind.ERROR:
                logger.debug("Event loop stopping on error: %s", receipt.value)
                return LoopResult(self.model, error=receipt.value)
            if self.step(receipt.value) == _Flow.STOP:
                return LoopResult(self.model)

    def step(self, msg: Msg) -> _Flow:
        handler = self._controls.get(type(msg), _forward)
        flow = handler(msg)
        if flow != _Flow.FORWARD:
            return flow

        self._renderer.handle_message(msg)
        self.model, cmd = self.model.update(msg)
        self._submit(cmd)
        self._renderer.write(self.model.view())
        self.processed += 1
        return _Flow.FORWARD

    def _on_quit(self, msg: QuitMsg) -> _Flow:
        return _Flow.STOP

    def _on_clear_screen(self, msg: ClearScreenMsg) -> _Flow:
        self._renderer.clear_screen()
        return _Flow.FORWARD

    def _on_enter_alt_screen(self, msg: EnterAltScreenMsg) -> _Flow:
        self._renderer.enter_alt_screen()
        return _Flow.FORWARD

    def _on_exit_alt_screen(self, msg: ExitAltScreenMsg) -> _Flow:
        self._renderer.exit_alt_screen()
        return _Flow.FORWARD

    def _on_enable_mouse_cell_motion(self, msg: EnableMouseCellMotionMsg) -> _Flow:
        self._renderer.enable_mouse_cell_motion()
        self._controller.track_mouse(MouseMode.CELL_MOTION)
        return _Flow.FORWARD

    def _on_enable_mouse_all_motion(self, msg: EnableMouseAllMotionMsg) -> _Flow:
        self._renderer.enable_mouse_all_motion()
        self._controller.track_mouse(MouseMode.ALL_MOTION)
        return _Flow.FORWARD

    def _on_disable_mouse(self, msg: DisableMouseMsg) -> _Flow:
        self._renderer.disable_mouse_cell_motion()
        self._renderer.disable_mouse_all_motion()
        self._controller.track_mouse(MouseMode.NONE)
        return _Flow.FORWARD

    def _on_show_cursor(self, msg: ShowCursorMsg) -> _Flow:
        self._renderer.show_cursor()
        return _Flow.FORWARD

    def _on_hide_cursor(self, msg: HideCursorMsg) -> _Flow:
        self._renderer.hide_cursor()
        return _Flow.FORWARD

    def _on_exec(self, msg: ExecMsg) -> _Flow:
        # Blocks the loop: the process owns the terminal until it exits.
        self._controller.exec(msg.command, msg.callback)
        return _Flow.FORWARD

    def _on_batch(self, msg: BatchMsg) -> _Flow:
        for cmd in msg.commands:
            self._submit(cmd)
        return _Flow.SKIP

    def _on_sequence(self, msg: SequenceMsg) -> _Flow:
        thread = threading.Thread(
            target=_run_sequence,
            args=(msg.commands, self._controller),
            name="tealoop-sequence",
            daemon=True,
        )
        thread.start()
        return _Flow.FORWARD


def _forward(msg: Msg) -> _Flow:
    return _Flow.FORWARD


def _run_sequence(commands: tuple[Cmd, ...], controller: LoopController) -> None:
    for cmd in commands:
        if cmd is None:
            continue
        try:
            msg = cmd()
        except Exception as exc:
            logger.exception("Sequenced command raised: %r", cmd)
            error = CommandError(
                f"Command failed: {exc}",
                code=ExitCode.RUNTIME_ERROR,
                hint="Return a message describing the failure instead of raising.",
            )
            error.__cause__ = exc
            controller.fail(error)
            return
        if msg is not None:
            controller.send(msg)

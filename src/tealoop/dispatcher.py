"""Command dispatcher: runs commands off the event loop."""

from __future__ import annotations

import logging as py_logging
import threading
from collections.abc import Callable

from tealoop.errors import CommandError, ExitCode
from tealoop.mailbox import Mailbox, ReceiptKind
from tealoop.messages import Cmd, Msg

logger = py_logging.getLogger(__name__)


class CommandDispatcher:
    """Consumes commands and runs each one on its own thread.

    Command threads are untracked background work: they cannot be cancelled
    and are never joined, so a slow command may outlive the run. Shutdown
    only waits for the dispatcher thread itself.
    """

    def __init__(
        self,
        commands: Mailbox,
        *,
        send: Callable[[Msg], None],
        fail: Callable[[BaseException], object],
    ) -> None:
        self._commands = commands
        self._send = send
        self._fail = fail
        self.dispatched = 0

    def start(self) -> threading.Event:
        done = threading.Event()
        thread = threading.Thread(target=self._serve, args=(done,), name="tealoop-commands", daemon=True)
        thread.start()
        return done

    def submit(self, cmd: Cmd | None) -> None:
        self._commands.put(cmd)

    def _serve(self, done: threading.Event) -> None:
        try:
            while True:
                receipt = self._commands.receive()
                if receipt is None or receipt.kind == ReceiptKind.CANCELLED:
                    return
                if receipt.kind != ReceiptKind.ITEM or receipt.value is None:
                    continue
                self.dispatched += 1
                worker = threading.Thread(target=self._execute, args=(receipt.value,), daemon=True)
                worker.start()
        finally:
            done.set()

    def _execute(self, cmd: Cmd) -> None:
        try:
            msg = cmd()
        except Exception as exc:
            logger.exception("Command raised: %r", cmd)
            error = CommandError(
                f"Command failed: {exc}",
                code=ExitCode.RUNTIME_ERROR,
                hint="Return a message describing the failure instead of raising.",
            )
            error.__cause__ = exc
            self._fail(error)
            return
        if msg is not None:
            self._send(msg)

"""Unbounded FIFO channels that stay responsive to cancellation."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tealoop.scope import CancelScope


class ReceiptKind(str, Enum):
    CANCELLED = "cancelled"
    ERROR = "error"
    ITEM = "item"


@dataclass(frozen=True)
class Receipt:
    kind: ReceiptKind
    value: Any = None


class Mailbox:
    """FIFO with a separate error lane.

    ``receive`` blocks until the scope is cancelled, an error is posted or an
    item arrives, checked in that order. ``put`` never blocks and silently
    drops items once the scope is cancelled.
    """

    def __init__(self, scope: CancelScope) -> None:
        self._scope = scope
        self._cond = threading.Condition()
        self._items: deque[Any] = deque()
        self._errors: deque[BaseException] = deque()
        scope.on_cancel(self._wake)

    def put(self, item: Any) -> bool:
        if self._scope.cancelled:
            return False
        with self._cond:
            self._items.append(item)
            self._cond.notify()
        return True

    def fail(self, error: BaseException) -> bool:
        if self._scope.cancelled:
            return False
        with self._cond:
            self._errors.append(error)
            self._cond.notify()
        return True

    def receive(self, timeout: float | None = None) -> Receipt | None:
        """Return the next receipt, or ``None`` when ``timeout`` elapses."""
        with self._cond:
            while True:
                if self._scope.cancelled:
                    return Receipt(ReceiptKind.CANCELLED)
                if self._errors:
                    return Receipt(ReceiptKind.ERROR, self._errors.popleft())
                if self._items:
                    return Receipt(ReceiptKind.ITEM, self._items.popleft())
                if not self._cond.wait(timeout) and timeout is not None:
                    return None

    def pending(self) -> int:
        with self._cond:
            return len(self._items)

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

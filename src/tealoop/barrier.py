"""Join barrier for background watchers."""

from __future__ import annotations

import threading
import time


class ShutdownBarrier:
    """Collects one completion event per background task.

    Each task owns its event and sets it exactly once, when it returns.
    """

    def __init__(self) -> None:
        self._completions: list[threading.Event] = []

    def __len__(self) -> int:
        return len(self._completions)

    def add(self, done: threading.Event) -> threading.Event:
        self._completions.append(done)
        return done

    def pending(self) -> int:
        return sum(1 for done in self._completions if not done.is_set())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every task has finished; ``False`` on timeout."""
        if timeout is None:
            for done in self._completions:
                done.wait()
            return True
        deadline = time.monotonic() + timeout
        for done in self._completions:
            remaining = max(0.0, deadline - time.monotonic())
            if not done.wait(remaining):
                return False
        return True

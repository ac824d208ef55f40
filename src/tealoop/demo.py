"""Counter demo model used by the command-line entrypoint."""

from __future__ import annotations

from dataclasses import dataclass, replace

from tealoop.commands import quit_cmd
from tealoop.messages import Cmd, Msg, WindowSizeMsg
from tealoop.terminal.models import KeyMsg, MouseButton, MouseMsg

QUIT_KEYS = frozenset({"q", "esc", "ctrl+c"})
INCREMENT_KEYS = frozenset({"+", "=", "up", "k"})
DECREMENT_KEYS = frozenset({"-", "_", "down", "j"})


@dataclass(frozen=True)
class CounterModel:
    count: int = 0
    width: int = 0
    height: int = 0

    def init(self) -> Cmd | None:
        return None

    def update(self, msg: Msg) -> tuple[CounterModel, Cmd | None]:
        if isinstance(msg, KeyMsg):
            key = str(msg)
            if key in QUIT_KEYS:
                return self, quit_cmd
            if key in INCREMENT_KEYS:
                return replace(self, count=self.count + 1), None
            if key in DECREMENT_KEYS:
                return replace(self, count=self.count - 1), None
        elif isinstance(msg, MouseMsg):
            if msg.button == MouseButton.WHEEL_UP:
                return replace(self, count=self.count + 1), None
            if msg.button == MouseButton.WHEEL_DOWN:
                return replace(self, count=self.count - 1), None
        elif isinstance(msg, WindowSizeMsg):
            return replace(self, width=msg.width, height=msg.height), None
        return self, None

    def view(self) -> str:
        size = f"{self.width}x{self.height}" if self.width else "unknown"
        return f"Count: {self.count}\nTerminal: {size}\n\n+/- to change, q to quit"

from __future__ import annotations

import threading
from pathlib import Path

import pytest


class SpyRenderer:
    """Renderer double that records every call instead of painting."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.writes: list[str] = []
        self.handled: list[object] = []
        self.started = threading.Event()
        self._alt_screen = False

    @property
    def alt_screen(self) -> bool:
        return self._alt_screen

    def start(self) -> None:
        self.calls.append("start")
        self.started.set()

    def stop(self) -> None:
        self.calls.append("stop")

    def kill(self) -> None:
        self.calls.append("kill")

    def write(self, view: str) -> None:
        self.writes.append(view)

    def repaint(self) -> None:
        self.calls.append("repaint")

    def clear_screen(self) -> None:
        self.calls.append("clear_screen")

    def enter_alt_screen(self) -> None:
        self._alt_screen = True
        self.calls.append("enter_alt_screen")

    def exit_alt_screen(self) -> None:
        self._alt_screen = False
        self.calls.append("exit_alt_screen")

    def show_cursor(self) -> None:
        self.calls.append("show_cursor")

    def hide_cursor(self) -> None:
        self.calls.append("hide_cursor")

    def enable_mouse_cell_motion(self) -> None:
        self.calls.append("enable_mouse_cell_motion")

    def disable_mouse_cell_motion(self) -> None:
        self.calls.append("disable_mouse_cell_motion")

    def enable_mouse_all_motion(self) -> None:
        self.calls.append("enable_mouse_all_motion")

    def disable_mouse_all_motion(self) -> None:
        self.calls.append("disable_mouse_all_motion")

    def handle_message(self, msg: object) -> None:
        self.handled.append(msg)


@pytest.fixture
def spy_renderer() -> SpyRenderer:
    return SpyRenderer()


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "property" in path.parts:
            item.add_marker(pytest.mark.property)

"""Program startup options and their TOML loader."""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypedDict

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

DEFAULT_FPS = 60
MAX_FPS = 120
OPTIONS_TABLE = "program"


class MouseMode(str, Enum):
    NONE = "none"
    CELL_MOTION = "cell"
    ALL_MOTION = "all"


class RawProgramOptions(TypedDict, total=False):
    alt_screen: bool
    mouse_cell_motion: bool
    mouse_all_motion: bool
    input_tty: bool
    without_signal_handler: bool
    ansi_compressor: bool
    without_catch_panics: bool
    fps: int


class ProgramOptions(BaseModel):
    """Immutable startup configuration, fixed before the loop starts."""

    model_config = ConfigDict(frozen=True)

    alt_screen: bool = False
    mouse_cell_motion: bool = False
    mouse_all_motion: bool = False
    input_tty: bool = False
    without_signal_handler: bool = False
    ansi_compressor: bool = False
    # Panic recovery restores the terminal when update or view raises.
    without_catch_panics: bool = False
    fps: int = Field(default=DEFAULT_FPS, ge=1, le=MAX_FPS)

    @property
    def mouse_mode(self) -> MouseMode:
        if self.mouse_cell_motion:
            return MouseMode.CELL_MOTION
        if self.mouse_all_motion:
            return MouseMode.ALL_MOTION
        return MouseMode.NONE

    @property
    def catch_panics(self) -> bool:
        return not self.without_catch_panics


_BOOL_KEYS = (
    "alt_screen",
    "mouse_cell_motion",
    "mouse_all_motion",
    "input_tty",
    "without_signal_handler",
    "ansi_compressor",
    "without_catch_panics",
)


def _sanitize(raw: dict[str, object]) -> ProgramOptions:
    values: RawProgramOptions = {}
    for key in _BOOL_KEYS:
        value = raw.get(key)
        if isinstance(value, bool):
            values[key] = value  # type: ignore[literal-required]

    mouse = raw.get("mouse")
    if isinstance(mouse, str):
        normalized = mouse.strip().lower()
        if normalized == MouseMode.CELL_MOTION.value:
            values["mouse_cell_motion"] = True
        elif normalized == MouseMode.ALL_MOTION.value:
            values["mouse_all_motion"] = True

    fps = raw.get("fps")
    if isinstance(fps, int) and not isinstance(fps, bool) and 1 <= fps <= MAX_FPS:
        values["fps"] = fps

    return ProgramOptions(**values)


def load_options(path: str | Path | None) -> ProgramOptions:
    if path is None:
        return ProgramOptions()
    resolved = Path(path).expanduser()
    if not resolved.exists():
        return ProgramOptions()
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return ProgramOptions()
    table = raw.get(OPTIONS_TABLE, raw)
    if not isinstance(table, dict):
        return ProgramOptions()
    return _sanitize(table)

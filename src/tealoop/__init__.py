"""tealoop package."""

from .commands import (
    ProcessCommand,
    batch,
    clear_screen,
    disable_mouse,
    enable_mouse_all_motion,
    enable_mouse_cell_motion,
    enter_alt_screen,
    every,
    exec_process,
    exit_alt_screen,
    hide_cursor,
    printf,
    println,
    quit_cmd,
    sequence,
    show_cursor,
    tick,
)
from .errors import (
    CommandError,
    ExitCode,
    ProgramError,
    ProgramKilledError,
    TealoopError,
    TerminalSetupError,
)
from .logging import configure_logging, log_to_file
from .messages import (
    BatchMsg,
    Cmd,
    ExecMsg,
    Model,
    Msg,
    PrintLineMsg,
    QuitMsg,
    RepaintMsg,
    SequenceMsg,
    WindowSizeMsg,
)
from .options import MouseMode, ProgramOptions, load_options
from .program import Program
from .renderer import NullRenderer, Renderer, StandardRenderer
from .terminal import KeyMsg, MouseAction, MouseButton, MouseMsg

__all__ = [
    "__version__",
    "batch",
    "BatchMsg",
    "clear_screen",
    "Cmd",
    "CommandError",
    "configure_logging",
    "disable_mouse",
    "enable_mouse_all_motion",
    "enable_mouse_cell_motion",
    "enter_alt_screen",
    "every",
    "exec_process",
    "ExecMsg",
    "exit_alt_screen",
    "ExitCode",
    "hide_cursor",
    "KeyMsg",
    "load_options",
    "log_to_file",
    "Model",
    "MouseAction",
    "MouseButton",
    "MouseMode",
    "MouseMsg",
    "Msg",
    "NullRenderer",
    "PrintLineMsg",
    "printf",
    "println",
    "ProcessCommand",
    "Program",
    "ProgramError",
    "ProgramKilledError",
    "ProgramOptions",
    "quit_cmd",
    "QuitMsg",
    "Renderer",
    "RepaintMsg",
    "sequence",
    "SequenceMsg",
    "show_cursor",
    "StandardRenderer",
    "TealoopError",
    "TerminalSetupError",
    "tick",
    "WindowSizeMsg",
]

__version__ = "0.1.0"

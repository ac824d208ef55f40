"""Terminal input and mode primitives used by the program runtime."""

from .keys import parse_input
from .models import KeyMsg, MouseAction, MouseButton, MouseMsg
from .reader import CanceledError, CancelReader, FallbackReader, InputReader, new_reader
from .tty import file_descriptor, get_size, is_terminal, make_raw, open_input_tty, restore_mode

__all__ = [
    "CanceledError",
    "CancelReader",
    "FallbackReader",
    "file_descriptor",
    "get_size",
    "InputReader",
    "is_terminal",
    "KeyMsg",
    "make_raw",
    "MouseAction",
    "MouseButton",
    "MouseMsg",
    "new_reader",
    "open_input_tty",
    "parse_input",
    "restore_mode",
]

"""Cancelable blocking readers over the program input."""

from __future__ import annotations

import os
import select
import threading
from contextlib import suppress
from typing import Protocol

from tealoop.terminal.tty import file_descriptor

READ_SIZE = 256


class CanceledError(Exception):
    """The read was interrupted by ``cancel``."""


class InputReader(Protocol):
    def read(self, size: int = READ_SIZE) -> bytes: ...

    def cancel(self) -> bool: ...

    def close(self) -> None: ...


class CancelReader:
    """Reader over a file descriptor that ``cancel`` can interrupt.

    A self-pipe is selected alongside the input, so a blocked ``read`` wakes
    as soon as another thread cancels.
    """

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._wake_r, self._wake_w = os.pipe()
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._closed = False

    def read(self, size: int = READ_SIZE) -> bytes:
        if self._cancelled.is_set():
            raise CanceledError("read canceled")
        readable, _, _ = select.select([self._fd, self._wake_r], [], [])
        if self._cancelled.is_set() or self._wake_r in readable:
            raise CanceledError("read canceled")
        return os.read(self._fd, size)

    def cancel(self) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._cancelled.set()
            with suppress(OSError):
                os.write(self._wake_w, b"\0")
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for fd in (self._wake_r, self._wake_w):
                with suppress(OSError):
                    os.close(fd)


class FallbackReader:
    """Reader for streams without a selectable descriptor.

    Reads cannot be interrupted; ``cancel`` only stops further reads and
    reports ``False``.
    """

    def __init__(self, stream: object) -> None:
        self._stream = stream
        self._cancelled = threading.Event()

    def read(self, size: int = READ_SIZE) -> bytes:
        if self._cancelled.is_set():
            raise CanceledError("read canceled")
        read1 = getattr(self._stream, "read1", None)
        chunk = read1(size) if read1 is not None else self._stream.read(size)  # type: ignore[attr-defined]
        if self._cancelled.is_set():
            raise CanceledError("read canceled")
        if chunk is None:
            return b""
        if isinstance(chunk, str):
            return chunk.encode("utf-8")
        return bytes(chunk)

    def cancel(self) -> bool:
        self._cancelled.set()
        return False

    def close(self) -> None:
        self._cancelled.set()


def new_reader(stream: object) -> InputReader:
    fd = file_descriptor(stream)
    if fd is None or os.name == "nt":
        return FallbackReader(stream)
    return CancelReader(fd)

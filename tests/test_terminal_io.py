from __future__ import annotations

import io
import os
import threading
from pathlib import Path

import pytest

from tealoop.errors import ExitCode, TerminalSetupError
from tealoop.terminal import reader as reader_module
from tealoop.terminal import tty as tty_module
from tealoop.terminal.reader import CanceledError, CancelReader, FallbackReader, new_reader

posix_only = pytest.mark.skipif(os.name == "nt", reason="select on pipes is POSIX only")


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


@posix_only
def test_cancel_reader_returns_available_bytes(pipe) -> None:
    read_fd, write_fd = pipe
    reader = CancelReader(read_fd)
    os.write(write_fd, b"hi")

    assert reader.read() == b"hi"
    reader.close()


@posix_only
def test_cancel_interrupts_a_blocked_read(pipe) -> None:
    read_fd, _ = pipe
    reader = CancelReader(read_fd)
    errors: list[BaseException] = []

    def blocked_read() -> None:
        try:
            reader.read()
        except CanceledError as exc:
            errors.append(exc)

    thread = threading.Thread(target=blocked_read)
    thread.start()
    assert reader.cancel() is True
    thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert len(errors) == 1
    reader.close()


@posix_only
def test_cancel_after_close_reports_false(pipe) -> None:
    reader = CancelReader(pipe[0])
    reader.close()
    reader.close()

    assert reader.cancel() is False


def test_fallback_reader_reads_and_cannot_interrupt() -> None:
    reader = FallbackReader(io.BytesIO(b"abc"))

    assert reader.read() == b"abc"
    assert reader.cancel() is False
    with pytest.raises(CanceledError):
        reader.read()


def test_fallback_reader_encodes_text_streams() -> None:
    reader = FallbackReader(io.StringIO("ok"))

    assert reader.read() == b"ok"


def test_new_reader_picks_fallback_without_descriptor() -> None:
    assert isinstance(new_reader(io.BytesIO()), FallbackReader)


@posix_only
def test_new_reader_picks_cancel_reader_for_descriptors(pipe) -> None:
    with os.fdopen(os.dup(pipe[0]), "rb", buffering=0) as stream:
        reader = new_reader(stream)
        assert isinstance(reader, reader_module.CancelReader)
        reader.close()


def test_file_descriptor_handles_streams_without_one() -> None:
    assert tty_module.file_descriptor(None) is None
    assert tty_module.file_descriptor(object()) is None
    assert tty_module.file_descriptor(io.StringIO()) is None


def test_file_descriptor_and_terminal_check_on_a_pipe(pipe) -> None:
    class _Stream:
        def fileno(self) -> int:
            return pipe[0]

    assert tty_module.file_descriptor(_Stream()) == pipe[0]
    assert tty_module.is_terminal(_Stream()) is False


@posix_only
def test_open_input_tty_failure_is_terminal_setup_error(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(tty_module, "TTY_PATH", str(tmp_path / "missing" / "tty"))

    with pytest.raises(TerminalSetupError) as exc_info:
        tty_module.open_input_tty()

    assert exc_info.value.code == ExitCode.TERMINAL_ERROR


@posix_only
def test_make_raw_on_a_pipe_fails_cleanly(pipe) -> None:
    with pytest.raises(TerminalSetupError):
        tty_module.make_raw(pipe[0])


def test_restore_mode_without_saved_mode_is_noop() -> None:
    tty_module.restore_mode(0, None)

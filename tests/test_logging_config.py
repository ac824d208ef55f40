from __future__ import annotations

import logging as py_logging
from pathlib import Path

import pytest

import tealoop.logging as tl_logging


def test_default_log_path_is_expanded() -> None:
    path = tl_logging.default_log_path()

    assert path.is_absolute()
    assert path.name == "tealoop.log"


def test_warning_alias_maps_to_warning_level() -> None:
    logger = tl_logging.configure_logging("warning")

    assert logger.level == tl_logging.LOG_LEVELS["WARN"]


def test_unknown_log_level_falls_back_to_info() -> None:
    logger = tl_logging.configure_logging("not-a-level")

    assert logger.level == py_logging.INFO


def test_configure_logging_resets_existing_handlers() -> None:
    logger = tl_logging.configure_logging("INFO")
    assert len(logger.handlers) == 1

    logger = tl_logging.configure_logging("INFO")

    assert len(logger.handlers) == 1


def test_configure_logging_adds_debug_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "tealoop.log"

    logger = tl_logging.configure_logging("ERROR", log_file=log_file)
    file_handlers = [
        handler for handler in logger.handlers if isinstance(handler, py_logging.FileHandler)
    ]

    assert len(file_handlers) == 1
    assert file_handlers[0].level == py_logging.DEBUG
    assert log_file.exists()


def test_configure_logging_ignores_file_handler_oserror(monkeypatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(tl_logging.py_logging, "FileHandler", raise_os_error)

    logger = tl_logging.configure_logging("INFO", log_file=tmp_path / "nope" / "tealoop.log")

    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]) is py_logging.StreamHandler


def test_log_to_file_writes_prefixed_lines_only_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "debug.log"

    logger = tl_logging.log_to_file(log_file, "demo")
    py_logging.getLogger("tealoop.program").debug("hello from the loop")
    for handler in logger.handlers:
        handler.flush()

    assert [type(handler) for handler in logger.handlers] == [py_logging.FileHandler]
    content = log_file.read_text(encoding="utf-8")
    assert content.startswith("demo ")
    assert "hello from the loop" in content


def test_log_to_file_raises_when_file_cannot_be_opened(monkeypatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("read-only")

    monkeypatch.setattr(tl_logging.py_logging, "FileHandler", raise_os_error)

    with pytest.raises(OSError):
        tl_logging.log_to_file(tmp_path / "debug.log")

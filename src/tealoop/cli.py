"""Demo CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from .demo import CounterModel
from .errors import ExitCode, ProgramKilledError, TealoopError, user_facing_error
from .logging import configure_logging, default_log_path, log_to_file
from .options import MAX_FPS, MouseMode, ProgramOptions, load_options
from .program import Program

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")
_VALID_MOUSE_MODES = tuple(mode.value for mode in MouseMode)
LOG_LEVEL_ENV = "TEALOOP_LOG_LEVEL"
LOG_FILE_ENV = "TEALOOP_LOG_FILE"

ProgramFactory = Callable[[Any, ProgramOptions], Program]


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _fps_type(value: str) -> int:
    try:
        fps = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--fps must be an integer") from exc
    if fps < 1 or fps > MAX_FPS:
        raise argparse.ArgumentTypeError(f"--fps must be between 1 and {MAX_FPS}")
    return fps


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tealoop", description="Run the tealoop counter demo.")
    parser.add_argument("--alt-screen", action="store_true", default=None, help="Run in the alternate screen")
    parser.add_argument("--mouse", choices=_VALID_MOUSE_MODES, default=None)
    parser.add_argument("--fps", type=_fps_type, default=None)
    parser.add_argument("--config", type=Path, default=None, help="TOML file with a [program] table")
    parser.add_argument(
        "--log-level",
        type=_log_level_type,
        default=os.getenv(LOG_LEVEL_ENV, "") or "INFO",
    )
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_options(namespace: argparse.Namespace) -> ProgramOptions:
    config = namespace.config
    if config is not None and not config.expanduser().is_file():
        raise TealoopError(
            f"Config file not found: {config}",
            code=ExitCode.CONFIG_ERROR,
            hint="Pass an existing TOML file to --config",
        )
    options = load_options(config)
    updates: dict[str, object] = {}
    if namespace.alt_screen:
        updates["alt_screen"] = True
    if namespace.mouse is not None:
        updates["mouse_cell_motion"] = namespace.mouse == MouseMode.CELL_MOTION.value
        updates["mouse_all_motion"] = namespace.mouse == MouseMode.ALL_MOTION.value
    if namespace.fps is not None:
        updates["fps"] = namespace.fps
    if not updates:
        return options
    return options.model_copy(update=updates)


def _resolve_log_path(namespace: argparse.Namespace) -> Path:
    if namespace.log_file is not None:
        return namespace.log_file.expanduser()
    env_path = os.getenv(LOG_FILE_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return default_log_path()


def _configure(namespace: argparse.Namespace) -> tuple[py_logging.Logger, Path]:
    log_path = _resolve_log_path(namespace)
    try:
        logger = log_to_file(log_path, level=namespace.log_level)
    except OSError:
        logger = configure_logging(level=namespace.log_level)
    return logger, log_path


def main(
    argv: Sequence[str] | None = None,
    *,
    program_factory: ProgramFactory | None = None,
) -> int:
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    logger, log_path = _configure(namespace)
    factory = program_factory or (lambda model, options: Program(model, options))
    try:
        options = resolve_options(namespace)
        logger.debug("Starting demo program options=%s", options.model_dump())
        program = factory(CounterModel(), options)
        final = program.run()
        if program.panic is not None:
            logger.error("Demo program recovered from panic: %s", program.panic)
            return int(ExitCode.PANIC)
        logger.debug("Demo program finished model=%r", final)
        return int(ExitCode.SUCCESS)
    except ProgramKilledError as exc:
        logger.info("Demo program killed model=%r", exc.model)
        return int(exc.code)
    except TealoopError as exc:
        logger.error(
            "Handled TealoopError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        hint = f"Inspect logs: {log_path}"
        print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)

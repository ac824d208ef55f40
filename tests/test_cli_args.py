from __future__ import annotations

from pathlib import Path

import pytest

from tealoop import cli
from tealoop.demo import CounterModel
from tealoop.errors import ExitCode, ProgramError, ProgramKilledError, TerminalSetupError
from tealoop.options import MouseMode, ProgramOptions


class _FakeProgram:
    def __init__(
        self,
        model,
        options: ProgramOptions,
        outcome: BaseException | None = None,
        panic: Exception | None = None,
    ) -> None:
        self.model = model
        self.options = options
        self._outcome = outcome
        self.panic: Exception | None = None
        self._panic = panic

    def run(self):
        if self._outcome is not None:
            raise self._outcome
        self.panic = self._panic
        return self.model


class _Factory:
    def __init__(self, outcome: BaseException | None = None, *, panic: Exception | None = None) -> None:
        self.outcome = outcome
        self.panic = panic
        self.programs: list[_FakeProgram] = []

    def __call__(self, model, options: ProgramOptions) -> _FakeProgram:
        program = _FakeProgram(model, options, self.outcome, self.panic)
        self.programs.append(program)
        return program


@pytest.fixture(autouse=True)
def _log_to_tmp(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv(cli.LOG_FILE_ENV, str(tmp_path / "tealoop.log"))
    monkeypatch.delenv(cli.LOG_LEVEL_ENV, raising=False)


def test_parse_args_defaults() -> None:
    args = cli.parse_args([])

    assert args.alt_screen is None
    assert args.mouse is None
    assert args.log_level == "INFO"
    assert args.config is None


def test_parse_args_normalizes_log_level() -> None:
    assert cli.parse_args(["--log-level", "warning"]).log_level == "WARN"


def test_log_level_default_comes_from_environment(monkeypatch) -> None:
    monkeypatch.setenv(cli.LOG_LEVEL_ENV, "debug")

    assert cli.parse_args([]).log_level == "DEBUG"


@pytest.mark.parametrize("argv", [["--mouse", "sideways"], ["--fps", "0"], ["--fps", "fast"], ["--log-level", "loud"]])
def test_invalid_arguments_exit_with_invalid_args(argv: list[str]) -> None:
    factory = _Factory()

    assert cli.main(argv, program_factory=factory) == int(ExitCode.INVALID_ARGS)
    assert factory.programs == []


def test_main_runs_counter_demo_with_flag_options() -> None:
    factory = _Factory()

    code = cli.main(["--alt-screen", "--mouse", "all", "--fps", "30"], program_factory=factory)

    assert code == int(ExitCode.SUCCESS)
    (program,) = factory.programs
    assert isinstance(program.model, CounterModel)
    assert program.options.alt_screen is True
    assert program.options.mouse_mode == MouseMode.ALL_MOTION
    assert program.options.fps == 30


def test_flags_override_config_file(tmp_path: Path) -> None:
    config = tmp_path / "tealoop.toml"
    config.write_text('[program]\nmouse = "all"\nansi_compressor = true\n', encoding="utf-8")
    factory = _Factory()

    cli.main(["--config", str(config), "--mouse", "cell"], program_factory=factory)

    options = factory.programs[0].options
    assert options.mouse_mode == MouseMode.CELL_MOTION
    assert options.mouse_all_motion is False
    assert options.ansi_compressor is True


def test_missing_config_file_is_a_config_error(tmp_path: Path, capsys) -> None:
    factory = _Factory()

    code = cli.main(["--config", str(tmp_path / "absent.toml")], program_factory=factory)

    assert code == int(ExitCode.CONFIG_ERROR)
    assert factory.programs == []
    assert "Config file not found" in capsys.readouterr().err


def test_recovered_panic_maps_to_exit_code() -> None:
    factory = _Factory(panic=RuntimeError("update exploded"))

    assert cli.main([], program_factory=factory) == int(ExitCode.PANIC)


def test_killed_program_maps_to_exit_code() -> None:
    factory = _Factory(ProgramKilledError(model=CounterModel()))

    assert cli.main([], program_factory=factory) == int(ExitCode.PROGRAM_KILLED)


def test_terminal_error_is_reported_to_stderr(capsys) -> None:
    factory = _Factory(TerminalSetupError("Could not open a TTY for input.", hint="Run from a terminal"))

    code = cli.main([], program_factory=factory)

    assert code == int(ExitCode.TERMINAL_ERROR)
    err = capsys.readouterr().err
    assert err.startswith("Error: Could not open a TTY for input.")
    assert "Run from a terminal" in err


def test_program_error_keeps_its_code() -> None:
    factory = _Factory(ProgramError("loop failed", code=ExitCode.RUNTIME_ERROR))

    assert cli.main([], program_factory=factory) == int(ExitCode.RUNTIME_ERROR)


def test_unexpected_exception_points_to_the_log(capsys, tmp_path: Path) -> None:
    factory = _Factory(RuntimeError("surprise"))

    code = cli.main([], program_factory=factory)

    assert code == int(ExitCode.RUNTIME_ERROR)
    err = capsys.readouterr().err
    assert "Unexpected runtime failure" in err
    assert str(tmp_path / "tealoop.log") in err


def test_log_file_flag_wins_over_environment(tmp_path: Path) -> None:
    log_file = tmp_path / "flag.log"

    cli.main(["--log-file", str(log_file), "--log-level", "DEBUG"], program_factory=_Factory())

    assert log_file.exists()
    assert "Starting demo program" in log_file.read_text(encoding="utf-8")

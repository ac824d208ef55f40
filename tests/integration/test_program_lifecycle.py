from __future__ import annotations

import io
import os
import signal
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, replace
from pathlib import Path

import pytest

from tealoop.commands import quit_cmd, sequence
from tealoop.demo import CounterModel
from tealoop.options import ProgramOptions
from tealoop.program import Program
from tealoop.renderer import CURSOR_HIDE, CURSOR_SHOW

posix_only = pytest.mark.skipif(os.name == "nt", reason="needs POSIX pipes and signals")


def _env_with_pythonpath() -> dict[str, str]:
    env = dict(os.environ)
    existing = env.get("PYTHONPATH", "")
    src_path = str(Path("src").resolve())
    env["PYTHONPATH"] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    return env


@posix_only
def test_counter_demo_reads_keys_from_a_pipe() -> None:
    read_fd, write_fd = os.pipe()
    output = io.StringIO()
    with os.fdopen(read_fd, "rb", buffering=0) as keys:
        program = Program(
            CounterModel(),
            ProgramOptions(without_signal_handler=True),
            input=keys,
            output=output,
        )
        os.write(write_fd, b"++-+q")
        try:
            final = program.run()
        finally:
            os.close(write_fd)

    assert final.count == 2
    painted = output.getvalue()
    assert painted.startswith(CURSOR_HIDE)
    assert "Count: 2" in painted
    assert CURSOR_SHOW in painted


def test_sequence_delivers_results_in_order_despite_latency() -> None:
    delays = {"slow": 0.05, "fast": 0.0, "medium": 0.02}

    def after(name: str):
        def _cmd() -> str:
            time.sleep(delays[name])
            return name

        return _cmd

    @dataclass(frozen=True)
    class Ordered:
        got: tuple = ()

        def init(self):
            return sequence(after("slow"), after("fast"), after("medium"))

        def update(self, msg: object):
            if isinstance(msg, str):
                model = replace(self, got=self.got + (msg,))
                return model, quit_cmd if len(model.got) == len(delays) else None
            return self, None

        def view(self) -> str:
            return ",".join(self.got)

    program = Program(
        Ordered(),
        ProgramOptions(without_signal_handler=True),
        input=None,
        output=io.StringIO(),
    )

    assert program.run().got == ("slow", "fast", "medium")


@posix_only
def test_sigterm_requests_a_graceful_quit() -> None:
    output = io.StringIO()
    program = Program(CounterModel(count=7), ProgramOptions(), input=None, output=output)
    previous = signal.getsignal(signal.SIGTERM)

    def deliver() -> None:
        # Wait for the first frame so the handlers are installed.
        for _ in range(200):
            if "Count: 7" in output.getvalue():
                break
            time.sleep(0.01)
        os.kill(os.getpid(), signal.SIGTERM)

    thread = threading.Thread(target=deliver)
    thread.start()
    final = program.run()
    thread.join(timeout=2.0)

    assert final.count == 7
    assert signal.getsignal(signal.SIGTERM) == previous


def test_cli_module_reports_invalid_args_via_exit_code(tmp_path: Path) -> None:
    completed = subprocess.run(
        [sys.executable, "-m", "tealoop", "--mouse", "sideways", "--log-file", str(tmp_path / "tealoop.log")],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 2
    assert "invalid choice" in completed.stderr


def test_cli_module_prints_help(tmp_path: Path) -> None:
    completed = subprocess.run(
        [sys.executable, "-m", "tealoop", "--help"],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 0
    assert "--alt-screen" in completed.stdout

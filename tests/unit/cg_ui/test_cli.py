"""Tests for the cargo-gungraun command line."""

from __future__ import annotations

import importlib
import logging

import pytest
from typer.testing import CliRunner

from cg_common.config.env import MappingEnvironment
from cg_common.errors import ReadinessError
from cg_sandbox.models.targets import Target
from cg_ui.cli.main import app, ctx_store, exit_code

cli_main = importlib.import_module("cg_ui.cli.main")


pytestmark = pytest.mark.unit_ui

runner = CliRunner()


class FakeOrchestrator:
    def __init__(self, status: int = 0, exc: BaseException | None = None) -> None:
        self.status = status
        self.exc = exc
        self.requests = []

    def run(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return self.status


@pytest.fixture
def orchestrator(monkeypatch):
    fake = FakeOrchestrator()
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    monkeypatch.setattr(ctx_store, "env", MappingEnvironment())
    monkeypatch.setattr(ctx_store, "orchestrator_factory", lambda env: fake)
    monkeypatch.setattr(ctx_store, "raw_bench_args", None)
    yield fake
    root.handlers[:] = handlers
    root.setLevel(level)


def test_version(orchestrator) -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip() == "cargo-gungraun 0.1.0"


def test_help_lists_commands(orchestrator) -> None:
    result = runner.invoke(app, ["help"])
    assert result.exit_code == 0
    for name in ("bench", "help", "version"):
        assert name in result.output


def test_bench_forwards_target_and_arguments(orchestrator) -> None:
    result = runner.invoke(app, ["bench", "--target", "aarch64-unknown-linux-gnu", "--bench", "simple"])
    assert result.exit_code == 0
    request = orchestrator.requests[0]
    assert request.target is Target.AARCH64_UNKNOWN_LINUX_GNU
    assert list(request.cargo_args) == ["--target", "aarch64-unknown-linux-gnu", "--bench", "simple"]


def test_bench_without_target(orchestrator) -> None:
    result = runner.invoke(app, ["bench"])
    assert result.exit_code == 0
    assert orchestrator.requests[0].target is None


def test_bench_propagates_workload_status(orchestrator) -> None:
    orchestrator.status = 101
    assert runner.invoke(app, ["bench"]).exit_code == 101


def test_bench_error_exits_with_one(orchestrator) -> None:
    orchestrator.exc = ReadinessError("never ready")
    assert runner.invoke(app, ["bench", "--target", "s390x-unknown-linux-gnu"]).exit_code == 1


def test_bench_invalid_target_exits_with_one(orchestrator) -> None:
    result = runner.invoke(app, ["bench", "--target", "nope"])
    assert result.exit_code == 1
    assert orchestrator.requests == []


def test_bench_interrupt(orchestrator) -> None:
    orchestrator.exc = KeyboardInterrupt()
    assert runner.invoke(app, ["bench"]).exit_code == 130


def test_bench_help_dispatches_to_cargo(orchestrator, monkeypatch) -> None:
    shown = []
    monkeypatch.setattr(cli_main, "print_bench_help", lambda console, env: shown.append(env))
    result = runner.invoke(app, ["bench", "--help"])
    assert result.exit_code == 0
    assert len(shown) == 1
    assert orchestrator.requests == []


def test_main_keeps_separator_and_strips_cargo_subcommand(orchestrator) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_main.main(["gungraun", "bench", "--bench", "simple", "--", "--nocapture"])
    assert excinfo.value.code == 0
    assert list(orchestrator.requests[0].cargo_args) == ["--bench", "simple", "--", "--nocapture"]


@pytest.mark.parametrize("status, expected", [(0, 0), (101, 101), (-9, 137), (-15, 143)])
def test_exit_code(status, expected) -> None:
    assert exit_code(status) == expected


@pytest.mark.parametrize(
    "argv, forwarded",
    [
        (["--target", "aarch64-unknown-linux-gnu"], ["--target", "aarch64-unknown-linux-gnu"]),
        (["gungraun", "--target=aarch64-unknown-linux-gnu", "--", "x"], ["--target=aarch64-unknown-linux-gnu", "--", "x"]),
    ],
)
def test_main_defaults_to_bench(orchestrator, argv, forwarded) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_main.main(argv)
    assert excinfo.value.code == 0
    request = orchestrator.requests[0]
    assert request.target is Target.AARCH64_UNKNOWN_LINUX_GNU
    assert list(request.cargo_args) == forwarded


@pytest.mark.parametrize("argv", [[], ["gungraun"]])
def test_main_without_arguments_benches_on_host(orchestrator, argv) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_main.main(argv)
    assert excinfo.value.code == 0
    assert orchestrator.requests[0].target is None


def test_main_keeps_explicit_commands(orchestrator, capsys) -> None:
    with pytest.raises(SystemExit):
        cli_main.main(["version"])
    assert capsys.readouterr().out.strip() == "cargo-gungraun 0.1.0"
    assert orchestrator.requests == []

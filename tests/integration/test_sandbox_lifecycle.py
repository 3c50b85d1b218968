"""Drive a full sandbox run against a scripted stand-in for the engine."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest

from cg_common.config.env import MappingEnvironment
from cg_common.errors import ReadinessError
from cg_sandbox.engine.service import SandboxOrchestrator
from cg_sandbox.executor import SandboxExecutor
from cg_sandbox.launcher import SandboxLauncher
from cg_sandbox.meta import CargoMetadata, Package
from cg_sandbox.models.targets import Target
from cg_sandbox.models.types import BenchRequest
from cg_sandbox.teardown import SandboxTeardown


pytestmark = pytest.mark.slow

FAKE_ENGINE = textwrap.dedent(
    """\
    #!/bin/sh
    echo "$*" >> "$FAKE_ENGINE_DIR/calls.log"
    case "$1" in
      run)
        echo $$ > "$FAKE_ENGINE_DIR/run.pid"
        echo "Trying to pull image..."
        if [ -n "$FAKE_ENGINE_BROKEN" ]; then
          exit 125
        fi
        echo "cargo-gungraun: bootstrap finished"
        exec sleep 30
        ;;
      exec)
        exit "${FAKE_EXEC_STATUS:-0}"
        ;;
      stop)
        if [ -f "$FAKE_ENGINE_DIR/run.pid" ]; then
          kill "$(cat "$FAKE_ENGINE_DIR/run.pid")" 2>/dev/null
        fi
        exit 0
        ;;
    esac
    """
)


def _ok(cmd, **kwargs) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(cmd, 0)


@pytest.fixture
def engine(tmp_path: Path, monkeypatch) -> Path:
    engine_dir = tmp_path / "engine"
    engine_dir.mkdir()
    script = engine_dir / "podman"
    script.write_text(FAKE_ENGINE)
    script.chmod(0o755)
    monkeypatch.setenv("FAKE_ENGINE_DIR", str(engine_dir))
    return script


@pytest.fixture
def orchestrator(tmp_path: Path, engine: Path) -> SandboxOrchestrator:
    workspace = tmp_path / "ws"
    for path in (workspace, tmp_path / "cargo", tmp_path / "rustup"):
        path.mkdir()
    metadata = CargoMetadata(
        packages=[Package(name="gungraun", version="0.18.1")],
        target_directory=workspace / "target",
        workspace_root=workspace,
    )
    env = MappingEnvironment(
        {
            "CARGO_HOME": str(tmp_path / "cargo"),
            "RUSTUP_HOME": str(tmp_path / "rustup"),
            "CARGO_GUNGRAUN_ENGINE": "podman",
        }
    )

    def which(name: str) -> str:
        return str(engine)

    return SandboxOrchestrator(
        env=env,
        launcher=SandboxLauncher(which=which, runner=_ok, poll_interval=0.05, timeout=10),
        executor=SandboxExecutor(env=env, which=which, is_terminal=lambda: False),
        teardown=SandboxTeardown(which=which),
        metadata_loader=lambda _env: metadata,
        which=which,
        handle_signals=False,
        cwd=workspace,
    )


def _calls(engine: Path) -> list[str]:
    return [line.split()[0] for line in (engine.parent / "calls.log").read_text().splitlines()]


def test_full_lifecycle(orchestrator, engine) -> None:
    request = BenchRequest(target=Target.AARCH64_UNKNOWN_LINUX_GNU, cargo_args=["--bench", "simple"])
    assert orchestrator.run(request) == 0
    assert _calls(engine) == ["run", "exec", "stop"]
    log = (engine.parent / "calls.log").read_text().splitlines()
    assert log[1].endswith("cargo bench --bench simple")


def test_workload_status_is_returned(orchestrator, engine, monkeypatch) -> None:
    monkeypatch.setenv("FAKE_EXEC_STATUS", "3")
    assert orchestrator.run(BenchRequest(target=Target.S390X_UNKNOWN_LINUX_GNU)) == 3
    assert _calls(engine) == ["run", "exec", "stop"]


def test_failed_bootstrap_still_stops(orchestrator, engine, monkeypatch) -> None:
    monkeypatch.setenv("FAKE_ENGINE_BROKEN", "1")
    with pytest.raises(ReadinessError) as excinfo:
        orchestrator.run(BenchRequest(target=Target.AARCH64_UNKNOWN_LINUX_GNU))
    assert excinfo.value.context["exit_status"] == 125
    assert _calls(engine) == ["run", "stop"]

"""End-to-end run against a real container engine and sandbox image.

Set ``CG_E2E_IMAGE`` to a cargo-gungraun sandbox image and ``CG_E2E_WORKSPACE``
to a crate with gungraun benchmarks to enable these tests.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import pytest

from cg_common.config.env import MappingEnvironment
from cg_sandbox.engine.service import SandboxOrchestrator
from cg_sandbox.models.engine import select_engine
from cg_sandbox.models.targets import Target
from cg_sandbox.models.types import BenchRequest


pytestmark = [pytest.mark.inter_docker, pytest.mark.slow]

E2E_IMAGE = os.environ.get("CG_E2E_IMAGE")
E2E_WORKSPACE = os.environ.get("CG_E2E_WORKSPACE")
E2E_TARGET = os.environ.get("CG_E2E_TARGET", "aarch64-unknown-linux-gnu")

if not E2E_IMAGE or not E2E_WORKSPACE:
    pytest.skip("CG_E2E_IMAGE and CG_E2E_WORKSPACE are not set", allow_module_level=True)
if not (shutil.which("podman") or shutil.which("docker")):
    pytest.skip("Neither podman nor docker is available", allow_module_level=True)


def _running_sandboxes(engine: str) -> list[str]:
    result = subprocess.run(
        [engine, "ps", "--format", "{{.Names}}"],
        capture_output=True,
        text=True,
        check=False,
    )
    return [name for name in result.stdout.split() if name.startswith("cargo-gungraun-")]


def test_bench_runs_in_sandbox_and_cleans_up(monkeypatch) -> None:
    monkeypatch.chdir(E2E_WORKSPACE)
    env_values = dict(os.environ)
    env_values["CARGO_GUNGRAUN_IMAGE"] = E2E_IMAGE
    env = MappingEnvironment(env_values)
    engine = str(select_engine(env.get("CARGO_GUNGRAUN_ENGINE"), shutil.which))
    before = set(_running_sandboxes(engine))

    orchestrator = SandboxOrchestrator(env=env, handle_signals=False)
    status = orchestrator.run(BenchRequest(target=Target.parse(E2E_TARGET)))

    assert status == 0
    assert set(_running_sandboxes(engine)) == before

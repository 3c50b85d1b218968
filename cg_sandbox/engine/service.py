"""Facade driving one sandbox run from resolution to teardown."""

from __future__ import annotations

import logging
import secrets
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from cg_common.config.env import Environment, ProcessEnvironment
from cg_common.errors import SpawnError
from cg_sandbox.executor import SandboxExecutor
from cg_sandbox.interrupts import TerminationGuard
from cg_sandbox.launcher import SandboxLauncher, SandboxProcess
from cg_sandbox.meta import CargoMetadata, cargo_bin, load_metadata
from cg_sandbox.models.engine import Locator
from cg_sandbox.models.types import BenchRequest, SandboxPlan
from cg_sandbox.resolver import resolve_container, resolve_engine, resolve_host
from cg_sandbox.teardown import SandboxTeardown

logger = logging.getLogger(__name__)


class SandboxOrchestrator:
    """Resolve, launch, exec and always tear down a benchmark sandbox."""

    def __init__(
        self,
        *,
        env: Environment | None = None,
        launcher: SandboxLauncher | None = None,
        executor: SandboxExecutor | None = None,
        teardown: SandboxTeardown | None = None,
        metadata_loader: Callable[[Environment], CargoMetadata] = load_metadata,
        which: Locator = shutil.which,
        token: Callable[[int], str] = secrets.token_hex,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        handle_signals: bool = True,
        cwd: Optional[Path] = None,
    ) -> None:
        self.env = env or ProcessEnvironment()
        self.launcher = launcher or SandboxLauncher.from_env(self.env, which=which)
        self.executor = executor or SandboxExecutor(env=self.env, which=which)
        self.teardown = teardown or SandboxTeardown(which=which)
        self._metadata_loader = metadata_loader
        self._which = which
        self._token = token
        self._runner = runner
        self._handle_signals = handle_signals
        self._cwd = cwd

    def run(self, request: BenchRequest) -> int:
        """Run the benchmarks and return the workload's exit status."""
        if request.target is None:
            logger.info("No target given. Falling back to run `cargo bench` on the host")
            return self.run_on_host(request.cargo_args)
        plan = self.prepare(request)
        with TerminationGuard(enabled=self._handle_signals):
            return self.run_plan(plan, request.cargo_args)

    def prepare(self, request: BenchRequest) -> SandboxPlan:
        if request.target is None:
            raise ValueError("A target is required to prepare a sandbox")
        metadata = self._metadata_loader(self.env)
        host = resolve_host(
            self.env, metadata, cwd=self._cwd, target_dir=request.target_dir
        )
        container = resolve_container(host, self.env, token=self._token)
        selection = resolve_engine(request.target, host, self.env, locate=self._which)
        return SandboxPlan(
            target=request.target, host=host, container=container, selection=selection
        )

    def run_plan(self, plan: SandboxPlan, cargo_args: Sequence[str] = ()) -> int:
        """Launch, exec and tear down; the first error wins."""
        process: Optional[SandboxProcess] = None
        try:
            process = self.launcher.start(
                plan.host, plan.container, plan.selection, plan.target
            )
            self.launcher.wait_until_ready(process)
            status = self.executor.run(
                plan.container, plan.selection, plan.target, cargo_args
            )
        except BaseException:
            self._teardown(plan, process)
            raise
        errors = self._teardown(plan, process)
        if errors:
            raise errors[0]
        if status != 0:
            logger.debug("Workload exited with status %s", status)
        return status

    def run_on_host(self, cargo_args: Sequence[str] = ()) -> int:
        cmd = [cargo_bin(self.env), "bench", *cargo_args]
        logger.debug("Running on the host: %s", " ".join(cmd))
        try:
            return self._runner(cmd, check=False).returncode
        except OSError as exc:
            raise SpawnError(
                f"Failed to execute cargo: {exc}", context={"cmd": cmd}, cause=exc
            ) from exc

    def _teardown(self, plan: SandboxPlan, process: Optional[SandboxProcess]):
        return self.teardown.run(plan.selection.engine, plan.container.name, process)

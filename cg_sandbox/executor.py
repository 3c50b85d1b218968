"""Run the benchmark workload inside the ready sandbox."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import sys
from typing import Callable, Iterable, Sequence

from cg_common import envs
from cg_common.config.env import Environment, ProcessEnvironment
from cg_common.errors import SpawnError
from cg_common.logging import TRACE
from cg_sandbox.command import EngineCommand
from cg_sandbox.models.engine import Locator
from cg_sandbox.models.targets import Target
from cg_sandbox.models.types import ContainerIdentity, EngineSelection

logger = logging.getLogger(__name__)

WORKLOAD_COMMAND = ("cargo", "bench")
SANDBOX_LOG_LEVEL = "warn"
PASSTHROUGH_ENVS = (
    envs.CARGO_GUNGRAUN_QEMU_TIMEOUT,
    envs.CARGO_GUNGRAUN_QEMU_EXTRA_ARGS,
)


def _streams_are_terminals() -> bool:
    return all(
        getattr(stream, "isatty", lambda: False)()
        for stream in (sys.stdin, sys.stdout, sys.stderr)
    )


def debug_flag(level: int) -> str | None:
    if level <= TRACE:
        return "trace"
    if level <= logging.DEBUG:
        return "debug"
    return None


def build_executor_args(
    target: Target,
    container: ContainerIdentity,
    extra_envs: Iterable[tuple[str, str]] = (),
    level: int = logging.INFO,
) -> str:
    """Arguments for the in-sandbox executor script, as one string."""
    parts = [
        "--qemu-arch",
        str(target),
        "--log-file",
        f"{container.gungraun_home}/qemu.log",
    ]
    flag = debug_flag(level)
    if flag:
        parts.extend(["--debug", flag])
    joined = " ".join(f"{key}={value}" for key, value in extra_envs)
    if joined:
        parts.extend(["--envs", shlex.quote(joined)])
    return " ".join(parts)


class SandboxExecutor:
    """Build and run the engine ``exec`` invocation of the workload."""

    def __init__(
        self,
        *,
        env: Environment | None = None,
        which: Locator = shutil.which,
        is_terminal: Callable[[], bool] = _streams_are_terminals,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self._env = env or ProcessEnvironment()
        self._which = which
        self._is_terminal = is_terminal
        self._runner = runner

    def build_exec_command(
        self,
        container: ContainerIdentity,
        selection: EngineSelection,
        target: Target,
        cargo_args: Sequence[str] = (),
        level: int | None = None,
    ) -> EngineCommand:
        if level is None:
            level = logging.getLogger("cg_sandbox").getEffectiveLevel()
        executor_args = build_executor_args(target, container, selection.envs, level)

        cmd = EngineCommand(selection.engine.resolve(self._which), "exec")
        cmd.option("--workdir", str(container.current_dir))
        cmd.env(envs.GUNGRAUN_EXECUTOR, container.qemu_runner)
        cmd.env(envs.GUNGRAUN_EXECUTOR_ARGS, executor_args)
        cmd.env(envs.GUNGRAUN_LOG, SANDBOX_LOG_LEVEL)
        if selection.accelerator is not None:
            cmd.env(envs.CARGO_GUNGRAUN_QEMU_ACCELERATOR, selection.accelerator)
        for key in PASSTHROUGH_ENVS:
            value = self._env.get(key)
            if value is not None:
                cmd.env(key, value)
        if self._is_terminal():
            cmd.flag("-t")
        cmd.positional(container.name, *WORKLOAD_COMMAND)
        cmd.extend(cargo_args)
        return cmd

    def run(
        self,
        container: ContainerIdentity,
        selection: EngineSelection,
        target: Target,
        cargo_args: Sequence[str] = (),
    ) -> int:
        """Run the workload to completion and return its exit status."""
        cmd = self.build_exec_command(container, selection, target, cargo_args)
        logger.debug("Running the exec command: %s", cmd)
        try:
            result = self._runner(cmd.argv(), check=False)
        except OSError as exc:
            raise SpawnError(
                f"Failed spawning command: {exc}",
                context={"cmd": cmd.argv()},
                cause=exc,
            ) from exc
        return result.returncode

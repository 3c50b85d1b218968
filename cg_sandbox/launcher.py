"""Start the sandbox container and wait until its bootstrap finished."""

from __future__ import annotations

import logging
import os
import selectors
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Callable, Optional, Sequence

from cg_common import envs
from cg_common.config.env import Environment, ProcessEnvironment, parse_float_env
from cg_common.errors import (
    CommandError,
    ConfigurationError,
    ReadinessError,
    SpawnError,
)
from cg_sandbox.command import EngineCommand
from cg_sandbox.models.engine import Locator
from cg_sandbox.models.targets import Target
from cg_sandbox.models.types import (
    BOOTSTRAP_SENTINEL,
    CONTAINER_BOOTSTRAP,
    ContainerIdentity,
    EngineSelection,
    HostIdentity,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
SYSTEM_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"
TOOLCHAIN_MANAGER = "rustup"
_READ_SIZE = 65536

Runner = Callable[..., subprocess.CompletedProcess]


class SandboxProcess:
    """Handle on the engine ``run`` process; reaped at most once."""

    def __init__(self, popen: subprocess.Popen) -> None:
        self._popen = popen
        self._reaped = False
        self._returncode: Optional[int] = None

    @classmethod
    def spawn(cls, argv: Sequence[str]) -> "SandboxProcess":
        """Start ``argv`` with stdout captured and stderr discarded."""
        try:
            popen = subprocess.Popen(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                bufsize=0,
                start_new_session=True,
            )
        except OSError as exc:
            raise SpawnError(
                f"Failed spawning command: {exc}",
                context={"cmd": list(argv)},
                cause=exc,
            ) from exc
        return cls(popen)

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def stdout(self):
        return self._popen.stdout

    @property
    def reaped(self) -> bool:
        return self._reaped

    def poll(self) -> Optional[int]:
        return self._popen.poll()

    def kill(self) -> None:
        if self._reaped or self._popen.poll() is not None:
            return
        try:
            self._popen.kill()
        except ProcessLookupError:
            pass

    def reap(self) -> int:
        """Wait for the process; later calls return the recorded status."""
        if self._reaped:
            return self._returncode  # type: ignore[return-value]
        self._returncode = self._popen.wait()
        self._reaped = True
        if self._popen.stdout is not None:
            self._popen.stdout.close()
        return self._returncode


class ReadinessState(str, Enum):
    WAITING = "waiting"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ReadinessMonitor:
    """Line oriented detector for the bootstrap sentinel."""

    sentinel: str = BOOTSTRAP_SENTINEL
    state: ReadinessState = ReadinessState.WAITING
    exit_status: Optional[int] = None
    reason: Optional[str] = None
    _pending: bytes = field(default=b"", repr=False)

    def feed(self, chunk: bytes) -> ReadinessState:
        """Consume raw output; complete lines are checked for the sentinel."""
        if self.state is not ReadinessState.WAITING:
            return self.state
        data = self._pending + chunk
        *lines, self._pending = data.split(b"\n")
        for line in lines:
            if self._check(line):
                break
        return self.state

    def finish(self) -> ReadinessState:
        """Flush a trailing line without newline at end of input."""
        if self.state is ReadinessState.WAITING and self._pending:
            pending, self._pending = self._pending, b""
            self._check(pending)
        return self.state

    def exited(self, status: int) -> ReadinessState:
        if self.state is ReadinessState.WAITING:
            self.state = ReadinessState.FAILED
            self.exit_status = status
            self.reason = (
                "Failed executing the container engine. "
                f"Child returned with: '{status}'"
            )
        return self.state

    def fail(self, reason: str) -> ReadinessState:
        if self.state is ReadinessState.WAITING:
            self.state = ReadinessState.FAILED
            self.reason = reason
        return self.state

    def _check(self, raw: bytes) -> bool:
        line = raw.decode("utf-8", errors="replace")
        logger.debug("sandbox: %s", line.rstrip())
        if line.strip() == self.sentinel:
            self.state = ReadinessState.READY
            return True
        return False


def bootstrap_timeout(env: Environment) -> Optional[float]:
    value = parse_float_env(env.get(envs.CARGO_GUNGRAUN_BOOTSTRAP_TIMEOUT))
    if value is None or value <= 0:
        return None
    return value


def load_seccomp_policy() -> str:
    return (resources.files("cg_sandbox") / "assets" / "seccomp.json").read_text(
        encoding="utf-8"
    )


class SandboxLauncher:
    """Build the engine ``run`` invocation and drive the readiness protocol."""

    def __init__(
        self,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
        which: Locator = shutil.which,
        runner: Runner = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._which = which
        self._runner = runner
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_env(cls, env: Environment | None = None, **kwargs) -> "SandboxLauncher":
        env = env or ProcessEnvironment()
        kwargs.setdefault("timeout", bootstrap_timeout(env))
        return cls(**kwargs)

    def write_seccomp(self, selection: EngineSelection) -> Path:
        path = selection.seccomp_path
        try:
            path.write_text(load_seccomp_policy(), encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"Failed to write {path.name}",
                context={"path": path},
                cause=exc,
            ) from exc
        return path

    def ensure_toolchain(self, target: Target) -> None:
        """Install the standard library of ``target`` with rustup."""
        cmd = [TOOLCHAIN_MANAGER, "target", "add", str(target)]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = self._runner(cmd, check=False)
        except OSError as exc:
            raise SpawnError(
                f"Failed spawning command: {exc}", context={"cmd": cmd}, cause=exc
            ) from exc
        if result.returncode != 0:
            raise CommandError(
                f"Failed executing command: Exit status was: {result.returncode}",
                returncode=result.returncode,
                context={"cmd": cmd},
            )

    def build_run_command(
        self,
        host: HostIdentity,
        container: ContainerIdentity,
        selection: EngineSelection,
        target: Target,
    ) -> EngineCommand:
        upper = target.to_upper_env()
        gnu_triple = target.to_gnu_triple()
        sysroot = target.sysroot

        cmd = EngineCommand(selection.engine.resolve(self._which), "run")
        cmd.extend(selection.engine.isolation_flags())
        cmd.option_eq("--security-opt", f"seccomp={selection.seccomp_path}")
        cmd.option("--name", container.name).flag("--rm")

        cmd.volume(host.gungraun_home, container.gungraun_home)
        cmd.volume(host.target_dir, container.target_dir)
        cmd.volume(host.workspace_root, container.workspace_root)
        cmd.volume(host.cargo_home, container.cargo_home)
        cmd.volume(host.rustup_home, container.rustup_home)
        for volume in selection.volumes:
            cmd.raw_volume(volume)
        if host.gungraun_runner is not None:
            cmd.volume(host.gungraun_runner, container.gungraun_runner, ("exec", "ro"))

        cmd.env("AR", f"{gnu_triple}-ar")
        cmd.env("CC", f"{gnu_triple}-gcc")
        cmd.env("LD", f"{gnu_triple}-ld")
        cmd.env(
            f"BINDGEN_EXTRA_CLANG_ARGS_{upper}",
            f"--sysroot={sysroot} -idirafter/usr/include",
        )
        for key, value in selection.envs:
            cmd.env(key, value)

        cmd.env("USER", container.user)
        cmd.env("HOME", container.home)
        cmd.env("PATH", f"{container.cargo_home}/bin:{SYSTEM_PATH}")
        cmd.env("SHELL", container.shell)
        cmd.env(envs.CARGO_HOME, container.cargo_home)
        cmd.env(envs.RUSTUP_HOME, container.rustup_home)
        cmd.env(envs.GUNGRAUN_HOME, container.gungraun_home)
        cmd.env(envs.GUNGRAUN_RUNNER, container.gungraun_runner)
        cmd.env(envs.GUNGRAUN_SEPARATE_TARGETS, container.separate_targets)
        cmd.env(envs.GUNGRAUN_VERSION, host.gungraun_version)
        cmd.env(envs.CARGO_TARGET_DIR, container.target_dir)
        cmd.env(f"CARGO_TARGET_{upper}_RUNNER", container.runner)
        cmd.env(f"CARGO_TARGET_{upper}_LINKER", f"{gnu_triple}-gcc")
        cmd.env(envs.QEMU_LD_PREFIX, sysroot)

        if selection.has_accelerator:
            cmd.flag("--privileged")

        cmd.positional(selection.image, CONTAINER_BOOTSTRAP)
        return cmd

    def spawn(self, cmd: EngineCommand) -> SandboxProcess:
        logger.debug("Running up cmd: %s", cmd)
        return SandboxProcess.spawn(cmd.argv())

    def wait_until_ready(
        self, process: SandboxProcess, monitor: ReadinessMonitor | None = None
    ) -> ReadinessMonitor:
        """Block until the sentinel shows up; kill and reap the process otherwise."""
        monitor = monitor or ReadinessMonitor()
        if process.stdout is None:
            self._abort(process)
            raise ReadinessError("Expected a stdout handle of the up child process")

        try:
            self._drive(process, monitor)
        except OSError as exc:
            self._abort(process)
            raise ReadinessError(
                f"Failed to execute the run command: '{exc}'",
                context={"pid": process.pid},
                cause=exc,
            ) from exc
        except BaseException:
            self._abort(process)
            raise

        if monitor.state is ReadinessState.READY:
            logger.debug("bootstrap script succeeded")
            return monitor

        self._abort(process)
        raise ReadinessError(
            monitor.reason or "The sandbox did not finish its bootstrap",
            context={"exit_status": monitor.exit_status, "pid": process.pid},
        )

    def start(
        self,
        host: HostIdentity,
        container: ContainerIdentity,
        selection: EngineSelection,
        target: Target,
    ) -> SandboxProcess:
        """Prepare the host and spawn the sandbox; readiness is not awaited."""
        self.write_seccomp(selection)
        self.ensure_toolchain(target)
        return self.spawn(self.build_run_command(host, container, selection, target))

    def _drive(self, process: SandboxProcess, monitor: ReadinessMonitor) -> None:
        deadline = None if self.timeout is None else self._clock() + self.timeout
        eof = False
        with selectors.DefaultSelector() as selector:
            selector.register(process.stdout, selectors.EVENT_READ)
            while monitor.state is ReadinessState.WAITING:
                if deadline is not None and self._clock() >= deadline:
                    monitor.fail(
                        f"The sandbox did not finish its bootstrap within {self.timeout}s"
                    )
                    return
                if not eof:
                    if selector.select(timeout=self.poll_interval):
                        chunk = self._read_chunk(process)
                        if chunk:
                            monitor.feed(chunk)
                            continue
                        eof = True
                        selector.unregister(process.stdout)
                        if monitor.finish() is ReadinessState.READY:
                            return
                else:
                    self._sleep(self.poll_interval)
                status = process.poll()
                if status is not None:
                    monitor.exited(status)

    @staticmethod
    def _read_chunk(process: SandboxProcess) -> bytes:
        return os.read(process.stdout.fileno(), _READ_SIZE)

    @staticmethod
    def _abort(process: SandboxProcess) -> None:
        process.kill()
        process.reap()

"""Stop the sandbox container and reap its launcher process."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, List, Optional

from cg_common.errors import CGError, SandboxInterrupted, TeardownError
from cg_sandbox.launcher import SandboxProcess
from cg_sandbox.models.engine import Engine, Locator

logger = logging.getLogger(__name__)
teardown_logger = logging.LoggerAdapter(logger, {"cg_phase": "teardown"})


class SandboxTeardown:
    """Best-effort cleanup; failures are collected, never raised."""

    def __init__(
        self,
        *,
        which: Locator = shutil.which,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self._which = which
        self._runner = runner

    def stop_command(self, engine: Engine, name: str) -> list[str]:
        return [engine.resolve(self._which), "stop", *engine.stop_flags(), name]

    def stop(self, engine: Engine, name: str) -> None:
        teardown_logger.debug("Stopping the container '%s' ...", name)
        try:
            cmd = self.stop_command(engine, name)
            result = self._runner(
                cmd,
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except CGError as exc:
            raise TeardownError(
                f"Failed to stop container {name}: {exc}", cause=exc
            ) from exc
        except OSError as exc:
            raise TeardownError(
                f"Failed to stop container {name}: {exc}",
                context={"container": name},
                cause=exc,
            ) from exc
        if result.returncode != 0 and not engine.stop_flags():
            # docker has no ignore flag and fails on containers already removed
            teardown_logger.debug(
                "%s stop %s exited with %s", engine, name, result.returncode
            )
            return
        if result.returncode != 0:
            raise TeardownError(
                f"Failed to stop container {name}: exit status {result.returncode}",
                context={"container": name, "returncode": result.returncode},
            )

    def reap(self, process: SandboxProcess) -> None:
        if process.reaped:
            teardown_logger.debug("Sandbox process %s already reaped", process.pid)
            return
        try:
            status = process.reap()
        except SandboxInterrupted as exc:
            # the run child lives in its own session; nobody else will reap it
            process.kill()
            process.reap()
            raise TeardownError(
                f"Interrupted while waiting for the sandbox process: {exc}",
                context={"pid": process.pid},
                cause=exc,
            ) from exc
        except OSError as exc:
            raise TeardownError(
                f"Failed to wait for the sandbox process: {exc}",
                context={"pid": process.pid},
                cause=exc,
            ) from exc
        teardown_logger.debug("Sandbox process %s exited with %s", process.pid, status)

    def run(
        self,
        engine: Engine,
        name: str,
        process: Optional[SandboxProcess],
    ) -> List[TeardownError]:
        """Stop ``name`` and reap ``process``; return the failures."""
        errors: List[TeardownError] = []
        try:
            self.stop(engine, name)
        except TeardownError as exc:
            teardown_logger.warning("%s", exc)
            errors.append(exc)
        if process is not None:
            if errors:
                process.kill()
            try:
                self.reap(process)
            except TeardownError as exc:
                teardown_logger.warning("%s", exc)
                errors.append(exc)
        return errors

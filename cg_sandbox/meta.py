"""Cargo metadata of the benchmarked workspace."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from cg_common import envs
from cg_common.config.env import Environment, ProcessEnvironment
from cg_common.errors import CommandError, ConfigurationError, SpawnError

logger = logging.getLogger(__name__)

FRAMEWORK_PACKAGE = "gungraun"

Runner = Callable[..., subprocess.CompletedProcess]


class Package(BaseModel):
    """A package entry of ``cargo metadata``."""

    name: str
    version: str


class CargoMetadata(BaseModel):
    """The subset of ``cargo metadata --format-version=1`` we rely on."""

    packages: List[Package] = Field(default_factory=list)
    target_directory: Path
    workspace_root: Path

    def gungraun_version(self) -> Optional[str]:
        for package in self.packages:
            if package.name == FRAMEWORK_PACKAGE:
                return package.version
        return None


def cargo_bin(env: Environment | None = None) -> str:
    env = env or ProcessEnvironment()
    return env.get(envs.CARGO) or "cargo"


def load_metadata(
    env: Environment | None = None,
    runner: Runner = subprocess.run,
) -> CargoMetadata:
    """Run ``cargo metadata`` and decode its JSON output."""
    cmd = [cargo_bin(env), "metadata", "--format-version=1"]
    logger.debug("Querying cargo metadata: %s", " ".join(cmd))
    try:
        result = runner(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise SpawnError(
            f"Failed spawning command: {exc}", context={"cmd": cmd}, cause=exc
        ) from exc
    if result.returncode != 0:
        raise CommandError(
            "Failed to execute cargo metadata",
            returncode=result.returncode,
            context={"cmd": cmd, "stderr": (result.stderr or "").strip()},
        )
    try:
        return CargoMetadata.model_validate_json(result.stdout)
    except ValidationError as exc:
        raise ConfigurationError(
            "Failed to decode the output of cargo metadata",
            context={"cmd": cmd},
            cause=exc,
        ) from exc

"""Configuration records and value objects for one sandbox run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from cg_sandbox.models.engine import Engine
from cg_sandbox.models.targets import Target

CARGO_GUNGRAUN_VERSION = "0.1.0"
CONTAINER_NAME_PREFIX = "cargo-gungraun"
BOOTSTRAP_SENTINEL = "cargo-gungraun: bootstrap finished"
DEFAULT_IMAGE_REPOSITORY = "ghcr.io/cargo-gungraun"

# Fixed layout inside the sandbox
CONTAINER_WORKSPACE_ROOT = PurePosixPath("/workspace")
CONTAINER_GUNGRAUN_HOME = PurePosixPath("/gungraun_home")
CONTAINER_TARGET_DIR = PurePosixPath("/target")
CONTAINER_HOME = PurePosixPath("/root")
CONTAINER_USER = "root"
CONTAINER_SHELL = PurePosixPath("/bin/bash")
CONTAINER_GUNGRAUN_RUNNER = PurePosixPath("/usr/bin/gungraun-runner")
CONTAINER_QEMU_RUNNER = PurePosixPath("/qemu_runner.sh")
CONTAINER_RUNNER = PurePosixPath("/runner.sh")
CONTAINER_BOOTSTRAP = PurePosixPath("/bootstrap.sh")


@dataclass(frozen=True)
class HostIdentity:
    """Paths and versions as seen from the host, all absolute and existing."""

    cargo_home: Path
    rustup_home: Path
    workspace_root: Path
    current_dir: Path
    target_dir: Path
    gungraun_home: Path
    gungraun_version: str
    gungraun_runner: Optional[Path] = None


@dataclass(frozen=True)
class ContainerIdentity:
    """Paths and identity as seen inside the sandbox."""

    name: str
    current_dir: PurePosixPath
    separate_targets: str = "yes"
    workspace_root: PurePosixPath = CONTAINER_WORKSPACE_ROOT
    gungraun_home: PurePosixPath = CONTAINER_GUNGRAUN_HOME
    target_dir: PurePosixPath = CONTAINER_TARGET_DIR
    user: str = CONTAINER_USER
    home: PurePosixPath = CONTAINER_HOME
    shell: PurePosixPath = CONTAINER_SHELL
    gungraun_runner: PurePosixPath = CONTAINER_GUNGRAUN_RUNNER
    qemu_runner: PurePosixPath = CONTAINER_QEMU_RUNNER
    runner: PurePosixPath = CONTAINER_RUNNER

    @property
    def cargo_home(self) -> PurePosixPath:
        return self.home / ".cargo"

    @property
    def rustup_home(self) -> PurePosixPath:
        return self.home / ".rustup"


@dataclass(frozen=True)
class EngineSelection:
    """Which engine and image host the sandbox, plus user extras."""

    engine: Engine
    image: str
    seccomp_path: Path
    accelerator: Optional[str] = None
    volumes: tuple[str, ...] = ()
    envs: tuple[tuple[str, str], ...] = ()

    @property
    def has_accelerator(self) -> bool:
        return self.accelerator is not None


@dataclass(frozen=True)
class SandboxPlan:
    """Everything resolved up front for one sandbox run."""

    target: Target
    host: HostIdentity
    container: ContainerIdentity
    selection: EngineSelection


@dataclass
class BenchRequest:
    """What the caller asked for: a target and the arguments for cargo bench."""

    target: Optional[Target]
    cargo_args: Sequence[str] = field(default_factory=list)
    target_dir: Optional[Path] = None

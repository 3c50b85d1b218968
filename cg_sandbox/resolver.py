"""Resolve host, container and engine configuration from the environment.

This is the only place that looks at the ambient environment and the only
place allowed to create directories on the host before the sandbox starts.
"""

from __future__ import annotations

import logging
import secrets
import shutil
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

from cg_common import envs
from cg_common.config.env import Environment
from cg_common.errors import ConfigurationError
from cg_sandbox.env_list import resolve_env_list
from cg_sandbox.meta import CargoMetadata
from cg_sandbox.models.engine import Locator, select_engine
from cg_sandbox.models.targets import Target
from cg_sandbox.models.types import (
    CARGO_GUNGRAUN_VERSION,
    CONTAINER_NAME_PREFIX,
    CONTAINER_WORKSPACE_ROOT,
    DEFAULT_IMAGE_REPOSITORY,
    ContainerIdentity,
    EngineSelection,
    HostIdentity,
)

logger = logging.getLogger(__name__)

TokenFactory = Callable[[int], str]

SEPARATE_TARGETS_DEFAULT = "yes"
SECCOMP_FILE_NAME = "seccomp.json"


def _ensure_utf8(path: Path, what: str) -> Path:
    try:
        str(path).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ConfigurationError(
            f"Failed converting {what} into an utf8 path",
            context={"path": repr(path)},
            cause=exc,
        ) from exc
    return path


def _canonicalize(path: Path, what: str) -> Path:
    try:
        return _ensure_utf8(path, what).resolve(strict=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Failed to resolve the {what}: '{path}'",
            context={"path": path},
            cause=exc,
        ) from exc


def _create_dir(path: Path, what: str) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Failed creating the {what}: '{path}'",
            context={"path": path},
            cause=exc,
        ) from exc
    return _canonicalize(path, what)


def _home_dir() -> Path:
    try:
        return Path.home()
    except RuntimeError as exc:
        raise ConfigurationError(
            "Failed resolving the home directory", cause=exc
        ) from exc


def _tool_home(env: Environment, var: str, default: str, cwd: Path) -> Path:
    value = env.get(var)
    if value:
        return cwd / value
    return _home_dir() / default


def resolve_cargo_home(env: Environment, cwd: Path) -> Path:
    return _canonicalize(_tool_home(env, envs.CARGO_HOME, ".cargo", cwd), "cargo home directory")


def resolve_rustup_home(env: Environment, cwd: Path) -> Path:
    return _canonicalize(
        _tool_home(env, envs.RUSTUP_HOME, ".rustup", cwd), "rustup home directory"
    )


def resolve_host(
    env: Environment,
    metadata: CargoMetadata,
    *,
    cwd: Optional[Path] = None,
    target_dir: Optional[Path] = None,
) -> HostIdentity:
    """Build the host side identity, creating the target and sandbox home dirs."""
    if cwd is None:
        try:
            cwd = Path.cwd()
        except OSError as exc:
            raise ConfigurationError(
                "Failed retrieving current directory", cause=exc
            ) from exc
    current_dir = _canonicalize(cwd, "current directory")

    cargo_home = resolve_cargo_home(env, current_dir)
    rustup_home = resolve_rustup_home(env, current_dir)

    version = metadata.gungraun_version()
    if not version:
        raise ConfigurationError(
            "Failed to detect gungraun version. Is gungraun installed?"
        )

    raw_target_dir = current_dir / target_dir if target_dir else metadata.target_directory
    resolved_target_dir = _create_dir(raw_target_dir, "target directory")
    workspace_root = _canonicalize(metadata.workspace_root, "workspace root directory")

    home_override = env.get(envs.GUNGRAUN_HOME)
    if home_override:
        raw_home = current_dir / home_override
    else:
        raw_home = resolved_target_dir / "gungraun"
    gungraun_home = _create_dir(raw_home, "gungraun home directory")

    runner: Optional[Path] = None
    runner_override = env.get(envs.GUNGRAUN_RUNNER)
    if runner_override:
        logger.debug("Found %s. Using '%s'", envs.GUNGRAUN_RUNNER, runner_override)
        try:
            runner = _canonicalize(current_dir / runner_override, "gungraun runner")
        except ConfigurationError as exc:
            raise ConfigurationError(
                f"{envs.GUNGRAUN_RUNNER} points to an invalid path",
                context={"variable": envs.GUNGRAUN_RUNNER, "value": runner_override},
                cause=exc,
            ) from exc

    return HostIdentity(
        cargo_home=cargo_home,
        rustup_home=rustup_home,
        workspace_root=workspace_root,
        current_dir=current_dir,
        target_dir=resolved_target_dir,
        gungraun_home=gungraun_home,
        gungraun_version=version,
        gungraun_runner=runner,
    )


def container_current_dir(host: HostIdentity) -> PurePosixPath:
    """Map the host current directory to its location inside the sandbox."""
    try:
        relative = host.current_dir.relative_to(host.workspace_root)
    except ValueError as exc:
        raise ConfigurationError(
            "The current directory should be within the workspace root",
            context={
                "current_dir": host.current_dir,
                "workspace_root": host.workspace_root,
            },
            cause=exc,
        ) from exc
    return CONTAINER_WORKSPACE_ROOT.joinpath(*relative.parts)


def container_name(token: TokenFactory = secrets.token_hex) -> str:
    return f"{CONTAINER_NAME_PREFIX}-{token(8)}"


def resolve_container(
    host: HostIdentity,
    env: Environment,
    token: TokenFactory = secrets.token_hex,
) -> ContainerIdentity:
    return ContainerIdentity(
        name=container_name(token),
        current_dir=container_current_dir(host),
        separate_targets=env.get(envs.GUNGRAUN_SEPARATE_TARGETS) or SEPARATE_TARGETS_DEFAULT,
    )


def default_image(target: Target, version: str) -> str:
    return f"{DEFAULT_IMAGE_REPOSITORY}/{target}:{version}"


def split_volumes(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(volume for volume in raw.split(";") if volume)


def resolve_engine(
    target: Target,
    host: HostIdentity,
    env: Environment,
    locate: Locator = shutil.which,
    version: str | None = None,
) -> EngineSelection:
    """Select engine and image and collect the user's extra mounts and envs."""
    engine = select_engine(env.get(envs.CARGO_GUNGRAUN_ENGINE), locate)
    image = env.get(envs.CARGO_GUNGRAUN_IMAGE) or default_image(
        target, version or CARGO_GUNGRAUN_VERSION
    )
    try:
        extra_envs = resolve_env_list(env.get(envs.CARGO_GUNGRAUN_ENVS), env)
    except ConfigurationError as exc:
        raise ConfigurationError(
            f"Parsing environment variable '{envs.CARGO_GUNGRAUN_ENVS}' failed: {exc}",
            context={"variable": envs.CARGO_GUNGRAUN_ENVS},
            cause=exc,
        ) from exc

    selection = EngineSelection(
        engine=engine,
        image=image,
        seccomp_path=host.gungraun_home / SECCOMP_FILE_NAME,
        accelerator=env.get(envs.CARGO_GUNGRAUN_QEMU_ACCELERATOR),
        volumes=split_volumes(env.get(envs.CARGO_GUNGRAUN_VOLUMES)),
        envs=tuple(extra_envs),
    )
    logger.debug("Selected engine %s with image %s", selection.engine, selection.image)
    return selection

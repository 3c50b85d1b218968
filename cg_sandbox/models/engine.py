"""Container engines able to host the sandbox."""

from __future__ import annotations

import shutil
from enum import Enum
from typing import Callable, Optional

from cg_common.errors import ConfigurationError, SpawnError

Locator = Callable[[str], Optional[str]]


class Engine(str, Enum):
    """Supported container engines, in preference order."""

    PODMAN = "podman"
    DOCKER = "docker"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "Engine":
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid container engine: '{value}'. "
                "Expected one of 'podman' or 'docker'",
                context={"engine": value},
            ) from None

    def resolve(self, which: Locator = shutil.which) -> str:
        """Return the absolute path of the engine executable."""
        path = which(self.value)
        if not path:
            raise SpawnError(
                "Container engine executable not found",
                context={"engine": self.value},
            )
        return path

    def isolation_flags(self) -> list[str]:
        # --userns=host makes podman ignore PODMAN_USERNS
        if self is Engine.PODMAN:
            return ["--userns=host"]
        return []

    def stop_flags(self) -> list[str]:
        """Flags making ``stop`` succeed when the container is already gone."""
        if self is Engine.PODMAN:
            return ["--ignore"]
        return []


def select_engine(override: str | None, locate: Locator = shutil.which) -> Engine:
    """Pick the engine: explicit override first, then the first one on PATH.

    Docker is the last resort even when it cannot be found; resolving its
    executable fails later with a spawn error.
    """
    if override:
        return Engine.parse(override)
    for engine in Engine:
        if locate(engine.value):
            return engine
    return Engine.DOCKER

"""Builder for container engine invocations."""

from __future__ import annotations

import shlex
from typing import Iterable


class EngineCommand:
    """Accumulate the parts of an engine invocation and serialize them once.

    Values are kept as separate argv entries, so user supplied environment
    values never need shell quoting.
    """

    def __init__(self, executable: str, subcommand: str) -> None:
        self.executable = executable
        self.subcommand = subcommand
        self._parts: list[str] = []

    def flag(self, name: str) -> "EngineCommand":
        self._parts.append(name)
        return self

    def option(self, name: str, value: str) -> "EngineCommand":
        self._parts.extend([name, value])
        return self

    def option_eq(self, name: str, value: str) -> "EngineCommand":
        self._parts.append(f"{name}={value}")
        return self

    def volume(
        self, source: object, destination: object, options: Iterable[str] = ()
    ) -> "EngineCommand":
        spec = f"{source}:{destination}"
        opts = ",".join(options)
        if opts:
            spec = f"{spec}:{opts}"
        return self.option("--volume", spec)

    def raw_volume(self, spec: str) -> "EngineCommand":
        return self.option("--volume", spec)

    def env(self, key: str, value: object) -> "EngineCommand":
        return self.option("--env", f"{key}={value}")

    def positional(self, *values: object) -> "EngineCommand":
        self._parts.extend(str(value) for value in values)
        return self

    def extend(self, values: Iterable[str]) -> "EngineCommand":
        self._parts.extend(values)
        return self

    @property
    def parts(self) -> list[str]:
        return list(self._parts)

    def argv(self) -> list[str]:
        return [self.executable, self.subcommand, *self._parts]

    def __str__(self) -> str:
        return shlex.join(self.argv())

    def __repr__(self) -> str:
        return f"EngineCommand({self.argv()!r})"

"""Environment access and environment variable parsing utilities."""

from __future__ import annotations

import os
from typing import Iterable, Mapping, Protocol


class Environment(Protocol):
    """Read-only view of a process environment."""

    def get(self, key: str) -> str | None:
        ...

    def items(self) -> Iterable[tuple[str, str]]:
        ...


class ProcessEnvironment:
    """Live view of ``os.environ``; never mutates it."""

    def get(self, key: str) -> str | None:
        return os.environ.get(key)

    def items(self) -> Iterable[tuple[str, str]]:
        return list(os.environ.items())


class MappingEnvironment:
    """Fixed key/value environment, mostly useful for tests."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def items(self) -> Iterable[tuple[str, str]]:
        return list(self._values.items())


def parse_bool_env(value: str | None) -> bool | None:
    """Parse a boolean from an environment variable string.

    Returns True for "1", "true", "yes", "on" (case-insensitive).
    Returns None if value is None.
    """
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_int_env(value: str | None) -> int | None:
    """Parse an integer from an environment variable string.

    Returns None if value is None or cannot be parsed.
    """
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_float_env(value: str | None) -> float | None:
    """Parse a float from an environment variable string.

    Returns None if value is None or cannot be parsed.
    """
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

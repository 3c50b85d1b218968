"""Shared error taxonomy for cargo-gungraun."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class CGError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(CGError):
    """Missing or invalid environment variable, path or target."""


class EnvListParseError(ConfigurationError):
    """A delimited environment list is not well-formed."""


class SpawnError(CGError):
    """An external executable could not be found or started."""


class CommandError(CGError):
    """An external command exited unsuccessfully."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        merged = {"returncode": returncode, **(context or {})}
        super().__init__(message, context=merged, cause=cause)
        self.returncode = returncode


class ReadinessError(CGError):
    """The sandbox never reported that its bootstrap finished."""


class TeardownError(CGError):
    """Stopping the sandbox or reaping its process failed."""


class SandboxInterrupted(CGError):
    """The run was interrupted by a termination signal."""

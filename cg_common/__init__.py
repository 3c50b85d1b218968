"""Shared helpers for cargo-gungraun."""

from cg_common.api import (
    TRACE,
    Environment,
    MappingEnvironment,
    ProcessEnvironment,
    configure_logging,
)

__all__ = [
    "configure_logging",
    "Environment",
    "MappingEnvironment",
    "ProcessEnvironment",
    "TRACE",
]

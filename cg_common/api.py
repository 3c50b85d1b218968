"""Public API surface for cg_common."""

from cg_common.config.env import Environment, MappingEnvironment, ProcessEnvironment
from cg_common.logging import TRACE, configure_logging

__all__ = [
    "configure_logging",
    "Environment",
    "MappingEnvironment",
    "ProcessEnvironment",
    "TRACE",
]

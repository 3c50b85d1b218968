"""Configuration helpers for cg_common."""

from .env import (
    Environment,
    MappingEnvironment,
    ProcessEnvironment,
    parse_bool_env,
    parse_float_env,
    parse_int_env,
)

__all__ = [
    "Environment",
    "MappingEnvironment",
    "ProcessEnvironment",
    "parse_bool_env",
    "parse_float_env",
    "parse_int_env",
]

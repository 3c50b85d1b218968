"""Scan the arguments of ``bench`` without consuming them.

Everything the user passes is forwarded to ``cargo bench`` verbatim; only a
few options are peeked at to decide where and how to run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from cg_common import envs
from cg_common.config.env import Environment
from cg_common.errors import ConfigurationError
from cg_sandbox.models.targets import Target


class ColorChoice(str, Enum):
    ALWAYS = "always"
    AUTO = "auto"
    NEVER = "never"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ColorChoice":
        if value is None:
            return cls.AUTO
        if value == "":
            return cls.ALWAYS
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid color value: '{value}'. "
                "Possible values are always, never, auto",
                context={"color": value},
            ) from None


@dataclass
class BenchArgs:
    """Result of scanning the ``bench`` arguments."""

    forwarded: List[str] = field(default_factory=list)
    target: Optional[Target] = None
    target_dir: Optional[Path] = None
    color: ColorChoice = ColorChoice.AUTO
    help: bool = False


def _value(name: str, inline: Optional[str], tokens: Iterator[str], out: List[str]) -> str:
    if inline is not None:
        return inline
    value = next(tokens, None)
    if value is None:
        raise ConfigurationError(f"A value is required for --{name}")
    out.append(value)
    return value


def scan_bench_args(
    raw: Sequence[str],
    env: Environment,
    color: Optional[ColorChoice] = None,
) -> BenchArgs:
    """Peek at ``--target``, ``--target-dir``, ``--color`` and ``--help``."""
    args = BenchArgs(
        target=Target.parse(env.get(envs.CARGO_BUILD_TARGET)),
        color=color or ColorChoice.AUTO,
    )
    target_dir = env.get(envs.CARGO_TARGET_DIR) or env.get(envs.CARGO_BUILD_TARGET_DIR)
    if target_dir:
        args.target_dir = Path(target_dir)

    tokens = iter(raw)
    for token in tokens:
        args.forwarded.append(token)
        if token == "--":
            args.forwarded.extend(tokens)
            break
        if token.startswith("--"):
            name, eq, inline = token[2:].partition("=")
            value = inline if eq else None
            if name == "target":
                args.target = Target.parse(_value(name, value, tokens, args.forwarded))
            elif name == "target-dir":
                args.target_dir = Path(_value(name, value, tokens, args.forwarded))
            elif name == "color":
                args.color = ColorChoice.parse(value)
            elif name == "help":
                args.help = True
                return args
        elif token.startswith("-") and len(token) > 1:
            shorts = token[1:]
            for idx, short in enumerate(shorts):
                if short == "h":
                    args.help = True
                    return args
                if short == "c":
                    args.color = ColorChoice.parse(shorts[idx + 1:] or None)
                    break
    return args

"""Help and version output."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Callable

from rich.console import Console

from cg_common.config.env import Environment
from cg_common.errors import SpawnError
from cg_sandbox.meta import cargo_bin
from cg_sandbox.models.types import CARGO_GUNGRAUN_VERSION
from cg_ui.cli.args import ColorChoice

BENCH_USAGE = "cargo gungraun bench [CARGO_BENCH_ARGS] [-- [ARGS]...]"


def make_console(color: ColorChoice = ColorChoice.AUTO) -> Console:
    if color is ColorChoice.ALWAYS:
        return Console(force_terminal=True, highlight=False)
    if color is ColorChoice.NEVER:
        return Console(no_color=True, highlight=False)
    return Console(highlight=False)


def print_bench_help(
    console: Console,
    env: Environment,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> None:
    """Print our usage, then dispatch to ``cargo bench --help``."""
    console.print(
        "A thin wrapper around cargo bench to run gungraun benchmarks on targets "
        "via podman/docker\n"
    )
    console.print(f"[bold blue]Usage:[/] [bright_blue]{BENCH_USAGE}[/]\n")
    console.print(
        "cargo-gungraun uses the same CARGO_BENCH_ARGS as cargo bench. If you only "
        "run gungraun benchmarks,\nthen ARGS can be any gungraun arguments. Run "
        "`[blue]cargo gungraun help-all[/]` to see all valid gungraun\narguments "
        "(Requires gungraun >= 0.18).\n"
    )
    console.print("...Dispatching to `[blue]cargo bench --help[/]`:\n")
    cmd = [cargo_bin(env), "bench", "--help"]
    try:
        result = runner(
            cmd,
            env={**os.environ, "CARGO_TERM_COLOR": "always"},
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise SpawnError(
            f"Failed spawning command: {exc}", context={"cmd": cmd}, cause=exc
        ) from exc
    if result.returncode == 0:
        sys.stdout.buffer.write(result.stdout)
        sys.stdout.flush()


def version_line() -> str:
    return f"cargo-gungraun {CARGO_GUNGRAUN_VERSION}"

"""
Command-line interface for cargo-gungraun.

Runs ``cargo bench`` for a foreign target inside an emulated podman/docker
sandbox, or directly on the host when no target is given.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import typer

from cg_common.config.env import Environment, ProcessEnvironment
from cg_common.errors import CGError
from cg_common.logging import configure_logging
from cg_sandbox.engine.service import SandboxOrchestrator
from cg_sandbox.models.types import BenchRequest
from cg_ui.cli.args import scan_bench_args
from cg_ui.cli.help import make_console, print_bench_help, version_line

logger = logging.getLogger(__name__)

CARGO_SUBCOMMAND = "gungraun"


@dataclass
class CLIContext:
    """Process wide state shared by the commands."""

    env: Environment = field(default_factory=ProcessEnvironment)
    orchestrator_factory: Callable[[Environment], SandboxOrchestrator] = (
        lambda env: SandboxOrchestrator(env=env)
    )
    raw_bench_args: Optional[List[str]] = None


ctx_store = CLIContext()

app = typer.Typer(
    help="Run gungraun benchmarks for foreign targets in a podman/docker sandbox.",
    no_args_is_help=True,
    add_completion=False,
)


def exit_code(status: int) -> int:
    """Map a child status to a shell exit code (signals become 128+N)."""
    if status < 0:
        return 128 - status
    return status


@app.callback()
def entry() -> None:
    """Configure logging before any command runs."""
    configure_logging(env=ctx_store.env, force=True)


@app.command(
    "bench",
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    },
)
def bench(ctx: typer.Context) -> None:
    """Run cargo bench, inside a sandbox when a target is given."""
    raw = ctx_store.raw_bench_args if ctx_store.raw_bench_args is not None else list(ctx.args)
    env = ctx_store.env
    try:
        args = scan_bench_args(raw, env)
        if args.help:
            print_bench_help(make_console(args.color), env)
            return
        orchestrator = ctx_store.orchestrator_factory(env)
        status = orchestrator.run(
            BenchRequest(
                target=args.target,
                cargo_args=args.forwarded,
                target_dir=args.target_dir,
            )
        )
    except CGError as exc:
        logger.error("%s", exc, exc_info=logger.isEnabledFor(logging.DEBUG))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        raise typer.Exit(130)
    if status != 0:
        raise typer.Exit(exit_code(status))


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Show this message."""
    parent = ctx.parent or ctx
    typer.echo(parent.get_help())


@app.command("version")
def version() -> None:
    """Print the version."""
    typer.echo(version_line())


def _strip_cargo_subcommand(argv: List[str]) -> List[str]:
    # cargo runs `cargo-gungraun gungraun <args>` for `cargo gungraun <args>`
    if argv and argv[0] == CARGO_SUBCOMMAND:
        return argv[1:]
    return argv


def _default_to_bench(argv: List[str]) -> List[str]:
    # bench is the default command: options before any command belong to it
    if not argv or argv[0].startswith("-"):
        return ["bench", *argv]
    return argv


def main(argv: Optional[List[str]] = None) -> None:
    """Console script entrypoint (Typer app)."""
    args = _strip_cargo_subcommand(list(sys.argv[1:] if argv is None else argv))
    args = _default_to_bench(args)
    if args and args[0] == "bench":
        # click drops `--`; keep the exact tokens for cargo bench
        ctx_store.raw_bench_args = args[1:]
    app(args=args, prog_name="cargo-gungraun")


if __name__ == "__main__":
    main()

"""Tests for scanning the bench arguments."""

from __future__ import annotations

from pathlib import Path

import pytest

from cg_common.config.env import MappingEnvironment
from cg_common.errors import ConfigurationError
from cg_sandbox.models.targets import Target
from cg_ui.cli.args import ColorChoice, scan_bench_args


pytestmark = pytest.mark.unit_ui

EMPTY = MappingEnvironment()


def test_no_arguments() -> None:
    args = scan_bench_args([], EMPTY)
    assert args.forwarded == []
    assert args.target is None
    assert args.target_dir is None
    assert args.color is ColorChoice.AUTO
    assert not args.help


@pytest.mark.parametrize(
    "raw",
    [
        ["--target", "aarch64-unknown-linux-gnu"],
        ["--target=aarch64-unknown-linux-gnu"],
    ],
)
def test_target_is_peeked_and_forwarded(raw) -> None:
    args = scan_bench_args(raw, EMPTY)
    assert args.target is Target.AARCH64_UNKNOWN_LINUX_GNU
    assert args.forwarded == raw


def test_target_from_environment() -> None:
    env = MappingEnvironment({"CARGO_BUILD_TARGET": "s390x-unknown-linux-gnu"})
    assert scan_bench_args([], env).target is Target.S390X_UNKNOWN_LINUX_GNU


def test_command_line_target_wins() -> None:
    env = MappingEnvironment({"CARGO_BUILD_TARGET": "s390x-unknown-linux-gnu"})
    args = scan_bench_args(["--target", "riscv64gc-unknown-linux-gnu"], env)
    assert args.target is Target.RISCV64GC_UNKNOWN_LINUX_GNU


def test_invalid_target() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported or invalid target"):
        scan_bench_args(["--target", "wasm32-unknown-unknown"], EMPTY)


def test_target_requires_a_value() -> None:
    with pytest.raises(ConfigurationError, match="--target"):
        scan_bench_args(["--target"], EMPTY)


def test_target_dir() -> None:
    assert scan_bench_args(["--target-dir", "out"], EMPTY).target_dir == Path("out")
    env = MappingEnvironment({"CARGO_BUILD_TARGET_DIR": "/b"})
    assert scan_bench_args([], env).target_dir == Path("/b")
    env = MappingEnvironment({"CARGO_TARGET_DIR": "/a", "CARGO_BUILD_TARGET_DIR": "/b"})
    assert scan_bench_args([], env).target_dir == Path("/a")


def test_everything_after_separator_is_verbatim() -> None:
    raw = ["--bench", "simple", "--", "--target", "bogus", "--help"]
    args = scan_bench_args(raw, EMPTY)
    assert args.forwarded == raw
    assert args.target is None
    assert not args.help


@pytest.mark.parametrize(
    "raw, expected",
    [
        (["--color=never"], ColorChoice.NEVER),
        (["--color"], ColorChoice.ALWAYS),
        (["-calways"], ColorChoice.ALWAYS),
        (["-vcnever"], ColorChoice.NEVER),
    ],
)
def test_color(raw, expected) -> None:
    args = scan_bench_args(raw, EMPTY)
    assert args.color is expected
    assert args.forwarded == raw


def test_invalid_color() -> None:
    with pytest.raises(ConfigurationError, match="Invalid color value"):
        scan_bench_args(["--color=rainbow"], EMPTY)


@pytest.mark.parametrize("flag", ["--help", "-h", "-vh"])
def test_help(flag) -> None:
    args = scan_bench_args(["--bench", "x", flag, "--target"], EMPTY)
    assert args.help

"""Typer CLI for cargo-gungraun."""

from cg_ui.cli.main import app, main

__all__ = ["app", "main"]

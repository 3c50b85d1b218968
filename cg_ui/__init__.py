"""User-facing entry points for cargo-gungraun."""

"""Cross-architecture benchmark sandbox orchestration for cargo-gungraun."""

from cg_sandbox.api import (  # noqa: F401
    BOOTSTRAP_SENTINEL,
    CARGO_GUNGRAUN_VERSION,
    BenchRequest,
    Engine,
    SandboxOrchestrator,
    Target,
)

__version__ = CARGO_GUNGRAUN_VERSION

__all__ = [
    "BOOTSTRAP_SENTINEL",
    "BenchRequest",
    "Engine",
    "SandboxOrchestrator",
    "Target",
    "__version__",
]

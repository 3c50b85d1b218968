"""Public sandbox API surface."""

from cg_sandbox.engine.service import SandboxOrchestrator
from cg_sandbox.env_list import format_env_list, resolve_env_list
from cg_sandbox.executor import SandboxExecutor
from cg_sandbox.launcher import (
    ReadinessMonitor,
    ReadinessState,
    SandboxLauncher,
    SandboxProcess,
)
from cg_sandbox.models.engine import Engine, select_engine
from cg_sandbox.models.targets import Target
from cg_sandbox.models.types import (
    BOOTSTRAP_SENTINEL,
    CARGO_GUNGRAUN_VERSION,
    BenchRequest,
    ContainerIdentity,
    EngineSelection,
    HostIdentity,
    SandboxPlan,
)
from cg_sandbox.teardown import SandboxTeardown

__all__ = [
    "BOOTSTRAP_SENTINEL",
    "CARGO_GUNGRAUN_VERSION",
    "BenchRequest",
    "ContainerIdentity",
    "Engine",
    "EngineSelection",
    "HostIdentity",
    "ReadinessMonitor",
    "ReadinessState",
    "SandboxExecutor",
    "SandboxLauncher",
    "SandboxOrchestrator",
    "SandboxPlan",
    "SandboxProcess",
    "SandboxTeardown",
    "Target",
    "format_env_list",
    "resolve_env_list",
    "select_engine",
]

"""Names of environment variables used in more than one place."""

CARGO = "CARGO"
CARGO_BUILD_TARGET = "CARGO_BUILD_TARGET"
CARGO_BUILD_TARGET_DIR = "CARGO_BUILD_TARGET_DIR"
CARGO_HOME = "CARGO_HOME"
CARGO_TARGET_DIR = "CARGO_TARGET_DIR"
CARGO_TERM_COLOR = "CARGO_TERM_COLOR"
RUSTUP_HOME = "RUSTUP_HOME"

# Engine selection
CARGO_GUNGRAUN_ENGINE = "CARGO_GUNGRAUN_ENGINE"
CARGO_GUNGRAUN_IMAGE = "CARGO_GUNGRAUN_IMAGE"
CARGO_GUNGRAUN_VOLUMES = "CARGO_GUNGRAUN_VOLUMES"
CARGO_GUNGRAUN_ENVS = "CARGO_GUNGRAUN_ENVS"
CARGO_GUNGRAUN_BOOTSTRAP_TIMEOUT = "CARGO_GUNGRAUN_BOOTSTRAP_TIMEOUT"

# Emulation
CARGO_GUNGRAUN_QEMU_ACCELERATOR = "CARGO_GUNGRAUN_QEMU_ACCELERATOR"
CARGO_GUNGRAUN_QEMU_EXTRA_ARGS = "CARGO_GUNGRAUN_QEMU_EXTRA_ARGS"
CARGO_GUNGRAUN_QEMU_TIMEOUT = "CARGO_GUNGRAUN_QEMU_TIMEOUT"
QEMU_LD_PREFIX = "QEMU_LD_PREFIX"

# Sandbox side
GUNGRAUN_COLOR = "GUNGRAUN_COLOR"
GUNGRAUN_EXECUTOR = "GUNGRAUN_EXECUTOR"
GUNGRAUN_EXECUTOR_ARGS = "GUNGRAUN_EXECUTOR_ARGS"
GUNGRAUN_HOME = "GUNGRAUN_HOME"
GUNGRAUN_LOG = "GUNGRAUN_LOG"
GUNGRAUN_LOG_FILE = "GUNGRAUN_LOG_FILE"
GUNGRAUN_LOG_JSON = "GUNGRAUN_LOG_JSON"
GUNGRAUN_RUNNER = "GUNGRAUN_RUNNER"
GUNGRAUN_SEPARATE_TARGETS = "GUNGRAUN_SEPARATE_TARGETS"
GUNGRAUN_VERSION = "GUNGRAUN_VERSION"

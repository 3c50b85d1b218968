"""Supported cross-compilation targets."""

from __future__ import annotations

from enum import Enum

from cg_common.errors import ConfigurationError


class Target(str, Enum):
    """Targets in rustc triple format which can be emulated in the sandbox.

    Targets supported by valgrind but not (yet) here: FreeBSD, Solaris,
    Illumos, Darwin and Android.
    """

    AARCH64_UNKNOWN_LINUX_GNU = "aarch64-unknown-linux-gnu"
    ARM_UNKNOWN_LINUX_GNUEABI = "arm-unknown-linux-gnueabi"
    ARM_UNKNOWN_LINUX_GNUEABIHF = "arm-unknown-linux-gnueabihf"
    ARMV7_UNKNOWN_LINUX_GNUEABI = "armv7-unknown-linux-gnueabi"
    ARMV7_UNKNOWN_LINUX_GNUEABIHF = "armv7-unknown-linux-gnueabihf"
    I686_UNKNOWN_LINUX_GNU = "i686-unknown-linux-gnu"
    MIPS64EL_UNKNOWN_LINUX_GNUABI64 = "mips64el-unknown-linux-gnuabi64"
    MIPS_UNKNOWN_LINUX_GNU = "mips-unknown-linux-gnu"
    MIPSEL_UNKNOWN_LINUX_GNU = "mipsel-unknown-linux-gnu"
    POWERPC64_UNKNOWN_LINUX_GNU = "powerpc64-unknown-linux-gnu"
    POWERPC64LE_UNKNOWN_LINUX_GNU = "powerpc64le-unknown-linux-gnu"
    POWERPC_UNKNOWN_LINUX_GNU = "powerpc-unknown-linux-gnu"
    RISCV64GC_UNKNOWN_LINUX_GNU = "riscv64gc-unknown-linux-gnu"
    S390X_UNKNOWN_LINUX_GNU = "s390x-unknown-linux-gnu"
    X86_64_UNKNOWN_LINUX_GNU = "x86_64-unknown-linux-gnu"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | None) -> "Target | None":
        """Return the target for ``value``; ``None`` stays ``None``."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Unsupported or invalid target: '{value}'",
                context={"target": value},
            ) from None

    def to_upper_env(self) -> str:
        return self.value.upper().replace("-", "_")

    def to_lower_env(self) -> str:
        return self.value.replace("-", "_")

    def to_gnu_triple(self) -> str:
        """Triple used as prefix of the cross toolchain binaries."""
        return _GNU_TRIPLES[self]

    @property
    def sysroot(self) -> str:
        return f"/usr/{self.to_gnu_triple()}"


_GNU_TRIPLES = {
    Target.X86_64_UNKNOWN_LINUX_GNU: "x86-64-linux-gnu",
    Target.I686_UNKNOWN_LINUX_GNU: "i686-linux-gnu",
    Target.POWERPC_UNKNOWN_LINUX_GNU: "powerpc-linux-gnu",
    Target.POWERPC64_UNKNOWN_LINUX_GNU: "powerpc64-linux-gnu",
    Target.POWERPC64LE_UNKNOWN_LINUX_GNU: "powerpc64le-linux-gnu",
    Target.S390X_UNKNOWN_LINUX_GNU: "s390x-linux-gnu",
    Target.AARCH64_UNKNOWN_LINUX_GNU: "aarch64-linux-gnu",
    Target.ARM_UNKNOWN_LINUX_GNUEABI: "arm-linux-gnueabi",
    Target.ARMV7_UNKNOWN_LINUX_GNUEABI: "arm-linux-gnueabi",
    Target.ARM_UNKNOWN_LINUX_GNUEABIHF: "arm-linux-gnueabihf",
    Target.ARMV7_UNKNOWN_LINUX_GNUEABIHF: "arm-linux-gnueabihf",
    Target.MIPS_UNKNOWN_LINUX_GNU: "mips-linux-gnu",
    Target.MIPSEL_UNKNOWN_LINUX_GNU: "mipsel-linux-gnu",
    Target.MIPS64EL_UNKNOWN_LINUX_GNUABI64: "mips64el-linux-gnu",
    Target.RISCV64GC_UNKNOWN_LINUX_GNU: "riscv64-linux-gnu",
}

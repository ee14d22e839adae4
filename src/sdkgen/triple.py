"""Platform triples and host/target triple resolution."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from .errors import HostDetectionError
from .observability import StructuredLogger


class CPU(StrEnum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    ARMV7 = "armv7"
    I686 = "i686"
    PPC64LE = "powerpc64le"
    S390X = "s390x"
    RISCV64 = "riscv64"

    @property
    def linux_convention_name(self) -> str:
        """Architecture name as spelled in Linux package and toolchain names."""
        return self.value

    @property
    def debian_convention_name(self) -> str:
        return _DEBIAN_NAMES[self]

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parse a CPU name, accepting the common aliases used by ``uname -m``."""
        normalized = text.strip().lower()
        normalized = _CPU_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown CPU architecture `{text}`; expected one of: {allowed}.") from exc


_CPU_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "armv7l": "armv7",
    "armhf": "armv7",
    "i386": "i686",
    "x86": "i686",
    "ppc64le": "powerpc64le",
}

_DEBIAN_NAMES = {
    CPU.X86_64: "amd64",
    CPU.AARCH64: "arm64",
    CPU.ARMV7: "armhf",
    CPU.I686: "i386",
    CPU.PPC64LE: "ppc64el",
    CPU.S390X: "s390x",
    CPU.RISCV64: "riscv64",
}


class Vendor(StrEnum):
    UNKNOWN = "unknown"
    APPLE = "apple"


class OS(StrEnum):
    LINUX = "linux"
    MACOSX = "macosx"


class Environment(StrEnum):
    NONE = "none"
    GNU = "gnu"
    GNUEABIHF = "gnueabihf"


@dataclass(frozen=True, slots=True)
class Triple:
    cpu: CPU
    vendor: Vendor
    os: OS
    environment: Environment = Environment.NONE

    def __str__(self) -> str:
        cpu = self.cpu.value
        if self.vendor is Vendor.APPLE and self.cpu is CPU.AARCH64:
            cpu = "arm64"
        parts = [cpu, self.vendor.value, self.os.value]
        if self.environment is not Environment.NONE:
            parts.append(self.environment.value)
        return "-".join(parts)

    @classmethod
    def parse(cls, text: str) -> Self:
        parts = text.strip().split("-")
        if len(parts) not in (3, 4):
            raise ValueError(f"Malformed triple `{text}`; expected cpu-vendor-os[-environment].")
        try:
            return cls(
                cpu=CPU.parse(parts[0]),
                vendor=Vendor(parts[1]),
                os=OS(parts[2]),
                environment=Environment(parts[3]) if len(parts) == 4 else Environment.NONE,
            )
        except ValueError as exc:
            raise ValueError(f"Unsupported triple `{text}`: {exc}") from exc


# Target triples only vary by CPU; vendor, OS and ABI are fixed by the target family.
TARGET_VENDOR = Vendor.UNKNOWN
TARGET_OS = OS.LINUX
TARGET_ENVIRONMENT = Environment.GNU


def detect_host_cpu() -> CPU:
    machine = platform.machine()
    if not machine:
        raise HostDetectionError(
            "Unable to determine the CPU architecture of this machine.",
            hint="Pass --host-arch explicitly.",
            context={"operation": "detect_host_cpu"},
        )
    try:
        return CPU.parse(machine)
    except ValueError as exc:
        raise HostDetectionError(
            f"Unsupported host CPU architecture `{machine}`.",
            hint="Pass --host-arch explicitly.",
            context={"operation": "detect_host_cpu", "machine": machine},
        ) from exc


def host_triple(cpu: CPU) -> Triple:
    """Return the triple of the running machine with ``cpu`` substituted."""
    system = platform.system()
    if system == "Darwin":
        return Triple(cpu=cpu, vendor=Vendor.APPLE, os=OS.MACOSX)
    if system == "Linux":
        return Triple(cpu=cpu, vendor=Vendor.UNKNOWN, os=OS.LINUX, environment=Environment.GNU)
    raise HostDetectionError(
        f"Unsupported host operating system `{system or 'unknown'}`.",
        hint="Run the generator on macOS or Linux.",
        context={"operation": "host_triple", "system": system},
    )


def target_triple(cpu: CPU) -> Triple:
    return Triple(cpu=cpu, vendor=TARGET_VENDOR, os=TARGET_OS, environment=TARGET_ENVIRONMENT)


def derive_triples(
    host_cpu: CPU | None = None,
    target_cpu: CPU | None = None,
    *,
    verbose: bool = False,
    logger: StructuredLogger | None = None,
) -> tuple[Triple, Triple]:
    """Resolve the effective host and target triples for a run.

    The host CPU is probed once when not given; the target CPU falls back to
    the host CPU.
    """
    resolved_host_cpu = host_cpu if host_cpu is not None else detect_host_cpu()
    host = host_triple(resolved_host_cpu)
    target = target_triple(target_cpu if target_cpu is not None else host.cpu)
    if verbose and logger is not None:
        logger.log(
            operation="derive_triples",
            phase="resolve",
            message="Resolved host and target triples.",
            level="debug",
            extra={
                "host": str(host),
                "target": str(target),
                "host_detected": host_cpu is None,
            },
        )
    return host, target


__all__ = [
    "CPU",
    "Environment",
    "OS",
    "Triple",
    "Vendor",
    "derive_triples",
    "detect_host_cpu",
    "host_triple",
    "target_triple",
]

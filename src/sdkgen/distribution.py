"""Linux distribution descriptors validated against supported releases."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from .errors import DistributionValidationError


class LinuxDistributionName(StrEnum):
    UBUNTU = "ubuntu"
    RHEL = "rhel"

    @classmethod
    def parse(cls, text: str) -> Self:
        try:
            return cls(text.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(f"`{member.value}`" for member in cls)
            raise DistributionValidationError(
                f"Unknown Linux distribution `{text}`.",
                hint=f"Available options: {allowed}.",
                context={"field": "linux-distribution-name", "value": text},
            ) from exc


@dataclass(frozen=True, slots=True)
class _Release:
    codename: str
    swift_platform: str


# Supported (name, version) pairs. Versions compare by exact string equality.
SUPPORTED_RELEASES: dict[LinuxDistributionName, dict[str, _Release]] = {
    LinuxDistributionName.UBUNTU: {
        "20.04": _Release(codename="focal", swift_platform="ubuntu2004"),
        "22.04": _Release(codename="jammy", swift_platform="ubuntu2204"),
    },
    LinuxDistributionName.RHEL: {
        "ubi9": _Release(codename="ubi9", swift_platform="ubi9"),
    },
}

DEFAULT_VERSIONS: dict[LinuxDistributionName, str] = {
    LinuxDistributionName.UBUNTU: "22.04",
    LinuxDistributionName.RHEL: "ubi9",
}


@dataclass(frozen=True, slots=True)
class LinuxDistribution:
    name: LinuxDistributionName
    version: str

    def __post_init__(self) -> None:
        supported = SUPPORTED_RELEASES.get(self.name, {})
        if self.version not in supported:
            allowed = ", ".join(f"`{version}`" for version in supported)
            raise DistributionValidationError(
                f"Unsupported Linux distribution `{self.name.value}` version `{self.version}`.",
                hint=f"Supported versions for `{self.name.value}`: {allowed}.",
                context={
                    "field": "linux-distribution-version",
                    "name": self.name.value,
                    "version": self.version,
                },
            )

    @classmethod
    def make(cls, name: LinuxDistributionName, version: str | None = None) -> Self:
        """Build a distribution, applying the name's default version when omitted."""
        return cls(name=name, version=version if version is not None else DEFAULT_VERSIONS[name])

    @property
    def release(self) -> str:
        return SUPPORTED_RELEASES[self.name][self.version].codename

    @property
    def swift_platform(self) -> str:
        """Platform component of download.swift.org toolchain paths."""
        return SUPPORTED_RELEASES[self.name][self.version].swift_platform

    def __str__(self) -> str:
        return f"{self.name.value} {self.version}"


def supported_pairs() -> list[tuple[LinuxDistributionName, str]]:
    return [(name, version) for name, releases in SUPPORTED_RELEASES.items() for version in releases]


__all__ = [
    "DEFAULT_VERSIONS",
    "LinuxDistribution",
    "LinuxDistributionName",
    "SUPPORTED_RELEASES",
    "supported_pairs",
]

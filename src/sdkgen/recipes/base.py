"""Protocol for SDK recipes and the plan they hand to bundle generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from sdkgen.triple import Triple

ExtractDestination = Literal["sdk", "toolchain"]


@dataclass(frozen=True, slots=True)
class DownloadSpec:
    """One archive to fetch and the subset of it to unpack into the bundle."""

    name: str
    url: str
    destination: ExtractDestination
    include: tuple[str, ...] = ()
    strip_components: int = 1
    symlinks: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class ContainerCopySpec:
    image: str
    platform: str
    paths: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ToolsetSpec:
    linker: str = "ld.lld"
    extra_swift_flags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SDKPlan:
    sdk_dir_name: str
    swift_resources_path: str
    swift_static_resources_path: str
    downloads: tuple[DownloadSpec, ...] = ()
    container_copy: ContainerCopySpec | None = None
    toolset: ToolsetSpec = field(default_factory=ToolsetSpec)


@runtime_checkable
class SDKRecipe(Protocol):
    @property
    def family(self) -> str:
        """Short name of the target family, used in logs."""

    @property
    def default_artifact_id(self) -> str:
        """Bundle name used when the user does not pick one."""

    def plan(self, host: Triple) -> SDKPlan:
        """Return the pure assembly plan for a bundle hosted on ``host``."""

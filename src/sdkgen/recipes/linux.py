"""Recipe for Swift SDKs targeting Linux distributions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from sdkgen.distribution import LinuxDistribution, LinuxDistributionName
from sdkgen.errors import RecipeConstructionError
from sdkgen.recipes.base import ContainerCopySpec, DownloadSpec, SDKPlan, ToolsetSpec
from sdkgen.triple import CPU, OS, Triple

SWIFT_DOWNLOAD_ROOT = "https://download.swift.org"
LLVM_RELEASES_ROOT = "https://github.com/llvm/llvm-project/releases/download"

# Target CPUs with published Swift toolchains and base images.
SUPPORTED_TARGET_CPUS = (CPU.X86_64, CPU.AARCH64)

LLD_HOST_SUFFIXES: dict[tuple[CPU, OS], str] = {
    (CPU.AARCH64, OS.MACOSX): "arm64-apple-darwin22.0",
    (CPU.X86_64, OS.MACOSX): "x86_64-apple-darwin21.0",
    (CPU.AARCH64, OS.LINUX): "aarch64-linux-gnu",
    (CPU.X86_64, OS.LINUX): "x86_64-linux-gnu-ubuntu-22.04",
}

_SYSROOT_PATHS: dict[LinuxDistributionName, tuple[str, ...]] = {
    LinuxDistributionName.UBUNTU: ("/usr/include", "/usr/lib", "/lib"),
    LinuxDistributionName.RHEL: ("/usr/include", "/usr/lib", "/usr/lib64"),
}


@dataclass(frozen=True, slots=True)
class VersionsConfiguration:
    swift_version: str
    swift_branch: str
    lld_version: str
    distribution: LinuxDistribution
    target: Triple

    @classmethod
    def make(
        cls,
        *,
        swift_version: str,
        swift_branch: str | None,
        lld_version: str,
        distribution: LinuxDistribution,
        target: Triple,
    ) -> Self:
        if not swift_version:
            raise RecipeConstructionError(
                "Swift version must be non-empty.",
                context={"field": "swift-version"},
            )
        if not lld_version:
            raise RecipeConstructionError(
                "LLD version must be non-empty.",
                context={"field": "lld-version"},
            )
        return cls(
            swift_version=swift_version,
            swift_branch=swift_branch or f"swift-{swift_version.lower()}",
            lld_version=lld_version,
            distribution=distribution,
            target=target,
        )

    @property
    def swift_bare_semver(self) -> str:
        """``5.9.2`` for ``5.9.2-RELEASE``; snapshots are kept as-is."""
        return self.swift_version.removesuffix("-RELEASE")

    @property
    def swift_platform_dir(self) -> str:
        platform = self.distribution.swift_platform
        if self.target.cpu is CPU.AARCH64:
            return f"{platform}-aarch64"
        return platform

    @property
    def swift_base_docker_image(self) -> str:
        if self.distribution.name is LinuxDistributionName.RHEL:
            return f"swift:{self.swift_bare_semver}-rhel-{self.distribution.release}"
        return f"swift:{self.swift_bare_semver}-{self.distribution.release}"

    def swift_download_url(self) -> str:
        platform_dir = self.swift_platform_dir
        return (
            f"{SWIFT_DOWNLOAD_ROOT}/{self.swift_branch}/{platform_dir}/"
            f"swift-{self.swift_version}/swift-{self.swift_version}-{platform_dir}.tar.gz"
        )

    def lld_download_url(self, host: Triple) -> str:
        suffix = LLD_HOST_SUFFIXES.get((host.cpu, host.os))
        if suffix is None:
            raise RecipeConstructionError(
                f"No LLD {self.lld_version} release is published for host `{host}`.",
                hint="Run the generator on an x86_64 or aarch64 macOS/Linux host.",
                context={"field": "host-arch", "host": str(host)},
            )
        return (
            f"{LLVM_RELEASES_ROOT}/llvmorg-{self.lld_version}/"
            f"clang+llvm-{self.lld_version}-{suffix}.tar.xz"
        )


@dataclass(frozen=True, slots=True)
class LinuxRecipe:
    target: Triple
    versions: VersionsConfiguration
    with_docker: bool = False
    from_container_image: str | None = None

    @classmethod
    def make(
        cls,
        *,
        target: Triple,
        distribution: LinuxDistribution,
        swift_version: str,
        swift_branch: str | None = None,
        lld_version: str,
        with_docker: bool = False,
        from_container_image: str | None = None,
    ) -> Self:
        if target.os is not OS.LINUX:
            raise RecipeConstructionError(
                f"Linux recipe cannot target `{target}`.",
                context={"field": "target", "target": str(target)},
            )
        if target.cpu not in SUPPORTED_TARGET_CPUS:
            allowed = ", ".join(f"`{cpu.value}`" for cpu in SUPPORTED_TARGET_CPUS)
            raise RecipeConstructionError(
                f"Target CPU `{target.cpu.value}` has no published Swift toolchain.",
                hint=f"Choose --target-arch from {allowed}.",
                context={"field": "target-arch", "value": target.cpu.value},
            )
        if from_container_image is not None and not with_docker:
            raise RecipeConstructionError(
                "--from-container-image requires --with-docker.",
                hint="Add --with-docker or drop --from-container-image.",
                context={"field": "from-container-image", "value": from_container_image},
            )
        if distribution.name is LinuxDistributionName.RHEL and not with_docker:
            raise RecipeConstructionError(
                "RHEL SDKs can only be generated from a container image.",
                hint="Add --with-docker.",
                context={"field": "linux-distribution-name", "value": distribution.name.value},
            )
        versions = VersionsConfiguration.make(
            swift_version=swift_version,
            swift_branch=swift_branch,
            lld_version=lld_version,
            distribution=distribution,
            target=target,
        )
        return cls(
            target=target,
            versions=versions,
            with_docker=with_docker,
            from_container_image=from_container_image,
        )

    @property
    def family(self) -> str:
        return "linux"

    @property
    def distribution(self) -> LinuxDistribution:
        return self.versions.distribution

    @property
    def container_image(self) -> str | None:
        if not self.with_docker:
            return None
        return self.from_container_image or self.versions.swift_base_docker_image

    @property
    def default_artifact_id(self) -> str:
        return "_".join(
            (
                self.versions.swift_version,
                self.distribution.name.value,
                self.distribution.release,
                self.target.cpu.linux_convention_name,
            )
        )

    def plan(self, host: Triple) -> SDKPlan:
        downloads = [
            DownloadSpec(
                name="lld",
                url=self.versions.lld_download_url(host),
                destination="toolchain",
                include=("bin/lld",),
                strip_components=1,
                symlinks=(("bin/ld.lld", "lld"),),
            )
        ]
        container_copy: ContainerCopySpec | None = None
        image = self.container_image
        if image is None:
            downloads.append(
                DownloadSpec(
                    name="target-swift",
                    url=self.versions.swift_download_url(),
                    destination="sdk",
                    include=("usr/lib/swift", "usr/lib/swift_static"),
                    strip_components=1,
                )
            )
        else:
            container_copy = ContainerCopySpec(
                image=image,
                platform=f"linux/{self.target.cpu.debian_convention_name}",
                paths=_SYSROOT_PATHS[self.distribution.name],
            )
        return SDKPlan(
            sdk_dir_name=f"{self.distribution.name.value}-{self.distribution.release}.sdk",
            swift_resources_path="usr/lib/swift",
            swift_static_resources_path="usr/lib/swift_static",
            downloads=tuple(downloads),
            container_copy=container_copy,
            toolset=ToolsetSpec(
                linker="ld.lld",
                extra_swift_flags=("-use-ld=lld", "-Xlinker", "-R/usr/lib/swift/linux/"),
            ),
        )

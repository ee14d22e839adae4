import pytest

from sdkgen.distribution import LinuxDistribution, LinuxDistributionName
from sdkgen.errors import RecipeConstructionError
from sdkgen.recipes import LinuxRecipe, SDKRecipe
from sdkgen.triple import CPU, OS, Triple, Vendor, target_triple

LINUX_X86_HOST = Triple.parse("x86_64-unknown-linux-gnu")


def test_default_artifact_id_is_composed_from_inputs() -> None:
    recipe = _recipe()

    assert recipe.default_artifact_id == "5.9.2-RELEASE_ubuntu_jammy_x86_64"


def test_default_artifact_id_is_stable_for_identical_inputs() -> None:
    first = _recipe()
    second = _recipe()

    assert first.default_artifact_id == first.default_artifact_id
    assert first.default_artifact_id == second.default_artifact_id


@pytest.mark.parametrize(
    "changes",
    [
        {"swift_version": "5.10-RELEASE"},
        {"version": "20.04"},
        {"cpu": CPU.AARCH64},
    ],
)
def test_default_artifact_id_changes_with_each_input(changes: dict[str, object]) -> None:
    assert _recipe(**changes).default_artifact_id != _recipe().default_artifact_id


def test_linux_recipe_satisfies_recipe_protocol() -> None:
    assert isinstance(_recipe(), SDKRecipe)


def test_plan_downloads_target_toolchain_and_host_lld() -> None:
    plan = _recipe().plan(LINUX_X86_HOST)

    urls = {download.name: download.url for download in plan.downloads}
    assert urls["target-swift"] == (
        "https://download.swift.org/swift-5.9.2-release/ubuntu2204/swift-5.9.2-RELEASE/"
        "swift-5.9.2-RELEASE-ubuntu2204.tar.gz"
    )
    assert urls["lld"] == (
        "https://github.com/llvm/llvm-project/releases/download/llvmorg-17.0.5/"
        "clang+llvm-17.0.5-x86_64-linux-gnu-ubuntu-22.04.tar.xz"
    )
    assert plan.container_copy is None
    assert plan.sdk_dir_name == "ubuntu-jammy.sdk"
    assert "-use-ld=lld" in plan.toolset.extra_swift_flags


def test_plan_uses_aarch64_toolchain_and_macos_lld() -> None:
    host = Triple(cpu=CPU.AARCH64, vendor=Vendor.APPLE, os=OS.MACOSX)
    plan = _recipe(cpu=CPU.AARCH64).plan(host)

    urls = {download.name: download.url for download in plan.downloads}
    assert urls["target-swift"].endswith(
        "/ubuntu2204-aarch64/swift-5.9.2-RELEASE/swift-5.9.2-RELEASE-ubuntu2204-aarch64.tar.gz"
    )
    assert urls["lld"].endswith("clang+llvm-17.0.5-arm64-apple-darwin22.0.tar.xz")


def test_plan_is_pure() -> None:
    recipe = _recipe()

    assert recipe.plan(LINUX_X86_HOST) == recipe.plan(LINUX_X86_HOST)


def test_explicit_swift_branch_is_used_in_download_url() -> None:
    recipe = _recipe(swift_version="DEVELOPMENT-SNAPSHOT-2023-12-01-a", swift_branch="development")

    url = {d.name: d.url for d in recipe.plan(LINUX_X86_HOST).downloads}["target-swift"]
    assert url.startswith("https://download.swift.org/development/ubuntu2204/")


def test_docker_plan_copies_sysroot_from_default_image() -> None:
    recipe = _recipe(cpu=CPU.AARCH64, with_docker=True)
    plan = recipe.plan(LINUX_X86_HOST)

    assert recipe.container_image == "swift:5.9.2-jammy"
    assert plan.container_copy is not None
    assert plan.container_copy.image == "swift:5.9.2-jammy"
    assert plan.container_copy.platform == "linux/arm64"
    assert "/usr/include" in plan.container_copy.paths
    assert [download.name for download in plan.downloads] == ["lld"]


def test_docker_plan_prefers_explicit_container_image() -> None:
    recipe = _recipe(with_docker=True, from_container_image="example/swift:custom")

    assert recipe.container_image == "example/swift:custom"


def test_rhel_recipe_uses_rhel_base_image() -> None:
    recipe = _recipe(name=LinuxDistributionName.RHEL, version="ubi9", with_docker=True)

    assert recipe.default_artifact_id == "5.9.2-RELEASE_rhel_ubi9_x86_64"
    assert recipe.container_image == "swift:5.9.2-rhel-ubi9"


def test_container_image_requires_docker() -> None:
    with pytest.raises(RecipeConstructionError) as excinfo:
        _recipe(from_container_image="swift:5.9.2-jammy")

    assert excinfo.value.context["field"] == "from-container-image"


def test_rhel_requires_docker() -> None:
    with pytest.raises(RecipeConstructionError, match="RHEL"):
        _recipe(name=LinuxDistributionName.RHEL, version="ubi9")


def test_target_cpu_without_toolchain_is_rejected() -> None:
    with pytest.raises(RecipeConstructionError) as excinfo:
        _recipe(cpu=CPU.RISCV64)

    assert "riscv64" in str(excinfo.value)


def test_lld_plan_fails_for_unsupported_host() -> None:
    host = Triple.parse("s390x-unknown-linux-gnu")

    with pytest.raises(RecipeConstructionError, match="LLD"):
        _recipe().plan(host)


def _recipe(
    *,
    cpu: CPU = CPU.X86_64,
    name: LinuxDistributionName = LinuxDistributionName.UBUNTU,
    version: str = "22.04",
    swift_version: str = "5.9.2-RELEASE",
    swift_branch: str | None = None,
    with_docker: bool = False,
    from_container_image: str | None = None,
) -> LinuxRecipe:
    return LinuxRecipe.make(
        target=target_triple(cpu),
        distribution=LinuxDistribution.make(name, version),
        swift_version=swift_version,
        swift_branch=swift_branch,
        lld_version="17.0.5",
        with_docker=with_docker,
        from_container_image=from_container_image,
    )

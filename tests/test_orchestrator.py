import asyncio
import signal
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

from sdkgen.config import LinuxSDKOptions, RunOptions
from sdkgen.distribution import LinuxDistributionName
from sdkgen.errors import (
    DistributionValidationError,
    GeneratorExecutionError,
    HostDetectionError,
    RecipeConstructionError,
)
from sdkgen.generator import GeneratorConfig
from sdkgen.lifecycle import CancellationToken, LifecycleState
from sdkgen.observability import StructuredLogger
from sdkgen.orchestrator import GeneratorOrchestrator, make_linux_recipe
from sdkgen.recipes import SDKRecipe
from sdkgen.triple import CPU

from conftest import RecordingFactory


def test_run_passes_resolved_identifiers_to_generator(
    linux_host: None,
    generator_factory: RecordingFactory,
    tmp_path: Path,
) -> None:
    options = RunOptions(bundle_version="1.2.3", incremental=True, source_root=tmp_path)
    recipe = make_linux_recipe(options, LinuxSDKOptions())
    orchestrator = GeneratorOrchestrator(generator_factory=generator_factory)

    state = asyncio.run(orchestrator.run(options, recipe))

    assert state is LifecycleState.COMPLETED
    [generator] = generator_factory.created
    assert generator.recipes == [recipe]
    assert generator.config == GeneratorConfig(
        bundle_version="1.2.3",
        host_triple=recipe.target,
        target_triple=recipe.target,
        artifact_id="5.9.2-RELEASE_ubuntu_jammy_x86_64",
        incremental=True,
        verbose=False,
        source_root=tmp_path,
    )


def test_explicit_sdk_name_overrides_default_artifact_id(
    linux_host: None,
    generator_factory: RecordingFactory,
) -> None:
    options = RunOptions(sdk_name="my-sdk")
    recipe = make_linux_recipe(options, LinuxSDKOptions())

    asyncio.run(GeneratorOrchestrator(generator_factory=generator_factory).run(options, recipe))

    assert generator_factory.created[0].config.artifact_id == "my-sdk"


def test_target_arch_override_reaches_recipe_and_generator(
    linux_host: None,
    generator_factory: RecordingFactory,
) -> None:
    options = RunOptions(target_arch=CPU.AARCH64)
    recipe = make_linux_recipe(options, LinuxSDKOptions())

    asyncio.run(GeneratorOrchestrator(generator_factory=generator_factory).run(options, recipe))

    config = generator_factory.created[0].config
    assert config.host_triple.cpu is CPU.X86_64
    assert config.target_triple.cpu is CPU.AARCH64
    assert recipe.default_artifact_id.endswith("_aarch64")


def test_orchestrator_depends_only_on_recipe_protocol(
    linux_host: None,
    generator_factory: RecordingFactory,
) -> None:
    recipe = _StubRecipe()

    orchestrator = GeneratorOrchestrator(generator_factory=generator_factory)
    asyncio.run(orchestrator.run(RunOptions(), recipe))

    assert generator_factory.created[0].config.artifact_id == "stub-artifact"


def test_generator_failures_are_wrapped(linux_host: None) -> None:
    def factory(config: GeneratorConfig, logger: StructuredLogger) -> "_FailingGenerator":
        return _FailingGenerator(config=config)

    orchestrator = GeneratorOrchestrator(generator_factory=factory)

    with pytest.raises(GeneratorExecutionError) as excinfo:
        asyncio.run(orchestrator.run(RunOptions(), _StubRecipe()))

    assert isinstance(excinfo.value.__cause__, OSError)
    assert excinfo.value.context["artifact_id"] == "stub-artifact"
    assert orchestrator.group is not None
    assert orchestrator.group.state is LifecycleState.FAILED


@pytest.mark.skipif(sys.platform == "win32", reason="Loop signal handlers are POSIX-only.")
def test_interrupt_during_generation_is_graceful(linux_host: None) -> None:
    def factory(config: GeneratorConfig, logger: StructuredLogger) -> "_InterruptedGenerator":
        return _InterruptedGenerator(config=config)

    orchestrator = GeneratorOrchestrator(generator_factory=factory)
    state = asyncio.run(orchestrator.run(RunOptions(), _StubRecipe()))

    assert state is LifecycleState.GRACEFULLY_CANCELLED


def test_host_detection_failure_stops_before_generator(
    monkeypatch: pytest.MonkeyPatch,
    generator_factory: RecordingFactory,
) -> None:
    monkeypatch.setattr("sdkgen.triple.platform.machine", lambda: "")

    orchestrator = GeneratorOrchestrator(generator_factory=generator_factory)

    with pytest.raises(HostDetectionError):
        asyncio.run(orchestrator.run(RunOptions(), _StubRecipe()))

    assert generator_factory.created == []


def test_make_linux_recipe_applies_default_distribution_version(linux_host: None) -> None:
    ubuntu = make_linux_recipe(RunOptions(), LinuxSDKOptions())
    rhel = make_linux_recipe(
        RunOptions(),
        LinuxSDKOptions(distribution_name=LinuxDistributionName.RHEL, with_docker=True),
    )

    assert ubuntu.distribution.version == "22.04"
    assert rhel.distribution.version == "ubi9"


def test_make_linux_recipe_uses_explicit_version_verbatim(linux_host: None) -> None:
    recipe = make_linux_recipe(RunOptions(), LinuxSDKOptions(distribution_version="20.04"))

    assert recipe.distribution.version == "20.04"
    assert recipe.default_artifact_id == "5.9.2-RELEASE_ubuntu_focal_x86_64"


def test_make_linux_recipe_surfaces_validation_errors(linux_host: None) -> None:
    with pytest.raises(DistributionValidationError):
        make_linux_recipe(RunOptions(), LinuxSDKOptions(distribution_version="18.04"))
    with pytest.raises(RecipeConstructionError):
        make_linux_recipe(RunOptions(), LinuxSDKOptions(from_container_image="swift:latest"))


@dataclass(frozen=True, slots=True)
class _StubRecipe:
    @property
    def family(self) -> str:
        return "stub"

    @property
    def default_artifact_id(self) -> str:
        return "stub-artifact"

    def plan(self, host: object) -> object:
        raise AssertionError("in-process generators do not plan")


@dataclass(slots=True)
class _FailingGenerator:
    config: GeneratorConfig

    async def run(self, recipe: SDKRecipe, *, cancellation: CancellationToken) -> None:
        raise OSError("disk full")


@dataclass(slots=True)
class _InterruptedGenerator:
    config: GeneratorConfig

    async def run(self, recipe: SDKRecipe, *, cancellation: CancellationToken) -> None:
        signal.raise_signal(signal.SIGINT)
        for step in range(500):
            await asyncio.sleep(0.01)
            cancellation.raise_if_cancelled(f"download-{step}")

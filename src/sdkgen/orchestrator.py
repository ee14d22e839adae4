"""End-to-end generator run: triples, recipe, generator, supervision."""

from __future__ import annotations

import signal
from dataclasses import dataclass, field

from .config import LinuxSDKOptions, RunOptions
from .distribution import LinuxDistribution
from .errors import GenerationCancelled, GeneratorExecutionError, SdkGenError
from .generator import BundleGenerator, GeneratorConfig, GeneratorFactory, LocalBundleGenerator
from .lifecycle import CancellationToken, LifecycleState, ServiceConfig, ServiceGroup
from .observability import StructuredLogger
from .recipes import LinuxRecipe, SDKRecipe
from .triple import derive_triples


def default_generator_factory(config: GeneratorConfig, logger: StructuredLogger) -> BundleGenerator:
    return LocalBundleGenerator(config=config, logger=logger)


@dataclass(slots=True)
class GeneratorService:
    """Adapts a bundle generator run to the lifecycle ``Service`` protocol."""

    recipe: SDKRecipe
    generator: BundleGenerator

    async def run(self, cancellation: CancellationToken) -> None:
        try:
            await self.generator.run(self.recipe, cancellation=cancellation)
        except (SdkGenError, GenerationCancelled):
            raise
        except Exception as exc:
            raise GeneratorExecutionError(
                f"Bundle generation failed: {exc}",
                context={
                    "operation": "generate",
                    "artifact_id": self.generator.config.artifact_id,
                    "error": type(exc).__name__,
                },
            ) from exc


@dataclass(slots=True)
class GeneratorOrchestrator:
    generator_factory: GeneratorFactory = default_generator_factory
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    cancellation_signals: tuple[signal.Signals, ...] = (signal.SIGINT,)
    group: ServiceGroup | None = field(default=None, init=False)

    async def run(self, options: RunOptions, recipe: SDKRecipe) -> LifecycleState:
        host, target = derive_triples(
            options.host_arch,
            options.target_arch,
            verbose=options.verbose,
            logger=self.logger,
        )
        config = GeneratorConfig(
            bundle_version=options.bundle_version,
            host_triple=host,
            target_triple=target,
            artifact_id=options.sdk_name or recipe.default_artifact_id,
            incremental=options.incremental,
            verbose=options.verbose,
            source_root=options.source_root,
        )
        self.logger.log(
            operation="generator_configured",
            phase="orchestrate",
            recipe=recipe.family,
            message="Starting SDK generation.",
            extra={
                "artifact_id": config.artifact_id,
                "host": str(host),
                "target": str(target),
                "incremental": config.incremental,
            },
        )
        generator = self.generator_factory(config, self.logger)
        self.group = ServiceGroup(
            ServiceConfig(service=GeneratorService(recipe=recipe, generator=generator)),
            cancellation_signals=self.cancellation_signals,
            logger=self.logger,
        )
        return await self.group.run()


def make_linux_recipe(
    options: RunOptions,
    linux: LinuxSDKOptions,
    *,
    logger: StructuredLogger | None = None,
) -> LinuxRecipe:
    """Validate the distribution, derive the target, and build a Linux recipe."""
    distribution = LinuxDistribution.make(linux.distribution_name, linux.distribution_version)
    _, target = derive_triples(
        options.host_arch,
        options.target_arch,
        verbose=options.verbose,
        logger=logger,
    )
    return LinuxRecipe.make(
        target=target,
        distribution=distribution,
        swift_version=options.swift_version,
        swift_branch=options.swift_branch,
        lld_version=linux.lld_version,
        with_docker=linux.with_docker,
        from_container_image=linux.from_container_image,
    )

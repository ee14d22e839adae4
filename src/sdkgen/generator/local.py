"""Bundle generator that assembles the SDK on the local filesystem."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path

from sdkgen.generator.base import GeneratorConfig
from sdkgen.generator.bundle import (
    BundlePaths,
    write_info_json,
    write_swift_sdk_json,
    write_toolset_json,
)
from sdkgen.generator.docker import DockerCopier
from sdkgen.generator.extract import extract_archive
from sdkgen.generator.fetch import fetch
from sdkgen.generator.record import GenerationRecord, read_record_digest, remove_record
from sdkgen.lifecycle import CancellationToken
from sdkgen.observability import StructuredLogger
from sdkgen.recipes.base import DownloadSpec, SDKRecipe


@dataclass(slots=True)
class LocalBundleGenerator:
    config: GeneratorConfig
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    copier: DockerCopier | None = None

    async def run(self, recipe: SDKRecipe, *, cancellation: CancellationToken) -> None:
        plan = recipe.plan(self.config.host_triple)
        paths = BundlePaths.make(
            bundles_dir=self.config.bundles_dir,
            artifact_id=self.config.artifact_id,
            target=self.config.target_triple,
            sdk_dir_name=plan.sdk_dir_name,
        )
        record = GenerationRecord.from_inputs(self.config, family=recipe.family, plan=plan)

        if self.config.incremental:
            if read_record_digest(paths.bundle_dir) == record.digest:
                self._log(
                    "bundle_up_to_date",
                    "Existing bundle matches the requested inputs, nothing to do.",
                    recipe=recipe.family,
                    extra={"bundle": str(paths.bundle_dir)},
                )
                return
            cancellation.raise_if_cancelled("invalidate")
            await asyncio.to_thread(remove_record, paths.bundle_dir)
        else:
            cancellation.raise_if_cancelled("clean")
            await asyncio.to_thread(paths.clean)
        paths.create()

        for download in plan.downloads:
            await self._install_download(download, paths, recipe=recipe, cancellation=cancellation)

        if plan.container_copy is not None:
            cancellation.raise_if_cancelled("container")
            self._log(
                "container_copy",
                "Copying target files from container image.",
                recipe=recipe.family,
                extra={"image": plan.container_copy.image},
            )
            copier = self.copier or DockerCopier(logger=self.logger)
            await asyncio.to_thread(
                copier.copy,
                plan.container_copy,
                paths.sdk_dir,
                cancellation=cancellation,
            )

        cancellation.raise_if_cancelled("metadata")
        write_swift_sdk_json(paths, plan=plan, target=self.config.target_triple)
        write_toolset_json(paths, plan=plan)
        write_info_json(
            paths,
            artifact_id=self.config.artifact_id,
            bundle_version=self.config.bundle_version,
            host=self.config.host_triple,
        )
        # The record goes last so an interrupted run never looks up to date.
        record.write(paths.bundle_dir)
        self._log(
            "bundle_complete",
            "SDK bundle generated.",
            recipe=recipe.family,
            extra={"bundle": str(paths.bundle_dir)},
        )

    async def _install_download(
        self,
        download: DownloadSpec,
        paths: BundlePaths,
        *,
        recipe: SDKRecipe,
        cancellation: CancellationToken,
    ) -> None:
        cancellation.raise_if_cancelled(f"download:{download.name}")
        archive, cache_hit = await asyncio.to_thread(
            fetch,
            download.url,
            cache_dir=self.config.artifacts_dir,
            cancellation=cancellation,
        )
        self._log(
            "download",
            f"Fetched {download.name}.",
            recipe=recipe.family,
            extra={"url": download.url, "cache_hit": cache_hit},
        )

        destination = paths.sdk_dir if download.destination == "sdk" else paths.toolchain_dir
        cancellation.raise_if_cancelled(f"extract:{download.name}")
        extracted = await asyncio.to_thread(
            extract_archive,
            archive,
            destination,
            include=download.include,
            strip_components=download.strip_components,
            cancellation=cancellation,
        )
        for link, link_target in download.symlinks:
            _replace_symlink(destination / link, link_target)
        self._log(
            "extract",
            f"Unpacked {download.name}.",
            recipe=recipe.family,
            level="debug",
            extra={"members": len(extracted), "destination": str(destination)},
        )

    def _log(
        self,
        operation: str,
        message: str,
        *,
        recipe: str,
        level: str = "info",
        extra: dict[str, object] | None = None,
    ) -> None:
        if level == "debug" and not self.config.verbose:
            return
        self.logger.log(
            operation=operation,
            phase="generate",
            recipe=recipe,
            message=message,
            level=level,
            extra=extra,
        )


def _replace_symlink(link: Path, target: str) -> None:
    link.parent.mkdir(parents=True, exist_ok=True)
    if link.is_symlink() or link.exists():
        link.unlink()
    os.symlink(target, link)

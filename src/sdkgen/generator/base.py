"""Protocol for bundle generators and the configuration they are built from."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from sdkgen.lifecycle import CancellationToken
from sdkgen.observability import StructuredLogger
from sdkgen.recipes.base import SDKRecipe
from sdkgen.triple import Triple


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    bundle_version: str
    host_triple: Triple
    target_triple: Triple
    artifact_id: str
    incremental: bool = False
    verbose: bool = False
    source_root: Path = field(default_factory=lambda: Path("."))

    @property
    def artifacts_dir(self) -> Path:
        return self.source_root / "Artifacts"

    @property
    def bundles_dir(self) -> Path:
        return self.source_root / "Bundles"


class BundleGenerator(Protocol):
    config: GeneratorConfig

    async def run(self, recipe: SDKRecipe, *, cancellation: CancellationToken) -> None:
        """Materialize the bundle for ``recipe`` or raise.

        Implementations must call ``cancellation.raise_if_cancelled`` at their
        I/O checkpoints and never leave a partially written file under its
        final name.
        """


GeneratorFactory = Callable[[GeneratorConfig, StructuredLogger], BundleGenerator]

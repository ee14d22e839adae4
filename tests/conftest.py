"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from sdkgen.generator import GeneratorConfig
from sdkgen.lifecycle import CancellationToken
from sdkgen.observability import StructuredLogger
from sdkgen.recipes import SDKRecipe


@dataclass(slots=True)
class InProcessGenerator:
    """Generator that records the recipes it was asked to run."""

    config: GeneratorConfig
    recipes: list[SDKRecipe] = field(default_factory=list)

    async def run(self, recipe: SDKRecipe, *, cancellation: CancellationToken) -> None:
        cancellation.raise_if_cancelled("inprocess")
        self.recipes.append(recipe)


@dataclass(slots=True)
class RecordingFactory:
    created: list[InProcessGenerator] = field(default_factory=list)

    def __call__(self, config: GeneratorConfig, logger: StructuredLogger) -> InProcessGenerator:
        generator = InProcessGenerator(config=config)
        self.created.append(generator)
        return generator


@pytest.fixture
def generator_factory() -> RecordingFactory:
    """Provide an in-process generator factory for orchestrator tests."""
    return RecordingFactory()


@pytest.fixture
def linux_host(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sdkgen.triple.platform.system", lambda: "Linux")
    monkeypatch.setattr("sdkgen.triple.platform.machine", lambda: "x86_64")

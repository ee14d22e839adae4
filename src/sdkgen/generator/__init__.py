"""Bundle generator interfaces and the local implementation."""

from .base import BundleGenerator, GeneratorConfig, GeneratorFactory
from .local import LocalBundleGenerator

__all__ = [
    "BundleGenerator",
    "GeneratorConfig",
    "GeneratorFactory",
    "LocalBundleGenerator",
]

"""Public package entrypoint for the Swift SDK generator."""

from .config import LinuxSDKOptions, RunOptions
from .distribution import LinuxDistribution, LinuxDistributionName
from .elapsed import Stopwatch, interval_string
from .errors import (
    DistributionValidationError,
    ErrorCode,
    GenerationCancelled,
    GeneratorExecutionError,
    HostDetectionError,
    RecipeConstructionError,
    SdkGenError,
)
from .generator import BundleGenerator, GeneratorConfig, LocalBundleGenerator
from .lifecycle import (
    CancellationToken,
    LifecycleState,
    ServiceConfig,
    ServiceGroup,
    SuccessTerminationBehavior,
)
from .orchestrator import GeneratorOrchestrator, make_linux_recipe
from .recipes import LinuxRecipe, SDKPlan, SDKRecipe
from .triple import CPU, OS, Environment, Triple, Vendor, derive_triples

__all__ = [
    "BundleGenerator",
    "CPU",
    "CancellationToken",
    "DistributionValidationError",
    "Environment",
    "ErrorCode",
    "GenerationCancelled",
    "GeneratorConfig",
    "GeneratorExecutionError",
    "GeneratorOrchestrator",
    "HostDetectionError",
    "LifecycleState",
    "LinuxDistribution",
    "LinuxDistributionName",
    "LinuxRecipe",
    "LinuxSDKOptions",
    "LocalBundleGenerator",
    "OS",
    "RecipeConstructionError",
    "RunOptions",
    "SDKPlan",
    "SDKRecipe",
    "SdkGenError",
    "ServiceConfig",
    "ServiceGroup",
    "Stopwatch",
    "SuccessTerminationBehavior",
    "Triple",
    "Vendor",
    "derive_triples",
    "interval_string",
]

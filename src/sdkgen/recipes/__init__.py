"""SDK recipes."""

from .base import ContainerCopySpec, DownloadSpec, SDKPlan, SDKRecipe, ToolsetSpec
from .linux import LinuxRecipe, VersionsConfiguration

__all__ = [
    "ContainerCopySpec",
    "DownloadSpec",
    "LinuxRecipe",
    "SDKPlan",
    "SDKRecipe",
    "ToolsetSpec",
    "VersionsConfiguration",
]

"""Run options, defaults, and environment-driven settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .distribution import LinuxDistributionName
from .triple import CPU

DEFAULT_BUNDLE_VERSION = "0.0.1"
DEFAULT_SWIFT_VERSION = "5.9.2-RELEASE"
DEFAULT_LLD_VERSION = "17.0.5"

SOURCE_ROOT_ENV = "SDKGEN_SOURCE_ROOT"
LOG_LEVEL_ENV = "SDKGEN_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Options shared by every recipe family."""

    bundle_version: str = DEFAULT_BUNDLE_VERSION
    sdk_name: str | None = None
    incremental: bool = False
    verbose: bool = False
    swift_version: str = DEFAULT_SWIFT_VERSION
    swift_branch: str | None = None
    host_arch: CPU | None = None
    target_arch: CPU | None = None
    source_root: Path = Path(".")


@dataclass(frozen=True, slots=True)
class LinuxSDKOptions:
    with_docker: bool = False
    from_container_image: str | None = None
    lld_version: str = DEFAULT_LLD_VERSION
    distribution_name: LinuxDistributionName = LinuxDistributionName.UBUNTU
    distribution_version: str | None = None


def source_root_from_env(environ: dict[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    raw = env.get(SOURCE_ROOT_ENV)
    return Path(raw) if raw else Path.cwd()


def log_level_from_env(*, verbose: bool, environ: dict[str, str] | None = None) -> int:
    if verbose:
        return logging.DEBUG
    env = os.environ if environ is None else environ
    name = env.get(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    # getLevelName returns a string for unknown names
    return level if isinstance(level, int) else logging.INFO

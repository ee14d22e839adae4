"""Command-line entry point for the SDK generator.

Usage:
    sdkgen make-linux-sdk [options]
    sdkgen [options]            (deprecated, runs make-linux-sdk)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

from .config import (
    DEFAULT_BUNDLE_VERSION,
    DEFAULT_LLD_VERSION,
    DEFAULT_SWIFT_VERSION,
    LinuxSDKOptions,
    RunOptions,
    log_level_from_env,
    source_root_from_env,
)
from .distribution import LinuxDistributionName
from .elapsed import Stopwatch, elapsed_line
from .errors import SdkGenError
from .lifecycle import LifecycleState
from .observability import StructuredLogger, configure_logging
from .orchestrator import GeneratorOrchestrator, make_linux_recipe
from .triple import CPU

MAKE_LINUX_SDK = "make-linux-sdk"
EXIT_CANCELLED = 130

_CPU_CHOICES = ", ".join(f"`{cpu.value}`" for cpu in CPU)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdkgen",
        description="Generate Swift SDK bundles for cross-compilation.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    linux = sub.add_parser(MAKE_LINUX_SDK, help="Generate a Swift SDK bundle for Linux.")
    _add_generator_options(linux)

    linux.add_argument(
        "--with-docker",
        action="store_true",
        help="Delegate to Docker for copying files for the target triple.",
    )
    linux.add_argument(
        "--from-container-image",
        default=None,
        help="Container image from which to copy the target triple.",
    )
    linux.add_argument(
        "--lld-version",
        default=DEFAULT_LLD_VERSION,
        help="Version of LLD linker to supply in the bundle.",
    )
    linux.add_argument(
        "--linux-distribution-name",
        default=LinuxDistributionName.UBUNTU.value,
        help="Linux distribution to use if the target platform is Linux. "
        "Available options: `ubuntu`, `rhel`. Default is `ubuntu`.",
    )
    linux.add_argument(
        "--linux-distribution-version",
        default=None,
        help="Version of the Linux distribution used as a target platform. "
        "Ubuntu: `20.04`, `22.04` (default). RHEL: `ubi9` (default).",
    )
    return parser


def _add_generator_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--bundle-version",
        default=DEFAULT_BUNDLE_VERSION,
        help="An arbitrary version number for informational purposes.",
    )
    parser.add_argument(
        "--sdk-name",
        default=None,
        help="Name of the SDK bundle. Defaults to a string composed of Swift version, "
        "Linux distribution, Linux release and target CPU architecture.",
    )
    parser.add_argument(
        "--incremental",
        action="store_true",
        help="Experimental: avoid cleaning up toolchain and SDK directories and "
        "regenerate the SDK bundle incrementally.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Provide verbose logging output.")
    parser.add_argument(
        "--swift-branch",
        default=None,
        help="Branch of Swift to use when downloading nightly snapshots. Specify "
        "`development` for snapshots off the `main` branch.",
    )
    parser.add_argument(
        "--swift-version",
        default=DEFAULT_SWIFT_VERSION,
        help="Version of Swift to supply in the bundle.",
    )
    parser.add_argument(
        "--host-arch",
        type=_cpu,
        default=None,
        help="CPU architecture of the host triple of the bundle. Defaults to the machine "
        f"this generator is running on. Available options: {_CPU_CHOICES}.",
    )
    parser.add_argument(
        "--target-arch",
        type=_cpu,
        default=None,
        help="CPU architecture of the target triple of the bundle. Same as the host "
        f"CPU architecture if unspecified. Available options: {_CPU_CHOICES}.",
    )
    parser.add_argument(
        "--source-root",
        type=Path,
        default=None,
        help="Directory holding the Artifacts/ cache and Bundles/ output "
        "(default: $SDKGEN_SOURCE_ROOT or the current directory).",
    )
    parser.add_argument(
        "--log-records",
        type=Path,
        default=None,
        help="Write the structured run records to this file as JSON lines.",
    )


def _cpu(text: str) -> CPU:
    try:
        return CPU.parse(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def normalize_argv(argv: Sequence[str]) -> tuple[list[str], bool]:
    """Insert the default subcommand when it was omitted.

    Returns the argument list and whether the default was applied.
    """
    args = list(argv)
    if args and args[0] in (MAKE_LINUX_SDK, "-h", "--help"):
        return args, False
    return [MAKE_LINUX_SDK, *args], True


def options_from_args(args: argparse.Namespace) -> tuple[RunOptions, LinuxSDKOptions]:
    run_options = RunOptions(
        bundle_version=args.bundle_version,
        sdk_name=args.sdk_name,
        incremental=args.incremental,
        verbose=args.verbose,
        swift_version=args.swift_version,
        swift_branch=args.swift_branch,
        host_arch=args.host_arch,
        target_arch=args.target_arch,
        source_root=args.source_root if args.source_root is not None else source_root_from_env(),
    )
    linux_options = LinuxSDKOptions(
        with_docker=args.with_docker,
        from_container_image=args.from_container_image,
        lld_version=args.lld_version,
        distribution_name=LinuxDistributionName.parse(args.linux_distribution_name),
        distribution_version=args.linux_distribution_version,
    )
    return run_options, linux_options


async def make_linux_sdk(
    args: argparse.Namespace,
    *,
    orchestrator: GeneratorOrchestrator,
) -> LifecycleState:
    run_options, linux_options = options_from_args(args)
    recipe = make_linux_recipe(run_options, linux_options, logger=orchestrator.logger)
    return await orchestrator.run(run_options, recipe)


def run(argv: Sequence[str] | None = None, *, orchestrator: GeneratorOrchestrator | None = None) -> int:
    raw_argv, defaulted = normalize_argv(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(raw_argv)
    if defaulted:
        print(
            "deprecated: Please explicitly specify the subcommand to run. "
            f"For example: $ sdkgen {MAKE_LINUX_SDK}"
        )
    configure_logging(log_level_from_env(verbose=args.verbose))
    orchestrator = orchestrator or GeneratorOrchestrator(logger=StructuredLogger())

    exit_code = 0
    stopwatch = Stopwatch()
    try:
        with stopwatch:
            state = asyncio.run(make_linux_sdk(args, orchestrator=orchestrator))
        if state is LifecycleState.GRACEFULLY_CANCELLED:
            print("Generation cancelled.", file=sys.stderr)
            exit_code = EXIT_CANCELLED
    except SdkGenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        exit_code = 1
    except KeyboardInterrupt:
        # Interrupted before the service group took over SIGINT.
        print("Generation cancelled.", file=sys.stderr)
        exit_code = EXIT_CANCELLED
    finally:
        if args.log_records is not None:
            orchestrator.logger.to_json_lines(args.log_records)
    print(elapsed_line(stopwatch.elapsed))
    return exit_code


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()

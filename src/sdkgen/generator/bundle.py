"""Bundle directory layout and the metadata files SwiftPM reads."""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Self

from sdkgen.recipes.base import SDKPlan
from sdkgen.triple import Triple


@dataclass(frozen=True, slots=True)
class BundlePaths:
    bundle_dir: Path
    artifact_dir: Path
    target_dir: Path
    sdk_dir: Path
    toolchain_dir: Path

    @classmethod
    def make(cls, *, bundles_dir: Path, artifact_id: str, target: Triple, sdk_dir_name: str) -> Self:
        bundle_dir = bundles_dir / f"{artifact_id}.artifactbundle"
        artifact_dir = bundle_dir / artifact_id
        target_dir = artifact_dir / str(target)
        return cls(
            bundle_dir=bundle_dir,
            artifact_dir=artifact_dir,
            target_dir=target_dir,
            sdk_dir=target_dir / sdk_dir_name,
            toolchain_dir=artifact_dir / "swift.xctoolchain" / "usr",
        )

    def clean(self) -> None:
        if self.bundle_dir.exists():
            shutil.rmtree(self.bundle_dir)

    def create(self) -> None:
        for path in (self.sdk_dir, self.toolchain_dir / "bin"):
            path.mkdir(parents=True, exist_ok=True)

    @property
    def swift_sdk_json(self) -> Path:
        return self.target_dir / "swift-sdk.json"

    @property
    def toolset_json(self) -> Path:
        return self.target_dir / "toolset.json"

    @property
    def info_json(self) -> Path:
        return self.bundle_dir / "info.json"


def write_swift_sdk_json(paths: BundlePaths, *, plan: SDKPlan, target: Triple) -> Path:
    sdk_root = paths.sdk_dir.relative_to(paths.target_dir)
    payload = {
        "schemaVersion": "4.0",
        "targetTriples": {
            str(target): {
                "sdkRootPath": str(sdk_root),
                "swiftResourcesPath": str(sdk_root / plan.swift_resources_path),
                "swiftStaticResourcesPath": str(sdk_root / plan.swift_static_resources_path),
                "toolsetPaths": [paths.toolset_json.name],
            }
        },
    }
    return _write_json(paths.swift_sdk_json, payload)


def write_toolset_json(paths: BundlePaths, *, plan: SDKPlan) -> Path:
    root = os.path.relpath(paths.toolchain_dir / "bin", paths.target_dir)
    payload: dict[str, Any] = {
        "schemaVersion": "1.0",
        "rootPath": root,
        "linker": {"path": plan.toolset.linker},
    }
    if plan.toolset.extra_swift_flags:
        payload["swiftCompiler"] = {"extraCLIOptions": list(plan.toolset.extra_swift_flags)}
    return _write_json(paths.toolset_json, payload)


def write_info_json(paths: BundlePaths, *, artifact_id: str, bundle_version: str, host: Triple) -> Path:
    payload = {
        "schemaVersion": "1.0",
        "artifacts": {
            artifact_id: {
                "type": "swiftSDK",
                "version": bundle_version,
                "variants": [
                    {
                        "path": str(paths.target_dir.relative_to(paths.bundle_dir)),
                        "supportedTriples": [str(host)],
                    }
                ],
            }
        },
    }
    return _write_json(paths.info_json, payload)


def _write_json(path: Path, payload: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    os.replace(temp_path, path)
    return path

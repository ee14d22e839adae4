"""Canonical record of the inputs a bundle was generated from."""

from __future__ import annotations

import dataclasses
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

import cbor2

from sdkgen.errors import GeneratorExecutionError
from sdkgen.generator.base import GeneratorConfig
from sdkgen.recipes.base import SDKPlan

RECORD_JSON = "generation.json"
RECORD_CBOR = "generation.cbor"


@dataclass(frozen=True, slots=True)
class GenerationRecord:
    bundle_version: str
    artifact_id: str
    host: str
    target: str
    family: str
    plan: dict[str, Any] = field(default_factory=dict)
    schema_version: int = 1

    @classmethod
    def from_inputs(cls, config: GeneratorConfig, *, family: str, plan: SDKPlan) -> Self:
        return cls(
            bundle_version=config.bundle_version,
            artifact_id=config.artifact_id,
            host=str(config.host_triple),
            target=str(config.target_triple),
            family=family,
            plan=_jsonable(dataclasses.asdict(plan)),
        )

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.to_cbor()).hexdigest()

    def to_json(self, path: str | Path | None = None) -> str:
        payload = {**self._payload(), "digest": self.digest}
        encoded = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def write(self, bundle_dir: Path) -> None:
        self.to_cbor(bundle_dir / RECORD_CBOR)
        self.to_json(bundle_dir / RECORD_JSON)

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "bundle_version": self.bundle_version,
            "artifact_id": self.artifact_id,
            "host": self.host,
            "target": self.target,
            "family": self.family,
            "plan": self.plan,
        }


def read_record_digest(bundle_dir: Path) -> str | None:
    """Digest of the record stored in ``bundle_dir``, or None when absent."""
    path = bundle_dir / RECORD_CBOR
    if not path.exists():
        return None
    try:
        payload = cbor2.loads(path.read_bytes())
    except cbor2.CBORDecodeError as exc:
        raise GeneratorExecutionError(
            "Generation record is not valid CBOR.",
            hint="Run the generator without --incremental to rebuild the bundle.",
            context={"operation": "read_record", "path": str(path)},
        ) from exc
    return hashlib.sha256(cbor2.dumps(payload, canonical=True)).hexdigest()


def remove_record(bundle_dir: Path) -> None:
    """Forget the stored record so a partly rewritten bundle never looks current."""
    for name in (RECORD_CBOR, RECORD_JSON):
        (bundle_dir / name).unlink(missing_ok=True)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value

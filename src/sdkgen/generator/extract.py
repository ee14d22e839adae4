"""Selective archive extraction into the bundle tree."""

from __future__ import annotations

import tarfile
from pathlib import Path, PurePosixPath

from sdkgen.errors import GeneratorExecutionError
from sdkgen.lifecycle import CancellationToken


def extract_archive(
    archive: Path,
    destination: Path,
    *,
    include: tuple[str, ...] = (),
    strip_components: int = 0,
    cancellation: CancellationToken,
) -> list[str]:
    """Extract members of ``archive`` under ``include`` prefixes; return their paths.

    Member names are taken after dropping ``strip_components`` leading path
    components. An empty ``include`` extracts everything.
    """
    destination.mkdir(parents=True, exist_ok=True)
    extracted: list[str] = []
    try:
        with tarfile.open(archive, mode="r:*") as tar:
            for member in tar:
                relative = _strip(member.name, strip_components)
                if relative is None or not _included(relative, include):
                    continue
                cancellation.raise_if_cancelled(f"extract:{archive.name}")
                member.name = relative
                tar.extract(member, path=destination, filter="data")
                extracted.append(relative)
    except tarfile.TarError as exc:
        raise GeneratorExecutionError(
            "Archive extraction failed.",
            hint="Delete the cached archive and run the generator again.",
            context={"operation": "extract", "archive": str(archive), "reason": str(exc)},
        ) from exc
    if include and not extracted:
        raise GeneratorExecutionError(
            "Archive did not contain any of the expected paths.",
            context={
                "operation": "extract",
                "archive": str(archive),
                "include": ", ".join(include),
            },
        )
    return extracted


def _strip(name: str, count: int) -> str | None:
    parts = PurePosixPath(name).parts
    if parts and parts[0] in ("/", "."):
        parts = parts[1:]
    if len(parts) <= count:
        return None
    return str(PurePosixPath(*parts[count:]))


def _included(relative: str, include: tuple[str, ...]) -> bool:
    if not include:
        return True
    return any(relative == prefix or relative.startswith(prefix + "/") for prefix in include)

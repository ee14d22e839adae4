"""Cancellable archive download into the artifact cache."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import urlopen

from sdkgen.errors import GeneratorExecutionError
from sdkgen.lifecycle import CancellationToken

CHUNK_SIZE = 1 << 20


def cached_artifact_path(url: str, cache_dir: str | Path) -> Path:
    """Return the cache location for ``url``; stable across runs."""
    basename = Path(urlparse(url).path).name or "download"
    prefix = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return Path(cache_dir) / f"{prefix}-{basename}"


def fetch(
    url: str,
    *,
    cache_dir: str | Path,
    cancellation: CancellationToken,
) -> tuple[Path, bool]:
    """Download ``url`` unless already cached; return the path and a cache-hit flag."""
    artifact_path = cached_artifact_path(url, cache_dir)
    if artifact_path.exists():
        return artifact_path, True
    artifact_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = artifact_path.with_name(artifact_path.name + ".tmp")
    try:
        try:
            with urlopen(url) as response, temp_path.open("wb") as handle:  # noqa: S310 - URLs come from recipes
                while True:
                    cancellation.raise_if_cancelled(f"fetch:{artifact_path.name}")
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    handle.write(chunk)
        except URLError as exc:
            raise GeneratorExecutionError(
                "Download failed.",
                hint="Check network access and that the requested versions exist.",
                context={"operation": "fetch", "url": url, "reason": str(exc.reason)},
            ) from exc
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    # Only complete downloads reach their final name.
    os.replace(temp_path, artifact_path)
    return artifact_path, False

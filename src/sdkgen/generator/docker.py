"""Copy target sysroot files out of a container image with the docker CLI."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from sdkgen.errors import GeneratorExecutionError
from sdkgen.lifecycle import CancellationToken
from sdkgen.observability import StructuredLogger
from sdkgen.recipes.base import ContainerCopySpec


@dataclass(slots=True)
class DockerCopier:
    tool: str = "docker"
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def copy(
        self,
        spec: ContainerCopySpec,
        destination: Path,
        *,
        cancellation: CancellationToken,
    ) -> None:
        self._ensure_available()
        cancellation.raise_if_cancelled("container:create")
        container_id = self._run(
            [self.tool, "create", f"--platform={spec.platform}", spec.image],
            operation="create",
            cancellation=cancellation,
        ).strip()
        try:
            for path in spec.paths:
                cancellation.raise_if_cancelled(f"container:copy:{path}")
                target = destination / path.lstrip("/")
                _clear(target)
                target.parent.mkdir(parents=True, exist_ok=True)
                self._run(
                    [self.tool, "cp", f"{container_id}:{path}", str(target)],
                    operation="cp",
                    cancellation=cancellation,
                )
        finally:
            self._remove(container_id)

    def _run(self, cmd: list[str], *, operation: str, cancellation: CancellationToken) -> str:
        # Own session: a terminal Ctrl-C reaches the generator, not the child.
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            start_new_session=True,
        )
        if result.returncode != 0:
            cancellation.raise_if_cancelled(f"container:{operation}")
            raise GeneratorExecutionError(
                f"`{self.tool} {operation}` failed.",
                hint="Check that the container image exists for the target platform.",
                context={
                    "operation": f"docker_{operation}",
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )
        return result.stdout

    def _remove(self, container_id: str) -> None:
        result = subprocess.run(
            [self.tool, "rm", "-f", container_id],
            capture_output=True,
            text=True,
            check=False,
            start_new_session=True,
        )
        if result.returncode != 0:
            self.logger.log(
                operation="container_cleanup",
                phase="generate",
                level="warning",
                message=f"Could not remove container {container_id}.",
                extra={"stderr": result.stderr.strip() if result.stderr else ""},
            )

    def _ensure_available(self) -> None:
        if shutil.which(self.tool) is None:
            raise GeneratorExecutionError(
                f"--with-docker requires `{self.tool}` in PATH.",
                hint="Install Docker or generate the SDK without --with-docker.",
                context={"operation": "prepare"},
            )


def _clear(target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)

"""Structured logging and observability helpers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure process-wide console logging for the generator."""
    logging.basicConfig(
        level=level,
        format=DEFAULT_LOG_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
        force=True,
    )
    logger = logging.getLogger("sdkgen")
    logger.setLevel(level)
    return logger


@dataclass(slots=True)
class StructuredLogger:
    """Keeps structured run records and mirrors them to the ``sdkgen`` logger."""

    name: str = "sdkgen"
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        phase: str | None,
        message: str,
        recipe: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "phase": phase,
            "recipe": recipe,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

        suffix = ""
        if extra:
            suffix = " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
        logging.getLogger(self.name).log(
            _LEVELS.get(level, logging.INFO),
            "[%s] %s%s",
            operation,
            message,
            suffix,
        )

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True, default=str) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path

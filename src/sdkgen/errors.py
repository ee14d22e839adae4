"""Typed generator error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the CLI and library surfaces."""

    HOST_DETECTION = "E_HOST_DETECTION"
    DISTRIBUTION_VALIDATION = "E_DISTRIBUTION_VALIDATION"
    RECIPE_CONSTRUCTION = "E_RECIPE_CONSTRUCTION"
    GENERATOR_EXECUTION = "E_GENERATOR_EXECUTION"


class SdkGenError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class HostDetectionError(SdkGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.HOST_DETECTION, hint=hint, context=context)


class DistributionValidationError(SdkGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message, code=ErrorCode.DISTRIBUTION_VALIDATION, hint=hint, context=context
        )


class RecipeConstructionError(SdkGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.RECIPE_CONSTRUCTION, hint=hint, context=context)


class GeneratorExecutionError(SdkGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.GENERATOR_EXECUTION, hint=hint, context=context)


class GenerationCancelled(Exception):
    """Raised at a cancellation checkpoint once shutdown has been requested.

    Not an ``SdkGenError``: it marks a graceful shutdown, not a failure.
    """

    def __init__(self, checkpoint: str) -> None:
        super().__init__(f"Generation cancelled at checkpoint `{checkpoint}`.")
        self.checkpoint = checkpoint


__all__ = [
    "DistributionValidationError",
    "ErrorCode",
    "GenerationCancelled",
    "GeneratorExecutionError",
    "HostDetectionError",
    "RecipeConstructionError",
    "SdkGenError",
]

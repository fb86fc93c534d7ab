"""Typed pipeline error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across pipeline stages."""

    VALIDATION = "E_VALIDATION"
    INTEGRITY = "E_INTEGRITY"
    TRANSPORT = "E_TRANSPORT"
    ARCHIVE = "E_ARCHIVE"
    FILESYSTEM = "E_FILESYSTEM"
    BUILDER = "E_BUILDER"
    BINDING = "E_BINDING"
    POLICY = "E_POLICY"


class ProvisionError(Exception):
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

    @property
    def stage(self) -> str | None:
        return self.context.get("stage")

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


class _CodedError(ProvisionError):
    error_code: ErrorCode

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=self.error_code, hint=hint, context=context)


class ValidationError(_CodedError):
    error_code = ErrorCode.VALIDATION


class IntegrityError(_CodedError):
    """Downloaded or cached bytes do not hash to the pinned digest."""

    error_code = ErrorCode.INTEGRITY


class TransportError(_CodedError):
    error_code = ErrorCode.TRANSPORT


class ArchiveError(_CodedError):
    error_code = ErrorCode.ARCHIVE


class FilesystemError(_CodedError):
    error_code = ErrorCode.FILESYSTEM


class BuilderError(_CodedError):
    error_code = ErrorCode.BUILDER


class BindingError(_CodedError):
    error_code = ErrorCode.BINDING


class PolicyError(_CodedError):
    error_code = ErrorCode.POLICY


__all__ = [
    "ArchiveError",
    "BindingError",
    "BuilderError",
    "ErrorCode",
    "FilesystemError",
    "IntegrityError",
    "PolicyError",
    "ProvisionError",
    "TransportError",
    "ValidationError",
]

"""Public package entrypoint for the vendored native library pipeline."""

from .config import DEFAULT_SOURCE, PinnedSource, ProvisionConfig
from .directives import DirectiveEmitter
from .errors import (
    ArchiveError,
    BindingError,
    BuilderError,
    ErrorCode,
    FilesystemError,
    IntegrityError,
    PolicyError,
    ProvisionError,
    TransportError,
    ValidationError,
)
from .observability import StructuredLogger
from .pipeline import ProvisionPipeline, ProvisionResult, provision
from .policy import Policy

__all__ = [
    "ArchiveError",
    "BindingError",
    "BuilderError",
    "DEFAULT_SOURCE",
    "DirectiveEmitter",
    "ErrorCode",
    "FilesystemError",
    "IntegrityError",
    "PinnedSource",
    "Policy",
    "PolicyError",
    "ProvisionConfig",
    "ProvisionError",
    "ProvisionPipeline",
    "ProvisionResult",
    "StructuredLogger",
    "TransportError",
    "ValidationError",
    "provision",
]

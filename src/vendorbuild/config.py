"""Pinned source and pipeline configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

from vendorbuild.builders.base import BuildArtifact
from vendorbuild.errors import ValidationError
from vendorbuild.hashing import DEFAULT_ALGORITHM, digest_size

SOURCE_URL = "https://gitlab.xiph.org/xiph/opus/-/archive/v1.3.1/opus-v1.3.1.zip"
SOURCE_DIGEST = "c3060a34a1981d4b9c03fb1e505675c89b9e8b90926504f0d2f511ee725c3d36"
BINDINGS_FILENAME = "opus_bindings.rs"
SOURCE_DIR_NAME = "opus_sources"
HEADER = "opus/opus.h"
LIBRARY_NAME = "opus"


@dataclass(frozen=True, slots=True)
class PinnedSource:
    """A trusted upstream archive: where to get it and what it must hash to."""

    url: str
    digest: bytes
    algorithm: str = DEFAULT_ALGORITHM

    def __post_init__(self) -> None:
        try:
            expected_size = digest_size(self.algorithm)
        except ValueError as exc:
            raise ValidationError(
                f"Unsupported digest algorithm: {self.algorithm}",
                context={"stage": "config", "algorithm": self.algorithm},
            ) from exc
        if len(self.digest) != expected_size:
            raise ValidationError(
                "Pinned digest length does not match the digest algorithm.",
                hint=f"A {self.algorithm} digest is {expected_size} bytes ({expected_size * 2} hex chars).",
                context={
                    "stage": "config",
                    "algorithm": self.algorithm,
                    "expected_bytes": str(expected_size),
                    "actual_bytes": str(len(self.digest)),
                },
            )
        if not self.archive_name:
            raise ValidationError(
                "Source URL has no final path segment to name the cached archive.",
                context={"stage": "config", "url": self.url},
            )

    @classmethod
    def from_hex(cls, url: str, hex_digest: str, algorithm: str = DEFAULT_ALGORITHM) -> PinnedSource:
        try:
            digest = bytes.fromhex(hex_digest)
        except ValueError as exc:
            raise ValidationError(
                "Pinned digest is not valid hex.",
                context={"stage": "config", "digest": hex_digest},
            ) from exc
        return cls(url=url, digest=digest, algorithm=algorithm)

    @property
    def hex_digest(self) -> str:
        return self.digest.hex()

    @property
    def archive_name(self) -> str:
        return PurePosixPath(urlsplit(self.url).path).name


DEFAULT_SOURCE = PinnedSource.from_hex(SOURCE_URL, SOURCE_DIGEST)


@dataclass(frozen=True, slots=True)
class ProvisionConfig:
    """Everything one pipeline run needs, resolved once up front."""

    out_dir: Path
    source: PinnedSource = field(default=DEFAULT_SOURCE)
    bindings_filename: str = BINDINGS_FILENAME
    source_dir_name: str = SOURCE_DIR_NAME
    header: str = HEADER
    library: str = LIBRARY_NAME

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        source: PinnedSource = DEFAULT_SOURCE,
    ) -> ProvisionConfig:
        env = os.environ if environ is None else environ
        out_dir = env.get("OUT_DIR", "")
        if not out_dir:
            raise ValidationError(
                "OUT_DIR is not set.",
                hint="Run the pipeline from a build script that provides OUT_DIR.",
                context={"stage": "config"},
            )
        return cls(out_dir=Path(out_dir), source=source)

    @property
    def archive_path(self) -> Path:
        return self.out_dir / self.source.archive_name

    @property
    def source_dir(self) -> Path:
        return self.out_dir / self.source_dir_name

    @property
    def bindings_path(self) -> Path:
        return self.out_dir / self.bindings_filename

    def header_path(self, artifact: BuildArtifact) -> Path:
        return artifact.include_dir / self.header

"""Typed interfaces for native library builders."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

LIBRARY_SUBDIR = "lib"
INCLUDE_SUBDIR = "include"


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    builder: str
    root: Path

    @property
    def lib_dir(self) -> Path:
        return self.root / LIBRARY_SUBDIR

    @property
    def include_dir(self) -> Path:
        return self.root / INCLUDE_SUBDIR


class NativeBuilder(Protocol):
    name: str

    def build(self, source_dir: Path) -> Path:
        """Build and install the source tree; return the install root."""

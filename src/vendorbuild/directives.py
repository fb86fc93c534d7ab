"""Build-system directives: rerun triggers and native link instructions.

Directives use the ``cargo:`` line protocol understood by the enclosing
build script runner. Every emitted line is also kept on the emitter so
callers and tests can inspect what was announced.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from vendorbuild.builders.base import LIBRARY_SUBDIR


@dataclass(slots=True)
class DirectiveEmitter:
    stream: TextIO | None = None
    directives: list[str] = field(default_factory=list)

    def rerun_if_changed(self, path: str | Path) -> None:
        self._write(f"cargo:rerun-if-changed={path}")

    def link_search(self, directory: str | Path, *, kind: str = "native") -> None:
        self._write(f"cargo:rustc-link-search={kind}={directory}")

    def link_lib(self, name: str, *, kind: str = "static") -> None:
        self._write(f"cargo:rustc-link-lib={kind}={name}")

    def emit(self, artifact_path: str | Path, library: str = "opus") -> None:
        """Announce the library directory under ``artifact_path`` and the static library to link."""
        self.link_search(Path(artifact_path) / LIBRARY_SUBDIR)
        self.link_lib(library)

    def watched_paths(self) -> list[str]:
        prefix = "cargo:rerun-if-changed="
        return [line[len(prefix) :] for line in self.directives if line.startswith(prefix)]

    def _write(self, line: str) -> None:
        self.directives.append(line)
        stream = self.stream if self.stream is not None else sys.stdout
        print(line, file=stream)

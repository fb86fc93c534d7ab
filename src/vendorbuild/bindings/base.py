"""Typed interface for header-to-binding generators."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class BindingGenerator(Protocol):
    name: str

    def generate(self, header_path: Path) -> str:
        """Return generated interface source for ``header_path``."""

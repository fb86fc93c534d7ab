"""Shared test fixtures."""

from __future__ import annotations

import hashlib
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from vendorbuild import PinnedSource, ProvisionConfig


@dataclass(slots=True)
class FakeBuilder:
    """Installs a header and an empty static library, like a CMake install would."""

    out_dir: Path
    name: str = "fake"
    calls: list[Path] = field(default_factory=list)

    def build(self, source_dir: Path) -> Path:
        self.calls.append(source_dir)
        (self.out_dir / "lib").mkdir(parents=True, exist_ok=True)
        (self.out_dir / "lib" / "libopus.a").write_bytes(b"!<arch>\n")
        header = self.out_dir / "include" / "opus" / "opus.h"
        header.parent.mkdir(parents=True, exist_ok=True)
        header.write_text("int opus_get_version(void);\n", encoding="utf-8")
        return self.out_dir


@dataclass(slots=True)
class FakeBindingGenerator:
    name: str = "fake-bindgen"
    calls: list[Path] = field(default_factory=list)

    def generate(self, header_path: Path) -> str:
        self.calls.append(header_path)
        return f"// generated from {header_path.name}\n"


def make_zip(path: Path, entries: list[tuple[str, bytes | None]]) -> Path:
    """Write a zip with ``(name, content)`` entries; ``None`` content marks a directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries:
            if content is None:
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, content)
    return path


def pin(path: Path) -> PinnedSource:
    return PinnedSource(url=path.as_uri(), digest=hashlib.sha256(path.read_bytes()).digest())


@pytest.fixture
def hello_archive(tmp_path: Path) -> Path:
    return make_zip(
        tmp_path / "upstream" / "hello-v1.0.zip",
        [("hello-v1.0/", None), ("hello-v1.0/x.txt", b"hello")],
    )


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def hello_config(hello_archive: Path, out_dir: Path) -> ProvisionConfig:
    return ProvisionConfig(out_dir=out_dir, source=pin(hello_archive))


@pytest.fixture
def fake_builder(out_dir: Path) -> FakeBuilder:
    return FakeBuilder(out_dir=out_dir)


@pytest.fixture
def fake_generator() -> FakeBindingGenerator:
    return FakeBindingGenerator()

import subprocess
from pathlib import Path
from typing import Any

import pytest

from conftest import FakeBuilder
from vendorbuild import StructuredLogger
from vendorbuild.builders import BuildArtifact, CMakeBuilder, build_library
from vendorbuild.errors import BuilderError, ValidationError


def _completed(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


def test_cmake_builder_configures_builds_and_installs(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls: list[list[str]] = []

    def fake_run(command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        calls.append(command)
        return _completed()

    monkeypatch.setattr("vendorbuild.builders.cmake.shutil.which", lambda _: "/usr/bin/cmake")
    monkeypatch.setattr("vendorbuild.builders.cmake.subprocess.run", fake_run)
    out_dir = tmp_path / "out"
    builder = CMakeBuilder(out_dir=out_dir, defines={"OPUS_BUILD_TESTING": "OFF"}, jobs=4)

    root = builder.build(tmp_path / "opus_sources")

    assert root == out_dir
    assert (out_dir / "build").is_dir()
    configure, build, install = calls
    assert configure[:5] == ["/usr/bin/cmake", "-S", str(tmp_path / "opus_sources"), "-B", str(out_dir / "build")]
    assert f"-DCMAKE_INSTALL_PREFIX={out_dir}" in configure
    assert "-DCMAKE_INSTALL_LIBDIR=lib" in configure
    assert "-DBUILD_SHARED_LIBS=OFF" in configure
    assert "-DOPUS_BUILD_TESTING=OFF" in configure
    assert build == ["/usr/bin/cmake", "--build", str(out_dir / "build"), "--config", "Release", "--parallel", "4"]
    assert install[:3] == ["/usr/bin/cmake", "--install", str(out_dir / "build")]


def test_cmake_builder_requires_cmake(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vendorbuild.builders.cmake.shutil.which", lambda _: None)

    with pytest.raises(BuilderError, match="not found in PATH"):
        CMakeBuilder(out_dir=tmp_path).build(tmp_path / "src")


def test_cmake_builder_surfaces_step_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vendorbuild.builders.cmake.shutil.which", lambda _: "/usr/bin/cmake")
    monkeypatch.setattr(
        "vendorbuild.builders.cmake.subprocess.run",
        lambda command, **kwargs: _completed(returncode=1, stderr="CMake Error: no CMakeLists.txt"),
    )

    with pytest.raises(BuilderError) as excinfo:
        CMakeBuilder(out_dir=tmp_path).build(tmp_path / "src")

    assert excinfo.value.context["returncode"] == "1"
    assert "no CMakeLists.txt" in excinfo.value.context["stderr"]
    assert excinfo.value.stage == "build"


def test_build_library_returns_reported_artifact(tmp_path: Path) -> None:
    builder = FakeBuilder(out_dir=tmp_path / "out")
    logger = StructuredLogger()

    artifact = build_library(builder, tmp_path / "src", logger=logger)

    assert artifact == BuildArtifact(builder="fake", root=tmp_path / "out")
    assert artifact.lib_dir == tmp_path / "out" / "lib"
    assert artifact.include_dir == tmp_path / "out" / "include"
    assert builder.calls == [tmp_path / "src"]
    assert [record["stage"] for record in logger.records] == ["build", "build"]


def test_build_library_wraps_unexpected_builder_failure(tmp_path: Path) -> None:
    class Exploding:
        name = "exploding"

        def build(self, source_dir: Path) -> Path:
            raise RuntimeError("compiler crashed")

    with pytest.raises(BuilderError) as excinfo:
        build_library(Exploding(), tmp_path)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert excinfo.value.context["builder"] == "exploding"
    assert "compiler crashed" in excinfo.value.context["error"]


def test_build_library_passes_builder_errors_through(tmp_path: Path) -> None:
    original = BuilderError("cmake failed", context={"stage": "build"})

    class Failing:
        name = "failing"

        def build(self, source_dir: Path) -> Path:
            raise original

    with pytest.raises(BuilderError) as excinfo:
        build_library(Failing(), tmp_path)

    assert excinfo.value is original


def test_build_library_tags_foreign_pipeline_errors_with_build_stage(tmp_path: Path) -> None:
    class Misconfigured:
        name = "misconfigured"

        def build(self, source_dir: Path) -> Path:
            raise ValidationError("bad option", context={"stage": "config"})

    with pytest.raises(BuilderError) as excinfo:
        build_library(Misconfigured(), tmp_path)

    assert excinfo.value.stage == "build"
    assert isinstance(excinfo.value.__cause__, ValidationError)

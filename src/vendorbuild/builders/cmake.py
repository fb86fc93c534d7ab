"""CMake configure/build/install driver.

Mirrors the layout produced by the ``cmake`` crate: the build tree lives in
``<out_dir>/build`` and the install prefix is ``<out_dir>`` itself, so the
static library ends up in ``<out_dir>/lib`` and headers in
``<out_dir>/include``.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from vendorbuild.builders.base import LIBRARY_SUBDIR
from vendorbuild.errors import BuilderError


@dataclass(slots=True)
class CMakeBuilder:
    out_dir: Path
    name: str = "cmake"
    cmake: str = "cmake"
    profile: str = "Release"
    defines: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)
    jobs: int | None = None

    def build(self, source_dir: Path) -> Path:
        cmake_bin = shutil.which(self.cmake)
        if cmake_bin is None:
            raise BuilderError(
                f"`{self.cmake}` was not found in PATH.",
                hint="Install CMake to build the vendored library.",
                context={"stage": "build", "builder": self.name},
            )

        install_prefix = Path(self.out_dir)
        build_dir = install_prefix / "build"
        build_dir.mkdir(parents=True, exist_ok=True)

        for command in self.commands(cmake_bin, Path(source_dir), build_dir, install_prefix):
            self._run(command, cwd=build_dir)
        return install_prefix

    def commands(
        self,
        cmake_bin: str,
        source_dir: Path,
        build_dir: Path,
        install_prefix: Path,
    ) -> list[list[str]]:
        defines = {
            "CMAKE_INSTALL_PREFIX": str(install_prefix),
            "CMAKE_INSTALL_LIBDIR": LIBRARY_SUBDIR,
            "CMAKE_BUILD_TYPE": self.profile,
            "BUILD_SHARED_LIBS": "OFF",
            **self.defines,
        }
        configure = [cmake_bin, "-S", str(source_dir), "-B", str(build_dir)]
        configure.extend(f"-D{key}={value}" for key, value in defines.items())

        build = [cmake_bin, "--build", str(build_dir), "--config", self.profile]
        if self.jobs is not None:
            build.extend(["--parallel", str(self.jobs)])

        install = [cmake_bin, "--install", str(build_dir), "--config", self.profile]
        return [configure, build, install]

    def _run(self, command: list[str], *, cwd: Path) -> None:
        result = subprocess.run(
            command,
            cwd=str(cwd),
            env={**os.environ, **self.env},
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise BuilderError(
                "CMake step failed.",
                hint="Check the CMake output for details.",
                context={
                    "stage": "build",
                    "builder": self.name,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                    "command": " ".join(command),
                },
            )

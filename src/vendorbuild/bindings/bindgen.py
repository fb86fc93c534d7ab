"""``bindgen`` command-line generator."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from vendorbuild.errors import BindingError


@dataclass(slots=True)
class BindgenGenerator:
    name: str = "bindgen"
    tool: str = "bindgen"
    args: tuple[str, ...] = ()
    clang_args: tuple[str, ...] = ()

    def command(self, tool_path: str, header_path: Path) -> list[str]:
        command = [tool_path, str(header_path), *self.args]
        if self.clang_args:
            command.extend(["--", *self.clang_args])
        return command

    def generate(self, header_path: Path) -> str:
        tool_path = shutil.which(self.tool)
        if tool_path is None:
            raise BindingError(
                f"`{self.tool}` was not found in PATH.",
                hint="Install it with `cargo install bindgen-cli`.",
                context={"stage": "bindings", "generator": self.name},
            )
        command = self.command(tool_path, header_path)
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise BindingError(
                "bindgen failed.",
                hint="Check that the header and its includes are present.",
                context={
                    "stage": "bindings",
                    "generator": self.name,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                    "command": " ".join(command),
                },
            )
        return result.stdout

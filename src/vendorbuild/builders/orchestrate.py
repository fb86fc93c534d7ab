"""Run a native builder over an unpacked source tree."""

from __future__ import annotations

from pathlib import Path

from vendorbuild.builders.base import BuildArtifact, NativeBuilder
from vendorbuild.errors import BuilderError
from vendorbuild.observability import StructuredLogger


def build_library(
    builder: NativeBuilder,
    source_dir: str | Path,
    *,
    logger: StructuredLogger | None = None,
) -> BuildArtifact:
    source_dir = Path(source_dir)
    builder_name = getattr(builder, "name", type(builder).__name__)
    if logger is not None:
        logger.log(operation="build", stage="build", message=f"building {source_dir} with {builder_name}")

    try:
        root = builder.build(source_dir)
    except BuilderError:
        raise
    except Exception as exc:
        raise BuilderError(
            f"Native builder `{builder_name}` failed.",
            context={
                "stage": "build",
                "builder": builder_name,
                "source_dir": str(source_dir),
                "error": f"{type(exc).__name__}: {exc}",
            },
        ) from exc

    artifact = BuildArtifact(builder=builder_name, root=Path(root))
    if logger is not None:
        logger.log(
            operation="build",
            stage="build",
            message="build complete",
            extra={"artifact_root": str(artifact.root)},
        )
    return artifact

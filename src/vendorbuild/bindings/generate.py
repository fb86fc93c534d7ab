"""Regenerate the binding source file from the library's entry header."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path

from vendorbuild.bindings.base import BindingGenerator
from vendorbuild.errors import BindingError, FilesystemError
from vendorbuild.observability import StructuredLogger


def generate_bindings(
    generator: BindingGenerator,
    header_path: str | Path,
    output_path: str | Path,
    *,
    logger: StructuredLogger | None = None,
) -> Path:
    """Overwrite ``output_path`` with bindings for ``header_path``.

    The output is replaced atomically, so a failed generation leaves the
    previous file (or no file) rather than a truncated one.
    """
    header_path = Path(header_path)
    output_path = Path(output_path)
    generator_name = getattr(generator, "name", type(generator).__name__)

    if not header_path.is_file():
        raise BindingError(
            "Entry header does not exist.",
            hint="The native build should install headers under <artifact>/include.",
            context={"stage": "bindings", "header": str(header_path)},
        )

    if logger is not None:
        logger.log(
            operation="generate",
            stage="bindings",
            message=f"generating bindings for {header_path}",
            extra={"generator": generator_name},
        )

    try:
        source = generator.generate(header_path)
    except BindingError:
        raise
    except Exception as exc:
        raise BindingError(
            f"Binding generator `{generator_name}` failed.",
            context={
                "stage": "bindings",
                "generator": generator_name,
                "header": str(header_path),
                "error": f"{type(exc).__name__}: {exc}",
            },
        ) from exc

    if not isinstance(source, str):
        raise BindingError(
            f"Binding generator `{generator_name}` returned {type(source).__name__}, not text.",
            context={"stage": "bindings", "generator": generator_name, "header": str(header_path)},
        )

    temp_path = output_path.with_name(output_path.name + ".tmp")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_text(source, encoding="utf-8")
        os.replace(temp_path, output_path)
    except OSError as exc:
        raise FilesystemError(
            "Cannot write generated bindings.",
            context={"stage": "bindings", "path": str(output_path), "error": str(exc)},
        ) from exc
    finally:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)

    if logger is not None:
        logger.log(operation="generate", stage="bindings", message=f"wrote {output_path}")
    return output_path

"""Incremental archive extraction with content-hash deduplication.

The first archive entry names a synthetic root folder (``opus-v1.3.1/`` in
upstream release archives). That folder is stripped from every destination
path. Files already on disk are compared by digest against the archive copy:
identical files are left alone, different ones are deleted and rewritten.
"""

from __future__ import annotations

import shutil
import tarfile
import zipfile
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import IO, Any, Protocol

from vendorbuild.directives import DirectiveEmitter
from vendorbuild.errors import ArchiveError, FilesystemError
from vendorbuild.hashing import CHUNK_SIZE, digest_file, digest_stream
from vendorbuild.observability import StructuredLogger

STAGE = "unpack"

_ARCHIVE_ERRORS = (zipfile.BadZipFile, tarfile.TarError, zlib.error, EOFError, NotImplementedError)


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    is_dir: bool
    handle: Any = field(default=None, compare=False, repr=False)


class ArchiveReader(Protocol):
    def entries(self) -> list[ArchiveEntry]:
        """Return entries in archive order."""

    def open(self, entry: ArchiveEntry) -> IO[bytes]:
        """Open a file entry for streaming reads."""


class ZipArchiveReader:
    def __init__(self, archive: zipfile.ZipFile) -> None:
        self._archive = archive

    def entries(self) -> list[ArchiveEntry]:
        return [
            ArchiveEntry(name=info.filename, is_dir=info.is_dir(), handle=info)
            for info in self._archive.infolist()
        ]

    def open(self, entry: ArchiveEntry) -> IO[bytes]:
        return self._archive.open(entry.handle)


class TarArchiveReader:
    def __init__(self, archive: tarfile.TarFile) -> None:
        self._archive = archive

    def entries(self) -> list[ArchiveEntry]:
        entries: list[ArchiveEntry] = []
        for member in self._archive.getmembers():
            if not (member.isdir() or member.isfile()):
                raise ArchiveError(
                    "Archive contains an unsupported entry type.",
                    hint="Only regular files and directories can be unpacked.",
                    context={"stage": STAGE, "entry": member.name},
                )
            name = member.name + "/" if member.isdir() else member.name
            entries.append(ArchiveEntry(name=name, is_dir=member.isdir(), handle=member))
        return entries

    def open(self, entry: ArchiveEntry) -> IO[bytes]:
        stream = self._archive.extractfile(entry.handle)
        if stream is None:
            raise ArchiveError(
                "Archive entry has no readable content.",
                context={"stage": STAGE, "entry": entry.name},
            )
        return stream


@dataclass(slots=True)
class UnpackResult:
    root: str
    destination: Path
    written: list[Path] = field(default_factory=list)
    replaced: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)

    @property
    def rewrites(self) -> int:
        """Files whose bytes were written during this run."""
        return len(self.written) + len(self.replaced)


@contextmanager
def open_archive(path: str | Path) -> Iterator[ArchiveReader]:
    """Open a zip or tar archive as an ``ArchiveReader``."""
    archive_path = Path(path)
    if not archive_path.is_file():
        raise FilesystemError(
            "Archive does not exist.",
            context={"stage": STAGE, "path": str(archive_path)},
        )
    try:
        if zipfile.is_zipfile(archive_path):
            with zipfile.ZipFile(archive_path) as archive:
                yield ZipArchiveReader(archive)
            return
        if tarfile.is_tarfile(archive_path):
            with tarfile.open(archive_path, "r:*") as tar:
                yield TarArchiveReader(tar)
            return
    except _ARCHIVE_ERRORS as exc:
        raise _archive_error("Archive is corrupt or truncated.", archive_path, exc) from exc
    raise ArchiveError(
        "File is not a zip or tar archive.",
        context={"stage": STAGE, "path": str(archive_path)},
    )


def unpack(
    archive_path: str | Path,
    destination_dir: str | Path,
    *,
    emitter: DirectiveEmitter | None = None,
    logger: StructuredLogger | None = None,
) -> UnpackResult:
    """Bring ``destination_dir`` in line with the archive, writing only what differs."""
    archive_path = Path(archive_path)
    destination = Path(destination_dir)
    _ensure_dir(destination)

    with open_archive(archive_path) as reader:
        named = [(entry, _entry_parts(entry.name, archive_path=archive_path)) for entry in reader.entries()]
        named = [(entry, parts) for entry, parts in named if parts]
        if not named:
            raise ArchiveError(
                "Archive is empty.",
                context={"stage": STAGE, "path": str(archive_path)},
            )
        root = named[0][1][0]
        result = UnpackResult(root=root, destination=destination)
        if logger is not None:
            logger.log(
                operation="unpack",
                stage=STAGE,
                message=f"unpacking {archive_path} into {destination}",
                extra={"root": root, "entries": len(named)},
            )

        for entry, parts in named:
            if parts[0] != root:
                raise ArchiveError(
                    "Archive entry lies outside the archive root.",
                    context={"stage": STAGE, "entry": entry.name, "root": root},
                )
            relative = parts[1:]
            if not relative:
                continue
            target = destination.joinpath(*relative)
            _ensure_dir(target.parent)

            if entry.is_dir:
                _ensure_dir(target)
                continue

            _sync_file(reader, entry, target, archive_path=archive_path, result=result)
            if emitter is not None:
                emitter.rerun_if_changed(target)

    if logger is not None:
        logger.log(
            operation="unpack",
            stage=STAGE,
            message="unpack complete",
            extra={
                "written": len(result.written),
                "replaced": len(result.replaced),
                "unchanged": len(result.unchanged),
            },
        )
    return result


def _entry_parts(name: str, *, archive_path: Path) -> tuple[str, ...]:
    """Split an entry name into path parts, dropping ``.`` segments such as a leading ``./``."""
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts:
        raise ArchiveError(
            "Archive entry escapes the destination directory.",
            context={"stage": STAGE, "entry": name, "path": str(archive_path)},
        )
    return tuple(part for part in path.parts if part != ".")


def _sync_file(
    reader: ArchiveReader,
    entry: ArchiveEntry,
    target: Path,
    *,
    archive_path: Path,
    result: UnpackResult,
) -> None:
    existed = target.exists()
    if existed:
        current = _digest_on_disk(target)
        with _read_entry(reader, entry, archive_path) as stream:
            wanted = _guard_archive(lambda: digest_stream(stream), entry, archive_path)
        if current == wanted:
            result.unchanged.append(target)
            return
        try:
            target.unlink()
        except OSError as exc:
            raise _filesystem_error("Cannot remove stale file.", target, exc) from exc

    with _read_entry(reader, entry, archive_path) as stream:
        try:
            with target.open("wb") as out:
                _guard_archive(lambda: shutil.copyfileobj(stream, out, CHUNK_SIZE), entry, archive_path)
        except OSError as exc:
            raise _filesystem_error("Cannot write unpacked file.", target, exc) from exc
    (result.replaced if existed else result.written).append(target)


@contextmanager
def _read_entry(reader: ArchiveReader, entry: ArchiveEntry, archive_path: Path) -> Iterator[IO[bytes]]:
    stream = _guard_archive(lambda: reader.open(entry), entry, archive_path)
    with stream:
        yield stream


def _guard_archive(action: Any, entry: ArchiveEntry, archive_path: Path) -> Any:
    try:
        return action()
    except _ARCHIVE_ERRORS as exc:
        raise _archive_error(f"Cannot read archive entry {entry.name}.", archive_path, exc) from exc


def _digest_on_disk(path: Path) -> bytes:
    try:
        return digest_file(path)
    except OSError as exc:
        raise _filesystem_error("Cannot read existing file.", path, exc) from exc


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise _filesystem_error("Cannot create directory.", path, exc) from exc


def _archive_error(message: str, archive_path: Path, exc: BaseException) -> ArchiveError:
    return ArchiveError(
        message,
        hint="Delete the cached archive to force a fresh download.",
        context={"stage": STAGE, "path": str(archive_path), "error": str(exc)},
    )


def _filesystem_error(message: str, path: Path, exc: OSError) -> FilesystemError:
    return FilesystemError(
        message,
        context={"stage": STAGE, "path": str(path), "error": str(exc)},
    )

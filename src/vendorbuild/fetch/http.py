"""Integrity-enforced HTTP/file fetch with a digest-validated on-disk cache."""

from __future__ import annotations

from dataclasses import dataclass
from http.client import HTTPException
from pathlib import Path
from typing import IO, Any
from urllib.error import HTTPError
from urllib.request import urlopen

from vendorbuild.config import PinnedSource
from vendorbuild.directives import DirectiveEmitter
from vendorbuild.errors import FilesystemError, IntegrityError, TransportError, ValidationError
from vendorbuild.hashing import CHUNK_SIZE, digest_file, new_hasher
from vendorbuild.observability import StructuredLogger
from vendorbuild.policy import Policy, ensure_network_allowed

STAGE = "fetch"


@dataclass(frozen=True, slots=True)
class FetchResult:
    path: Path
    digest: str
    cache_hit: bool


def fetch(
    source: PinnedSource,
    destination: str | Path,
    *,
    policy: Policy | None = None,
    logger: StructuredLogger | None = None,
    emitter: DirectiveEmitter | None = None,
) -> FetchResult:
    """Make ``destination`` hold the pinned archive, downloading only on a cache miss.

    A digest mismatch after download raises ``IntegrityError``. The mismatching
    file is left in place; it fails the cache check on the next run and is
    downloaded again.
    """
    archive_path = Path(destination)
    if emitter is not None:
        emitter.rerun_if_changed(archive_path)

    if archive_path.exists():
        cached = _digest_existing(archive_path, algorithm=source.algorithm)
        if cached == source.digest:
            _log(logger, "cache_hit", f"using cached archive {archive_path}")
            return FetchResult(path=archive_path, digest=cached.hex(), cache_hit=True)
        _log(
            logger,
            "cache_stale",
            f"cached archive {archive_path} does not match pinned digest",
            level="warning",
            extra={"expected": source.hex_digest, "actual": cached.hex()},
        )

    if policy is not None:
        ensure_network_allowed(policy=policy, operation="fetch", url=source.url)

    _log(logger, "download", f"download archive {source.url}")
    actual = _download(source, archive_path)
    if actual != source.digest:
        _log(
            logger,
            "download",
            "downloaded archive failed digest verification",
            level="error",
            extra={"expected": source.hex_digest, "actual": actual.hex()},
        )
        raise IntegrityError(
            f"{archive_path} has invalid digest.",
            hint="The upstream archive changed or was tampered with; verify it before updating the pin.",
            context={
                "stage": STAGE,
                "url": source.url,
                "path": str(archive_path),
                "expected": source.hex_digest,
                "actual": actual.hex(),
            },
        )

    _log(logger, "download", f"verified {archive_path}", extra={"digest": actual.hex()})
    return FetchResult(path=archive_path, digest=actual.hex(), cache_hit=False)


def _download(source: PinnedSource, archive_path: Path) -> bytes:
    hasher = new_hasher(source.algorithm)
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        handle = archive_path.open("wb")
    except OSError as exc:
        raise _filesystem_error("Cannot open archive cache for writing.", archive_path, exc) from exc

    # close() can raise a deferred write error.
    try:
        with handle:
            with _open_url(source.url) as response:
                while True:
                    chunk = _read_chunk(response, url=source.url)
                    if not chunk:
                        break
                    handle.write(chunk)
                    hasher.update(chunk)
    except OSError as exc:
        raise _filesystem_error("Failed writing archive cache.", archive_path, exc) from exc
    return hasher.digest()


def _open_url(url: str) -> Any:
    try:
        return urlopen(url)  # noqa: S310 - integrity check is mandatory after download
    except HTTPError as exc:
        raise TransportError(
            f"Server returned HTTP {exc.code}.",
            hint="Check that the pinned URL is still published.",
            context={"stage": STAGE, "url": url, "status": str(exc.code)},
        ) from exc
    except ValueError as exc:
        raise ValidationError(
            "Source URL is not fetchable.",
            context={"stage": STAGE, "url": url, "error": str(exc)},
        ) from exc
    except (OSError, HTTPException) as exc:
        raise TransportError(
            "Failed to open source URL.",
            hint="Check network connectivity and re-run the build.",
            context={"stage": STAGE, "url": url, "error": str(exc)},
        ) from exc


def _read_chunk(response: IO[bytes], *, url: str) -> bytes:
    try:
        return response.read(CHUNK_SIZE)
    except (OSError, HTTPException) as exc:
        raise TransportError(
            "Transfer interrupted.",
            hint="Re-run the build; the partial archive is re-downloaded.",
            context={"stage": STAGE, "url": url, "error": str(exc)},
        ) from exc


def _digest_existing(path: Path, *, algorithm: str) -> bytes:
    try:
        return digest_file(path, algorithm)
    except OSError as exc:
        raise _filesystem_error("Cannot read cached archive.", path, exc) from exc


def _filesystem_error(message: str, path: Path, exc: OSError) -> FilesystemError:
    return FilesystemError(
        message,
        context={"stage": STAGE, "path": str(path), "error": str(exc)},
    )


def _log(
    logger: StructuredLogger | None,
    operation: str,
    message: str,
    *,
    level: str = "info",
    extra: dict[str, Any] | None = None,
) -> None:
    if logger is not None:
        logger.log(operation=operation, stage=STAGE, message=message, level=level, extra=extra)

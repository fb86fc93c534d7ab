"""Streaming content digests over files and byte streams."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import IO, Any

CHUNK_SIZE = 4096
DEFAULT_ALGORITHM = "sha256"


def new_hasher(algorithm: str = DEFAULT_ALGORITHM) -> Any:
    return hashlib.new(algorithm)


def digest_size(algorithm: str = DEFAULT_ALGORITHM) -> int:
    return new_hasher(algorithm).digest_size


def digest_stream(
    stream: IO[bytes],
    algorithm: str = DEFAULT_ALGORITHM,
    *,
    chunk_size: int = CHUNK_SIZE,
) -> bytes:
    """Digest everything left in ``stream``, reading at most ``chunk_size`` bytes at a time.

    Read errors are not caught.
    """
    hasher = new_hasher(algorithm)
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        hasher.update(chunk)
    return hasher.digest()


def digest_file(path: str | Path, algorithm: str = DEFAULT_ALGORITHM) -> bytes:
    with Path(path).open("rb") as handle:
        return digest_stream(handle, algorithm)

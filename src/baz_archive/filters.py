"""
Compression filters for container payloads.

A container is a tar stream passed through one compression filter. Filters
are tried in the configured preference order and the first available one is
used for encoding. Decoding recognizes the filter family from the stream's
magic bytes, so any container written with a filter from the same family can
be read back regardless of which binary produced it (pigz output is gzip).
"""
from __future__ import annotations

import gzip
import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import IO, Dict, Iterator, Optional, Sequence

import zstandard as zstd

from .errors import CodecUnavailableError, ContainerError
from .settings import Settings

__all__ = [
    "CompressionFilter",
    "ZstdFilter",
    "PigzFilter",
    "GzipFilter",
    "FILTERS",
    "select_filter",
    "open_decompressed",
]

logger = logging.getLogger(__name__)

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"
GZIP_MAGIC = b"\x1f\x8b"


class CompressionFilter:
    """
    One payload compression filter.

    Subclasses report availability on this host and open a writable stream
    that compresses everything written to it into ``dest``.
    """
    name: str = ""
    magic: bytes = b""

    def is_available(self) -> bool:
        raise NotImplementedError

    @contextmanager
    def open_writer(self, dest: Path, settings: Settings) -> Iterator[IO[bytes]]:
        raise NotImplementedError
        yield  # pragma: no cover


class ZstdFilter(CompressionFilter):
    """Zstandard compression in-process via the zstandard library."""
    name = "zstd"
    magic = ZSTD_MAGIC

    def is_available(self) -> bool:
        return True

    @contextmanager
    def open_writer(self, dest: Path, settings: Settings) -> Iterator[IO[bytes]]:
        compressor = zstd.ZstdCompressor(
            level=settings.zstd_level,
            write_checksum=True,
        )
        with open(dest, "wb") as f:
            with compressor.stream_writer(f, closefd=False) as zstd_writer:
                yield zstd_writer


class PigzFilter(CompressionFilter):
    """Parallel gzip through the external pigz binary, when installed."""
    name = "pigz"
    magic = GZIP_MAGIC

    def __init__(self, binary: str = "pigz") -> None:
        self._binary = binary

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    @contextmanager
    def open_writer(self, dest: Path, settings: Settings) -> Iterator[IO[bytes]]:
        # stderr goes to a file so a chatty pigz can never block on a full pipe
        with open(dest, "wb") as out, tempfile.TemporaryFile() as errors:
            proc = subprocess.Popen(
                [self._binary, f"-{settings.gzip_level}", "-c"],
                stdin=subprocess.PIPE,
                stdout=out,
                stderr=errors,
            )
            try:
                yield proc.stdin
            except BaseException:
                proc.kill()
                proc.wait()
                with suppress(OSError):
                    proc.stdin.close()
                raise
            proc.stdin.close()
            returncode = proc.wait()
            if returncode != 0:
                errors.seek(0)
                stderr = errors.read().decode("utf-8", errors="replace")
                raise ContainerError(f"pigz exited with status {returncode}: {stderr.strip()}")


class GzipFilter(CompressionFilter):
    """gzip from the standard library; the universally available baseline."""
    name = "gzip"
    magic = GZIP_MAGIC

    def is_available(self) -> bool:
        return True

    @contextmanager
    def open_writer(self, dest: Path, settings: Settings) -> Iterator[IO[bytes]]:
        with gzip.open(dest, "wb", compresslevel=settings.gzip_level) as gz:
            yield gz


FILTERS: Dict[str, CompressionFilter] = {
    "zstd": ZstdFilter(),
    "pigz": PigzFilter(),
    "gzip": GzipFilter(),
}


def select_filter(preferences: Sequence[str],
                  filters: Optional[Dict[str, CompressionFilter]] = None) -> CompressionFilter:
    """
    Pick the first available filter in preference order.

    Args:
        preferences: Filter names, best first
        filters: Filter registry (defaults to FILTERS)

    Returns:
        The selected filter

    Raises:
        CodecUnavailableError: If no listed filter is available
    """
    registry = FILTERS if filters is None else filters
    for name in preferences:
        candidate = registry.get(name)
        if candidate is None:
            logger.debug(f"Unknown compression filter {name!r}, skipping")
            continue
        if candidate.is_available():
            logger.debug(f"Selected compression filter {name}")
            return candidate
        logger.debug(f"Compression filter {name} unavailable, falling back")
    raise CodecUnavailableError(
        f"No compression filter available (tried: {', '.join(preferences)})"
    )


@contextmanager
def open_decompressed(src: Path) -> Iterator[IO[bytes]]:
    """
    Open a container for reading, undoing its compression filter.

    The filter family is detected from the leading magic bytes. Streams with
    neither zstd nor gzip magic are passed through unchanged (plain tar).

    Args:
        src: Container file path

    Yields:
        Readable, non-seekable stream of tar bytes
    """
    with open(src, "rb") as f:
        header = f.read(4)
        f.seek(0)
        if header.startswith(ZSTD_MAGIC):
            logger.debug(f"Decoding {src} as zstd")
            with zstd.ZstdDecompressor().stream_reader(f, closefd=False) as reader:
                yield reader
        elif header.startswith(GZIP_MAGIC):
            logger.debug(f"Decoding {src} as gzip")
            with gzip.GzipFile(fileobj=f, mode="rb") as reader:
                yield reader
        else:
            logger.debug(f"Decoding {src} as uncompressed tar")
            yield f

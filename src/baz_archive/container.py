"""
Container codec.

Serializes a directory tree into a single compressed tar file and expands it
back. The tar carries one top-level wrapper directory (the source directory's
own name); decode strips that wrapper so the destination directly contains
the repository's contents.

Writes are atomic: the archive is streamed to a temporary file beside the
destination and renamed over it only when complete.
"""
from __future__ import annotations

import logging
import os
import tarfile
import tempfile
import zlib
from pathlib import Path
from typing import Iterator, Optional, Tuple

import zstandard as zstd

from .errors import ContainerError
from .filters import CompressionFilter, open_decompressed, select_filter
from .path_safety import strip_wrapper
from .settings import Settings

__all__ = ["encode", "decode"]

logger = logging.getLogger(__name__)


def encode(source_dir: str | Path, dest_file: str | Path, settings: Settings, *,
           compression: Optional[CompressionFilter] = None) -> CompressionFilter:
    """
    Stream a directory tree into a single compressed container file.

    Args:
        source_dir: Directory to pack (not modified)
        dest_file: Container path to write
        settings: Settings supplying filter preferences and levels
        compression: Explicit filter, bypassing preference selection

    Returns:
        The compression filter that was used

    Raises:
        ValueError: If an argument is missing or source_dir doesn't exist
        CodecUnavailableError: If no configured filter is available
        ContainerError: If writing the archive fails
    """
    if not source_dir:
        raise ValueError("source directory not provided")
    if not dest_file:
        raise ValueError("destination file not provided")

    src_path = Path(source_dir).resolve()
    if not src_path.is_dir():
        raise ValueError(f"Source directory does not exist: {source_dir}")
    out_path = Path(dest_file).resolve()

    selected = compression or select_filter(settings.compression)

    temp_path: Optional[Path] = None

    try:
        # Create temporary file in same directory as output for atomic rename
        temp_fd, temp_name = tempfile.mkstemp(
            suffix='.tmp',
            dir=out_path.parent,
            prefix='.' + out_path.name + '.'
        )
        os.close(temp_fd)
        temp_path = Path(temp_name)

        logger.debug(f"Encoding {src_path} -> {out_path} with {selected.name}")
        with selected.open_writer(temp_path, settings) as stream:
            with tarfile.open(fileobj=stream, mode="w|", format=tarfile.PAX_FORMAT) as tar:
                _add_entries_to_tar(tar, src_path)

        os.replace(temp_path, out_path)
        temp_path = None
    except ContainerError:
        raise
    except (OSError, tarfile.TarError, zstd.ZstdError) as e:
        raise ContainerError(f"Failed to write container {out_path}: {e}") from e
    finally:
        # Cleanup on any failure
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.warning(f"Could not remove temporary file {temp_path}")

    return selected


def decode(src_file: str | Path, dest_dir: str | Path) -> None:
    """
    Expand a container into a directory, stripping the wrapper directory.

    Args:
        src_file: Container path
        dest_dir: Existing directory to expand into

    Raises:
        ValueError: If an argument is missing
        ContainerError: If the container is missing, corrupt or unsafe
    """
    if not src_file:
        raise ValueError("container file not provided")
    if not dest_dir:
        raise ValueError("destination directory not provided")

    src_path = Path(src_file)
    dest_path = Path(dest_dir)
    if not src_path.is_file():
        raise ContainerError(f"Archive file not found: {src_file}")

    logger.debug(f"Decoding {src_path} -> {dest_path}")
    try:
        with open_decompressed(src_path) as stream:
            with tarfile.open(fileobj=stream, mode="r|") as tar:
                for member in tar:
                    try:
                        rel = strip_wrapper(member.name)
                    except ValueError as e:
                        raise ContainerError(f"Unsafe entry in container {src_file}: {e}") from e
                    if rel is None:
                        continue
                    member.name = rel
                    if member.islnk():
                        member.linkname = _strip_link_target(member, src_file)
                    tar.extract(member, path=dest_path, filter="data")
    except ContainerError:
        raise
    except (OSError, EOFError, KeyError, tarfile.TarError, zstd.ZstdError, zlib.error) as e:
        raise ContainerError(f"Failed to read container {src_file}: {e}") from e


def _strip_link_target(member: tarfile.TarInfo, src_file: str | Path) -> str:
    """Hard links name their target by archive path, wrapper included."""
    try:
        target = strip_wrapper(member.linkname)
    except ValueError as e:
        raise ContainerError(f"Unsafe link in container {src_file}: {e}") from e
    if target is None:
        raise ContainerError(f"Hard link {member.name} in container {src_file} points at the top directory")
    return target


def _add_entries_to_tar(tar: tarfile.TarFile, src_path: Path) -> None:
    """Add the tree under a single wrapper directory named after src_path."""
    wrapper = src_path.name
    tar.add(str(src_path), arcname=wrapper, recursive=False)
    for entry_path, arcname in _iter_entries_sorted(src_path):
        tar.add(str(entry_path), arcname=f"{wrapper}/{arcname}", recursive=False)


def _iter_entries_sorted(src_dir: Path) -> Iterator[Tuple[Path, str]]:
    """
    Iterate entries in deterministic order.

    Yields (filesystem_path, archive_name) pairs sorted by archive name.
    Directories sort before their contents, which tar extraction requires.

    Args:
        src_dir: Source directory to iterate

    Yields:
        (entry_path, archive_name) tuples
    """
    entries = []

    for root, dirs, files in os.walk(src_dir):
        root_path = Path(root)
        rel_root = root_path.relative_to(src_dir)

        # Add directory entry (except for root)
        if rel_root != Path('.'):
            entries.append((root_path, rel_root.as_posix()))

        # Symlinked directories are not descended into; keep the link itself
        for dir_name in dirs:
            dir_path = root_path / dir_name
            if dir_path.is_symlink():
                entries.append((dir_path, dir_path.relative_to(src_dir).as_posix()))

        # Add file entries
        for file_name in files:
            file_path = root_path / file_name
            entries.append((file_path, file_path.relative_to(src_dir).as_posix()))

    entries.sort(key=lambda x: x[1])

    yield from entries

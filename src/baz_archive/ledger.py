"""
Tag ledger.

An append-only log of snapshot tags kept alongside the source directory. Its
only job is to produce the next default tag: the entry count plus one. It is
never rewritten or compacted.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .errors import LedgerError

__all__ = ["LEDGER_NAME", "INITIAL_TAG", "ledger_path", "initialize", "read_tags", "next_auto_tag", "append"]

logger = logging.getLogger(__name__)

LEDGER_NAME = ".ba-tags"
INITIAL_TAG = "1"


def ledger_path(source_dir: str | Path) -> Path:
    return Path(source_dir) / LEDGER_NAME


def initialize(source_dir: str | Path) -> str:
    """
    Start a new ledger holding the single entry ``1``.

    Args:
        source_dir: Dataset source directory

    Returns:
        The initial tag
    """
    path = ledger_path(source_dir)
    path.write_text(f"{INITIAL_TAG}\n", encoding="utf-8")
    logger.debug(f"Initialized tag ledger {path}")
    return INITIAL_TAG


def read_tags(source_dir: str | Path) -> List[str]:
    """Return the ledger entries in order."""
    path = ledger_path(source_dir)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise LedgerError(
            f"Tag ledger {path} not found. Was this directory archived with 'create'?"
        ) from None
    except OSError as e:
        raise LedgerError(f"Cannot read tag ledger {path}: {e}") from e
    return text.splitlines()


def next_auto_tag(source_dir: str | Path) -> str:
    """Default tag for the next snapshot: ledger entry count plus one."""
    return str(len(read_tags(source_dir)) + 1)


def append(source_dir: str | Path, tag: str) -> None:
    """
    Record a tag at the end of the ledger.

    Args:
        source_dir: Dataset source directory
        tag: Tag chosen for the snapshot (explicit or automatic)
    """
    path = ledger_path(source_dir)
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{tag}\n")
    except OSError as e:
        raise LedgerError(f"Cannot append to tag ledger {path}: {e}") from e
    logger.debug(f"Appended tag {tag} to {path}")

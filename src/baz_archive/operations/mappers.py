"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command wrapper
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Callable, TypeVar

import typer

T = TypeVar('T')

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit codes; each failure kind has its own value."""
    SUCCESS = 0
    MISSING_ACTION = 1
    MISSING_CONTAINER = 2
    MISSING_PATH = 3
    MISSING_MOUNT_DIR = 4
    MOUNT_FAILED = 5
    MISSING_UNMOUNT_TARGET = 6
    CODEC_FAILED = 7
    REPOSITORY_FAILED = 8
    NOT_MOUNTED = 9
    TAG_CONFLICT = 10
    INVALID_VALUE = 11
    UNKNOWN_ACTION = 12
    LEDGER_FAILED = 13
    INTERNAL_ERROR = 14
    # Raised by the argument parser itself (unknown option, stray argument)
    BAD_ARGUMENTS = 15


# Keyed by exception class name; the most specific class in the MRO wins
EXIT_CODES = {
    "MissingActionError": ExitCode.MISSING_ACTION,
    "MissingContainerError": ExitCode.MISSING_CONTAINER,
    "MissingPathError": ExitCode.MISSING_PATH,
    "OutputDirError": ExitCode.MISSING_PATH,
    "MissingMountDirError": ExitCode.MISSING_MOUNT_DIR,
    "MountError": ExitCode.MOUNT_FAILED,
    "MissingUnmountTargetError": ExitCode.MISSING_UNMOUNT_TARGET,
    "ContainerError": ExitCode.CODEC_FAILED,
    "RepositoryError": ExitCode.REPOSITORY_FAILED,
    "NotMountedError": ExitCode.NOT_MOUNTED,
    "TagConflictError": ExitCode.TAG_CONFLICT,
    "ValueError": ExitCode.INVALID_VALUE,
    "UnknownActionError": ExitCode.UNKNOWN_ACTION,
    "LedgerError": ExitCode.LEDGER_FAILED,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Walks the exception's class hierarchy so subclasses inherit the code of
    their nearest mapped ancestor (e.g. CodecUnavailableError -> ContainerError).

    Args:
        exc: Exception to map

    Returns:
        Exit code, with INTERNAL_ERROR as fallback for unknown exceptions
    """
    for cls in type(exc).__mro__:
        code = EXIT_CODES.get(cls.__name__)
        if code is not None:
            return int(code)
    return int(ExitCode.INTERNAL_ERROR)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, after reporting the error (including any
    captured tool diagnostic) on stderr.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except (typer.Exit, typer.Abort):
        raise
    except Exception as e:
        from .printers import print_error
        print_error(e)
        logger.debug("Command failed", exc_info=True)
        raise typer.Exit(code=exit_code_for(e)) from e

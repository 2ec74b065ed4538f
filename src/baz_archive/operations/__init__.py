"""
Operations package - Application service layer between CLI and the lifecycle.

This package provides the Operations facade that orchestrates the container
lifecycle, centralizes error mapping, and handles output formatting while
keeping CLI commands thin and testable.
"""
from .facade import CreateResult, MountResult, Operations, UpdateResult
from .mappers import ExitCode, exit_code_for, run_and_exit

__all__ = [
    "Operations",
    "CreateResult",
    "UpdateResult",
    "MountResult",
    "ExitCode",
    "exit_code_for",
    "run_and_exit",
]

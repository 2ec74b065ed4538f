"""
Human-readable output formatting.

Centralizes all CLI output so commands stay thin. Listings print one
``tag  timestamp`` line per snapshot (script-friendly); ``--table`` renders
them with Rich when it is installed.
"""
from __future__ import annotations

from typing import Sequence

import typer

from ..errors import MountError, UsageError
from ..models import SnapshotInfo

# Optional Rich support for enhanced output
try:
    from rich.console import Console
    from rich.table import Table
    _RICH = True
    _console = Console()
except ImportError:
    _RICH = False
    _console = None

USAGE = """
Usage:
    baz create archive_file.baz  /path/to/archive-root-dir [encryption] [borg-options]
        Initializes and creates initial archive.
        encryption: Turns on encryption of the archive (or -e/--encryption MODE).
        borg-options: Fine-tune underlying Borg Backup parameters.

    baz extract archive_file.baz  /path/to/destination [tag]
        Extracts the archive to 'destination'. 'destination' will be created
            if it does not exist. If it exists, current contents will
            be OVERWRITTEN! (--yes skips the confirmation)
        tag: Name of a commit tag to extract (default is most recent).

    baz list archive_file.baz
        Lists all available commits in this archive.

    baz mount archive_file.baz  /path/to/mount-dir [tag]
        Mounts read-only to 'mount-dir'. mount-dir will be created if it
            does not exist.
        tag: Name of a commit tag to mount (default is most recent).

    baz umount /path/to/mount-dir
        Unmount an archive that was mounted with 'mount'.

    baz update archive_file.baz  /path/to/archive-root-dir [tag]
        Update the archive with any changes in 'archive-root-dir'.
        tag: Used to name the commit, if omitted the tag is generated
            automatically as an incrementing counter.
"""


def print_usage(err: bool = False) -> None:
    typer.echo(USAGE, err=err)


def print_snapshot_list(snapshots: Sequence[SnapshotInfo], table: bool = False) -> None:
    """
    Print snapshots oldest first.

    Args:
        snapshots: Snapshots to display
        table: Render as a Rich table when available
    """
    if table and _RICH:
        rich_table = Table(title="Snapshots")
        rich_table.add_column("Tag", style="cyan")
        rich_table.add_column("Created", style="yellow")
        for snap in snapshots:
            rich_table.add_row(snap.tag, snap.display_time)
        _console.print(rich_table)
        return

    for snap in snapshots:
        typer.echo(f"{snap.tag:<36} {snap.display_time}")


def print_create_summary(container: str, tag: str, compression: str) -> None:
    typer.echo(f"Created archive '{container}' with tag {tag} ({compression}).")


def print_update_summary(container: str, tag: str) -> None:
    typer.echo(f"Archive '{container}' updated successfully with tag {tag}.")


def print_extract_summary(output_dir: str) -> None:
    typer.echo(f"Extracted archive contents to '{output_dir}'.")


def print_mount_summary(mount_dir: str) -> None:
    typer.echo(f"Mounted archive to '{mount_dir}' (read-only).")


def print_unmount_summary() -> None:
    typer.echo("Unmounted archive.")


def print_declined() -> None:
    typer.echo("Stopping.")


def print_error(exc: BaseException) -> None:
    """
    Report a failed command on stderr.

    Usage errors are followed by the usage text; mount failures re-emit the
    tool's diagnostic and point at the workspace kept for inspection.

    Args:
        exc: Exception that ended the command
    """
    if isinstance(exc, MountError):
        typer.echo(str(exc), err=True)
        if exc.diagnostic:
            typer.echo(f"   {exc.diagnostic}", err=True)
        if exc.workspace:
            typer.echo(f"Workspace kept for inspection: {exc.workspace}", err=True)
        return

    typer.echo(f"Error: {exc}", err=True)
    if isinstance(exc, UsageError):
        print_usage(err=True)

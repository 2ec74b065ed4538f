"""
baz-archive CLI

Single-file, versioned dataset archives backed by Borg Backup:
- create: Initialize a new archive with a first snapshot
- update: Add a snapshot of the source directory
- list: List snapshots in an archive
- extract: Extract a snapshot to a directory
- mount/umount: Mount a snapshot read-only and release it again
"""
from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click
import typer
from typer.core import TyperGroup

from .cli_context import CLIContext
from .errors import (
    MissingActionError,
    MissingContainerError,
    MissingMountDirError,
    MissingPathError,
    MissingUnmountTargetError,
    UnknownActionError,
)
from .models import DEFAULT_ENCRYPTED_MODE, EncryptionMode
from .operations import ExitCode, exit_code_for, run_and_exit
from .operations.printers import (
    print_create_summary,
    print_declined,
    print_error,
    print_extract_summary,
    print_mount_summary,
    print_snapshot_list,
    print_unmount_summary,
    print_update_summary,
    print_usage,
)

class BazGroup(TyperGroup):
    """
    Command group giving parser-level usage errors their own exit code.

    Click exits with 2 for unknown options, missing option values and stray
    arguments, which would collide with MISSING_CONTAINER.
    """

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = int(ExitCode.BAD_ARGUMENTS)
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = int(ExitCode.BAD_ARGUMENTS)
            raise


app = typer.Typer(
    cls=BazGroup,
    name="baz",
    help="Single-file versioned archives backed by Borg Backup",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)

ACTIONS = frozenset({"create", "extract", "list", "mount", "umount", "unmount", "update", "help"})

# Keyword accepted in place of -e/--encryption MODE
ENCRYPTION_KEYWORD = "encryption"


def _create_context() -> CLIContext:
    """Build the command's dependencies; replaced in tests to inject fakes."""
    return CLIContext.from_env()


def _require_container(container: Optional[str]) -> str:
    if not container:
        raise MissingContainerError("Archive file name is required.")
    return container


def _split_encryption(encryption: Optional[str], extra: List[str]) -> tuple[EncryptionMode, List[str]]:
    """
    Resolve the encryption mode from -e/--encryption or the bare keyword.

    Returns:
        (mode, remaining options for borg init)
    """
    if encryption is not None:
        return EncryptionMode.parse(encryption), extra
    if extra and extra[0] == ENCRYPTION_KEYWORD:
        return DEFAULT_ENCRYPTED_MODE, extra[1:]
    return EncryptionMode.NONE, extra


def _confirm_overwrite(destination: str) -> bool:
    """Ask before extracting over an existing directory; EOF counts as no."""
    try:
        return typer.confirm(
            f"{destination} already exists.  Contents will be overwritten.\nAre you sure?",
            default=False,
        )
    except typer.Abort:
        return False


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
) -> None:
    """Single-file versioned archives backed by Borg Backup."""
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("baz_archive").setLevel(level)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def create(
    ctx: typer.Context,
    container: Optional[str] = typer.Argument(None, help="Archive file to create"),
    source_dir: Optional[str] = typer.Argument(None, help="Root of the directory to archive"),
    encryption: Optional[str] = typer.Option(None, "--encryption", "-e", help="Borg encryption mode"),
) -> None:
    """Initialize and create the initial archive."""

    def _create() -> None:
        archive = _require_container(container)
        if not source_dir:
            raise MissingPathError("Path to root of archive directory must be given.")
        mode, extra = _split_encryption(encryption, list(ctx.args))

        ops = _create_context().operations
        result = ops.create(archive, source_dir, encryption_mode=mode, extra_options=extra)
        print_create_summary(archive, result.tag, result.compression)

    run_and_exit(_create)


@app.command()
def extract(
    container: Optional[str] = typer.Argument(None, help="Archive file"),
    destination: Optional[str] = typer.Argument(None, help="Directory to extract into"),
    tag: Optional[str] = typer.Argument(None, help="Tag to extract (default: most recent)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Overwrite an existing destination without asking"),
) -> None:
    """Extract a snapshot to a directory."""

    def _extract() -> None:
        archive = _require_container(container)
        if not destination:
            raise MissingPathError("Destination directory must be given.")

        overwrite = yes
        if Path(destination).exists() and not yes:
            if not _confirm_overwrite(destination):
                print_declined()
                return
            overwrite = True

        ops = _create_context().operations
        out = ops.extract(archive, destination, tag, overwrite=overwrite)
        print_extract_summary(str(out))

    run_and_exit(_extract)


@app.command("list")
def list_snapshots(
    container: Optional[str] = typer.Argument(None, help="Archive file"),
    table: bool = typer.Option(False, "--table", help="Render as a table"),
) -> None:
    """List all available commits in an archive."""

    def _list() -> None:
        archive = _require_container(container)
        ops = _create_context().operations
        print_snapshot_list(ops.list(archive), table=table)

    run_and_exit(_list)


@app.command()
def mount(
    container: Optional[str] = typer.Argument(None, help="Archive file"),
    mount_dir: Optional[str] = typer.Argument(None, help="Mount point (created if missing)"),
    tag: Optional[str] = typer.Argument(None, help="Tag to mount (default: most recent)"),
) -> None:
    """Mount a snapshot read-only."""

    def _mount() -> None:
        archive = _require_container(container)
        if not mount_dir:
            raise MissingMountDirError("Must provide path to directory to mount.")
        ops = _create_context().operations
        result = ops.mount(archive, mount_dir, tag)
        print_mount_summary(str(result.mount_dir))

    run_and_exit(_mount)


def _unmount_command(mount_dir: Optional[str]) -> None:
    def _unmount() -> None:
        if not mount_dir:
            raise MissingUnmountTargetError("Must provide path to mounted archive to unmount.")
        ops = _create_context().operations
        ops.unmount(mount_dir)
        print_unmount_summary()

    run_and_exit(_unmount)


@app.command()
def umount(
    mount_dir: Optional[str] = typer.Argument(None, help="Mount point used with 'mount'"),
) -> None:
    """Unmount an archive that was mounted with 'mount'."""
    _unmount_command(mount_dir)


@app.command("unmount", hidden=True)
def unmount(
    mount_dir: Optional[str] = typer.Argument(None, help="Mount point used with 'mount'"),
) -> None:
    """Alias for umount."""
    _unmount_command(mount_dir)


@app.command()
def update(
    container: Optional[str] = typer.Argument(None, help="Archive file"),
    source_dir: Optional[str] = typer.Argument(None, help="Root of the archived directory"),
    tag: Optional[str] = typer.Argument(None, help="Tag for the new commit (default: next counter)"),
) -> None:
    """Update the archive with any changes in the source directory."""

    def _update() -> None:
        archive = _require_container(container)
        if not source_dir:
            raise MissingPathError("Path to root of archive directory must be given.")
        ops = _create_context().operations
        result = ops.update(archive, source_dir, tag)
        print_update_summary(archive, result.tag)

    run_and_exit(_update)


@app.command("help")
def show_help() -> None:
    """Show usage."""
    print_usage()


def _first_action(args: Sequence[str]) -> Optional[str]:
    for arg in args:
        if not arg.startswith("-"):
            return arg
    return None


def check_action(args: Sequence[str]) -> None:
    """
    Validate the action word before Typer parses anything.

    Raises:
        MissingActionError: If no action was given
        UnknownActionError: If the action is not recognized
    """
    if any(arg in ("-h", "--help") for arg in args):
        return
    action = _first_action(args)
    if action is None:
        raise MissingActionError(
            "First argument must be create, extract, help, list, mount, umount, or update."
        )
    if action not in ACTIONS:
        raise UnknownActionError(action)


def _install_signal_handlers() -> None:
    """Turn SIGTERM/SIGHUP into SystemExit so workspace cleanup runs."""
    def _handler(signum, frame):
        raise SystemExit(128 + signum)

    for name in ("SIGTERM", "SIGHUP"):
        sig = getattr(signal, name, None)
        if sig is not None:
            signal.signal(sig, _handler)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        check_action(args)
    except (MissingActionError, UnknownActionError) as e:
        print_error(e)
        sys.exit(exit_code_for(e))
    _install_signal_handlers()
    app(args=args, prog_name="baz")


if __name__ == "__main__":
    main()

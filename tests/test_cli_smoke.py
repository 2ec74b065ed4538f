"""
CLI smoke tests with a fake repository.

Tests command wiring, output formats, confirmation prompts and exit codes
without requiring borg. The fake is injected by replacing the CLI's context
factory.
"""
from __future__ import annotations

import signal

import pytest
from typer.testing import CliRunner

from baz_archive import cli, ledger
from baz_archive.cli import app, main
from baz_archive.cli_context import CLIContext
from baz_archive.operations.mappers import ExitCode
from tests.helpers.trees import read_tree
from tests.storage.fakes.fake_repository import FakeRepository


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def use_repository(monkeypatch, settings):
    """Install a fake repository behind the CLI; returns the installer."""
    def install(repository):
        monkeypatch.setattr(cli, "_create_context",
                            lambda: CLIContext(settings=settings, _repository=repository))
        return repository
    return install


@pytest.fixture
def fake(use_repository, repository):
    return use_repository(repository)


@pytest.fixture
def archive(runner, fake, dataset, tmp_path):
    """An archive created through the CLI."""
    path = tmp_path / "data.baz"
    result = runner.invoke(app, ["create", str(path), str(dataset)])
    assert result.exit_code == 0, result.output
    return path


class TestCommands:
    """Test the happy path of every command."""

    def test_create(self, runner, fake, dataset, tmp_path):
        path = tmp_path / "data.baz"

        result = runner.invoke(app, ["create", str(path), str(dataset)])

        assert result.exit_code == 0
        assert f"Created archive '{path}' with tag 1 (zstd)." in result.output
        assert path.is_file()

    def test_create_encryption_keyword_and_passthrough(self, runner, fake, dataset, tmp_path):
        """Test the bare keyword and extra borg options reaching init."""
        result = runner.invoke(app, [
            "create", str(tmp_path / "data.baz"), str(dataset),
            "encryption", "--storage-quota", "5G",
        ])

        assert result.exit_code == 0, result.output
        init_call = fake.calls[0]
        assert init_call[2:] == ("repokey", "--storage-quota", "5G")

    def test_create_encryption_option(self, runner, fake, dataset, tmp_path):
        result = runner.invoke(app, [
            "create", str(tmp_path / "data.baz"), str(dataset), "-e", "keyfile-blake2",
        ])

        assert result.exit_code == 0, result.output
        assert fake.calls[0][2] == "keyfile-blake2"

    def test_list(self, runner, archive, dataset):
        runner.invoke(app, ["update", str(archive), str(dataset), "release-a"])

        result = runner.invoke(app, ["list", str(archive)])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 2
        assert lines[0].split()[0] == "1"
        assert lines[1].split()[0] == "release-a"
        assert "2025-01-01 12:01:00" in lines[0]

    def test_list_table(self, runner, archive):
        result = runner.invoke(app, ["list", str(archive), "--table"])

        assert result.exit_code == 0
        assert "Snapshots" in result.output
        assert "2025-01-01 12:01:00" in result.output

    def test_update_auto_tag(self, runner, archive, dataset):
        result = runner.invoke(app, ["update", str(archive), str(dataset)])

        assert result.exit_code == 0
        assert f"Archive '{archive}' updated successfully with tag 2." in result.output
        assert ledger.read_tags(dataset) == ["1", "2"]

    def test_extract_new_destination(self, runner, archive, dataset, tmp_path):
        out = tmp_path / "out"

        result = runner.invoke(app, ["extract", str(archive), str(out)])

        assert result.exit_code == 0
        assert f"Extracted archive contents to '{out}'." in result.output
        assert read_tree(out) == read_tree(dataset)

    def test_mount_and_umount(self, runner, archive, fake, tmp_path):
        mnt = tmp_path / "mnt"

        result = runner.invoke(app, ["mount", str(archive), str(mnt)])
        assert result.exit_code == 0, result.output
        assert f"Mounted archive to '{mnt}' (read-only)." in result.output
        assert fake.is_mounted(mnt)

        result = runner.invoke(app, ["umount", str(mnt)])
        assert result.exit_code == 0, result.output
        assert "Unmounted archive." in result.output
        assert not fake.is_mounted(mnt)

    def test_unmount_alias(self, runner, archive, fake, tmp_path):
        mnt = tmp_path / "mnt"
        runner.invoke(app, ["mount", str(archive), str(mnt)])

        result = runner.invoke(app, ["unmount", str(mnt)])

        assert result.exit_code == 0
        assert not fake.is_mounted(mnt)

    def test_help_command(self, runner):
        result = runner.invoke(app, ["help"])

        assert result.exit_code == 0
        assert "baz create archive_file.baz" in result.output
        assert "baz umount /path/to/mount-dir" in result.output

    def test_help_option(self, runner):
        result = runner.invoke(app, ["-h"])

        assert result.exit_code == 0
        assert "extract" in result.output


class TestExtractConfirmation:
    """Test the overwrite prompt for an existing destination."""

    def test_declined(self, runner, archive, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "mine.txt").write_text("keep")

        result = runner.invoke(app, ["extract", str(archive), str(out)], input="n\n")

        assert result.exit_code == 0
        assert "Contents will be overwritten" in result.output
        assert "Stopping." in result.output
        assert read_tree(out) == {"mine.txt": b"keep"}

    def test_no_input_counts_as_declined(self, runner, archive, tmp_path):
        out = tmp_path / "out"
        out.mkdir()

        result = runner.invoke(app, ["extract", str(archive), str(out)], input="")

        assert result.exit_code == 0
        assert "Stopping." in result.output
        assert list(out.iterdir()) == []

    def test_confirmed(self, runner, archive, dataset, tmp_path):
        out = tmp_path / "out"
        out.mkdir()

        result = runner.invoke(app, ["extract", str(archive), str(out)], input="y\n")

        assert result.exit_code == 0
        assert read_tree(out) == read_tree(dataset)

    def test_yes_skips_prompt(self, runner, archive, dataset, tmp_path):
        out = tmp_path / "out"
        out.mkdir()

        result = runner.invoke(app, ["extract", str(archive), str(out), "1", "--yes"])

        assert result.exit_code == 0
        assert "Are you sure?" not in result.output
        assert (out / "readme.txt").read_text() == "first version\n"


class TestExitCodes:
    """Test that each failure kind exits with its own code."""

    def test_missing_container(self, runner, fake):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == ExitCode.MISSING_CONTAINER
        assert "Archive file name is required." in result.output
        assert "Usage:" in result.output

    def test_missing_source_path(self, runner, fake, tmp_path):
        result = runner.invoke(app, ["create", str(tmp_path / "a.baz")])

        assert result.exit_code == ExitCode.MISSING_PATH

    def test_nonexistent_source_path(self, runner, fake, tmp_path):
        result = runner.invoke(app, ["create", str(tmp_path / "a.baz"), str(tmp_path / "nope")])

        assert result.exit_code == ExitCode.MISSING_PATH
        assert not (tmp_path / "a.baz").exists()

    def test_missing_mount_dir(self, runner, archive):
        result = runner.invoke(app, ["mount", str(archive)])

        assert result.exit_code == ExitCode.MISSING_MOUNT_DIR

    def test_missing_unmount_target(self, runner, fake):
        result = runner.invoke(app, ["umount"])

        assert result.exit_code == ExitCode.MISSING_UNMOUNT_TARGET

    def test_mount_failure_reports_diagnostic(self, runner, archive, use_repository, tmp_path):
        use_repository(FakeRepository(fail_on={"mount": "fuse: device not found"}))

        result = runner.invoke(app, ["mount", str(archive), str(tmp_path / "mnt")])

        assert result.exit_code == ExitCode.MOUNT_FAILED
        assert "Failed to mount:" in result.output
        assert "fuse: device not found" in result.output
        assert "Workspace kept for inspection:" in result.output

    def test_corrupt_container(self, runner, fake, tmp_path):
        junk = tmp_path / "junk.baz"
        junk.write_bytes(b"\x1f\x8b" + b"not gzip at all")

        result = runner.invoke(app, ["list", str(junk)])

        assert result.exit_code == ExitCode.CODEC_FAILED

    def test_unknown_tag(self, runner, archive, tmp_path):
        result = runner.invoke(app, ["extract", str(archive), str(tmp_path / "out"), "nope"])

        assert result.exit_code == ExitCode.REPOSITORY_FAILED
        assert "No snapshot tagged 'nope'" in result.output

    def test_not_mounted(self, runner, use_repository, tmp_path):
        class SilentUnmount(FakeRepository):
            def unmount(self, mount_dir):
                pass

        use_repository(SilentUnmount())
        plain = tmp_path / "plain"
        plain.mkdir()

        result = runner.invoke(app, ["umount", str(plain)])

        assert result.exit_code == ExitCode.NOT_MOUNTED

    def test_tag_conflict(self, runner, archive, dataset):
        result = runner.invoke(app, ["update", str(archive), str(dataset), "1"])

        assert result.exit_code == ExitCode.TAG_CONFLICT
        assert "Tag '1' already exists" in result.output

    def test_invalid_encryption_mode(self, runner, fake, dataset, tmp_path):
        result = runner.invoke(app, ["create", str(tmp_path / "a.baz"), str(dataset), "-e", "rot13"])

        assert result.exit_code == ExitCode.INVALID_VALUE
        assert "Unknown encryption mode" in result.output

    def test_missing_ledger(self, runner, archive, dataset):
        ledger.ledger_path(dataset).unlink()

        result = runner.invoke(app, ["update", str(archive), str(dataset)])

        assert result.exit_code == ExitCode.LEDGER_FAILED

    @pytest.mark.parametrize("args", [
        ["list", "x.baz", "--bogus"],
        ["create", "a.baz", "ds", "-e"],
        ["update", "a.baz", "ds", "tag", "stray"],
        ["--bogus", "list", "x.baz"],
    ])
    def test_malformed_command_line(self, runner, fake, args):
        """Test that parser errors do not reuse the missing-container code."""
        result = runner.invoke(app, args)

        assert result.exit_code == ExitCode.BAD_ARGUMENTS
        assert result.exit_code != ExitCode.MISSING_CONTAINER

    def test_exit_codes_are_distinct(self):
        values = [code.value for code in ExitCode]
        assert len(values) == len(set(values))


class TestMain:
    """Test the entry point's action validation."""

    @pytest.fixture(autouse=True)
    def no_signal_handlers(self, monkeypatch):
        monkeypatch.setattr(cli, "_install_signal_handlers", lambda: None)

    def test_missing_action(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == ExitCode.MISSING_ACTION
        assert "First argument must be" in capsys.readouterr().err

    def test_unknown_action(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["frobnicate", "x"])

        assert exc_info.value.code == ExitCode.UNKNOWN_ACTION
        assert "Saw 'frobnicate'" in capsys.readouterr().err

    def test_unknown_option_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["list", "x.baz", "--bogus"])

        assert exc_info.value.code == ExitCode.BAD_ARGUMENTS

    def test_options_before_action(self):
        cli.check_action(["--verbose", "list", "a.baz"])

    def test_help_bypasses_check(self):
        cli.check_action(["--help"])

    def test_dispatches_to_app(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["help"])

        assert exc_info.value.code == 0
        assert "Usage:" in capsys.readouterr().out


class TestSignalHandlers:

    def test_termination_becomes_system_exit(self, monkeypatch):
        installed = {}
        monkeypatch.setattr(cli.signal, "signal", lambda sig, handler: installed.setdefault(sig, handler))

        cli._install_signal_handlers()

        assert signal.SIGTERM in installed
        with pytest.raises(SystemExit) as exc_info:
            installed[signal.SIGTERM](signal.SIGTERM, None)
        assert exc_info.value.code == 128 + signal.SIGTERM

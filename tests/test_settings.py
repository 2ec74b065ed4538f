"""
Tests for settings module.

Tests settings validation, environment variable loading, and the child
process environment used for repository tool calls.
"""
from __future__ import annotations

import os

import pytest

from baz_archive.settings import DEFAULT_COMPRESSION, Settings, create_settings_from_env


class TestSettings:
    """Test Settings dataclass validation."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings()
        assert settings.borg_bin == "borg"
        assert settings.allow_relocated_repo is True
        assert settings.show_progress is False
        assert settings.compression == DEFAULT_COMPRESSION
        assert settings.zstd_level == 9
        assert settings.gzip_level == 9
        assert settings.workspace_root is None

    def test_empty_borg_bin_raises(self):
        with pytest.raises(ValueError, match="borg_bin is required"):
            Settings(borg_bin="")

    def test_unknown_filter_raises(self):
        """Test that compression names are checked against known filters."""
        with pytest.raises(ValueError, match="Unknown compression filter"):
            Settings(compression=("zstd", "lz4"))

    def test_empty_compression_raises(self):
        with pytest.raises(ValueError, match="at least one filter"):
            Settings(compression=())

    @pytest.mark.parametrize("level", [0, 23])
    def test_zstd_level_range(self, level):
        with pytest.raises(ValueError, match="zstd_level"):
            Settings(zstd_level=level)

    @pytest.mark.parametrize("level", [0, 10])
    def test_gzip_level_range(self, level):
        with pytest.raises(ValueError, match="gzip_level"):
            Settings(gzip_level=level)

    def test_workspace_root_must_exist(self, tmp_path):
        """Test that a missing workspace root fails fast."""
        with pytest.raises(ValueError, match="workspace_root"):
            Settings(workspace_root=str(tmp_path / "missing"))

        assert Settings(workspace_root=str(tmp_path)).workspace_root == str(tmp_path)

    def test_settings_are_frozen(self):
        settings = Settings()
        with pytest.raises(Exception):
            settings.borg_bin = "other"  # type: ignore[misc]


class TestToolEnv:
    """Test the environment handed to repository tool processes."""

    def test_relocation_flag_set_on_copy(self, monkeypatch):
        """Test that the flag reaches the child without touching os.environ."""
        monkeypatch.delenv("BORG_RELOCATED_REPO_ACCESS_IS_OK", raising=False)

        env = Settings().tool_env()

        assert env["BORG_RELOCATED_REPO_ACCESS_IS_OK"] == "yes"
        assert "BORG_RELOCATED_REPO_ACCESS_IS_OK" not in os.environ

    def test_relocation_flag_disabled(self, monkeypatch):
        monkeypatch.delenv("BORG_RELOCATED_REPO_ACCESS_IS_OK", raising=False)

        env = Settings(allow_relocated_repo=False).tool_env()

        assert "BORG_RELOCATED_REPO_ACCESS_IS_OK" not in env

    def test_inherits_process_environment(self, monkeypatch):
        monkeypatch.setenv("BORG_PASSPHRASE", "hunter2")

        assert Settings().tool_env()["BORG_PASSPHRASE"] == "hunter2"


class TestCreateSettingsFromEnv:
    """Test loading settings from environment variables."""

    def test_defaults_without_env(self):
        assert create_settings_from_env() == Settings()

    def test_all_variables(self, monkeypatch, tmp_path):
        """Test that every variable is honored."""
        monkeypatch.setenv("BAZ_BORG_BIN", "/opt/borg/bin/borg")
        monkeypatch.setenv("BAZ_ALLOW_RELOCATED_REPO", "false")
        monkeypatch.setenv("BAZ_PROGRESS", "yes")
        monkeypatch.setenv("BAZ_COMPRESSION", " GZIP , zstd ")
        monkeypatch.setenv("BAZ_ZSTD_LEVEL", "19")
        monkeypatch.setenv("BAZ_GZIP_LEVEL", "6")
        monkeypatch.setenv("BAZ_TMPDIR", str(tmp_path))

        settings = create_settings_from_env()

        assert settings.borg_bin == "/opt/borg/bin/borg"
        assert settings.allow_relocated_repo is False
        assert settings.show_progress is True
        assert settings.compression == ("gzip", "zstd")
        assert settings.zstd_level == 19
        assert settings.gzip_level == 6
        assert settings.workspace_root == str(tmp_path)

    def test_non_integer_level_raises(self, monkeypatch):
        monkeypatch.setenv("BAZ_ZSTD_LEVEL", "high")

        with pytest.raises(ValueError, match="BAZ_ZSTD_LEVEL must be an integer"):
            create_settings_from_env()

    def test_invalid_filter_from_env_raises(self, monkeypatch):
        monkeypatch.setenv("BAZ_COMPRESSION", "brotli")

        with pytest.raises(ValueError, match="Unknown compression filter"):
            create_settings_from_env()

    def test_fresh_instance_each_call(self):
        """Test that settings are not cached between calls."""
        assert create_settings_from_env() is not create_settings_from_env()

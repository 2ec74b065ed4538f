"""Root pytest configuration for baz-archive tests."""
import pytest

from baz_archive.operations import Operations
from baz_archive.settings import Settings
from tests.helpers.trees import make_tree
from tests.storage.fakes.fake_repository import FakeRepository


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires borg)"
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Keep the developer's environment out of settings loading
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear baz-archive environment variables."""
    for var in (
        "BAZ_BORG_BIN",
        "BAZ_ALLOW_RELOCATED_REPO",
        "BAZ_PROGRESS",
        "BAZ_COMPRESSION",
        "BAZ_ZSTD_LEVEL",
        "BAZ_GZIP_LEVEL",
        "BAZ_TMPDIR",
    ):
        monkeypatch.delenv(var, raising=False)


# Standardized test fixtures
@pytest.fixture
def scratch_root(tmp_path):
    """Directory that holds every workspace created during a test."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def settings(scratch_root):
    """Standard test settings."""
    return Settings(workspace_root=str(scratch_root), zstd_level=3)


@pytest.fixture
def repository():
    """Standard fake repository for testing."""
    return FakeRepository()


@pytest.fixture
def ops(settings, repository):
    """Operations facade wired to the fake repository."""
    return Operations(settings=settings, repository=repository)


@pytest.fixture
def dataset(tmp_path):
    """Small dataset directory."""
    return make_tree(tmp_path / "ds", {
        "readme.txt": "first version\n",
        "data/values.csv": "a,b\n1,2\n",
        "data/blob.bin": bytes(range(256)) * 4,
    })

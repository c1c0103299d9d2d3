# tests/conftest.py
import pytest
from unittest.mock import MagicMock

from dirsize.config import Settings, get_settings


@pytest.fixture
def mock_settings(tmp_path):
    """
    Provides a mock of the service settings for testing.
    This avoids the need for environment variables during tests.
    """
    settings = MagicMock(spec=Settings)
    settings.HOST = "127.0.0.1"
    settings.PORT = 0
    settings.ROOT_DIR = tmp_path
    settings.LOG_LEVEL = "DEBUG"
    settings.LOG_FILE = None
    settings.MAX_WORKERS_PER_DIRECTORY = 8
    settings.READ_CHUNK_SIZE = 4096
    settings.JSON_INDENT = 2
    return settings


@pytest.fixture(autouse=True)
def patch_settings_class(monkeypatch, mock_settings):
    """
    Replaces the `Settings` constructor so that any call to `get_settings()`
    during a test receives `mock_settings` instead of reading the environment.
    """
    get_settings.cache_clear()
    monkeypatch.setattr("dirsize.config.Settings", lambda *args, **kwargs: mock_settings)
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_tree(tmp_path):
    """
    root/
      a.txt      ("hello")
      b/         (empty)
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_bytes(b"hello")
    (root / "b").mkdir()
    return root

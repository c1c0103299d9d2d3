# tests/test_config.py
from pathlib import Path

import pytest
from pydantic import ValidationError

from dirsize.config import Settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Removes service variables from the environment and isolates the .env lookup."""
    for key in [
        "HOST", "PORT", "ROOT_DIR", "LOG_LEVEL", "LOG_FILE",
        "MAX_WORKERS_PER_DIRECTORY", "READ_CHUNK_SIZE", "JSON_INDENT",
    ]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_settings_defaults(clean_env):
    settings = Settings()

    assert settings.HOST == "0.0.0.0"
    assert settings.PORT == 8080
    assert settings.ROOT_DIR == Path(clean_env).resolve()
    assert settings.LOG_LEVEL == "INFO"
    assert settings.LOG_FILE is None
    assert settings.MAX_WORKERS_PER_DIRECTORY == 32
    assert settings.READ_CHUNK_SIZE == 65536
    assert settings.JSON_INDENT == 2


def test_settings_read_from_environment(clean_env, monkeypatch):
    serve_root = clean_env / "served"
    serve_root.mkdir()
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("ROOT_DIR", str(serve_root))
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MAX_WORKERS_PER_DIRECTORY", "4")

    settings = Settings()

    assert settings.PORT == 9090
    assert settings.ROOT_DIR == serve_root.resolve()
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.MAX_WORKERS_PER_DIRECTORY == 4


def test_settings_read_from_dotenv(clean_env):
    (clean_env / ".env").write_text("JSON_INDENT=4\nUNRELATED_KEY=ignored\n")

    assert Settings().JSON_INDENT == 4


def test_settings_missing_root_dir_raises_error(clean_env):
    with pytest.raises(ValidationError, match="ROOT_DIR must be an existing directory"):
        Settings(ROOT_DIR=clean_env / "missing")


def test_settings_invalid_log_level_raises_error(clean_env):
    with pytest.raises(ValidationError, match="Unknown LOG_LEVEL"):
        Settings(LOG_LEVEL="chatty")


@pytest.mark.parametrize(
    "field, value",
    [("PORT", 70000), ("MAX_WORKERS_PER_DIRECTORY", 0), ("READ_CHUNK_SIZE", 0), ("JSON_INDENT", -1)],
)
def test_settings_out_of_range_values_raise_error(clean_env, field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})

import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from backend.app.config import DEFAULT_MAX_UPLOAD_BYTES, ConfigError, Settings, load_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("MUS_PUBLIC_BASE_URL", "MUS_MAX_UPLOAD_BYTES", "MUS_LOG_LEVEL", "MUS_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()
    assert settings.public_base_url == "http://localhost:8000"
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert settings.log_level == "INFO"
    assert settings.log_file is None


def test_values_from_environment(clean_env):
    clean_env.setenv("MUS_PUBLIC_BASE_URL", "https://music.example.com/")
    clean_env.setenv("MUS_MAX_UPLOAD_BYTES", "1024")
    clean_env.setenv("MUS_LOG_LEVEL", "debug")
    clean_env.setenv("MUS_LOG_FILE", "/tmp/mus.log")

    settings = load_settings()
    assert settings.public_base_url == "https://music.example.com"
    assert settings.max_upload_bytes == 1024
    assert settings.log_level == "DEBUG"
    assert settings.log_file == "/tmp/mus.log"


@pytest.mark.parametrize(
    "name,value",
    [
        ("MUS_PUBLIC_BASE_URL", "ftp://nope"),
        ("MUS_MAX_UPLOAD_BYTES", "lots"),
        ("MUS_MAX_UPLOAD_BYTES", "0"),
        ("MUS_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values_raise(clean_env, name, value):
    clean_env.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings()


def test_storage_and_upload_urls():
    settings = Settings(public_base_url="http://h")
    assert settings.storage_url("storage_1") == "http://h/api/storage/storage_1"
    assert settings.upload_url("upload_1") == "http://h/api/storage/upload/upload_1"

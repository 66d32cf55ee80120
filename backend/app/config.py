from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PUBLIC_BASE_URL = "http://localhost:8000"
DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(Exception):
    """Configuration error."""


@dataclass(frozen=True)
class Settings:
    public_base_url: str = DEFAULT_PUBLIC_BASE_URL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def storage_url(self, storage_id: str) -> str:
        return f"{self.public_base_url}/api/storage/{storage_id}"

    def upload_url(self, upload_id: str) -> str:
        return f"{self.public_base_url}/api/storage/upload/{upload_id}"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def load_settings() -> Settings:
    """Build settings from the environment (and a .env file, if present)."""
    base_url = (os.getenv("MUS_PUBLIC_BASE_URL") or DEFAULT_PUBLIC_BASE_URL).strip().rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"MUS_PUBLIC_BASE_URL must be an http(s) URL, got {base_url!r}")

    level = (os.getenv("MUS_LOG_LEVEL") or "INFO").strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"MUS_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}, got {level!r}")

    return Settings(
        public_base_url=base_url,
        max_upload_bytes=_int_env("MUS_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        log_level=level,
        log_file=os.getenv("MUS_LOG_FILE") or None,
    )

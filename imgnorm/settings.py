"""
Runtime settings read from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from imgnorm.env_init import PROJECT_ROOT

DEFAULT_MAX_BYTES = 200 * 1024
DEFAULT_MAX_WIDTH = 1920
DEFAULT_MAX_IMAGES = 4
DEFAULT_BLOB_BASE_URL = "/api/v1/blobs"


def _read_int_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(minimum, value)


def _read_path_env(name: str, default: Path) -> Path:
    raw = os.environ.get(name)
    if not raw:
        return default
    path = Path(raw).expanduser()
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path


@dataclass(frozen=True)
class Settings:
    """Normalizer and storage settings."""

    max_bytes: int = DEFAULT_MAX_BYTES
    max_width: int = DEFAULT_MAX_WIDTH
    max_images: int = DEFAULT_MAX_IMAGES
    blob_root: Path = PROJECT_ROOT / "storage" / "blobs"
    blob_base_url: str = DEFAULT_BLOB_BASE_URL
    listings_path: Path = PROJECT_ROOT / "storage" / "listings.json"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        max_bytes=_read_int_env("IMAGE_MAX_BYTES", DEFAULT_MAX_BYTES),
        max_width=_read_int_env("IMAGE_MAX_WIDTH", DEFAULT_MAX_WIDTH),
        max_images=_read_int_env("LISTING_MAX_IMAGES", DEFAULT_MAX_IMAGES),
        blob_root=_read_path_env("BLOB_STORAGE_ROOT", PROJECT_ROOT / "storage" / "blobs"),
        blob_base_url=os.environ.get("BLOB_PUBLIC_BASE_URL", DEFAULT_BLOB_BASE_URL).rstrip("/"),
        listings_path=_read_path_env("LISTINGS_DB_PATH", PROJECT_ROOT / "storage" / "listings.json"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )

"""Logging configuration."""

from __future__ import annotations

import logging
from typing import Optional

from imgnorm.settings import load_settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger; `level` overrides LOG_LEVEL."""
    level_name = (level or load_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

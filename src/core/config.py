"""Application settings, read from the environment (a `.env` file in the working directory is loaded first)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_STORAGE_DIR = "storage"
DEFAULT_DATABASE_URL = "sqlite:///storage/chess.db"
DEFAULT_BOARD_IMAGE_URL = "https://backscattering.de/web-boardimage/board.png"
DEFAULT_LOG_LEVEL = "INFO"

load_dotenv()


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    # getLevelName returns a string like "Level FOO" for unknown names
    return level if isinstance(level, int) else logging.INFO


@dataclass(frozen=True)
class Settings:
    storage_dir: Path
    database_url: str
    board_image_url: str
    log_level: int

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            storage_dir=Path(os.getenv("CHESS_STORAGE_DIR", DEFAULT_STORAGE_DIR)),
            database_url=os.getenv("CHESS_DATABASE_URL", DEFAULT_DATABASE_URL),
            board_image_url=os.getenv("CHESS_BOARD_IMAGE_URL", DEFAULT_BOARD_IMAGE_URL),
            log_level=_parse_log_level(os.getenv("CHESS_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()

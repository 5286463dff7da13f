from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from inventory.models import DEFAULT_FISCAL_YEAR


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    default_fiscal_year: int = DEFAULT_FISCAL_YEAR
    max_upload_bytes: int = 20 * 1024 * 1024
    max_reported_rejections: int = 50
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "") -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

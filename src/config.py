from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"


class AppSettings(BaseSettings):
    base_currency: str = "GBP"
    db_file: Path = ARTIFACTS_DIR / "asset_pools.db"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="POOLS_", env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()

"""Runtime settings, read from ``TELEHTML_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TELEHTML_", env_file=".env", extra="ignore")

    # Telegram caps messages at 4096; keep some headroom
    max_message_len: int = Field(default=4000, gt=0)
    link_schemes: list[str] = ["http", "https", "tg", "mailto"]

    send_retries: int = Field(default=3, ge=1)
    send_base_delay: float = 1.0  # seconds


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config()

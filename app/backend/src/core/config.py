"""Application configuration utilities."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

InvalidAmountPolicy = Literal["reject", "zero"]


class Settings(BaseSettings):
    """Settings derived from environment variables."""

    database_url: str = Field(
        default="sqlite:///./invoice.db", alias="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")
    auto_create_schema: bool = Field(default=True, alias="AUTO_CREATE_SCHEMA")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    invalid_amount_policy: InvalidAmountPolicy = Field(
        default="reject", alias="INVALID_AMOUNT_POLICY"
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["InvalidAmountPolicy", "Settings", "get_settings"]

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

DEFAULT_MAX_COVER_BYTES = 5 * 1024 * 1024


class ClubSettings(BaseModel):
    """Runtime configuration for the remote store, cover storage and logging."""

    database_url: str = Field(default="sqlite:///./bookclub.db", alias="DATABASE_URL")
    media_root: Path = Field(default=Path("./media"), alias="MEDIA_ROOT")
    media_base_url: str = Field(default="/media", alias="MEDIA_BASE_URL")
    cover_bucket: str = Field(default="covers", alias="COVER_BUCKET")
    max_cover_bytes: int = Field(default=DEFAULT_MAX_COVER_BYTES, alias="MAX_COVER_BYTES", ge=1)
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOW_ORIGINS")

    model_config = {"populate_by_name": True}

    @field_validator("media_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> ClubSettings:
    """Load configuration from environment variables."""
    return ClubSettings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./bookclub.db"),
        media_root=Path(os.getenv("MEDIA_ROOT", "./media")),
        media_base_url=os.getenv("MEDIA_BASE_URL", "/media"),
        cover_bucket=os.getenv("COVER_BUCKET", "covers"),
        max_cover_bytes=int(os.getenv("MAX_COVER_BYTES", str(DEFAULT_MAX_COVER_BYTES))),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*"),
    )

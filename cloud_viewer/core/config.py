# File: cloud_viewer/core/config.py

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, field_validator


def _env(name: str, default: str) -> str:
    return os.getenv(name) or default


class Settings(BaseModel):
    # Basic app info
    PROJECT_NAME: str = "Point Cloud Viewer API"
    VERSION: str = "0.1.0"

    # Server
    host: str = Field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(_env("PORT", "5000")))

    # One directory per job number lives under this root, each holding info.json
    pointcloud_root: Path = Field(
        default_factory=lambda: Path(_env("POINTCLOUD_ROOT", "public/pointclouds"))
    )

    default_client_name: str = Field(
        default_factory=lambda: _env("DEFAULT_CLIENT_NAME", "HWC Engineering")
    )

    # CORS
    backend_cors_origins: List[str] = Field(
        default_factory=lambda: _env("BACKEND_CORS_ORIGINS", "*"),
        validate_default=True,
    )

    log_level: str = Field(
        default_factory=lambda: _env("LOG_LEVEL", "INFO"),
        validate_default=True,
    )

    # Where the viewer shell finds the API
    api_base_url: str = Field(
        default_factory=lambda: _env("CLOUD_VIEWER_API_URL", "http://localhost:5000")
    )

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return v
        return []

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
